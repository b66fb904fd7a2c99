"""Executor seam — the remote service that runs submitted tasks."""

from taskbridge.executor.base import ExecutorClient
from taskbridge.executor.errors import ExecutorError, SubmissionError
from taskbridge.executor.openserv import OpenServClient

__all__ = ["ExecutorClient", "ExecutorError", "OpenServClient", "SubmissionError"]
