"""Exceptions raised at the executor seam."""

from __future__ import annotations


class ExecutorError(Exception):
    """A request to the executor failed (network, auth, or bad response)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SubmissionError(ExecutorError):
    """The executor refused to create a task. Tracking never starts."""
