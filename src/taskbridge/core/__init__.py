"""Core task tracking: submit, poll, resolve."""

from taskbridge.core.ask_service import AskResponse, AskService
from taskbridge.core.poller import ProgressSignal, StatusPoller
from taskbridge.core.resolver import (
    COMPLETED_PLACEHOLDER,
    ResultResolver,
    find_attachment_file,
)
from taskbridge.core.submitter import TaskSubmitter
from taskbridge.core.tracker import (
    TIMEOUT_MESSAGE,
    CompletionTracker,
    TrackingOutcome,
    TrackingResult,
    TrackingSession,
)

__all__ = [
    "COMPLETED_PLACEHOLDER",
    "TIMEOUT_MESSAGE",
    "AskResponse",
    "AskService",
    "CompletionTracker",
    "ProgressSignal",
    "ResultResolver",
    "StatusPoller",
    "TaskSubmitter",
    "TrackingOutcome",
    "TrackingResult",
    "TrackingSession",
    "find_attachment_file",
]
