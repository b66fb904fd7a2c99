"""AskService — one question in, one reply out."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from taskbridge.core.submitter import TaskSubmitter
from taskbridge.core.tracker import CompletionTracker, TrackingOutcome
from taskbridge.executor.errors import SubmissionError

if TYPE_CHECKING:
    from taskbridge.config.settings import Settings
    from taskbridge.core.poller import ProgressSignal
    from taskbridge.executor.base import ExecutorClient

logger = logging.getLogger("taskbridge.core.ask_service")

FAILURE_MESSAGE = "Sorry, I could not answer your question. Please try again."
ERROR_MESSAGE = "An error occurred. Please try again."


@dataclass
class AskResponse:
    """Outcome of a single question, ready to show the user."""

    content: str = ""
    task_id: int | str | None = None
    failed: bool = False
    timed_out: bool = False
    error: str | None = None


class AskService:
    """Submits a question as a task and tracks it to a reply.

    Channels call ``ask()`` instead of touching the executor directly.
    Every call gets its own tracking session, so concurrent questions from
    different chats never share state.
    """

    def __init__(self, submitter: TaskSubmitter, tracker: CompletionTracker) -> None:
        self.submitter = submitter
        self.tracker = tracker

    @classmethod
    def from_settings(cls, executor: ExecutorClient, settings: Settings) -> AskService:
        submitter = TaskSubmitter(
            executor,
            workspace_id=settings.executor.workspace_id,
            assignee=settings.executor.agent_id,
        )
        return cls(submitter, CompletionTracker.from_settings(executor, settings))

    async def ask(self, question: str, progress: ProgressSignal | None = None) -> AskResponse:
        logger.info('Question received: "%s"', question[:200])

        try:
            task = await self.submitter.submit(question)
            result = await self.tracker.track(
                task.id, self.submitter.workspace_id, progress=progress
            )
        except SubmissionError as exc:
            logger.error("Could not submit question: %s", exc)
            return AskResponse(content=ERROR_MESSAGE, error=str(exc))
        except Exception as exc:
            logger.error("Error processing question: %s", exc, exc_info=True)
            return AskResponse(content=ERROR_MESSAGE, error=str(exc))

        if result.outcome == TrackingOutcome.FAILED:
            return AskResponse(content=FAILURE_MESSAGE, task_id=task.id, failed=True)
        return AskResponse(
            content=result.text,
            task_id=task.id,
            timed_out=result.outcome == TrackingOutcome.TIMED_OUT,
        )
