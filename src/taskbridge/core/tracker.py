"""Completion tracker — poll a submitted task to exactly one outcome."""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections.abc import Awaitable, Callable
from contextlib import aclosing
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from taskbridge.config.constants import DEFAULT_POLL_INTERVAL_SECONDS, DEFAULT_TIMEOUT_SECONDS
from taskbridge.core.poller import ProgressSignal, StatusPoller
from taskbridge.core.resolver import ResultResolver
from taskbridge.tasks.models import TaskStatus

if TYPE_CHECKING:
    from taskbridge.config.settings import Settings
    from taskbridge.executor.base import ExecutorClient

logger = logging.getLogger("taskbridge.core.tracker")

TIMEOUT_MESSAGE = "Timeout. The task might still be processing."


class TrackingOutcome(StrEnum):
    """How a tracking session ended."""

    DONE = "done"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass
class TrackingResult:
    """Outcome of a session plus the text to show for it (None when failed)."""

    outcome: TrackingOutcome
    text: str | None = None


@dataclass
class TrackingSession:
    """State of one ``track_to_completion`` call. Never shared between calls."""

    task_id: int | str
    workspace_id: int | str
    started_at: float
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS
    polls: int = 0
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])

    @property
    def deadline(self) -> float:
        return self.started_at + self.timeout

    def elapsed(self, now: float) -> float:
        return now - self.started_at

    def expired(self, now: float) -> bool:
        return now >= self.deadline


class CompletionTracker:
    """Polls a task until it is done, failed, or out of time.

    ``track_to_completion`` returns the resolved result for ``done``,
    ``None`` for ``error`` and ``TIMEOUT_MESSAGE`` once the budget is spent.
    The budget is a hard deadline from session start; partial progress does
    not extend it.
    """

    def __init__(
        self,
        executor: ExecutorClient,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self.poll_interval_seconds = poll_interval_seconds
        self._poller = StatusPoller(executor, clock=clock, sleep=sleep)
        self._resolver = ResultResolver(executor)

    @classmethod
    def from_settings(cls, executor: ExecutorClient, settings: Settings) -> CompletionTracker:
        return cls(
            executor,
            timeout_seconds=settings.tracking.timeout_seconds,
            poll_interval_seconds=settings.tracking.poll_interval_seconds,
        )

    def new_session(self, task_id: int | str, workspace_id: int | str) -> TrackingSession:
        return TrackingSession(
            task_id=task_id,
            workspace_id=workspace_id,
            started_at=self._poller.now(),
            timeout=self.timeout_seconds,
            poll_interval=self.poll_interval_seconds,
        )

    async def track_to_completion(
        self,
        task_id: int | str,
        workspace_id: int | str,
        progress: ProgressSignal | None = None,
    ) -> str | None:
        result = await self.track(task_id, workspace_id, progress=progress)
        return result.text

    async def track(
        self,
        task_id: int | str,
        workspace_id: int | str,
        progress: ProgressSignal | None = None,
    ) -> TrackingResult:
        """Like ``track_to_completion`` but reports which way the session ended."""
        session = self.new_session(task_id, workspace_id)
        logger.debug(
            "Tracking task %s (session %s, budget %.0fs, every %.0fs)",
            task_id,
            session.id,
            session.timeout,
            session.poll_interval,
        )

        async with aclosing(self._poller.snapshots(session, progress)) as snapshots:
            async for task in snapshots:
                if task.status == TaskStatus.DONE:
                    logger.info("Task %s completed after %d polls", task_id, session.polls)
                    text = await self._resolver.resolve(task, workspace_id)
                    return TrackingResult(TrackingOutcome.DONE, text)

                if task.status == TaskStatus.ERROR:
                    logger.error("Task %s failed", task_id)
                    return TrackingResult(TrackingOutcome.FAILED)

        logger.warning(
            "Task %s timed out after %.0fs (%d polls)",
            task_id,
            session.elapsed(self._poller.now()),
            session.polls,
        )
        return TrackingResult(TrackingOutcome.TIMED_OUT, TIMEOUT_MESSAGE)
