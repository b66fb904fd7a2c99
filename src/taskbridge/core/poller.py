"""Status polling under a fixed wall-clock budget."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import TYPE_CHECKING, Protocol

from taskbridge.tasks.models import Task

if TYPE_CHECKING:
    from taskbridge.core.tracker import TrackingSession
    from taskbridge.executor.base import ExecutorClient

logger = logging.getLogger("taskbridge.core.poller")


class ProgressSignal(Protocol):
    """Async callable that tells the caller "still working" (e.g. typing...)."""

    async def __call__(self) -> None: ...


class StatusPoller:
    """Produces task snapshots until the session budget runs out.

    Every tick pings *progress*, fetches the task, yields the snapshot and
    then sleeps the session's poll interval. The interval is fixed: a slow
    status check makes the tick longer, it does not shorten the sleep.

    A failed status fetch is logged and skipped; only the budget bounds the
    number of attempts. Stopping on a terminal status is up to the consumer.
    """

    def __init__(
        self,
        executor: ExecutorClient,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._executor = executor
        self._clock = clock
        self._sleep = sleep

    def now(self) -> float:
        return self._clock()

    async def snapshots(
        self,
        session: TrackingSession,
        progress: ProgressSignal | None = None,
    ) -> AsyncIterator[Task]:
        while not session.expired(self._clock()):
            session.polls += 1
            await self._ping(progress)

            try:
                snapshot = await self._executor.get_task(session.task_id, session.workspace_id)
            except Exception as exc:
                logger.warning(
                    "Error polling task %s (poll %d): %s",
                    session.task_id,
                    session.polls,
                    exc,
                )
            else:
                logger.info("Task %s status: %s", session.task_id, snapshot.status)
                yield snapshot

            await self._sleep(session.poll_interval)

    @staticmethod
    async def _ping(progress: ProgressSignal | None) -> None:
        if progress is None:
            return
        try:
            await progress()
        except Exception as exc:
            logger.debug("Progress signal failed: %s", exc)
