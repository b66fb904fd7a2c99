"""Tests for CompletionTracker — poll a task to done, error, or timeout."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from taskbridge.core.resolver import COMPLETED_PLACEHOLDER
from taskbridge.core.tracker import (
    TIMEOUT_MESSAGE,
    CompletionTracker,
    TrackingOutcome,
    TrackingSession,
)
from taskbridge.executor.errors import ExecutorError
from taskbridge.tasks.models import StoredFile, Task, TaskAttachment


def _task(task_id=1, status="pending", **kwargs) -> Task:
    return Task(id=task_id, status=status, **kwargs)


class TestTrackingSession:
    def test_deadline(self):
        session = TrackingSession(task_id=1, workspace_id=2, started_at=10.0, timeout=120)
        assert session.deadline == 130.0

    def test_expired(self):
        session = TrackingSession(task_id=1, workspace_id=2, started_at=0.0, timeout=120)
        assert session.expired(119.9) is False
        assert session.expired(120.0) is True

    def test_each_call_gets_its_own_session(self, tracker):
        a = tracker.new_session(1, 2)
        b = tracker.new_session(1, 2)
        assert a is not b
        assert a.id != b.id
        assert a.poll_interval == 5
        assert a.timeout == 120


class TestOutcomes:
    @pytest.mark.asyncio
    async def test_done_with_inline_output(self, tracker, executor, clock):
        """id=42, [pending, pending, done] with output "42" → "42" after 3 polls."""
        executor.get_task.side_effect = [
            _task(42, "pending"),
            _task(42, "pending"),
            _task(42, "done", output="42"),
        ]

        result = await tracker.track_to_completion(42, 1001)

        assert result == "42"
        assert executor.get_task.await_count == 3
        executor.get_task.assert_awaited_with(42, 1001)
        assert clock.now <= 120

    @pytest.mark.asyncio
    async def test_error_returns_none(self, tracker, executor):
        """id=7, [pending, error] → None after 2 polls."""
        executor.get_task.side_effect = [_task(7, "pending"), _task(7, "error")]

        result = await tracker.track_to_completion(7, 1001)

        assert result is None
        assert executor.get_task.await_count == 2

    @pytest.mark.asyncio
    async def test_error_ignores_output_and_attachments(self, tracker, executor):
        executor.get_task.return_value = _task(
            7,
            "error",
            output="partial answer",
            attachments=[TaskAttachment(path="answer.md")],
        )

        result = await tracker.track_to_completion(7, 1001)

        assert result is None
        executor.list_files.assert_not_awaited()
        executor.fetch_content.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_timeout_after_budget(self, tracker, executor, clock):
        """id=9 stays pending for 120s → timeout string, one poll every 5s."""
        executor.get_task.return_value = _task(9, "pending")

        result = await tracker.track_to_completion(9, 1001)

        assert result == TIMEOUT_MESSAGE
        assert executor.get_task.await_count == 24
        assert set(clock.sleeps) == {5}
        assert clock.now == 120

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("snapshot", "outcome", "text"),
        [
            (_task(1, "done", output=TIMEOUT_MESSAGE), TrackingOutcome.DONE, TIMEOUT_MESSAGE),
            (_task(1, "error"), TrackingOutcome.FAILED, None),
            (_task(1, "running"), TrackingOutcome.TIMED_OUT, TIMEOUT_MESSAGE),
        ],
    )
    async def test_track_reports_outcome(self, tracker, executor, snapshot, outcome, text):
        executor.get_task.return_value = snapshot

        result = await tracker.track(1, 1001)

        assert result.outcome == outcome
        assert result.text == text

    @pytest.mark.asyncio
    async def test_no_polling_after_timeout(self, tracker, executor):
        executor.get_task.return_value = _task(9, "running")

        await tracker.track_to_completion(9, 1001)
        calls = executor.get_task.await_count
        await asyncio.sleep(0)

        assert executor.get_task.await_count == calls

    @pytest.mark.asyncio
    async def test_unknown_status_is_not_terminal(self, tracker, executor):
        executor.get_task.side_effect = [
            _task(3, "to-do"),
            _task(3, "in-progress"),
            _task(3, "done", output="ok"),
        ]

        assert await tracker.track_to_completion(3, 1001) == "ok"
        assert executor.get_task.await_count == 3

    @pytest.mark.asyncio
    async def test_done_without_output_returns_placeholder(self, tracker, executor):
        executor.get_task.return_value = _task(5, "done")

        assert await tracker.track_to_completion(5, 1001) == COMPLETED_PLACEHOLDER

    @pytest.mark.asyncio
    async def test_done_with_attachment_returns_file_content(self, tracker, executor):
        executor.get_task.return_value = _task(
            5, "done", output="inline", attachments=[TaskAttachment(path="answer.md")]
        )
        executor.list_files.return_value = [
            StoredFile(id=77, path="tasks/5/answer.md", full_url="https://files/77"),
        ]
        executor.fetch_content.return_value = "from the file"

        result = await tracker.track_to_completion(5, 1001)

        assert result == "from the file"
        executor.delete_file.assert_awaited_once_with(1001, 77)


class TestResilience:
    @pytest.mark.asyncio
    async def test_transient_error_does_not_end_session(self, tracker, executor, clock):
        executor.get_task.side_effect = [
            _task(1, "pending"),
            ExecutorError("connection reset"),
            _task(1, "done", output="recovered"),
        ]

        result = await tracker.track_to_completion(1, 1001)

        assert result == "recovered"
        assert executor.get_task.await_count == 3
        # the failed tick still waits the full interval
        assert clock.sleeps == [5, 5]

    @pytest.mark.asyncio
    async def test_errors_until_budget_returns_timeout(self, tracker, executor):
        executor.get_task.side_effect = RuntimeError("network down")

        result = await tracker.track_to_completion(1, 1001)

        assert result == TIMEOUT_MESSAGE
        assert executor.get_task.await_count == 24

    @pytest.mark.asyncio
    async def test_slow_status_check_is_not_compensated(self, executor, clock):
        async def slow_get_task(task_id, workspace_id):
            clock.advance(7)
            return _task(task_id, "pending")

        executor.get_task.side_effect = slow_get_task
        tracker = CompletionTracker(
            executor, timeout_seconds=120, poll_interval_seconds=5,
            clock=clock, sleep=clock.sleep,
        )

        result = await tracker.track_to_completion(1, 1001)

        assert result == TIMEOUT_MESSAGE
        assert set(clock.sleeps) == {5}
        # 12s per tick → 10 ticks fit in 120s
        assert executor.get_task.await_count == 10


class TestProgress:
    @pytest.mark.asyncio
    async def test_progress_signal_every_tick(self, tracker, executor):
        executor.get_task.side_effect = [
            _task(1, "pending"),
            _task(1, "pending"),
            _task(1, "done", output="x"),
        ]
        progress = AsyncMock()

        await tracker.track_to_completion(1, 1001, progress=progress)

        assert progress.await_count == 3

    @pytest.mark.asyncio
    async def test_progress_failure_never_aborts(self, tracker, executor):
        executor.get_task.side_effect = [_task(1, "pending"), _task(1, "done", output="x")]
        progress = AsyncMock(side_effect=RuntimeError("telegram down"))

        result = await tracker.track_to_completion(1, 1001, progress=progress)

        assert result == "x"
        assert progress.await_count == 2


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_concurrent_sessions_are_independent(self):
        """Two calls sharing one executor reach their own outcomes."""
        statuses = {
            "a": iter(["pending", "pending", "done"]),
            "b": iter(["error"]),
        }

        async def get_task(task_id, workspace_id):
            await asyncio.sleep(0)
            return Task(id=task_id, status=next(statuses[task_id]), output=f"answer-{task_id}")

        executor = AsyncMock()
        executor.get_task.side_effect = get_task
        tracker = CompletionTracker(executor, timeout_seconds=5, poll_interval_seconds=0.01)

        result_a, result_b = await asyncio.gather(
            tracker.track_to_completion("a", 1001),
            tracker.track_to_completion("b", 1001),
        )

        assert result_a == "answer-a"
        assert result_b is None

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, executor):
        """A shutdown cancels the session outright; it is not swallowed as a poll error."""
        executor.get_task.return_value = _task(1, "pending")
        tracker = CompletionTracker(executor, timeout_seconds=60, poll_interval_seconds=0.01)

        task = asyncio.create_task(tracker.track_to_completion(1, 1001))
        await asyncio.sleep(0.05)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task


class TestFromSettings:
    def test_uses_tracking_config(self, executor, test_settings):
        test_settings.tracking.timeout_seconds = 30
        test_settings.tracking.poll_interval_seconds = 2

        tracker = CompletionTracker.from_settings(executor, test_settings)

        assert tracker.timeout_seconds == 30
        assert tracker.poll_interval_seconds == 2
