"""Shared test fixtures."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from taskbridge.config.models import ChannelConfig, ExecutorConfig, TrackingConfig
from taskbridge.config.settings import Settings
from taskbridge.core.tracker import CompletionTracker


class FakeClock:
    """Monotonic clock that only moves when someone sleeps on it."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def executor() -> AsyncMock:
    """Executor capability with every call mocked (no real API calls)."""
    mock = AsyncMock()
    mock.list_files.return_value = []
    mock.fetch_content.return_value = ""
    mock.delete_file.return_value = None
    return mock


@pytest.fixture
def tracker(executor, clock) -> CompletionTracker:
    """Tracker with the production budget (120s / 5s) on a fake clock."""
    return CompletionTracker(
        executor,
        timeout_seconds=120,
        poll_interval_seconds=5,
        clock=clock,
        sleep=clock.sleep,
    )


@pytest.fixture
def test_settings() -> Settings:
    """Settings configured for testing (no real API calls)."""
    return Settings(
        bot_name="TestBot",
        executor=ExecutorConfig(api_key="test-key", workspace_id=1001, agent_id=42),
        tracking=TrackingConfig(timeout_seconds=120, poll_interval_seconds=5),
        channels=ChannelConfig(telegram_enabled=False, telegram_bot_token=""),
    )
