"""Health and status endpoints."""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, Request
from pydantic import BaseModel

from taskbridge import __version__

health_router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


class StatusResponse(BaseModel):
    bot_name: str
    executor_url: str
    workspace_id: int | None
    agent_id: int | None
    timeout_seconds: float
    poll_interval_seconds: float
    channels: list[str]
    inflight_questions: int
    started_at: str
    version: str


@health_router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    started_at = getattr(request.app.state, "started_at", datetime.now(UTC))
    uptime = (datetime.now(UTC) - started_at).total_seconds()
    return HealthResponse(
        status="ok",
        version=__version__,
        uptime_seconds=round(uptime, 1),
    )


@health_router.get("/status", response_model=StatusResponse)
async def status(request: Request) -> StatusResponse:
    settings = request.app.state.settings
    started_at = getattr(request.app.state, "started_at", datetime.now(UTC))

    channel_router = getattr(request.app.state, "channel_router", None)
    channels: list[str] = channel_router.active_channels if channel_router else []

    return StatusResponse(
        bot_name=settings.bot_name,
        executor_url=settings.executor.api_url,
        workspace_id=settings.executor.workspace_id,
        agent_id=settings.executor.agent_id,
        timeout_seconds=settings.tracking.timeout_seconds,
        poll_interval_seconds=settings.tracking.poll_interval_seconds,
        channels=channels,
        inflight_questions=channel_router.inflight if channel_router else 0,
        started_at=started_at.isoformat(),
        version=__version__,
    )
