"""Application lifespan management."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI

logger = logging.getLogger("taskbridge.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown hooks for taskbridge.

    Tracking sessions are not persisted: shutting down aborts every
    question still in flight.
    """
    settings = app.state.settings

    logger.info(
        "taskbridge server starting: workspace=%s, agent=%s, host=%s, port=%d",
        settings.executor.workspace_id,
        settings.executor.agent_id,
        settings.server.host,
        settings.server.port,
    )

    channel_router = getattr(app.state, "channel_router", None)
    if channel_router and channel_router.active_channels:
        logger.info("Starting channels: %s", ", ".join(channel_router.active_channels))
        await channel_router.start_all()

    app.state.started_at = datetime.now(UTC)

    yield

    if channel_router and channel_router.active_channels:
        logger.info("Stopping channels...")
        await channel_router.stop_all()

    executor = getattr(app.state, "executor", None)
    aclose = getattr(executor, "aclose", None)
    if aclose is not None:
        try:
            await aclose()
        except Exception:
            logger.exception("Error closing executor client")

    logger.info("taskbridge server shutting down.")
