"""FastAPI application factory."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import FastAPI

from taskbridge import __version__
from taskbridge.channels.router import ChannelRouter
from taskbridge.core import AskService
from taskbridge.executor import OpenServClient
from taskbridge.server.lifespan import lifespan
from taskbridge.server.routes.health import health_router
from taskbridge.server.routes.telegram import telegram_router

if TYPE_CHECKING:
    from taskbridge.config.settings import Settings
    from taskbridge.executor.base import ExecutorClient

logger = logging.getLogger("taskbridge.server")


def create_app(settings: Settings, executor: ExecutorClient | None = None) -> FastAPI:
    """Build the FastAPI application.

    1. Creates the shared executor client (one per process, reused by every
       tracking session) unless one is injected
    2. Wires the AskService on top of it
    3. Registers health routes
    4. Conditionally registers the Telegram channel with the channel router
       and mounts its webhook route
    """
    app = FastAPI(
        title=f"taskbridge ({settings.bot_name})",
        version=__version__,
        description="Telegram front-end for OpenServ task execution",
        lifespan=lifespan,
    )

    if executor is None:
        executor = OpenServClient(
            api_key=settings.executor.api_key,
            api_url=settings.executor.api_url,
            timeout=settings.executor.request_timeout_seconds,
        )

    channel_router = ChannelRouter()

    app.state.settings = settings
    app.state.executor = executor
    app.state.ask_service = AskService.from_settings(executor, settings)
    app.state.channel_router = channel_router
    app.state.telegram_adapter = None

    app.include_router(health_router)

    if settings.channels.telegram_enabled and settings.channels.telegram_bot_token:
        from taskbridge.channels.telegram import TelegramAdapter

        tg_adapter = TelegramAdapter(
            bot_token=settings.channels.telegram_bot_token,
            ask_service=app.state.ask_service,
            webhook_url=settings.channels.telegram_webhook_url,
            bot_name=settings.bot_name,
        )
        channel_router.register(tg_adapter)
        app.state.telegram_adapter = tg_adapter
        app.include_router(telegram_router)
        logger.info("Telegram channel registered")
    elif settings.channels.telegram_enabled:
        logger.warning("Telegram enabled but TELEGRAM_BOT_TOKEN is not set")

    return app
