"""Telegram channel adapter — polling (local) or webhooks (public URL)."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING, Any

import httpx

from taskbridge.channels.base import ChannelAdapter, OutgoingMessage
from taskbridge.channels.commands import parse_command

if TYPE_CHECKING:
    from taskbridge.core.ask_service import AskService

logger = logging.getLogger("taskbridge.channels.telegram")

TELEGRAM_API = "https://api.telegram.org"
MAX_MESSAGE_LENGTH = 4096

USAGE_MESSAGE = "Please write a question: /ask [your question]"


def welcome_text(bot_name: str) -> str:
    return (
        f"{bot_name}\n\n"
        "Usage: /ask [your question]\n"
        "Example: /ask What is OpenServ?"
    )


HELP_TEXT = (
    "Help:\n\n"
    "Commands:\n"
    "• /start - Start the bot\n"
    "• /ask [question] - Ask a question\n"
    "• /help - Show this help message\n\n"
    "Example:\n"
    "/ask Give information about OpenServ platform"
)


class TelegramAdapter(ChannelAdapter):
    """Telegram bot adapter with auto-detection: polling or webhooks.

    - No webhook_url configured → uses long-polling (works locally)
    - webhook_url configured → registers webhook with Telegram (needs public HTTPS)

    Each ``/ask`` runs in its own asyncio task, so a two-minute wait in one
    chat never blocks updates from another. Stopping the adapter cancels
    questions still in flight.
    """

    channel_name = "telegram"

    def __init__(
        self,
        bot_token: str,
        ask_service: AskService,
        webhook_url: str = "",
        bot_name: str = "OpenServ Bot",
    ) -> None:
        self.bot_token = bot_token
        self.ask_service = ask_service
        self.webhook_url = webhook_url
        self.bot_name = bot_name
        self._bot_username: str | None = None
        self._polling_task: asyncio.Task | None = None
        self._stop_event = asyncio.Event()
        self._inflight: set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start the Telegram adapter — polling or webhook mode."""
        try:
            async with httpx.AsyncClient() as client:
                resp = await client.get(f"{TELEGRAM_API}/bot{self.bot_token}/getMe")
                data = resp.json()
                if data.get("ok"):
                    self._bot_username = data["result"].get("username")
                    logger.info("Telegram bot: @%s", self._bot_username)
                else:
                    logger.error("Telegram getMe failed: %s", data)
        except Exception as exc:
            logger.error("Could not connect to Telegram: %s", exc)

        if self.webhook_url:
            await self._set_webhook(self.webhook_url)
            logger.info("Telegram running in webhook mode")
        else:
            # Polling and webhooks are mutually exclusive on Telegram's side
            await self._delete_webhook()
            self._stop_event.clear()
            self._polling_task = asyncio.create_task(
                self._poll_loop(), name="telegram-polling"
            )
            logger.info("Telegram running in polling mode")

    async def stop(self) -> None:
        """Stop polling, drop the webhook and abort in-flight questions."""
        if self._polling_task and not self._polling_task.done():
            self._stop_event.set()
            self._polling_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._polling_task
            self._polling_task = None
            logger.info("Telegram polling stopped")

        if self._inflight:
            logger.info("Aborting %d in-flight question(s)", len(self._inflight))
            for task in list(self._inflight):
                task.cancel()
            await asyncio.gather(*self._inflight, return_exceptions=True)

        if self.webhook_url:
            await self._delete_webhook()

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    async def _poll_loop(self) -> None:
        """Long-poll Telegram's getUpdates endpoint."""
        offset = 0
        timeout = 30  # Telegram long-poll timeout, seconds

        async with httpx.AsyncClient(timeout=httpx.Timeout(timeout + 10)) as client:
            while not self._stop_event.is_set():
                try:
                    resp = await client.get(
                        f"{TELEGRAM_API}/bot{self.bot_token}/getUpdates",
                        params={
                            "offset": offset,
                            "timeout": timeout,
                            "allowed_updates": '["message"]',
                        },
                    )
                    data = resp.json()

                    if not data.get("ok"):
                        logger.error("Telegram getUpdates error: %s", data)
                        await asyncio.sleep(5)
                        continue

                    for update in data.get("result", []):
                        offset = update["update_id"] + 1
                        try:
                            await self.handle_update(update)
                        except Exception as exc:
                            logger.error(
                                "Error handling Telegram update: %s",
                                exc,
                                exc_info=True,
                            )

                except asyncio.CancelledError:
                    raise
                except httpx.ReadTimeout:
                    continue
                except Exception as exc:
                    logger.error("Telegram polling error: %s", exc)
                    await asyncio.sleep(5)

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    async def send(self, message: OutgoingMessage) -> None:
        """Send a text message to a Telegram chat."""
        if not message.chat_id:
            logger.warning("No chat_id for outbound Telegram message")
            return
        await self._send_text(message.chat_id, message.text)

    async def _send_text(self, chat_id: str, text: str) -> None:
        """Send text via Telegram Bot API (chunked at 4096 chars)."""
        chunks = [
            text[i : i + MAX_MESSAGE_LENGTH] for i in range(0, len(text), MAX_MESSAGE_LENGTH)
        ]

        async with httpx.AsyncClient() as client:
            for chunk in chunks:
                try:
                    await client.post(
                        f"{TELEGRAM_API}/bot{self.bot_token}/sendMessage",
                        json={"chat_id": chat_id, "text": chunk},
                    )
                except Exception as exc:
                    logger.error("Telegram send failed: %s", exc)

    async def _send_typing(self, chat_id: str) -> None:
        """Send 'typing...' chat action so the user knows we're working."""
        try:
            async with httpx.AsyncClient() as client:
                await client.post(
                    f"{TELEGRAM_API}/bot{self.bot_token}/sendChatAction",
                    json={"chat_id": chat_id, "action": "typing"},
                )
        except Exception as exc:
            logger.debug("Failed to send typing action: %s", exc)

    # ------------------------------------------------------------------
    # Inbound (called from webhook route or polling loop)
    # ------------------------------------------------------------------

    async def handle_update(self, update_data: dict[str, Any]) -> None:
        """Dispatch a Telegram Update to the matching command handler."""
        message = update_data.get("message")
        if not message:
            return

        text = message.get("text") or ""
        if not text:
            return

        chat_id = str(message["chat"]["id"])
        cmd = parse_command(text)
        if cmd.action == "start":
            await self._send_text(chat_id, welcome_text(self.bot_name))
        elif cmd.action == "help":
            await self._send_text(chat_id, HELP_TEXT)
        elif cmd.action == "ask":
            if not cmd.argument:
                await self._send_text(chat_id, USAGE_MESSAGE)
                return
            self._spawn_answer(chat_id, cmd.argument)

    def _spawn_answer(self, chat_id: str, question: str) -> asyncio.Task:
        task = asyncio.create_task(
            self.answer_question(chat_id, question), name=f"telegram-ask-{chat_id}"
        )
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        return task

    async def answer_question(self, chat_id: str, question: str) -> None:
        """Run one question to completion and reply with the outcome."""
        logger.info("Telegram question from %s: %s", chat_id, question[:80])
        await self._send_typing(chat_id)

        response = await self.ask_service.ask(
            question,
            progress=lambda: self._send_typing(chat_id),
        )
        await self.send(
            OutgoingMessage(text=response.content, chat_id=chat_id, channel=self.channel_name)
        )

    # ------------------------------------------------------------------
    # Webhook helpers
    # ------------------------------------------------------------------

    async def _set_webhook(self, url: str) -> None:
        """Register the webhook URL with Telegram."""
        try:
            async with httpx.AsyncClient() as client:
                resp = await client.post(
                    f"{TELEGRAM_API}/bot{self.bot_token}/setWebhook",
                    json={"url": url, "allowed_updates": ["message"]},
                )
                result = resp.json()
                if result.get("ok"):
                    logger.info("Telegram webhook set to %s", url)
                else:
                    logger.error("Telegram setWebhook failed: %s", result)
        except Exception as exc:
            logger.error("Failed to set Telegram webhook: %s", exc)

    async def _delete_webhook(self) -> None:
        try:
            async with httpx.AsyncClient() as client:
                resp = await client.post(
                    f"{TELEGRAM_API}/bot{self.bot_token}/deleteWebhook"
                )
                if resp.json().get("ok"):
                    logger.debug("Telegram webhook cleared")
        except Exception as exc:
            logger.warning("Failed to remove Telegram webhook: %s", exc)

    @property
    def bot_username(self) -> str | None:
        return self._bot_username

    @property
    def mode(self) -> str:
        """Current operating mode."""
        if self.webhook_url:
            return "webhook"
        if self._polling_task and not self._polling_task.done():
            return "polling"
        return "stopped"

    @property
    def inflight(self) -> int:
        """Number of questions currently being tracked."""
        return len(self._inflight)
