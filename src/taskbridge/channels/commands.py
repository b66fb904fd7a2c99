"""Parse bot commands (/start, /help, /ask) from user messages."""

from __future__ import annotations

from dataclasses import dataclass

KNOWN_COMMANDS = ("start", "help", "ask")


@dataclass
class BotCommand:
    """Result of parsing a potential bot command."""

    action: str  # "start" | "help" | "ask" | "none"
    argument: str = ""


def parse_command(text: str) -> BotCommand:
    """Parse a message for bot commands.

    Accepts the ``/cmd@BotName`` form Telegram uses in group chats.
    Returns a BotCommand with action="none" for anything else.
    """
    parts = text.strip().split(maxsplit=1)
    if not parts or not parts[0].startswith("/"):
        return BotCommand(action="none")

    name = parts[0][1:].split("@", 1)[0].lower()
    if name not in KNOWN_COMMANDS:
        return BotCommand(action="none")

    argument = parts[1].strip() if len(parts) > 1 else ""
    return BotCommand(action=name, argument=argument)
