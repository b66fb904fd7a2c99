"""Channel adapter interface for messaging transports."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class OutgoingMessage:
    """Normalized outbound message to any channel."""

    text: str
    chat_id: str
    channel: str = ""


class ChannelAdapter(ABC):
    """Base class for all message channel adapters.

    Translates between a channel's native protocol and the normalized
    OutgoingMessage format.
    """

    channel_name: str = ""

    @abstractmethod
    async def send(self, message: OutgoingMessage) -> None:
        """Send a message through this channel."""
        ...

    @abstractmethod
    async def start(self) -> None:
        """Start listening for incoming messages (if applicable)."""
        ...

    async def stop(self) -> None:  # noqa: B027
        """Graceful shutdown (optional override)."""
