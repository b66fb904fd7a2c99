"""Channel registry and router."""

from __future__ import annotations

import logging

from taskbridge.channels.base import ChannelAdapter

logger = logging.getLogger("taskbridge.channels.router")


class ChannelRouter:
    """Registry of active channel adapters."""

    def __init__(self) -> None:
        self._channels: dict[str, ChannelAdapter] = {}

    def register(self, adapter: ChannelAdapter) -> None:
        """Register a channel adapter, replacing any with the same name."""
        self._channels[adapter.channel_name] = adapter

    def get(self, name: str) -> ChannelAdapter | None:
        return self._channels.get(name)

    @property
    def active_channels(self) -> list[str]:
        """List of registered channel names."""
        return list(self._channels.keys())

    @property
    def inflight(self) -> int:
        """Questions still being tracked across every channel."""
        return sum(getattr(adapter, "inflight", 0) for adapter in self._channels.values())

    async def start_all(self) -> None:
        for adapter in self._channels.values():
            await adapter.start()

    async def stop_all(self) -> None:
        """Stop every channel; one failing adapter does not keep the others running."""
        for name, adapter in self._channels.items():
            try:
                await adapter.stop()
            except Exception:
                logger.exception("Error stopping %s channel", name)
