"""Port interface for announcing playback progress in text channels."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from guild_voice_bot.domain.shared.types import ChannelIdField, DiscordSnowflake

if TYPE_CHECKING:
    from ...domain.music.entities import TrackEntry


class TrackAnnouncer(ABC):
    """Receives notifications after the queue advances on its own."""

    @abstractmethod
    async def track_started(self, entry: "TrackEntry") -> None:
        ...

    @abstractmethod
    async def queue_finished(
        self, guild_id: DiscordSnowflake, text_channel_id: ChannelIdField | None
    ) -> None:
        ...
