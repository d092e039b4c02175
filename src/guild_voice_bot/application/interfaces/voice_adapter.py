"""Port interfaces for Discord voice operations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from guild_voice_bot.domain.shared.types import ChannelIdField, DiscordSnowflake

if TYPE_CHECKING:
    from ...domain.music.entities import TrackEntry


class VoiceConnectionHandle(ABC):
    """An active voice session in one guild.

    The handle never reports track end directly: the transport publishes a
    ``TrackEnded`` event onto the voice event channel instead.
    """

    @property
    @abstractmethod
    def guild_id(self) -> DiscordSnowflake:
        ...

    @property
    @abstractmethod
    def channel_id(self) -> ChannelIdField | None:
        """Voice channel the handle is attached to, or None once closed."""
        ...

    @property
    @abstractmethod
    def is_muted(self) -> bool:
        ...

    @abstractmethod
    def is_connected(self) -> bool:
        ...

    @abstractmethod
    def is_playing(self) -> bool:
        ...

    @abstractmethod
    async def play(self, entry: "TrackEntry") -> None:
        """Start streaming *entry*.

        Raises:
            PlaybackError: If the entry cannot be streamed.
        """
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Stop the current stream. No-op when nothing is playing."""
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """Leave the voice channel and release the connection."""
        ...

    @abstractmethod
    async def set_muted(self, muted: bool) -> None:
        """Toggle the bot's self-mute in the voice channel."""
        ...


class VoiceTransport(ABC):
    """Factory for voice connections."""

    @abstractmethod
    async def join(self, guild_id: DiscordSnowflake, channel_id: ChannelIdField) -> VoiceConnectionHandle:
        """Join a voice channel and return the live handle.

        Raises:
            ConnectionFailedError: If the connection could not be established.
        """
        ...
