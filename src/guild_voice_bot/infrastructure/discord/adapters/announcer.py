"""Posts playback progress into the text channel a track was requested from."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord

from guild_voice_bot.application.interfaces.announcer import TrackAnnouncer
from guild_voice_bot.domain.shared.messages import DiscordUIMessages

if TYPE_CHECKING:
    from ....domain.music.entities import TrackEntry

logger = logging.getLogger(__name__)


class DiscordTrackAnnouncer(TrackAnnouncer):

    def __init__(self, bot: discord.Client) -> None:
        self._bot = bot

    async def track_started(self, entry: TrackEntry) -> None:
        await self._send(entry.text_channel_id, DiscordUIMessages.NOW_PLAYING.format(title=entry.title))

    async def queue_finished(self, guild_id: int, text_channel_id: int | None) -> None:
        await self._send(text_channel_id, DiscordUIMessages.QUEUE_FINISHED)

    async def _send(self, channel_id: int | None, content: str) -> None:
        if channel_id is None:
            return
        channel = self._bot.get_channel(channel_id)
        if not isinstance(channel, discord.abc.Messageable):
            logger.debug("Text channel %s not found for announcement", channel_id)
            return
        await channel.send(content)
