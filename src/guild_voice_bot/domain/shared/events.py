"""Voice events and the channel that carries them into the playback engine."""

from __future__ import annotations

import asyncio
import logging
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from guild_voice_bot.domain.shared.datetime_utils import utcnow
from guild_voice_bot.domain.shared.messages import LogTemplates
from guild_voice_bot.domain.shared.types import DiscordSnowflake, NonEmptyStr, UtcDatetimeField

logger = logging.getLogger(__name__)


class VoiceEvent(BaseModel):
    """Base class for all events published by the voice transport."""

    model_config = ConfigDict(frozen=True)

    event_id: NonEmptyStr = Field(default_factory=lambda: str(uuid4()))
    occurred_at: UtcDatetimeField = Field(default_factory=utcnow)
    guild_id: DiscordSnowflake


class TrackEnded(VoiceEvent):
    """A stream finished, either naturally, by error, or because it was stopped.

    ``entry_id`` identifies the queue entry the stream belonged to so the
    engine can tell a natural end from the echo of a skip or stop.
    """

    entry_id: NonEmptyStr
    error: str | None = None


class VoiceDisconnected(VoiceEvent):
    """The bot's voice connection in a guild went away without a leave command."""


class VoiceEventChannel:
    """Unbounded FIFO of voice events.

    Publishers never block; the playback engine is the single consumer.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[VoiceEvent] = asyncio.Queue()

    def __len__(self) -> int:
        return self._queue.qsize()

    async def publish(self, event: VoiceEvent) -> None:
        self.publish_nowait(event)

    def publish_nowait(self, event: VoiceEvent) -> None:
        self._queue.put_nowait(event)
        logger.debug(LogTemplates.EVENT_PUBLISHED, type(event).__name__, event.guild_id)

    async def get(self) -> VoiceEvent:
        return await self._queue.get()

    def task_done(self) -> None:
        self._queue.task_done()

    async def join(self) -> None:
        """Wait until every published event has been processed."""
        await self._queue.join()
