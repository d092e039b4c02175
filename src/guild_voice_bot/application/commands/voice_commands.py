"""Voice commands parsed by the dispatch shell and the handler that runs them.

The handler is the recovery boundary: every domain error becomes a chat
reply and the guild keeps accepting commands.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, field_validator

from guild_voice_bot.application.services.playback_models import (
    LeaveStatus,
    MuteStatus,
    SkipStatus,
    StopStatus,
)
from guild_voice_bot.domain.music.entities import TrackEntry
from guild_voice_bot.domain.shared.exceptions import (
    ConnectionFailedError,
    DomainError,
    NotInVoiceChannelError,
    PlaybackError,
    QueueFullError,
    SourceResolutionError,
)
from guild_voice_bot.domain.shared.messages import DiscordUIMessages, LogTemplates
from guild_voice_bot.domain.shared.types import ChannelIdField, DiscordSnowflake, QueuePositionInt

if TYPE_CHECKING:
    from ..services.playback_service import PlaybackEngine

logger = logging.getLogger(__name__)


class CommandKind(Enum):
    JOIN = "join"
    LEAVE = "leave"
    PLAY = "play"
    SKIP = "skip"
    STOP = "stop"
    MUTE = "mute"
    UNMUTE = "unmute"


class VoiceCommand(BaseModel):
    """One parsed command invocation.

    ``channel_id`` is the invoking user's current voice channel, if any.
    ``argument`` carries the raw query for ``PLAY`` and is ignored otherwise.
    """

    model_config = ConfigDict(frozen=True, strict=True)

    guild_id: DiscordSnowflake
    user_id: DiscordSnowflake
    kind: CommandKind
    argument: str = ""
    channel_id: ChannelIdField | None = None
    text_channel_id: ChannelIdField | None = None

    @field_validator("argument", mode="before")
    @classmethod
    def _strip_argument(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip()
        return v


class ReplyStatus(Enum):
    SUCCESS = "success"
    INFO = "info"
    ERROR = "error"


class CommandReply(BaseModel):
    """User-facing outcome of a voice command."""

    model_config = ConfigDict(frozen=True)

    status: ReplyStatus
    message: str
    entry: TrackEntry | None = None
    position: QueuePositionInt | None = None

    @property
    def is_success(self) -> bool:
        return self.status is ReplyStatus.SUCCESS

    @classmethod
    def success(cls, message: str, **kwargs: object) -> CommandReply:
        return cls(status=ReplyStatus.SUCCESS, message=message, **kwargs)

    @classmethod
    def info(cls, message: str) -> CommandReply:
        return cls(status=ReplyStatus.INFO, message=message)

    @classmethod
    def error(cls, message: str) -> CommandReply:
        return cls(status=ReplyStatus.ERROR, message=message)


class VoiceCommandHandler:
    """Routes a ``VoiceCommand`` to the playback engine and formats the reply."""

    def __init__(self, *, engine: PlaybackEngine) -> None:
        self._engine = engine
        self._routes: dict[CommandKind, Callable[[VoiceCommand], Awaitable[CommandReply]]] = {
            CommandKind.JOIN: self._join,
            CommandKind.LEAVE: self._leave,
            CommandKind.PLAY: self._play,
            CommandKind.SKIP: self._skip,
            CommandKind.STOP: self._stop,
            CommandKind.MUTE: self._mute,
            CommandKind.UNMUTE: self._unmute,
        }

    async def handle(self, command: VoiceCommand) -> CommandReply:
        try:
            return await self._routes[command.kind](command)
        except NotInVoiceChannelError:
            return CommandReply.error(DiscordUIMessages.NOT_IN_VOICE_CHANNEL)
        except ConnectionFailedError as exc:
            return CommandReply.error(DiscordUIMessages.CONNECTION_FAILED.format(reason=exc.reason))
        except SourceResolutionError as exc:
            logger.info(LogTemplates.COMMAND_SOURCE_FAILED, command.guild_id, exc.message)
            return CommandReply.error(DiscordUIMessages.SOURCE_ERROR)
        except QueueFullError as exc:
            return CommandReply.error(DiscordUIMessages.QUEUE_FULL.format(max_size=exc.max_size))
        except PlaybackError as exc:
            return CommandReply.error(DiscordUIMessages.ERROR_OCCURRED.format(error=exc.message))
        except DomainError as exc:
            logger.warning(LogTemplates.COMMAND_DOMAIN_ERROR, command.guild_id, exc.message)
            return CommandReply.error(DiscordUIMessages.ERROR_OCCURRED.format(error=exc.message))

    async def _join(self, command: VoiceCommand) -> CommandReply:
        result = await self._engine.join(command.guild_id, command.user_id, command.channel_id)
        if result.already_connected:
            return CommandReply.info(DiscordUIMessages.ALREADY_CONNECTED.format(channel_id=result.channel_id))
        return CommandReply.success(DiscordUIMessages.JOINED_CHANNEL.format(channel_id=result.channel_id))

    async def _leave(self, command: VoiceCommand) -> CommandReply:
        result = await self._engine.leave(command.guild_id)
        if result.status is LeaveStatus.NOT_CONNECTED:
            return CommandReply.info(DiscordUIMessages.NOT_CONNECTED)
        return CommandReply.success(DiscordUIMessages.LEFT_CHANNEL)

    async def _play(self, command: VoiceCommand) -> CommandReply:
        if not command.argument:
            return CommandReply.error(DiscordUIMessages.MISSING_QUERY)

        result = await self._engine.enqueue(
            command.guild_id,
            command.user_id,
            command.channel_id,
            command.argument,
            text_channel_id=command.text_channel_id,
        )
        return CommandReply.success(
            DiscordUIMessages.ADDED_SONG.format(title=result.entry.title),
            entry=result.entry,
            position=result.position,
        )

    async def _skip(self, command: VoiceCommand) -> CommandReply:
        result = await self._engine.skip(command.guild_id)
        if result.status is SkipStatus.NOTHING_TO_SKIP:
            return CommandReply.info(DiscordUIMessages.NOTHING_TO_SKIP)
        return CommandReply.success(
            DiscordUIMessages.SKIPPED.format(remaining=result.remaining),
            entry=result.now_playing,
        )

    async def _stop(self, command: VoiceCommand) -> CommandReply:
        result = await self._engine.stop(command.guild_id)
        if result.status is StopStatus.NOTHING_TO_STOP:
            return CommandReply.info(DiscordUIMessages.NOTHING_TO_STOP)
        return CommandReply.success(DiscordUIMessages.QUEUE_CLEARED)

    async def _mute(self, command: VoiceCommand) -> CommandReply:
        result = await self._engine.mute(command.guild_id)
        return self._mute_reply(result.status)

    async def _unmute(self, command: VoiceCommand) -> CommandReply:
        result = await self._engine.unmute(command.guild_id)
        return self._mute_reply(result.status)

    @staticmethod
    def _mute_reply(status: MuteStatus) -> CommandReply:
        if status is MuteStatus.NOT_CONNECTED:
            return CommandReply.error(DiscordUIMessages.NOT_CONNECTED)
        if status is MuteStatus.ALREADY_MUTED:
            return CommandReply.info(DiscordUIMessages.ALREADY_MUTED)
        if status is MuteStatus.NOT_MUTED:
            return CommandReply.info(DiscordUIMessages.NOT_MUTED)
        if status is MuteStatus.MUTED:
            return CommandReply.success(DiscordUIMessages.MUTED)
        return CommandReply.success(DiscordUIMessages.UNMUTED)
