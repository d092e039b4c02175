"""Discord voice transport: joins channels and streams tracks through FFmpeg."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, cast

import discord

from guild_voice_bot.application.interfaces.voice_adapter import VoiceConnectionHandle, VoiceTransport
from guild_voice_bot.config.settings import AudioSettings, VoiceSettings
from guild_voice_bot.domain.shared.events import TrackEnded
from guild_voice_bot.domain.shared.exceptions import ConnectionFailedError, PlaybackError
from guild_voice_bot.domain.shared.messages import ErrorMessages, LogTemplates

if TYPE_CHECKING:
    from ....domain.music.entities import TrackEntry
    from ....domain.shared.events import VoiceEventChannel

logger = logging.getLogger(__name__)

VoiceChannelLike = discord.VoiceChannel | discord.StageChannel


class DiscordVoiceHandle(VoiceConnectionHandle):
    """Wraps one ``discord.VoiceClient``.

    The FFmpeg ``after`` callback runs on the audio player thread; it hands a
    ``TrackEnded`` event to the bot's loop with ``run_coroutine_threadsafe``.
    """

    def __init__(
        self,
        voice_client: discord.VoiceClient,
        *,
        events: VoiceEventChannel,
        loop: asyncio.AbstractEventLoop,
        settings: AudioSettings | None = None,
    ) -> None:
        self._vc = voice_client
        self._events = events
        self._loop = loop
        self._settings = settings or AudioSettings()
        self._guild_id = voice_client.guild.id
        self._muted = False

    @property
    def guild_id(self) -> int:
        return self._guild_id

    @property
    def channel_id(self) -> int | None:
        channel = self._vc.channel
        return channel.id if channel is not None else None

    @property
    def is_muted(self) -> bool:
        return self._muted

    def is_connected(self) -> bool:
        return self._vc.is_connected()

    def is_playing(self) -> bool:
        return self._vc.is_playing() or self._vc.is_paused()

    async def play(self, entry: TrackEntry) -> None:
        if not self._vc.is_connected():
            raise PlaybackError(entry.title, ErrorMessages.HANDLE_DISCONNECTED)

        stream_url = entry.track.stream_url
        if not stream_url:
            logger.error(LogTemplates.YTDLP_NO_STREAM_URL, entry.title)
            raise PlaybackError(entry.title, ErrorMessages.NO_STREAM_URL)

        if self._vc.is_playing() or self._vc.is_paused():
            self._vc.stop()

        try:
            source = discord.FFmpegPCMAudio(
                stream_url,
                before_options=self._settings.ffmpeg_options.get("before_options"),
                options=self._settings.ffmpeg_options.get("options"),
            )
            volume_source = discord.PCMVolumeTransformer(source, volume=self._settings.default_volume)
        except (discord.DiscordException, TypeError, ValueError) as exc:
            logger.error(LogTemplates.AUDIO_SOURCE_FAILED, entry.title, exc)
            raise PlaybackError(entry.title, str(exc) or type(exc).__name__) from exc

        guild_id = self._guild_id
        entry_id = entry.entry_id

        def after_callback(error: Exception | None = None) -> None:
            event = TrackEnded(guild_id=guild_id, entry_id=entry_id, error=str(error) if error else None)
            try:
                asyncio.run_coroutine_threadsafe(self._events.publish(event), self._loop)
            except RuntimeError as exc:
                # Loop already closed during shutdown
                logger.debug(LogTemplates.PLAYBACK_EVENT_PUBLISH_FAILED, guild_id, exc)

        try:
            self._vc.play(volume_source, after=after_callback)
        except (discord.DiscordException, TypeError, ValueError) as exc:
            volume_source.cleanup()
            logger.error(LogTemplates.VOICE_CLIENT_ERROR, exc)
            raise PlaybackError(entry.title, str(exc) or type(exc).__name__) from exc

    async def stop(self) -> None:
        if self._vc.is_playing() or self._vc.is_paused():
            self._vc.stop()
            logger.info(LogTemplates.PLAYBACK_STOPPED, self._guild_id)

    async def disconnect(self) -> None:
        await self._vc.disconnect(force=True)
        logger.info(LogTemplates.VOICE_DISCONNECTED, self._guild_id)

    async def set_muted(self, muted: bool) -> None:
        guild = self._vc.guild
        await guild.change_voice_state(channel=self._vc.channel, self_mute=muted, self_deaf=True)
        self._muted = muted
        logger.info(LogTemplates.VOICE_MUTE_CHANGED, muted, self._guild_id)


class DiscordVoiceTransport(VoiceTransport):
    """Creates ``DiscordVoiceHandle`` instances from guild voice channels."""

    def __init__(
        self,
        bot: discord.Client,
        events: VoiceEventChannel,
        *,
        audio_settings: AudioSettings | None = None,
        voice_settings: VoiceSettings | None = None,
    ) -> None:
        self._bot = bot
        self._events = events
        self._audio_settings = audio_settings or AudioSettings()
        self._voice_settings = voice_settings or VoiceSettings()

    async def join(self, guild_id: int, channel_id: int) -> DiscordVoiceHandle:
        guild = self._bot.get_guild(guild_id)
        if guild is None:
            logger.warning(LogTemplates.GUILD_NOT_FOUND, guild_id)
            raise ConnectionFailedError(ErrorMessages.GUILD_UNAVAILABLE.format(guild_id=guild_id), guild_id)

        channel = guild.get_channel(channel_id)
        if not isinstance(channel, VoiceChannelLike):
            logger.warning(LogTemplates.CHANNEL_NOT_VOICE, channel_id)
            raise ConnectionFailedError(
                ErrorMessages.NOT_A_VOICE_CHANNEL.format(channel_id=channel_id), guild_id
            )

        stale = guild.voice_client
        if stale is not None:
            # Nothing in the registry owns this client any more.
            logger.warning(LogTemplates.VOICE_STALE_CLEANUP, guild_id)
            await stale.disconnect(force=True)

        timeout = self._voice_settings.connect_timeout_s
        try:
            async with asyncio.timeout(timeout):
                voice_client = await channel.connect(self_deaf=True, timeout=timeout)
        except TimeoutError as exc:
            logger.error(LogTemplates.VOICE_CONNECTION_TIMEOUT, channel_id)
            raise ConnectionFailedError(ErrorMessages.CONNECT_TIMEOUT, guild_id) from exc
        except discord.Forbidden as exc:
            logger.error(LogTemplates.VOICE_NO_PERMISSION, channel_id)
            raise ConnectionFailedError(ErrorMessages.CONNECT_FORBIDDEN, guild_id) from exc
        except discord.ClientException as exc:
            logger.error(LogTemplates.VOICE_CLIENT_ERROR, exc)
            raise ConnectionFailedError(str(exc), guild_id) from exc

        await self._ensure_self_deaf(guild, channel)
        logger.info(LogTemplates.VOICE_CONNECTED, channel.name, guild.name)
        return DiscordVoiceHandle(
            cast(discord.VoiceClient, voice_client),
            events=self._events,
            loop=asyncio.get_running_loop(),
            settings=self._audio_settings,
        )

    async def _ensure_self_deaf(self, guild: discord.Guild, channel: VoiceChannelLike) -> None:
        try:
            await guild.change_voice_state(channel=channel, self_deaf=True)
        except discord.DiscordException as exc:
            logger.debug(LogTemplates.VOICE_SELF_DEAFEN_FAILED, guild.id, exc)
