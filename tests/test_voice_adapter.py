"""
Unit Tests for the Discord voice adapter

- DiscordVoiceTransport.join: guild/channel lookup, timeouts, permissions,
  stale voice clients and self-deafen
- DiscordVoiceHandle: play, stop, disconnect, mute and the track-end callback
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import discord
import pytest

from conftest import GUILD_ID, VOICE_CHANNEL_ID, make_entry
from guild_voice_bot.config.settings import AudioSettings, VoiceSettings
from guild_voice_bot.domain.shared.events import TrackEnded, VoiceEventChannel
from guild_voice_bot.domain.shared.exceptions import ConnectionFailedError, PlaybackError
from guild_voice_bot.infrastructure.discord.adapters.voice_adapter import (
    DiscordVoiceHandle,
    DiscordVoiceTransport,
)


@pytest.fixture
def voice_client():
    vc = MagicMock()
    vc.guild.id = GUILD_ID
    vc.guild.change_voice_state = AsyncMock()
    vc.channel.id = VOICE_CHANNEL_ID
    vc.is_connected.return_value = True
    vc.is_playing.return_value = False
    vc.is_paused.return_value = False
    vc.disconnect = AsyncMock()
    return vc


@pytest.fixture
def voice_channel(voice_client):
    channel = MagicMock(spec=discord.VoiceChannel)
    channel.id = VOICE_CHANNEL_ID
    channel.name = "General"
    channel.connect = AsyncMock(return_value=voice_client)
    return channel


@pytest.fixture
def guild(voice_channel):
    guild = MagicMock()
    guild.id = GUILD_ID
    guild.name = "Test Guild"
    guild.voice_client = None
    guild.get_channel.return_value = voice_channel
    guild.change_voice_state = AsyncMock()
    return guild


@pytest.fixture
def bot(guild):
    bot = MagicMock()
    bot.get_guild.return_value = guild
    return bot


@pytest.fixture
def voice_transport(bot, voice_events):
    return DiscordVoiceTransport(
        bot,
        voice_events,
        audio_settings=AudioSettings(),
        voice_settings=VoiceSettings(connect_timeout_s=1.0),
    )


# =============================================================================
# Transport
# =============================================================================


class TestJoin:
    async def test_join_returns_handle(self, voice_transport, voice_channel, guild):
        handle = await voice_transport.join(GUILD_ID, VOICE_CHANNEL_ID)

        assert isinstance(handle, DiscordVoiceHandle)
        assert handle.guild_id == GUILD_ID
        assert handle.channel_id == VOICE_CHANNEL_ID
        voice_channel.connect.assert_awaited_once_with(self_deaf=True, timeout=1.0)
        guild.change_voice_state.assert_awaited_once_with(channel=voice_channel, self_deaf=True)

    async def test_unknown_guild(self, voice_transport, bot):
        bot.get_guild.return_value = None

        with pytest.raises(ConnectionFailedError):
            await voice_transport.join(GUILD_ID, VOICE_CHANNEL_ID)

    async def test_channel_is_not_voice(self, voice_transport, guild):
        guild.get_channel.return_value = MagicMock(spec=discord.TextChannel)

        with pytest.raises(ConnectionFailedError):
            await voice_transport.join(GUILD_ID, VOICE_CHANNEL_ID)

    async def test_timeout(self, voice_transport, voice_channel):
        voice_channel.connect.side_effect = TimeoutError()

        with pytest.raises(ConnectionFailedError) as exc_info:
            await voice_transport.join(GUILD_ID, VOICE_CHANNEL_ID)

        assert "timed out" in exc_info.value.reason.lower()

    async def test_forbidden(self, voice_transport, voice_channel):
        voice_channel.connect.side_effect = discord.Forbidden(MagicMock(status=403), "Missing Access")

        with pytest.raises(ConnectionFailedError):
            await voice_transport.join(GUILD_ID, VOICE_CHANNEL_ID)

    async def test_client_exception(self, voice_transport, voice_channel):
        voice_channel.connect.side_effect = discord.ClientException("Already connected to a voice channel.")

        with pytest.raises(ConnectionFailedError) as exc_info:
            await voice_transport.join(GUILD_ID, VOICE_CHANNEL_ID)

        assert exc_info.value.reason == "Already connected to a voice channel."

    async def test_stale_voice_client_is_disconnected(self, voice_transport, guild):
        stale = MagicMock()
        stale.disconnect = AsyncMock()
        guild.voice_client = stale

        await voice_transport.join(GUILD_ID, VOICE_CHANNEL_ID)

        stale.disconnect.assert_awaited_once_with(force=True)

    async def test_self_deafen_failure_is_tolerated(self, voice_transport, guild):
        guild.change_voice_state.side_effect = discord.DiscordException("nope")

        handle = await voice_transport.join(GUILD_ID, VOICE_CHANNEL_ID)

        assert handle.is_connected()


# =============================================================================
# Handle
# =============================================================================


class TestHandlePlay:
    async def test_play_streams_entry(self, voice_client, voice_events):
        handle = DiscordVoiceHandle(voice_client, events=voice_events, loop=asyncio.get_running_loop())
        entry = make_entry("track1")

        with patch("discord.FFmpegPCMAudio") as ffmpeg, patch("discord.PCMVolumeTransformer") as volume:
            await handle.play(entry)

        ffmpeg.assert_called_once()
        assert ffmpeg.call_args.args[0] == entry.track.stream_url
        volume.assert_called_once_with(ffmpeg.return_value, volume=0.5)
        voice_client.play.assert_called_once()

    async def test_after_callback_publishes_track_ended(self, voice_client):
        events = VoiceEventChannel()
        handle = DiscordVoiceHandle(voice_client, events=events, loop=asyncio.get_running_loop())
        entry = make_entry("track1")

        with patch("discord.FFmpegPCMAudio"), patch("discord.PCMVolumeTransformer"):
            await handle.play(entry)

        after = voice_client.play.call_args.kwargs["after"]
        after(RuntimeError("stream reset"))
        event = await asyncio.wait_for(events.get(), timeout=1)

        assert isinstance(event, TrackEnded)
        assert event.guild_id == GUILD_ID
        assert event.entry_id == entry.entry_id
        assert event.error == "stream reset"

    async def test_play_when_disconnected(self, voice_client, voice_events):
        voice_client.is_connected.return_value = False
        handle = DiscordVoiceHandle(voice_client, events=voice_events, loop=asyncio.get_running_loop())

        with pytest.raises(PlaybackError):
            await handle.play(make_entry())

    async def test_play_without_stream_url(self, voice_client, voice_events):
        handle = DiscordVoiceHandle(voice_client, events=voice_events, loop=asyncio.get_running_loop())
        entry = make_entry()
        entry = entry.model_copy(update={"track": entry.track.model_copy(update={"stream_url": None})})

        with pytest.raises(PlaybackError):
            await handle.play(entry)
        voice_client.play.assert_not_called()

    async def test_play_client_exception(self, voice_client, voice_events):
        voice_client.play.side_effect = discord.ClientException("Not connected to voice.")
        handle = DiscordVoiceHandle(voice_client, events=voice_events, loop=asyncio.get_running_loop())

        with patch("discord.FFmpegPCMAudio"), patch("discord.PCMVolumeTransformer") as volume:
            with pytest.raises(PlaybackError):
                await handle.play(make_entry())

        volume.return_value.cleanup.assert_called_once()

    @pytest.mark.parametrize(
        "error",
        [discord.opus.OpusNotLoaded(), TypeError("source must be an AudioSource"), ValueError("bad encoder")],
    )
    async def test_play_other_voice_errors_become_playback_error(self, voice_client, voice_events, error):
        voice_client.play.side_effect = error
        handle = DiscordVoiceHandle(voice_client, events=voice_events, loop=asyncio.get_running_loop())

        with patch("discord.FFmpegPCMAudio"), patch("discord.PCMVolumeTransformer") as volume:
            with pytest.raises(PlaybackError) as exc_info:
                await handle.play(make_entry("track1"))

        assert exc_info.value.__cause__ is error
        assert exc_info.value.reason
        volume.return_value.cleanup.assert_called_once()

    async def test_audio_source_failure_becomes_playback_error(self, voice_client, voice_events):
        handle = DiscordVoiceHandle(voice_client, events=voice_events, loop=asyncio.get_running_loop())

        with patch("discord.FFmpegPCMAudio"), patch("discord.PCMVolumeTransformer") as volume:
            volume.side_effect = discord.ClientException("AudioSource must not be Opus encoded.")
            with pytest.raises(PlaybackError):
                await handle.play(make_entry())

        voice_client.play.assert_not_called()

    async def test_play_stops_current_stream_first(self, voice_client, voice_events):
        voice_client.is_playing.return_value = True
        handle = DiscordVoiceHandle(voice_client, events=voice_events, loop=asyncio.get_running_loop())

        with patch("discord.FFmpegPCMAudio"), patch("discord.PCMVolumeTransformer"):
            await handle.play(make_entry())

        voice_client.stop.assert_called_once()


class TestHandleControls:
    async def test_stop_only_when_playing(self, voice_client, voice_events):
        handle = DiscordVoiceHandle(voice_client, events=voice_events, loop=asyncio.get_running_loop())

        await handle.stop()
        voice_client.stop.assert_not_called()

        voice_client.is_playing.return_value = True
        await handle.stop()
        voice_client.stop.assert_called_once()

    async def test_disconnect(self, voice_client, voice_events):
        handle = DiscordVoiceHandle(voice_client, events=voice_events, loop=asyncio.get_running_loop())

        await handle.disconnect()

        voice_client.disconnect.assert_awaited_once_with(force=True)

    async def test_set_muted_keeps_deafened(self, voice_client, voice_events):
        handle = DiscordVoiceHandle(voice_client, events=voice_events, loop=asyncio.get_running_loop())

        await handle.set_muted(True)

        voice_client.guild.change_voice_state.assert_awaited_once_with(
            channel=voice_client.channel, self_mute=True, self_deaf=True
        )
        assert handle.is_muted

    async def test_is_playing_includes_paused(self, voice_client, voice_events):
        handle = DiscordVoiceHandle(voice_client, events=voice_events, loop=asyncio.get_running_loop())
        voice_client.is_paused.return_value = True
        assert handle.is_playing()
