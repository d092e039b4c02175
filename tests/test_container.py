"""
Unit Tests for Dependency Injection Container

Tests for:
- Lazy initialization and caching of every component
- Bot instance management (set_bot, bot property, error when not set)
- Shared registry and event channel across consumers
- Lifecycle methods (initialize, shutdown)
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from guild_voice_bot.application.commands.voice_commands import VoiceCommandHandler
from guild_voice_bot.application.services.command_counter import CommandCounter
from guild_voice_bot.application.services.guild_registry import GuildVoiceRegistry
from guild_voice_bot.application.services.playback_service import PlaybackEngine
from guild_voice_bot.application.services.voice_session import VoiceSessionResolver
from guild_voice_bot.config.container import Container, create_container
from guild_voice_bot.config.settings import Settings
from guild_voice_bot.domain.shared.events import VoiceEventChannel
from guild_voice_bot.infrastructure.audio.ytdlp_resolver import YtDlpResolver
from guild_voice_bot.infrastructure.discord.adapters.announcer import DiscordTrackAnnouncer
from guild_voice_bot.infrastructure.discord.adapters.voice_adapter import DiscordVoiceTransport


@pytest.fixture
def settings():
    return Settings(_env_file=None)


@pytest.fixture
def container(settings):
    return create_container(settings)


@pytest.fixture
def bot_container(container):
    container.set_bot(MagicMock())
    return container


class TestBot:
    def test_bot_not_set_raises(self, container):
        with pytest.raises(RuntimeError):
            _ = container.bot

    def test_set_bot(self, container):
        bot = MagicMock()
        container.set_bot(bot)
        assert container.bot is bot

    def test_adapters_need_bot(self, container):
        with pytest.raises(RuntimeError):
            _ = container.voice_transport


class TestLazyComponents:
    def test_create_container(self, settings):
        container = create_container(settings)
        assert isinstance(container, Container)
        assert container.settings is settings

    def test_registry_uses_queue_limit(self, container, settings):
        registry = container.registry
        assert isinstance(registry, GuildVoiceRegistry)
        assert registry._max_queue_size == settings.audio.max_queue_size

    @pytest.mark.parametrize(
        ("attr", "expected_type"),
        [
            ("registry", GuildVoiceRegistry),
            ("voice_events", VoiceEventChannel),
            ("audio_resolver", YtDlpResolver),
            ("command_counter", CommandCounter),
            ("voice_transport", DiscordVoiceTransport),
            ("announcer", DiscordTrackAnnouncer),
            ("session_resolver", VoiceSessionResolver),
            ("playback_engine", PlaybackEngine),
            ("command_handler", VoiceCommandHandler),
        ],
    )
    def test_component_type_and_caching(self, bot_container, attr, expected_type):
        first = getattr(bot_container, attr)
        assert isinstance(first, expected_type)
        assert getattr(bot_container, attr) is first

    def test_engine_shares_registry(self, bot_container):
        assert bot_container.playback_engine._registry is bot_container.registry


class TestLifecycle:
    async def test_initialize_starts_engine(self, bot_container):
        await bot_container.initialize()
        try:
            assert bot_container.playback_engine.is_running
        finally:
            await bot_container.shutdown()

        assert not bot_container.playback_engine.is_running

    async def test_shutdown_without_engine_is_noop(self, container):
        await container.shutdown()
        assert container._playback_engine is None

    async def test_shutdown_delegates_to_engine(self, container):
        engine = MagicMock()
        engine.shutdown = AsyncMock()
        container._playback_engine = engine

        await container.shutdown()

        engine.shutdown.assert_awaited_once()
