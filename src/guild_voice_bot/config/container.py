"""Dependency Injection Container

Builds the voice session core and its Discord adapters on first access and
owns their lifecycle. The registry is constructed here once and handed to
every consumer; nothing reaches it through a module global.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..domain.shared.messages import ErrorMessages

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from discord.ext.commands import Bot

    from ..application.commands.voice_commands import VoiceCommandHandler
    from ..application.interfaces.announcer import TrackAnnouncer
    from ..application.interfaces.audio_resolver import AudioResolver
    from ..application.interfaces.voice_adapter import VoiceTransport
    from ..application.services.command_counter import CommandCounter
    from ..application.services.guild_registry import GuildVoiceRegistry
    from ..application.services.playback_service import PlaybackEngine
    from ..application.services.voice_session import VoiceSessionResolver
    from ..domain.shared.events import VoiceEventChannel
    from .settings import Settings


@dataclass
class Container:
    """Dependency injection container.

    Components are lazily initialized when first accessed.
    """

    settings: Settings
    _bot: Bot | None = None

    # Voice session core
    _registry: GuildVoiceRegistry | None = None
    _voice_events: VoiceEventChannel | None = None
    _session_resolver: VoiceSessionResolver | None = None
    _playback_engine: PlaybackEngine | None = None

    # Infrastructure adapters
    _voice_transport: VoiceTransport | None = None
    _audio_resolver: AudioResolver | None = None
    _announcer: TrackAnnouncer | None = None

    # Dispatch
    _command_handler: VoiceCommandHandler | None = None
    _command_counter: CommandCounter | None = None

    def set_bot(self, bot: Bot) -> None:
        self._bot = bot

    @property
    def bot(self) -> Bot:
        if self._bot is None:
            raise RuntimeError(ErrorMessages.BOT_NOT_INITIALIZED)
        return self._bot

    # === Voice Session Core ===

    @property
    def registry(self) -> GuildVoiceRegistry:
        if self._registry is None:
            from ..application.services.guild_registry import GuildVoiceRegistry

            self._registry = GuildVoiceRegistry(max_queue_size=self.settings.audio.max_queue_size)
        return self._registry

    @property
    def voice_events(self) -> VoiceEventChannel:
        if self._voice_events is None:
            from ..domain.shared.events import VoiceEventChannel

            self._voice_events = VoiceEventChannel()
        return self._voice_events

    @property
    def session_resolver(self) -> VoiceSessionResolver:
        if self._session_resolver is None:
            from ..application.services.voice_session import VoiceSessionResolver

            self._session_resolver = VoiceSessionResolver(
                registry=self.registry,
                transport=self.voice_transport,
            )
        return self._session_resolver

    @property
    def playback_engine(self) -> PlaybackEngine:
        if self._playback_engine is None:
            from ..application.services.playback_service import PlaybackEngine

            self._playback_engine = PlaybackEngine(
                registry=self.registry,
                sessions=self.session_resolver,
                resolver=self.audio_resolver,
                events=self.voice_events,
                announcer=self.announcer,
            )
        return self._playback_engine

    # === Infrastructure Adapters ===

    @property
    def voice_transport(self) -> VoiceTransport:
        if self._voice_transport is None:
            from ..infrastructure.discord.adapters.voice_adapter import DiscordVoiceTransport

            self._voice_transport = DiscordVoiceTransport(
                self.bot,
                self.voice_events,
                audio_settings=self.settings.audio,
                voice_settings=self.settings.voice,
            )
        return self._voice_transport

    @property
    def audio_resolver(self) -> AudioResolver:
        if self._audio_resolver is None:
            from ..infrastructure.audio.ytdlp_resolver import YtDlpResolver

            self._audio_resolver = YtDlpResolver(self.settings.audio)
        return self._audio_resolver

    @property
    def announcer(self) -> TrackAnnouncer:
        if self._announcer is None:
            from ..infrastructure.discord.adapters.announcer import DiscordTrackAnnouncer

            self._announcer = DiscordTrackAnnouncer(self.bot)
        return self._announcer

    # === Dispatch ===

    @property
    def command_handler(self) -> VoiceCommandHandler:
        if self._command_handler is None:
            from ..application.commands.voice_commands import VoiceCommandHandler

            self._command_handler = VoiceCommandHandler(engine=self.playback_engine)
        return self._command_handler

    @property
    def command_counter(self) -> CommandCounter:
        if self._command_counter is None:
            from ..application.services.command_counter import CommandCounter

            self._command_counter = CommandCounter()
        return self._command_counter

    # === Lifecycle ===

    async def initialize(self) -> None:
        """Start the track-end event consumer."""
        self.playback_engine.start()

    async def shutdown(self) -> None:
        """Release every voice handle held by the engine."""
        if self._playback_engine is not None:
            await self._playback_engine.shutdown()


def create_container(settings: Settings) -> Container:
    return Container(settings)
