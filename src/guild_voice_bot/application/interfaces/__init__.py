"""Port interfaces implemented by the infrastructure layer."""

from guild_voice_bot.application.interfaces.audio_resolver import AudioResolver
from guild_voice_bot.application.interfaces.announcer import TrackAnnouncer
from guild_voice_bot.application.interfaces.voice_adapter import (
    VoiceConnectionHandle,
    VoiceTransport,
)

__all__ = [
    "AudioResolver",
    "TrackAnnouncer",
    "VoiceConnectionHandle",
    "VoiceTransport",
]
