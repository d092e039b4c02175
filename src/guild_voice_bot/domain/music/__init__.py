"""Music bounded context - tracks, queue entries, and per-guild queues."""

from guild_voice_bot.domain.music.entities import Track, TrackEntry, TrackQueue
from guild_voice_bot.domain.music.value_objects import QueuePosition, TrackId, VoiceSessionState

__all__ = [
    "QueuePosition",
    "Track",
    "TrackEntry",
    "TrackId",
    "TrackQueue",
    "VoiceSessionState",
]
