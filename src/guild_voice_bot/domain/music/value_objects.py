"""Immutable value objects for the music bounded context."""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass
from enum import Enum
from typing import Annotated

from pydantic import PlainSerializer, PlainValidator

from guild_voice_bot.domain.shared.messages import ErrorMessages

_YOUTUBE_ID_PATTERNS = (
    re.compile(r"(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/embed/)([a-zA-Z0-9_-]{11})"),
    re.compile(r"youtube\.com/shorts/([a-zA-Z0-9_-]{11})"),
)


@dataclass(frozen=True)
class TrackId:
    """Typically a YouTube video ID or a hash of the URL."""

    value: str

    def __post_init__(self) -> None:
        if not self.value or not self.value.strip():
            raise ValueError(ErrorMessages.EMPTY_TRACK_ID)

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_url(cls, url: str) -> TrackId:
        """Extract track ID from a URL, using the YouTube video ID or a URL hash as fallback."""
        for pattern in _YOUTUBE_ID_PATTERNS:
            match = pattern.search(url)
            if match:
                return cls(match.group(1))

        return cls(hashlib.md5(url.encode()).hexdigest()[:16])


# Serializes as plain string, stores as TrackId in the model.
TrackIdField = Annotated[
    TrackId,
    PlainValidator(lambda v: TrackId(v) if isinstance(v, str) else v),
    PlainSerializer(lambda v: v.value, return_type=str),
]


@dataclass(frozen=True)
class QueuePosition:
    """One-based position of an entry in a guild's queue.

    Position 1 is the entry that is playing right now.
    """

    value: int

    def __post_init__(self) -> None:
        if self.value < 1:
            raise ValueError(ErrorMessages.INVALID_QUEUE_POSITION)

    def __str__(self) -> str:
        return str(self.value)

    def __int__(self) -> int:
        return self.value

    @property
    def is_now_playing(self) -> bool:
        return self.value == 1


class VoiceSessionState(Enum):
    """Voice session state of one guild with enforced transitions.

    State transitions:
    - DISCONNECTED -> CONNECTING (ensure_connected starts a join)
    - CONNECTING -> IDLE (join succeeded)
    - CONNECTING -> DISCONNECTED (join failed)
    - IDLE -> PLAYING (a track starts)
    - PLAYING -> PLAYING (auto-advance or skip onto a queued track)
    - PLAYING -> IDLE (queue exhausted, skip of last track, stop)
    - IDLE/PLAYING -> DISCONNECTED (leave, kick, shutdown)
    """

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    IDLE = "idle"
    PLAYING = "playing"

    def can_transition_to(self, target: VoiceSessionState) -> bool:
        """Check if transition to target state is valid."""
        valid_transitions = {
            VoiceSessionState.DISCONNECTED: {VoiceSessionState.CONNECTING},
            VoiceSessionState.CONNECTING: {
                VoiceSessionState.IDLE,
                VoiceSessionState.DISCONNECTED,
            },
            VoiceSessionState.IDLE: {
                VoiceSessionState.PLAYING,
                VoiceSessionState.DISCONNECTED,
            },
            VoiceSessionState.PLAYING: {
                VoiceSessionState.PLAYING,
                VoiceSessionState.IDLE,
                VoiceSessionState.DISCONNECTED,
            },
        }
        return target in valid_transitions.get(self, set())

    @property
    def is_connected(self) -> bool:
        return self in {VoiceSessionState.IDLE, VoiceSessionState.PLAYING}

    @property
    def is_playing(self) -> bool:
        return self == VoiceSessionState.PLAYING
