"""Core domain entities for the music bounded context."""

from __future__ import annotations

from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from guild_voice_bot.domain.music.value_objects import QueuePosition, TrackIdField
from guild_voice_bot.domain.shared.datetime_utils import utcnow
from guild_voice_bot.domain.shared.exceptions import QueueFullError
from guild_voice_bot.domain.shared.types import (
    DiscordSnowflake,
    DurationSeconds,
    HttpUrlStr,
    MaxQueueSize,
    NonEmptyStr,
    TrackTitleStr,
    UtcDatetimeField,
)


class Track(BaseModel):
    """Immutable value object representing a playable track."""

    model_config = ConfigDict(frozen=True, strict=True)

    id: TrackIdField
    title: TrackTitleStr
    webpage_url: HttpUrlStr
    stream_url: HttpUrlStr | None = None
    duration_seconds: DurationSeconds | None = None
    thumbnail_url: HttpUrlStr | None = None

    # Track metadata (resolver-provided)
    artist: NonEmptyStr | None = None
    uploader: NonEmptyStr | None = None

    @property
    def display_artist(self) -> str:
        return self.artist or self.uploader or "Unknown"


class TrackEntry(BaseModel):
    """One queued track plus who asked for it.

    Entries never change once queued; marking one as now playing returns a copy.
    """

    model_config = ConfigDict(frozen=True, strict=True)

    entry_id: NonEmptyStr = Field(default_factory=lambda: uuid4().hex)
    track: Track
    requested_by_id: DiscordSnowflake
    text_channel_id: DiscordSnowflake | None = None
    requested_at: UtcDatetimeField = Field(default_factory=utcnow)
    now_playing: bool = False

    @property
    def title(self) -> str:
        return self.track.title

    def mark_now_playing(self) -> TrackEntry:
        return self.model_copy(update={"now_playing": True})


class TrackQueue(BaseModel):
    """Ordered FIFO of entries for one guild.

    The head entry is the one playing while its ``now_playing`` marker is set.
    Callers must hold the owning guild's lock for every mutation.
    """

    model_config = ConfigDict(strict=True)

    entries: list[TrackEntry] = Field(default_factory=list)
    max_size: MaxQueueSize = 100

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def is_empty(self) -> bool:
        return not self.entries

    @property
    def head(self) -> TrackEntry | None:
        return self.entries[0] if self.entries else None

    @property
    def now_playing(self) -> TrackEntry | None:
        head = self.head
        if head is not None and head.now_playing:
            return head
        return None

    @property
    def upcoming(self) -> list[TrackEntry]:
        """Entries waiting behind the one playing."""
        if self.now_playing is not None:
            return list(self.entries[1:])
        return list(self.entries)

    def append(self, entry: TrackEntry) -> QueuePosition:
        """Append an entry and return its one-based position."""
        if len(self.entries) >= self.max_size:
            raise QueueFullError(self.max_size)

        self.entries.append(entry)
        return QueuePosition(len(self.entries))

    def begin_playback(self) -> TrackEntry | None:
        """Mark the head entry as now playing and return it."""
        if not self.entries:
            return None

        head = self.entries[0].mark_now_playing()
        self.entries[0] = head
        return head

    def advance(self) -> TrackEntry | None:
        """Drop the head and promote the next entry to now playing."""
        if self.entries:
            self.entries.pop(0)
        return self.begin_playback()

    def clear(self) -> int:
        """Clear all entries and return the count removed."""
        count = len(self.entries)
        self.entries.clear()
        return count
