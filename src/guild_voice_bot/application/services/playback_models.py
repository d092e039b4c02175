"""DTOs returned by the playback engine."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

from ...domain.music.entities import TrackEntry
from ...domain.music.value_objects import VoiceSessionState
from ...domain.shared.types import ChannelIdField, NonNegativeInt, QueuePositionInt


class _Result(BaseModel):
    model_config = ConfigDict(frozen=True)


class EnqueueResult(_Result):
    entry: TrackEntry
    position: QueuePositionInt
    queue_length: NonNegativeInt

    @property
    def started_playing(self) -> bool:
        return self.position == 1


class JoinResult(_Result):
    channel_id: ChannelIdField | None
    already_connected: bool = False


class SkipStatus(Enum):
    SKIPPED = "skipped"
    NOTHING_TO_SKIP = "nothing_to_skip"


class SkipResult(_Result):
    status: SkipStatus
    skipped: TrackEntry | None = None
    now_playing: TrackEntry | None = None
    remaining: NonNegativeInt = 0


class StopStatus(Enum):
    STOPPED = "stopped"
    NOTHING_TO_STOP = "nothing_to_stop"


class StopResult(_Result):
    status: StopStatus
    cleared: NonNegativeInt = 0


class LeaveStatus(Enum):
    LEFT = "left"
    NOT_CONNECTED = "not_connected"


class LeaveResult(_Result):
    status: LeaveStatus
    cleared: NonNegativeInt = 0


class MuteStatus(Enum):
    MUTED = "muted"
    ALREADY_MUTED = "already_muted"
    UNMUTED = "unmuted"
    NOT_MUTED = "not_muted"
    NOT_CONNECTED = "not_connected"


class MuteResult(_Result):
    status: MuteStatus


class QueueSnapshot(_Result):
    state: VoiceSessionState
    now_playing: TrackEntry | None = None
    upcoming: list[TrackEntry] = []

    @property
    def total(self) -> int:
        return len(self.upcoming) + (1 if self.now_playing is not None else 0)
