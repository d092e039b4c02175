import asyncio

import pytest

from guild_voice_bot.application.interfaces.announcer import TrackAnnouncer
from guild_voice_bot.application.interfaces.audio_resolver import AudioResolver
from guild_voice_bot.application.interfaces.voice_adapter import VoiceConnectionHandle, VoiceTransport
from guild_voice_bot.application.services.guild_registry import GuildVoiceRegistry
from guild_voice_bot.application.services.playback_service import PlaybackEngine
from guild_voice_bot.application.services.voice_session import VoiceSessionResolver
from guild_voice_bot.domain.music.entities import Track, TrackEntry
from guild_voice_bot.domain.music.value_objects import TrackId
from guild_voice_bot.domain.shared.events import TrackEnded, VoiceEventChannel
from guild_voice_bot.domain.shared.exceptions import (
    ConnectionFailedError,
    PlaybackError,
    SourceResolutionError,
)

GUILD_ID = 111111111111111111
OTHER_GUILD_ID = 222222222222222222
USER_ID = 333333333333333333
VOICE_CHANNEL_ID = 444444444444444444
TEXT_CHANNEL_ID = 555555555555555555


def make_track(title: str = "Test Track") -> Track:
    slug = title.lower().replace(" ", "-")
    return Track(
        id=TrackId(slug),
        title=title,
        webpage_url=f"https://example.com/watch/{slug}",
        stream_url=f"https://stream.example.com/{slug}.m4a",
        duration_seconds=180,
        thumbnail_url=f"https://example.com/thumb/{slug}.jpg",
        artist="Test Artist",
        uploader="Test Uploader",
    )


def make_entry(title: str = "Test Track", *, user_id: int = USER_ID) -> TrackEntry:
    return TrackEntry(track=make_track(title), requested_by_id=user_id, text_channel_id=TEXT_CHANNEL_ID)


# ============================================================================
# In-memory voice transport
# ============================================================================


class FakeVoiceHandle(VoiceConnectionHandle):
    """Voice handle that records calls and publishes ``TrackEnded`` like the real player.

    Stopping a playing entry publishes its ``TrackEnded`` event, the same way
    the FFmpeg ``after`` callback does when a stream is stopped.
    """

    def __init__(self, guild_id: int, channel_id: int, events: VoiceEventChannel) -> None:
        self._guild_id = guild_id
        self._channel_id = channel_id
        self._events = events
        self.connected = True
        self.muted = False
        self.current: TrackEntry | None = None
        self.played: list[str] = []
        self.fail_titles: set[str] = set()
        self.crash_titles: set[str] = set()
        self.stop_error: Exception | None = None
        self.stop_calls = 0
        self.disconnect_calls = 0

    @property
    def guild_id(self) -> int:
        return self._guild_id

    @property
    def channel_id(self) -> int | None:
        return self._channel_id

    @property
    def is_muted(self) -> bool:
        return self.muted

    def is_connected(self) -> bool:
        return self.connected

    def is_playing(self) -> bool:
        return self.current is not None

    async def play(self, entry: TrackEntry) -> None:
        if entry.title in self.fail_titles:
            raise PlaybackError(entry.title, "cannot start stream")
        if entry.title in self.crash_titles:
            raise RuntimeError("encoder crashed")
        self.current = entry
        self.played.append(entry.title)

    async def stop(self) -> None:
        self.stop_calls += 1
        if self.stop_error is not None:
            raise self.stop_error
        if self.current is not None:
            ended = self.current
            self.current = None
            await self._events.publish(TrackEnded(guild_id=self._guild_id, entry_id=ended.entry_id))

    async def disconnect(self) -> None:
        self.disconnect_calls += 1
        self.connected = False
        self.current = None

    async def set_muted(self, muted: bool) -> None:
        self.muted = muted

    async def finish(self, error: str | None = None) -> None:
        """Simulate the current stream reaching its natural end."""
        assert self.current is not None
        ended = self.current
        self.current = None
        await self._events.publish(
            TrackEnded(guild_id=self._guild_id, entry_id=ended.entry_id, error=error)
        )


class FakeVoiceTransport(VoiceTransport):
    def __init__(self, events: VoiceEventChannel) -> None:
        self._events = events
        self.join_calls: list[tuple[int, int]] = []
        self.handles: dict[int, FakeVoiceHandle] = {}
        self.join_delay = 0.0
        self.fail_with: Exception | None = None

    async def join(self, guild_id: int, channel_id: int) -> FakeVoiceHandle:
        self.join_calls.append((guild_id, channel_id))
        if self.join_delay:
            await asyncio.sleep(self.join_delay)
        if self.fail_with is not None:
            raise self.fail_with
        handle = FakeVoiceHandle(guild_id, channel_id, self._events)
        self.handles[guild_id] = handle
        return handle


class FakeAudioResolver(AudioResolver):
    def __init__(self) -> None:
        self.queries: list[str] = []
        self.unresolvable: set[str] = set()
        self.delay = 0.0

    async def resolve(self, query: str) -> Track:
        self.queries.append(query)
        if self.delay:
            await asyncio.sleep(self.delay)
        if query in self.unresolvable:
            raise SourceResolutionError(query, "Nothing found")
        return make_track(query)

    def is_url(self, query: str) -> bool:
        return query.startswith(("http://", "https://"))


class RecordingAnnouncer(TrackAnnouncer):
    def __init__(self) -> None:
        self.started: list[str] = []
        self.finished: list[int] = []

    async def track_started(self, entry: TrackEntry) -> None:
        self.started.append(entry.title)

    async def queue_finished(self, guild_id: int, text_channel_id: int | None) -> None:
        self.finished.append(guild_id)


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def voice_events():
    return VoiceEventChannel()


@pytest.fixture
def registry():
    return GuildVoiceRegistry(max_queue_size=100)


@pytest.fixture
def transport(voice_events):
    return FakeVoiceTransport(voice_events)


@pytest.fixture
def audio_resolver():
    return FakeAudioResolver()


@pytest.fixture
def announcer():
    return RecordingAnnouncer()


@pytest.fixture
def sessions(registry, transport):
    return VoiceSessionResolver(registry=registry, transport=transport)


@pytest.fixture
async def engine(registry, sessions, audio_resolver, voice_events, announcer):
    engine = PlaybackEngine(
        registry=registry,
        sessions=sessions,
        resolver=audio_resolver,
        events=voice_events,
        announcer=announcer,
    )
    engine.start()
    yield engine
    await engine.shutdown()


@pytest.fixture
def sample_track():
    return make_track("Sample Song")


def failing_join(reason: str = "Connection timed out") -> ConnectionFailedError:
    return ConnectionFailedError(reason, GUILD_ID)
