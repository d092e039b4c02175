"""Playback Engine - enqueue/dequeue operations and track-end processing.

Every mutation of a guild's queue, handle or session state happens while
holding that guild's registry lock. Source resolution and text-channel
announcements run outside the lock.

Track end is not an inline callback: the voice transport publishes
``TrackEnded`` events onto a ``VoiceEventChannel`` and the engine's consumer
processes each one as an ordinary locked operation. A ``TrackEnded`` whose
entry is no longer the playing head is the echo of a skip or stop and is
ignored, so a skip racing a natural track end advances the queue once.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING

from ...domain.music.entities import TrackEntry
from ...domain.music.value_objects import VoiceSessionState
from ...domain.shared.events import TrackEnded, VoiceDisconnected, VoiceEvent
from ...domain.shared.exceptions import NotInVoiceChannelError, PlaybackError
from ...domain.shared.messages import LogTemplates
from ...domain.shared.types import ChannelIdField, DiscordSnowflake, NonEmptyStr
from .playback_models import (
    EnqueueResult,
    JoinResult,
    LeaveResult,
    LeaveStatus,
    MuteResult,
    MuteStatus,
    QueueSnapshot,
    SkipResult,
    SkipStatus,
    StopResult,
    StopStatus,
)

if TYPE_CHECKING:
    from ...domain.shared.events import VoiceEventChannel
    from ..interfaces.announcer import TrackAnnouncer
    from ..interfaces.audio_resolver import AudioResolver
    from .guild_registry import GuildVoiceRegistry, GuildVoiceState
    from .voice_session import VoiceSessionResolver

logger = logging.getLogger(__name__)


class PlaybackEngine:
    """Serializes voice commands and track-end events per guild."""

    def __init__(
        self,
        *,
        registry: GuildVoiceRegistry,
        sessions: VoiceSessionResolver,
        resolver: AudioResolver,
        events: VoiceEventChannel,
        announcer: TrackAnnouncer | None = None,
    ) -> None:
        self._registry = registry
        self._sessions = sessions
        self._resolver = resolver
        self._events = events
        self._announcer = announcer

        self._consumer: asyncio.Task[None] | None = None
        self._event_tasks: set[asyncio.Task[None]] = set()

    # ── Commands ────────────────────────────────────────────────────

    async def join(
        self,
        guild_id: DiscordSnowflake,
        user_id: DiscordSnowflake,
        candidate_channel_id: ChannelIdField | None,
    ) -> JoinResult:
        async with self._registry.locked(guild_id, create=True) as state:
            already_connected = state.is_connected
            handle = await self._sessions.ensure_connected_locked(state, user_id, candidate_channel_id)
            return JoinResult(channel_id=handle.channel_id, already_connected=already_connected)

    async def enqueue(
        self,
        guild_id: DiscordSnowflake,
        user_id: DiscordSnowflake,
        candidate_channel_id: ChannelIdField | None,
        query: NonEmptyStr,
        text_channel_id: ChannelIdField | None = None,
    ) -> EnqueueResult:
        """Resolve *query*, append it to the guild's queue and start playback if idle.

        Returns the one-based position of the new entry; 1 means it is playing.

        Raises:
            NotInVoiceChannelError: The bot is not connected and the user has no channel.
            SourceResolutionError: The query did not resolve. Nothing was queued or joined.
            ConnectionFailedError: Joining the user's channel failed.
            QueueFullError: The queue is at its size limit.
            PlaybackError: The new entry was the only one and could not be started.
        """
        if candidate_channel_id is None and not self._sessions.is_connected(guild_id):
            raise NotInVoiceChannelError(user_id)

        logger.debug(LogTemplates.RESOLVING_SOURCE, query, guild_id)
        track = await self._resolver.resolve(query)
        entry = TrackEntry(track=track, requested_by_id=user_id, text_channel_id=text_channel_id)

        async with self._registry.locked(guild_id, create=True) as state:
            await self._sessions.ensure_connected_locked(state, user_id, candidate_channel_id)
            position = state.queue.append(entry)
            logger.info(LogTemplates.QUEUE_ENQUEUED, track.title, position.value, guild_id)

            if not state.state.is_playing:
                # An idle guild has an empty queue, so the new entry is the head.
                failures: list[PlaybackError] = []
                started = await self._play_from_head(state, state.queue.begin_playback(), failures)
                if started is None:
                    raise failures[-1]
                entry = started

            return EnqueueResult(entry=entry, position=position.value, queue_length=len(state.queue))

    async def skip(self, guild_id: DiscordSnowflake) -> SkipResult:
        async with self._registry.locked(guild_id) as state:
            if state is None or not await self._ensure_live(state):
                return SkipResult(status=SkipStatus.NOTHING_TO_SKIP)

            skipped = state.queue.now_playing
            if skipped is None or not state.state.is_playing:
                return SkipResult(status=SkipStatus.NOTHING_TO_SKIP, remaining=len(state.queue))

            await state.handle.stop()
            logger.info(LogTemplates.TRACK_SKIPPED, skipped.title, guild_id)
            now_playing = await self._play_from_head(state, state.queue.advance())
            return SkipResult(
                status=SkipStatus.SKIPPED,
                skipped=skipped,
                now_playing=now_playing,
                remaining=len(state.queue),
            )

    async def stop(self, guild_id: DiscordSnowflake) -> StopResult:
        """Stop playback and clear the queue. Always leaves the guild idle and empty."""
        async with self._registry.locked(guild_id) as state:
            if state is None:
                return StopResult(status=StopStatus.NOTHING_TO_STOP)

            was_playing = state.state.is_playing
            cleared = state.queue.clear()
            if state.handle is not None:
                await state.handle.stop()
            if state.state.is_connected:
                state.transition_to(VoiceSessionState.IDLE)

            logger.info(LogTemplates.QUEUE_CLEARED, cleared, guild_id)
            status = StopStatus.STOPPED if was_playing or cleared else StopStatus.NOTHING_TO_STOP
            return StopResult(status=status, cleared=cleared)

    async def leave(self, guild_id: DiscordSnowflake) -> LeaveResult:
        """Stop playback, clear the queue, disconnect and drop the guild's entry."""
        async with self._registry.locked(guild_id) as state:
            if state is None:
                return LeaveResult(status=LeaveStatus.NOT_CONNECTED)
            if state.handle is None:
                await self._registry.remove_queue(guild_id, state)
                return LeaveResult(status=LeaveStatus.NOT_CONNECTED)

            cleared = await self._release(state)
            logger.info(LogTemplates.SESSION_LEFT, guild_id)
            return LeaveResult(status=LeaveStatus.LEFT, cleared=cleared)

    async def mute(self, guild_id: DiscordSnowflake) -> MuteResult:
        return await self._set_muted(guild_id, True)

    async def unmute(self, guild_id: DiscordSnowflake) -> MuteResult:
        return await self._set_muted(guild_id, False)

    def queue_snapshot(self, guild_id: DiscordSnowflake) -> QueueSnapshot:
        """Read-only view of a guild's queue, taken without the lock."""
        state = self._registry.peek(guild_id)
        if state is None:
            return QueueSnapshot(state=VoiceSessionState.DISCONNECTED)
        return QueueSnapshot(
            state=state.state,
            now_playing=state.queue.now_playing,
            upcoming=state.queue.upcoming,
        )

    # ── Event processing ────────────────────────────────────────────

    def start(self) -> None:
        """Start consuming voice events. Idempotent."""
        if self._consumer is not None and not self._consumer.done():
            return
        self._consumer = asyncio.create_task(self._consume_events(), name="voice-event-consumer")
        logger.info(LogTemplates.ENGINE_STARTED)

    @property
    def is_running(self) -> bool:
        return self._consumer is not None and not self._consumer.done()

    async def _consume_events(self) -> None:
        while True:
            event = await self._events.get()
            logger.debug(LogTemplates.ENGINE_EVENT_RECEIVED, type(event).__name__, event.guild_id)
            # One task per event so a slow guild never delays the others.
            task = asyncio.create_task(self._process_event(event))
            self._event_tasks.add(task)
            task.add_done_callback(self._event_tasks.discard)

    async def _process_event(self, event: VoiceEvent) -> None:
        try:
            if isinstance(event, TrackEnded):
                await self.handle_track_end(event)
            elif isinstance(event, VoiceDisconnected):
                await self.handle_voice_disconnected(event)
        except Exception:
            logger.exception(LogTemplates.ENGINE_EVENT_FAILED, type(event).__name__, event.guild_id)
        finally:
            self._events.task_done()

    async def handle_track_end(self, event: TrackEnded) -> None:
        """Advance past the entry that finished, if it is still the one playing."""
        guild_id = event.guild_id
        async with self._registry.locked(guild_id) as state:
            if state is None:
                return

            finished = state.queue.now_playing
            if finished is None or finished.entry_id != event.entry_id:
                logger.debug(LogTemplates.TRACK_END_STALE, event.entry_id, guild_id)
                return

            logger.info(LogTemplates.TRACK_ENDED, guild_id, event.entry_id, event.error)
            if event.error:
                logger.warning(LogTemplates.PLAYBACK_ERROR, guild_id, event.error)

            if not state.is_connected:
                logger.warning(LogTemplates.VOICE_LOST, guild_id)
                await self._release(state)
                return

            started = await self._play_from_head(state, state.queue.advance())

        await self._announce(guild_id, started, finished.text_channel_id)

    async def handle_voice_disconnected(self, event: VoiceDisconnected) -> None:
        """Tear the guild down if its connection is really gone."""
        async with self._registry.locked(event.guild_id) as state:
            if state is None or state.handle is None or state.is_connected:
                return
            logger.warning(LogTemplates.VOICE_LOST, event.guild_id)
            await self._release(state)

    # ── Shutdown ────────────────────────────────────────────────────

    async def shutdown(self) -> None:
        """Stop consuming events and release every voice handle."""
        if self._consumer is not None:
            self._consumer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._consumer
            self._consumer = None
            logger.info(LogTemplates.ENGINE_STOPPED)

        pending = list(self._event_tasks)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        released = 0
        for guild_id in self._registry.guild_ids():
            try:
                result = await self.leave(guild_id)
            except Exception:
                logger.exception(LogTemplates.ENGINE_SHUTDOWN_GUILD_FAILED, guild_id)
                continue
            if result.status is LeaveStatus.LEFT:
                released += 1
        logger.info(LogTemplates.ENGINE_SHUTDOWN, released)

    # ── Helpers (caller holds the guild lock) ───────────────────────

    async def _play_from_head(
        self,
        state: GuildVoiceState,
        entry: TrackEntry | None,
        failures: list[PlaybackError] | None = None,
    ) -> TrackEntry | None:
        """Start *entry*, dropping entries that fail to start, until one plays or the queue is empty."""
        while entry is not None:
            try:
                await state.handle.play(entry)
            except PlaybackError as exc:
                failure = exc
            except Exception as exc:
                logger.exception(LogTemplates.PLAYBACK_START_CRASHED, entry.title, state.guild_id)
                failure = PlaybackError(entry.title, str(exc) or type(exc).__name__)
            else:
                state.transition_to(VoiceSessionState.PLAYING)
                logger.info(LogTemplates.PLAYBACK_STARTED, entry.title, state.guild_id)
                return entry

            logger.warning(LogTemplates.PLAYBACK_FAILED_START, entry.title, state.guild_id, failure.reason)
            if failures is not None:
                failures.append(failure)
            entry = state.queue.advance()

        state.transition_to(VoiceSessionState.IDLE)
        logger.info(LogTemplates.QUEUE_FINISHED, state.guild_id)
        return None

    async def _ensure_live(self, state: GuildVoiceState) -> bool:
        """Return whether the guild has a live connection, tearing down a dead one."""
        if state.is_connected:
            return True
        if state.handle is not None:
            logger.warning(LogTemplates.VOICE_LOST, state.guild_id)
            await self._release(state)
        return False

    async def _release(self, state: GuildVoiceState) -> int:
        """Stop, disconnect and remove the guild's entry. Returns the number of entries cleared."""
        cleared = state.queue.clear()
        handle = state.handle
        state.handle = None
        try:
            if handle is not None:
                try:
                    await handle.stop()
                except Exception:
                    logger.exception(LogTemplates.VOICE_STOP_FAILED, state.guild_id)
                await handle.disconnect()
        finally:
            state.transition_to(VoiceSessionState.DISCONNECTED)
            await self._registry.remove_queue(state.guild_id, state)
        return cleared

    async def _set_muted(self, guild_id: DiscordSnowflake, muted: bool) -> MuteResult:
        async with self._registry.locked(guild_id) as state:
            if state is None or not await self._ensure_live(state):
                return MuteResult(status=MuteStatus.NOT_CONNECTED)

            if state.handle.is_muted == muted:
                return MuteResult(status=MuteStatus.ALREADY_MUTED if muted else MuteStatus.NOT_MUTED)

            await state.handle.set_muted(muted)
            return MuteResult(status=MuteStatus.MUTED if muted else MuteStatus.UNMUTED)

    async def _announce(
        self,
        guild_id: DiscordSnowflake,
        started: TrackEntry | None,
        text_channel_id: ChannelIdField | None,
    ) -> None:
        if self._announcer is None:
            return
        try:
            if started is not None:
                await self._announcer.track_started(started)
            else:
                await self._announcer.queue_finished(guild_id, text_channel_id)
        except Exception as exc:
            logger.warning(LogTemplates.ANNOUNCE_FAILED, guild_id, exc)
