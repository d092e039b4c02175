"""Guild Voice Registry - per-guild voice state behind two levels of locking.

A short-held map lock guards insertion and removal of guild entries. Each
entry carries its own ``asyncio.Lock`` guarding the queue, the voice handle
and the session state, so guilds never contend with each other. Waiters on
one guild's lock are served in arrival order.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ...domain.music.entities import TrackQueue
from ...domain.music.value_objects import VoiceSessionState
from ...domain.shared.exceptions import ConnectionFailedError, InvalidOperationError
from ...domain.shared.messages import LogTemplates
from ...domain.shared.types import DiscordSnowflake

if TYPE_CHECKING:
    from ..interfaces.voice_adapter import VoiceConnectionHandle

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class GuildVoiceState:
    """Registry entry for one guild.

    Every field except ``lock`` and ``removed`` may only be touched while
    holding ``lock``.
    """

    guild_id: DiscordSnowflake
    queue: TrackQueue
    handle: VoiceConnectionHandle | None = None
    state: VoiceSessionState = VoiceSessionState.DISCONNECTED
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)
    removed: bool = False
    join_error: str | None = None

    @property
    def is_connected(self) -> bool:
        return self.handle is not None and self.handle.is_connected()

    def transition_to(self, new_state: VoiceSessionState) -> None:
        """Transition to a new session state; staying in the same state is always allowed."""
        if new_state is self.state:
            return
        if not self.state.can_transition_to(new_state):
            raise InvalidOperationError(
                operation=f"transition to {new_state.value}",
                current_state=self.state.value,
                message=f"Cannot transition from {self.state.value} to {new_state.value}",
            )
        self.state = new_state


class GuildVoiceRegistry:
    """Process-wide mapping of guild id to its voice state."""

    def __init__(self, *, max_queue_size: int = 100) -> None:
        self._entries: dict[DiscordSnowflake, GuildVoiceState] = {}
        self._map_lock = asyncio.Lock()
        self._max_queue_size = max_queue_size

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, guild_id: object) -> bool:
        return guild_id in self._entries

    def guild_ids(self) -> list[DiscordSnowflake]:
        return list(self._entries)

    def peek(self, guild_id: DiscordSnowflake) -> GuildVoiceState | None:
        """Lock-free read for pre-checks and snapshots. Never mutate the result."""
        return self._entries.get(guild_id)

    async def get_or_create_queue(self, guild_id: DiscordSnowflake) -> GuildVoiceState:
        async with self._map_lock:
            entry = self._entries.get(guild_id)
            if entry is None:
                entry = GuildVoiceState(
                    guild_id=guild_id,
                    queue=TrackQueue(max_size=self._max_queue_size),
                )
                self._entries[guild_id] = entry
                logger.debug(LogTemplates.REGISTRY_CREATED, guild_id)
            return entry

    async def get_queue(self, guild_id: DiscordSnowflake) -> GuildVoiceState | None:
        async with self._map_lock:
            return self._entries.get(guild_id)

    async def remove_queue(
        self, guild_id: DiscordSnowflake, entry: GuildVoiceState | None = None
    ) -> None:
        """Drop a guild's entry. The caller must hold that guild's lock.

        When *entry* is given, only that exact entry is removed, so a stale
        caller can never drop a newer entry for the same guild.
        """
        async with self._map_lock:
            current = self._entries.get(guild_id)
            if current is None or (entry is not None and current is not entry):
                return
            del self._entries[guild_id]
            current.removed = True
            logger.debug(LogTemplates.REGISTRY_REMOVED, guild_id)

    @asynccontextmanager
    async def locked(
        self, guild_id: DiscordSnowflake, *, create: bool = False
    ) -> AsyncIterator[GuildVoiceState | None]:
        """Hold the guild's lock for the duration of the block.

        Yields ``None`` when *create* is false and the guild has no entry.
        If the entry is removed while waiting for its lock the lookup starts
        over, so a block never mutates a removed entry. With *create* set, an
        entry that was removed because its join failed raises
        ``ConnectionFailedError`` so waiters share that outcome instead of
        attempting the join again.
        """
        while True:
            if create:
                entry = await self.get_or_create_queue(guild_id)
            else:
                entry = await self.get_queue(guild_id)
                if entry is None:
                    yield None
                    return

            await entry.lock.acquire()
            if not entry.removed:
                break

            entry.lock.release()
            if create and entry.join_error is not None:
                logger.info(LogTemplates.VOICE_JOIN_OBSERVED_FAILURE, guild_id, entry.join_error)
                raise ConnectionFailedError(entry.join_error, guild_id=guild_id)
            logger.debug(LogTemplates.REGISTRY_ENTRY_REPLACED, guild_id)

        try:
            yield entry
        finally:
            entry.lock.release()
