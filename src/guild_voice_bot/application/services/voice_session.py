"""Voice Session Resolver - obtains or creates a guild's voice connection."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ...domain.music.value_objects import VoiceSessionState
from ...domain.shared.exceptions import ConnectionFailedError, NotInVoiceChannelError
from ...domain.shared.messages import LogTemplates
from ...domain.shared.types import ChannelIdField, DiscordSnowflake

if TYPE_CHECKING:
    from ..interfaces.voice_adapter import VoiceConnectionHandle, VoiceTransport
    from .guild_registry import GuildVoiceRegistry, GuildVoiceState

logger = logging.getLogger(__name__)


class VoiceSessionResolver:
    """Runs the check-then-join sequence under the guild lock.

    Holding the lock across the join is what guarantees a single join attempt
    when several commands for the same guild arrive together: later callers
    either find the live handle or observe the recorded join failure.
    """

    def __init__(self, *, registry: GuildVoiceRegistry, transport: VoiceTransport) -> None:
        self._registry = registry
        self._transport = transport

    def is_connected(self, guild_id: DiscordSnowflake) -> bool:
        entry = self._registry.peek(guild_id)
        return entry is not None and entry.is_connected

    async def ensure_connected(
        self,
        guild_id: DiscordSnowflake,
        invoking_user_id: DiscordSnowflake,
        candidate_channel_id: ChannelIdField | None,
    ) -> VoiceConnectionHandle:
        async with self._registry.locked(guild_id, create=True) as entry:
            return await self.ensure_connected_locked(entry, invoking_user_id, candidate_channel_id)

    async def ensure_connected_locked(
        self,
        entry: GuildVoiceState,
        invoking_user_id: DiscordSnowflake,
        candidate_channel_id: ChannelIdField | None,
    ) -> VoiceConnectionHandle:
        """Return the guild's live handle, joining *candidate_channel_id* if there is none.

        The caller must hold ``entry.lock``. An existing live handle is
        returned as is, even if the user sits in another channel.

        Raises:
            NotInVoiceChannelError: No handle exists and the user has no channel.
            ConnectionFailedError: The transport could not join. The entry is
                removed from the registry with the failure recorded on it.
        """
        if entry.handle is not None:
            if entry.handle.is_connected():
                logger.debug(LogTemplates.VOICE_REUSED, entry.guild_id)
                return entry.handle
            await self.drop_stale_handle(entry)

        if candidate_channel_id is None:
            if entry.queue.is_empty:
                await self._registry.remove_queue(entry.guild_id, entry)
            raise NotInVoiceChannelError(invoking_user_id)

        entry.transition_to(VoiceSessionState.CONNECTING)
        logger.info(
            LogTemplates.VOICE_JOIN_REQUESTED, candidate_channel_id, entry.guild_id, invoking_user_id
        )
        try:
            handle = await self._transport.join(entry.guild_id, candidate_channel_id)
        except ConnectionFailedError as exc:
            await self._abandon_join(entry, exc.reason)
            raise
        except Exception as exc:
            await self._abandon_join(entry, str(exc) or type(exc).__name__)
            raise ConnectionFailedError(str(exc) or type(exc).__name__, guild_id=entry.guild_id) from exc

        entry.handle = handle
        entry.join_error = None
        entry.transition_to(VoiceSessionState.IDLE)
        return handle

    async def drop_stale_handle(self, entry: GuildVoiceState) -> None:
        """Forget a handle whose connection is gone. Caller holds the lock."""
        logger.info(LogTemplates.VOICE_STALE_HANDLE, entry.guild_id)
        handle = entry.handle
        entry.handle = None
        entry.queue.clear()
        entry.transition_to(VoiceSessionState.DISCONNECTED)
        if handle is not None:
            try:
                await handle.disconnect()
            except Exception:
                logger.exception(LogTemplates.VOICE_DISCONNECT_FAILED, entry.guild_id)

    async def _abandon_join(self, entry: GuildVoiceState, reason: str) -> None:
        logger.warning(LogTemplates.VOICE_JOIN_FAILED, entry.guild_id, reason)
        entry.transition_to(VoiceSessionState.DISCONNECTED)
        entry.join_error = reason
        await self._registry.remove_queue(entry.guild_id, entry)
