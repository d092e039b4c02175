"""Discord event listeners for lifecycle and the bot's own voice state."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from guild_voice_bot.domain.shared.events import VoiceDisconnected
from guild_voice_bot.domain.shared.messages import ErrorMessages, LogTemplates

if TYPE_CHECKING:
    from ....config.container import Container

logger = logging.getLogger(__name__)


class EventCog(commands.Cog):
    def __init__(self, bot: commands.Bot, container: Container) -> None:
        self.bot = bot
        self.container = container
        self._resumed_logged_once = False

    # ─────────────────────────────────────────────────────────────────
    # Lifecycle Events
    # ─────────────────────────────────────────────────────────────────

    @commands.Cog.listener()
    async def on_ready(self) -> None:
        user = self.bot.user
        logger.info(LogTemplates.BOT_READY, user, getattr(user, "id", "?"))

        guild_count = len(self.bot.guilds)
        logger.info(LogTemplates.BOT_CONNECTED_GUILDS, guild_count)
        await self.bot.change_presence(activity=discord.Game(f"with {guild_count} guilds"))

    @commands.Cog.listener()
    async def on_resumed(self) -> None:
        if not self._resumed_logged_once:
            logger.info(LogTemplates.BOT_RESUMED)
            self._resumed_logged_once = True

    # ─────────────────────────────────────────────────────────────────
    # Guild Events
    # ─────────────────────────────────────────────────────────────────

    @commands.Cog.listener()
    async def on_guild_remove(self, guild: discord.Guild) -> None:
        logger.info("Left guild: %s (%s)", guild.name, guild.id)
        await self.container.playback_engine.leave(guild.id)

    # ─────────────────────────────────────────────────────────────────
    # Voice Events
    # ─────────────────────────────────────────────────────────────────

    @commands.Cog.listener()
    async def on_voice_state_update(
        self,
        member: discord.Member,
        before: discord.VoiceState,
        after: discord.VoiceState,
    ) -> None:
        """Report when the bot itself was dropped from voice (kick, channel delete, network)."""
        if self.bot.user is None or member.id != self.bot.user.id:
            return
        if before.channel is None or after.channel is not None:
            return

        guild_id = member.guild.id
        logger.debug("Bot left voice in guild %s, publishing disconnect", guild_id)
        await self.container.voice_events.publish(VoiceDisconnected(guild_id=guild_id))


async def setup(bot: commands.Bot) -> None:
    container = getattr(bot, "container", None)
    if container is None:
        raise RuntimeError(ErrorMessages.CONTAINER_NOT_FOUND)
    await bot.add_cog(EventCog(bot, container))
