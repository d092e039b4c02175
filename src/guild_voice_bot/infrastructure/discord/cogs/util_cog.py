"""Utility commands: ping, shard latency, and command usage counts."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from guild_voice_bot.domain.shared.messages import DiscordUIMessages, ErrorMessages
from guild_voice_bot.utils.reply import format_latency

if TYPE_CHECKING:
    from ....config.container import Container

logger = logging.getLogger(__name__)


class UtilCog(commands.Cog):
    def __init__(self, bot: commands.Bot, container: Container) -> None:
        self.bot = bot
        self.container = container

    @commands.command(name="ping", help="Check that the bot is responding.")
    async def ping(self, ctx: commands.Context) -> None:
        await ctx.send(DiscordUIMessages.PONG)

    @commands.command(name="latency", help="Show the gateway latency of this shard.")
    async def latency(self, ctx: commands.Context) -> None:
        get_shard = getattr(self.bot, "get_shard", None)
        if get_shard is None:
            logger.warning("Latency requested but the bot is not sharded")
            await ctx.send(DiscordUIMessages.SHARD_MANAGER_MISSING)
            return

        shard_id = ctx.guild.shard_id if ctx.guild is not None else 0
        shard = get_shard(shard_id)
        if shard is None:
            await ctx.send(DiscordUIMessages.NO_SHARD_FOUND)
            return

        latency_ms = format_latency(shard.latency)
        if latency_ms is None:
            await ctx.send(DiscordUIMessages.LATENCY_UNAVAILABLE)
            return

        await ctx.send(DiscordUIMessages.LATENCY.format(latency_ms=latency_ms))

    @commands.command(name="commands", help="Show how often each command was used.")
    async def command_counts(self, ctx: commands.Context) -> None:
        counts = self.container.command_counter.most_common()
        if not counts:
            await ctx.send(DiscordUIMessages.COMMAND_COUNTS_EMPTY)
            return

        embed = discord.Embed(
            title=DiscordUIMessages.COMMAND_COUNTS_TITLE,
            description="\n".join(
                DiscordUIMessages.COMMAND_COUNT_LINE.format(name=name, count=count) for name, count in counts
            ),
            color=discord.Color.blurple(),
        )
        await ctx.send(embed=embed)


async def setup(bot: commands.Bot) -> None:
    container = getattr(bot, "container", None)
    if container is None:
        raise RuntimeError(ErrorMessages.CONTAINER_NOT_FOUND)
    await bot.add_cog(UtilCog(bot, container))
