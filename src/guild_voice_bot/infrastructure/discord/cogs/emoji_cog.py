"""Custom emoji management for members with ``manage_emojis``."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from guild_voice_bot.domain.shared.messages import DiscordUIMessages, ErrorMessages

if TYPE_CHECKING:
    from ....config.container import Container

logger = logging.getLogger(__name__)


class EmojiCog(commands.Cog):
    def __init__(self, bot: commands.Bot, container: Container) -> None:
        self.bot = bot
        self.container = container

    async def cog_check(self, ctx: commands.Context) -> bool:
        if ctx.guild is None:
            raise commands.NoPrivateMessage()
        return True

    @commands.command(name="new_emoji", help="Create an emoji from an attached image.")
    @commands.has_permissions(manage_emojis=True)
    async def new_emoji(self, ctx: commands.Context, name: str) -> None:
        assert ctx.guild is not None
        attachments = ctx.message.attachments
        if not attachments:
            await ctx.send(DiscordUIMessages.EMOJI_ATTACHMENT_REQUIRED)
            return

        image = await attachments[0].read()
        emoji = await ctx.guild.create_custom_emoji(name=name, image=image, reason=f"Requested by {ctx.author}")
        logger.info("Created emoji %s (%s) in guild %s", emoji.name, emoji.id, ctx.guild.id)
        await ctx.send(DiscordUIMessages.EMOJI_CREATED.format(emoji=emoji))

    @commands.command(name="remove_emoji", help="Delete a custom emoji.")
    @commands.has_permissions(manage_emojis=True)
    async def remove_emoji(self, ctx: commands.Context, emoji: str) -> None:
        found = await self._find_emoji(ctx, emoji)
        if found is None:
            return

        name = found.name
        await found.delete(reason=f"Requested by {ctx.author}")
        logger.info("Removed emoji %s (%s)", name, found.id)
        await ctx.send(DiscordUIMessages.EMOJI_REMOVED.format(name=name))

    @commands.command(name="rename_emoji", help="Give a custom emoji a new name.")
    @commands.has_permissions(manage_emojis=True)
    async def rename_emoji(self, ctx: commands.Context, emoji: str, new_name: str) -> None:
        found = await self._find_emoji(ctx, emoji)
        if found is None:
            return

        renamed = await found.edit(name=new_name, reason=f"Requested by {ctx.author}")
        logger.info("Renamed emoji %s to %s", found.id, new_name)
        await ctx.send(DiscordUIMessages.EMOJI_RENAMED.format(emoji=renamed, name=new_name))

    async def _find_emoji(self, ctx: commands.Context, argument: str) -> discord.Emoji | None:
        try:
            return await commands.EmojiConverter().convert(ctx, argument)
        except commands.EmojiNotFound:
            await ctx.send(DiscordUIMessages.EMOJI_NOT_FOUND)
            return None


async def setup(bot: commands.Bot) -> None:
    container = getattr(bot, "container", None)
    if container is None:
        raise RuntimeError(ErrorMessages.CONTAINER_NOT_FOUND)
    await bot.add_cog(EmojiCog(bot, container))
