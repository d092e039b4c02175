"""Role management commands for members with ``manage_roles``."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from guild_voice_bot.domain.shared.messages import DiscordUIMessages, ErrorMessages

if TYPE_CHECKING:
    from ....config.container import Container

logger = logging.getLogger(__name__)

REPLY_TIMEOUT_S = 10


class RoleCog(commands.Cog):
    def __init__(self, bot: commands.Bot, container: Container) -> None:
        self.bot = bot
        self.container = container

    async def cog_check(self, ctx: commands.Context) -> bool:
        if ctx.guild is None:
            raise commands.NoPrivateMessage()
        return True

    async def _ask(self, ctx: commands.Context, prompt: str) -> str | None:
        """Prompt the author and wait for their next message in the same channel."""
        await ctx.send(prompt)

        def check(message: discord.Message) -> bool:
            return message.author.id == ctx.author.id and message.channel.id == ctx.channel.id

        try:
            answer = await self.bot.wait_for("message", check=check, timeout=REPLY_TIMEOUT_S)
        except TimeoutError:
            await ctx.send(DiscordUIMessages.NO_ANSWER.format(seconds=REPLY_TIMEOUT_S))
            return None
        return answer.content.strip()

    @commands.command(name="add_role", help="Give a role to a member.")
    @commands.has_permissions(manage_roles=True)
    async def add_role(self, ctx: commands.Context, member: discord.Member, role: discord.Role) -> None:
        await member.add_roles(role, reason=f"Requested by {ctx.author}")
        logger.info("Gave role %s to %s in guild %s", role.id, member.id, role.guild.id)
        await ctx.send(DiscordUIMessages.ROLE_GIVEN.format(role=role.name, member=member.display_name))

    @commands.command(name="remove_role", help="Take a role away from a member.")
    @commands.has_permissions(manage_roles=True)
    async def remove_role(self, ctx: commands.Context, member: discord.Member, role: discord.Role) -> None:
        await member.remove_roles(role, reason=f"Requested by {ctx.author}")
        logger.info("Removed role %s from %s in guild %s", role.id, member.id, role.guild.id)
        await ctx.send(DiscordUIMessages.ROLE_REMOVED.format(role=role.name, member=member.display_name))

    @commands.command(name="create_role", help="Create a role. Asks for the name if none is given.")
    @commands.has_permissions(manage_roles=True)
    async def create_role(self, ctx: commands.Context, *, name: str = "") -> None:
        assert ctx.guild is not None
        name = name.strip()
        if not name:
            answer = await self._ask(ctx, DiscordUIMessages.ROLE_ASK_NAME)
            if not answer:
                return
            name = answer

        role = await ctx.guild.create_role(name=name, reason=f"Requested by {ctx.author}")
        logger.info("Created role %s (%s) in guild %s", role.name, role.id, ctx.guild.id)
        await ctx.send(DiscordUIMessages.ROLE_CREATED.format(mention=role.mention))

    @commands.command(name="delete_role", help="Delete a role. Asks for a mention if none is given.")
    @commands.has_permissions(manage_roles=True)
    async def delete_role(self, ctx: commands.Context, *, mention: str = "") -> None:
        mention = mention.strip()
        if not mention:
            answer = await self._ask(ctx, DiscordUIMessages.ROLE_ASK_MENTION)
            if not answer:
                return
            mention = answer

        try:
            role = await commands.RoleConverter().convert(ctx, mention)
        except commands.RoleNotFound:
            await ctx.send(DiscordUIMessages.ROLE_NOT_FOUND)
            return

        await role.delete(reason=f"Requested by {ctx.author}")
        logger.info("Deleted role %s in guild %s", role.id, role.guild.id)
        await ctx.send(DiscordUIMessages.ROLE_DELETED)


async def setup(bot: commands.Bot) -> None:
    container = getattr(bot, "container", None)
    if container is None:
        raise RuntimeError(ErrorMessages.CONTAINER_NOT_FOUND)
    await bot.add_cog(RoleCog(bot, container))
