"""Prefix-command music cog delegating to the voice command handler."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from guild_voice_bot.application.commands.voice_commands import (
    CommandKind,
    CommandReply,
    VoiceCommand,
)
from guild_voice_bot.domain.shared.messages import DiscordUIMessages, ErrorMessages
from guild_voice_bot.utils.reply import format_duration, truncate

if TYPE_CHECKING:
    from ....config.container import Container

logger = logging.getLogger(__name__)

QUEUE_PER_PAGE = 10


class MusicCog(commands.Cog):
    def __init__(self, bot: commands.Bot, container: Container) -> None:
        self.bot = bot
        self.container = container

    @staticmethod
    def _author_channel_id(ctx: commands.Context) -> int | None:
        voice = getattr(ctx.author, "voice", None)
        if voice is None or voice.channel is None:
            return None
        return voice.channel.id

    def _build_command(self, ctx: commands.Context, kind: CommandKind, argument: str = "") -> VoiceCommand:
        assert ctx.guild is not None
        return VoiceCommand(
            guild_id=ctx.guild.id,
            user_id=ctx.author.id,
            kind=kind,
            argument=argument,
            channel_id=self._author_channel_id(ctx),
            text_channel_id=ctx.channel.id,
        )

    async def _dispatch(self, ctx: commands.Context, kind: CommandKind, argument: str = "") -> CommandReply:
        command = self._build_command(ctx, kind, argument)
        reply = await self.container.command_handler.handle(command)
        logger.debug("Command %s in guild %s -> %s", kind.value, command.guild_id, reply.status.value)
        return reply

    async def _run(self, ctx: commands.Context, kind: CommandKind) -> None:
        reply = await self._dispatch(ctx, kind)
        await ctx.send(reply.message)

    # ─────────────────────────────────────────────────────────────────
    # Voice Session
    # ─────────────────────────────────────────────────────────────────

    @commands.command(name="join", help="Join your current voice channel.")
    @commands.guild_only()
    async def join(self, ctx: commands.Context) -> None:
        await self._run(ctx, CommandKind.JOIN)

    @commands.command(name="leave", help="Leave the voice channel and clear the queue.")
    @commands.guild_only()
    async def leave(self, ctx: commands.Context) -> None:
        await self._run(ctx, CommandKind.LEAVE)

    @commands.command(name="mute", help="Self-mute the bot in voice.")
    @commands.guild_only()
    async def mute(self, ctx: commands.Context) -> None:
        await self._run(ctx, CommandKind.MUTE)

    @commands.command(name="unmute", help="Undo a previous mute.")
    @commands.guild_only()
    async def unmute(self, ctx: commands.Context) -> None:
        await self._run(ctx, CommandKind.UNMUTE)

    # ─────────────────────────────────────────────────────────────────
    # Playback
    # ─────────────────────────────────────────────────────────────────

    @commands.command(name="play", help="Play a song by URL or search query.")
    @commands.guild_only()
    async def play(self, ctx: commands.Context, *, query: str = "") -> None:
        async with ctx.typing():
            reply = await self._dispatch(ctx, CommandKind.PLAY, query)

        if not reply.is_success or reply.entry is None or reply.position is None:
            await ctx.send(reply.message)
            return

        await ctx.send(embed=self._build_added_embed(reply))

    @commands.command(name="skip", help="Skip the song that is playing.")
    @commands.guild_only()
    async def skip(self, ctx: commands.Context) -> None:
        await self._run(ctx, CommandKind.SKIP)

    @commands.command(name="stop", help="Stop playback and clear the queue.")
    @commands.guild_only()
    async def stop(self, ctx: commands.Context) -> None:
        await self._run(ctx, CommandKind.STOP)

    @commands.command(name="queue", help="Show what is playing and what is up next.")
    @commands.guild_only()
    async def queue(self, ctx: commands.Context) -> None:
        assert ctx.guild is not None
        snapshot = self.container.playback_engine.queue_snapshot(ctx.guild.id)
        if snapshot.now_playing is None:
            await ctx.send(DiscordUIMessages.QUEUE_EMPTY)
            return

        entries = [snapshot.now_playing, *snapshot.upcoming]
        lines = [
            DiscordUIMessages.QUEUE_LINE.format(position=i, title=truncate(entry.title, 80))
            for i, entry in enumerate(entries[:QUEUE_PER_PAGE], start=1)
        ]
        hidden = len(entries) - QUEUE_PER_PAGE
        if hidden > 0:
            lines.append(DiscordUIMessages.QUEUE_MORE.format(count=hidden))

        embed = discord.Embed(
            title=DiscordUIMessages.QUEUE_TITLE.format(total=snapshot.total),
            description="\n".join(lines),
            color=discord.Color.blurple(),
        )
        await ctx.send(embed=embed)

    def _build_added_embed(self, reply: CommandReply) -> discord.Embed:
        assert reply.entry is not None
        track = reply.entry.track

        embed = discord.Embed(
            title=reply.message,
            url=track.webpage_url,
            color=discord.Color.green(),
        )

        if track.thumbnail_url:
            embed.set_thumbnail(url=track.thumbnail_url)

        embed.add_field(name=DiscordUIMessages.FIELD_TITLE, value=truncate(track.title, 256), inline=False)
        embed.add_field(name=DiscordUIMessages.FIELD_ARTIST, value=truncate(track.display_artist, 64), inline=True)
        embed.add_field(
            name=DiscordUIMessages.FIELD_DURATION,
            value=format_duration(track.duration_seconds),
            inline=True,
        )
        embed.add_field(name=DiscordUIMessages.FIELD_SPOT, value=str(reply.position), inline=True)
        return embed


async def setup(bot: commands.Bot) -> None:
    container = getattr(bot, "container", None)
    if container is None:
        raise RuntimeError(ErrorMessages.CONTAINER_NOT_FOUND)
    await bot.add_cog(MusicCog(bot, container))
