"""Main Discord bot class integrating the DI container, cog lifecycle, and command hooks."""

from __future__ import annotations

import asyncio
import logging
import signal
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from guild_voice_bot.domain.shared.messages import DiscordUIMessages, LogTemplates

if TYPE_CHECKING:
    from ...config.container import Container
    from ...config.settings import Settings

logger = logging.getLogger(__name__)

COGS: tuple[str, ...] = (
    "guild_voice_bot.infrastructure.discord.cogs.music_cog",
    "guild_voice_bot.infrastructure.discord.cogs.util_cog",
    "guild_voice_bot.infrastructure.discord.cogs.role_cog",
    "guild_voice_bot.infrastructure.discord.cogs.emoji_cog",
    "guild_voice_bot.infrastructure.discord.cogs.event_cog",
)


class VoiceBot(commands.AutoShardedBot):
    def __init__(
        self,
        container: Container,
        settings: Settings,
        **kwargs,
    ) -> None:
        intents = discord.Intents.default()
        intents.message_content = True
        intents.voice_states = True
        intents.guilds = True

        super().__init__(
            command_prefix=settings.discord.command_prefix,
            intents=intents,
            help_command=commands.DefaultHelpCommand(),
            owner_ids=set(settings.discord.owner_ids),
            **kwargs,
        )

        self.container = container
        self.settings = settings
        container.set_bot(self)

        self.before_invoke(self._before_command)
        self.after_invoke(self._after_command)

    async def setup_hook(self) -> None:
        logger.info(LogTemplates.BOT_SETUP)

        try:
            await self.container.initialize()
            logger.info(LogTemplates.BOT_CONTAINER_INITIALIZED)
        except Exception as e:
            logger.exception(LogTemplates.BOT_CONTAINER_INIT_FAILED, e)
            raise

        await self._load_cogs()
        logger.info(LogTemplates.BOT_SETUP_COMPLETE)

    async def _load_cogs(self) -> None:
        loaded = 0
        failed = 0

        for cog in COGS:
            try:
                await self.load_extension(cog)
                logger.info(LogTemplates.BOT_COG_LOADED, cog)
                loaded += 1
            except commands.ExtensionError as e:
                logger.exception(LogTemplates.BOT_COG_LOAD_FAILED, cog, e)
                failed += 1

        logger.info(LogTemplates.BOT_COGS_LOADED_SUMMARY, loaded, failed)

    # ─────────────────────────────────────────────────────────────────
    # Command Hooks
    # ─────────────────────────────────────────────────────────────────

    async def _before_command(self, ctx: commands.Context) -> None:
        name = ctx.command.qualified_name if ctx.command else str(ctx.invoked_with)
        logger.debug(LogTemplates.COMMAND_RECEIVED, name, ctx.author.name)
        self.container.command_counter.increment(name)

    async def _after_command(self, ctx: commands.Context) -> None:
        if not ctx.command_failed:
            logger.debug(LogTemplates.COMMAND_PROCESSED, ctx.command.qualified_name if ctx.command else "?")

    async def on_command_error(self, ctx: commands.Context, error: commands.CommandError) -> None:
        """Turn dispatch errors into chat replies. Unexpected errors are logged in full."""
        if isinstance(error, commands.CommandNotFound):
            logger.debug(LogTemplates.COMMAND_UNKNOWN, ctx.invoked_with)
            return

        name = ctx.command.qualified_name if ctx.command else str(ctx.invoked_with)

        if isinstance(error, commands.CommandOnCooldown):
            message = DiscordUIMessages.RETRY_LATER.format(seconds=int(error.retry_after))
        elif isinstance(error, commands.NoPrivateMessage):
            message = DiscordUIMessages.SERVER_ONLY
        elif isinstance(error, commands.MissingPermissions):
            message = DiscordUIMessages.MISSING_PERMISSIONS
        elif isinstance(error, commands.CheckFailure):
            message = DiscordUIMessages.CHECK_FAILED.format(check=name, reason=error)
        elif isinstance(error, commands.MissingRequiredArgument):
            message = DiscordUIMessages.MISSING_ARGUMENT.format(param_name=error.param.name)
        elif isinstance(error, commands.UserInputError):
            message = DiscordUIMessages.INVALID_ARGUMENT
        else:
            original = getattr(error, "original", error)
            logger.error(LogTemplates.COMMAND_RETURNED_ERROR, name, original, exc_info=original)
            message = DiscordUIMessages.COMMAND_FAILED

        logger.debug(LogTemplates.COMMAND_DISPATCH_ERROR, error)
        try:
            await ctx.send(message)
        except discord.HTTPException:
            logger.warning(LogTemplates.COMMAND_REPLY_FAILED, name)

    # ─────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────

    async def close(self) -> None:
        logger.info(LogTemplates.BOT_SHUTTING_DOWN)

        try:
            await self.container.shutdown()
            logger.info(LogTemplates.BOT_CONTAINER_SHUTDOWN)
        except Exception as e:
            logger.warning(LogTemplates.BOT_CONTAINER_SHUTDOWN_ERROR, e)

        await super().close()
        logger.info(LogTemplates.BOT_SHUTDOWN_COMPLETE)

    def run_with_graceful_shutdown(self, token: str, *, shutdown_timeout: float = 10.0) -> None:
        async def runner() -> None:
            async with self:
                loop = asyncio.get_running_loop()

                async def _graceful_close() -> None:
                    try:
                        await asyncio.wait_for(self.close(), timeout=shutdown_timeout)
                    except TimeoutError:
                        logger.warning(LogTemplates.BOT_SHUTDOWN_TIMEOUT, shutdown_timeout)

                for sig in (signal.SIGINT, signal.SIGTERM):
                    loop.add_signal_handler(sig, lambda: asyncio.create_task(_graceful_close()))
                await self.start(token)

        asyncio.run(runner())


def create_bot(container: Container, settings: Settings) -> VoiceBot:
    return VoiceBot(container=container, settings=settings)
