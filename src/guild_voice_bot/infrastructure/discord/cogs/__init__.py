"""Discord cogs - command handlers."""

from guild_voice_bot.infrastructure.discord.cogs.emoji_cog import EmojiCog
from guild_voice_bot.infrastructure.discord.cogs.event_cog import EventCog
from guild_voice_bot.infrastructure.discord.cogs.music_cog import MusicCog
from guild_voice_bot.infrastructure.discord.cogs.role_cog import RoleCog
from guild_voice_bot.infrastructure.discord.cogs.util_cog import UtilCog

__all__ = [
    "MusicCog",
    "UtilCog",
    "RoleCog",
    "EmojiCog",
    "EventCog",
]
