"""Parsed voice commands and their handler."""

from guild_voice_bot.application.commands.voice_commands import (
    CommandKind,
    CommandReply,
    ReplyStatus,
    VoiceCommand,
    VoiceCommandHandler,
)

__all__ = [
    "CommandKind",
    "CommandReply",
    "ReplyStatus",
    "VoiceCommand",
    "VoiceCommandHandler",
]
