"""
Shared Domain Kernel

Contains types, messages and exceptions shared across the voice session core.
"""

from guild_voice_bot.domain.shared.exceptions import (
    ConnectionFailedError,
    DomainError,
    InvalidOperationError,
    NotInVoiceChannelError,
    PlaybackError,
    QueueFullError,
    SourceResolutionError,
)

__all__ = [
    "DomainError",
    "NotInVoiceChannelError",
    "ConnectionFailedError",
    "SourceResolutionError",
    "PlaybackError",
    "QueueFullError",
    "InvalidOperationError",
]
