"""Domain-level errors raised by the voice session core.

Every error here is recoverable at the command boundary: the dispatch
handler turns it into a chat reply and the guild keeps accepting commands.
"""

from __future__ import annotations


class DomainError(Exception):
    """Base exception for all domain-level errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class NotInVoiceChannelError(DomainError):
    """The invoking user has no voice channel the bot could join."""

    def __init__(self, user_id: int, message: str | None = None) -> None:
        msg = message or f"User {user_id} is not in a voice channel"
        super().__init__(msg, code="NOT_IN_VOICE_CHANNEL")
        self.user_id = user_id


class ConnectionFailedError(DomainError):
    """The voice transport failed to establish a connection."""

    def __init__(self, reason: str, guild_id: int | None = None) -> None:
        super().__init__(f"Voice connection failed: {reason}", code="CONNECTION_FAILED")
        self.reason = reason
        self.guild_id = guild_id


class SourceResolutionError(DomainError):
    """A URL or search query could not be turned into a playable track."""

    def __init__(self, query: str, reason: str | None = None) -> None:
        msg = f"Could not resolve '{query}'"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg, code="SOURCE_RESOLUTION_FAILED")
        self.query = query
        self.reason = reason


class PlaybackError(DomainError):
    """The voice handle refused to start a track."""

    def __init__(self, title: str, reason: str) -> None:
        super().__init__(f"Could not play '{title}': {reason}", code="PLAYBACK_FAILED")
        self.title = title
        self.reason = reason


class QueueFullError(DomainError):
    """Raised when appending to a queue that reached its size limit."""

    def __init__(self, max_size: int) -> None:
        super().__init__(f"Queue is full (max {max_size} tracks)", code="QUEUE_FULL")
        self.max_size = max_size


class InvalidOperationError(DomainError):
    """Raised when an operation is invalid in the current state."""

    def __init__(self, operation: str, current_state: str, message: str | None = None) -> None:
        msg = message or f"Cannot perform '{operation}' in state '{current_state}'"
        super().__init__(msg, code="INVALID_OPERATION")
        self.operation = operation
        self.current_state = current_state
