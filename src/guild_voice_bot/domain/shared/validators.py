"""Shared validators for Discord-specific values."""

from guild_voice_bot.domain.shared.messages import ErrorMessages


def validate_discord_snowflake(value: int) -> int:
    """Validate a Discord snowflake ID.

    Snowflakes are 64-bit unsigned integers identifying guilds, users,
    channels and messages.

    Raises:
        ValueError: If the snowflake ID is invalid.
    """
    if value <= 0:
        raise ValueError(ErrorMessages.INVALID_SNOWFLAKE)
    if value >= 2**64:
        raise ValueError(ErrorMessages.SNOWFLAKE_TOO_LARGE)
    return value


def validate_command_prefix(value: str) -> str:
    """Reject prefixes that are blank or contain whitespace."""
    if not value or value.strip() != value or any(ch.isspace() for ch in value):
        raise ValueError(ErrorMessages.INVALID_COMMAND_PREFIX)
    return value
