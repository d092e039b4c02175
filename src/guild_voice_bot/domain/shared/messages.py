"""Centralized message constants for error messages, logging, and user feedback."""

from __future__ import annotations


class ErrorMessages:
    """Error messages for exceptions and validation failures."""

    # Discord ID Validation Errors
    INVALID_SNOWFLAKE = "Discord snowflake ID must be positive"
    SNOWFLAKE_TOO_LARGE = "Discord snowflake ID exceeds maximum value (2^64)"
    INVALID_COMMAND_PREFIX = "Command prefix must be non-empty and contain no whitespace"

    # Track Validation Errors
    EMPTY_TRACK_ID = "Track ID cannot be empty"
    INVALID_QUEUE_POSITION = "Queue position must be 1 or greater"

    # Settings Errors
    INVALID_LOG_LEVEL = "Invalid log level: {level}. Must be one of {valid_levels}"

    # Audio/Stream Errors
    NO_STREAM_URL = "Track has no stream URL"
    NOTHING_FOUND = "No results found"
    NOT_A_VOICE_CHANNEL = "Channel {channel_id} is not a voice channel"
    GUILD_UNAVAILABLE = "Guild {guild_id} is not available"
    CONNECT_TIMEOUT = "Timed out joining the voice channel"
    CONNECT_FORBIDDEN = "Missing permission to join the voice channel"
    HANDLE_DISCONNECTED = "Voice connection is closed"

    # Authentication/Setup Errors
    DISCORD_TOKEN_REQUIRED = "DISCORD__TOKEN environment variable is required"
    BOT_NOT_INITIALIZED = "Bot not initialized. Call set_bot() first."
    CONTAINER_NOT_FOUND = "Container not found on bot instance"


class LogTemplates:
    """Log message templates.

    Use these with logger.info(), logger.error(), etc. and pass values as
    parameters so formatting is deferred to the logging framework.
    """

    # Registry
    REGISTRY_CREATED = "Created voice registry entry for guild %s"
    REGISTRY_REMOVED = "Removed voice registry entry for guild %s"
    REGISTRY_ENTRY_REPLACED = "Registry entry for guild %s was removed while waiting, retrying"

    # Voice Session
    VOICE_JOIN_REQUESTED = "Joining voice channel %s in guild %s for user %s"
    VOICE_REUSED = "Reusing voice connection in guild %s"
    VOICE_STALE_HANDLE = "Dropping stale voice handle in guild %s"
    VOICE_JOIN_FAILED = "Failed to join voice in guild %s: %s"
    VOICE_JOIN_OBSERVED_FAILURE = "Join in guild %s already failed while waiting: %s"

    # Voice Transport
    VOICE_CONNECTED = "Connected to voice channel %s in guild %s"
    VOICE_DISCONNECTED = "Disconnected from voice in guild %s"
    VOICE_CONNECTION_TIMEOUT = "Timeout connecting to channel %s"
    VOICE_NO_PERMISSION = "No permission to connect to channel %s"
    VOICE_CLIENT_ERROR = "Client error connecting: %r"
    VOICE_STALE_CLEANUP = "Found stale voice client in guild %s, cleaning up"
    VOICE_SELF_DEAFEN_FAILED = "Failed to self-deafen in guild %s: %r"
    VOICE_MUTE_CHANGED = "Set self-mute=%s in guild %s"
    VOICE_LOST = "Voice connection lost in guild %s, tearing down session"
    VOICE_DISCONNECT_FAILED = "Failed to disconnect from voice in guild %s"
    VOICE_STOP_FAILED = "Failed to stop playback in guild %s, disconnecting anyway"
    GUILD_NOT_FOUND = "Guild %s not found"
    CHANNEL_NOT_VOICE = "Channel %s is not a voice channel"

    # Playback
    PLAYBACK_STARTED = "Started playing '%s' in guild %s"
    PLAYBACK_STOPPED = "Stopped playback in guild %s"
    PLAYBACK_FAILED_START = "Failed to start '%s' in guild %s: %s"
    PLAYBACK_START_CRASHED = "Unexpected error starting '%s' in guild %s"
    AUDIO_SOURCE_FAILED = "Could not build audio source for '%s': %r"
    PLAYBACK_ERROR = "Playback error in guild %s: %s"
    PLAYBACK_EVENT_PUBLISH_FAILED = "Could not publish track-end for guild %s: %r"

    # Track / Queue
    TRACK_ENDED = "Track ended in guild %s (entry=%s, error=%s)"
    TRACK_END_STALE = "Ignoring stale track-end for entry %s in guild %s"
    TRACK_SKIPPED = "Skipped '%s' in guild %s"
    QUEUE_ENQUEUED = "Enqueued '%s' at position %s in guild %s"
    QUEUE_FINISHED = "Queue finished in guild %s"
    QUEUE_CLEARED = "Cleared %s tracks from queue in guild %s"
    SESSION_LEFT = "Left voice in guild %s"

    # Engine Lifecycle
    ENGINE_STARTED = "Playback engine event consumer started"
    ENGINE_STOPPED = "Playback engine event consumer stopped"
    ENGINE_EVENT_RECEIVED = "Received %s for guild %s"
    ENGINE_EVENT_FAILED = "Failed to process %s for guild %s"
    EVENT_PUBLISHED = "Published %s for guild %s"
    ENGINE_SHUTDOWN = "Released voice sessions for %s guilds"
    ENGINE_SHUTDOWN_GUILD_FAILED = "Failed to release voice session in guild %s"
    ANNOUNCE_FAILED = "Failed to announce in guild %s: %r"

    # Resolution
    RESOLVING_SOURCE = "Resolving source %r for guild %s"
    YTDLP_NO_URL_IN_INFO_DICT = "No URL found in info dict"
    YTDLP_NO_STREAM_URL = "No stream URL found for %s"
    YTDLP_FAILED_INFO_TO_TRACK = "Failed to convert info to track"
    YTDLP_FAILED_EXTRACT_INFO = "Failed to extract info from %s"
    YTDLP_FAILED_SEARCH = "Failed to search for %r"
    CACHE_HIT_URL = "Cache hit for URL: %s"
    CACHE_EXPIRED_CLEANED = "Cleaned %d expired cache entries"

    # Commands
    COMMAND_RECEIVED = "Got command '%s' by user '%s'"
    COMMAND_PROCESSED = "Processed command '%s'"
    COMMAND_RETURNED_ERROR = "Command '%s' returned error %r"
    COMMAND_UNKNOWN = "Could not find command named '%s'"
    COMMAND_DISPATCH_ERROR = "Command failed with error: %r"
    COMMAND_REPLY_FAILED = "Failed to send reply for command '%s'"
    COMMAND_SOURCE_FAILED = "Source resolution failed in guild %s: %s"
    COMMAND_DOMAIN_ERROR = "Unhandled domain error in guild %s: %s"

    # Application Lifecycle
    BOT_STARTING = "Starting guild voice bot in {environment} mode"
    LOGGING_CONFIG_FALLBACK = "Could not load %s, falling back to basic config"
    FFMPEG_NOT_FOUND = "FFmpeg executable '%s' not found on PATH; playback will fail"
    OPUS_NOT_LOADED = "Opus library could not be loaded; playback will fail"
    BOT_SETUP = "Setting up bot..."
    BOT_CONTAINER_INITIALIZED = "Container initialized successfully"
    BOT_CONTAINER_INIT_FAILED = "Failed to initialize container: %s"
    BOT_SETUP_COMPLETE = "Bot setup complete"
    BOT_STARTING_RUN = "Starting bot..."
    BOT_STOPPED = "Bot stopped successfully"
    BOT_KEYBOARD_INTERRUPT = "Received keyboard interrupt, shutting down..."
    BOT_FATAL_ERROR = "Fatal error: %s"
    BOT_SHUTTING_DOWN = "Shutting down bot..."
    BOT_CONTAINER_SHUTDOWN = "Container shutdown complete"
    BOT_CONTAINER_SHUTDOWN_ERROR = "Error during container shutdown: %s"
    BOT_SHUTDOWN_COMPLETE = "Bot shutdown complete"
    BOT_SHUTDOWN_TIMEOUT = "Graceful shutdown timed out after %ss"
    BOT_READY = "Connected as %s (%s)"
    BOT_RESUMED = "Resumed"
    BOT_CONNECTED_GUILDS = "Connected to %s guilds"
    BOT_COG_LOADED = "Loaded cog: %s"
    BOT_COG_LOAD_FAILED = "Failed to load cog %s: %s"
    BOT_COGS_LOADED_SUMMARY = "Cogs loaded: %s success, %s failed"


class DiscordUIMessages:
    """User-facing chat replies."""

    # Voice Session
    JOINED_CHANNEL = "Joined <#{channel_id}>"
    ALREADY_CONNECTED = "Already connected to <#{channel_id}>"
    NOT_IN_VOICE_CHANNEL = "Not in a channel to join into"
    CONNECTION_FAILED = "Could not join your voice channel: {reason}"
    NOT_CONNECTED = "Not in a voice channel"
    LEFT_CHANNEL = "Left voice channel"

    # Playback
    MISSING_QUERY = "Must provide a URL to a video or audio"
    SOURCE_ERROR = "Error sourcing track"
    QUEUE_FULL = "Queue is full (max {max_size} tracks)"
    ADDED_SONG = "Added song: {title}"
    NOW_PLAYING = "Now playing: {title}"
    QUEUE_FINISHED = "Queue finished."
    SKIPPED = "Song skipped: {remaining} in queue."
    NOTHING_TO_SKIP = "Nothing to skip."
    QUEUE_CLEARED = "Queue cleared."
    NOTHING_TO_STOP = "Nothing is playing."
    MUTED = "Now muted"
    ALREADY_MUTED = "Already muted"
    UNMUTED = "Unmuted"
    NOT_MUTED = "Not muted"
    ERROR_OCCURRED = "An error occurred: {error}"
    QUEUE_EMPTY = "The queue is empty."
    QUEUE_TITLE = "Queue ({total} tracks)"
    QUEUE_LINE = "`{position}.` {title}"
    QUEUE_MORE = "...and {count} more"

    # Embed Fields
    FIELD_TITLE = "Title:"
    FIELD_ARTIST = "Artist"
    FIELD_DURATION = "Duration"
    FIELD_SPOT = "Spot in queue"

    # Utility
    PONG = "Pong!"
    SHARD_MANAGER_MISSING = "There was a problem getting the shard manager"
    NO_SHARD_FOUND = "No shard found"
    LATENCY = "The shard latency is {latency_ms}ms"
    LATENCY_UNAVAILABLE = "Latency is not available yet"
    COMMAND_COUNTS_TITLE = "Command usage"
    COMMAND_COUNTS_EMPTY = "No commands have been used yet."
    COMMAND_COUNT_LINE = "`{name}`: {count}"

    # Roles
    ROLE_GIVEN = "Gave role `{role}` to `{member}`"
    ROLE_REMOVED = "Removed role `{role}` from `{member}`"
    ROLE_ASK_NAME = "Enter the name of the new role"
    ROLE_CREATED = "Created role {mention}"
    ROLE_ASK_MENTION = "Mention the role to delete"
    ROLE_NOT_FOUND = "Could not find that role"
    ROLE_DELETED = "Deleted role"
    NO_ANSWER = "No answer within {seconds} seconds"

    # Emoji
    EMOJI_ATTACHMENT_REQUIRED = "Attach an image to create the emoji from"
    EMOJI_CREATED = "Created emoji {emoji}"
    EMOJI_REMOVED = "Removed emoji `{name}`"
    EMOJI_RENAMED = "Renamed emoji {emoji} to `{name}`"
    EMOJI_NOT_FOUND = "Could not find that emoji"

    # Dispatch Errors
    RETRY_LATER = "Try this again in {seconds} seconds."
    CHECK_FAILED = "Check {check} failed with error {reason}"
    MISSING_ARGUMENT = "Missing argument: {param_name}"
    INVALID_ARGUMENT = "Invalid argument."
    SERVER_ONLY = "This command can only be used in a server."
    MISSING_PERMISSIONS = "You don't have permission to use this command."
    COMMAND_FAILED = "Command failed. See logs."
