#!/usr/bin/env python3
"""Process entry point.

Loads settings, configures logging, checks that the voice toolchain (FFmpeg
and libopus) is present, then wires the container into the bot and runs it
until a signal or a fatal error stops it.
"""

from __future__ import annotations

import ctypes.util
import json
import logging
import logging.config
import shutil
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

import discord

from guild_voice_bot.domain.shared.messages import ErrorMessages, LogTemplates

if TYPE_CHECKING:
    from guild_voice_bot.config.settings import Settings

logger = logging.getLogger(__name__)

_LOGGING_CONFIG_PATH = Path(__file__).resolve().parents[2] / "logging_config.json"
_FALLBACK_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_FALLBACK_DATEFMT = "%Y-%m-%d %H:%M:%S"

EXIT_OK = 0
EXIT_FAILURE = 1


def _read_logging_config() -> dict[str, Any] | None:
    try:
        with open(_LOGGING_CONFIG_PATH) as f:
            return json.load(f)
    except (FileNotFoundError, json.JSONDecodeError):
        return None


def setup_logging(log_level: str = "INFO") -> None:
    """Apply ``logging_config.json``, or a plain console format when it is unusable."""
    level = logging.getLevelNamesMapping().get(log_level.upper(), logging.INFO)

    config = _read_logging_config()
    if config is not None:
        try:
            logging.config.dictConfig(config)
        except ValueError:
            config = None

    if config is None:
        logging.basicConfig(level=level, format=_FALLBACK_FORMAT, datefmt=_FALLBACK_DATEFMT)
        logger.warning(LogTemplates.LOGGING_CONFIG_FALLBACK, _LOGGING_CONFIG_PATH)

    # LOG_LEVEL wins over the level baked into the JSON file
    logging.getLogger().setLevel(level)


def _load_opus() -> bool:
    if discord.opus.is_loaded():
        return True
    library = ctypes.util.find_library("opus")
    if library is None:
        return False
    try:
        discord.opus.load_opus(library)
    except OSError:
        return False
    return discord.opus.is_loaded()


def check_voice_toolchain(ffmpeg: str = "ffmpeg") -> bool:
    """Warn about a missing FFmpeg binary or Opus library.

    The bot still starts without them; non-voice commands keep working and
    playback attempts fail with a ``PlaybackError`` per track.
    """
    ready = True
    if shutil.which(ffmpeg) is None:
        logger.warning(LogTemplates.FFMPEG_NOT_FOUND, ffmpeg)
        ready = False
    if not _load_opus():
        logger.warning(LogTemplates.OPUS_NOT_LOADED)
        ready = False
    return ready


def _run_bot(settings: Settings, token: str) -> int:
    from guild_voice_bot.config.container import create_container
    from guild_voice_bot.infrastructure.discord.bot import create_bot

    bot = create_bot(create_container(settings), settings)

    try:
        logger.info(LogTemplates.BOT_STARTING_RUN)
        bot.run_with_graceful_shutdown(token, shutdown_timeout=settings.voice.shutdown_timeout_s)
    except KeyboardInterrupt:
        logger.info(LogTemplates.BOT_KEYBOARD_INTERRUPT)
    except Exception as e:
        logger.exception(LogTemplates.BOT_FATAL_ERROR, e)
        return EXIT_FAILURE
    else:
        logger.info(LogTemplates.BOT_STOPPED)
    return EXIT_OK


def main() -> int:
    from guild_voice_bot.config.settings import get_settings

    settings = get_settings()
    setup_logging(settings.log_level)

    token = settings.discord.token.get_secret_value()
    if not token:
        logger.error(ErrorMessages.DISCORD_TOKEN_REQUIRED)
        return EXIT_FAILURE

    logger.info(LogTemplates.BOT_STARTING.format(environment=settings.environment))
    check_voice_toolchain()
    return _run_bot(settings, token)


def cli() -> None:
    """Console script entry point (used by pyproject.toml [project.scripts])."""
    sys.exit(main())


if __name__ == "__main__":
    cli()  # pragma: no cover
