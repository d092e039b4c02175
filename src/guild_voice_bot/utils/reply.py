"""Formatting helpers for Discord chat replies."""

from __future__ import annotations

import math
from functools import cache


@cache
def format_duration(seconds: int | float | None) -> str:
    if seconds is None:
        return "–"

    total_seconds = int(seconds)
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    secs = total_seconds % 60

    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


@cache
def truncate(text: str, max_length: int = 90) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 1] + "…"


def format_latency(seconds: float) -> str | None:
    """Render a gateway latency in whole milliseconds.

    discord.py reports ``nan`` or ``inf`` until the first heartbeat ack;
    those come back as ``None``.
    """
    if not math.isfinite(seconds):
        return None
    return str(round(seconds * 1000))
