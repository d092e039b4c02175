"""Date/time helpers.

All timestamps in the domain are timezone-aware UTC datetimes.
"""

from __future__ import annotations

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Preferred replacement for `datetime.now(UTC)`."""
    return datetime.now(UTC)
