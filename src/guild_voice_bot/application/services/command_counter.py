"""In-memory usage counter for prefix commands."""

from __future__ import annotations

from collections import Counter

from ...domain.shared.types import NonEmptyStr


class CommandCounter:
    """Counts invocations per command name for the lifetime of the process."""

    def __init__(self) -> None:
        self._counts: Counter[str] = Counter()

    def increment(self, name: NonEmptyStr) -> int:
        self._counts[name] += 1
        return self._counts[name]

    def most_common(self) -> list[tuple[str, int]]:
        return self._counts.most_common()
