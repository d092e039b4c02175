"""AudioResolver implementation using yt-dlp for URL extraction and keyword search."""

from __future__ import annotations

import asyncio
import logging
import re
import time
from typing import Any, Final, cast

from pydantic import ValidationError
from yt_dlp import YoutubeDL
from yt_dlp.utils import DownloadError, ExtractorError

from guild_voice_bot.application.interfaces.audio_resolver import AudioResolver
from guild_voice_bot.config.settings import AudioSettings
from guild_voice_bot.domain.music.entities import Track
from guild_voice_bot.domain.music.value_objects import TrackId
from guild_voice_bot.domain.shared.exceptions import SourceResolutionError
from guild_voice_bot.domain.shared.messages import ErrorMessages, LogTemplates

from .models import CACHE_MAX_SIZE, LOG_URL_TRUNCATE, CacheEntry, YtDlpOpts, YtDlpTrackInfo

logger = logging.getLogger(__name__)

URL_PATTERNS: Final[list[re.Pattern[str]]] = [
    re.compile(r"^https?://"),
    re.compile(r"^www\."),
]


class YtDlpResolver(AudioResolver):
    """Resolves direct URLs with ``extract_info`` and keywords with ``ytsearch1:``.

    Blocking yt-dlp calls run in a worker thread. URL extractions are cached
    for ``AudioSettings.cache_ttl_seconds``.
    """

    def __init__(self, settings: AudioSettings | None = None) -> None:
        self._settings = settings or AudioSettings()
        self._opts = YtDlpOpts(format=self._settings.ytdlp_format)
        self._cache: dict[str, CacheEntry] = {}

    def is_url(self, query: str) -> bool:
        return any(pattern.search(query) for pattern in URL_PATTERNS)

    async def resolve(self, query: str) -> Track:
        query = query.strip()
        if not query:
            raise SourceResolutionError(query, ErrorMessages.NOTHING_FOUND)

        if self.is_url(query):
            info = await asyncio.to_thread(self._extract_info_sync, query)
        else:
            info = await asyncio.to_thread(self._search_sync, query)
        return self._info_to_track(query, info)

    # ── Blocking helpers (worker thread) ────────────────────────────

    def _extract_info_sync(self, url: str) -> YtDlpTrackInfo:
        now = time.time()
        cached = self._cache.get(url)
        if cached is not None:
            if now - cached.cached_at < self._settings.cache_ttl_seconds:
                logger.debug(LogTemplates.CACHE_HIT_URL, url[:LOG_URL_TRUNCATE])
                return cached.info
            self._cache.pop(url, None)

        data = self._run_ytdlp(url, url)
        if not isinstance(data, dict):
            raise SourceResolutionError(url, ErrorMessages.NOTHING_FOUND)
        if data.get("entries"):
            # Playlists are not queued as a whole; take the first entry
            data = next((e for e in data["entries"] if e), None)
            if data is None:
                raise SourceResolutionError(url, ErrorMessages.NOTHING_FOUND)

        info = self._parse_info(url, data)
        self._store(url, info, now)
        return info

    def _search_sync(self, query: str) -> YtDlpTrackInfo:
        data = self._run_ytdlp(query, f"ytsearch1:{query}")
        entries = data.get("entries") if isinstance(data, dict) else None
        if not isinstance(entries, list):
            raise SourceResolutionError(query, ErrorMessages.NOTHING_FOUND)

        first = next((e for e in entries if e), None)
        if first is None:
            raise SourceResolutionError(query, ErrorMessages.NOTHING_FOUND)
        return self._parse_info(query, first)

    def _run_ytdlp(self, query: str, target: str) -> Any:
        try:
            with YoutubeDL(params=cast(Any, self._opts.model_dump(exclude_none=True))) as ydl:
                return ydl.extract_info(target, download=False)
        except (DownloadError, ExtractorError) as exc:
            logger.warning(LogTemplates.YTDLP_FAILED_EXTRACT_INFO, target[:LOG_URL_TRUNCATE])
            raise SourceResolutionError(query, str(exc)) from exc

    @staticmethod
    def _parse_info(query: str, data: dict[str, Any]) -> YtDlpTrackInfo:
        try:
            return YtDlpTrackInfo.model_validate(dict(data))
        except ValidationError as exc:
            logger.warning(LogTemplates.YTDLP_FAILED_INFO_TO_TRACK)
            raise SourceResolutionError(query, str(exc)) from exc

    def _store(self, url: str, info: YtDlpTrackInfo, now: float) -> None:
        self._cache[url] = CacheEntry(info=info, cached_at=now)
        if len(self._cache) <= CACHE_MAX_SIZE:
            return

        ttl = self._settings.cache_ttl_seconds
        expired = [key for key, entry in self._cache.items() if now - entry.cached_at >= ttl]
        for key in expired:
            self._cache.pop(key, None)
        if expired:
            logger.debug(LogTemplates.CACHE_EXPIRED_CLEANED, len(expired))

    # ── Conversion ──────────────────────────────────────────────────

    def _info_to_track(self, query: str, info: YtDlpTrackInfo) -> Track:
        webpage_url = info.webpage_url or (info.url if info.url and self.is_url(info.url) else None)
        if not webpage_url:
            logger.warning(LogTemplates.YTDLP_NO_URL_IN_INFO_DICT)
            raise SourceResolutionError(query, ErrorMessages.NOTHING_FOUND)

        stream_url = info.stream_url
        if not stream_url:
            logger.warning(LogTemplates.YTDLP_NO_STREAM_URL, info.title)
            raise SourceResolutionError(query, ErrorMessages.NO_STREAM_URL)

        try:
            return Track(
                id=TrackId.from_url(webpage_url),
                title=info.title,
                webpage_url=webpage_url,
                stream_url=stream_url,
                duration_seconds=info.duration,
                thumbnail_url=info.thumbnail,
                artist=info.artist or info.creator,
                uploader=info.uploader or info.channel,
            )
        except ValidationError as exc:
            logger.warning(LogTemplates.YTDLP_FAILED_INFO_TO_TRACK)
            raise SourceResolutionError(query, str(exc)) from exc
