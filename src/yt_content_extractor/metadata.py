"""
metadata.py — Best-effort descriptive metadata for a video.

Metadata is enrichment only, so fetch_video_metadata() never raises.  It
tries two sources in order:

    1. The oEmbed endpoint: one small JSON request, no API key.  Gives title,
       author and a thumbnail but no duration.
    2. yt-dlp in metadata-only mode: slower, but also returns duration, view
       count, upload date and description.

If both fail, or the metadata timeout expires, the caller gets a placeholder
VideoMetadata with "Unknown" fields and a thumbnail URL derived from the
video ID.
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
import structlog
import yt_dlp

from yt_content_extractor.config import Settings, get_settings
from yt_content_extractor.errors import MetadataFetchError
from yt_content_extractor.models import (
    UNKNOWN_AUTHOR,
    UNKNOWN_DURATION,
    UNKNOWN_TITLE,
    VideoMetadata,
)
from yt_content_extractor.normalizer import format_clock
from yt_content_extractor.resolver import canonical_url
from yt_content_extractor.threads import run_blocking

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

OEMBED_URL = "https://www.youtube.com/oembed"
THUMBNAIL_URL_TEMPLATE = "https://i.ytimg.com/vi/{video_id}/hqdefault.jpg"

_DESCRIPTION_LIMIT = 500


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def thumbnail_url(video_id: str) -> str:
    """Deterministic thumbnail URL for a video ID; needs no network."""
    return THUMBNAIL_URL_TEMPLATE.format(video_id=video_id)


def format_duration(seconds: Any) -> str:
    """Format a length in seconds as M:SS / H:MM:SS, or "Unknown"."""
    try:
        value = int(seconds)
    except (TypeError, ValueError):
        return UNKNOWN_DURATION
    if value <= 0:
        return UNKNOWN_DURATION
    return format_clock(value)


def _format_upload_date(raw: Any) -> str | None:
    """yt-dlp reports upload dates as YYYYMMDD; return YYYY-MM-DD."""
    if not raw:
        return None
    raw = str(raw)
    if len(raw) != 8 or not raw.isdigit():
        return None
    return f"{raw[:4]}-{raw[4:6]}-{raw[6:8]}"


def placeholder_metadata(video_id: str) -> VideoMetadata:
    """
    The value used when no source could be reached.

    Instead of an empty thumbnail list it carries the hqdefault URL derived
    from the video ID.  That needs no network, and the URL resolves for any
    public video.
    """
    return VideoMetadata(
        title=UNKNOWN_TITLE,
        author=UNKNOWN_AUTHOR,
        duration=UNKNOWN_DURATION,
        thumbnails=(thumbnail_url(video_id),),
        source="placeholder",
    )


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------

async def fetch_oembed_metadata(
    video_id: str,
    client: httpx.AsyncClient,
    settings: Settings,
) -> VideoMetadata:
    """
    Fetch title / author / thumbnail from the oEmbed endpoint.

    Raises:
        MetadataFetchError: On any HTTP, transport or JSON problem.
    """
    try:
        response = await client.get(
            OEMBED_URL,
            params={"url": canonical_url(video_id), "format": "json"},
            headers={"User-Agent": settings.user_agent},
            timeout=settings.http_timeout,
        )
        response.raise_for_status()
        data = response.json()
    except (httpx.HTTPError, ValueError) as exc:
        raise MetadataFetchError(video_id, reason=str(exc) or type(exc).__name__) from exc

    if not isinstance(data, dict):
        raise MetadataFetchError(video_id, reason="oEmbed returned no object")

    thumbnail = data.get("thumbnail_url")
    return VideoMetadata(
        title=data.get("title") or UNKNOWN_TITLE,
        author=data.get("author_name") or UNKNOWN_AUTHOR,
        duration=UNKNOWN_DURATION,
        thumbnails=(thumbnail,) if thumbnail else (thumbnail_url(video_id),),
        source="oembed",
    )


def fetch_ytdlp_metadata(video_id: str, settings: Settings) -> VideoMetadata:
    """
    Fetch metadata without downloading media, using yt-dlp.

    Blocking; run it in a worker thread from async code.

    Raises:
        MetadataFetchError: If yt-dlp can't retrieve the video info.
    """
    ydl_opts = {
        "skip_download": True,
        "quiet": True,
        "no_warnings": True,
        "socket_timeout": settings.http_timeout,
    }

    try:
        with yt_dlp.YoutubeDL(ydl_opts) as ydl:
            info = ydl.extract_info(canonical_url(video_id), download=False)
    except yt_dlp.utils.DownloadError as exc:
        raise MetadataFetchError(video_id, reason=str(exc)) from exc

    if info is None:
        raise MetadataFetchError(video_id, reason="yt-dlp returned no info")

    description = info.get("description")
    if description:
        description = description[:_DESCRIPTION_LIMIT]

    views = info.get("view_count")
    thumbnails = tuple(
        t["url"] for t in info.get("thumbnails") or () if isinstance(t, dict) and t.get("url")
    )

    return VideoMetadata(
        title=info.get("title") or UNKNOWN_TITLE,
        author=info.get("channel") or info.get("uploader") or UNKNOWN_AUTHOR,
        duration=format_duration(info.get("duration")),
        views=str(views) if views is not None else None,
        upload_date=_format_upload_date(info.get("upload_date")),
        description=description or None,
        thumbnails=thumbnails or (thumbnail_url(video_id),),
        source="yt-dlp",
    )


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

async def _fetch_with_fallback(
    video_id: str,
    client: httpx.AsyncClient,
    settings: Settings,
    log,
) -> VideoMetadata:
    try:
        return await fetch_oembed_metadata(video_id, client, settings)
    except MetadataFetchError as exc:
        log.info("metadata_fallback", source="oembed", reason=exc.message)

    try:
        return await run_blocking(fetch_ytdlp_metadata, video_id, settings)
    except MetadataFetchError as exc:
        log.warning("metadata_fallback", source="yt-dlp", reason=exc.message)

    return placeholder_metadata(video_id)


async def fetch_video_metadata(
    video_id: str,
    *,
    client: httpx.AsyncClient | None = None,
    settings: Settings | None = None,
    logger=None,
) -> VideoMetadata:
    """
    Fetch metadata for a video.  Never raises.

    Args:
        video_id: A resolved 11-character video ID.
        client:   Shared httpx client; a short-lived one is created if omitted.
        settings: Settings instance; defaults to get_settings().
        logger:   Structured logger; defaults to this module's logger.

    Returns:
        A VideoMetadata.  Its `source` says which source produced it, and is
        "placeholder" when none did.
    """
    settings = settings or get_settings()
    log = (logger or structlog.get_logger(__name__)).bind(video_id=video_id)

    try:
        if client is None:
            async with httpx.AsyncClient(follow_redirects=True) as own_client:
                return await asyncio.wait_for(
                    _fetch_with_fallback(video_id, own_client, settings, log),
                    timeout=settings.metadata_timeout,
                )
        return await asyncio.wait_for(
            _fetch_with_fallback(video_id, client, settings, log),
            timeout=settings.metadata_timeout,
        )
    except asyncio.TimeoutError:
        log.warning("metadata_timeout", timeout=settings.metadata_timeout)
    except Exception as exc:
        # Enrichment must not take the request down with it.
        log.warning("metadata_unavailable", error=f"{type(exc).__name__}: {exc}")

    return placeholder_metadata(video_id)
