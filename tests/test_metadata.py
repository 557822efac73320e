"""
test_metadata.py — Tests for the video metadata fetching module.

yt_dlp is patched at the module level and oEmbed goes through
httpx.MockTransport, so nothing touches the network.  Covers each source on
its own, the oEmbed -> yt-dlp -> placeholder fallback, and the timeout.
"""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock, patch

import httpx
import pytest
from structlog.testing import capture_logs
from yt_dlp.utils import DownloadError

from yt_content_extractor.errors import MetadataFetchError
from yt_content_extractor.metadata import (
    fetch_oembed_metadata,
    fetch_video_metadata,
    fetch_ytdlp_metadata,
    format_duration,
    placeholder_metadata,
    thumbnail_url,
)
from yt_content_extractor.models import VideoMetadata

from conftest import OEMBED_PAYLOAD

VIDEO_ID = "dQw4w9WgXcQ"


# ---------------------------------------------------------------------------
# Helpers — sample yt-dlp info dicts
# ---------------------------------------------------------------------------

def _make_info_dict(**overrides) -> dict:
    """
    Build a realistic yt-dlp info_dict with sensible defaults.

    Any key can be overridden via keyword arguments.
    """
    base = {
        "id": VIDEO_ID,
        "title": "Rick Astley - Never Gonna Give You Up",
        "channel": "Rick Astley",
        "uploader": "RickAstleyVEVO",
        "upload_date": "20091025",
        "duration": 213,
        "view_count": 1_500_000_000,
        "description": "The official video. " * 50,
        "thumbnails": [
            {"url": "https://i.ytimg.com/vi/dQw4w9WgXcQ/default.jpg"},
            {"id": "no-url"},
        ],
    }
    base.update(overrides)
    return base


def _wire_ydl(mock_yt_dlp: MagicMock, info=None, error: Exception | None = None) -> MagicMock:
    """Make mock_yt_dlp.YoutubeDL() a context manager returning canned info."""
    mock_yt_dlp.utils.DownloadError = DownloadError
    mock_ydl_instance = MagicMock()
    if error is not None:
        mock_ydl_instance.extract_info.side_effect = error
    else:
        mock_ydl_instance.extract_info.return_value = info
    mock_yt_dlp.YoutubeDL.return_value.__enter__ = MagicMock(return_value=mock_ydl_instance)
    mock_yt_dlp.YoutubeDL.return_value.__exit__ = MagicMock(return_value=False)
    return mock_ydl_instance


def _oembed_ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json=OEMBED_PAYLOAD)


def _oembed_down(request: httpx.Request) -> httpx.Response:
    return httpx.Response(404, text="Not Found")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class TestHelpers:

    @pytest.mark.parametrize("seconds, expected", [
        (213, "3:33"),
        (3723, "1:02:03"),
        ("90", "1:30"),
        (0, "Unknown"),
        (-5, "Unknown"),
        (None, "Unknown"),
        ("long", "Unknown"),
    ])
    def test_format_duration(self, seconds, expected: str) -> None:
        assert format_duration(seconds) == expected

    def test_placeholder(self) -> None:
        meta = placeholder_metadata(VIDEO_ID)
        assert meta.title == "Unknown Title"
        assert meta.author == "Unknown Author"
        assert meta.duration == "Unknown"
        assert meta.thumbnails == (thumbnail_url(VIDEO_ID),)
        assert meta.thumbnails[0] == "https://i.ytimg.com/vi/dQw4w9WgXcQ/hqdefault.jpg"
        assert meta.is_placeholder


# ---------------------------------------------------------------------------
# oEmbed source
# ---------------------------------------------------------------------------

class TestOembedSource:

    @pytest.mark.asyncio
    async def test_success(self, settings, mock_client) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return _oembed_ok(request)

        async with mock_client(handler) as client:
            meta = await fetch_oembed_metadata(VIDEO_ID, client, settings)

        assert meta.title == "Rick Astley - Never Gonna Give You Up"
        assert meta.author == "Rick Astley"
        assert meta.duration == "Unknown"
        assert meta.thumbnails == ("https://i.ytimg.com/vi/dQw4w9WgXcQ/hqdefault.jpg",)
        assert meta.source == "oembed"
        assert seen[0].url.params["url"] == f"https://www.youtube.com/watch?v={VIDEO_ID}"
        assert seen[0].url.params["format"] == "json"

    @pytest.mark.asyncio
    async def test_http_error(self, settings, mock_client) -> None:
        async with mock_client(_oembed_down) as client:
            with pytest.raises(MetadataFetchError) as exc_info:
                await fetch_oembed_metadata(VIDEO_ID, client, settings)
        assert VIDEO_ID in exc_info.value.message

    @pytest.mark.asyncio
    async def test_invalid_json(self, settings, mock_client) -> None:
        async with mock_client(lambda request: httpx.Response(200, text="<html>")) as client:
            with pytest.raises(MetadataFetchError):
                await fetch_oembed_metadata(VIDEO_ID, client, settings)


# ---------------------------------------------------------------------------
# yt-dlp source
# ---------------------------------------------------------------------------

class TestYtDlpSource:
    """Tests for fetch_ytdlp_metadata() with mocked yt-dlp."""

    @patch("yt_content_extractor.metadata.yt_dlp")
    def test_full_metadata(self, mock_yt_dlp: MagicMock, settings) -> None:
        """All fields are populated when yt-dlp returns a complete info_dict."""
        _wire_ydl(mock_yt_dlp, info=_make_info_dict())

        result = fetch_ytdlp_metadata(VIDEO_ID, settings)

        assert isinstance(result, VideoMetadata)
        assert result.title == "Rick Astley - Never Gonna Give You Up"
        assert result.author == "Rick Astley"
        assert result.duration == "3:33"
        assert result.views == "1500000000"
        assert result.upload_date == "2009-10-25"
        assert len(result.description) == 500
        assert result.thumbnails == ("https://i.ytimg.com/vi/dQw4w9WgXcQ/default.jpg",)
        assert result.source == "yt-dlp"

    @patch("yt_content_extractor.metadata.yt_dlp")
    def test_falls_back_to_uploader(self, mock_yt_dlp: MagicMock, settings) -> None:
        """author falls back to 'uploader' when the 'channel' key is missing."""
        info = _make_info_dict()
        del info["channel"]
        _wire_ydl(mock_yt_dlp, info=info)

        assert fetch_ytdlp_metadata(VIDEO_ID, settings).author == "RickAstleyVEVO"

    @patch("yt_content_extractor.metadata.yt_dlp")
    def test_missing_optional_fields(self, mock_yt_dlp: MagicMock, settings) -> None:
        """Livestreams and similar lack duration, date and thumbnails."""
        _wire_ydl(mock_yt_dlp, info=_make_info_dict(
            duration=None, upload_date=None, view_count=None, description="", thumbnails=None,
        ))

        result = fetch_ytdlp_metadata(VIDEO_ID, settings)

        assert result.duration == "Unknown"
        assert result.upload_date is None
        assert result.views is None
        assert result.description is None
        assert result.thumbnails == (thumbnail_url(VIDEO_ID),)

    @patch("yt_content_extractor.metadata.yt_dlp")
    def test_download_error_raises_metadata_fetch_error(self, mock_yt_dlp: MagicMock, settings) -> None:
        """yt-dlp DownloadError is wrapped in MetadataFetchError."""
        _wire_ydl(mock_yt_dlp, error=DownloadError("Video unavailable"))

        with pytest.raises(MetadataFetchError) as exc_info:
            fetch_ytdlp_metadata(VIDEO_ID, settings)

        assert VIDEO_ID in exc_info.value.message
        assert exc_info.value.http_status == 502

    @patch("yt_content_extractor.metadata.yt_dlp")
    def test_none_info_raises_metadata_fetch_error(self, mock_yt_dlp: MagicMock, settings) -> None:
        """extract_info returning None raises MetadataFetchError."""
        _wire_ydl(mock_yt_dlp, info=None)

        with pytest.raises(MetadataFetchError) as exc_info:
            fetch_ytdlp_metadata(VIDEO_ID, settings)

        assert "no info" in exc_info.value.message.lower()


# ---------------------------------------------------------------------------
# fetch_video_metadata: fallback and timeout
# ---------------------------------------------------------------------------

class TestFetchVideoMetadata:

    @pytest.mark.asyncio
    @patch("yt_content_extractor.metadata.yt_dlp")
    async def test_oembed_first(self, mock_yt_dlp: MagicMock, settings, mock_client) -> None:
        _wire_ydl(mock_yt_dlp, info=_make_info_dict())

        async with mock_client(_oembed_ok) as client:
            meta = await fetch_video_metadata(VIDEO_ID, client=client, settings=settings)

        assert meta.source == "oembed"
        mock_yt_dlp.YoutubeDL.assert_not_called()

    @pytest.mark.asyncio
    @patch("yt_content_extractor.metadata.yt_dlp")
    async def test_falls_back_to_ytdlp(self, mock_yt_dlp: MagicMock, settings, mock_client) -> None:
        _wire_ydl(mock_yt_dlp, info=_make_info_dict())

        with capture_logs() as logs:
            async with mock_client(_oembed_down) as client:
                meta = await fetch_video_metadata(VIDEO_ID, client=client, settings=settings)

        assert meta.source == "yt-dlp"
        assert meta.duration == "3:33"
        fallback = [e for e in logs if e["event"] == "metadata_fallback"]
        assert [e["source"] for e in fallback] == ["oembed"]

    @pytest.mark.asyncio
    @patch("yt_content_extractor.metadata.yt_dlp")
    async def test_placeholder_when_all_sources_fail(
        self, mock_yt_dlp: MagicMock, settings, mock_client,
    ) -> None:
        _wire_ydl(mock_yt_dlp, error=DownloadError("Unable to download webpage"))

        async with mock_client(_oembed_down) as client:
            meta = await fetch_video_metadata(VIDEO_ID, client=client, settings=settings)

        assert meta == placeholder_metadata(VIDEO_ID)

    @pytest.mark.asyncio
    @patch("yt_content_extractor.metadata.yt_dlp")
    async def test_unexpected_error_is_absorbed(
        self, mock_yt_dlp: MagicMock, settings, mock_client,
    ) -> None:
        _wire_ydl(mock_yt_dlp, error=RuntimeError("extractor crashed"))

        with capture_logs() as logs:
            async with mock_client(_oembed_down) as client:
                meta = await fetch_video_metadata(VIDEO_ID, client=client, settings=settings)

        assert meta.is_placeholder
        assert any(e["event"] == "metadata_unavailable" for e in logs)

    @pytest.mark.asyncio
    async def test_timeout_yields_placeholder(self, mock_client) -> None:
        from yt_content_extractor.config import Settings

        async def slow(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(5)
            return httpx.Response(200, json=OEMBED_PAYLOAD)

        quick = Settings(metadata_timeout=0.05, http_timeout=10.0)
        with capture_logs() as logs:
            async with mock_client(slow) as client:
                meta = await fetch_video_metadata(VIDEO_ID, client=client, settings=quick)

        assert meta.is_placeholder
        assert any(e["event"] == "metadata_timeout" for e in logs)
