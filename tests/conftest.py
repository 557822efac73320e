"""
conftest.py — Shared fixtures and test doubles.

Nothing here touches the network: strategies are replaced by FakeStrategy,
HTTP by httpx.MockTransport, and library clients by unittest.mock doubles.
"""

from __future__ import annotations

from typing import Any, Callable

import httpx
import pytest

from yt_content_extractor.config import Settings
from yt_content_extractor.models import TimeUnit
from yt_content_extractor.strategies import TranscriptStrategy


class FakeStrategy(TranscriptStrategy):
    """A strategy whose fetch() returns canned cues or raises a canned error."""

    def __init__(
        self,
        name: str,
        result: list[Any] | None = None,
        error: Exception | None = None,
        unit: TimeUnit = TimeUnit.SECONDS,
    ) -> None:
        self.name = name
        self.result = result or []
        self.error = error
        self.time_unit = unit
        self.calls = 0

    async def fetch(self, video_id: str) -> list[Any]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.result


async def no_sleep(seconds: float) -> None:
    """Drop-in for asyncio.sleep that returns immediately."""
    return None


@pytest.fixture()
def settings() -> Settings:
    """Settings with no delays, independent of the environment."""
    return Settings(
        attempt_delay=0.0,
        transcript_budget=5.0,
        metadata_timeout=2.0,
        http_timeout=1.0,
        preferred_languages=["en"],
    )


@pytest.fixture()
def mock_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    """Factory for an AsyncClient whose requests go to a handler function."""

    def make(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return make


# Sample caption documents in each markup shape the parser understands.
SRV1_MARKUP = (
    '<?xml version="1.0" encoding="utf-8" ?><transcript>'
    '<text start="0.0" dur="2.5">Hello &amp; welcome</text>'
    '<text start="2.5" dur="1.5">to the show</text>'
    "</transcript>"
)

OEMBED_PAYLOAD = {
    "title": "Rick Astley - Never Gonna Give You Up",
    "author_name": "Rick Astley",
    "thumbnail_url": "https://i.ytimg.com/vi/dQw4w9WgXcQ/hqdefault.jpg",
}
