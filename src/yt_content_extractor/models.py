"""
models.py — Value objects passed between the extraction components.

All instances are created per request and discarded afterwards; nothing here
holds shared state.  to_dict() methods produce the camelCase JSON shape the
API layer and downstream consumers expect.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class TimeUnit(Enum):
    """Unit a strategy reports its cue timings in.  Value is ms per unit."""
    SECONDS = 1000
    MILLISECONDS = 1


class FailureClass(Enum):
    """Classification of a single strategy failure."""
    NO_CAPTIONS = "no_captions"
    TRANSPORT = "transport"
    TIMEOUT = "timeout"
    EMPTY = "empty"
    GENERIC = "generic"


class TranscriptStatus(Enum):
    """Terminal outcome of the transcript branch, carried in the result."""
    AVAILABLE = "available"
    NO_CAPTIONS = "no_captions"
    EXHAUSTED = "exhausted"
    TIMEOUT = "timeout"
    MANUAL = "manual"


# ---------------------------------------------------------------------------
# Metadata and segments
# ---------------------------------------------------------------------------

UNKNOWN_TITLE = "Unknown Title"
UNKNOWN_AUTHOR = "Unknown Author"
UNKNOWN_DURATION = "Unknown"


@dataclass(frozen=True)
class VideoMetadata:
    """
    Lightweight descriptive metadata for one video.

    Every field has a usable value even when retrieval failed, so callers
    never need to null-check.

    Attributes:
        title:       Video title, or "Unknown Title".
        author:      Channel / uploader name, or "Unknown Author".
        duration:    Human-readable length ("4:13", "1:02:03") or "Unknown".
        views:       View count as a string, when the source provides it.
        upload_date: ISO date string (YYYY-MM-DD), when known.
        description: Description truncated to 500 characters, when known.
        thumbnails:  Thumbnail URLs, possibly empty.
        source:      Which source produced the value: "oembed", "yt-dlp",
                     "manual" or "placeholder".
    """
    title: str = UNKNOWN_TITLE
    author: str = UNKNOWN_AUTHOR
    duration: str = UNKNOWN_DURATION
    views: str | None = None
    upload_date: str | None = None
    description: str | None = None
    thumbnails: tuple[str, ...] = ()
    source: str = "placeholder"

    @property
    def is_placeholder(self) -> bool:
        return self.source == "placeholder"

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "title": self.title,
            "author": self.author,
            "duration": self.duration,
        }
        if self.views is not None:
            data["views"] = self.views
        if self.upload_date is not None:
            data["uploadDate"] = self.upload_date
        if self.description is not None:
            data["description"] = self.description
        data["thumbnails"] = list(self.thumbnails)
        return data


@dataclass(frozen=True)
class TranscriptSegment:
    """One timed caption cue.  Timings are integer milliseconds."""
    text: str
    offset_ms: int
    duration_ms: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "offset": self.offset_ms,
            "duration": self.duration_ms,
        }


@dataclass(frozen=True)
class ExtractedContent:
    """
    The facade's result.

    full_transcript is the space-joined segment text when segments exist,
    otherwise a human-readable placeholder explaining why there is none.
    transcript_status records which of those two cases applies.
    """
    video_id: str
    url: str
    metadata: VideoMetadata
    segments: tuple[TranscriptSegment, ...]
    full_transcript: str
    transcript_status: TranscriptStatus = TranscriptStatus.AVAILABLE
    summary: str | None = None

    @property
    def has_transcript(self) -> bool:
        return bool(self.segments)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "videoId": self.video_id,
            "url": self.url,
            "metadata": self.metadata.to_dict(),
            "transcript": [segment.to_dict() for segment in self.segments],
            "fullTranscript": self.full_transcript,
            "transcriptStatus": self.transcript_status.value,
        }
        if self.summary is not None:
            data["summary"] = self.summary
        return data


# ---------------------------------------------------------------------------
# Strategy outcomes (internal)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StrategyOutcome:
    """Result of one strategy attempt; see the three subclasses below."""

    @property
    def succeeded(self) -> bool:
        return False


@dataclass(frozen=True)
class Success(StrategyOutcome):
    segments: tuple[TranscriptSegment, ...] = ()

    @property
    def succeeded(self) -> bool:
        return True


@dataclass(frozen=True)
class EmptyResult(StrategyOutcome):
    detail: str = "strategy returned no usable segments"


@dataclass(frozen=True)
class Failure(StrategyOutcome):
    failure_class: FailureClass = FailureClass.GENERIC
    detail: str = ""


@dataclass(frozen=True)
class StrategyFailure:
    """A recorded failure, kept by the chain until it finishes."""
    index: int
    strategy: str
    failure_class: FailureClass
    detail: str = field(default="")
