"""
errors.py — Custom exception hierarchy for yt-content-extractor.

Every exception carries an `http_status` attribute so the FastAPI error
handler can translate library-level errors directly into the correct HTTP
response code without a separate mapping table.

Hierarchy:
    ExtractionError (base, 500)
    ├── InvalidFormatError (400)
    ├── ManualTranscriptError (400)
    ├── TranscriptFailure (502)
    │   ├── NoCaptionsAvailableError (404)
    │   ├── ExtractionExhaustedError (502)
    │   └── ExtractionTimeoutError (504)
    ├── MetadataFetchError (502)
    └── InfrastructureError (503)

Only InvalidFormatError, ManualTranscriptError and InfrastructureError ever
reach a caller of the public facade.  TranscriptFailure subclasses are raised
by the strategy chain and absorbed by the facade into placeholder content;
MetadataFetchError is absorbed inside the metadata module.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from yt_content_extractor.models import StrategyFailure


# ---------------------------------------------------------------------------
# Base exception
# ---------------------------------------------------------------------------

class ExtractionError(Exception):
    """
    Root exception for all extraction errors.

    Attributes:
        message:     Human-readable description of what went wrong.
        http_status: Suggested HTTP status code for the API layer.
    """

    def __init__(self, message: str, http_status: int = 500) -> None:
        super().__init__(message)
        self.message = message
        self.http_status = http_status


# ---------------------------------------------------------------------------
# Caller input errors
# ---------------------------------------------------------------------------

class InvalidFormatError(ExtractionError):
    """
    Raised when no video identifier can be resolved from the input string.

    Raised before any network access so the caller can reject the request
    without partial work.  Maps to HTTP 400.
    """

    def __init__(self, value: str) -> None:
        super().__init__(
            message=f"Invalid YouTube URL format: {value!r}",
            http_status=400,
        )
        self.value = value


class ManualTranscriptError(ExtractionError):
    """Raised when a manually supplied transcript is missing or too short."""

    def __init__(self, message: str) -> None:
        super().__init__(message=message, http_status=400)


# ---------------------------------------------------------------------------
# Terminal transcript-chain failures
# ---------------------------------------------------------------------------

class TranscriptFailure(ExtractionError):
    """
    Base for the terminal outcome of an exhausted strategy chain.

    Attributes:
        video_id: The video the chain was working on.
        failures: Every recorded per-strategy failure, in attempt order.
    """

    def __init__(
        self,
        message: str,
        video_id: str,
        failures: Sequence[StrategyFailure] = (),
        http_status: int = 502,
    ) -> None:
        super().__init__(message=message, http_status=http_status)
        self.video_id = video_id
        self.failures = tuple(failures)


class NoCaptionsAvailableError(TranscriptFailure):
    """
    Raised when at least one strategy reported that the video has no captions.

    This is a permanent condition: retrying will not help, so the caller
    should offer manual transcript input instead.  Maps to HTTP 404.
    """

    def __init__(self, video_id: str, failures: Sequence[StrategyFailure] = ()) -> None:
        super().__init__(
            message=f"No captions available for video: {video_id}",
            video_id=video_id,
            failures=failures,
            http_status=404,
        )


class ExtractionExhaustedError(TranscriptFailure):
    """
    Raised when every strategy failed for technical reasons.

    Transient by nature (blocked requests, format drift, network trouble),
    so a later retry may succeed.  Maps to HTTP 502.
    """

    def __init__(self, video_id: str, failures: Sequence[StrategyFailure] = ()) -> None:
        failures = tuple(failures)
        super().__init__(
            message=(
                f"All {len(failures)} transcript strategies failed for video: {video_id}"
            ),
            video_id=video_id,
            failures=failures,
            http_status=502,
        )
        self.attempts = len(failures)


class ExtractionTimeoutError(TranscriptFailure):
    """Raised when the chain's wall-clock budget runs out.  Maps to HTTP 504."""

    def __init__(
        self,
        video_id: str,
        budget: float,
        failures: Sequence[StrategyFailure] = (),
    ) -> None:
        super().__init__(
            message=(
                f"Transcript extraction for video {video_id} "
                f"exceeded its {budget:g}s budget"
            ),
            video_id=video_id,
            failures=failures,
            http_status=504,
        )
        self.budget = budget


# ---------------------------------------------------------------------------
# Upstream / infrastructure errors
# ---------------------------------------------------------------------------

class MetadataFetchError(ExtractionError):
    """
    Raised by a single metadata source (oEmbed or yt-dlp) when it fails.

    Never escapes fetch_video_metadata(): the next source is tried, and the
    placeholder metadata value is the final fallback.
    """

    def __init__(self, video_id: str, reason: str = "") -> None:
        detail = f": {reason}" if reason else ""
        super().__init__(
            message=f"Failed to fetch metadata for video {video_id}{detail}",
            http_status=502,
        )
        self.video_id = video_id


class InfrastructureError(ExtractionError):
    """
    Raised when the upstream platform is unreachable from here altogether.

    Both metadata sources failed and every transcript strategy failed at the
    transport level, so there is nothing useful to return.  Maps to HTTP 503.
    """

    def __init__(self, video_id: str) -> None:
        super().__init__(
            message=f"Upstream unreachable while extracting video: {video_id}",
            http_status=503,
        )
        self.video_id = video_id
