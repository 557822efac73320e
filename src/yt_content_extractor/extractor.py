"""
extractor.py — Public entry point: URL in, ExtractedContent out.

extract_content() resolves the input, then runs two branches concurrently
and joins them:

    metadata     fetch_video_metadata(), never fails
    transcript   StrategyChain.extract_transcript(), may fail

A transcript failure of any kind does not fail the call.  The result then
carries no segments, a transcript_status naming the failure, and a
placeholder full_transcript written as prose (title, author, duration and
instructions for supplying a transcript by hand), because downstream content
generation consumes full_transcript as ordinary text.

Only two errors reach the caller:

    InvalidFormatError    the input isn't a recognisable video reference;
                          raised before any network access
    InfrastructureError   neither metadata nor any transcript transport
                          could reach the upstream at all

process_manual_transcript() builds the same result type from text the user
pasted in, for when no captions can be fetched.
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
import structlog

from yt_content_extractor.chain import StrategyChain
from yt_content_extractor.config import Settings, get_settings
from yt_content_extractor.errors import (
    ExtractionTimeoutError,
    InfrastructureError,
    ManualTranscriptError,
    NoCaptionsAvailableError,
    TranscriptFailure,
)
from yt_content_extractor.metadata import fetch_video_metadata
from yt_content_extractor.models import (
    UNKNOWN_AUTHOR,
    UNKNOWN_DURATION,
    ExtractedContent,
    FailureClass,
    TranscriptSegment,
    TranscriptStatus,
    VideoMetadata,
)
from yt_content_extractor.normalizer import combine_transcript
from yt_content_extractor.resolver import canonical_url, parse_video_id
from yt_content_extractor.strategies import build_strategies

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MANUAL_VIDEO_ID = "manual-input"
MANUAL_URL = "manual://transcript-input"
MANUAL_TITLE = "Manual Transcript Input"
MIN_MANUAL_TRANSCRIPT_LENGTH = 50

_NO_CAPTIONS_EXPLANATION = (
    "Captions are disabled or not available for this video, so no transcript "
    "could be retrieved. You can still generate content based on the title and "
    "description, but transcript-based content generation won't be available."
)

_TECHNICAL_EXPLANATION = (
    "The transcript could not be retrieved right now because of a temporary "
    "technical problem while contacting YouTube. Trying again in a few minutes "
    "may work; otherwise you can paste the transcript in yourself."
)

_MANUAL_STEPS = """To add the transcript manually:
1. Open the video on YouTube and click "...more" below the title.
2. Choose "Show transcript" to open the transcript panel.
3. Select all of the transcript text and copy it.
4. Paste it into the manual transcript input and submit it.

For better automatic results, try videos with:
• Auto-generated captions enabled
• Manual subtitles/closed captions
• Educational or tutorial content (typically has better caption availability)"""


# ---------------------------------------------------------------------------
# Placeholder content
# ---------------------------------------------------------------------------

def transcript_status_for(error: TranscriptFailure) -> TranscriptStatus:
    """Map a terminal chain error onto the status carried in the result."""
    if isinstance(error, NoCaptionsAvailableError):
        return TranscriptStatus.NO_CAPTIONS
    if isinstance(error, ExtractionTimeoutError):
        return TranscriptStatus.TIMEOUT
    return TranscriptStatus.EXHAUSTED


def build_placeholder_transcript(metadata: VideoMetadata, status: TranscriptStatus) -> str:
    """
    Prose stand-in for a transcript that could not be obtained.

    Names the video, explains why there is no transcript (captions missing
    vs. a technical failure) and lists the steps for adding one by hand.
    """
    explanation = (
        _NO_CAPTIONS_EXPLANATION
        if status is TranscriptStatus.NO_CAPTIONS
        else _TECHNICAL_EXPLANATION
    )
    return (
        "[No transcript available for this video]\n\n"
        f"Video Title: {metadata.title}\n"
        f"Author: {metadata.author}\n"
        f"Duration: {metadata.duration or UNKNOWN_DURATION}\n\n"
        f"{explanation}\n\n"
        f"{_MANUAL_STEPS}"
    )


def build_placeholder_summary(metadata: VideoMetadata) -> str:
    return (
        f'Video: "{metadata.title}" by {metadata.author}. No transcript available, '
        "but you can still generate content based on the title and video metadata."
    )


# ---------------------------------------------------------------------------
# Facade
# ---------------------------------------------------------------------------

def _is_unreachable(metadata: VideoMetadata, error: TranscriptFailure) -> bool:
    """True when nothing at all got through to the upstream."""
    return (
        metadata.is_placeholder
        and bool(error.failures)
        and all(f.failure_class is FailureClass.TRANSPORT for f in error.failures)
    )


async def _transcript_branch(
    chain: StrategyChain, video_id: str
) -> list[TranscriptSegment] | TranscriptFailure:
    # The terminal error is returned, not raised, so gather() never cancels
    # the metadata branch because of it.
    try:
        return await chain.extract_transcript(video_id)
    except TranscriptFailure as exc:
        return exc


async def extract_content(
    url_or_id: str,
    *,
    settings: Settings | None = None,
    chain: StrategyChain | None = None,
    client: httpx.AsyncClient | None = None,
    logger=None,
) -> ExtractedContent:
    """
    Extract metadata and a transcript for one video.

    Args:
        url_or_id: A video URL in any accepted form, or a bare video ID.
        settings:  Settings instance; defaults to get_settings().
        chain:     Strategy chain to use; built from settings when omitted.
        client:    Shared httpx client; a short-lived one is created if omitted.
        logger:    Structured logger passed down to every component.

    Returns:
        An ExtractedContent.  When no transcript could be obtained, segments
        is empty and full_transcript holds placeholder prose.

    Raises:
        InvalidFormatError:   If url_or_id can't be resolved.
        InfrastructureError:  If the upstream was unreachable on every path.
    """
    video_id = parse_video_id(url_or_id)
    settings = settings or get_settings()
    log = (logger or structlog.get_logger(__name__)).bind(video_id=video_id)

    if client is None:
        async with httpx.AsyncClient(follow_redirects=True) as own_client:
            return await _extract(video_id, settings, chain, own_client, log)
    return await _extract(video_id, settings, chain, client, log)


async def _extract(
    video_id: str,
    settings: Settings,
    chain: StrategyChain | None,
    client: httpx.AsyncClient,
    log,
) -> ExtractedContent:
    if chain is None:
        chain = StrategyChain(
            build_strategies(settings.strategy_order, client=client, settings=settings),
            attempt_delay=settings.attempt_delay,
            budget=settings.transcript_budget,
            logger=log,
        )

    log.info("extraction_started", strategies=chain.strategy_names)
    metadata, transcript = await asyncio.gather(
        fetch_video_metadata(video_id, client=client, settings=settings, logger=log),
        _transcript_branch(chain, video_id),
    )

    if not isinstance(transcript, TranscriptFailure) and transcript:
        log.info("extraction_finished", segments=len(transcript), metadata_source=metadata.source)
        return ExtractedContent(
            video_id=video_id,
            url=canonical_url(video_id),
            metadata=metadata,
            segments=tuple(transcript),
            full_transcript=combine_transcript(transcript),
            transcript_status=TranscriptStatus.AVAILABLE,
        )

    if isinstance(transcript, TranscriptFailure):
        if _is_unreachable(metadata, transcript):
            log.error("upstream_unreachable", attempts=len(transcript.failures))
            raise InfrastructureError(video_id) from transcript
        status = transcript_status_for(transcript)
    else:
        # A chain that "succeeded" with nothing is treated as exhausted.
        status = TranscriptStatus.EXHAUSTED

    log.warning("placeholder_transcript", status=status.value, metadata_source=metadata.source)
    return ExtractedContent(
        video_id=video_id,
        url=canonical_url(video_id),
        metadata=metadata,
        segments=(),
        full_transcript=build_placeholder_transcript(metadata, status),
        transcript_status=status,
        summary=build_placeholder_summary(metadata),
    )


def extract(url_or_id: str, **kwargs: Any) -> ExtractedContent:
    """Synchronous wrapper around extract_content() for scripts and the CLI."""
    return asyncio.run(extract_content(url_or_id, **kwargs))


# ---------------------------------------------------------------------------
# Manual transcript input
# ---------------------------------------------------------------------------

def process_manual_transcript(
    transcript: str,
    *,
    title: str | None = None,
    author: str | None = None,
) -> ExtractedContent:
    """
    Wrap a user-supplied transcript in the same result type as an extraction.

    Raises:
        ManualTranscriptError: If the text is missing or shorter than
            MIN_MANUAL_TRANSCRIPT_LENGTH characters after trimming.
    """
    if not transcript or not isinstance(transcript, str):
        raise ManualTranscriptError("Transcript content is required")

    cleaned = transcript.strip()
    if len(cleaned) < MIN_MANUAL_TRANSCRIPT_LENGTH:
        raise ManualTranscriptError(
            "Transcript is too short. Please provide at least "
            f"{MIN_MANUAL_TRANSCRIPT_LENGTH} characters."
        )

    return ExtractedContent(
        video_id=MANUAL_VIDEO_ID,
        url=MANUAL_URL,
        metadata=VideoMetadata(
            title=title or MANUAL_TITLE,
            author=author or UNKNOWN_AUTHOR,
            duration=UNKNOWN_DURATION,
            source="manual",
        ),
        segments=(TranscriptSegment(text=cleaned, offset_ms=0, duration_ms=0),),
        full_transcript=cleaned,
        transcript_status=TranscriptStatus.MANUAL,
    )
