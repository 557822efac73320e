"""
yt_content_extractor — Video metadata and caption transcripts, best effort.

Public API:
    extract_content()           Async one-call interface (URL → ExtractedContent).
    extract()                   Synchronous wrapper around extract_content().
    process_manual_transcript() Wrap a pasted transcript in the same result type.
    parse_video_id()            Parse a YouTube URL or validate a bare video ID.
    fetch_video_metadata()      Best-effort metadata (oEmbed, then yt-dlp).
    parse_caption_markup()      Parse caption markup into timed segments.
    StrategyChain               Ordered transcript strategies with one budget.
    build_strategies()          Instantiate strategies by name.
    ExtractedContent, VideoMetadata, TranscriptSegment, TranscriptStatus

Exception hierarchy (all importable from this package):
    ExtractionError                  Base exception.
    ├── InvalidFormatError           Input isn't a video URL or ID.
    ├── ManualTranscriptError        Pasted transcript missing or too short.
    ├── TranscriptFailure            Terminal strategy-chain failure (absorbed
    │   ├── NoCaptionsAvailableError   by extract_content into placeholder
    │   ├── ExtractionExhaustedError   content, never raised to its caller).
    │   └── ExtractionTimeoutError
    ├── MetadataFetchError           One metadata source failed (absorbed).
    └── InfrastructureError          Upstream unreachable on every path.

Usage:
    from yt_content_extractor import extract
    content = extract("https://www.youtube.com/watch?v=dQw4w9WgXcQ")
    print(content.full_transcript)
"""

from yt_content_extractor.chain import StrategyChain, classify_failure
from yt_content_extractor.config import Settings, get_settings
from yt_content_extractor.errors import (
    ExtractionError,
    ExtractionExhaustedError,
    ExtractionTimeoutError,
    InfrastructureError,
    InvalidFormatError,
    ManualTranscriptError,
    MetadataFetchError,
    NoCaptionsAvailableError,
    TranscriptFailure,
)
from yt_content_extractor.extractor import (
    extract,
    extract_content,
    process_manual_transcript,
)
from yt_content_extractor.markup import parse_caption_markup, parse_json3
from yt_content_extractor.metadata import fetch_video_metadata
from yt_content_extractor.models import (
    ExtractedContent,
    TranscriptSegment,
    TranscriptStatus,
    VideoMetadata,
)
from yt_content_extractor.normalizer import (
    chunk_transcript,
    combine_transcript,
    normalize_segments,
    transcript_duration,
)
from yt_content_extractor.resolver import parse_video_id
from yt_content_extractor.strategies import TranscriptStrategy, build_strategies

__all__ = [
    "extract",
    "extract_content",
    "process_manual_transcript",
    "parse_video_id",
    "fetch_video_metadata",
    "parse_caption_markup",
    "parse_json3",
    "normalize_segments",
    "combine_transcript",
    "transcript_duration",
    "chunk_transcript",
    "StrategyChain",
    "TranscriptStrategy",
    "build_strategies",
    "classify_failure",
    "Settings",
    "get_settings",
    "ExtractedContent",
    "VideoMetadata",
    "TranscriptSegment",
    "TranscriptStatus",
    "ExtractionError",
    "InvalidFormatError",
    "ManualTranscriptError",
    "TranscriptFailure",
    "NoCaptionsAvailableError",
    "ExtractionExhaustedError",
    "ExtractionTimeoutError",
    "MetadataFetchError",
    "InfrastructureError",
]
