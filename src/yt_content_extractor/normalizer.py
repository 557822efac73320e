"""
normalizer.py — Turn raw strategy output into canonical transcript segments.

Each strategy hands back cue records in its own shape: youtube-transcript-api
snippets expose .text/.start/.duration in seconds, parsed caption markup is
already in milliseconds, and JSON caption events use tStartMs/dDurationMs.
normalize_segments() reads whichever field names are present, scales by the
unit the strategy *declares* (never guessed from magnitudes), decodes the
text, drops cues with no text and sorts by offset.

Also home to the text helpers built on top of a finished segment list:
combine_transcript(), transcript_duration() and chunk_transcript().
"""

from __future__ import annotations

import html
import re
from typing import Any, Iterable, Sequence

from yt_content_extractor.models import TimeUnit, TranscriptSegment

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Field names in priority order.  The first one present on a record wins.
_OFFSET_FIELDS = ("offset", "start", "tStartMs")
_DURATION_FIELDS = ("duration", "dur", "dDurationMs")

_WHITESPACE = re.compile(r"\s+")
_INLINE_TAG = re.compile(r"<[^>]*>")
# Caption styling tags that can arrive entity-escaped inside a cue body.
_ESCAPED_STYLE_TAG = re.compile(r"</?(?:font|span|br|[sciubp])\b[^>]*>", re.IGNORECASE)
_LEFTOVER_ENTITY = re.compile(r"&(?:#\d+|#x[0-9a-fA-F]+|[a-zA-Z]+);")
_SENTENCE_BREAK = re.compile(r"[.!?]+")


# ---------------------------------------------------------------------------
# Field access
# ---------------------------------------------------------------------------

def _read_field(record: Any, names: Sequence[str]) -> Any:
    """Return the first populated field of *record* among *names*."""
    for name in names:
        if isinstance(record, dict):
            value = record.get(name)
        else:
            value = getattr(record, name, None)
        if value is not None and value != "":
            return value
    return None


def _to_millis(value: Any, unit: TimeUnit) -> int:
    """Convert a raw timing value to non-negative integer milliseconds."""
    if value is None:
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if number != number or number < 0:  # NaN or negative
        return 0
    return int(round(number * unit.value))


def clean_text(text: Any) -> str:
    """Collapse runs of whitespace to one space and trim."""
    if text is None:
        return ""
    return _WHITESPACE.sub(" ", str(text)).strip()


def decode_caption_text(text: Any) -> str:
    """
    Decode one cue body into plain text.

    Un-escapes character entities (the five standard ones plus &nbsp;,
    &#160;, &#47; and friends), strips inline markup such as <font> or <s>,
    collapses whitespace and trims.  Bodies are often escaped twice by the
    upstream (&amp;#39;), so a second un-escape pass runs when entities are
    still present after the first.

    Styling tags that arrive escaped (&lt;font&gt;) are stripped too; any
    other decoded "<" or ">" stays as literal text ("5 &lt; 6" -> "5 < 6").
    """
    if not text:
        return ""

    decoded = _INLINE_TAG.sub(" ", str(text))
    decoded = html.unescape(decoded)
    if _LEFTOVER_ENTITY.search(decoded):
        decoded = html.unescape(decoded)
    # Escaped styling (&lt;font&gt;) only becomes a tag after un-escaping.
    # Any other "<" or ">" is literal text.
    decoded = _ESCAPED_STYLE_TAG.sub(" ", decoded)
    return clean_text(decoded.replace("\xa0", " "))


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------

def normalize_segments(
    raw: Iterable[Any],
    unit: TimeUnit = TimeUnit.SECONDS,
) -> list[TranscriptSegment]:
    """
    Build canonical TranscriptSegments from raw cue records.

    Args:
        raw:  Dicts or objects carrying text plus some offset/duration fields.
        unit: The timing unit the producing strategy declares.

    Returns:
        Segments with non-empty text, sorted by non-decreasing offset.  The
        sort is stable, so cues sharing an offset keep their source order.
        Overlapping cues are kept as-is.
    """
    segments: list[TranscriptSegment] = []

    for record in raw:
        if isinstance(record, TranscriptSegment):
            # Already canonical (e.g. produced by the markup parser).
            text = clean_text(record.text)
            if text:
                segments.append(
                    TranscriptSegment(text, max(record.offset_ms, 0), max(record.duration_ms, 0))
                )
            continue

        text = decode_caption_text(_read_field(record, ("text", "utf8")))
        if not text:
            continue

        segments.append(TranscriptSegment(
            text=text,
            offset_ms=_to_millis(_read_field(record, _OFFSET_FIELDS), unit),
            duration_ms=_to_millis(_read_field(record, _DURATION_FIELDS), unit),
        ))

    segments.sort(key=lambda segment: segment.offset_ms)
    return segments


def combine_transcript(segments: Iterable[TranscriptSegment]) -> str:
    """
    Join segment text with single spaces into one transcript string.

    Re-running this on its own output segments yields the same string.
    """
    return clean_text(" ".join(segment.text for segment in segments))


# ---------------------------------------------------------------------------
# Presentation helpers
# ---------------------------------------------------------------------------

def format_clock(total_seconds: int) -> str:
    """Format whole seconds as M:SS, or H:MM:SS from one hour up."""
    total_seconds = max(int(total_seconds), 0)
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


def transcript_duration(segments: Sequence[TranscriptSegment]) -> str:
    """
    Length of the transcript, measured to the end of the last segment.

    Returns "0:00" for an empty transcript.
    """
    if not segments:
        return "0:00"
    last = segments[-1]
    return format_clock(round((last.offset_ms + last.duration_ms) / 1000))


def chunk_transcript(full_transcript: str, max_chunk_length: int = 2000) -> list[str]:
    """
    Split a transcript into chunks of at most *max_chunk_length* characters.

    Splits on sentence punctuation and packs whole sentences greedily.  A
    single sentence longer than the limit becomes its own chunk.
    """
    if len(full_transcript) <= max_chunk_length:
        return [full_transcript]

    chunks: list[str] = []
    current = ""

    for sentence in _SENTENCE_BREAK.split(full_transcript):
        sentence = sentence.strip()
        if not sentence:
            continue

        candidate = f"{current}. {sentence}" if current else sentence
        if len(candidate) <= max_chunk_length:
            current = candidate
        else:
            if current:
                chunks.append(current.strip())
            current = sentence

    if current:
        chunks.append(current.strip())

    return [chunk for chunk in chunks if chunk]
