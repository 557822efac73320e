"""
markup.py — Parse upstream caption payloads into timed segments.

The caption endpoints are undocumented and the markup they return is not
stable between calls or transports.  The same content (a list of timed cues)
shows up as:

    <text start="1.2" dur="2.5">Hello &amp; welcome</text>       srv1 / legacy
    <text start="1.2" duration="2.5">Hello</text>                 older variant
    <text start="1.2">Hello</text>  or  <text start="1.2"/>       no duration
    <p t="1200" d="2500"><s>Hello</s></p>                         srv3
    <text>Hello</text>                                            no timing

The shape is chosen per document: timed <text> cues first, then srv3
paragraphs, then bare <text> bodies.  Once a document has timed cues every
one of them is kept, and a cue without a duration attribute gets 0 (srv1
often drops "dur" on the final cue).  parse_caption_markup() never raises:
anything it can't read produces [].

parse_json3() handles the JSON caption format separately since it isn't
markup at all.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any

from yt_content_extractor.models import TimeUnit, TranscriptSegment
from yt_content_extractor.normalizer import decode_caption_text, normalize_segments

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Timing given to each cue when the markup carries none at all.
SYNTHETIC_CUE_MS = 2000

_TEXT_ELEMENT = re.compile(
    r"<text\b(?P<attrs>[^>]*?)(?:/>|>(?P<body>.*?)</text\s*>)",
    re.DOTALL | re.IGNORECASE,
)
_P_ELEMENT = re.compile(
    r"<p\b(?P<attrs>[^>]*?)(?:/>|>(?P<body>.*?)</p\s*>)",
    re.DOTALL | re.IGNORECASE,
)
_ATTRIBUTE = re.compile(r"""([\w:-]+)\s*=\s*(?:"([^"]*)"|'([^']*)')""")


@dataclass(frozen=True)
class _CueShape:
    """One recognised cue layout."""
    name: str
    element: re.Pattern[str]
    start_attr: str
    duration_attrs: tuple[str, ...]
    unit: TimeUnit


# Priority order: timed <text> cues, then srv3 paragraphs.  Within <text>
# cues the duration comes from "dur", else "duration", else 0, decided per
# cue so a document mixing the forms loses none of them.
_SHAPES: tuple[_CueShape, ...] = (
    _CueShape("text-start", _TEXT_ELEMENT, "start", ("dur", "duration"), TimeUnit.SECONDS),
    _CueShape("srv3", _P_ELEMENT, "t", ("d",), TimeUnit.MILLISECONDS),
)


def _attributes(raw_attrs: str) -> dict[str, str]:
    return {
        match.group(1).lower(): match.group(2) if match.group(2) is not None else match.group(3)
        for match in _ATTRIBUTE.finditer(raw_attrs or "")
    }


# ---------------------------------------------------------------------------
# Markup parsing
# ---------------------------------------------------------------------------

def _parse_shape(raw: str, shape: _CueShape) -> list[TranscriptSegment]:
    records: list[dict[str, Any]] = []

    for match in shape.element.finditer(raw):
        attrs = _attributes(match.group("attrs"))
        if shape.start_attr not in attrs:
            continue
        duration = next(
            (attrs[name] for name in shape.duration_attrs if name in attrs), None
        )

        records.append({
            "text": match.group("body"),
            "start": attrs[shape.start_attr],
            "dur": duration,
        })

    return normalize_segments(records, shape.unit)


def _parse_bare_text(raw: str) -> list[TranscriptSegment]:
    """Last resort: take every <text> body and space cues out evenly."""
    segments: list[TranscriptSegment] = []
    for match in _TEXT_ELEMENT.finditer(raw):
        text = decode_caption_text(match.group("body"))
        if text:
            segments.append(TranscriptSegment(
                text=text,
                offset_ms=len(segments) * SYNTHETIC_CUE_MS,
                duration_ms=SYNTHETIC_CUE_MS,
            ))
    return segments


def parse_caption_markup(raw: str | bytes | None) -> list[TranscriptSegment]:
    """
    Extract ordered, decoded segments from caption markup.

    Args:
        raw: The caption document as returned by the upstream endpoint.

    Returns:
        Segments from the first cue shape that produced any text, sorted by
        offset.  An empty list when nothing usable was found.
    """
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    if not isinstance(raw, str) or not raw.strip():
        return []

    for shape in _SHAPES:
        segments = _parse_shape(raw, shape)
        if segments:
            return segments

    return _parse_bare_text(raw)


def parse_json3(raw: str | bytes | None) -> list[TranscriptSegment]:
    """
    Parse the JSON caption format ({"events": [{"tStartMs", "segs": …}]}).

    Returns [] for anything that isn't a well-formed events document.
    """
    if not raw:
        return []
    try:
        document = json.loads(raw)
        events = document["events"]
    except (ValueError, TypeError, KeyError):
        return []
    if not isinstance(events, list):
        return []

    records: list[dict[str, Any]] = []
    for event in events:
        if not isinstance(event, dict) or not isinstance(event.get("segs"), list):
            continue
        body = "".join(
            str(seg.get("utf8", "")) for seg in event["segs"] if isinstance(seg, dict)
        )
        records.append({
            "text": body,
            "tStartMs": event.get("tStartMs"),
            "dDurationMs": event.get("dDurationMs"),
        })

    return normalize_segments(records, TimeUnit.MILLISECONDS)
