"""
resolver.py — Turn arbitrary user input into a canonical video ID.

Pure string handling with no network access, so every accepted surface form
is unit-testable.  Patterns are tried in a fixed priority order and the first
match wins:

    1. Watch page URL     …/watch?v=VIDEO_ID (any position in the query)
    2. Short share link   youtu.be/VIDEO_ID
    3. Embed-style URL    youtube.com/embed|shorts|v|live/VIDEO_ID
    4. Bare ID            VIDEO_ID
"""

from __future__ import annotations

import re

from yt_content_extractor.errors import InvalidFormatError

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# The ID must not run on into further ID characters, otherwise a 12-character
# token would be silently truncated to its first 11.
_ID = r"(?P<id>[A-Za-z0-9_-]{11})(?![A-Za-z0-9_-])"

_URL_PATTERNS: list[re.Pattern[str]] = [
    # Watch URL: the host is not checked, only the path shape and "v" param
    re.compile(r"(?:https?://)?[^\s/]*/watch\?(?:[^#\s]*&)?v=" + _ID),
    # Short share URL
    re.compile(r"(?:https?://)?(?:www\.)?youtu\.be/" + _ID),
    # Embed / shorts / old "v/" / live URLs
    re.compile(
        r"(?:https?://)?(?:[\w-]+\.)?youtube(?:-nocookie)?\.com/(?:embed|shorts|v|live)/" + _ID
    ),
]

# A bare video ID is exactly 11 characters from the base64url alphabet.
_BARE_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{11}$")

WATCH_URL_TEMPLATE = "https://www.youtube.com/watch?v={video_id}"


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------

def parse_video_id(url_or_id: str) -> str:
    """
    Extract a video ID from a URL string, or validate a raw 11-char ID.

    Args:
        url_or_id: A watch / short / embed URL or a raw video ID.

    Returns:
        The 11-character video ID.

    Raises:
        InvalidFormatError: If the string doesn't match any accepted form.
    """
    if not isinstance(url_or_id, str):
        raise InvalidFormatError(repr(url_or_id))

    candidate = url_or_id.strip()

    for pattern in _URL_PATTERNS:
        match = pattern.search(candidate)
        if match:
            return match.group("id")

    if _BARE_ID_PATTERN.match(candidate):
        return candidate

    raise InvalidFormatError(url_or_id)


def is_valid_video_reference(value: str) -> bool:
    """Return True when parse_video_id() would accept *value*."""
    try:
        parse_video_id(value)
    except InvalidFormatError:
        return False
    return True


def canonical_url(video_id: str) -> str:
    """Build the canonical watch page URL for a resolved ID."""
    return WATCH_URL_TEMPLATE.format(video_id=video_id)
