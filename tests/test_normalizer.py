"""
test_normalizer.py — Tests for segment normalization and the text helpers.
"""

from __future__ import annotations

import pytest

from yt_content_extractor.models import TimeUnit, TranscriptSegment
from yt_content_extractor.normalizer import (
    chunk_transcript,
    combine_transcript,
    format_clock,
    normalize_segments,
    transcript_duration,
)


class FakeSnippet:
    """Mimics FetchedTranscriptSnippet with .text, .start, .duration."""

    def __init__(self, text: str, start: float, duration: float) -> None:
        self.text = text
        self.start = start
        self.duration = duration


# ---------------------------------------------------------------------------
# normalize_segments
# ---------------------------------------------------------------------------

class TestNormalizeSegments:

    def test_seconds_are_scaled_to_millis(self) -> None:
        raw = [{"text": "hi", "start": 1.5, "duration": 2.25}]
        assert normalize_segments(raw, TimeUnit.SECONDS) == [TranscriptSegment("hi", 1500, 2250)]

    def test_millis_are_kept(self) -> None:
        raw = [{"text": "hi", "offset": 1500, "duration": 2250}]
        assert normalize_segments(raw, TimeUnit.MILLISECONDS) == [TranscriptSegment("hi", 1500, 2250)]

    def test_string_timings(self) -> None:
        raw = [{"text": "hi", "start": "0.0", "dur": "2.5"}]
        assert normalize_segments(raw) == [TranscriptSegment("hi", 0, 2500)]

    def test_objects_with_attributes(self) -> None:
        raw = [FakeSnippet("Hello world", 0.0, 1.5), FakeSnippet("Second line", 1.5, 2.0)]
        assert normalize_segments(raw, TimeUnit.SECONDS) == [
            TranscriptSegment("Hello world", 0, 1500),
            TranscriptSegment("Second line", 1500, 2000),
        ]

    def test_json_caption_field_names(self) -> None:
        raw = [{"utf8": "hey", "tStartMs": 300, "dDurationMs": 700}]
        assert normalize_segments(raw, TimeUnit.MILLISECONDS) == [TranscriptSegment("hey", 300, 700)]

    def test_offset_preferred_over_start(self) -> None:
        raw = [{"text": "x", "offset": 2, "start": 9}]
        assert normalize_segments(raw)[0].offset_ms == 2000

    def test_entities_decoded(self) -> None:
        raw = [{"text": "Hello &amp; welcome", "start": 0, "duration": 1}]
        assert normalize_segments(raw)[0].text == "Hello & welcome"

    def test_escaped_comparison_signs_are_literal(self) -> None:
        raw = [{"text": "5 &lt; 6 and 7 &gt; 4", "start": 0, "duration": 1}]
        assert normalize_segments(raw)[0].text == "5 < 6 and 7 > 4"

    def test_empty_text_dropped(self) -> None:
        raw = [
            {"text": "", "start": 0},
            {"text": "   ", "start": 1},
            {"text": None, "start": 2},
            {"start": 3},
            {"text": "kept", "start": 4},
        ]
        assert [s.text for s in normalize_segments(raw)] == ["kept"]

    def test_missing_and_invalid_timing_defaults_to_zero(self) -> None:
        raw = [{"text": "a"}, {"text": "b", "start": "nan"}, {"text": "c", "start": -4}]
        assert [s.offset_ms for s in normalize_segments(raw)] == [0, 0, 0]

    def test_sorted_by_offset_and_stable(self) -> None:
        raw = [
            {"text": "third", "start": 3},
            {"text": "first-a", "start": 1},
            {"text": "first-b", "start": 1},
            {"text": "second", "start": 2},
        ]
        segments = normalize_segments(raw)
        assert [s.text for s in segments] == ["first-a", "first-b", "second", "third"]
        offsets = [s.offset_ms for s in segments]
        assert offsets == sorted(offsets)

    def test_canonical_segments_pass_through(self) -> None:
        raw = [TranscriptSegment("b", 2000, 10), TranscriptSegment("a", 1000, 10)]
        assert normalize_segments(raw, TimeUnit.MILLISECONDS) == [
            TranscriptSegment("a", 1000, 10),
            TranscriptSegment("b", 2000, 10),
        ]

    def test_empty_input(self) -> None:
        assert normalize_segments([]) == []


# ---------------------------------------------------------------------------
# combine_transcript
# ---------------------------------------------------------------------------

class TestCombineTranscript:

    def test_space_joined(self) -> None:
        segments = [TranscriptSegment("Hello & welcome", 0, 2500), TranscriptSegment("to the show", 2500, 1500)]
        assert combine_transcript(segments) == "Hello & welcome to the show"

    def test_whitespace_collapsed(self) -> None:
        segments = [TranscriptSegment(" a  b ", 0, 0), TranscriptSegment("\nc\t", 1, 0)]
        assert combine_transcript(segments) == "a b c"

    def test_idempotent_over_its_own_segments(self) -> None:
        raw = [{"text": "one  two", "start": 0}, {"text": " three ", "start": 1}]
        segments = normalize_segments(raw)
        first = combine_transcript(segments)
        again = combine_transcript(normalize_segments(segments, TimeUnit.MILLISECONDS))
        assert first == again == "one two three"

    def test_empty(self) -> None:
        assert combine_transcript([]) == ""


# ---------------------------------------------------------------------------
# Presentation helpers
# ---------------------------------------------------------------------------

class TestDurations:

    @pytest.mark.parametrize("seconds, expected", [
        (0, "0:00"),
        (59, "0:59"),
        (213, "3:33"),
        (3600, "1:00:00"),
        (3723, "1:02:03"),
    ])
    def test_format_clock(self, seconds: int, expected: str) -> None:
        assert format_clock(seconds) == expected

    def test_transcript_duration_uses_end_of_last_segment(self) -> None:
        segments = [TranscriptSegment("a", 0, 1000), TranscriptSegment("b", 60_000, 5_000)]
        assert transcript_duration(segments) == "1:05"

    def test_transcript_duration_empty(self) -> None:
        assert transcript_duration([]) == "0:00"


class TestChunkTranscript:

    def test_short_text_is_one_chunk(self) -> None:
        assert chunk_transcript("Short text.", max_chunk_length=100) == ["Short text."]

    def test_long_text_split_on_sentences(self) -> None:
        text = "First sentence here. Second sentence here! Third one? Fourth."
        chunks = chunk_transcript(text, max_chunk_length=40)
        assert chunks == [
            "First sentence here",
            "Second sentence here. Third one. Fourth",
        ]
        assert all(len(chunk) <= 40 for chunk in chunks)

    def test_oversized_sentence_kept_whole(self) -> None:
        long_sentence = "word " * 30
        chunks = chunk_transcript(f"{long_sentence}. tail.", max_chunk_length=50)
        assert chunks[0] == long_sentence.strip()
        assert chunks[-1] == "tail"
