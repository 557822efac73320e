"""
strategies.py — The individual ways of getting captions for a video.

Every strategy implements one capability: attempt(video_id) returns a
StrategyOutcome (Success / EmptyResult / Failure) and never raises.  The
transport-specific part lives in fetch(), which returns raw cue records in
the unit the strategy declares via `time_unit`; attempt() normalizes them.

Available strategies, by registry name:

    transcript-api       youtube-transcript-api, preferred languages
    transcript-api-any   youtube-transcript-api, any listed transcript
    watch-page           caption tracks embedded in the watch page HTML
    timedtext            the legacy api/timedtext endpoint
    yt-dlp               caption tracks listed by yt-dlp

Blocking libraries (youtube-transcript-api, yt-dlp) run through
threads.run_blocking() so the chain's deadline can abandon them without
the caller waiting for the thread to finish.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, Sequence

import httpx
import yt_dlp
from youtube_transcript_api import YouTubeTranscriptApi

from yt_content_extractor.chain import classify_failure, describe_exception
from yt_content_extractor.config import Settings
from yt_content_extractor.markup import parse_caption_markup, parse_json3
from yt_content_extractor.models import (
    EmptyResult,
    Failure,
    StrategyOutcome,
    Success,
    TimeUnit,
)
from yt_content_extractor.normalizer import normalize_segments
from yt_content_extractor.resolver import canonical_url
from yt_content_extractor.threads import run_blocking

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

TIMEDTEXT_URL = "https://www.youtube.com/api/timedtext"

# Caption file formats yt-dlp lists, best first.  vtt is not markup we parse.
_YTDLP_FORMATS = ("json3", "srv3", "srv2", "srv1")

_CAPTION_TRACKS_KEY = '"captionTracks":'


class CaptionTrackError(Exception):
    """A strategy found no caption track it could download."""


# ---------------------------------------------------------------------------
# Strategy base class
# ---------------------------------------------------------------------------

class TranscriptStrategy(ABC):
    """Base class for one caption acquisition method."""

    name: str = "strategy"
    time_unit: TimeUnit = TimeUnit.SECONDS

    @abstractmethod
    async def fetch(self, video_id: str) -> Iterable[Any]:
        """Return raw cue records; raise on any transport or format problem."""

    async def attempt(self, video_id: str) -> StrategyOutcome:
        try:
            raw = await self.fetch(video_id)
        except Exception as exc:
            detail = describe_exception(exc)
            return Failure(classify_failure(detail), detail)

        segments = normalize_segments(raw or (), self.time_unit)
        if not segments:
            return EmptyResult(f"{self.name} returned no usable segments")
        return Success(tuple(segments))

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"


class HttpStrategy(TranscriptStrategy):
    """Base for strategies that talk to the upstream over httpx."""

    time_unit = TimeUnit.MILLISECONDS

    def __init__(self, client: httpx.AsyncClient, settings: Settings) -> None:
        self.client = client
        self.settings = settings

    @property
    def headers(self) -> dict[str, str]:
        return {
            "User-Agent": self.settings.user_agent,
            "Accept-Language": self.settings.accept_language,
        }

    async def get_text(self, url: str, params: dict[str, str] | None = None) -> str:
        response = await self.client.get(
            url,
            params=params,
            headers=self.headers,
            timeout=self.settings.http_timeout,
        )
        response.raise_for_status()
        return response.text


# ---------------------------------------------------------------------------
# youtube-transcript-api strategies
# ---------------------------------------------------------------------------

class TranscriptApiStrategy(TranscriptStrategy):
    """Fetch via youtube-transcript-api in the preferred languages."""

    name = "transcript-api"
    time_unit = TimeUnit.SECONDS

    def __init__(self, languages: Sequence[str] = ("en",)) -> None:
        self.languages = list(languages) or ["en"]

    def _fetch_sync(self, video_id: str) -> list[dict]:
        api = YouTubeTranscriptApi()
        return api.fetch(video_id, languages=self.languages).to_raw_data()

    async def fetch(self, video_id: str) -> list[dict]:
        return await run_blocking(self._fetch_sync, video_id)


class AnyLanguageTranscriptStrategy(TranscriptStrategy):
    """
    Fetch whichever transcript youtube-transcript-api lists first.

    Manually created transcripts are preferred over generated ones.
    """

    name = "transcript-api-any"
    time_unit = TimeUnit.SECONDS

    def _fetch_sync(self, video_id: str) -> list[dict]:
        api = YouTubeTranscriptApi()
        transcripts = list(api.list(video_id))
        if not transcripts:
            raise CaptionTrackError(f"No transcripts were found for video {video_id}")

        manual = [t for t in transcripts if not t.is_generated]
        chosen = (manual or transcripts)[0]
        return chosen.fetch().to_raw_data()

    async def fetch(self, video_id: str) -> list[dict]:
        return await run_blocking(self._fetch_sync, video_id)


# ---------------------------------------------------------------------------
# Plain HTTP strategies
# ---------------------------------------------------------------------------

def pick_track(
    tracks: Sequence[dict],
    languages: Sequence[str],
    *,
    language_key: str = "languageCode",
) -> dict | None:
    """
    Choose the best caption track for the preferred languages.

    Manual tracks beat auto-generated ("asr") ones within a language; when no
    preferred language is present the first listed track is used.
    """
    if not tracks:
        return None

    def matches(track: dict, language: str) -> bool:
        code = str(track.get(language_key, "")).lower()
        language = language.lower()
        return code == language or code.startswith(language + "-")

    for language in languages:
        candidates = [t for t in tracks if matches(t, language)]
        if candidates:
            candidates.sort(key=lambda t: t.get("kind") == "asr")
            return candidates[0]
    return tracks[0]


def extract_caption_tracks(page: str) -> list[dict] | None:
    """
    Pull the captionTracks array out of a watch page.

    Returns None when the page carries no player response at all (consent
    wall, bot check, layout change), and [] when the player response exists
    but lists no captions.
    """
    index = page.find(_CAPTION_TRACKS_KEY)
    if index == -1:
        return [] if '"playabilityStatus"' in page else None

    start = index + len(_CAPTION_TRACKS_KEY)
    try:
        tracks, _ = json.JSONDecoder().raw_decode(page, start)
    except ValueError:
        return None
    if not isinstance(tracks, list):
        return None
    return [track for track in tracks if isinstance(track, dict) and track.get("baseUrl")]


class WatchPageStrategy(HttpStrategy):
    """Scrape the caption track list from the watch page, then download one."""

    name = "watch-page"

    async def fetch(self, video_id: str) -> list:
        page = await self.get_text(canonical_url(video_id))

        tracks = extract_caption_tracks(page)
        if tracks is None:
            raise CaptionTrackError("Could not locate the player response in the watch page")
        if not tracks:
            raise CaptionTrackError(f"No caption tracks listed for video {video_id}")

        track = pick_track(tracks, self.settings.preferred_languages)
        markup = await self.get_text(track["baseUrl"])
        return parse_caption_markup(markup)


class TimedTextStrategy(HttpStrategy):
    """Query the legacy timedtext endpoint: manual captions, then asr."""

    name = "timedtext"

    async def fetch(self, video_id: str) -> list:
        answered = False
        last_error: httpx.HTTPStatusError | None = None

        for language in self.settings.preferred_languages:
            for kind in (None, "asr"):
                params = {"v": video_id, "lang": language}
                if kind:
                    params["kind"] = kind

                try:
                    markup = await self.get_text(TIMEDTEXT_URL, params=params)
                except httpx.HTTPStatusError as exc:
                    # A missing track is a 404 here; try the next combination.
                    last_error = exc
                    continue

                answered = True
                segments = parse_caption_markup(markup)
                if segments:
                    return segments

        if not answered and last_error is not None:
            raise last_error
        return []


class YtDlpStrategy(HttpStrategy):
    """Ask yt-dlp for the caption track list, then download one with httpx."""

    name = "yt-dlp"

    def __init__(
        self,
        client: httpx.AsyncClient,
        settings: Settings,
        ydl_factory: Callable[[dict], Any] = yt_dlp.YoutubeDL,
    ) -> None:
        super().__init__(client, settings)
        self._ydl_factory = ydl_factory

    def _info_sync(self, video_id: str) -> dict:
        ydl_opts = {
            "skip_download": True,
            "quiet": True,
            "no_warnings": True,
            "socket_timeout": self.settings.http_timeout,
        }
        with self._ydl_factory(ydl_opts) as ydl:
            info = ydl.extract_info(canonical_url(video_id), download=False)
        if info is None:
            raise CaptionTrackError("yt-dlp returned no info")
        return info

    def _choose(self, info: dict) -> dict | None:
        # Manual subtitles first, then automatic captions.
        for key in ("subtitles", "automatic_captions"):
            by_language = info.get(key) or {}
            tracks = [
                {"lang": lang, "formats": formats}
                for lang, formats in by_language.items()
                if formats
            ]
            chosen = pick_track(tracks, self.settings.preferred_languages, language_key="lang")
            if chosen is None:
                continue
            for ext in _YTDLP_FORMATS:
                for fmt in chosen["formats"]:
                    if fmt.get("ext") == ext and fmt.get("url"):
                        return fmt
        return None

    async def fetch(self, video_id: str) -> list:
        info = await run_blocking(self._info_sync, video_id)

        fmt = self._choose(info)
        if fmt is None:
            raise CaptionTrackError(f"No subtitles listed by yt-dlp for video {video_id}")

        body = await self.get_text(fmt["url"])
        if fmt["ext"] == "json3":
            return parse_json3(body)
        return parse_caption_markup(body)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

def build_strategies(
    names: Sequence[str],
    *,
    client: httpx.AsyncClient,
    settings: Settings,
) -> list[TranscriptStrategy]:
    """
    Instantiate strategies by registry name, keeping the given order.

    Raises:
        ValueError: For a name that isn't registered.
    """
    factories: dict[str, Callable[[], TranscriptStrategy]] = {
        "transcript-api": lambda: TranscriptApiStrategy(settings.preferred_languages),
        "transcript-api-any": AnyLanguageTranscriptStrategy,
        "watch-page": lambda: WatchPageStrategy(client, settings),
        "timedtext": lambda: TimedTextStrategy(client, settings),
        "yt-dlp": lambda: YtDlpStrategy(client, settings),
    }

    strategies: list[TranscriptStrategy] = []
    for name in names:
        try:
            factory = factories[name]
        except KeyError:
            raise ValueError(
                f"Unknown strategy {name!r}; expected one of {sorted(factories)}"
            ) from None
        strategies.append(factory())
    return strategies
