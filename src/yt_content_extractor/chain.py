"""
chain.py — Run transcript strategies in order until one produces captions.

Strategies run strictly one after another in their configured order: the
order reflects how reliable each transport has historically been, and
stopping at the first success keeps load off the less preferred ones.  A
short pause separates a failed attempt from the next one.  The whole chain
runs under one wall-clock budget.

Failures never escape individually.  Each is classified against the
ERROR_SIGNALS table, recorded and logged, and only when every strategy has
failed does the chain raise one terminal error:

    NoCaptionsAvailableError   some strategy said the video has no captions
    ExtractionExhaustedError   every strategy failed for technical reasons
    ExtractionTimeoutError     the budget ran out first

A recorded "no captions" failure wins over both of the others, including a
budget that expires later in the chain.  A strategy only counts as
successful when at least one segment with text survives normalization.
"""

from __future__ import annotations

import asyncio
import re
from typing import TYPE_CHECKING, Awaitable, Callable, Sequence

import structlog

from yt_content_extractor.errors import (
    ExtractionExhaustedError,
    ExtractionTimeoutError,
    NoCaptionsAvailableError,
    TranscriptFailure,
)
from yt_content_extractor.models import (
    EmptyResult,
    Failure,
    FailureClass,
    StrategyFailure,
    StrategyOutcome,
    TimeUnit,
    TranscriptSegment,
)
from yt_content_extractor.normalizer import normalize_segments

if TYPE_CHECKING:
    from yt_content_extractor.strategies import TranscriptStrategy

# ---------------------------------------------------------------------------
# Failure classification
# ---------------------------------------------------------------------------

# Matched in order against "<ExceptionType>: <message>"; first hit wins.
# Upstream messages are free text, so new phrasings go here.
ERROR_SIGNALS: tuple[tuple[re.Pattern[str], FailureClass], ...] = (
    (
        re.compile(
            r"subtitles are disabled"
            r"|(?:transcripts?|captions?|subtitles?) (?:are |is )?disabled"
            r"|no (?:captions?|subtitles?|caption tracks?)"
            r"|no transcripts? (?:were |was )?found"
            r"|does not have (?:any )?(?:captions|subtitles)"
            r"|TranscriptsDisabled|NoTranscriptFound",
            re.IGNORECASE,
        ),
        FailureClass.NO_CAPTIONS,
    ),
    (
        re.compile(r"timed? ?out|TimeoutException|TimeoutError", re.IGNORECASE),
        FailureClass.TIMEOUT,
    ),
    (
        re.compile(
            r"ConnectError|NetworkError|RemoteProtocolError"
            r"|connection (?:refused|reset|aborted)"
            r"|name or service not known|temporary failure in name resolution"
            r"|nodename nor servname|getaddrinfo failed|network is unreachable",
            re.IGNORECASE,
        ),
        FailureClass.TRANSPORT,
    ),
)

# Recorded detail strings are cut to this length in logs and errors.
_DETAIL_LIMIT = 300


def describe_exception(exc: BaseException) -> str:
    """Render an exception as the "<Type>: <message>" text the table matches."""
    message = " ".join(str(exc).split())
    return f"{type(exc).__name__}: {message}" if message else type(exc).__name__


def classify_failure(text: str) -> FailureClass:
    """Map a failure description to a FailureClass using ERROR_SIGNALS."""
    for pattern, failure_class in ERROR_SIGNALS:
        if pattern.search(text):
            return failure_class
    return FailureClass.GENERIC


# ---------------------------------------------------------------------------
# Chain executor
# ---------------------------------------------------------------------------

class StrategyChain:
    """
    Ordered list of transcript strategies plus the policy for running them.

    Args:
        strategies:    Strategies in the order they should be tried.
        attempt_delay: Seconds to wait after a failed attempt before the next.
        budget:        Wall-clock seconds for the whole chain.
        logger:        Structured logger; defaults to this module's logger.
        sleep:         Awaitable sleep used for the delay (swappable in tests).
    """

    def __init__(
        self,
        strategies: Sequence[TranscriptStrategy],
        *,
        attempt_delay: float = 0.3,
        budget: float = 8.0,
        logger=None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.strategies = list(strategies)
        self.attempt_delay = attempt_delay
        self.budget = budget
        self.log = logger or structlog.get_logger(__name__)
        self._sleep = sleep

    @property
    def strategy_names(self) -> list[str]:
        return [strategy.name for strategy in self.strategies]

    async def extract_transcript(self, video_id: str) -> list[TranscriptSegment]:
        """
        Return the segments from the first strategy that produces any.

        Raises:
            NoCaptionsAvailableError, ExtractionExhaustedError or
            ExtractionTimeoutError once no strategy is left to try.
        """
        failures: list[StrategyFailure] = []
        log = self.log.bind(video_id=video_id)

        try:
            return await asyncio.wait_for(
                self._run(video_id, failures, log),
                timeout=self.budget,
            )
        except asyncio.TimeoutError:
            log.warning(
                "transcript_chain_timeout",
                budget=self.budget,
                attempts=len(failures),
            )
            if any(f.failure_class is FailureClass.NO_CAPTIONS for f in failures):
                # A "no captions" answer outranks running out of time.
                raise NoCaptionsAvailableError(video_id, failures) from None
            raise ExtractionTimeoutError(video_id, self.budget, failures) from None

    async def _run(self, video_id: str, failures: list[StrategyFailure], log) -> list[TranscriptSegment]:
        for index, strategy in enumerate(self.strategies):
            if index:
                # Only reached after a failed attempt: success returns below.
                await self._sleep(self.attempt_delay)

            log.debug("strategy_started", index=index, strategy=strategy.name)
            outcome = await self._attempt(strategy, video_id)

            if outcome.succeeded:
                segments = normalize_segments(outcome.segments, TimeUnit.MILLISECONDS)
                if segments:
                    log.info(
                        "strategy_succeeded",
                        index=index,
                        strategy=strategy.name,
                        segments=len(segments),
                    )
                    return segments
                outcome = EmptyResult(f"{strategy.name} reported success without any text")

            failure = self._record(index, strategy.name, outcome)
            failures.append(failure)
            log.warning(
                "strategy_failed",
                index=index,
                strategy=strategy.name,
                failure_class=failure.failure_class.value,
                detail=failure.detail,
            )

        error = self._terminal_error(video_id, failures)
        log.warning(
            "transcript_chain_exhausted",
            attempts=len(failures),
            error=type(error).__name__,
        )
        raise error

    @staticmethod
    async def _attempt(strategy: TranscriptStrategy, video_id: str) -> StrategyOutcome:
        # attempt() already converts errors into outcomes; this only guards
        # against a strategy that breaks that contract.
        try:
            return await strategy.attempt(video_id)
        except Exception as exc:
            detail = describe_exception(exc)
            return Failure(classify_failure(detail), detail)

    @staticmethod
    def _record(index: int, name: str, outcome: StrategyOutcome) -> StrategyFailure:
        if isinstance(outcome, Failure):
            failure_class, detail = outcome.failure_class, outcome.detail
        else:
            failure_class = FailureClass.EMPTY
            detail = getattr(outcome, "detail", "") or "empty result"
        return StrategyFailure(index, name, failure_class, detail[:_DETAIL_LIMIT])

    @staticmethod
    def _terminal_error(video_id: str, failures: list[StrategyFailure]) -> TranscriptFailure:
        if any(f.failure_class is FailureClass.NO_CAPTIONS for f in failures):
            return NoCaptionsAvailableError(video_id, failures)
        return ExtractionExhaustedError(video_id, failures)
