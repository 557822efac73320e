"""
threads.py — Run blocking library calls without tying the caller to them.

youtube-transcript-api and yt-dlp are synchronous and can block for minutes.
asyncio.to_thread() would put them on the loop's default executor, which
asyncio.run() joins on shutdown and the interpreter joins at exit, so a call
the deadline already abandoned would still hold up the CLI.  run_blocking()
uses a daemon thread per call instead: cancelling the awaiting coroutine
releases the caller immediately, and a late result is dropped.
"""

from __future__ import annotations

import asyncio
import threading
from typing import Any, Callable, TypeVar

import structlog

T = TypeVar("T")

log = structlog.get_logger(__name__)


async def run_blocking(func: Callable[..., T], *args: Any) -> T:
    """Run func(*args) in a daemon thread and await its result."""
    loop = asyncio.get_running_loop()
    future: asyncio.Future[T] = loop.create_future()

    def deliver(result: Any, error: BaseException | None) -> None:
        if future.done():
            return
        if error is not None:
            future.set_exception(error)
        else:
            future.set_result(result)

    def worker() -> None:
        result, error = None, None
        try:
            result = func(*args)
        except Exception as exc:
            error = exc
        try:
            loop.call_soon_threadsafe(deliver, result, error)
        except RuntimeError:
            # The loop is closed: whoever awaited this has long given up.
            log.debug("blocking_call_outlived_loop", func=getattr(func, "__name__", repr(func)))

    threading.Thread(
        target=worker,
        name=f"blocking-{getattr(func, '__name__', 'call')}",
        daemon=True,
    ).start()
    return await future
