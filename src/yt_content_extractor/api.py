"""
api.py — FastAPI REST API for yt-content-extractor.

Endpoints:
    GET  /extract?url=...      — Extract metadata + transcript for a video.
    POST /extract              — Same, JSON body {"url": ...}, wrapped response.
    POST /manual-transcript    — Wrap a pasted transcript in the same shape.
    GET  /health               — Simple health-check for load balancers / monitoring.

Run with:
    uv run uvicorn yt_content_extractor.api:app

A missing transcript is not an error here: the response is still 200 with a
placeholder fullTranscript and a transcriptStatus saying why.  The global
exception handler converts the few errors that do escape (bad input,
unreachable upstream) using the status code stored on the exception.
"""

from __future__ import annotations

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from yt_content_extractor.errors import ExtractionError
from yt_content_extractor.extractor import extract_content, process_manual_transcript
from yt_content_extractor.resolver import parse_video_id

# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------

app = FastAPI(
    title="YouTube Content Extractor API",
    description="Extract a video's metadata and timed-caption transcript. "
                "When captions can't be fetched the response carries a "
                "placeholder transcript with instructions instead of an error.",
    version="0.3.0",
)


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------

class ExtractRequest(BaseModel):
    url: str


class ManualMetadata(BaseModel):
    title: str | None = None
    author: str | None = None


class ManualTranscriptRequest(BaseModel):
    transcript: str
    metadata: ManualMetadata | None = None


# ---------------------------------------------------------------------------
# Global error handler
# ---------------------------------------------------------------------------

@app.exception_handler(ExtractionError)
async def extraction_error_handler(request: Request, exc: ExtractionError) -> JSONResponse:
    """Translate any ExtractionError (or subclass) into an HTTP error response."""
    return JSONResponse(
        status_code=exc.http_status,
        content={"error": exc.message},
    )


# ---------------------------------------------------------------------------
# Endpoints — extraction
# ---------------------------------------------------------------------------

@app.get("/extract")
async def get_extraction(
    url: str = Query(
        description="A YouTube watch / short / embed URL, or a bare 11-character video ID.",
    ),
) -> JSONResponse:
    """
    Extract content for one video without any side effects.

    The body is the ExtractedContent shape plus `transcriptLength`.
    """
    # Fail fast on bad input before opening any connection.
    parse_video_id(url)
    content = await extract_content(url)

    payload = content.to_dict()
    payload["transcriptLength"] = len(content.full_transcript)
    return JSONResponse(content=payload)


@app.post("/extract")
async def post_extraction(body: ExtractRequest) -> JSONResponse:
    """Extract content for one video; the result is wrapped in {success, data}."""
    parse_video_id(body.url)
    content = await extract_content(body.url)

    message = (
        "YouTube content extracted successfully"
        if content.has_transcript
        else "Video metadata extracted; no transcript was available"
    )
    return JSONResponse(content={
        "success": True,
        "data": {
            "content": content.to_dict(),
            "message": message,
        },
    })


@app.post("/manual-transcript")
async def post_manual_transcript(body: ManualTranscriptRequest) -> JSONResponse:
    """Accept a transcript pasted in by the user when captions weren't available."""
    metadata = body.metadata or ManualMetadata()
    content = process_manual_transcript(
        body.transcript,
        title=metadata.title,
        author=metadata.author,
    )
    return JSONResponse(content={
        "success": True,
        "data": {
            "content": content.to_dict(),
            "message": "Manual transcript processed successfully",
        },
    })


# ---------------------------------------------------------------------------
# Health endpoint
# ---------------------------------------------------------------------------

@app.get("/health")
async def health() -> dict:
    """Minimal health-check endpoint.  Returns HTTP 200 with {"status": "ok"}."""
    return {"status": "ok"}
