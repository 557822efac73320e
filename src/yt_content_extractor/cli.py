"""
cli.py — Command-line interface for yt-content-extractor.

Provides the `yt-content` command group (registered as a console script in
pyproject.toml):

    extract   Extract metadata and transcript for a video.
    manual    Wrap a transcript file in the same output shape.
    chunks    Print a video's transcript split into chunks.

Usage examples:
    yt-content extract "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
    yt-content extract dQw4w9WgXcQ --format text -o transcript.txt
    yt-content manual notes.txt --title "My talk"
    yt-content chunks dQw4w9WgXcQ --max-length 1500
"""

from __future__ import annotations

import json
import sys

import click

from yt_content_extractor.config import get_settings
from yt_content_extractor.errors import ExtractionError
from yt_content_extractor.extractor import extract, process_manual_transcript
from yt_content_extractor.log import configure_logging
from yt_content_extractor.models import ExtractedContent
from yt_content_extractor.normalizer import chunk_transcript, transcript_duration


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _render(content: ExtractedContent, fmt: str) -> str:
    if fmt == "json":
        return json.dumps(content.to_dict(), indent=2, ensure_ascii=False)
    return content.full_transcript


def _write(text: str, output: str | None) -> None:
    if output:
        with open(output, "w", encoding="utf-8") as fh:
            fh.write(text)
            fh.write("\n")
        click.echo(f"Output written to {output}", err=True)
    else:
        click.echo(text)


def _fail(exc: ExtractionError) -> None:
    # No traceback: the message already says what went wrong.
    click.echo(f"Error: {exc.message}", err=True)
    sys.exit(1)


# ---------------------------------------------------------------------------
# CLI group — the top-level `yt-content` command
# ---------------------------------------------------------------------------

@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log debug events to stderr.")
def main(verbose: bool) -> None:
    """
    YouTube Content Extractor — fetch video metadata and caption transcripts.
    """
    settings = get_settings()
    configure_logging("DEBUG" if verbose else settings.log_level, json=settings.log_json)


# ---------------------------------------------------------------------------
# Subcommand: extract
# ---------------------------------------------------------------------------

@main.command(name="extract")
@click.argument("video", metavar="URL_OR_ID")
@click.option(
    "--format", "-f",
    "fmt",                           # avoid shadowing the builtin "format"
    type=click.Choice(["json", "text"], case_sensitive=False),
    default="json",
    show_default=True,
    help="Output format: full JSON result, or the transcript text only.",
)
@click.option(
    "--output", "-o",
    type=click.Path(),
    default=None,
    help="Write output to a file instead of stdout.",
)
def extract_command(video: str, fmt: str, output: str | None) -> None:
    """
    Extract metadata and transcript for a video.

    VIDEO can be a full YouTube URL or an 11-character video ID.  When no
    captions can be fetched the transcript is a placeholder explaining why,
    and a note is printed to stderr.
    """
    try:
        content = extract(video)
    except ExtractionError as exc:
        _fail(exc)
        return

    if not content.has_transcript:
        click.echo(
            f"Note: no transcript available ({content.transcript_status.value}).",
            err=True,
        )
    else:
        click.echo(
            f"{len(content.segments)} segments, {transcript_duration(content.segments)}",
            err=True,
        )

    _write(_render(content, fmt.lower()), output)


# ---------------------------------------------------------------------------
# Subcommand: manual
# ---------------------------------------------------------------------------

@main.command()
@click.argument("source", type=click.File("r", encoding="utf-8"))
@click.option("--title", default=None, help="Title to record for the transcript.")
@click.option("--author", default=None, help="Author to record for the transcript.")
@click.option(
    "--output", "-o",
    type=click.Path(),
    default=None,
    help="Write output to a file instead of stdout.",
)
def manual(source, title: str | None, author: str | None, output: str | None) -> None:
    """
    Wrap a transcript you already have in the extraction JSON shape.

    SOURCE is a text file path, or "-" to read from stdin.
    """
    try:
        content = process_manual_transcript(source.read(), title=title, author=author)
    except ExtractionError as exc:
        _fail(exc)
        return

    _write(_render(content, "json"), output)


# ---------------------------------------------------------------------------
# Subcommand: chunks
# ---------------------------------------------------------------------------

@main.command()
@click.argument("video", metavar="URL_OR_ID")
@click.option(
    "--max-length",
    type=click.IntRange(min=100),
    default=2000,
    show_default=True,
    help="Maximum characters per chunk.",
)
def chunks(video: str, max_length: int) -> None:
    """Print the transcript split into sentence-aligned chunks."""
    try:
        content = extract(video)
    except ExtractionError as exc:
        _fail(exc)
        return

    parts = chunk_transcript(content.full_transcript, max_chunk_length=max_length)
    for number, part in enumerate(parts, start=1):
        click.echo(f"--- chunk {number}/{len(parts)} ({len(part)} chars) ---")
        click.echo(part)
