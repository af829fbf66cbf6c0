"""Log loading and conversion utilities.

This module is the main integration point: it reads SHOUTcast logs, runs every
line through the parser and the session aggregator, and writes the report.
"""

from __future__ import annotations

import gzip
import io
import logging
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO

import aiofiles
from aiofiles.threadpool import wrap

from .aggregator import SessionAggregator
from .config import ReportConfig
from .formats import EventParser, ShoutcastLineParser
from .models import RenderResult
from .report import iter_rows

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ConversionResult:
    """Rendered sessions plus counters describing one run."""

    results: list[RenderResult] = field(default_factory=list)
    lines_read: int = 0
    events_parsed: int = 0
    unfinished_sessions: int = 0

    @property
    def rows(self) -> list[str]:
        return list(iter_rows(self.results))

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.results if not r.ok)


def default_parser(config: ReportConfig) -> EventParser:
    """Parser bound to the run's local UTC offset."""
    return ShoutcastLineParser(utc_offset=config.utc_offset)


class _Converter:
    """Line-at-a-time driver shared by the sync and async entry points."""

    def __init__(self, config: ReportConfig, parser: EventParser | None = None) -> None:
        self.parser = parser or default_parser(config)
        self.aggregator = SessionAggregator(stream_id=config.stream_id)
        self.lines_read = 0
        self.events_parsed = 0

    def push(self, line: str) -> None:
        self.lines_read += 1
        event = self.parser.parse(self.lines_read, line.rstrip("\r\n"))
        if event is None:
            return
        self.events_parsed += 1
        self.aggregator.on_event(event)

    def finish(self) -> ConversionResult:
        result = ConversionResult(
            results=self.aggregator.finalize(),
            lines_read=self.lines_read,
            events_parsed=self.events_parsed,
            unfinished_sessions=self.aggregator.open_sessions,
        )
        logger.info(
            "Read %d lines, %d events; %d rows, %d skipped, %d sessions never closed",
            result.lines_read,
            result.events_parsed,
            len(result.results) - result.skipped,
            result.skipped,
            result.unfinished_sessions,
        )
        return result


def convert_lines(
    lines: Iterable[str],
    *,
    config: ReportConfig,
    parser: EventParser | None = None,
) -> ConversionResult:
    """Convert already-decoded log lines."""
    conv = _Converter(config, parser)
    for line in lines:
        conv.push(line)
    return conv.finish()


def open_text_stream(raw: BinaryIO, *, encoding: str, decode_errors: str) -> io.TextIOWrapper:
    """Decode a binary stream (e.g. stdin's buffer) into text lines."""
    return io.TextIOWrapper(raw, encoding=encoding, errors=decode_errors, newline="")


@asynccontextmanager
async def _open_text(path: Path, *, encoding: str, decode_errors: str):
    """Open a log file for async text reading (plain or gzip)."""
    if path.suffix.lower() == ".gz":
        f = gzip.open(path, mode="rt", encoding=encoding, errors=decode_errors, newline="")
        af = wrap(f)
        try:
            yield af
        finally:
            await af.close()
    else:
        async with aiofiles.open(path, encoding=encoding, errors=decode_errors, newline="") as f:
            yield f


async def iter_log_lines(
    log_path: str | Path,
    *,
    encoding: str = "utf-8",
    decode_errors: str = "surrogateescape",
) -> AsyncIterator[str]:
    """Yield the lines of a log file as read, terminators included."""
    path = Path(log_path)
    if not path.is_file():
        raise FileNotFoundError(f"Log file not found: {path}")

    async with _open_text(path, encoding=encoding, decode_errors=decode_errors) as f:
        async for line in f:
            yield line


async def convert_file(
    log_path: str | Path,
    *,
    config: ReportConfig,
    parser: EventParser | None = None,
) -> ConversionResult:
    """Convert a log file (plain text or .gz)."""
    conv = _Converter(config, parser)
    async for line in iter_log_lines(
        log_path, encoding=config.encoding, decode_errors=config.decode_errors
    ):
        conv.push(line)
    return conv.finish()


def write_report(
    rows: Iterable[str],
    out: BinaryIO,
    *,
    encoding: str = "utf-8",
    errors: str = "surrogateescape",
) -> int:
    """Write rows to a binary stream; return the number written.

    The stream is encoded through one text wrapper, so encodings with a BOM
    get it once. ``out`` is left open.
    """
    text = io.TextIOWrapper(out, encoding=encoding, errors=errors, newline="\n")
    count = 0
    try:
        for row in rows:
            text.write(row)
            count += 1
        text.flush()
    finally:
        text.detach()
    return count
