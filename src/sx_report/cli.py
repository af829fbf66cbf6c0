from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from collections.abc import Sequence
from datetime import timedelta
from pathlib import Path
from typing import BinaryIO, Optional

from sx_report.core.config import DEFAULT_STREAM_ID, ReportConfig, parse_utc_offset, resolve_report_config
from sx_report.core.convert_service import (
    ConversionResult,
    convert_file,
    convert_lines,
    open_text_stream,
    write_report,
)

LOGGER = logging.getLogger(__name__)

_VERBOSITY = [logging.WARNING, logging.INFO, logging.DEBUG]


def _resolve_log_level(verbosity: int) -> int:
    if verbosity:
        return _VERBOSITY[min(len(_VERBOSITY) - 1, verbosity)]
    level_name = os.getenv("SX_REPORT_LOG_LEVEL", "WARNING").upper()
    return getattr(logging, level_name, logging.WARNING)


def _configure_logging(verbosity: int) -> None:
    """Log to stderr; stdout carries the report."""
    level = _resolve_log_level(verbosity)
    logging.basicConfig(
        stream=sys.stderr,
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # basicConfig is a no-op once the root logger has handlers.
    logging.getLogger().setLevel(level)


def _parse_offset(s: str) -> timedelta:
    try:
        return parse_utc_offset(s)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="sx-report",
        description="Convert SHOUTcast access logs to the SoundExchange reporting format.",
    )
    p.add_argument("-i", "--input", default=None, help="Log file to read (default: stdin). .gz is supported.")
    p.add_argument("-o", "--output", default=None, help="Report file to write (default: stdout)")
    p.add_argument(
        "-s",
        "--stream-id",
        default=None,
        help=f"Stream ID written in every row, no spaces (default: {DEFAULT_STREAM_ID})",
    )
    p.add_argument(
        "--utc-offset",
        type=_parse_offset,
        default=None,
        help="Offset of the log's wall clock, e.g. -05:00 (default: this machine's current offset)",
    )
    p.add_argument("--encoding", default="utf-8", help="Input/output text encoding")
    p.add_argument("-v", "--verbose", action="count", default=0, help="More logging (repeat for debug)")
    return p


def _build_config(args: argparse.Namespace) -> ReportConfig:
    cfg = resolve_report_config()
    updates: dict[str, object] = {"encoding": args.encoding}
    if args.stream_id is not None:
        updates["stream_id"] = args.stream_id
    if args.utc_offset is not None:
        updates["utc_offset"] = args.utc_offset
    return ReportConfig(**{**cfg.model_dump(), **updates})


def _convert(args: argparse.Namespace, cfg: ReportConfig) -> ConversionResult:
    if args.input:
        return asyncio.run(convert_file(Path(args.input), config=cfg))
    lines = open_text_stream(sys.stdin.buffer, encoding=cfg.encoding, decode_errors=cfg.decode_errors)
    return convert_lines(lines, config=cfg)


def main(argv: Optional[Sequence[str]] = None) -> None:
    p = _build_parser()
    args = p.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        cfg = _build_config(args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(2)

    # The whole input is read before the destination is opened, so a failed
    # read never truncates an existing report.
    try:
        result = _convert(args, cfg)
    except FileNotFoundError as e:
        print(str(e), file=sys.stderr)
        raise SystemExit(2)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(2)

    out: BinaryIO
    try:
        out = open(args.output, "wb") if args.output else sys.stdout.buffer
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(2)

    try:
        written = write_report(result.rows, out, encoding=cfg.encoding, errors=cfg.decode_errors)
        LOGGER.debug("Wrote %d rows (stream_id=%s)", written, cfg.stream_id)
    finally:
        if out is not sys.stdout.buffer:
            out.close()


if __name__ == "__main__":
    main()
