"""Run configuration for a conversion.

The local UTC offset is captured once per run and injected into the parser,
so every line of a log is converted with the same offset.
"""

from __future__ import annotations

import codecs
import os
import re
from datetime import datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_STREAM_ID = "stream1"

_OFFSET_RE = re.compile(r"^(?P<sign>[+-])(?P<h>\d{2}):?(?P<m>\d{2})?$")
_MAX_OFFSET = timedelta(hours=24)


def local_utc_offset() -> timedelta:
    """Return the current UTC offset of the process's local timezone."""
    offset = datetime.now().astimezone().utcoffset()
    return offset if offset is not None else timedelta(0)


def parse_utc_offset(s: str) -> timedelta:
    """Parse 'Z', 'UTC', '+HH', '+HH:MM' or '-HHMM' into a timedelta."""
    text = s.strip()
    if text.upper() in ("Z", "UTC"):
        return timedelta(0)
    m = _OFFSET_RE.match(text)
    if not m:
        raise ValueError("utc offset must look like +HH:MM (e.g., -05:00)")
    hours = int(m.group("h"))
    minutes = int(m.group("m") or 0)
    if minutes >= 60:
        raise ValueError("utc offset minutes must be < 60")
    delta = timedelta(hours=hours, minutes=minutes)
    return -delta if m.group("sign") == "-" else delta


class ReportConfig(BaseModel):
    """Settings shared by every line of one conversion run."""

    model_config = ConfigDict(frozen=True)

    stream_id: str = Field(default=DEFAULT_STREAM_ID, description="Stream ID written in every row.")
    utc_offset: timedelta = Field(
        default_factory=local_utc_offset,
        description="Offset applied to the zone-less log timestamps.",
    )
    encoding: str = "utf-8"
    # surrogateescape carries undecodable bytes through to the report unchanged.
    decode_errors: str = "surrogateescape"

    @field_validator("stream_id")
    @classmethod
    def _check_stream_id(cls, v: str) -> str:
        if not v:
            raise ValueError("stream_id must not be empty")
        if any(ch.isspace() for ch in v):
            raise ValueError("stream_id must not contain whitespace")
        return v

    @field_validator("utc_offset")
    @classmethod
    def _check_utc_offset(cls, v: timedelta) -> timedelta:
        if not -_MAX_OFFSET < v < _MAX_OFFSET:
            raise ValueError("utc_offset must be strictly within +/-24 hours")
        return v

    @field_validator("encoding")
    @classmethod
    def _check_encoding(cls, v: str) -> str:
        try:
            codecs.lookup(v)
        except LookupError as exc:
            raise ValueError(f"unknown encoding: {v}") from exc
        return v

    @field_validator("decode_errors")
    @classmethod
    def _check_decode_errors(cls, v: str) -> str:
        try:
            codecs.lookup_error(v)
        except LookupError as exc:
            raise ValueError(f"unknown error handler: {v}") from exc
        return v


def resolve_report_config(cfg: ReportConfig | None = None) -> ReportConfig:
    """Return config with optional env overrides applied."""
    if cfg is None:
        cfg = ReportConfig()

    updates: dict[str, object] = {}

    stream_id = os.getenv("SX_REPORT_STREAM_ID")
    if stream_id:
        updates["stream_id"] = stream_id

    offset = os.getenv("SX_REPORT_UTC_OFFSET")
    if offset:
        try:
            updates["utc_offset"] = parse_utc_offset(offset)
        except ValueError as exc:
            raise ValueError("SX_REPORT_UTC_OFFSET must look like +HH:MM") from exc

    if not updates:
        return cfg
    # model_copy skips validation; rebuild so the validators run on overrides.
    return ReportConfig(**{**cfg.model_dump(), **updates})
