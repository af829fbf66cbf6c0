"""Core data models for log conversion."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class EventKind(str, Enum):
    """Kinds of destination events the converter cares about."""

    START = "start"
    END = "end"


@dataclass(frozen=True, slots=True)
class SessionStart:
    """A listener connected ("starting stream")."""

    line_no: int
    session_id: int
    timestamp: datetime  # aware, bound to the configured local offset
    client_ip: str
    user_agent: str

    kind = EventKind.START


@dataclass(frozen=True, slots=True)
class SessionEnd:
    """A listener disconnected ("connection closed")."""

    line_no: int
    session_id: int
    timestamp: datetime
    duration_seconds: int

    kind = EventKind.END


ParsedEvent = SessionStart | SessionEnd


@dataclass(slots=True)
class Session:
    """One listener connection, keyed by UID."""

    session_id: int
    ip_address: str
    start_time_utc: datetime
    user_agent: str
    stream_id: str
    duration_seconds: int | None = None
    status_code: int | None = None

    @property
    def is_complete(self) -> bool:
        return self.duration_seconds is not None


@dataclass(frozen=True, slots=True)
class RenderResult:
    """Outcome of rendering one session: a report row or a reason it was skipped."""

    session: Session
    row: str | None
    skip_reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.row is not None
