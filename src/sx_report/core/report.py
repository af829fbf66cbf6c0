"""SoundExchange report rendering.

SoundExchange standard file format: tab-delimited text, one stream per file,
no header row. Columns, in order:

* IP address (no port)
* Date the listener tuned in (YYYY-MM-DD, UTC)
* Time the listener tuned in (HH:MM:SS, 24-hour, UTC)
* Stream ID (no spaces)
* Duration of listening (seconds)
* HTTP status code
* Referrer / client player
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from .models import RenderResult, Session

logger = logging.getLogger(__name__)

HTTP_OK = 200

REPORT_COLUMNS: tuple[str, ...] = (
    "ip_address",
    "date",
    "time",
    "stream_id",
    "duration_seconds",
    "status_code",
    "user_agent",
)


def format_row(session: Session) -> str:
    """Format a session as one report line (terminated by LF)."""
    fields = (
        session.ip_address,
        session.start_time_utc.strftime("%Y-%m-%d"),
        session.start_time_utc.strftime("%H:%M:%S"),
        session.stream_id,
        str(int(session.duration_seconds)),
        str(int(session.status_code)),
        session.user_agent,
    )
    for name, value in zip(REPORT_COLUMNS, fields):
        if not isinstance(value, str):
            raise TypeError(f"{name} must be a string, got {type(value).__name__}")
        if "\t" in value or "\n" in value:
            raise ValueError(f"{name} contains a tab or newline")
    return "\t".join(fields) + "\n"


def render_session(session: Session) -> RenderResult:
    """Render a session, isolating failures to this one record."""
    if session.duration_seconds == 0:
        return RenderResult(session=session, row=None, skip_reason="zero duration")
    try:
        row = format_row(session)
    except (AttributeError, TypeError, ValueError) as exc:
        logger.debug("Skipping session %s: %s", session.session_id, exc)
        return RenderResult(session=session, row=None, skip_reason=str(exc))
    return RenderResult(session=session, row=row)


def iter_rows(results: Iterable[RenderResult]) -> Iterator[str]:
    """Yield the rows of successfully rendered sessions."""
    for r in results:
        if r.row is not None:
            yield r.row
