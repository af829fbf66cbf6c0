"""Session correlation: pair start and end events by UID."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC

from .models import ParsedEvent, RenderResult, Session, SessionEnd, SessionStart
from .report import HTTP_OK, render_session


class SessionAggregator:
    """Track open sessions and complete them when their end event arrives.

    A later start for the same UID replaces the earlier session. An end for an
    unknown UID is dropped. A repeated end overwrites the duration.
    """

    def __init__(self, stream_id: str) -> None:
        self.stream_id = stream_id
        self._sessions: dict[int, Session] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    @property
    def open_sessions(self) -> int:
        return sum(1 for s in self._sessions.values() if not s.is_complete)

    @property
    def completed_sessions(self) -> int:
        return sum(1 for s in self._sessions.values() if s.is_complete)

    def on_event(self, event: ParsedEvent) -> None:
        if isinstance(event, SessionStart):
            self._sessions[event.session_id] = Session(
                session_id=event.session_id,
                ip_address=event.client_ip,
                start_time_utc=event.timestamp.astimezone(UTC),
                user_agent=event.user_agent,
                stream_id=self.stream_id,
            )
        elif isinstance(event, SessionEnd):
            session = self._sessions.get(event.session_id)
            if session is None:
                return
            session.duration_seconds = event.duration_seconds
            session.status_code = HTTP_OK

    def feed(self, events: Iterable[ParsedEvent | None]) -> None:
        """Apply a stream of events, skipping lines that produced none."""
        for event in events:
            if event is not None:
                self.on_event(event)

    def completed(self) -> list[Session]:
        """Completed sessions ordered by UTC start time, then UID."""
        done = [s for s in self._sessions.values() if s.is_complete]
        done.sort(key=lambda s: (s.start_time_utc, s.session_id))
        return done

    def finalize(self) -> list[RenderResult]:
        """Render every completed session in report order."""
        return [render_session(s) for s in self.completed()]
