"""Parser interface."""

from __future__ import annotations

from typing import Protocol

from ..models import ParsedEvent


class EventParser(Protocol):
    """Parser interface: return a ParsedEvent if the line is relevant, else None."""

    def parse(self, line_no: int, line: str) -> ParsedEvent | None:
        """Parse a log line into a session event if recognized."""
        ...
