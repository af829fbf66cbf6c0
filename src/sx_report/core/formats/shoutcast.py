"""SHOUTcast DNAS access log parser.

Recognizes destination events of the form::

    <07/01/13@12:35:59> [dest: 108.236.114.218] starting stream (UID: 206245)[L: 9]{A: iTunes/11.0.2}(P: 8)
    <07/01/13@12:36:27> [dest: 108.236.114.218] connection closed (28 seconds) (UID: 206245)[L: 8]{Bytes: 664784}(P: 8)

Everything else (startup banners, ``[main]`` diagnostics, other destination
messages) is ignored.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from ..models import ParsedEvent, SessionEnd, SessionStart

DEST_PREFIX = "dest:"
START_PREFIX = "sta"
END_PREFIX = "con"
TIMESTAMP_FORMAT = "%m/%d/%y@%H:%M:%S"


@dataclass(frozen=True, slots=True)
class ShoutcastLineParser:
    """Parse SHOUTcast destination lines into session start/end events.

    Log timestamps carry no zone; they are bound to ``utc_offset`` (the local
    offset of the machine doing the conversion) and kept aware.
    """

    utc_offset: timedelta = timedelta(0)

    _re = re.compile(
        r"<(?P<ts>\d{2}/\d{2}/\d{2}@\d{2}:\d{2}:\d{2})>\s"
        r"\[(?P<category>[^\]]+)\]\s"
        r"(?P<detail>.+?)"
        r"\[(?P<extra>[^\]]*)\]"
        r"\{(?P<agent>.*)\}"
    )
    _start_re = re.compile(r"\(UID: (?P<uid>\d+)\)")
    _end_re = re.compile(r"\((?P<duration>\d+) seconds\) \(UID: (?P<uid>\d+)\)")

    def _parse_ts(self, ts_str: str) -> datetime | None:
        try:
            naive = datetime.strptime(ts_str, TIMESTAMP_FORMAT)
        except ValueError:
            return None
        return naive.replace(tzinfo=timezone(self.utc_offset))

    def parse(self, line_no: int, line: str) -> ParsedEvent | None:
        """Parse a destination start/end line; return None for anything else."""
        m = self._re.search(line)
        if not m:
            return None

        category = m.group("category")
        if not category.startswith(DEST_PREFIX):
            return None

        detail = m.group("detail")
        if detail.startswith(START_PREFIX):
            return self._parse_start(line_no, m, category, detail)
        if detail.startswith(END_PREFIX):
            return self._parse_end(line_no, m, detail)
        return None

    def _parse_start(
        self, line_no: int, m: re.Match[str], category: str, detail: str
    ) -> SessionStart | None:
        uid = self._start_re.search(detail)
        if not uid:
            return None
        ts = self._parse_ts(m.group("ts"))
        if ts is None:
            return None

        # Drop the two-character field tag ("A:") in front of the agent string.
        agent = m.group("agent")[2:].lstrip()
        return SessionStart(
            line_no=line_no,
            session_id=int(uid.group("uid")),
            timestamp=ts,
            client_ip=category[len(DEST_PREFIX):].strip(),
            user_agent=agent,
        )

    def _parse_end(self, line_no: int, m: re.Match[str], detail: str) -> SessionEnd | None:
        em = self._end_re.search(detail)
        if not em:
            return None
        ts = self._parse_ts(m.group("ts"))
        if ts is None:
            return None
        return SessionEnd(
            line_no=line_no,
            session_id=int(em.group("uid")),
            timestamp=ts,
            duration_seconds=int(em.group("duration")),
        )
