from __future__ import annotations

from collections.abc import Callable
from datetime import timedelta
from pathlib import Path

import pytest

from sx_report.core.config import ReportConfig

START_LINE = (
    "<07/01/13@12:35:59> [dest: 108.236.114.218] starting stream (UID: 206245)[L: 9]"
    "{A: iTunes/11.0.2 (Macintosh; OS X 10.6.8) AppleWebKit/534.58.2}(P: 8)"
)
END_LINE = (
    "<07/01/13@12:36:27> [dest: 108.236.114.218] connection closed (28 seconds) "
    "(UID: 206245)[L: 8]{Bytes: 664784}(P: 8)"
)
EXPECTED_ROW = (
    "108.236.114.218\t2013-07-01\t12:35:59\tkwmr128\t28\t200\t"
    "iTunes/11.0.2 (Macintosh; OS X 10.6.8) AppleWebKit/534.58.2\n"
)

SAMPLE_LOG = [
    "<01/03/13@16:23:58> [SHOUTcast] DNAS/Linux v1.9.7 (Jun 23 2006) starting up...",
    "<01/03/13@16:23:58> [main] pid: 26440",
    "<01/03/13@16:23:58> [main] loaded config from /root/shoutcast/kwmr128.conf",
    START_LINE,
    "<07/01/13@12:35:40> [dest: 10.0.0.7] starting stream (UID: 7)[L: 2]{A: WinampMPEG/5.63}(P: 1)",
    "<07/01/13@12:35:50> [dest: 10.0.0.8] starting stream (UID: 8)[L: 3]{A: VLC/2.0.7}(P: 2)",
    END_LINE,
    "<07/01/13@12:40:00> [dest: 10.0.0.7] connection closed (260 seconds) (UID: 7)[L: 1]{Bytes: 1}(P: 1)",
    "<07/01/13@12:41:00> [dest: 10.9.9.9] connection closed (5 seconds) (UID: 999)[L: 0]{Bytes: 1}(P: 0)",
]


@pytest.fixture
def utc_config() -> ReportConfig:
    return ReportConfig(stream_id="kwmr128", utc_offset=timedelta(0))


@pytest.fixture
def write_sample_log() -> Callable[[Path], None]:
    def _write(path: Path) -> None:
        path.write_text("\n".join(SAMPLE_LOG) + "\n", encoding="utf-8")

    return _write


@pytest.fixture
def start_line() -> str:
    return START_LINE


@pytest.fixture
def end_line() -> str:
    return END_LINE


@pytest.fixture
def expected_row() -> str:
    return EXPECTED_ROW
