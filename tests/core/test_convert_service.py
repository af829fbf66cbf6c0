from __future__ import annotations

import gzip
import io
from datetime import timedelta
from pathlib import Path

import pytest

from sx_report.core.config import ReportConfig
from sx_report.core.convert_service import (
    convert_file,
    convert_lines,
    iter_log_lines,
    open_text_stream,
    write_report,
)


def test_sample_pair_round_trip(start_line: str, end_line: str, expected_row: str, utc_config) -> None:
    result = convert_lines([start_line + "\n", end_line + "\n"], config=utc_config)
    assert result.rows == [expected_row]
    assert result.lines_read == 2
    assert result.events_parsed == 2


def test_rows_ordered_by_start_time(write_sample_log, tmp_path: Path, utc_config) -> None:
    path = tmp_path / "sc_serv.log"
    write_sample_log(path)
    lines = path.read_text(encoding="utf-8").splitlines()

    result = convert_lines(lines, config=utc_config)

    # UID 8 never closes and UID 999 never started.
    assert [r.split("\t")[0] for r in result.rows] == ["10.0.0.7", "108.236.114.218"]
    assert result.unfinished_sessions == 1
    assert result.skipped == 0


def test_irrelevant_lines_do_not_change_anything(utc_config) -> None:
    result = convert_lines(
        [
            "<01/03/13@16:23:58> [SHOUTcast] DNAS/Linux v1.9.7 (Jun 23 2006) starting up...",
            "<01/03/13@16:23:58> [main] pid: 26440",
        ],
        config=utc_config,
    )
    assert result.events_parsed == 0
    assert result.results == []


def test_zero_duration_session_is_counted_as_skipped(start_line: str, utc_config) -> None:
    end = (
        "<07/01/13@12:35:59> [dest: 108.236.114.218] connection closed (0 seconds) "
        "(UID: 206245)[L: 8]{Bytes: 0}(P: 8)"
    )
    result = convert_lines([start_line, end], config=utc_config)
    assert result.rows == []
    assert result.skipped == 1


def test_local_offset_is_normalized_to_utc(start_line: str, end_line: str) -> None:
    cfg = ReportConfig(stream_id="kwmr128", utc_offset=timedelta(hours=-12))
    [row] = convert_lines([start_line, end_line], config=cfg).rows
    _, date, time, *_ = row.split("\t")
    assert (date, time) == ("2013-07-02", "00:35:59")


def test_open_text_stream_keeps_bad_bytes(utc_config) -> None:
    raw = io.BytesIO(b"<07/01/13@12:35:59> [main] caf\xe9\r\nnext\n")
    stream = open_text_stream(raw, encoding=utc_config.encoding, decode_errors=utc_config.decode_errors)
    first, second = list(stream)
    assert first.endswith("\r\n")
    assert first.rstrip("\r\n").encode("utf-8", "surrogateescape").endswith(b"caf\xe9")
    assert second == "next\n"


def test_write_report_round_trips_undecodable_bytes() -> None:
    row = b"1.2.3.4\t2013-07-01\t12:00:00\ts\t5\t200\tcaf\xe9\n".decode("utf-8", "surrogateescape")
    out = io.BytesIO()
    write_report([row], out)
    assert out.getvalue().endswith(b"\tcaf\xe9\n")


def test_write_report_single_bom(expected_row: str) -> None:
    out = io.BytesIO()
    assert write_report([expected_row, expected_row], out, encoding="utf-16") == 2
    assert out.getvalue().count(b"\xff\xfe") == 1
    assert out.getvalue().decode("utf-16") == expected_row * 2
    assert not out.closed


def test_write_report_counts_rows(expected_row: str) -> None:
    out = io.BytesIO()
    assert write_report([expected_row, expected_row], out) == 2
    assert out.getvalue() == (expected_row * 2).encode("utf-8")


def test_write_report_empty_writes_nothing() -> None:
    out = io.BytesIO()
    assert write_report([], out) == 0
    assert out.getvalue() == b""


@pytest.mark.asyncio
async def test_convert_file(tmp_path: Path, write_sample_log, utc_config) -> None:
    path = tmp_path / "sc_serv.log"
    write_sample_log(path)

    result = await convert_file(path, config=utc_config)

    assert len(result.rows) == 2
    assert result.rows[1].startswith("108.236.114.218\t2013-07-01\t12:35:59\tkwmr128\t28\t200\t")


@pytest.mark.asyncio
async def test_convert_gzip_file(tmp_path: Path, start_line: str, end_line: str, expected_row: str, utc_config) -> None:
    path = tmp_path / "sc_serv.log.gz"
    with gzip.open(path, "wt", encoding="utf-8") as f:
        f.write(start_line + "\r\n" + end_line + "\r\n")

    result = await convert_file(path, config=utc_config)
    assert result.rows == [expected_row]


@pytest.mark.asyncio
async def test_iter_log_lines_keeps_terminators(tmp_path: Path) -> None:
    path = tmp_path / "a.log"
    path.write_bytes(b"one\r\ntwo\nthree")
    assert [line async for line in iter_log_lines(path)] == ["one\r\n", "two\n", "three"]


@pytest.mark.asyncio
async def test_convert_crlf_file(tmp_path: Path, start_line: str, end_line: str, expected_row: str, utc_config) -> None:
    path = tmp_path / "sc_serv.log"
    path.write_bytes((start_line + "\r\n" + end_line + "\r\n").encode("utf-8"))
    result = await convert_file(path, config=utc_config)
    assert result.rows == [expected_row]


@pytest.mark.asyncio
async def test_missing_file_raises(tmp_path: Path, utc_config) -> None:
    with pytest.raises(FileNotFoundError):
        await convert_file(tmp_path / "missing.log", config=utc_config)
