from __future__ import annotations

import threading
import time

import pytest

from dissect.regflog import session
from dissect.regflog.exceptions import Error, LogFileError, ScanInProgressError
from dissect.regflog.session import CancelToken, ParseSession


def test_cancel_token() -> None:
    token = CancelToken()
    assert not token.cancelled

    token.cancel()
    assert token.cancelled


def test_session_parse(write_log, make_record) -> None:
    path = write_log(make_record(b"\x00" * 8, sequence=1) + make_record(b"\x00" * 8, sequence=2), "SOFTWARE.LOG")

    with ParseSession() as parser:
        assert parser.load(path) == path
        assert parser.entries == []

        future = parser.parse()
        entries = parser.result(10)

        assert future.done()
        assert [entry.sequence for entry in entries] == [1, 2]
        assert parser.entries == entries
        assert not parser.busy


def test_session_new_scan_replaces_entries(write_log, make_record) -> None:
    first = write_log(make_record(b"\x00" * 8, sequence=1), "SYSTEM.LOG1")
    second = write_log(b"\x00" * 64, "SYSTEM.LOG2")

    with ParseSession() as parser:
        parser.parse(first)
        assert len(parser.result(10)) == 1

        parser.parse(second)
        assert parser.result(10) == []
        assert parser.entries == []


def test_session_load_missing(tmp_path) -> None:
    with ParseSession() as parser:
        with pytest.raises(LogFileError):
            parser.load(tmp_path / "SYSTEM.LOG")

        with pytest.raises(Error):
            parser.parse()

        with pytest.raises(Error):
            parser.result()


def test_session_parse_failure(write_log) -> None:
    path = write_log(b"")

    with ParseSession() as parser:
        parser.parse(path)

        with pytest.raises(LogFileError):
            parser.result(10)

        assert parser.entries == []


def test_session_rejects_concurrent_scan(monkeypatch, write_log) -> None:
    started = threading.Event()
    release = threading.Event()

    def blocking_parse(path, cancel):
        started.set()
        release.wait(10)
        return []

    monkeypatch.setattr(session, "parse", blocking_parse)

    with ParseSession() as parser:
        parser.parse(write_log(b"\x00" * 32))
        assert started.wait(10)
        assert parser.busy

        with pytest.raises(ScanInProgressError):
            parser.parse()
        assert parser.entries == []

        release.set()
        assert parser.result(10) == []
        assert not parser.busy


def test_session_close_cancels_scan(monkeypatch, write_log) -> None:
    started = threading.Event()
    stopped = threading.Event()

    def cancellable_parse(path, cancel):
        started.set()
        while not cancel.cancelled:
            time.sleep(0.01)
        stopped.set()
        return []

    monkeypatch.setattr(session, "parse", cancellable_parse)

    parser = ParseSession()
    parser.parse(write_log(b"\x00" * 32))
    assert started.wait(10)

    parser.close(timeout=10)

    assert stopped.is_set()
    assert not parser.busy


def test_session_close_timeout(monkeypatch, write_log) -> None:
    started = threading.Event()
    release = threading.Event()

    def stubborn_parse(path, cancel):
        started.set()
        release.wait(10)
        return []

    monkeypatch.setattr(session, "parse", stubborn_parse)

    parser = ParseSession(close_timeout=0.05)
    parser.parse(write_log(b"\x00" * 32))
    assert started.wait(10)

    parser.close()
    assert parser.busy

    release.set()
    assert parser.result(10) == []
