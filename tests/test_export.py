from __future__ import annotations

import csv

import pytest

from dissect.regflog.exceptions import LogFileError
from dissect.regflog.export import CSV_HEADER, write_csv
from dissect.regflog.regflog import TransactionLog


def test_write_csv(tmp_path, make_record) -> None:
    data = b"".join(
        make_record("Control\\Lsa".encode("utf-16-le"), sequence=i, offset=0x1000 * i) for i in range(3)
    )
    entries = TransactionLog(data, "SYSTEM.LOG").entries()
    path = tmp_path / "registry_transactions.csv"

    assert write_csv(entries, path) == 3

    raw = path.read_bytes()
    assert raw.startswith(b"\xef\xbb\xbf")
    assert raw.splitlines()[1].startswith(b'"')

    with path.open(encoding="utf-8-sig", newline="") as fh:
        rows = list(csv.reader(fh))

    assert len(rows) == 4
    assert rows[0] == list(CSV_HEADER)
    assert rows[0] == ["Timestamp", "HiveFile", "KeyPath", "ValueName", "DataBefore", "DataAfter", "TxID"]
    assert all(len(row) == 7 for row in rows)

    entry = entries[1]
    assert rows[2] == [
        entry.timestamp,
        "SYSTEM",
        "Control\\Lsa",
        "<Dirty Page>",
        "<Uncommitted>",
        entry.data_after,
        "0x00000001",
    ]


def test_write_csv_quotes(tmp_path, make_record) -> None:
    data = make_record('Key "quoted", path'.encode("utf-16-le"))
    entries = TransactionLog(data, "SAM.LOG1").entries()
    path = tmp_path / "out.csv"

    write_csv(entries, path)

    with path.open(encoding="utf-8-sig", newline="") as fh:
        rows = list(csv.reader(fh))

    assert rows[1][2] == 'Key "quoted", path'


def test_write_csv_empty(tmp_path) -> None:
    path = tmp_path / "out.csv"

    assert write_csv([], path) == 0
    assert path.read_text(encoding="utf-8-sig").splitlines() == [",".join(f'"{name}"' for name in CSV_HEADER)]


def test_write_csv_unwritable(tmp_path) -> None:
    with pytest.raises(LogFileError):
        write_csv([], tmp_path / "missing" / "out.csv")
