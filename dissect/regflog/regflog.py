from __future__ import annotations

import logging
import os
import struct
from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from functools import cached_property
from pathlib import Path, PureWindowsPath
from typing import TYPE_CHECKING

from dissect.util.ts import wintimestamp

from dissect.regflog.c_regflog import (
    DATA_BEFORE_PLACEHOLDER,
    LOG_SUFFIXES,
    MAX_RECORD_SIZE,
    MIN_PATH_LENGTH,
    PATH_SCAN_SIZE,
    PREVIEW_SIZE,
    RECORD_HEADER_SIZE,
    RECORD_SIGNATURES,
    REGF_SIGNATURE,
    VALUE_NAME_PLACEHOLDER,
    c_regflog,
)
from dissect.regflog.exceptions import LogFileError

if TYPE_CHECKING:
    from collections.abc import Iterator

    from dissect.regflog.session import CancelToken

log = logging.getLogger(__name__)
log.setLevel(os.getenv("DISSECT_LOG_REGFLOG", "CRITICAL"))


class Rejection(Enum):
    ZERO_SIZE = "zero size"
    SIZE_TOO_LARGE = "size too large"
    TRUNCATED_RECORD = "truncated record"


@dataclass(frozen=True)
class TransactionEntry:
    timestamp: str
    hive: str
    key_path: str
    value_name: str
    data_before: str
    data_after: str
    txid: str
    offset: int
    sequence: int
    record_offset: int


class LogBaseBlock:
    """The ``regf`` base block a transaction log starts with.

    Only the fields needed to judge the state of the log are exposed, the
    remainder is available through :attr:`header`.
    """

    def __init__(self, data: bytes):
        self.header = c_regflog._HBASE_BLOCK(data[: len(c_regflog._HBASE_BLOCK)])

        self.sequence1 = self.header.Sequence1
        self.sequence2 = self.header.Sequence2
        self.major = self.header.Major
        self.minor = self.header.Minor
        self.file_name = self.header.FileName.rstrip("\x00")
        self.checksum_valid = xor32_crc(data[:508]) == self.header.CheckSum

    def __repr__(self) -> str:
        return f"<LogBaseBlock {self.file_name!r} seq={self.sequence1}/{self.sequence2}>"

    @property
    def in_transaction(self) -> bool:
        return self.sequence1 != self.sequence2

    @cached_property
    def timestamp(self) -> datetime | None:
        try:
            return wintimestamp(self.header.TimeStamp)
        except (OverflowError, OSError, ValueError):
            log.debug("Invalid base block timestamp 0x%x", self.header.TimeStamp)
            return None


class LogRecord:
    """A record found by the signature scan, backed by the log buffer."""

    def __init__(self, buf: bytes, cursor: int, header: c_regflog._HVLE_RECORD):
        self.buf = buf
        self.cursor = cursor
        self.header = header

    def __repr__(self) -> str:
        return f"<LogRecord cursor={self.cursor:#x} size={self.size} seq={self.sequence}>"

    @property
    def signature(self) -> int:
        return self.header.Signature

    @property
    def size(self) -> int:
        return self.header.Size

    @property
    def offset(self) -> int:
        return self.header.Offset

    @property
    def sequence(self) -> int:
        return self.header.Sequence

    @cached_property
    def payload(self) -> bytes:
        start = min(self.cursor + RECORD_HEADER_SIZE, len(self.buf))
        end = min(self.cursor + self.size, len(self.buf))
        return self.buf[start:end]

    @cached_property
    def key_path(self) -> str:
        return resolve_key_path(self.payload, self.offset)

    @cached_property
    def preview(self) -> str:
        return hexdump_preview(self.payload)


class TransactionLog:
    """A registry transaction log (``.LOG``, ``.LOG1``, ``.LOG2``) held in memory.

    The log has no reliable index of its records, so they are found by scanning
    the whole buffer for known record signatures. Magic values showing up inside
    the data of other records are expected and skipped as noise.

    Args:
        data: The complete contents of the log file.
        name: File name or path of the log, used to derive the hive name.
    """

    def __init__(self, data: bytes, name: str = ""):
        self.data = data
        self.hive = hive_name(name) if name else ""
        self.rejections = Counter()

        self.header = None
        if len(data) < len(c_regflog._HBASE_BLOCK):
            log.warning("Log %r is too small to contain a complete base block", self.hive)
        elif struct.unpack_from("<I", data)[0] == REGF_SIGNATURE:
            self.header = LogBaseBlock(data)

            if not self.header.checksum_valid:
                log.warning("Base block checksum of log %r failed, the log may be damaged", self.hive)
            if self.header.in_transaction:
                log.warning(
                    "Base block sequence numbers of log %r differ (%d != %d), the log was not fully written",
                    self.hive,
                    self.header.sequence1,
                    self.header.sequence2,
                )
        else:
            log.debug("Log %r has no base block", self.hive)

    @classmethod
    def from_path(cls, path: str | Path) -> TransactionLog:
        return cls(load(path), str(path))

    def records(self, cancel: CancelToken | None = None) -> Iterator[LogRecord]:
        yield from scan(self.data, cancel, self.rejections)

    def entries(self, cancel: CancelToken | None = None, now: datetime | None = None) -> list[TransactionEntry]:
        now = now or datetime.now()
        self.rejections.clear()

        entries = [build_entry(record, self.hive, now) for record in self.records(cancel)]

        log.info("Parsing of %r finished: %d transactions found", self.hive, len(entries))
        if self.rejections:
            log.debug(
                "Skipped false positive signatures in %r: %s",
                self.hive,
                ", ".join(f"{reason.value}={count}" for reason, count in self.rejections.items()),
            )

        return entries


def check_path(path: str | Path) -> Path:
    """Check that ``path`` is an existing, readable file without parsing it."""
    path = Path(path)
    if not path.is_file():
        raise LogFileError(f"Log file {str(path)!r} does not exist")

    try:
        with path.open("rb"):
            pass
    except OSError as e:
        raise LogFileError(f"Unable to open log file {str(path)!r}: {e}") from e

    return path


def load(path: str | Path) -> bytes:
    path = Path(path)

    try:
        with path.open("rb") as fh:
            data = fh.read()
    except OSError as e:
        raise LogFileError(f"Unable to read log file {str(path)!r}: {e}") from e

    if not data:
        raise LogFileError(f"Log file {str(path)!r} is empty")

    log.debug("Loaded %d bytes from %s", len(data), path)
    return data


def parse(path: str | Path, cancel: CancelToken | None = None) -> list[TransactionEntry]:
    return TransactionLog.from_path(path).entries(cancel)


def validate(header: c_regflog._HVLE_RECORD, buffer_length: int, cursor: int) -> Rejection | None:
    if header.Size == 0:
        return Rejection.ZERO_SIZE

    if header.Size >= MAX_RECORD_SIZE:
        return Rejection.SIZE_TOO_LARGE

    if cursor + header.Size > buffer_length:
        return Rejection.TRUNCATED_RECORD

    return None


def scan(buf: bytes, cancel: CancelToken | None = None, rejections: Counter | None = None) -> Iterator[LogRecord]:
    """Walk ``buf`` in 4 byte steps looking for record signatures.

    A valid record moves the cursor past the record, anything else moves it by 4.
    The cursor always moves forward, so the scan takes at most ``len(buf) // 4``
    iterations. ``cancel`` is checked once per iteration.
    """
    buf_len = len(buf)
    cursor = 0

    while cursor + RECORD_HEADER_SIZE < buf_len:
        if cancel is not None and cancel.cancelled:
            log.info("Scan cancelled at offset %#x", cursor)
            break

        if struct.unpack_from("<I", buf, cursor)[0] in RECORD_SIGNATURES:
            header = c_regflog._HVLE_RECORD(buf[cursor : cursor + RECORD_HEADER_SIZE])

            if (rejection := validate(header, buf_len, cursor)) is None:
                yield LogRecord(buf, cursor, header)
                # Records smaller than a scan step still move the cursor a full step
                cursor += max(header.Size, 4)
                continue

            log.debug("Rejected signature at %#x: %s (size %d)", cursor, rejection.value, header.Size)
            if rejections is not None:
                rejections[rejection] += 1

        cursor += 4


def resolve_key_path(payload: bytes, offset: int) -> str:
    """Best effort recovery of a key path from the payload of a record.

    The first run of printable ASCII UTF-16-LE characters within the first 512
    bytes is taken. Runs of 3 characters or fewer are not considered a path and
    a placeholder with the hive offset of the record is returned instead.
    """
    data = payload[:PATH_SCAN_SIZE]
    data = data[: len(data) & ~1]

    chars = []
    for (unit,) in struct.iter_unpack("<H", data):
        if 32 <= unit <= 126:
            chars.append(chr(unit))
        elif chars:
            break

    if len(chars) >= MIN_PATH_LENGTH:
        return "".join(chars)

    return f"<Key @ offset {hex32(offset)}>"


def hexdump_preview(data: bytes, limit: int = PREVIEW_SIZE) -> str:
    return data[:limit].hex(" ").upper()


def hex32(value: int) -> str:
    return f"0x{value:08X}"


def hive_name(path: str | Path) -> str:
    # Log files are usually named after their hive, e.g. SOFTWARE.LOG1
    name = PureWindowsPath(str(path)).name

    for suffix in LOG_SUFFIXES:
        if len(name) > len(suffix) and name.endswith(suffix):
            return name[: -len(suffix)]

    return name


def build_entry(record: LogRecord, hive: str, now: datetime) -> TransactionEntry:
    # Records carry no time of their own, the parse time is the best there is
    return TransactionEntry(
        timestamp=f"{now:%d/%m/%Y %H:%M:%S} (Seq: {record.sequence})",
        hive=hive,
        key_path=record.key_path,
        value_name=VALUE_NAME_PLACEHOLDER,
        data_before=DATA_BEFORE_PLACEHOLDER,
        data_after=record.preview,
        txid=hex32(record.sequence),
        offset=record.offset,
        sequence=record.sequence,
        record_offset=record.cursor,
    )


def sort_by_sequence(entries: list[TransactionEntry]) -> list[TransactionEntry]:
    """Return ``entries`` in sequence number order instead of scan order."""
    return sorted(entries, key=lambda entry: entry.sequence)


def xor32_crc(data: bytes) -> int:
    crc = 0
    for ii in c_regflog.uint32[len(data) // 4](data):
        crc ^= ii

    return crc
