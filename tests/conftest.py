from __future__ import annotations

import struct
from typing import TYPE_CHECKING, Callable

import pytest

from dissect.regflog.c_regflog import HVLE_SIGNATURE, RECORD_HEADER_SIZE

if TYPE_CHECKING:
    from pathlib import Path


def build_record(
    payload: bytes = b"",
    size: int | None = None,
    offset: int = 0,
    sequence: int = 0,
    signature: int = HVLE_SIGNATURE,
) -> bytes:
    if size is None:
        size = RECORD_HEADER_SIZE + len(payload)
    return struct.pack("<IIII", signature, size, offset, sequence) + payload


@pytest.fixture
def make_record() -> Callable[..., bytes]:
    return build_record


@pytest.fixture
def write_log(tmp_path: Path) -> Callable[..., Path]:
    def write(data: bytes, name: str = "SYSTEM.LOG1") -> Path:
        path = tmp_path / name
        path.write_bytes(data)
        return path

    return write
