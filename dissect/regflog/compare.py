from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Protocol

from dissect.regf import RegistryKeyNotFoundError, RegistryValueNotFoundError

from dissect.regflog.regflog import hexdump_preview

if TYPE_CHECKING:
    from collections.abc import Iterable

    from dissect.regf import RegistryHive

    from dissect.regflog.regflog import TransactionEntry

log = logging.getLogger(__name__)
log.setLevel(os.getenv("DISSECT_LOG_REGFLOG", "CRITICAL"))


class ComparisonStatus(Enum):
    UNCHANGED = "unchanged"
    MODIFIED = "modified"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ComparedEntry:
    entry: TransactionEntry
    status: ComparisonStatus
    current: str | None = None


class LiveStateReader(Protocol):
    def lookup(self, key_path: str, value_name: str) -> str | None:
        """Return the current data of a value in the same notation as ``data_after``, or ``None``."""
        ...


class RegistryHiveReader:
    """Look up current values in a primary hive file opened with :mod:`dissect.regf`."""

    def __init__(self, hive: RegistryHive):
        self.hive = hive

    def lookup(self, key_path: str, value_name: str) -> str | None:
        try:
            value = self.hive.open(key_path).value(value_name)
        except (RegistryKeyNotFoundError, RegistryValueNotFoundError):
            return None

        return hexdump_preview(value.data)


def compare(entries: Iterable[TransactionEntry], reader: LiveStateReader) -> list[ComparedEntry]:
    """Annotate ``entries`` with how they relate to the current state of the registry.

    Entries the reader knows nothing about are :attr:`ComparisonStatus.UNKNOWN`.
    """
    result = []

    for entry in entries:
        try:
            current = reader.lookup(entry.key_path, entry.value_name)
        except LookupError as e:
            log.debug("Lookup of %s\\%s failed: %s", entry.key_path, entry.value_name, e)
            current = None

        if current is None:
            status = ComparisonStatus.UNKNOWN
        elif current == entry.data_after:
            status = ComparisonStatus.UNCHANGED
        else:
            status = ComparisonStatus.MODIFIED

        result.append(ComparedEntry(entry, status, current))

    counts = {status: sum(1 for item in result if item.status is status) for status in ComparisonStatus}
    log.info(
        "Comparison finished: %d modified, %d unchanged, %d unknown",
        counts[ComparisonStatus.MODIFIED],
        counts[ComparisonStatus.UNCHANGED],
        counts[ComparisonStatus.UNKNOWN],
    )
    return result
