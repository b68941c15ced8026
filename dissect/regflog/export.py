from __future__ import annotations

import csv
import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING

from dissect.regflog.exceptions import LogFileError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from dissect.regflog.regflog import TransactionEntry

log = logging.getLogger(__name__)
log.setLevel(os.getenv("DISSECT_LOG_REGFLOG", "CRITICAL"))

CSV_HEADER = ("Timestamp", "HiveFile", "KeyPath", "ValueName", "DataBefore", "DataAfter", "TxID")


def entry_row(entry: TransactionEntry) -> tuple[str, ...]:
    return (
        entry.timestamp,
        entry.hive,
        entry.key_path,
        entry.value_name,
        entry.data_before,
        entry.data_after,
        entry.txid,
    )


def write_csv(entries: Iterable[TransactionEntry], path: str | Path) -> int:
    """Write ``entries`` to ``path`` as a UTF-8 (with BOM) CSV file.

    Returns the number of rows written, excluding the header.
    """
    path = Path(path)
    count = 0

    try:
        with path.open("w", encoding="utf-8-sig", newline="") as fh:
            writer = csv.writer(fh, quoting=csv.QUOTE_ALL, lineterminator="\n")
            writer.writerow(CSV_HEADER)

            for entry in entries:
                writer.writerow(entry_row(entry))
                count += 1
    except OSError as e:
        raise LogFileError(f"Unable to write CSV file {str(path)!r}: {e}") from e

    log.info("Exported %d transactions to %s", count, path)
    return count
