import argparse
import logging
import sys
from pathlib import Path

from dissect.regflog import LogFileError, TransactionLog, sort_by_sequence, write_csv


def main() -> int:
    parser = argparse.ArgumentParser(description="Recover uncommitted changes from a registry transaction log")
    parser.add_argument("log", type=Path, help="path to a .LOG, .LOG1 or .LOG2 file")
    parser.add_argument("--csv", type=Path, help="export the transactions to this CSV file")
    parser.add_argument("--sort-by-sequence", action="store_true", help="order by sequence number instead of offset")
    parser.add_argument("--run-log", type=Path, help="append a timestamped log of this run to this file")
    args = parser.parse_args()

    if args.run_log:
        handler = logging.FileHandler(args.run_log, mode="a", encoding="utf-8")
        handler.setFormatter(logging.Formatter("[%(asctime)s] %(message)s", datefmt="%d/%m/%Y %H:%M:%S"))
        handler.setLevel(logging.INFO)

        logging.getLogger("dissect.regflog").addHandler(handler)
        for module in ("regflog", "session", "export", "compare"):
            logging.getLogger(f"dissect.regflog.{module}").setLevel(logging.INFO)

    try:
        log = TransactionLog.from_path(args.log)
    except LogFileError as e:
        print(f"Could not read log file: {e}", file=sys.stderr)
        return 1

    if log.header:
        print(f"Base block: {log.header.file_name!r} seq={log.header.sequence1}/{log.header.sequence2}", end="")
        print(f" checksum={'OK' if log.header.checksum_valid else 'FAILED'} timestamp={log.header.timestamp}")

    entries = log.entries()
    if not entries:
        print("Parsed successfully, no transactions found")
        return 0

    if args.sort_by_sequence:
        entries = sort_by_sequence(entries)

    for entry in entries:
        print(entry.txid, entry.hive, hex(entry.offset), entry.key_path, entry.data_after, sep="\t")

    print(f"{len(entries)} transactions found")

    if args.csv:
        try:
            write_csv(entries, args.csv)
        except LogFileError as e:
            print(f"Could not write CSV file: {e}", file=sys.stderr)
            return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
