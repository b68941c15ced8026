from dissect.regflog.compare import ComparedEntry, ComparisonStatus, RegistryHiveReader, compare
from dissect.regflog.exceptions import Error, LogFileError, ScanInProgressError
from dissect.regflog.export import write_csv
from dissect.regflog.regflog import (
    LogBaseBlock,
    LogRecord,
    Rejection,
    TransactionEntry,
    TransactionLog,
    check_path,
    hive_name,
    load,
    parse,
    sort_by_sequence,
)
from dissect.regflog.session import CancelToken, ParseSession


__all__ = [
    "CancelToken",
    "ComparedEntry",
    "ComparisonStatus",
    "Error",
    "LogBaseBlock",
    "LogFileError",
    "LogRecord",
    "ParseSession",
    "RegistryHiveReader",
    "Rejection",
    "ScanInProgressError",
    "TransactionEntry",
    "TransactionLog",
    "check_path",
    "compare",
    "hive_name",
    "load",
    "parse",
    "sort_by_sequence",
    "write_csv",
]
