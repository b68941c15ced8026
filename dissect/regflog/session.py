from __future__ import annotations

import logging
import os
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from pathlib import Path
from typing import TYPE_CHECKING

from dissect.regflog.exceptions import Error, ScanInProgressError
from dissect.regflog.regflog import check_path, parse

if TYPE_CHECKING:
    from dissect.regflog.regflog import TransactionEntry

log = logging.getLogger(__name__)
log.setLevel(os.getenv("DISSECT_LOG_REGFLOG", "CRITICAL"))


class CancelToken:
    """Cooperative cancellation flag shared between a caller and a running scan."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class ParseSession:
    """Run log parsing on a single background worker.

    Only one scan runs at a time. The entries of a scan become available after
    its completion, through :meth:`result` or :attr:`entries`. Starting a new
    scan discards the entries of the previous one.

    Args:
        close_timeout: Seconds :meth:`close` waits for a running scan to stop.
    """

    def __init__(self, close_timeout: float = 2.0):
        self.close_timeout = close_timeout
        self.path: Path | None = None

        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="regflog")
        self._future: Future | None = None
        self._token: CancelToken | None = None

    def __enter__(self) -> ParseSession:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    @property
    def busy(self) -> bool:
        return self._future is not None and not self._future.done()

    @property
    def entries(self) -> list[TransactionEntry]:
        future = self._future
        if future is None or not future.done() or future.cancelled() or future.exception() is not None:
            return []

        return future.result()

    def load(self, path: str | Path) -> Path:
        self.path = check_path(path)
        log.info("Loaded log file %s", self.path)
        return self.path

    def parse(self, path: str | Path | None = None) -> Future:
        if self.busy:
            raise ScanInProgressError("A scan is already running in this session")

        if path is not None:
            self.load(path)

        if self.path is None:
            raise Error("No log file loaded")

        self._token = CancelToken()

        log.info("Parsing log file %s", self.path)
        self._future = self._executor.submit(parse, self.path, self._token)
        self._future.add_done_callback(self._on_done)
        return self._future

    def _on_done(self, future: Future) -> None:
        if future.cancelled():
            return

        if (exc := future.exception()) is not None:
            log.error("Parsing of %s failed: %s", self.path, exc)
            return

        log.info("Parsing of %s completed with %d transactions", self.path, len(future.result()))

    def result(self, timeout: float | None = None) -> list[TransactionEntry]:
        if self._future is None:
            raise Error("No scan was started")

        return self._future.result(timeout)

    def cancel(self) -> None:
        if self._token is not None and self.busy:
            log.info("Cancelling scan of %s", self.path)
            self._token.cancel()

    def close(self, timeout: float | None = None) -> None:
        timeout = self.close_timeout if timeout is None else timeout

        self.cancel()
        if self._future is not None:
            _, pending = wait([self._future], timeout=timeout)
            if pending:
                log.warning("Scan of %s did not stop within %.1f seconds", self.path, timeout)

        self._executor.shutdown(wait=False)
