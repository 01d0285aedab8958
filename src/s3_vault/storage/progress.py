"""Throttled transfer progress reporting."""

from __future__ import annotations

import threading
from collections.abc import Callable

from s3_vault.core.models import TransferProgress
from s3_vault.logging import get_logger

log = get_logger(__name__)

ProgressCallback = Callable[[TransferProgress], None]

PROGRESS_STEP = 5
# The last byte arriving is not success; the caller still has to commit.
MAX_IN_FLIGHT_PCT = 99


class ProgressReporter:
    """Turn raw byte counts into at most one callback per 5 percentage points.

    Byte counts alone never report more than 99; 100 is reported exactly once,
    by :meth:`finish`, which callers invoke only after the transfer has been
    committed. Reported percentages never decrease and nothing is reported
    after :meth:`finish`. Safe to feed from the transfer manager's worker threads.
    """

    def __init__(
            self,
            total: int,
            on_progress: ProgressCallback | None = None,
            *,
            label: str = "transfer",
    ) -> None:
        self.total = max(total, 0)
        self.loaded = 0
        self._on_progress = on_progress
        self._label = label
        self._last_pct = 0
        self._done = False
        self._lock = threading.Lock()

    def __call__(self, bytes_amount: int) -> None:
        """Add ``bytes_amount`` (may be negative when a part is retried)."""
        self.advance(bytes_amount)

    def advance(self, bytes_amount: int) -> None:
        with self._lock:
            self.loaded = max(self.loaded + bytes_amount, 0)
            if self._done or self.total <= 0:
                return
            pct = min(self.loaded * 100 // self.total, MAX_IN_FLIGHT_PCT)
            if pct >= self._last_pct + PROGRESS_STEP:
                self._emit(pct)

    def finish(self) -> None:
        """Report 100 %. Call only once the transfer has succeeded."""
        with self._lock:
            if self._done:
                return
            if self.total <= 0 or self.loaded > self.total:
                self.total = self.loaded
            self.loaded = self.total
            self._emit(100)

    def _emit(self, pct: int) -> None:
        self._last_pct = pct
        if pct == 100:
            self._done = True
        log.debug(
            f"{self._label}_progress",
            percentage=pct,
            loaded=self.loaded,
            total=self.total,
        )
        if self._on_progress is not None:
            self._on_progress(
                TransferProgress(
                    bytes_transferred=self.loaded,
                    total_bytes=self.total,
                    percentage=pct,
                )
            )
