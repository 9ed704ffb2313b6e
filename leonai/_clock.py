"""Cancellation and time sources shared by every waiting component."""
from __future__ import annotations

import threading
import time
from datetime import datetime, timezone
from typing import Optional

from .exceptions import CancellationError


class CancelToken:
    """A one-shot cancellation signal.

    Every wait in the client (rate limiting, backoff, polling) blocks on the
    token it was given, so a single :meth:`cancel` unblocks all of them.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, seconds: float) -> bool:
        """Block up to *seconds*; return True if cancelled meanwhile."""
        return self._event.wait(max(seconds, 0))

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise CancellationError("operation cancelled")


class Clock:
    """Wall clock, monotonic clock and cancellable sleep.

    Tests substitute a fake that advances time instantly.
    """

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def monotonic(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float, cancel: Optional[CancelToken] = None) -> None:
        if cancel is None:
            time.sleep(max(seconds, 0))
            return
        if cancel.wait(seconds):
            raise CancellationError("operation cancelled")
