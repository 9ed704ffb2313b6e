from __future__ import annotations

import contextlib
import threading
from typing import Iterator, Optional

from ._clock import CancelToken, Clock

_DEFAULT_INTERVAL = 1.0
_LOCK_POLL = 0.05


class RateLimiter:
    """Serializes outbound calls with a minimum spacing between them.

    Only one holder at a time. The spacing is measured from the previous
    release, across every endpoint.
    """

    def __init__(self, interval: Optional[float] = None, clock: Optional[Clock] = None):
        self.interval = _DEFAULT_INTERVAL if interval is None else interval
        self._clock = clock or Clock()
        self._lock = threading.Lock()
        self._released_at: float | None = None

    def locked(self) -> bool:
        return self._lock.locked()

    @contextlib.contextmanager
    def acquire(self, cancel: Optional[CancelToken] = None) -> Iterator[None]:
        cancel = cancel or CancelToken()
        while not self._lock.acquire(timeout=_LOCK_POLL):
            cancel.raise_if_cancelled()

        held = False
        try:
            cancel.raise_if_cancelled()
            if self._released_at is not None:
                remaining = self.interval - (self._clock.monotonic() - self._released_at)
                if remaining > 0:
                    self._clock.sleep(remaining, cancel)
            held = True
            yield
        finally:
            if held:
                self._released_at = self._clock.monotonic()
            self._lock.release()
