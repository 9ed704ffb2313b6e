from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Optional, Sequence

from ._clock import CancelToken, Clock
from ._http import Reply, Transport, requires_bearer
from .exceptions import APIError, StatusCodeError, TransportError

if TYPE_CHECKING:
    from .auth import TokenManager

logger = logging.getLogger("leonai")

MAX_ATTEMPTS = 3
BACKOFF: tuple[float, ...] = (30.0, 60.0, 120.0)
RETRYABLE_STATUS_CODES = frozenset({429, 502, 503, 504})
INVALID_JWT_CODE = "invalid-jwt"


def backoff_delay(attempt: int, schedule: Sequence[float] = BACKOFF) -> float:
    """Delay after the *attempt*-th failure (1-based), clamped to the last entry."""
    index = min(max(attempt - 1, 0), len(schedule) - 1)
    return schedule[index]


class RetryPolicy:
    """Wraps :meth:`Transport.send` with a bounded, failure-aware retry loop."""

    def __init__(
        self,
        transport: Transport,
        tokens: Optional["TokenManager"] = None,
        clock: Optional[Clock] = None,
        max_attempts: int = MAX_ATTEMPTS,
        backoff: Sequence[float] = BACKOFF,
    ):
        self._transport = transport
        self._tokens = tokens
        self._clock = clock or Clock()
        self.max_attempts = max_attempts
        self.backoff = tuple(backoff)

    def call(
        self,
        cancel: CancelToken,
        method: str,
        path: str,
        body: Any = None,
        target: Optional[Callable[[Any], Any]] = None,
    ) -> Reply:
        attempts = 0
        while True:
            try:
                return self._transport.send(cancel, method, path, body, target)
            except (TransportError, StatusCodeError, APIError) as exc:
                attempts += 1
                if attempts >= self.max_attempts:
                    raise
                if not self._should_retry(cancel, path, exc):
                    raise
                if isinstance(exc, TransportError):
                    logger.warning("%s %s timed out, retrying: %s", method, path, exc)
                    continue
                wait = backoff_delay(attempts, self.backoff)
                logger.warning(
                    "%s %s failed (%s), waiting %ss before retrying", method, path, exc, wait
                )
                self._clock.sleep(wait, cancel)

    def _should_retry(self, cancel: CancelToken, path: str, exc: Exception) -> bool:
        if isinstance(exc, TransportError):
            return exc.timeout
        if isinstance(exc, StatusCodeError):
            return exc.status_code in RETRYABLE_STATUS_CODES
        if isinstance(exc, APIError):
            if exc.code == INVALID_JWT_CODE and self._tokens is not None and requires_bearer(path):
                logger.info("bearer token rejected, re-authenticating")
                self._tokens.renew(cancel, rejected=exc.token)
            return True
        return False
