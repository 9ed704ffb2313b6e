"""Tests for the outbound rate limiter."""

import threading
import time

import pytest

from leonai._clock import CancelToken
from leonai._ratelimit import RateLimiter
from leonai.exceptions import CancellationError

from tests.conftest import FakeClock


def test_default_interval_is_one_second() -> None:
    assert RateLimiter().interval == 1.0
    assert RateLimiter(0).interval == 0


def test_second_acquire_waits_for_remaining_interval() -> None:
    clock = FakeClock()
    limiter = RateLimiter(2.0, clock=clock)

    with limiter.acquire():
        pass
    clock.advance(0.5)
    with limiter.acquire():
        pass

    assert clock.sleeps == [1.5]


def test_no_wait_once_interval_has_elapsed() -> None:
    clock = FakeClock()
    limiter = RateLimiter(1.0, clock=clock)

    with limiter.acquire():
        pass
    clock.advance(3)
    with limiter.acquire():
        pass

    assert clock.sleeps == []


def test_released_when_block_raises() -> None:
    limiter = RateLimiter(0)

    with pytest.raises(RuntimeError):
        with limiter.acquire():
            assert limiter.locked()
            raise RuntimeError("boom")

    assert not limiter.locked()


def test_cancelled_wait_releases_and_keeps_clock() -> None:
    clock = FakeClock()
    limiter = RateLimiter(5.0, clock=clock)
    with limiter.acquire():
        pass
    cancel = CancelToken()
    cancel.cancel()

    with pytest.raises(CancellationError):
        with limiter.acquire(cancel):
            pytest.fail("should not enter")

    assert not limiter.locked()
    # The aborted acquisition did not count as a call.
    with limiter.acquire():
        pass
    assert clock.sleeps == [5.0]


def test_cancel_unblocks_waiter_behind_holder() -> None:
    limiter = RateLimiter(0)
    cancel = CancelToken()
    errors: list[Exception] = []
    entered = threading.Event()
    leave = threading.Event()

    def holder() -> None:
        with limiter.acquire():
            entered.set()
            leave.wait(5)

    def waiter() -> None:
        try:
            with limiter.acquire(cancel):
                pass
        except CancellationError as exc:
            errors.append(exc)

    t1 = threading.Thread(target=holder)
    t1.start()
    entered.wait(5)
    t2 = threading.Thread(target=waiter)
    t2.start()
    started = time.monotonic()
    cancel.cancel()
    t2.join(5)
    elapsed = time.monotonic() - started
    leave.set()
    t1.join(5)

    assert len(errors) == 1
    assert elapsed < 1
    assert not limiter.locked()


def test_calls_are_serialized() -> None:
    limiter = RateLimiter(0)
    active = 0
    peak = 0
    guard = threading.Lock()

    def worker() -> None:
        nonlocal active, peak
        with limiter.acquire():
            with guard:
                active += 1
                peak = max(peak, active)
            time.sleep(0.01)
            with guard:
                active -= 1

    threads = [threading.Thread(target=worker) for _ in range(5)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(5)

    assert peak == 1
