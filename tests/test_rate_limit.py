import threading
import time

import pytest

from crpt.errors import AcquireCancelled
from crpt.rate_limit import SlidingWindowRateLimiter, TimeUnit


def assert_window_respected(stamps, limit, window):
    stamps = sorted(stamps)
    for first, later in zip(stamps, stamps[limit:]):
        assert later - first >= window


def start_blocked_acquire(limiter, cancel=None):
    outcome = {}

    def worker():
        try:
            outcome["stamp"] = limiter.acquire(cancel)
        except AcquireCancelled as exc:
            outcome["error"] = exc

    thread = threading.Thread(target=worker, daemon=True)
    thread.start()
    return thread, outcome


@pytest.mark.parametrize("limit", [0, -1])
def test_non_positive_limit_fails_at_construction(limit):
    with pytest.raises(ValueError):
        SlidingWindowRateLimiter(limit, 1.0)


def test_non_positive_window_fails_at_construction():
    with pytest.raises(ValueError):
        SlidingWindowRateLimiter(1, 0)


def test_time_unit_lengths_and_parsing():
    assert TimeUnit.SECONDS.seconds == 1.0
    assert TimeUnit.MINUTES.seconds == 60.0
    assert TimeUnit.parse(" minutes ") is TimeUnit.MINUTES
    with pytest.raises(ValueError):
        TimeUnit.parse("fortnights")


def test_third_acquire_waits_for_oldest_slot_to_expire():
    limiter = SlidingWindowRateLimiter(2, 1.0)

    started = time.monotonic()
    first = limiter.acquire()
    limiter.acquire()
    assert time.monotonic() - started < 0.2

    third = limiter.acquire()

    assert third - first >= 1.0
    assert time.monotonic() - started < 1.5


def test_racing_threads_do_not_overshoot_capacity():
    limiter = SlidingWindowRateLimiter(2, 0.5)
    stamps = []
    barrier = threading.Barrier(3)

    def worker():
        barrier.wait()
        stamps.append(limiter.acquire())

    threads = [threading.Thread(target=worker) for _ in range(3)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=5)

    assert len(stamps) == 3
    assert_window_respected(stamps, 2, 0.5)


def test_many_threads_respect_trailing_window():
    limiter = SlidingWindowRateLimiter(3, 0.2)
    stamps = []
    lock = threading.Lock()

    def worker():
        for _ in range(3):
            stamp = limiter.acquire()
            with lock:
                stamps.append(stamp)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)

    assert len(stamps) == 12
    assert_window_respected(stamps, 3, 0.2)


def test_cancel_unblocks_waiter_without_recording_slot():
    limiter = SlidingWindowRateLimiter(1, 60.0)
    limiter.acquire()
    cancel = threading.Event()

    thread, outcome = start_blocked_acquire(limiter, cancel)
    time.sleep(0.1)
    assert thread.is_alive()

    limiter.cancel(cancel)
    thread.join(timeout=2)

    assert not thread.is_alive()
    assert isinstance(outcome.get("error"), AcquireCancelled)
    assert limiter.in_flight() == 1


def test_cancelled_event_rejects_even_with_free_capacity():
    limiter = SlidingWindowRateLimiter(5, 1.0)
    cancel = threading.Event()
    cancel.set()

    with pytest.raises(AcquireCancelled):
        limiter.acquire(cancel)
    assert limiter.in_flight() == 0


def test_close_releases_all_waiters():
    limiter = SlidingWindowRateLimiter(1, 60.0)
    limiter.acquire()
    waiters = [start_blocked_acquire(limiter) for _ in range(2)]
    time.sleep(0.1)

    limiter.close()

    for thread, outcome in waiters:
        thread.join(timeout=2)
        assert not thread.is_alive()
        assert isinstance(outcome.get("error"), AcquireCancelled)
    with pytest.raises(AcquireCancelled):
        limiter.acquire()


def test_in_flight_prunes_expired_entries():
    now = [100.0]
    limiter = SlidingWindowRateLimiter(2, 10.0, clock=lambda: now[0])
    limiter.acquire()
    now[0] = 105.0
    limiter.acquire()
    assert limiter.in_flight() == 2

    now[0] = 110.0
    assert limiter.in_flight() == 1

    now[0] = 115.0
    assert limiter.in_flight() == 0


def test_independent_limiters_do_not_share_ledger():
    first = SlidingWindowRateLimiter(1, 60.0)
    second = SlidingWindowRateLimiter(1, 60.0)

    first.acquire()
    second.acquire()

    assert first.in_flight() == 1
    assert second.in_flight() == 1


def test_setting_cancel_event_directly_wakes_waiter():
    limiter = SlidingWindowRateLimiter(1, 60.0)
    limiter.acquire()
    cancel = threading.Event()

    thread, outcome = start_blocked_acquire(limiter, cancel)
    time.sleep(0.1)
    cancel.set()
    thread.join(timeout=1.0)

    assert not thread.is_alive()
    assert isinstance(outcome.get("error"), AcquireCancelled)
    assert limiter.in_flight() == 1


def test_close_wakes_waiters_sharing_one_event():
    limiter = SlidingWindowRateLimiter(1, 60.0)
    limiter.acquire()
    cancel = threading.Event()
    waiters = [start_blocked_acquire(limiter, cancel) for _ in range(2)]
    time.sleep(0.1)

    limiter.close()

    for thread, outcome in waiters:
        thread.join(timeout=1.0)
        assert not thread.is_alive()
        assert isinstance(outcome.get("error"), AcquireCancelled)
