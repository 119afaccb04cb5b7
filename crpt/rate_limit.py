"""Sliding window rate limiter shared by registry submissions."""
from __future__ import annotations

import logging
import threading
import time
from collections import deque
from enum import Enum
from typing import Callable, Deque, List, Optional

from crpt.errors import AcquireCancelled

LOGGER = logging.getLogger(__name__)


class TimeUnit(Enum):
    """Window granularity; a window is exactly one unit long."""

    MILLISECONDS = 0.001
    SECONDS = 1.0
    MINUTES = 60.0
    HOURS = 3600.0
    DAYS = 86400.0

    @property
    def seconds(self) -> float:
        return self.value

    @classmethod
    def parse(cls, name: str) -> "TimeUnit":
        """Look up a unit by case-insensitive name, e.g. ``"seconds"``."""

        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown time unit: {name!r}") from None


class SlidingWindowRateLimiter:
    """Blocks callers so at most ``max_calls`` are admitted per trailing ``period_sec``."""

    def __init__(
        self,
        max_calls: int,
        period_sec: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_calls <= 0:
            raise ValueError("Request limit must be positive")
        if period_sec <= 0:
            raise ValueError("Window length must be positive")
        self.max_calls = int(max_calls)
        self.period_sec = float(period_sec)
        self._clock = clock
        self._lock = threading.Lock()
        self._calls: Deque[float] = deque()
        self._waiters: List[threading.Event] = []
        self._closed = False

    def acquire(self, cancel: Optional[threading.Event] = None) -> float:
        """Wait for a free slot, record it and return its timestamp.

        The lock is released while waiting, so other callers keep pruning and
        admitting. The wait ends early as soon as ``cancel`` is set, and
        :class:`AcquireCancelled` is raised; the same happens for every waiter
        when the limiter is closed. No slot is recorded in either case.
        """

        wakeup = cancel if cancel is not None else threading.Event()
        while True:
            with self._lock:
                self._raise_if_cancelled(wakeup)
                now = self._clock()
                self._prune(now)
                if len(self._calls) < self.max_calls:
                    self._calls.append(now)
                    return now

                wait_for = max(0.0, self._calls[0] + self.period_sec - now)
                self._waiters.append(wakeup)
            LOGGER.debug("rate limit reached", extra={"wait_seconds": round(wait_for, 3)})
            try:
                wakeup.wait(wait_for)
            finally:
                with self._lock:
                    self._waiters.remove(wakeup)

    def cancel(self, event: threading.Event) -> None:
        """Cancel the waiter that passed ``event``; same as ``event.set()``."""

        event.set()

    def close(self) -> None:
        """Release every blocked caller; later acquires fail immediately.

        Events passed to waiting ``acquire`` calls are set.
        """

        with self._lock:
            self._closed = True
            waiters = list(self._waiters)
        for event in waiters:
            event.set()

    def in_flight(self) -> int:
        """Return how many admissions still count against the current window."""

        with self._lock:
            self._prune(self._clock())
            return len(self._calls)

    def _prune(self, now: float) -> None:
        cutoff = now - self.period_sec
        while self._calls and self._calls[0] <= cutoff:
            self._calls.popleft()

    def _raise_if_cancelled(self, wakeup: threading.Event) -> None:
        if self._closed:
            raise AcquireCancelled("Rate limiter closed while waiting for a slot")
        if wakeup.is_set():
            raise AcquireCancelled("Interrupted while waiting for request limit")
