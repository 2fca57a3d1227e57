"""
Clock - source of current time for every window check.

The core only ever reads `now()`. Moving time forward is the job of the
environment: wall time for SystemClock, explicit calls for ManualClock.
"""

import threading
import time
from typing import Optional, Protocol


class Clock(Protocol):
    """Monotonically non-decreasing time source (integer seconds)."""

    def now(self) -> int:
        ...


class SystemClock:
    """Clock backed by wall time, never going backwards."""

    def __init__(self):
        self._last = 0
        self._lock = threading.Lock()

    def now(self) -> int:
        with self._lock:
            self._last = max(self._last, int(time.time()))
            return self._last


class ManualClock:
    """
    Clock advanced only by explicit calls.

    Used by tests and local deployments to drive auction and election
    windows without waiting.
    """

    def __init__(self, start: Optional[int] = None):
        self._now = int(time.time()) if start is None else start
        self._lock = threading.Lock()

    def now(self) -> int:
        with self._lock:
            return self._now

    def increase(self, seconds: int) -> int:
        """Advance by `seconds` and return the new time."""
        if seconds < 0:
            raise ValueError(f"Cannot move clock backwards by {seconds}s")
        with self._lock:
            self._now += seconds
            return self._now

    def increase_to(self, timestamp: int) -> int:
        """Advance to `timestamp`, which must not be in the past."""
        with self._lock:
            if timestamp < self._now:
                raise ValueError(f"Timestamp {timestamp} is before current time {self._now}")
            self._now = timestamp
            return self._now

    def set(self, timestamp: int) -> int:
        """Jump to `timestamp`. Same rules as increase_to."""
        return self.increase_to(timestamp)

    def __repr__(self) -> str:
        return f"ManualClock(now={self._now})"
