"""Sliding-window rate limiter guarding the enrichment call."""

import threading
import time
from collections import deque
from typing import Callable, Deque

Clock = Callable[[], float]


class RateLimiter:
    """
    Allows at most ``max_calls`` attempts per sliding ``window_seconds``.

    State is shared by every scoring call of an engine instance, so all
    reads and writes happen under one lock.
    """

    def __init__(
        self,
        max_calls: int = 100,
        window_seconds: float = 60.0,
        clock: Clock = time.monotonic,
    ):
        if max_calls < 1:
            raise ValueError("max_calls must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self._max_calls = max_calls
        self._window = window_seconds
        self._clock = clock
        self._calls: Deque[float] = deque()
        self._lock = threading.Lock()

    @property
    def max_calls(self) -> int:
        return self._max_calls

    def _prune(self, now: float) -> None:
        cutoff = now - self._window
        while self._calls and self._calls[0] <= cutoff:
            self._calls.popleft()

    def is_limited(self) -> bool:
        """Whether the next attempt would exceed the window budget."""
        with self._lock:
            self._prune(self._clock())
            return len(self._calls) >= self._max_calls

    def try_acquire(self) -> bool:
        """
        Check the budget and record an attempt in one step.

        Returns:
            True if the attempt was recorded, False if rate limited
        """
        with self._lock:
            now = self._clock()
            self._prune(now)
            if len(self._calls) >= self._max_calls:
                return False
            self._calls.append(now)
            return True

    def reset(self) -> None:
        with self._lock:
            self._calls.clear()
