"""
Circuit breaker with hysteresis for the enrichment call.

States:
- closed: attempts allowed; consecutive failures are counted
- open: attempts rejected until ``reset_timeout + hysteresis_delay`` has
  elapsed since the last failure
- half_open: a single trial attempt is allowed; success closes the
  breaker, failure opens it again
"""

import threading
import time
from enum import Enum
from typing import Callable, Optional

import structlog

logger = structlog.get_logger(__name__)

Clock = Callable[[], float]


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    """Failure-counting circuit breaker with an injectable clock."""

    def __init__(
        self,
        failure_threshold: int = 3,
        reset_timeout: float = 300.0,
        hysteresis_delay: float = 30.0,
        clock: Clock = time.monotonic,
    ):
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be at least 1")
        self._failure_threshold = failure_threshold
        self._reset_timeout = reset_timeout
        self._hysteresis_delay = hysteresis_delay
        self._clock = clock
        self._lock = threading.Lock()
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._last_failure: Optional[float] = None
        self._trial_in_flight = False

    @property
    def cooldown(self) -> float:
        """Time the breaker stays open after the last failure."""
        return self._reset_timeout + self._hysteresis_delay

    @property
    def failure_count(self) -> int:
        with self._lock:
            return self._failures

    @property
    def state(self) -> CircuitState:
        with self._lock:
            self._refresh(self._clock())
            return self._state

    def _refresh(self, now: float) -> None:
        if (
            self._state == CircuitState.OPEN
            and self._last_failure is not None
            and now - self._last_failure >= self.cooldown
        ):
            self._state = CircuitState.HALF_OPEN
            self._trial_in_flight = False

    def allow_request(self) -> bool:
        """
        Whether an attempt may proceed now.

        In the half-open state only the first caller is let through until
        its outcome is recorded.
        """
        with self._lock:
            self._refresh(self._clock())
            if self._state == CircuitState.CLOSED:
                return True
            if self._state == CircuitState.HALF_OPEN and not self._trial_in_flight:
                self._trial_in_flight = True
                return True
            return False

    def is_open(self) -> bool:
        """Whether attempts are currently rejected."""
        return self.state == CircuitState.OPEN

    def record_success(self) -> None:
        with self._lock:
            if self._state != CircuitState.CLOSED:
                logger.info("circuit_closed", previous_state=self._state.value)
            self._state = CircuitState.CLOSED
            self._failures = 0
            self._last_failure = None
            self._trial_in_flight = False

    def record_failure(self) -> None:
        with self._lock:
            now = self._clock()
            self._failures += 1
            self._last_failure = now
            self._trial_in_flight = False
            if self._state == CircuitState.HALF_OPEN or self._failures >= self._failure_threshold:
                if self._state != CircuitState.OPEN:
                    logger.warning(
                        "circuit_opened",
                        failures=self._failures,
                        cooldown_seconds=self.cooldown,
                    )
                self._state = CircuitState.OPEN

    def reset(self) -> None:
        with self._lock:
            self._state = CircuitState.CLOSED
            self._failures = 0
            self._last_failure = None
            self._trial_in_flight = False
