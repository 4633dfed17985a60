"""
Circuit breaker guarding the primary record source.

When Snowflake is down every list call would otherwise wait on a failing
connection before falling back to fixtures. After enough consecutive
failures the breaker opens and the data access layer goes straight to the
fallback until the recovery timeout elapses.
"""

import logging
import threading
import time
from collections.abc import Callable
from enum import Enum
from typing import Any

from hr_admin.errors import SourceUnavailableError

logger = logging.getLogger(__name__)


class CircuitBreakerOpenError(SourceUnavailableError):
    """Raised when the breaker refuses to call the guarded source."""


class CircuitState(Enum):
    """Circuit breaker states."""

    CLOSED = "closed"  # Calls pass through
    OPEN = "open"  # Calls rejected without touching the source
    HALF_OPEN = "half_open"  # One trial call allowed


class CircuitBreaker:
    """
    Thread-safe circuit breaker.

    Transitions:
    - CLOSED -> OPEN: after failure_threshold consecutive failures
    - OPEN -> HALF_OPEN: once timeout seconds passed since the last failure
    - HALF_OPEN -> CLOSED: trial call succeeds
    - HALF_OPEN -> OPEN: trial call fails
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        timeout: int = 60,
        name: str = "CircuitBreaker",
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            failure_threshold: Consecutive failures that open the circuit
            timeout: Seconds to stay open before a trial call
            name: Name used in logs and health output
            clock: Time source, injectable for tests
        """
        self.failure_threshold = failure_threshold
        self.timeout = timeout
        self.name = name
        self._clock = clock
        self._lock = threading.Lock()

        self.failure_count = 0
        self.state = CircuitState.CLOSED
        self.last_failure_time: float | None = None

        logger.info(
            f"CircuitBreaker '{name}' initialized: "
            f"threshold={failure_threshold}, timeout={timeout}s"
        )

    def call(self, func: Callable, *args, **kwargs) -> Any:
        """
        Run ``func`` under breaker protection.

        Raises:
            CircuitBreakerOpenError: the circuit is open
            Exception: whatever ``func`` raised, after recording the failure
        """
        with self._lock:
            if self.state == CircuitState.OPEN:
                if self._recovery_due():
                    logger.info(f"CircuitBreaker '{self.name}': OPEN -> HALF_OPEN")
                    self.state = CircuitState.HALF_OPEN
                else:
                    raise CircuitBreakerOpenError(
                        f"CircuitBreaker '{self.name}' is OPEN. Source unavailable."
                    )

        try:
            result = func(*args, **kwargs)
        except Exception as e:
            self._record_failure()
            logger.error(
                f"CircuitBreaker '{self.name}' failure "
                f"({self.failure_count}/{self.failure_threshold}): {e}"
            )
            raise

        self._record_success()
        return result

    def _record_success(self):
        with self._lock:
            if self.state == CircuitState.HALF_OPEN:
                logger.info(f"CircuitBreaker '{self.name}': HALF_OPEN -> CLOSED")
            self.failure_count = 0
            self.state = CircuitState.CLOSED
            self.last_failure_time = None

    def _record_failure(self):
        with self._lock:
            self.failure_count += 1
            self.last_failure_time = self._clock()

            if self.state == CircuitState.HALF_OPEN:
                logger.warning(f"CircuitBreaker '{self.name}': HALF_OPEN -> OPEN")
                self.state = CircuitState.OPEN
            elif self.failure_count >= self.failure_threshold:
                logger.warning(f"CircuitBreaker '{self.name}': threshold reached, CLOSED -> OPEN")
                self.state = CircuitState.OPEN

    def _recovery_due(self) -> bool:
        if self.last_failure_time is None:
            return True
        return self._clock() - self.last_failure_time >= self.timeout

    def get_state(self) -> dict:
        """Breaker state for the health and metrics endpoints."""
        return {
            "name": self.name,
            "state": self.state.value,
            "failure_count": self.failure_count,
            "failure_threshold": self.failure_threshold,
            "last_failure_time": self.last_failure_time,
        }

