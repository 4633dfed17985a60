"""
Tests for the circuit breaker guarding the primary record source.
"""

import pytest

from hr_admin.circuit_breaker import CircuitBreaker, CircuitBreakerOpenError, CircuitState
from hr_admin.errors import SourceUnavailableError


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


def failing_query():
    raise ConnectionError("warehouse unreachable")


def open_breaker(cb: CircuitBreaker):
    for _ in range(cb.failure_threshold):
        with pytest.raises(ConnectionError):
            cb.call(failing_query)


class TestCircuitBreaker:
    """Test circuit breaker functionality."""

    def test_initial_state_closed(self):
        cb = CircuitBreaker(failure_threshold=3, timeout=5)
        assert cb.state == CircuitState.CLOSED
        assert cb.failure_count == 0

    def test_successful_call_passes_result_through(self):
        cb = CircuitBreaker(failure_threshold=3)

        assert cb.call(lambda table: [{"ID": 1, "TABLE": table}], "assets") == [
            {"ID": 1, "TABLE": "assets"}
        ]
        assert cb.state == CircuitState.CLOSED

    def test_single_failure_stays_closed(self):
        cb = CircuitBreaker(failure_threshold=3)

        with pytest.raises(ConnectionError):
            cb.call(failing_query)

        assert cb.state == CircuitState.CLOSED
        assert cb.failure_count == 1

    def test_threshold_failures_opens_circuit(self):
        cb = CircuitBreaker(failure_threshold=3)
        open_breaker(cb)

        assert cb.state == CircuitState.OPEN
        assert cb.failure_count == 3

    def test_success_resets_failure_count(self):
        cb = CircuitBreaker(failure_threshold=3)
        with pytest.raises(ConnectionError):
            cb.call(failing_query)

        cb.call(lambda: "ok")

        assert cb.failure_count == 0

    def test_open_circuit_blocks_calls_without_running_them(self):
        cb = CircuitBreaker(failure_threshold=2, clock=FakeClock())
        open_breaker(cb)
        calls = []

        with pytest.raises(CircuitBreakerOpenError):
            cb.call(lambda: calls.append("ran"))

        assert calls == []

    def test_open_error_is_a_source_failure(self):
        assert issubclass(CircuitBreakerOpenError, SourceUnavailableError)

    def test_timeout_allows_trial_call(self):
        clock = FakeClock()
        cb = CircuitBreaker(failure_threshold=2, timeout=60, clock=clock)
        open_breaker(cb)

        clock.advance(59)
        with pytest.raises(CircuitBreakerOpenError):
            cb.call(lambda: "too early")

        clock.advance(1)
        assert cb.call(lambda: "recovered") == "recovered"

    def test_half_open_success_closes_circuit(self):
        clock = FakeClock()
        cb = CircuitBreaker(failure_threshold=2, timeout=10, clock=clock)
        open_breaker(cb)
        clock.advance(10)

        cb.call(lambda: "ok")

        assert cb.state == CircuitState.CLOSED
        assert cb.failure_count == 0
        assert cb.last_failure_time is None

    def test_half_open_failure_reopens_circuit(self):
        clock = FakeClock()
        cb = CircuitBreaker(failure_threshold=2, timeout=10, clock=clock)
        open_breaker(cb)
        clock.advance(10)

        with pytest.raises(ConnectionError):
            cb.call(failing_query)

        assert cb.state == CircuitState.OPEN
        with pytest.raises(CircuitBreakerOpenError):
            cb.call(lambda: "blocked")

    def test_get_state_returns_dict(self):
        cb = CircuitBreaker(failure_threshold=5, timeout=60, name="TestBreaker")

        state = cb.get_state()

        assert state == {
            "name": "TestBreaker",
            "state": "closed",
            "failure_count": 0,
            "failure_threshold": 5,
            "last_failure_time": None,
        }
