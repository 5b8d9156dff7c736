"""Tests for the circuit breaker and timeout guards."""

import time

import pytest

from api.resilience import (
    CircuitBreaker,
    CircuitOpenError,
    CircuitState,
    get_all_circuit_breaker_status,
    register_circuit_breaker,
    with_timeout,
)
from src.errors import UpstreamRoutingError


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def _failing():
    raise RuntimeError("backend down")


class TestCircuitBreaker:

    def test_opens_after_threshold(self):
        breaker = CircuitBreaker(name="test", failure_threshold=3, clock=FakeClock())
        guarded = breaker(_failing)

        for _ in range(3):
            with pytest.raises(RuntimeError):
                guarded()

        assert breaker.state == CircuitState.OPEN
        with pytest.raises(CircuitOpenError):
            guarded()

    def test_open_error_is_upstream_error(self):
        assert issubclass(CircuitOpenError, UpstreamRoutingError)

    def test_half_open_then_closed(self):
        clock = FakeClock()
        breaker = CircuitBreaker(name="test", failure_threshold=1, recovery_timeout=30,
                                 half_open_max_calls=2, clock=clock)
        with pytest.raises(RuntimeError):
            breaker(_failing)()
        assert breaker.is_open

        clock.now += 31
        assert breaker.state == CircuitState.HALF_OPEN

        ok = breaker(lambda: "ok")
        assert ok() == "ok"
        assert ok() == "ok"
        assert breaker.state == CircuitState.CLOSED

    def test_failure_in_half_open_reopens(self):
        clock = FakeClock()
        breaker = CircuitBreaker(name="test", failure_threshold=1, recovery_timeout=30, clock=clock)
        with pytest.raises(RuntimeError):
            breaker(_failing)()
        clock.now += 31
        with pytest.raises(RuntimeError):
            breaker(_failing)()
        assert breaker.state == CircuitState.OPEN

    def test_reset(self):
        breaker = CircuitBreaker(name="test", failure_threshold=1, clock=FakeClock())
        with pytest.raises(RuntimeError):
            breaker(_failing)()
        breaker.reset()
        assert breaker.state == CircuitState.CLOSED
        assert breaker.get_status()["failure_count"] == 0

    def test_registry(self):
        breaker = register_circuit_breaker(CircuitBreaker(name="registry-test"))
        status = get_all_circuit_breaker_status()
        assert status["registry-test"]["state"] == "closed"
        assert breaker.name == "registry-test"


class TestWithTimeout:

    def test_returns_result(self):
        assert with_timeout(1.0)(lambda: 42)() == 42

    def test_times_out(self):
        slow = with_timeout(0.05)(lambda: time.sleep(0.5))
        with pytest.raises(TimeoutError):
            slow()
