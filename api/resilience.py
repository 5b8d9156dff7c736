"""
Resilience patterns for SEALANE API.

Circuit breaker and timeout guards for the routing backend. Retries are
left to the client: a failed route request surfaces as "no sea route found"
and the user decides whether to try again.
"""
import concurrent.futures
import functools
import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional, TypeVar

from src.errors import UpstreamRoutingError

logger = logging.getLogger(__name__)

T = TypeVar('T')


class CircuitState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"      # Normal operation
    OPEN = "open"          # Failing, reject requests
    HALF_OPEN = "half_open"  # Testing if service recovered


class CircuitOpenError(UpstreamRoutingError):
    """Raised when circuit breaker is open."""


@dataclass
class CircuitBreaker:
    """
    Thread-safe circuit breaker.

    Usage:
        breaker = CircuitBreaker(name="searoute")

        @breaker
        def compute_route(...):
            ...
    """
    name: str
    failure_threshold: int = 5
    recovery_timeout: float = 60.0  # seconds
    half_open_max_calls: int = 3
    clock: Callable[[], float] = time.monotonic

    _state: CircuitState = field(default=CircuitState.CLOSED, init=False)
    _failure_count: int = field(default=0, init=False)
    _success_count: int = field(default=0, init=False)
    _last_failure_time: Optional[float] = field(default=None, init=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, init=False)
    _half_open_calls: int = field(default=0, init=False)

    @property
    def state(self) -> CircuitState:
        return self._check_state()

    @property
    def is_open(self) -> bool:
        return self._check_state() == CircuitState.OPEN

    def _check_state(self) -> CircuitState:
        """Check and potentially transition circuit state."""
        with self._lock:
            if self._state == CircuitState.OPEN and self._last_failure_time is not None:
                if self.clock() - self._last_failure_time >= self.recovery_timeout:
                    self._state = CircuitState.HALF_OPEN
                    self._half_open_calls = 0
                    logger.info(f"Circuit breaker '{self.name}' transitioning to HALF_OPEN")
            return self._state

    def _transition_to_open(self):
        self._state = CircuitState.OPEN
        self._last_failure_time = self.clock()
        logger.warning(f"Circuit breaker '{self.name}' OPENED after {self._failure_count} failures")

    def _transition_to_closed(self):
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._success_count = 0
        logger.info(f"Circuit breaker '{self.name}' CLOSED - service recovered")

    def record_success(self):
        with self._lock:
            self._success_count += 1

            if self._state == CircuitState.HALF_OPEN:
                self._half_open_calls += 1
                if self._half_open_calls >= self.half_open_max_calls:
                    self._transition_to_closed()
            elif self._state == CircuitState.CLOSED:
                self._failure_count = max(0, self._failure_count - 1)

    def record_failure(self, error: Exception):
        with self._lock:
            self._failure_count += 1
            self._last_failure_time = self.clock()

            logger.warning(f"Circuit breaker '{self.name}' recorded failure: {error}")

            if self._state == CircuitState.HALF_OPEN:
                self._transition_to_open()
            elif self._state == CircuitState.CLOSED and self._failure_count >= self.failure_threshold:
                self._transition_to_open()

    def __call__(self, func: Callable[..., T]) -> Callable[..., T]:
        """Decorator to wrap function with circuit breaker."""
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> T:
            if self._check_state() == CircuitState.OPEN:
                raise CircuitOpenError(
                    f"Circuit breaker '{self.name}' is OPEN. "
                    f"Service unavailable, try again in {self.recovery_timeout:.0f}s"
                )

            try:
                result = func(*args, **kwargs)
            except Exception as e:
                self.record_failure(e)
                raise
            self.record_success()
            return result

        return wrapper

    def reset(self):
        with self._lock:
            self._transition_to_closed()
            self._last_failure_time = None

    def get_status(self) -> dict:
        with self._lock:
            return {
                'name': self.name,
                'state': self._state.value,
                'failure_count': self._failure_count,
                'success_count': self._success_count,
                'failure_threshold': self.failure_threshold,
                'recovery_timeout_seconds': self.recovery_timeout,
            }


def with_timeout(seconds: float):
    """
    Decorator to add timeout to synchronous functions.

    Note: Uses a worker thread; the timed-out call keeps running in the
    background, only the caller stops waiting.
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> T:
            executor = concurrent.futures.ThreadPoolExecutor(max_workers=1)
            future = executor.submit(func, *args, **kwargs)
            try:
                return future.result(timeout=seconds)
            except concurrent.futures.TimeoutError:
                raise TimeoutError(f"Function {func.__name__} timed out after {seconds}s")
            finally:
                executor.shutdown(wait=False)

        return wrapper

    return decorator


# Registry for all circuit breakers (for health monitoring)
_circuit_breaker_registry: Dict[str, CircuitBreaker] = {}


def register_circuit_breaker(breaker: CircuitBreaker) -> CircuitBreaker:
    _circuit_breaker_registry[breaker.name] = breaker
    return breaker


def get_all_circuit_breaker_status() -> Dict[str, Any]:
    return {
        name: breaker.get_status()
        for name, breaker in _circuit_breaker_registry.items()
    }
