"""
Circuit breaker for calls to the commerce backend.

A tripped breaker makes a dead backend fail fast instead of holding every
caller for the full network timeout.
"""

import time
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple, Type

from shared.logging import get_logger


class CircuitBreakerState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"      # Normal operation
    OPEN = "open"          # Failing, calls blocked
    HALF_OPEN = "half_open"  # Probing whether the backend recovered


class CircuitBreakerOpenError(Exception):
    """Raised instead of calling through while the breaker is open."""

    def __init__(self, name: str, retry_in: float):
        self.name = name
        self.retry_in = retry_in
        super().__init__(f"Circuit breaker '{name}' is OPEN; retry in {retry_in:.1f}s")


class CircuitBreaker:
    """Count consecutive failures and stop calling through past a threshold."""

    def __init__(self,
                 name: str = "default",
                 failure_threshold: int = 5,
                 recovery_timeout: float = 30.0,
                 failure_exceptions: Tuple[Type[BaseException], ...] = (Exception,),
                 clock: Optional[Callable[[], float]] = None):
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_exceptions = failure_exceptions
        self._clock = clock or time.monotonic
        self.logger = get_logger(f"edge.circuit_breaker.{name}")

        self._state = CircuitBreakerState.CLOSED
        self._failure_count = 0
        self._opened_at: Optional[float] = None

    @property
    def state(self) -> CircuitBreakerState:
        if self._state == CircuitBreakerState.OPEN and self._recovery_elapsed():
            return CircuitBreakerState.HALF_OPEN
        return self._state

    def _recovery_elapsed(self) -> bool:
        return self._opened_at is not None and (self._clock() - self._opened_at) >= self.recovery_timeout

    async def call(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        """Execute ``func`` unless the breaker is open."""
        if self._state == CircuitBreakerState.OPEN:
            if not self._recovery_elapsed():
                retry_in = self.recovery_timeout - (self._clock() - (self._opened_at or 0.0))
                raise CircuitBreakerOpenError(self.name, max(0.0, retry_in))
            self._state = CircuitBreakerState.HALF_OPEN
            self.logger.info("Circuit breaker half-open, probing backend")

        try:
            result = await func(*args, **kwargs)
        except self.failure_exceptions:
            self._record_failure()
            raise

        self._record_success()
        return result

    def _record_success(self):
        if self._state != CircuitBreakerState.CLOSED:
            self.logger.info("Circuit breaker closed after successful call")
        self._state = CircuitBreakerState.CLOSED
        self._failure_count = 0
        self._opened_at = None

    def _record_failure(self):
        self._failure_count += 1

        if self._state == CircuitBreakerState.HALF_OPEN or self._failure_count >= self.failure_threshold:
            self._state = CircuitBreakerState.OPEN
            self._opened_at = self._clock()
            self.logger.warning(
                "Circuit breaker opened",
                failure_count=self._failure_count,
                threshold=self.failure_threshold
            )

    def reset(self):
        """Force the breaker back to CLOSED."""
        self._record_success()

    def get_state(self) -> Dict[str, Any]:
        """Get current circuit breaker state."""
        return {
            "name": self.name,
            "state": self.state.value,
            "failure_count": self._failure_count,
            "failure_threshold": self.failure_threshold,
            "recovery_timeout": self.recovery_timeout
        }
