"""Framework-agnostic async circuit breaker.

This package implements the circuit breaker pattern from *Release It!*.

Key behavior notes:
  - State lives in memory on one ``CircuitBreaker`` instance. Nothing is
    persisted and nothing is shared between processes.
  - The cooldown is measured from the last recorded failure. The first call
    after it elapses moves the breaker to ``HALF_OPEN`` and runs as a probe.
  - Half-open probing admits up to ``max_probe_requests`` calls per episode.
    One more call is rejected and forces the breaker back to ``OPEN``; the
    cooldown still counts from the last failure.
  - Every call attempt, rejected and cancelled ones included, appends one
    sample to the breaker's response-time history.
"""

from breaker_core.circuit_breaker.breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
    Clock,
)
from breaker_core.circuit_breaker.exceptions import (
    CircuitBreakerError,
    CircuitOpenError,
    InvalidConfigurationError,
    ProbeLimitExceededError,
)
from breaker_core.circuit_breaker.metrics import (
    BreakerListener,
    LoggingBreakerListener,
)
from breaker_core.circuit_breaker.state import BreakerSnapshot, CircuitState

__all__ = [
    "BreakerListener",
    "BreakerSnapshot",
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitBreakerError",
    "CircuitOpenError",
    "CircuitState",
    "Clock",
    "InvalidConfigurationError",
    "LoggingBreakerListener",
    "ProbeLimitExceededError",
]
