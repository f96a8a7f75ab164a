"""Observability hooks for circuit breakers."""

from typing import Protocol

import structlog

from breaker_core.circuit_breaker.exceptions import CircuitBreakerError
from breaker_core.circuit_breaker.state import CircuitState
from breaker_core.logging import (
    StructuredLogger,
    log_info,
    log_warning,
)


class BreakerListener(Protocol):
    """Listener protocol for circuit breaker events.

    Notes:
        ``on_state_change(OPEN -> HALF_OPEN)`` is emitted once per half-open
        episode, by the call that starts it.
    """

    async def on_state_change(
        self, name: str, old: CircuitState, new: CircuitState
    ) -> None:
        """Handle circuit state transitions."""

    async def on_call_rejected(self, name: str, exc: CircuitBreakerError) -> None:
        """Handle call rejection while the circuit is open or probe-limited."""

    async def on_call_succeeded(self, name: str, elapsed: float) -> None:
        """Handle successful protected call completion."""

    async def on_call_failed(self, name: str, exc: Exception, elapsed: float) -> None:
        """Handle failed protected call completion."""


class LoggingBreakerListener(BreakerListener):
    """Listener that writes one structured log event per breaker hook."""

    def __init__(self, logger: StructuredLogger | None = None) -> None:
        self._logger: StructuredLogger = (
            structlog.stdlib.get_logger(__name__) if logger is None else logger
        )

    async def on_state_change(
        self, name: str, old: CircuitState, new: CircuitState
    ) -> None:
        """Log a breaker transition, as a warning when the circuit opens."""
        log = log_warning if new == CircuitState.OPEN else log_info
        log(
            self._logger,
            "circuit_breaker.state_changed",
            breaker=name,
            old_state=str(old),
            new_state=str(new),
        )

    async def on_call_rejected(self, name: str, exc: CircuitBreakerError) -> None:
        log_warning(
            self._logger,
            "circuit_breaker.call_rejected",
            breaker=name,
            reason=exc.__class__.__name__,
            detail=str(exc),
        )

    async def on_call_succeeded(self, name: str, elapsed: float) -> None:
        log_info(
            self._logger,
            "circuit_breaker.call_succeeded",
            breaker=name,
            elapsed_seconds=elapsed,
        )

    async def on_call_failed(self, name: str, exc: Exception, elapsed: float) -> None:
        log_warning(
            self._logger,
            "circuit_breaker.call_failed",
            breaker=name,
            error_type=exc.__class__.__name__,
            error=str(exc),
            elapsed_seconds=elapsed,
        )
