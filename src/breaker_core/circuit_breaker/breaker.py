"""Core circuit breaker implementation."""

import asyncio
import sys
import threading
import time
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import ParamSpec, TypeVar

from breaker_core.circuit_breaker.exceptions import (
    CircuitBreakerError,
    CircuitOpenError,
    InvalidConfigurationError,
    ProbeLimitExceededError,
)
from breaker_core.circuit_breaker.metrics import BreakerListener
from breaker_core.circuit_breaker.state import BreakerSnapshot, CircuitState

T = TypeVar("T")
P = ParamSpec("P")

Clock = Callable[[], float]
_Transition = tuple[CircuitState, CircuitState]


class _Admission(Enum):
    """How a call was let through the gate."""

    CALL = "call"
    PROBE = "probe"


class _StateLock:
    """Serialize breaker state access across tasks and, without a GIL, threads."""

    def __init__(self) -> None:
        is_gil_enabled = getattr(sys, "_is_gil_enabled", None)
        self._gil_enabled = True if is_gil_enabled is None else bool(is_gil_enabled())
        self._async_lock = asyncio.Lock()
        self._thread_lock: threading.Lock | None = None
        if not self._gil_enabled:
            self._thread_lock = threading.Lock()

    @asynccontextmanager
    async def hold(self) -> AsyncIterator[None]:
        if self._thread_lock is None:
            await self._async_lock.acquire()
            try:
                yield
            finally:
                self._async_lock.release()
            return

        self._thread_lock.acquire()
        try:
            await self._async_lock.acquire()
        except BaseException:
            self._thread_lock.release()
            raise
        try:
            yield
        finally:
            self._async_lock.release()
            self._thread_lock.release()


@dataclass(frozen=True, slots=True)
class CircuitBreakerConfig:
    """Circuit breaker configuration values.

    Attributes:
        failure_threshold: Consecutive failures while ``CLOSED`` before opening.
        cooldown: Seconds to wait after the last failure while ``OPEN`` before
            allowing a probe.
        max_probe_requests: Probes admitted per ``HALF_OPEN`` episode before the
            breaker is forced back to ``OPEN``.
    """

    failure_threshold: int = 5
    cooldown: float = 30.0
    max_probe_requests: int = 1

    def __post_init__(self) -> None:
        if self.failure_threshold < 1:
            raise InvalidConfigurationError("failure_threshold must be >= 1")
        if self.cooldown < 0:
            raise InvalidConfigurationError("cooldown must be >= 0")
        if self.max_probe_requests < 1:
            raise InvalidConfigurationError("max_probe_requests must be >= 1")


class CircuitBreaker:
    """Stateful proxy around a dangerous async operation.

    The breaker starts ``CLOSED`` and lets every call through. Reaching
    ``failure_threshold`` consecutive failures trips it ``OPEN``; calls are then
    rejected with ``CircuitOpenError`` until ``cooldown`` seconds have passed
    since the last failure. The first call after that moves the breaker to
    ``HALF_OPEN`` and runs as a probe. A successful probe closes the breaker, a
    failed one reopens it, and calls beyond ``max_probe_requests`` in one
    half-open episode are rejected with ``ProbeLimitExceededError``.

    Every call attempt appends one elapsed-time sample to ``response_times``,
    including rejected and cancelled ones. A cancelled probe gives its slot
    back to the half-open budget.
    """

    def __init__(
        self,
        name: str,
        *,
        config: CircuitBreakerConfig | None = None,
        clock: Clock = time.monotonic,
        listeners: Sequence[BreakerListener] | None = None,
    ) -> None:
        """Build a circuit breaker with optional custom dependencies.

        Args:
            name: Breaker name used in errors, listener events and logs.
            config: Breaker behavior configuration. Defaults to
                ``CircuitBreakerConfig()``.
            clock: Monotonic clock returning seconds. Defaults to
                ``time.monotonic``.
            listeners: Optional listener hooks for breaker events.
        """
        self.name = name
        self.config = CircuitBreakerConfig() if config is None else config
        self._clock = clock
        self._listeners = tuple(listeners) if listeners is not None else ()
        self._lock = _StateLock()

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._last_failure_at: float | None = None
        self._probe_count = 0
        self._response_times: list[float] = []

    @property
    def state(self) -> CircuitState:
        """Current breaker state."""
        return self._state

    @property
    def response_times(self) -> tuple[float, ...]:
        """Elapsed seconds of every call attempt, in completion order."""
        return tuple(self._response_times)

    def snapshot(self) -> BreakerSnapshot:
        """Return a read-only view of the breaker's tracking fields."""
        return BreakerSnapshot(
            name=self.name,
            state=self._state,
            failure_count=self._failure_count,
            last_failure_at=self._last_failure_at,
            probe_count=self._probe_count,
            calls=len(self._response_times),
        )

    async def reset_counters(self) -> None:
        """Clear failure and probe tracking without touching state or history."""
        async with self._lock.hold():
            self._reset()

    async def _emit_state_changes(self, transitions: Sequence[_Transition]) -> None:
        for old, new in transitions:
            for listener in self._listeners:
                try:
                    await listener.on_state_change(self.name, old, new)
                except Exception:
                    continue

    async def _emit_call_rejected(self, exc: CircuitBreakerError) -> None:
        for listener in self._listeners:
            try:
                await listener.on_call_rejected(self.name, exc)
            except Exception:
                continue

    async def _emit_call_succeeded(self, elapsed: float) -> None:
        for listener in self._listeners:
            try:
                await listener.on_call_succeeded(self.name, elapsed)
            except Exception:
                continue

    async def _emit_call_failed(self, exc: Exception, elapsed: float) -> None:
        for listener in self._listeners:
            try:
                await listener.on_call_failed(self.name, exc, elapsed)
            except Exception:
                continue

    def _reset(self) -> None:
        self._failure_count = 0
        self._last_failure_at = None
        self._probe_count = 0

    def _transition(self, new: CircuitState, transitions: list[_Transition]) -> None:
        old = self._state
        self._state = new
        if new == CircuitState.HALF_OPEN:
            self._probe_count = 0
        elif new == CircuitState.CLOSED:
            self._reset()
        transitions.append((old, new))

    def _record_elapsed(self, start: float) -> float:
        elapsed = max(self._clock() - start, 0.0)
        self._response_times.append(elapsed)
        return elapsed

    def _retry_after(self, now: float) -> float:
        # Counters cleared by a manual reset while open make a probe eligible.
        if self._last_failure_at is None:
            return 0.0
        elapsed = now - self._last_failure_at
        return max(self.config.cooldown - elapsed, 0.0)

    def _admit(
        self, now: float, transitions: list[_Transition]
    ) -> _Admission | CircuitBreakerError:
        if self._state == CircuitState.OPEN:
            retry_after = self._retry_after(now)
            if retry_after > 0:
                return CircuitOpenError(self.name, retry_after=retry_after)
            self._transition(CircuitState.HALF_OPEN, transitions)

        if self._state == CircuitState.HALF_OPEN:
            if self._probe_count >= self.config.max_probe_requests:
                self._transition(CircuitState.OPEN, transitions)
                return ProbeLimitExceededError(
                    self.name, self.config.max_probe_requests
                )
            self._probe_count += 1
            return _Admission.PROBE

        return _Admission.CALL

    def _on_success(
        self, admission: _Admission, transitions: list[_Transition]
    ) -> None:
        if self._state == CircuitState.CLOSED:
            self._reset()
        elif admission is _Admission.PROBE:
            self._transition(CircuitState.CLOSED, transitions)

    def _on_failure(
        self, admission: _Admission, now: float, transitions: list[_Transition]
    ) -> None:
        self._failure_count += 1
        self._last_failure_at = now
        if self._state == CircuitState.CLOSED:
            if self._failure_count >= self.config.failure_threshold:
                self._transition(CircuitState.OPEN, transitions)
        elif admission is _Admission.PROBE and self._state == CircuitState.HALF_OPEN:
            self._transition(CircuitState.OPEN, transitions)

    def _release_probe(self, admission: _Admission) -> None:
        if admission is not _Admission.PROBE:
            return
        if self._state == CircuitState.HALF_OPEN and self._probe_count > 0:
            self._probe_count -= 1

    async def call(
        self,
        func: Callable[P, Awaitable[T]],
        *args: P.args,
        **kwargs: P.kwargs,
    ) -> T:
        """Invoke an async callable under circuit breaker protection.

        Args:
            func: Dangerous async callable to execute.
            *args: Positional arguments forwarded to ``func``.
            **kwargs: Keyword arguments forwarded to ``func``.

        Returns:
            The result of ``func`` when allowed and successful.

        Raises:
            CircuitOpenError: When the circuit is open and the cooldown has not
                elapsed.
            ProbeLimitExceededError: When the circuit is half-open and the probe
                budget is already spent.
            Exception: The original exception from ``func`` when it is attempted
                and fails.
        """
        start = self._clock()
        transitions: list[_Transition] = []
        async with self._lock.hold():
            admission = self._admit(start, transitions)
            if isinstance(admission, CircuitBreakerError):
                self._record_elapsed(start)
        await self._emit_state_changes(transitions)

        if isinstance(admission, CircuitBreakerError):
            await self._emit_call_rejected(admission)
            raise admission

        try:
            result = await func(*args, **kwargs)
        except Exception as exc:
            transitions = []
            async with self._lock.hold():
                elapsed = self._record_elapsed(start)
                self._on_failure(admission, self._clock(), transitions)
            await self._emit_call_failed(exc, elapsed)
            await self._emit_state_changes(transitions)
            raise
        except BaseException:
            async with self._lock.hold():
                self._record_elapsed(start)
                self._release_probe(admission)
            raise

        transitions = []
        async with self._lock.hold():
            elapsed = self._record_elapsed(start)
            self._on_success(admission, transitions)
        await self._emit_state_changes(transitions)
        await self._emit_call_succeeded(elapsed)
        return result
