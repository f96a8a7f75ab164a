from __future__ import annotations

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass, field

from breaker_core.circuit_breaker import CircuitBreakerError, CircuitState


class FakeLogger:
    """Capture structured logger events for assertions."""

    def __init__(self) -> None:
        self.events: list[str] = []
        self.calls: list[tuple[str, str, dict[str, object]]] = []

    def _record(self, level: str, event: str, **kwargs: object) -> None:
        self.calls.append((level, event, kwargs))

    def info(self, event: str, **kwargs: object) -> None:
        self.events.append(event)
        self._record("info", event, **kwargs)

    def warning(self, event: str, **kwargs: object) -> None:
        self.events.append(event)
        self._record("warning", event, **kwargs)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self._now = start

    def __call__(self) -> float:
        return self._now

    def advance(self, seconds: float) -> None:
        self._now += seconds

    async def sleep(self, seconds: float) -> None:
        """Advance the clock instead of waiting, yielding to the loop once."""
        self.advance(seconds)
        await asyncio.sleep(0)


class DependencyDown(RuntimeError):
    """Failure raised by the scripted dependency."""


class ScriptedDependency:
    """Async dependency whose outcomes follow a programmed sequence.

    Each ``True`` outcome succeeds and each ``False`` outcome raises
    ``DependencyDown``. Once the script is exhausted, ``default`` applies.
    An optional clock is advanced by ``latency`` seconds on every call.
    """

    def __init__(
        self,
        outcomes: Iterable[bool] = (),
        *,
        default: bool = True,
        clock: FakeClock | None = None,
        latency: float = 0.0,
    ) -> None:
        self._outcomes = list(outcomes)
        self._default = default
        self._clock = clock
        self._latency = latency
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self._clock is not None:
            self._clock.advance(self._latency)
        ok = self._outcomes.pop(0) if self._outcomes else self._default
        if not ok:
            raise DependencyDown(f"call {self.calls} failed")
        return f"ok-{self.calls}"


class GatedDependency:
    """Async dependency that blocks until released, for overlap tests."""

    def __init__(self, *, fail: bool = False) -> None:
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self._fail = fail
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        self.started.set()
        await self.release.wait()
        if self._fail:
            raise DependencyDown("gated call failed")
        return "ok"


@dataclass(slots=True)
class RecordingListener:
    """Breaker listener collecting every emitted event."""

    events: list[tuple[str, object]] = field(default_factory=list)

    async def on_state_change(
        self, name: str, old: CircuitState, new: CircuitState
    ) -> None:
        self.events.append(("state", (name, old, new)))

    async def on_call_rejected(self, name: str, exc: CircuitBreakerError) -> None:
        self.events.append(("rejected", (name, exc.__class__.__name__)))

    async def on_call_succeeded(self, name: str, elapsed: float) -> None:
        self.events.append(("succeeded", name))

    async def on_call_failed(self, name: str, exc: Exception, elapsed: float) -> None:
        self.events.append(("failed", (name, exc.__class__.__name__)))

    def transitions(self) -> list[tuple[CircuitState, CircuitState]]:
        return [
            (payload[1], payload[2])  # type: ignore[index]
            for kind, payload in self.events
            if kind == "state"
        ]


@dataclass(slots=True)
class ExplodingListener:
    """Breaker listener raising from every hook."""

    async def on_state_change(
        self, name: str, old: CircuitState, new: CircuitState
    ) -> None:
        raise RuntimeError("boom")

    async def on_call_rejected(self, name: str, exc: CircuitBreakerError) -> None:
        raise RuntimeError("boom")

    async def on_call_succeeded(self, name: str, elapsed: float) -> None:
        raise RuntimeError("boom")

    async def on_call_failed(self, name: str, exc: Exception, elapsed: float) -> None:
        raise RuntimeError("boom")
