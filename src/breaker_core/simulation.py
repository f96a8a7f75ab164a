"""Downstream simulation comparing latency with and without a circuit breaker.

The simulated dependency fails at random and answers after a random delay.
Running the same number of calls against it twice, once through a
``CircuitBreaker`` and once directly, shows how failing fast while the circuit
is open lowers the average response time seen by the caller.

Usage:
    breaker-simulate
    breaker-simulate --failure-rate 0.5 --iterations 60 --seed 7
"""

from __future__ import annotations

import argparse
import asyncio
import random
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass

import structlog

from breaker_core.circuit_breaker import (
    BreakerListener,
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitBreakerError,
    Clock,
    LoggingBreakerListener,
)
from breaker_core.errors import DownstreamServiceError
from breaker_core.logging import StructuredLogger, configure_structlog, log_info
from breaker_core.settings import BreakerSettings, SimulationSettings

Sleep = Callable[[float], Awaitable[None]]

DEMO_BREAKER_CONFIG = CircuitBreakerConfig(
    failure_threshold=5,
    cooldown=3.0,
    max_probe_requests=2,
)
SUCCESS_PAYLOAD = "Success: Data fetched from downstream service"

_logger: StructuredLogger = structlog.stdlib.get_logger(__name__)


class SimulatedDependency:
    """Remote dependency stand-in with random latency and random failures."""

    def __init__(
        self,
        *,
        failure_rate: float,
        base_latency: float,
        latency_variation: float,
        rng: random.Random | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        """Create a simulated dependency.

        Args:
            failure_rate: Probability in ``[0, 1]`` that a call fails.
            base_latency: Minimum seconds every call takes.
            latency_variation: Upper bound of extra random seconds per call.
            rng: Random source. Pass a seeded instance for reproducible runs.
            sleep: Awaitable sleep used to simulate latency.
        """
        if not 0.0 <= failure_rate <= 1.0:
            raise ValueError("failure_rate must be between 0 and 1")
        if base_latency < 0 or latency_variation < 0:
            raise ValueError("latency values must be >= 0")
        self.failure_rate = failure_rate
        self.base_latency = base_latency
        self.latency_variation = latency_variation
        self._rng = random.Random() if rng is None else rng
        self._sleep = sleep
        self.calls = 0

    async def fetch_data(self) -> str:
        """Wait a simulated latency, then fail or return the payload."""
        self.calls += 1
        latency = self.base_latency + self._rng.random() * self.latency_variation
        await self._sleep(latency)
        if self._rng.random() < self.failure_rate:
            raise DownstreamServiceError("Downstream service failed")
        return SUCCESS_PAYLOAD


@dataclass(frozen=True)
class SimulationResult:
    """Response-time samples and averages of both simulation runs."""

    with_breaker: tuple[float, ...]
    without_breaker: tuple[float, ...]

    @property
    def with_breaker_average(self) -> float:
        return average_response_time(self.with_breaker)

    @property
    def without_breaker_average(self) -> float:
        return average_response_time(self.without_breaker)


def average_response_time(times: Sequence[float]) -> float:
    """Return the arithmetic mean of response-time samples."""
    if not times:
        raise ValueError("times must not be empty")
    return sum(times) / len(times)


async def run_with_breaker(
    dependency: SimulatedDependency,
    *,
    config: CircuitBreakerConfig = DEMO_BREAKER_CONFIG,
    iterations: int = 30,
    interval: float = 0.5,
    sleep: Sleep = asyncio.sleep,
    clock: Clock = time.monotonic,
    listeners: Sequence[BreakerListener] | None = None,
) -> tuple[float, ...]:
    """Call the dependency through a fresh breaker and return its history."""
    breaker = CircuitBreaker(
        "simulated-downstream",
        config=config,
        clock=clock,
        listeners=listeners,
    )
    for _ in range(iterations):
        try:
            await breaker.call(dependency.fetch_data)
        except (CircuitBreakerError, DownstreamServiceError):
            pass
        await sleep(interval)
    return breaker.response_times


async def run_without_breaker(
    dependency: SimulatedDependency,
    *,
    iterations: int = 30,
    interval: float = 0.5,
    sleep: Sleep = asyncio.sleep,
    clock: Clock = time.monotonic,
) -> tuple[float, ...]:
    """Call the dependency directly and return the elapsed time of each call."""
    response_times: list[float] = []
    for _ in range(iterations):
        start = clock()
        try:
            await dependency.fetch_data()
        except DownstreamServiceError as exc:
            log_info(_logger, "simulation.unprotected_call_failed", error=str(exc))
        response_times.append(max(clock() - start, 0.0))
        await sleep(interval)
    return tuple(response_times)


async def compare(
    settings: SimulationSettings,
    *,
    config: CircuitBreakerConfig = DEMO_BREAKER_CONFIG,
    sleep: Sleep = asyncio.sleep,
    clock: Clock = time.monotonic,
    listeners: Sequence[BreakerListener] | None = None,
) -> SimulationResult:
    """Run the protected and the unprotected scenario one after the other."""
    rng = random.Random(settings.seed)
    dependency = SimulatedDependency(
        failure_rate=settings.failure_rate,
        base_latency=settings.base_latency_seconds,
        latency_variation=settings.latency_variation_seconds,
        rng=rng,
        sleep=sleep,
    )

    with structlog.contextvars.bound_contextvars(scenario="with_breaker"):
        log_info(_logger, "simulation.started", iterations=settings.iterations)
        with_breaker = await run_with_breaker(
            dependency,
            config=config,
            iterations=settings.iterations,
            interval=settings.interval_seconds,
            sleep=sleep,
            clock=clock,
            listeners=listeners,
        )

    with structlog.contextvars.bound_contextvars(scenario="without_breaker"):
        log_info(_logger, "simulation.started", iterations=settings.iterations)
        without_breaker = await run_without_breaker(
            dependency,
            iterations=settings.iterations,
            interval=settings.interval_seconds,
            sleep=sleep,
            clock=clock,
        )
    return SimulationResult(with_breaker=with_breaker, without_breaker=without_breaker)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="breaker-simulate",
        description="Compare average response times with and without a breaker.",
    )
    parser.add_argument("--failure-rate", type=float, help="Failure probability")
    parser.add_argument(
        "--base-latency", type=float, help="Minimum latency in seconds"
    )
    parser.add_argument(
        "--latency-variation", type=float, help="Extra random latency in seconds"
    )
    parser.add_argument("--iterations", type=int, help="Calls per scenario")
    parser.add_argument(
        "--interval", type=float, help="Pause between calls in seconds"
    )
    parser.add_argument("--seed", type=int, help="Random seed")
    parser.add_argument(
        "--log-level", help="Log level, overriding BREAKER_LOG_LEVEL"
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    overrides = {
        "failure_rate": args.failure_rate,
        "base_latency_seconds": args.base_latency,
        "latency_variation_seconds": args.latency_variation,
        "iterations": args.iterations,
        "interval_seconds": args.interval,
        "seed": args.seed,
    }
    settings = SimulationSettings(
        **{key: value for key, value in overrides.items() if value is not None}
    )
    breaker_settings = BreakerSettings()
    configure_structlog(log_level=args.log_level or breaker_settings.log_level)

    result = asyncio.run(compare(settings, listeners=[LoggingBreakerListener()]))

    print("Simulation Results:")
    print(
        "Average Response Time (With Circuit Breaker): "
        f"{result.with_breaker_average * 1000:.2f}ms"
    )
    print(
        "Average Response Time (Without Circuit Breaker): "
        f"{result.without_breaker_average * 1000:.2f}ms"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
