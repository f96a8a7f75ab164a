"""Circuit breaker state primitives."""

from dataclasses import dataclass
from enum import StrEnum


class CircuitState(StrEnum):
    """Circuit breaker state values."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass(frozen=True)
class BreakerSnapshot:
    """Point-in-time view of breaker internals useful for metrics/logging.

    Attributes:
        name: Breaker name.
        state: Current breaker state.
        failure_count: Failures observed since the last counter reset.
        last_failure_at: Clock reading of the last recorded failure, if any.
        probe_count: Probes admitted during the current ``HALF_OPEN`` episode.
        calls: Number of call attempts recorded in the response-time history.
    """

    name: str
    state: CircuitState
    failure_count: int
    last_failure_at: float | None
    probe_count: int
    calls: int
