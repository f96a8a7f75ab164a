"""Circuit breaker exceptions.

Callers can distinguish between:
  - A call being rejected because the circuit is open.
  - A call being rejected because the half-open probe budget is spent.
  - A breaker being built from invalid configuration values.

Errors raised by the protected operation are never wrapped; they reach the
caller unchanged.
"""


class CircuitBreakerError(Exception):
    """Base exception for the circuit breaker package."""


class InvalidConfigurationError(CircuitBreakerError, ValueError):
    """Raised when breaker configuration values are out of range."""


class CircuitOpenError(CircuitBreakerError):
    """Raised when a call is rejected because the circuit is open.

    Attributes:
        breaker_name: Name of the breaker rejecting the call.
        retry_after: Seconds until a half-open probe may be attempted.
    """

    def __init__(self, breaker_name: str, retry_after: float) -> None:
        """Initialize a circuit-open exception payload.

        Args:
            breaker_name: Breaker rejecting the call.
            retry_after: Seconds until the next probe window opens.
        """
        self.breaker_name = breaker_name
        self.retry_after = retry_after
        super().__init__(f"circuit_open: {breaker_name} retry_after={retry_after:g}s")


class ProbeLimitExceededError(CircuitBreakerError):
    """Raised when a half-open call arrives after the probe budget is spent.

    Attributes:
        breaker_name: Name of the breaker rejecting the call.
        max_probe_requests: Probe budget of the half-open episode.
    """

    def __init__(self, breaker_name: str, max_probe_requests: int) -> None:
        self.breaker_name = breaker_name
        self.max_probe_requests = max_probe_requests
        super().__init__(
            f"probe_limit_exceeded: {breaker_name} "
            f"max_probe_requests={max_probe_requests}"
        )
