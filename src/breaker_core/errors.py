"""Shared error types for breaker_core."""


class TransientError(RuntimeError):
    """Generic retry-safe transient dependency failure."""


class DownstreamServiceError(TransientError):
    """Raised by the simulated downstream dependency when a call fails."""
