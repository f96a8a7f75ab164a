from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    stop_never,
    wait_exponential_jitter,
)
from tenacity.retry import retry_base

from breaker_core.circuit_breaker import CircuitBreaker, CircuitBreakerError

T = TypeVar("T")


@dataclass(frozen=True)
class RetryBackoffPolicy:
    """Configuration for retry attempt count and backoff boundaries."""

    attempts: int | None
    min_seconds: float
    max_seconds: float

    def __post_init__(self) -> None:
        if self.attempts is not None and self.attempts < 1:
            raise ValueError("attempts must be >= 1 when provided")
        if self.min_seconds < 0:
            raise ValueError("min_seconds must be >= 0")
        if self.max_seconds < 0:
            raise ValueError("max_seconds must be >= 0")
        if self.max_seconds < self.min_seconds:
            raise ValueError("max_seconds must be >= min_seconds")


def _is_dependency_failure(exc: BaseException) -> bool:
    return isinstance(exc, Exception) and not isinstance(exc, CircuitBreakerError)


def retry_if_dependency_failure() -> retry_base:
    """Retry failures raised by the protected operation, never breaker rejections."""
    return retry_if_exception(_is_dependency_failure)


def build_exponential_jitter_retrying(
    *,
    retry: retry_base,
    policy: RetryBackoffPolicy,
    sleep: Callable[[float], Awaitable[None]] | None = None,
    before_sleep: Callable[[RetryCallState], None] | None = None,
    reraise: bool = True,
) -> AsyncRetrying:
    """Build an ``AsyncRetrying`` with exponential jitter backoff."""
    stop = (
        stop_never if policy.attempts is None else stop_after_attempt(policy.attempts)
    )
    wait = wait_exponential_jitter(
        initial=policy.min_seconds,
        max=policy.max_seconds,
    )
    if sleep is None and before_sleep is None:
        return AsyncRetrying(
            retry=retry,
            wait=wait,
            stop=stop,
            reraise=reraise,
        )
    if sleep is None:
        return AsyncRetrying(
            retry=retry,
            wait=wait,
            stop=stop,
            before_sleep=before_sleep,
            reraise=reraise,
        )
    if before_sleep is None:
        return AsyncRetrying(
            retry=retry,
            wait=wait,
            stop=stop,
            sleep=sleep,
            reraise=reraise,
        )
    return AsyncRetrying(
        retry=retry,
        wait=wait,
        stop=stop,
        sleep=sleep,
        before_sleep=before_sleep,
        reraise=reraise,
    )


async def call_with_retry(
    breaker: CircuitBreaker,
    func: Callable[[], Awaitable[T]],
    *,
    policy: RetryBackoffPolicy,
    sleep: Callable[[float], Awaitable[None]] | None = None,
    before_sleep: Callable[[RetryCallState], None] | None = None,
) -> T:
    """Call ``func`` through ``breaker``, retrying dependency failures.

    Each attempt is a separate breaker call, so every retry is counted and
    timed by the breaker. A ``CircuitOpenError`` or ``ProbeLimitExceededError``
    stops the loop at once and propagates to the caller.
    """
    retrying = build_exponential_jitter_retrying(
        retry=retry_if_dependency_failure(),
        policy=policy,
        sleep=sleep,
        before_sleep=before_sleep,
    )
    result: T = await retrying(breaker.call, func)
    return result
