"""
Resilience policy for outbound Bot Connector calls.

Teams throttles bots in bursts. Three layers, innermost to outermost, keep a
proactive send making progress without hammering a throttled endpoint:

1. TransientRetryPolicy - retries rate-limited (429) failures with exponential
   backoff plus random jitter.
2. CircuitBreakerPolicy - runs the stack through a pybreaker circuit that opens
   after consecutive rate-limited failures escaping the transient layer and
   fails fast with CircuitBreakerError while open.
3. OuterRetryPolicy - waits out an open circuit with a long fixed delay.

Every layer implements ``execute(action)`` and wraps an optional inner policy.

Usage:
    policy = create_policy(Settings.from_env())
    result = await policy.execute(lambda: client.conversations.send_to_conversation(...))
"""

import asyncio
import logging
import random
from typing import Any, Awaitable, Callable, Optional, Protocol

from pybreaker import CircuitBreaker, CircuitBreakerError, CircuitBreakerStorage
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)
from tenacity.wait import wait_base

from ..config import Settings
from .circuit_breaker import create_circuit_breaker
from .rate_limit import is_rate_limited

logger = logging.getLogger(__name__)

Action = Callable[[], Awaitable[Any]]
Sleep = Callable[[float], Awaitable[Any]]


class AsyncPolicy(Protocol):
    """Executes an async action under some resilience behaviour."""

    async def execute(self, action: Action) -> Any:
        ...


async def _execute_inner(inner: Optional[AsyncPolicy], action: Action) -> Any:
    if inner is None:
        return await action()
    return await inner.execute(action)


class wait_exponential_with_jitter(wait_base):
    """Wait ``base ** attempt`` seconds plus 0..max_jitter_ms-1 milliseconds."""

    def __init__(self, base: float, max_jitter_ms: int, rng: random.Random):
        self.base = base
        self.max_jitter_ms = max_jitter_ms
        self.rng = rng

    def __call__(self, retry_state) -> float:
        jitter_ms = self.rng.randrange(self.max_jitter_ms) if self.max_jitter_ms > 0 else 0
        return self.base ** retry_state.attempt_number + jitter_ms / 1000.0


class TransientRetryPolicy:
    """Retry rate-limited failures a bounded number of times with jittered backoff."""

    def __init__(
        self,
        inner: Optional[AsyncPolicy] = None,
        retry_count: int = 3,
        backoff_base: float = 2.0,
        max_jitter_ms: int = 1000,
        rng: Optional[random.Random] = None,
        sleep: Optional[Sleep] = None,
        should_retry: Callable[[BaseException], bool] = is_rate_limited
    ):
        self.inner = inner
        self.retry_count = retry_count
        self.should_retry = should_retry
        self._wait = wait_exponential_with_jitter(backoff_base, max_jitter_ms, rng or random.Random())
        self._sleep = sleep or asyncio.sleep

    async def execute(self, action: Action) -> Any:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.retry_count + 1),
            wait=self._wait,
            retry=retry_if_exception(self.should_retry),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
            sleep=self._sleep,
        )
        return await retrying(_execute_inner, self.inner, action)


class CircuitBreakerPolicy:
    """Run the inner policy through a circuit breaker."""

    def __init__(self, breaker: CircuitBreaker, inner: Optional[AsyncPolicy] = None):
        self.breaker = breaker
        self.inner = inner

    async def execute(self, action: Action) -> Any:
        with self.breaker.calling():
            return await _execute_inner(self.inner, action)


class OuterRetryPolicy:
    """Retry the whole inner stack while the circuit is open, with a fixed delay."""

    def __init__(
        self,
        inner: Optional[AsyncPolicy] = None,
        retry_count: int = 5,
        delay_seconds: float = 600.0,
        sleep: Optional[Sleep] = None
    ):
        self.inner = inner
        self.retry_count = retry_count
        self.delay_seconds = delay_seconds
        self._sleep = sleep or asyncio.sleep

    async def execute(self, action: Action) -> Any:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.retry_count + 1),
            wait=wait_fixed(self.delay_seconds),
            retry=retry_if_exception_type(CircuitBreakerError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
            sleep=self._sleep,
        )
        return await retrying(_execute_inner, self.inner, action)


def create_policy(
    settings: Optional[Settings] = None,
    rng: Optional[random.Random] = None,
    sleep: Optional[Sleep] = None,
    state_storage: Optional[CircuitBreakerStorage] = None
) -> OuterRetryPolicy:
    """
    Build the composed outer-retry / circuit-breaker / transient-retry policy.

    Args:
        settings: Policy tuning, defaults to Settings()
        rng: Random source for backoff jitter (seed it for deterministic tests)
        sleep: Async sleep used between retries
        state_storage: pybreaker storage holding the circuit state

    Returns:
        The outermost policy; create one per process and reuse it
    """
    settings = settings or Settings()

    transient = TransientRetryPolicy(
        retry_count=settings.transient_retry_count,
        backoff_base=settings.transient_backoff_base_seconds,
        max_jitter_ms=settings.transient_max_jitter_ms,
        rng=rng,
        sleep=sleep,
    )
    breaker = create_circuit_breaker(settings, state_storage=state_storage)
    return OuterRetryPolicy(
        inner=CircuitBreakerPolicy(breaker, inner=transient),
        retry_count=settings.outer_retry_count,
        delay_seconds=settings.outer_retry_delay_seconds,
        sleep=sleep,
    )


__all__ = [
    'AsyncPolicy',
    'CircuitBreakerPolicy',
    'OuterRetryPolicy',
    'TransientRetryPolicy',
    'create_policy',
    'wait_exponential_with_jitter',
]
