"""
Circuit Breaker for outbound Bot Connector calls.

Stops hammering an endpoint that keeps throttling us: after a run of
consecutive rate-limited failures the circuit opens and calls fail fast with
pybreaker's CircuitBreakerError until the break duration elapses. The next
call is then a trial (half-open); success closes the circuit, another
rate-limited failure reopens it for a full break duration.

Failures that are not rate limiting are excluded: they propagate untouched and
pybreaker treats them as a non-failure outcome, so they never trip the circuit.
State lives in memory on the breaker instance and never outlives the process.
"""

import logging
from typing import Optional

from pybreaker import (
    STATE_OPEN,
    CircuitBreaker,
    CircuitBreakerListener,
    CircuitBreakerStorage,
)

from ..config import Settings
from .rate_limit import is_rate_limited

logger = logging.getLogger(__name__)


class StateChangeLogger(CircuitBreakerListener):
    """Log breaker transitions and counted failures."""

    def state_change(self, cb, old_state, new_state):
        old_name = old_state.name if old_state else None
        if new_state.name == STATE_OPEN:
            logger.warning(
                f"Circuit breaker '{cb.name}' state changed: {old_name} -> "
                f"{new_state.name} (break for {cb.reset_timeout}s)"
            )
        else:
            logger.info(f"Circuit breaker '{cb.name}' state changed: {old_name} -> {new_state.name}")

    def failure(self, cb, exc):
        logger.debug(
            f"Circuit breaker '{cb.name}' failure recorded: "
            f"{cb.fail_counter}/{cb.fail_max} ({type(exc).__name__})"
        )


def _not_rate_limited(error: BaseException) -> bool:
    return not is_rate_limited(error)


def create_circuit_breaker(
    settings: Optional[Settings] = None,
    name: str = "bot_connector",
    state_storage: Optional[CircuitBreakerStorage] = None
) -> CircuitBreaker:
    """
    Create the circuit breaker guarding Bot Connector calls.

    Args:
        settings: Threshold and break duration (defaults to Settings())
        name: Breaker identifier used in logs
        state_storage: pybreaker storage; tests pass one to control opened_at

    Returns:
        A closed pybreaker CircuitBreaker counting only rate-limited failures
    """
    settings = settings or Settings()

    breaker = CircuitBreaker(
        fail_max=settings.circuit_failure_threshold,
        reset_timeout=settings.circuit_break_seconds,
        exclude=[_not_rate_limited],
        listeners=[StateChangeLogger()],
        state_storage=state_storage,
        name=name,
        # Trip with the original 429 so callers see the connector error
        throw_new_error_on_trip=False,
    )

    logger.info(
        f"Circuit breaker '{name}' initialized: fail_max={settings.circuit_failure_threshold}, "
        f"reset_timeout={settings.circuit_break_seconds}s"
    )
    return breaker


__all__ = [
    'StateChangeLogger',
    'create_circuit_breaker',
]
