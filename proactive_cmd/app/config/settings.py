"""
Runtime settings for the proactive messaging command.

Values come from environment variables (optionally loaded from .env.local by
the command entry point). Defaults reproduce the production resilience policy:

Transient retry:
- TRANSIENT_RETRY_COUNT: retries after the first rate-limited attempt (3)
- TRANSIENT_BACKOFF_BASE_SECONDS: exponential base, delay = base ** attempt (2)
- TRANSIENT_MAX_JITTER_MS: upper bound (exclusive) of the random jitter (1000)

Circuit breaker:
- CIRCUIT_FAILURE_THRESHOLD: consecutive rate-limited failures before opening (5)
- CIRCUIT_BREAK_SECONDS: how long the circuit stays open (600)

Outer retry:
- OUTER_RETRY_COUNT: retries while the circuit is open (5)
- OUTER_RETRY_DELAY_SECONDS: fixed delay between those retries (600)

Connector:
- MICROSOFT_APP_TENANT_ID: token tenant for single-tenant bots (unset: botframework.com)
- CONNECTOR_TIMEOUT_SECONDS: HTTP timeout for connector and token calls (30)
"""
import os
from dataclasses import dataclass
from typing import Optional


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}")


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}")


@dataclass(frozen=True)
class Settings:
    """Connector and resilience policy configuration."""

    tenant_id: Optional[str] = None
    connector_timeout_seconds: float = 30.0

    transient_retry_count: int = 3
    transient_backoff_base_seconds: float = 2.0
    transient_max_jitter_ms: int = 1000

    circuit_failure_threshold: int = 5
    circuit_break_seconds: float = 600.0

    outer_retry_count: int = 5
    outer_retry_delay_seconds: float = 600.0

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables, falling back to defaults."""
        return cls(
            tenant_id=os.getenv("MICROSOFT_APP_TENANT_ID") or None,
            connector_timeout_seconds=_env_float("CONNECTOR_TIMEOUT_SECONDS", 30.0),
            transient_retry_count=_env_int("TRANSIENT_RETRY_COUNT", 3),
            transient_backoff_base_seconds=_env_float("TRANSIENT_BACKOFF_BASE_SECONDS", 2.0),
            transient_max_jitter_ms=_env_int("TRANSIENT_MAX_JITTER_MS", 1000),
            circuit_failure_threshold=_env_int("CIRCUIT_FAILURE_THRESHOLD", 5),
            circuit_break_seconds=_env_float("CIRCUIT_BREAK_SECONDS", 600.0),
            outer_retry_count=_env_int("OUTER_RETRY_COUNT", 5),
            outer_retry_delay_seconds=_env_float("OUTER_RETRY_DELAY_SECONDS", 600.0),
        )
