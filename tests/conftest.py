"""
Shared pytest configuration and fixtures for proactive messaging tests.
Provides recorded sleeps that move the circuit breaker clock, connector
errors and a mocked Bot Framework ConnectorClient.
"""

import os
import random
from datetime import timedelta
from types import SimpleNamespace
from typing import Callable, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from botbuilder.schema import ErrorResponseException, ResourceResponse
from pybreaker import STATE_CLOSED, CircuitMemoryStorage

from proactive_cmd.app.config import Settings


SERVICE_URL = "https://smba.trafficmanager.net/amer/"


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as async"
    )


@pytest.fixture(autouse=True)
def clean_environment():
    """Keep developer .env values from leaking into tests."""
    overrides = {
        key: value for key, value in os.environ.items()
        if not key.startswith(("MICROSOFT_APP_", "TRANSIENT_", "CIRCUIT_", "OUTER_RETRY_", "CONNECTOR_"))
    }
    with patch.dict(os.environ, overrides, clear=True):
        yield


class RecordingSleep:
    """
    Async sleep replacement that records delays.

    Each sleep also moves the breaker's opened_at back by the slept time, which
    is how pybreaker sees time pass without the test waiting for real.
    """

    def __init__(self, storage: Optional[CircuitMemoryStorage] = None):
        self.storage = storage
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(float(seconds))
        if self.storage is not None:
            elapse(self.storage, seconds)


def elapse(storage: CircuitMemoryStorage, seconds: float) -> None:
    """Pretend `seconds` passed since the circuit opened."""
    if storage.opened_at is not None:
        storage.opened_at = storage.opened_at - timedelta(seconds=seconds)


@pytest.fixture
def state_storage() -> CircuitMemoryStorage:
    return CircuitMemoryStorage(STATE_CLOSED)


@pytest.fixture
def sleep(state_storage) -> RecordingSleep:
    return RecordingSleep(state_storage)


@pytest.fixture
def elapse_time(state_storage) -> Callable[[float], None]:
    return lambda seconds: elapse(state_storage, seconds)


@pytest.fixture
def rng() -> random.Random:
    """Seeded random source for deterministic jitter."""
    return random.Random(1234)


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def bot_credentials() -> Dict[str, str]:
    """Mock Microsoft App credentials."""
    return {
        "app_id": "test-app-id-123",
        "app_password": "test-password-456",
    }


def connector_error(status: int = 429, reason: str = "Too Many Requests") -> ErrorResponseException:
    """Build the ErrorResponseException the connector raises for a non-success status."""
    error_body = SimpleNamespace(error=SimpleNamespace(code="Throttled" if status == 429 else "Error", message=reason))
    deserialize = MagicMock(return_value=error_body)
    response = SimpleNamespace(status_code=status, reason=reason)
    return ErrorResponseException(deserialize, response)


class FailingAction:
    """Async action failing with the given errors before succeeding."""

    def __init__(self, errors: List[BaseException], result: object = "ok"):
        self.errors = list(errors)
        self.result = result
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.result


@pytest.fixture
def make_connector_error() -> Callable[..., ErrorResponseException]:
    return connector_error


@pytest.fixture
def make_failing_action() -> Callable[..., FailingAction]:
    return FailingAction


@pytest.fixture
def service_url() -> str:
    return SERVICE_URL


@pytest.fixture
def mock_connector():
    """Patch the Bot Framework ConnectorClient used by the messaging service."""
    connector = MagicMock()
    connector.__aenter__.return_value = connector
    connector.__aexit__.return_value = False
    connector.conversations.send_to_conversation = AsyncMock(
        return_value=ResourceResponse(id="activity-1")
    )
    connector.conversations.create_conversation = AsyncMock()

    with patch(
        'proactive_cmd.app.services.proactive_messaging.ConnectorClient',
        return_value=connector
    ) as connector_cls:
        connector.cls = connector_cls
        yield connector
