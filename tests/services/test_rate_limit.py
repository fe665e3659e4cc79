"""
Tests for connector rate limit classification
"""

import json
from types import SimpleNamespace

import pytest
from pybreaker import CircuitBreakerError

from proactive_cmd.app.services.rate_limit import is_rate_limited, response_status


class TestIsRateLimited:

    def test_too_many_requests(self, make_connector_error):
        assert is_rate_limited(make_connector_error(429, "Too Many Requests")) is True

    @pytest.mark.parametrize("status, reason", [
        (403, "Forbidden"),
        (404, "Not Found"),
        (500, "Internal Server Error"),
        (503, "Service Unavailable"),
    ])
    def test_other_statuses(self, make_connector_error, status, reason):
        assert is_rate_limited(make_connector_error(status, reason)) is False

    def test_reason_text_is_ignored(self, make_connector_error):
        assert is_rate_limited(make_connector_error(500, "429 upstream")) is False

    def test_decode_error_at_column_429(self):
        error = json.JSONDecodeError("Expecting value", "x" * 428, 428)

        assert "429" in str(error)
        assert is_rate_limited(error) is False

    def test_other_exception_types(self):
        assert is_rate_limited(PermissionError("AADSTS50196: 429 loop detected")) is False
        assert is_rate_limited(CircuitBreakerError("circuit breaker still open")) is False
        assert is_rate_limited(RuntimeError("HTTP 429")) is False


class TestResponseStatus:

    def test_requests_style_response(self, make_connector_error):
        assert response_status(make_connector_error(429)) == 429

    def test_aiohttp_style_response(self):
        error = RuntimeError("throttled")
        error.response = SimpleNamespace(status=429)

        assert response_status(error) == 429

    def test_without_response(self):
        assert response_status(ValueError("bad")) is None

    def test_non_integer_status(self):
        error = RuntimeError("odd")
        error.response = SimpleNamespace(status_code="429")

        assert response_status(error) is None
