"""
Rate limit detection for Bot Connector calls.

Teams throttles bots by answering 429. The connector SDK surfaces that as an
ErrorResponseException wrapping the HTTP response, so classification is by
status code only; the message text is never inspected.
"""

from typing import Optional

from botbuilder.schema import ErrorResponseException

TOO_MANY_REQUESTS = 429


def response_status(error: BaseException) -> Optional[int]:
    """
    Get the HTTP status carried by a connector error.

    The async connector wraps an aiohttp response (``status``), the sync one a
    requests response (``status_code``).
    """
    response = getattr(error, "response", None)
    if response is None:
        return None
    status = getattr(response, "status_code", None)
    if status is None:
        status = getattr(response, "status", None)
    return status if isinstance(status, int) else None


def is_rate_limited(error: BaseException) -> bool:
    """
    Check whether an error is an upstream throttling signal (HTTP 429).

    Args:
        error: Exception raised by an outbound connector call

    Returns:
        True only for a connector ErrorResponseException with status 429
    """
    if not isinstance(error, ErrorResponseException):
        return False
    return response_status(error) == TOO_MANY_REQUESTS


__all__ = [
    'TOO_MANY_REQUESTS',
    'is_rate_limited',
    'response_status',
]
