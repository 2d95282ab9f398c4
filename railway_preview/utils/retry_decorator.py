"""
Retry helper for external API calls using tenacity library.

Provides automatic retry logic with exponential backoff for HTTP requests
to external services (Railway GraphQL, GitHub REST).

Features:
- Exponential backoff to ride out short platform hiccups
- Smart error detection (retry transient errors, fail fast on permanent errors)
- Configuration driven by settings (EXTERNAL_API_RETRY_*)

GraphQL-level errors are returned with HTTP 200 and are never retried here.
"""

import logging

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    before_sleep_log,
    retry_if_exception as tenacity_retry_if_exception,
)

from ..core.config import settings

logger = logging.getLogger(__name__)

TRANSIENT_EXCEPTIONS = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.HTTPStatusError,  # 4xx vs 5xx filtered in _is_retryable_http_error
)


def _is_retryable_http_error(exception: BaseException) -> bool:
    """
    Determine if an HTTP error should be retried.

    Retryable errors (transient failures):
    - Network errors (timeouts, connection errors)
    - 5xx server errors
    - 429 Too Many Requests
    - 408 Request Timeout

    Non-retryable errors (permanent failures):
    - Every other 4xx (bad token, forbidden, not found, bad request)
    """
    if isinstance(exception, (httpx.TimeoutException, httpx.NetworkError)):
        return True

    if isinstance(exception, httpx.HTTPStatusError):
        status_code = exception.response.status_code

        if 500 <= status_code < 600:
            return True

        if status_code in (408, 429):
            return True

        return False

    return False


def retry_external_api(service_name: str = "external_api") -> AsyncRetrying:
    """
    Create a tenacity AsyncRetrying instance for external API calls.

    Usage:
        async for attempt in retry_external_api("Railway"):
            with attempt:
                response = await client.post(url, json=payload)
                response.raise_for_status()

    Args:
        service_name: Name of the external service (for logging)

    Returns:
        AsyncRetrying instance configured with retry logic
    """
    return AsyncRetrying(
        stop=stop_after_attempt(settings.EXTERNAL_API_RETRY_ATTEMPTS),
        # With multiplier=1.0, min=0.5s, max=2.0s: 0.5s → 1.0s → 2.0s
        wait=wait_exponential(
            multiplier=settings.EXTERNAL_API_RETRY_MULTIPLIER,
            min=settings.EXTERNAL_API_RETRY_MIN_WAIT,
            max=settings.EXTERNAL_API_RETRY_MAX_WAIT,
        ),
        retry=retry_if_exception_type(TRANSIENT_EXCEPTIONS)
        & tenacity_retry_if_exception(_is_retryable_http_error),
        before_sleep=before_sleep_log(
            logger.getChild(service_name), logging.WARNING
        ),
        # Let the last exception propagate to the caller, which classifies it
        reraise=True,
    )
