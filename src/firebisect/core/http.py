"""Retry policy shared by the HTTP collaborators."""

from __future__ import annotations

import httpx
import tenacity

from firebisect.core.log import logger

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


def is_transient(exc: BaseException) -> bool:
    """Check if a failed request is worth repeating.

    Retryable: 429, 500, 502, 503, 504, connection and timeout errors.
    Not retryable: any other HTTP status, including 401 and 403.
    """
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in RETRYABLE_STATUS_CODES
    return isinstance(exc, httpx.TransportError)


def describe(exc: BaseException) -> str:
    """Short description of a request failure.

    Never includes the URL, which may carry credentials.
    """
    if isinstance(exc, httpx.HTTPStatusError):
        return f"HTTP {exc.response.status_code}"
    return type(exc).__name__


def retrying(
    service: str,
    max_attempts: int,
    wait: tenacity.wait.wait_base | None = None,
) -> tenacity.AsyncRetrying:
    """Build an async retryer with exponential backoff and jitter.

    Args:
        service: Name used in retry log records
        max_attempts: Total attempts, including the first
        wait: Override of the backoff policy (tests pass wait_none())
    """
    def log_retry(retry_state: tenacity.RetryCallState) -> None:
        logger.warn(
            "{service} request failed, retrying",
            service=service,
            attempt=retry_state.attempt_number,
            error=describe(retry_state.outcome.exception()),
        )

    return tenacity.AsyncRetrying(
        retry=tenacity.retry_if_exception(is_transient),
        wait=wait or (
            tenacity.wait_exponential(multiplier=1, min=1, max=30)
            + tenacity.wait_random(0, 2)
        ),
        stop=tenacity.stop_after_attempt(max(1, max_attempts)),
        before_sleep=log_retry,
        reraise=True,
    )
