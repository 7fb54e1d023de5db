"""Bounded retry with exponential backoff for sheet fetches and Gemini calls."""

import sys
import time
from typing import Callable, TypeVar

import httpx
import requests

from .errors import RateLimitedError, RetryExhaustedError

T = TypeVar("T")

MAX_ATTEMPTS = 3
BASE_DELAY = 1.0

TRANSPORT_ERRORS = (
    requests.ConnectionError,
    requests.Timeout,
    httpx.TransportError,
    ConnectionError,
    TimeoutError,
)


def is_transport_error(exc: BaseException) -> bool:
    return isinstance(exc, TRANSPORT_ERRORS)


def is_rate_limited(exc: BaseException) -> bool:
    """Retry on rate limiting and on network/transport failures."""
    return isinstance(exc, RateLimitedError) or is_transport_error(exc)


def call_with_retry(
    action: Callable[[], T],
    is_retryable: Callable[[BaseException], bool] = is_rate_limited,
    max_attempts: int = MAX_ATTEMPTS,
    base_delay: float = BASE_DELAY,
    sleep: Callable[[float], None] = time.sleep,
    label: str = "remote",
) -> T:
    """
    Run `action` up to `max_attempts` times.

    Retryable failures wait base_delay * 2**attempt before the next attempt
    (1s, 2s, 4s with the defaults). The last retryable failure is raised as
    RetryExhaustedError chained from the original exception. Anything the
    predicate rejects propagates untouched on the first occurrence.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    last_error: BaseException | None = None
    for attempt in range(max_attempts):
        try:
            return action()
        except Exception as e:
            if not is_retryable(e):
                raise
            last_error = e
            if attempt == max_attempts - 1:
                break
            wait = base_delay * (2 ** attempt)
            print(f"  [{label}] Retryable failure (attempt {attempt+1}/{max_attempts}), waiting {wait:g}s… {e}",
                  file=sys.stderr)
            sleep(wait)

    message = getattr(last_error, "message", None) or str(last_error)
    raise RetryExhaustedError(
        f"{label} failed after {max_attempts} attempts: {message}",
        status=getattr(last_error, "status", None),
    ) from last_error
