"""Automatic retry of failed requests based on server-provided delay hints."""

import logging
import math
import time
from typing import Callable, Mapping, TypeVar

from cloudnode.errors import ApiError
from cloudnode.options import ClientOptions

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRY_AFTER_HEADERS = ("x-retry-after", "retry-after")

RATE_LIMIT_HEADERS = (
    "x-ratelimit-reset",
    "x-rate-limit-reset",
    "ratelimit-reset",
    "rate-limit-reset",
    "retry-after",
    "x-retry-after",
)


def retry_hint(status: int, headers: Mapping[str, str]) -> float | None:
    """Seconds the server asks us to wait, or None if there is no numeric hint.

    Rate-limited (429) responses prefer the rate-limit reset headers. The
    first header present decides; a non-numeric value means no hint.
    """
    names = RATE_LIMIT_HEADERS if status == 429 else RETRY_AFTER_HEADERS
    value = next((headers[name] for name in names if name in headers), None)
    if value is None:
        return None
    try:
        delay = float(value)
    except ValueError:
        return None
    if math.isnan(delay) or math.isinf(delay):
        return None
    return max(delay, 0.0)


def next_delay(error: ApiError, attempt: int, options: ClientOptions) -> float | None:
    """Delay before retry number `attempt + 1`, or None to give up."""
    if not options.auto_retry or attempt >= options.max_retries:
        return None
    delay = retry_hint(error.status, error.headers)
    if delay is None or delay > options.max_retry_delay:
        return None
    return delay


def send_with_retry(send: Callable[[], T], options: ClientOptions) -> T:
    """Call `send` until it succeeds or the retry policy gives up.

    Only `ApiError` failures are considered; anything else propagates at once.
    """
    attempt = 0
    while True:
        try:
            return send()
        except ApiError as e:
            delay = next_delay(e, attempt, options)
            if delay is None:
                logger.debug("Not retrying %s after %d attempt(s)", e.status, attempt + 1)
                raise
            attempt += 1
            logger.info("Request failed with %s, retry %d/%d in %.1fs", e.status, attempt, options.max_retries, delay)
            time.sleep(delay)
