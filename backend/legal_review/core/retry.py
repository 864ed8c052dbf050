"""Bounded exponential backoff around throttled upstream calls."""

from __future__ import annotations

import time
from typing import Callable, TypeVar

from google.api_core import exceptions as api_exceptions

from legal_review.core.errors import LegalReviewError, RateLimitError
from legal_review.core.logging import get_logger
from legal_review.core.metrics import GENERATION_RETRIES

logger = get_logger(__name__)

T = TypeVar("T")

# phrases only consulted for exceptions that carry no type or status information
_THROTTLE_MARKERS = ("rate limit exceeded", "resource has been exhausted", "too many requests", "quota exceeded")


def is_throttling_error(exc: BaseException) -> bool:
    """Return True when ``exc`` signals that the request rate quota was exceeded.

    The exception type decides first, then a wrapped ``original_error``, then an
    HTTP status. Message text is only checked when none of those are present.
    """
    if isinstance(exc, (RateLimitError, api_exceptions.ResourceExhausted, api_exceptions.TooManyRequests)):
        return True
    if isinstance(exc, LegalReviewError) and exc.original_error is not None:
        return is_throttling_error(exc.original_error)
    status = getattr(exc, "status_code", None) or getattr(exc, "code", None)
    if isinstance(exc, api_exceptions.GoogleAPIError) or status is not None:
        return status == 429
    message = str(exc).lower()
    return any(marker in message for marker in _THROTTLE_MARKERS)


class RateLimitedExecutor:
    """Run a callable, retrying only on throttling with a doubling delay.

    ``max_retries`` counts retries, so an operation that is always throttled is
    attempted ``max_retries + 1`` times. The delay before retry ``n`` is
    ``initial_delay * 2 ** (n - 1)``. Any other exception propagates on the
    first attempt.
    """

    def __init__(
        self,
        max_retries: int = 3,
        initial_delay: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self._sleep = sleep

    def execute(
        self,
        operation: Callable[[], T],
        max_retries: int | None = None,
        initial_delay: float | None = None,
    ) -> T:
        retries = self.max_retries if max_retries is None else max_retries
        delay = self.initial_delay if initial_delay is None else initial_delay
        attempt = 0
        while True:
            try:
                return operation()
            except Exception as exc:
                if not is_throttling_error(exc) or attempt >= retries:
                    raise
                attempt += 1
                logger.warning(
                    "Throttled by upstream (retry %s/%s in %.1fs): %s",
                    attempt,
                    retries,
                    delay,
                    exc,
                )
                GENERATION_RETRIES.inc()
                self._sleep(delay)
                delay *= 2


__all__ = ["RateLimitedExecutor", "is_throttling_error"]
