from __future__ import annotations

import logging
import time
from typing import Callable, Optional, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


class RetryExhausted(Exception):
    """Raised when every attempt failed.

    ``last_result`` and ``last_error`` hold the outcome of the final attempt.
    """

    def __init__(
        self,
        attempts: int,
        last_result: object = None,
        last_error: Optional[BaseException] = None,
    ) -> None:
        super().__init__(f"gave up after {attempts} attempts")
        self.attempts = attempts
        self.last_result = last_result
        self.last_error = last_error


def retry_call(
    fn: Callable[[int], T],
    *,
    attempts: int = 3,
    backoff: float = 5.0,
    should_retry: Callable[[T], bool] = lambda result: result is None,
    retry_on: tuple[type[BaseException], ...] = (),
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call ``fn`` until it yields an acceptable result.

    ``fn`` receives the 1-based attempt number. An attempt fails when it raises
    one of ``retry_on`` or when ``should_retry(result)`` is true. Attempts are
    separated by a fixed ``backoff`` sleep; no sleep follows the last one.
    """
    if attempts < 1:
        raise ValueError("attempts must be >= 1")

    last_result: object = None
    last_error: Optional[BaseException] = None
    for attempt in range(1, attempts + 1):
        try:
            result = fn(attempt)
        except retry_on as exc:
            last_error = exc
            last_result = None
            logger.warning(f"  ⚠ WARNING: attempt {attempt}/{attempts} failed: {exc}")
        else:
            if not should_retry(result):
                return result
            last_error = None
            last_result = result
        if attempt < attempts:
            sleep(backoff)
    raise RetryExhausted(attempts, last_result=last_result, last_error=last_error)
