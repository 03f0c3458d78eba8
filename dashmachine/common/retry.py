"""
Bounded retry loop for platform operations.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

T = TypeVar("T")


def call_with_retries(
    operation: Callable[[int], T],
    max_attempts: int,
    retry_on: tuple[type[BaseException], ...],
    description: str = "operation",
    retry_delay: float = 0.0,
) -> T:
    """Call ``operation`` until it succeeds or ``max_attempts`` is reached.

    The operation receives the 1-based attempt number. Exceptions not listed
    in ``retry_on`` propagate immediately; when every attempt fails the last
    error is re-raised.

    Args:
        operation: Callable taking the attempt number
        max_attempts: Total number of attempts, at least 1
        retry_on: Exception types that trigger another attempt
        description: Label used in log messages
        retry_delay: Seconds to sleep between attempts

    Returns:
        The operation's result
    """
    if max_attempts < 1:
        msg = f"max_attempts must be at least 1, got {max_attempts}"
        raise ValueError(msg)

    for attempt in range(1, max_attempts + 1):
        try:
            return operation(attempt)
        except retry_on as e:
            if attempt >= max_attempts:
                logger.error(
                    "Unable to complete %s after %s attempts: %s",
                    description,
                    attempt,
                    e,
                )
                raise
            logger.warning(
                "%s failed on attempt %s/%s, retrying: %s",
                description,
                attempt,
                max_attempts,
                e,
            )
            if retry_delay:
                time.sleep(retry_delay)

    msg = "unreachable"
    raise AssertionError(msg)
