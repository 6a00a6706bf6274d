"""Bounded polling built on tenacity."""

from typing import Awaitable, Callable

import structlog
from tenacity import (
    retry,
    retry_if_result,
    stop_after_attempt,
    wait_fixed,
)

logger = structlog.get_logger(__name__)


def _not_settled(settled: bool) -> bool:
    return settled is False


def _give_up(retry_state) -> bool:
    logger.debug("poll_limit_reached", attempts=retry_state.attempt_number)
    return False


async def poll_until_settled(
    poll: Callable[[], Awaitable[bool]],
    max_polls: int,
    interval_ms: int,
) -> bool:
    """Call ``poll`` until it returns True or ``max_polls`` calls were made.

    Exceptions raised by ``poll`` are not retried; they propagate.

    Args:
        poll: Coroutine function returning True once the condition holds
        max_polls: Upper bound on calls
        interval_ms: Pause between calls

    Returns:
        True if the condition settled, False if the poll limit was hit
    """
    retrying = retry(
        stop=stop_after_attempt(max_polls),
        wait=wait_fixed(interval_ms / 1000),
        retry=retry_if_result(_not_settled),
        retry_error_callback=_give_up,
    )
    return await retrying(poll)()
