"""Retry helper for flaky outbound calls."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

T = TypeVar("T")


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    attempts: int = 3,
    base_delay: float = 0.15,
) -> T:
    """Await ``operation`` until it succeeds or attempts run out.

    The delay after the n-th failure (1-based) is ``base_delay * n`` seconds.
    No delay follows the final attempt.

    Args:
        operation: Zero-argument coroutine factory, called once per attempt.
        attempts: Total attempts; values below 1 are treated as 1.
        base_delay: Delay unit in seconds; values below 1 ms are raised to 1 ms.

    Returns:
        The first successful result.

    Raises:
        Exception: The error from the last attempt.
    """
    attempts = max(1, attempts)
    base_delay = max(0.001, base_delay)

    for index in range(attempts - 1):
        try:
            return await operation()
        except Exception:
            await asyncio.sleep(base_delay * (index + 1))
    return await operation()
