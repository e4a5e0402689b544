"""Bounded retry with fixed backoff for async operations"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    retries: int = 2,
    delay_seconds: float = 1.0,
    timeout_seconds: float | None = None,
    description: str = "operation",
) -> T:
    """
    Run an async operation, retrying on any exception

    Each attempt is bounded by timeout_seconds (if given). After the first
    attempt fails, up to `retries` further attempts are made with a fixed
    delay in between.

    Args:
        operation: Zero-argument callable returning a fresh awaitable per attempt
        retries: Number of retries after the first attempt
        delay_seconds: Fixed delay between attempts
        timeout_seconds: Per-attempt timeout (None = unbounded)
        description: Label used in log messages

    Returns:
        Result of the first successful attempt

    Raises:
        Exception: The last attempt's exception once all attempts are exhausted
    """
    attempts = retries + 1

    for attempt in range(attempts):
        try:
            if timeout_seconds is None:
                return await operation()
            return await asyncio.wait_for(operation(), timeout=timeout_seconds)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            error_type = "Timeout" if isinstance(e, asyncio.TimeoutError) else type(e).__name__
            if attempt < attempts - 1:
                logger.warning(
                    f"{error_type} for {description}, "
                    f"retry {attempt + 1}/{retries} after {delay_seconds}s"
                )
                await asyncio.sleep(delay_seconds)
                continue
            logger.error(f"All {attempts} attempts failed for {description}: {error_type} {e}")
            raise

    # attempts >= 1, so the loop always returns or raises
    raise RuntimeError(f"No attempts made for {description}")
