"""Retry utilities for completion calls made by graph nodes."""

from __future__ import annotations

import asyncio
import functools
from collections.abc import Awaitable, Callable
from typing import TypeVar

from workforce_lu.utils.logging import setup_logger

logger = setup_logger(__name__)

T = TypeVar("T")


class RetryableError(Exception):
    """Exception that indicates the operation should be retried."""

    pass


def with_retry_async(
    max_attempts: int = 2,
    delay_seconds: float = 1.0,
    retryable_exceptions: tuple[type[Exception], ...] = (RetryableError,),
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Retry an async callable on transient failures.

    Args:
        max_attempts: Maximum number of attempts (including first try).
        delay_seconds: Delay between retries.
        retryable_exceptions: Exception types that trigger retry. Anything else
            propagates on the first failure.

    Example:
        @with_retry_async(max_attempts=2)
        async def call_model():
            try:
                return await asyncio.wait_for(llm.ainvoke(messages), timeout=30)
            except TimeoutError as e:
                raise RetryableError("Completion timed out") from e
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            last_exception: Exception | None = None

            for attempt in range(1, max_attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except retryable_exceptions as e:
                    last_exception = e
                    if attempt < max_attempts:
                        logger.warning(
                            f"{func.__name__} failed, retrying",
                            extra={
                                "attempt": attempt,
                                "max_attempts": max_attempts,
                                "delay_seconds": delay_seconds,
                                "error": str(e),
                            },
                        )
                        await asyncio.sleep(delay_seconds)
                    else:
                        logger.error(
                            f"{func.__name__} failed after {max_attempts} attempts",
                            extra={"error": str(e)},
                        )

            if last_exception is not None:
                raise last_exception
            raise RuntimeError("Unexpected state: no exception but no return value")

        return wrapper

    return decorator
