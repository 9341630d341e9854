#!/usr/bin/env python3
"""Resilience Patterns for the asset-management API.

This module provides two retry shapes:
    - retry_async: re-run a call while it raises a retryable exception,
      with exponential backoff. Used by the HTTP client for GETs.
    - retry_until: re-run a call a bounded number of times until its result
      satisfies a predicate, never raising. Used where a failed attempt is
      expected and must be reported rather than propagated (group
      read-after-create verification). The wrapped call must be
      single-shot so the attempt count stays exact.

Example:
    payload = await retry_async(fetch_page, "/groups", max_attempts=3)

    outcome = await retry_until(
        lambda: gateway.fetch_group(group_id, retry=False),
        attempts=3,
        delay=3.0,
        predicate=lambda result: result.success,
    )
    if not outcome.success:
        ...
"""
import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

from .exceptions import (
    NetworkError,
    RateLimitError,
    ServerError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ============================================
# Retry with Exponential Backoff
# ============================================

DEFAULT_RETRYABLE_EXCEPTIONS = (
    NetworkError,
    RateLimitError,
    ServerError,
    asyncio.TimeoutError,
    ConnectionResetError,
)


async def retry_async(
    func: Callable[..., Awaitable[T]],
    *args,
    max_attempts: int = 3,
    backoff_factor: float = 2.0,
    initial_delay: float = 1.0,
    max_delay: float = 60.0,
    jitter: bool = True,
    retryable_exceptions: tuple = DEFAULT_RETRYABLE_EXCEPTIONS,
    on_retry: Optional[Callable[[Exception, int], None]] = None,
    **kwargs,
) -> T:
    """Retry an async function call with exponential backoff.

    Only exceptions in retryable_exceptions are retried; anything else
    propagates on the first attempt.

    Returns:
        Result from func

    Raises:
        The last retryable exception once attempts are exhausted, or any
        non-retryable exception immediately.
    """
    delay = initial_delay

    for attempt in range(1, max_attempts + 1):
        try:
            return await func(*args, **kwargs)

        except retryable_exceptions as e:
            if isinstance(e, RateLimitError) and e.retry_after:
                delay = float(e.retry_after)

            if attempt >= max_attempts:
                logger.error(f"All {max_attempts} attempts failed. Last error: {e}")
                raise

            actual_delay = min(delay, max_delay)
            if jitter:
                actual_delay = actual_delay * (0.5 + random.random())

            if on_retry:
                on_retry(e, attempt)

            logger.warning(
                f"Attempt {attempt}/{max_attempts} failed: {e}. "
                f"Retrying in {actual_delay:.1f}s"
            )
            await asyncio.sleep(actual_delay)
            delay = min(delay * backoff_factor, max_delay)

    raise RuntimeError("Retry logic error")


# ============================================
# Bounded Retry Until a Predicate Holds
# ============================================

@dataclass
class RetryOutcome(Generic[T]):
    """Result of retry_until().

    Attributes:
        success: True if some attempt satisfied the predicate
        value: The value of the successful attempt, or of the last attempt
        attempts: Number of attempts actually made
        last_error: Exception raised by the last failing attempt, if any
    """

    success: bool
    value: Optional[T] = None
    attempts: int = 0
    last_error: Optional[Exception] = None


async def retry_until(
    func: Callable[[], Awaitable[T]],
    attempts: int = 3,
    delay: float = 3.0,
    predicate: Callable[[T], bool] = lambda value: bool(value),
    backoff_factor: float = 1.0,
    on_failure: Optional[Callable[[int, Optional[T], Optional[Exception]], None]] = None,
) -> RetryOutcome[T]:
    """Call func until predicate(result) holds or attempts run out.

    Exceptions from func count as failed attempts; they are passed to
    on_failure and never propagated. The delay is slept between attempts
    only, never after the final one.

    Args:
        func: Zero-argument coroutine function to call
        attempts: Maximum number of calls (at least 1)
        delay: Seconds to wait between attempts
        predicate: Decides whether a returned value counts as success
        backoff_factor: Multiplier applied to delay after each wait (1.0 = fixed)
        on_failure: Callback (attempt, value, error) for each failed attempt

    Returns:
        RetryOutcome describing the final state
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    value: Optional[T] = None
    last_error: Optional[Exception] = None
    wait = delay

    for attempt in range(1, attempts + 1):
        value = None
        last_error = None
        try:
            value = await func()
        except Exception as e:
            last_error = e
        else:
            if predicate(value):
                return RetryOutcome(success=True, value=value, attempts=attempt)

        if on_failure:
            on_failure(attempt, value, last_error)

        if attempt < attempts and wait > 0:
            await asyncio.sleep(wait)
            wait = wait * backoff_factor

    return RetryOutcome(
        success=False,
        value=value,
        attempts=attempts,
        last_error=last_error,
    )


def describe_attempt(attempt: int, attempts: int, error: Optional[Any] = None) -> str:
    """Format an attempt counter for log lines."""
    text = f"attempt {attempt}/{attempts}"
    if error:
        text += f": {error}"
    return text
