#!/usr/bin/env python3
"""Tests for retry helpers.

Tests cover:
    - retry_async: backoff, retryable vs. non-retryable errors
    - retry_until: bounded attempts, predicate, delays between attempts only
"""
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from syscode_sync.api.exceptions import (
    NetworkError,
    RateLimitError,
    ServerError,
    ValidationError,
)
from syscode_sync.api.resilience import (
    RetryOutcome,
    describe_attempt,
    retry_async,
    retry_until,
)


# ============================================
# retry_async
# ============================================

class TestRetryAsync:
    """Test retry on retryable exceptions."""

    @pytest.mark.asyncio
    async def test_returns_first_success(self):
        func = AsyncMock(return_value="ok")

        result = await retry_async(func, max_attempts=3)

        assert result == "ok"
        assert func.await_count == 1

    @pytest.mark.asyncio
    async def test_retries_server_error_then_succeeds(self):
        """Retryable errors are retried until a call succeeds."""
        func = AsyncMock(side_effect=[ServerError("boom", status_code=503), "ok"])

        with patch("syscode_sync.api.resilience.asyncio.sleep", new_callable=AsyncMock) as sleep:
            result = await retry_async(func, max_attempts=3, initial_delay=0.5, jitter=False)

        assert result == "ok"
        assert func.await_count == 2
        sleep.assert_awaited_once_with(0.5)

    @pytest.mark.asyncio
    async def test_raises_last_error_when_exhausted(self):
        func = AsyncMock(side_effect=NetworkError("down"))

        with patch("syscode_sync.api.resilience.asyncio.sleep", new_callable=AsyncMock) as sleep:
            with pytest.raises(NetworkError):
                await retry_async(func, max_attempts=3, jitter=False)

        assert func.await_count == 3
        assert sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_non_retryable_error_raised_immediately(self):
        """4xx validation errors are never retried."""
        func = AsyncMock(side_effect=ValidationError("bad", status_code=400))

        with pytest.raises(ValidationError):
            await retry_async(func, max_attempts=5)

        assert func.await_count == 1

    @pytest.mark.asyncio
    async def test_rate_limit_uses_retry_after(self):
        func = AsyncMock(side_effect=[RateLimitError(retry_after=7), "ok"])

        with patch("syscode_sync.api.resilience.asyncio.sleep", new_callable=AsyncMock) as sleep:
            await retry_async(func, max_attempts=2, jitter=False)

        sleep.assert_awaited_once_with(7.0)

    @pytest.mark.asyncio
    async def test_backoff_grows_and_is_capped(self):
        func = AsyncMock(side_effect=[ServerError(), ServerError(), ServerError(), "ok"])

        with patch("syscode_sync.api.resilience.asyncio.sleep", new_callable=AsyncMock) as sleep:
            await retry_async(
                func,
                max_attempts=4,
                initial_delay=1.0,
                backoff_factor=3.0,
                max_delay=5.0,
                jitter=False,
            )

        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 3.0, 5.0]

    @pytest.mark.asyncio
    async def test_on_retry_callback(self):
        func = AsyncMock(side_effect=[ServerError(), "ok"])
        on_retry = MagicMock()

        with patch("syscode_sync.api.resilience.asyncio.sleep", new_callable=AsyncMock):
            await retry_async(func, max_attempts=2, on_retry=on_retry)

        on_retry.assert_called_once()
        assert on_retry.call_args.args[1] == 1


# ============================================
# retry_until
# ============================================

class TestRetryUntil:
    """Test bounded retry with a success predicate."""

    @pytest.mark.asyncio
    async def test_success_on_first_attempt_no_sleep(self):
        func = AsyncMock(return_value=True)

        with patch("syscode_sync.api.resilience.asyncio.sleep", new_callable=AsyncMock) as sleep:
            outcome = await retry_until(func, attempts=3, delay=3.0)

        assert outcome == RetryOutcome(success=True, value=True, attempts=1)
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_success_on_second_attempt_stops_calling(self):
        """Once the predicate holds no further attempts are made."""
        func = AsyncMock(side_effect=[None, {"id": "g1"}, {"id": "never"}])

        with patch("syscode_sync.api.resilience.asyncio.sleep", new_callable=AsyncMock) as sleep:
            outcome = await retry_until(func, attempts=3, delay=3.0)

        assert outcome.success is True
        assert outcome.value == {"id": "g1"}
        assert outcome.attempts == 2
        assert func.await_count == 2
        sleep.assert_awaited_once_with(3.0)

    @pytest.mark.asyncio
    async def test_exhaustion_sleeps_between_attempts_only(self):
        func = AsyncMock(return_value=False)

        with patch("syscode_sync.api.resilience.asyncio.sleep", new_callable=AsyncMock) as sleep:
            outcome = await retry_until(func, attempts=3, delay=3.0)

        assert outcome.success is False
        assert outcome.attempts == 3
        assert func.await_count == 3
        assert sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_exceptions_count_as_failed_attempts(self):
        error = NetworkError("down")
        func = AsyncMock(side_effect=[error, error])
        on_failure = MagicMock()

        outcome = await retry_until(func, attempts=2, delay=0, on_failure=on_failure)

        assert outcome.success is False
        assert outcome.last_error is error
        assert on_failure.call_count == 2
        on_failure.assert_any_call(1, None, error)

    @pytest.mark.asyncio
    async def test_predicate_decides_success(self):
        func = AsyncMock(side_effect=[1, 2, 3])

        outcome = await retry_until(func, attempts=3, delay=0, predicate=lambda v: v >= 2)

        assert outcome.success is True
        assert outcome.value == 2

    @pytest.mark.asyncio
    async def test_backoff_factor_grows_delay(self):
        func = AsyncMock(return_value=False)

        with patch("syscode_sync.api.resilience.asyncio.sleep", new_callable=AsyncMock) as sleep:
            await retry_until(func, attempts=3, delay=1.0, backoff_factor=2.0)

        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_attempts_must_be_positive(self):
        with pytest.raises(ValueError):
            await retry_until(AsyncMock(), attempts=0)


def test_describe_attempt():
    assert describe_attempt(2, 3) == "attempt 2/3"
    assert describe_attempt(3, 3, "404") == "attempt 3/3: 404"
