"""Tests for RetryPolicy and error classification."""

import pytest
from unittest.mock import AsyncMock, Mock

from poolscan.batchers.base import RetryPolicy, exponential_backoff, linear_backoff
from poolscan.batchers.errors import (
    ContractError,
    ErrorHandler,
    NetworkError,
    RateLimitError,
    ValidationError,
)
from poolscan.fetchers.base import FetchError


class TestBackoff:
    def test_linear(self):
        assert [linear_backoff(2.0, n) for n in (1, 2, 3)] == [2.0, 4.0, 6.0]

    def test_exponential_capped(self):
        assert exponential_backoff(1.0, 3) == 4.0
        assert exponential_backoff(1.0, 10) == 60.0

    def test_rate_limit_hint_wins(self):
        policy = RetryPolicy(max_attempts=3, base_delay=1.0)

        assert policy.get_delay(1, RateLimitError("slow down", retry_after=9.0)) == 9.0

    def test_max_attempts_validated(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)


class TestRetryPolicyRun:
    """Test the retry loop."""

    @pytest.mark.asyncio
    async def test_succeeds_after_transient_failures(self, no_sleep):
        operation = AsyncMock(side_effect=[NetworkError("reset"), NetworkError("reset"), "ok"])
        retries = []

        result = await RetryPolicy(max_attempts=5, base_delay=2.0).run(
            operation, on_retry=lambda attempt, error: retries.append(attempt)
        )

        assert result == "ok"
        assert operation.await_count == 3
        assert retries == [1, 2]
        assert no_sleep == [2.0, 4.0]

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self, no_sleep):
        operation = AsyncMock(side_effect=NetworkError("reset"))

        with pytest.raises(NetworkError):
            await RetryPolicy(max_attempts=5, base_delay=2.0).run(operation)

        assert operation.await_count == 5
        assert no_sleep == [2.0, 4.0, 6.0, 8.0]

    @pytest.mark.asyncio
    async def test_deterministic_errors_not_retried(self, no_sleep):
        operation = AsyncMock(side_effect=ContractError("execution reverted"))

        with pytest.raises(ContractError):
            await RetryPolicy(max_attempts=5).run(operation)

        assert operation.await_count == 1
        assert no_sleep == []

    @pytest.mark.asyncio
    async def test_arguments_forwarded(self):
        operation = AsyncMock(return_value=3)

        await RetryPolicy().run(operation, 1, 2, description="sum", key="value")

        operation.assert_awaited_once_with(1, 2, key="value")


class TestErrorHandler:
    """Test error classification."""

    @pytest.fixture
    def handler(self):
        return ErrorHandler()

    @pytest.mark.parametrize(
        "error,category",
        [
            (RateLimitError("x"), "rate_limit"),
            (NetworkError("x"), "network"),
            (ContractError("x"), "contract"),
            (ValidationError("x"), "validation"),
            (TimeoutError(), "network"),
            (Exception("HTTP 429"), "rate_limit"),
            (Exception("Read timed out"), "network"),
            (Exception("execution reverted"), "contract"),
            (Exception("invalid params"), "validation"),
            (Exception("boom"), "unknown"),
            (Exception("503 Server Error: Service Unavailable"), "network"),
            (Exception("HTTP status 400"), "validation"),
            (Exception("block 2400000 not found"), "unknown"),
        ],
    )
    def test_classify(self, handler, error, category):
        assert handler.classify_error(error) == category

    def test_should_retry(self, handler):
        assert handler.should_retry(NetworkError("x"))
        assert handler.should_retry(Exception("boom"))
        assert not handler.should_retry(ValidationError("x"))

    def test_wrap_keeps_batch_errors(self, handler):
        error = ContractError("x")
        assert handler.wrap_transport_error(error, "ctx") is error

    @pytest.mark.parametrize(
        "message",
        ["get_logs 2400000-2449999 failed", "Aggregate call of 400 calls failed", "log window 4290000-4339999"],
    )
    def test_context_not_classified(self, handler, message):
        try:
            try:
                raise Exception("upstream hiccup")
            except Exception as e:
                raise handler.wrap_transport_error(e, message) from e
        except Exception as wrapped:
            assert handler.classify_error(wrapped) == "unknown"
            assert handler.should_retry(wrapped)

    def test_fetch_error_classified_by_cause(self, handler):
        try:
            try:
                raise ConnectionError("reset by peer")
            except ConnectionError as e:
                raise FetchError("get_logs 2400000-2449999 failed: reset by peer") from e
        except FetchError as wrapped:
            assert handler.classify_error(wrapped) == "network"

    def test_status_from_response(self, handler):
        error = Exception("provider said no")
        error.response = Mock(status_code=429)

        assert handler.classify_error(error) == "rate_limit"

    def test_wrap_classifies(self, handler):
        wrapped = handler.wrap_transport_error(Exception("connection refused"), "ctx")

        assert isinstance(wrapped, NetworkError)
        assert "ctx" in str(wrapped)
