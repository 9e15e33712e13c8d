"""Tests for the retry loop."""

import pytest

from agentmesh.errors import (
    LLMProviderError,
    LLMRateLimitError,
    LLMTimeoutError,
    TransportError,
)
from agentmesh.llm import RetryOutcome, retry_operation


class FlakyOperation:
    """Raises the queued errors in order, then returns 'ok'."""

    def __init__(self, *errors):
        self.errors = list(errors)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return "ok"


class TestRetryOperation:
    """Tests for retry_operation()."""

    async def test_success_first_try(self, sleeper):
        """Test that a successful call is made once."""
        operation = FlakyOperation()
        outcome = RetryOutcome()

        assert await retry_operation(operation, outcome=outcome, sleep=sleeper) == "ok"
        assert operation.calls == 1
        assert outcome.attempts == 1
        assert sleeper.delays == []

    async def test_retryable_error_exhausts_retries(self, sleeper):
        """Test max_retries + 1 attempts for a persistent timeout."""
        operation = FlakyOperation(*[LLMTimeoutError(30.0) for _ in range(10)])
        outcome = RetryOutcome()

        with pytest.raises(LLMTimeoutError):
            await retry_operation(operation, max_retries=3, outcome=outcome, sleep=sleeper)

        assert operation.calls == 4
        assert outcome.attempts == 4
        assert sleeper.delays == [1.0, 1.0, 1.0]

    async def test_recovers_after_rate_limit(self, sleeper):
        """Test that the call succeeds once the rate limit clears."""
        operation = FlakyOperation(LLMRateLimitError("429"), LLMRateLimitError("429"))

        assert await retry_operation(operation, sleep=sleeper) == "ok"
        assert operation.calls == 3
        assert sleeper.delays == [5.0, 5.0]

    async def test_transport_error_delay(self, sleeper):
        """Test the transport retry delay."""
        operation = FlakyOperation(TransportError("down"))

        await retry_operation(operation, sleep=sleeper)

        assert sleeper.delays == [0.5]

    @pytest.mark.parametrize("error", [LLMProviderError("bad request"), ValueError("bug")])
    async def test_non_retryable_error_raises_immediately(self, sleeper, error):
        """Test that non-retryable errors are attempted once."""
        operation = FlakyOperation(error)

        with pytest.raises(type(error)):
            await retry_operation(operation, max_retries=3, sleep=sleeper)

        assert operation.calls == 1
        assert sleeper.delays == []

    async def test_zero_retries(self, sleeper):
        """Test that max_retries=0 means a single attempt."""
        operation = FlakyOperation(LLMTimeoutError(1.0))

        with pytest.raises(LLMTimeoutError):
            await retry_operation(operation, max_retries=0, sleep=sleeper)

        assert operation.calls == 1
