"""
Tests for the retry strategy
"""

import asyncio

import pytest

from codecapture.configs.runtime import RetryConfig
from codecapture.exceptions import ConfigurationError
from codecapture.llm.retry import RetryStrategy
from codecapture.llm.stats import LLMExecutionStats
from codecapture.llm.types import (
    LLMContext,
    LLMPurpose,
    LLMResponse,
    LLMResponseStatus,
    TokensUsage,
)

from conftest import completion_model, no_sleep

CONTEXT = LLMContext("src/App.java", LLMPurpose.COMPLETIONS, "primary")


def scripted(*statuses, usage=None):
    """Invoke callable answering with the given statuses in order."""
    calls = []

    async def invoke(prompt, context):
        status = statuses[len(calls)]
        calls.append(prompt)
        data = {"ok": True} if status == LLMResponseStatus.SUCCESS else None
        return LLMResponse(status, context.model_key, data=data, tokens_usage=usage)

    invoke.calls = calls
    return invoke


def strategy(stats, attempts=3, sleep=no_sleep, min_delay=0, max_delay=0):
    return RetryStrategy(
        stats,
        RetryConfig(attempts, min_retry_delay_millis=min_delay, max_retry_delay_millis=max_delay),
        sleep=sleep,
    )


class TestRetryStrategy:
    """Tests for execute_with_retries."""

    @pytest.mark.asyncio
    async def test_succeeds_after_overloads(self, stats):
        """Test two overloaded answers followed by a success."""
        invoke = scripted(
            LLMResponseStatus.OVERLOADED,
            LLMResponseStatus.OVERLOADED,
            LLMResponseStatus.SUCCESS,
        )

        response = await strategy(stats).execute_with_retries(invoke, "prompt", CONTEXT)

        assert response.status == LLMResponseStatus.SUCCESS
        assert stats.get("overload_retry") == 2
        assert len(invoke.calls) == 3

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self, stats):
        """Test the attempt budget is never exceeded."""
        invoke = scripted(*[LLMResponseStatus.OVERLOADED] * 10)

        response = await strategy(stats, attempts=4).execute_with_retries(
            invoke, "prompt", CONTEXT
        )

        assert response is None
        assert len(invoke.calls) == 4
        assert stats.get("overload_retry") == 4

    @pytest.mark.asyncio
    async def test_invalid_is_retried_hopefully(self, stats):
        """Test an invalid answer is retried with the same prompt."""
        invoke = scripted(LLMResponseStatus.INVALID, LLMResponseStatus.SUCCESS)

        response = await strategy(stats).execute_with_retries(invoke, "prompt", CONTEXT)

        assert response.is_success
        assert stats.get("hopeful_retry") == 1
        assert invoke.calls == ["prompt", "prompt"]

    @pytest.mark.asyncio
    async def test_errored_ends_immediately(self, stats):
        """Test a non-retryable failure is returned after one call."""
        invoke = scripted(LLMResponseStatus.ERRORED, LLMResponseStatus.SUCCESS)

        response = await strategy(stats).execute_with_retries(invoke, "prompt", CONTEXT)

        assert response.status == LLMResponseStatus.ERRORED
        assert len(invoke.calls) == 1

    @pytest.mark.asyncio
    async def test_exceeded_crops_prompt(self, stats):
        """Test a token-limit answer retries with a shorter prefix."""
        invoke = scripted(
            LLMResponseStatus.EXCEEDED,
            LLMResponseStatus.SUCCESS,
            usage=TokensUsage(prompt_tokens=1900, completion_tokens=0, max_total_tokens=1000),
        )
        prompt = "x" * 1000

        response = await strategy(stats).execute_with_retries(
            invoke, prompt, CONTEXT, completion_model()
        )

        assert response.is_success
        assert stats.get("crop") == 1
        assert invoke.calls[0] == prompt
        assert len(invoke.calls[1]) == 526
        assert prompt.startswith(invoke.calls[1])

    @pytest.mark.asyncio
    async def test_crop_to_nothing_gives_up(self, stats):
        """Test a prompt cropped to empty ends the loop with no response."""
        invoke = scripted(
            LLMResponseStatus.EXCEEDED,
            LLMResponseStatus.SUCCESS,
            usage=TokensUsage(prompt_tokens=5000, completion_tokens=0, max_total_tokens=1000),
        )

        response = await strategy(stats).execute_with_retries(
            invoke, "x", CONTEXT, completion_model()
        )

        assert response is None
        assert len(invoke.calls) == 1
        assert stats.get("crop") == 1

    @pytest.mark.asyncio
    async def test_crop_on_last_attempt_is_still_sent(self, stats):
        """Test a token-limit answer after overloads gets its cropped prompt sent."""
        delays = []
        calls = []

        async def recording_sleep(seconds):
            delays.append(seconds)

        async def invoke(prompt, context):
            calls.append(prompt)
            if len(calls) <= 2:
                return LLMResponse(LLMResponseStatus.OVERLOADED, context.model_key)
            if len(prompt) > 500:
                return LLMResponse(
                    LLMResponseStatus.EXCEEDED,
                    context.model_key,
                    tokens_usage=TokensUsage(1500, 0, 1000),
                )
            return LLMResponse(LLMResponseStatus.SUCCESS, context.model_key, data={"ok": True})

        response = await strategy(stats, sleep=recording_sleep).execute_with_retries(
            invoke, "x" * 600, CONTEXT, completion_model()
        )

        assert response.is_success
        assert stats.get("crop") == 1
        assert len(calls) == 4
        assert len(calls[-1]) <= 500
        # Only the two overloads waited; the cropped prompt went out at once
        assert len(delays) == 2

    @pytest.mark.asyncio
    async def test_crop_gets_a_fresh_attempt_budget(self, stats):
        """Test attempts after a crop are counted from one again."""
        invoke = scripted(
            LLMResponseStatus.EXCEEDED,
            LLMResponseStatus.OVERLOADED,
            LLMResponseStatus.OVERLOADED,
            LLMResponseStatus.SUCCESS,
            usage=TokensUsage(prompt_tokens=1900, completion_tokens=0, max_total_tokens=1000),
        )

        response = await strategy(stats).execute_with_retries(
            invoke, "x" * 1000, CONTEXT, completion_model()
        )

        assert response.is_success
        assert len(invoke.calls) == 4

    @pytest.mark.asyncio
    async def test_invalid_not_retried_when_disabled(self, stats):
        """Test retry_on_invalid=False returns the invalid answer after one call."""
        invoke = scripted(LLMResponseStatus.INVALID, LLMResponseStatus.SUCCESS)

        response = await strategy(stats).execute_with_retries(
            invoke, "prompt", CONTEXT, retry_on_invalid=False
        )

        assert response.status == LLMResponseStatus.INVALID
        assert len(invoke.calls) == 1
        assert stats.get("hopeful_retry") == 0

    @pytest.mark.asyncio
    async def test_exceeded_without_model_is_returned(self, stats):
        """Test token-limit answers are terminal when no limits are known."""
        invoke = scripted(
            LLMResponseStatus.EXCEEDED,
            usage=TokensUsage(prompt_tokens=5000, completion_tokens=0, max_total_tokens=1000),
        )

        response = await strategy(stats).execute_with_retries(invoke, "prompt", CONTEXT)

        assert response.status == LLMResponseStatus.EXCEEDED
        assert stats.get("crop") == 0

    @pytest.mark.asyncio
    async def test_delays_within_configured_bounds(self, stats):
        """Test every wait falls between the minimum and maximum delay."""
        delays = []

        async def recording_sleep(seconds):
            delays.append(seconds)

        invoke = scripted(*[LLMResponseStatus.OVERLOADED] * 5)
        retry = strategy(stats, attempts=5, sleep=recording_sleep, min_delay=1000, max_delay=10000)

        await retry.execute_with_retries(invoke, "prompt", CONTEXT)

        assert len(delays) == 4
        assert all(1.0 <= d <= 10.0 for d in delays)

    @pytest.mark.asyncio
    async def test_concurrent_calls_share_stats(self, stats):
        """Test concurrent loops count every retry."""
        retry = strategy(stats)
        invokes = [
            scripted(LLMResponseStatus.OVERLOADED, LLMResponseStatus.SUCCESS) for _ in range(20)
        ]

        results = await asyncio.gather(
            *(retry.execute_with_retries(invoke, "prompt", CONTEXT) for invoke in invokes)
        )

        assert all(r.is_success for r in results)
        assert stats.get("overload_retry") == 20


class TestRetryConfig:
    def test_invalid_values_rejected(self):
        """Test zero attempts and inverted delay bounds are rejected."""
        with pytest.raises(ConfigurationError):
            RetryConfig(max_retry_attempts=0)
        with pytest.raises(ConfigurationError):
            RetryConfig(min_retry_delay_millis=500, max_retry_delay_millis=100)

    def test_default_strategy_config(self):
        """Test defaults are used when no config is passed."""
        retry = RetryStrategy(LLMExecutionStats())
        assert retry.retry_config.max_retry_attempts == 3
        assert retry.retry_config.min_retry_delay_millis == 1000
        assert retry.retry_config.max_retry_delay_millis == 10000
