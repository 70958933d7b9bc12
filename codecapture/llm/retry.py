"""
Retry Strategy

Bounded retry loop around a single provider call. Overloaded and invalid
responses are retried after a random delay. A token-limit response gets a
cropped prompt and a fresh run of attempts. Anything else ends the loop.
"""

import asyncio
from typing import Awaitable, Callable, Optional

from tenacity import AsyncRetrying, RetryError, retry_if_exception_type, stop_after_attempt, wait_random

from codecapture.configs import get_logger
from codecapture.configs.runtime import AdaptationConfig, RetryConfig
from codecapture.exceptions import (
    RetryableInvalidError,
    RetryableLLMError,
    RetryableOverloadedError,
)

from .adaptation import adapt_prompt
from .stats import LLMExecutionStats
from .types import LLMContext, LLMResponse, LLMResponseStatus, ModelMetadata

logger = get_logger("llm.retry")

Invoke = Callable[[str, LLMContext], Awaitable[LLMResponse]]


class RetryStrategy:
    """
    Runs an LLM call until it settles or the attempt budget runs out.

    Safe to share between concurrent pipelines; the only state it touches is
    the injected statistics object.
    """

    def __init__(
        self,
        stats: LLMExecutionStats,
        retry_config: Optional[RetryConfig] = None,
        adaptation_config: Optional[AdaptationConfig] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._stats = stats
        self._retry_config = retry_config or RetryConfig()
        self._adaptation_config = adaptation_config or AdaptationConfig()
        self._sleep = sleep

    @property
    def retry_config(self) -> RetryConfig:
        return self._retry_config

    def _retrying(self) -> AsyncRetrying:
        config = self._retry_config
        return AsyncRetrying(
            stop=stop_after_attempt(config.max_retry_attempts),
            wait=wait_random(
                min=config.min_retry_delay_millis / 1000,
                max=config.max_retry_delay_millis / 1000,
            ),
            retry=retry_if_exception_type(RetryableLLMError),
            sleep=self._sleep,
            reraise=False,
        )

    async def _attempt_until_settled(
        self,
        invoke: Invoke,
        prompt: str,
        context: LLMContext,
        retry_on_invalid: bool,
    ) -> Optional[LLMResponse]:
        """One bounded run of attempts on a fixed prompt; None when exhausted."""
        max_attempts = self._retry_config.max_retry_attempts
        try:
            async for attempt in self._retrying():
                with attempt:
                    attempt_number = attempt.retry_state.attempt_number
                    response = await invoke(prompt, context)

                    if response.status == LLMResponseStatus.OVERLOADED:
                        self._stats.record_overload_retry()
                        logger.warning(
                            f"{context.resource}: {context.model_key} overloaded "
                            f"(attempt {attempt_number}/{max_attempts})"
                        )
                        raise RetryableOverloadedError(
                            "LLM overloaded", {"resource": context.resource}
                        )

                    if response.status == LLMResponseStatus.INVALID and retry_on_invalid:
                        self._stats.record_hopeful_retry()
                        logger.warning(
                            f"{context.resource}: {context.model_key} returned an invalid "
                            f"response (attempt {attempt_number}/{max_attempts}): "
                            f"{response.error}"
                        )
                        raise RetryableInvalidError(
                            "LLM response invalid", {"resource": context.resource}
                        )

                    return response
        except RetryError:
            logger.warning(
                f"{context.resource}: gave up on {context.model_key} after "
                f"{max_attempts} attempts"
            )
            return None

        return None

    async def execute_with_retries(
        self,
        invoke: Invoke,
        prompt: str,
        context: LLMContext,
        model: Optional[ModelMetadata] = None,
        retry_on_invalid: bool = True,
    ) -> Optional[LLMResponse]:
        """
        Call invoke until it returns a terminal response.

        Overloaded (and, when retry_on_invalid, invalid) responses are retried
        within the attempt budget after a random delay. A token-limit response
        crops the prompt and starts a fresh run of attempts on the same model
        straight away, so cropping never uses up the budget.

        Args:
            invoke: Provider call taking (prompt, context)
            prompt: Initial prompt
            context: Resource and model identifying the call
            model: Limits used to crop the prompt on a token-limit response.
                   Without it, token-limit responses are returned as-is.
            retry_on_invalid: Retry responses that failed validation; when
                              False they are returned as-is

        Returns:
            The terminal response, or None when every attempt was used up or
            the prompt could not be cropped any further
        """
        current_prompt = prompt

        while True:
            response = await self._attempt_until_settled(
                invoke, current_prompt, context, retry_on_invalid
            )
            if (
                response is None
                or response.status != LLMResponseStatus.EXCEEDED
                or model is None
            ):
                return response

            cropped = adapt_prompt(current_prompt, response, model, self._adaptation_config)
            self._stats.record_crop()
            if not cropped.strip():
                logger.warning(
                    f"{context.resource}: prompt cropped to nothing for "
                    f"{context.model_key}, giving up"
                )
                return None
            if len(cropped) >= len(current_prompt):
                logger.warning(
                    f"{context.resource}: token limit hit on {context.model_key} but the "
                    f"reported usage leaves nothing to crop, giving up"
                )
                return None

            logger.warning(
                f"{context.resource}: token limit hit on {context.model_key}, "
                f"cropped prompt from {len(current_prompt)} to {len(cropped)} chars"
            )
            current_prompt = cropped
