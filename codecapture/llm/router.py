"""
LLM Router

Routes completion and embedding requests to the configured providers,
each call wrapped in the retry strategy. Completion models are tried in
order, falling back to the next one when a model gives up.
"""

import math
from typing import Optional

from codecapture.configs import get_logger
from codecapture.configs.constants import AVERAGE_CHARS_PER_TOKEN
from codecapture.exceptions import ConfigurationError

from .provider import LLMProvider
from .retry import RetryStrategy
from .stats import LLMExecutionStats
from .types import (
    CompletionOptions,
    LLMContext,
    LLMPurpose,
    LLMResponse,
    LLMResponseStatus,
    ModelMetadata,
)

logger = get_logger("llm.router")


class LLMRouter:
    def __init__(
        self,
        completion_provider: LLMProvider,
        completion_models: list[ModelMetadata],
        embedding_provider: LLMProvider,
        embedding_model: ModelMetadata,
        retry_strategy: RetryStrategy,
        stats: LLMExecutionStats,
        chars_per_token: float = AVERAGE_CHARS_PER_TOKEN,
    ):
        if not completion_models:
            raise ConfigurationError("At least one completion model must be configured")
        if not embedding_provider.supports_embeddings:
            raise ConfigurationError(
                f"Provider {embedding_provider.name} cannot generate embeddings"
            )
        self._completion_provider = completion_provider
        self._completion_models = list(completion_models)
        self._embedding_provider = embedding_provider
        self._embedding_model = embedding_model
        self._retry = retry_strategy
        self._stats = stats
        self._chars_per_token = chars_per_token

    @property
    def stats(self) -> LLMExecutionStats:
        return self._stats

    @property
    def completion_model_keys(self) -> list[str]:
        return [model.key for model in self._completion_models]

    @property
    def embedding_model_key(self) -> str:
        return self._embedding_model.key

    def describe(self) -> str:
        """Human-readable summary of the configured models."""
        return (
            f"completions: {self._completion_provider.name} "
            f"[{', '.join(self.completion_model_keys)}], "
            f"embeddings: {self._embedding_provider.name} [{self.embedding_model_key}]"
        )

    async def execute_completion(
        self,
        resource: str,
        prompt: str,
        options: Optional[CompletionOptions] = None,
    ) -> Optional[LLMResponse]:
        """
        Get a validated completion, trying each completion model in turn.

        Args:
            resource: Name of what is being processed (for logs)
            prompt: Prompt text
            options: Output format and response model

        Returns:
            The SUCCESS response, or None when every model gave up
        """
        options = options or CompletionOptions()

        for index, model in enumerate(self._completion_models):
            if index > 0:
                self._stats.record_switch()
                logger.warning(f"{resource}: switching to fallback model {model.key}")

            async def invoke(current_prompt: str, _context: LLMContext, model=model) -> LLMResponse:
                return await self._completion_provider.execute_completion(
                    model, current_prompt, options
                )

            context = LLMContext(resource, LLMPurpose.COMPLETIONS, model.key)
            response = await self._retry.execute_with_retries(invoke, prompt, context, model)

            if response is not None and response.status == LLMResponseStatus.SUCCESS:
                self._stats.record_success()
                if response.repairs:
                    self._stats.record_json_mutated()
                return response

            status = response.status.value if response is not None else "retries exhausted"
            logger.warning(f"{resource}: completion with {model.key} failed ({status})")

        self._stats.record_failure()
        return None

    async def generate_embeddings(self, resource: str, content: str) -> Optional[list[float]]:
        """
        Embed content, cropped to the embedding model's context.

        Returns:
            The vector, or None if embeddings are unavailable for this content
        """
        model = self._embedding_model
        max_chars = math.floor(model.max_total_tokens * self._chars_per_token)
        if len(content) > max_chars:
            logger.debug(f"{resource}: cropping embedding input to {max_chars} chars")
            content = content[:max_chars]

        async def invoke(text: str, _context: LLMContext) -> LLMResponse:
            return await self._embedding_provider.generate_embeddings(model, text)

        context = LLMContext(resource, LLMPurpose.EMBEDDINGS, model.key)
        response = await self._retry.execute_with_retries(
            invoke, content, context, model, retry_on_invalid=False
        )

        if response is not None and response.status == LLMResponseStatus.SUCCESS:
            return response.data

        self._stats.record_embedding_failure()
        return None

    async def close(self) -> None:
        await self._completion_provider.aclose()
        if self._embedding_provider is not self._completion_provider:
            await self._embedding_provider.aclose()
