"""
Base LLM Provider Interface

Defines the gateway every backend implements. Concrete providers only talk
to their API; this base class turns what they return (or raise) into a
classified LLMResponse and never raises for an expected failure.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Optional

from codecapture.configs import get_logger, get_timeout

from .token_usage import TokenLimitPattern, extract_token_usage_from_error, normalize_token_usage
from .types import (
    CompletionOptions,
    LLMOutputFormat,
    LLMResponse,
    LLMResponseStatus,
    ModelMetadata,
    RawCompletion,
)
from .validation import validate, validate_embedding, validate_text

logger = get_logger("llm.provider")


class LLMProvider(ABC):
    """
    Abstract base class for LLM providers.

    Subclasses implement _complete() and, when they offer embeddings,
    _embed(), plus the error predicates used for classification.
    """

    token_limit_patterns: list[TokenLimitPattern] = []

    def __init__(self, config: Optional[dict] = None):
        self._config = config or {}
        self._request_timeout = float(
            self._config.get("request_timeout", get_timeout("llm_request"))
        )
        self._embeddings_timeout = float(
            self._config.get("embeddings_timeout", get_timeout("llm_embeddings"))
        )

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name for logging and identification."""
        pass

    @property
    def supports_embeddings(self) -> bool:
        return False

    @abstractmethod
    def is_available(self) -> bool:
        """
        Check if provider is configured and reachable.

        Returns:
            True if the provider can be used, False otherwise.
        """
        pass

    @abstractmethod
    async def _complete(
        self, model: ModelMetadata, prompt: str, options: CompletionOptions
    ) -> RawCompletion:
        """Send prompt to the backend and return its unclassified answer."""
        pass

    async def _embed(self, model: ModelMetadata, text: str) -> Any:
        raise NotImplementedError(f"{self.name} does not provide embeddings")

    def is_overloaded(self, error: Exception) -> bool:
        """True if error means the backend is busy or rate limiting."""
        return False

    def is_token_limit_exceeded(self, error: Exception) -> bool:
        """True if error means the prompt did not fit the model."""
        return False

    async def aclose(self) -> None:
        """Release network clients."""
        pass

    async def execute_completion(
        self,
        model: ModelMetadata,
        prompt: str,
        options: Optional[CompletionOptions] = None,
    ) -> LLMResponse:
        """
        Run one completion and classify the outcome.

        Args:
            model: Model to call
            prompt: Full prompt text
            options: Output format and response model

        Returns:
            LLMResponse; SUCCESS carries the validated payload
        """
        options = options or CompletionOptions()
        try:
            raw = await asyncio.wait_for(
                self._complete(model, prompt, options), timeout=self._request_timeout
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"{self.name}: completion on {model.key} timed out after "
                f"{self._request_timeout}s"
            )
            return LLMResponse(LLMResponseStatus.OVERLOADED, model.key, error="timeout")
        except Exception as e:
            return self._classify_error(model, e)

        usage = normalize_token_usage(model, raw.prompt_tokens, raw.completion_tokens)
        if raw.incomplete:
            return LLMResponse(
                LLMResponseStatus.EXCEEDED,
                model.key,
                tokens_usage=usage,
                error="completion reached its token limit",
            )

        if options.output_format == LLMOutputFormat.TEXT:
            result = validate_text(raw.text)
        else:
            result = validate(raw.text, options.response_model)

        if not result.ok:
            logger.debug(f"{self.name}: invalid completion from {model.key}: {result.message}")
            return LLMResponse(
                LLMResponseStatus.INVALID,
                model.key,
                tokens_usage=usage,
                error=f"{result.error_kind.value}: {result.message}",
            )

        if result.repairs:
            logger.debug(f"{self.name}: repaired JSON from {model.key}: {', '.join(result.repairs)}")
        return LLMResponse(
            LLMResponseStatus.SUCCESS,
            model.key,
            data=result.value,
            tokens_usage=usage,
            repairs=result.repairs,
        )

    async def generate_embeddings(self, model: ModelMetadata, text: str) -> LLMResponse:
        """
        Embed text and classify the outcome.

        Returns:
            LLMResponse; SUCCESS carries the vector as a list of floats
        """
        try:
            raw = await asyncio.wait_for(
                self._embed(model, text), timeout=self._embeddings_timeout
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"{self.name}: embeddings on {model.key} timed out after "
                f"{self._embeddings_timeout}s"
            )
            return LLMResponse(LLMResponseStatus.OVERLOADED, model.key, error="timeout")
        except Exception as e:
            return self._classify_error(model, e)

        result = validate_embedding(raw, model.dimensions)
        if not result.ok:
            return LLMResponse(LLMResponseStatus.INVALID, model.key, error=result.message)
        return LLMResponse(LLMResponseStatus.SUCCESS, model.key, data=result.value)

    @staticmethod
    def _error_text(error: Exception) -> str:
        """Error message, preferring an HTTP response body when there is one."""
        response = getattr(error, "response", None)
        body = getattr(response, "text", "") if response is not None else ""
        return body or str(error)

    def _classify_error(self, model: ModelMetadata, error: Exception) -> LLMResponse:
        message = self._error_text(error)
        if self.is_token_limit_exceeded(error):
            usage = extract_token_usage_from_error(message, self.token_limit_patterns, model)
            return LLMResponse(
                LLMResponseStatus.EXCEEDED, model.key, tokens_usage=usage, error=message
            )
        if self.is_overloaded(error):
            return LLMResponse(LLMResponseStatus.OVERLOADED, model.key, error=message)

        logger.error(f"{self.name} error on {model.key}: {type(error).__name__}: {message}")
        return LLMResponse(LLMResponseStatus.ERRORED, model.key, error=message)
