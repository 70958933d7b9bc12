"""
Anthropic API Provider

Uses the async Anthropic SDK for completions.
Requires ANTHROPIC_API_KEY environment variable.
"""

import os
from typing import Optional

import anthropic

from codecapture.configs import get_logger

from .provider import LLMProvider
from .token_limits import ANTHROPIC_TOKEN_LIMIT_PATTERNS
from .types import CompletionOptions, ModelMetadata, RawCompletion

logger = get_logger("llm.anthropic")

DEFAULT_MAX_COMPLETION_TOKENS = 4096

OVERLOADED_STATUS_CODES = {429, 500, 502, 503, 504, 529}


class AnthropicProvider(LLMProvider):
    """
    LLM provider using the Anthropic API directly.

    Configuration:
        temperature: Sampling temperature (default: 0.0)
        request_timeout: Seconds before a call counts as overloaded

    Environment:
        ANTHROPIC_API_KEY: Required API key
    """

    token_limit_patterns = ANTHROPIC_TOKEN_LIMIT_PATTERNS

    def __init__(self, config: Optional[dict] = None, client: Optional[anthropic.AsyncAnthropic] = None):
        super().__init__(config)
        self._client = client

    @property
    def name(self) -> str:
        return "anthropic"

    def is_available(self) -> bool:
        """Check if an API key is set."""
        return self._client is not None or bool(
            self._config.get("api_key") or os.environ.get("ANTHROPIC_API_KEY")
        )

    def _get_client(self) -> anthropic.AsyncAnthropic:
        if self._client is None:
            # Retries are owned by RetryStrategy, not the SDK
            self._client = anthropic.AsyncAnthropic(
                api_key=self._config.get("api_key") or os.environ.get("ANTHROPIC_API_KEY"),
                max_retries=0,
            )
        return self._client

    async def _complete(
        self, model: ModelMetadata, prompt: str, options: CompletionOptions
    ) -> RawCompletion:
        response = await self._get_client().messages.create(
            model=model.urn,
            max_tokens=model.max_completion_tokens or DEFAULT_MAX_COMPLETION_TOKENS,
            temperature=float(self._config.get("temperature", 0.0)),
            messages=[{"role": "user", "content": prompt}],
        )

        text = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )
        usage = getattr(response, "usage", None)
        return RawCompletion(
            text=text,
            prompt_tokens=getattr(usage, "input_tokens", None),
            completion_tokens=getattr(usage, "output_tokens", None),
            incomplete=response.stop_reason == "max_tokens",
        )

    def is_overloaded(self, error: Exception) -> bool:
        if isinstance(error, (anthropic.RateLimitError, anthropic.APIConnectionError)):
            return True
        if isinstance(error, anthropic.APIStatusError):
            return error.status_code in OVERLOADED_STATUS_CODES
        return False

    def is_token_limit_exceeded(self, error: Exception) -> bool:
        if not isinstance(error, anthropic.BadRequestError):
            return False
        message = self._error_text(error)
        if "prompt is too long" in message.lower():
            return True
        return any(pattern.regex.search(message) for pattern in self.token_limit_patterns)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()
