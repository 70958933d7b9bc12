"""
OpenRouter Provider

Uses OpenRouter's OpenAI-compatible chat completions API.
Requires OPENROUTER_API_KEY environment variable.
"""

import os
from typing import Optional

import httpx

from codecapture.configs import get_logger

from .provider import LLMProvider
from .token_limits import OPENAI_COMPATIBLE_TOKEN_LIMIT_PATTERNS
from .types import CompletionOptions, LLMOutputFormat, ModelMetadata, RawCompletion

logger = get_logger("llm.openrouter")

OVERLOADED_STATUS_CODES = {408, 429, 502, 503, 504}


class OpenRouterProvider(LLMProvider):
    """
    LLM provider using the OpenRouter API.

    Configuration:
        base_url: API root (default: https://openrouter.ai/api/v1)

    Environment:
        OPENROUTER_API_KEY: Required API key
    """

    token_limit_patterns = OPENAI_COMPATIBLE_TOKEN_LIMIT_PATTERNS

    def __init__(
        self,
        config: Optional[dict] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(config)
        self._base_url = self._config.get("base_url", "https://openrouter.ai/api/v1").rstrip("/")
        self._api_key = self._config.get("api_key") or os.environ.get("OPENROUTER_API_KEY")
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def name(self) -> str:
        return "openrouter"

    def is_available(self) -> bool:
        return bool(self._api_key)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers={"Authorization": f"Bearer {self._api_key}"},
                timeout=None,
                transport=self._transport,
            )
        return self._client

    async def _complete(
        self, model: ModelMetadata, prompt: str, options: CompletionOptions
    ) -> RawCompletion:
        payload = {
            "model": model.urn,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": 0,
        }
        if model.max_completion_tokens:
            payload["max_tokens"] = model.max_completion_tokens
        if options.output_format == LLMOutputFormat.JSON:
            schema = options.native_schema()
            if schema is not None:
                payload["response_format"] = {
                    "type": "json_schema",
                    "json_schema": {
                        "name": options.response_model.__name__,
                        "schema": schema,
                        "strict": False,
                    },
                }
            else:
                payload["response_format"] = {"type": "json_object"}


        response = await self._get_client().post("/chat/completions", json=payload)
        response.raise_for_status()
        data = response.json()

        choices = data.get("choices") or [{}]
        choice = choices[0]
        usage = data.get("usage") or {}
        return RawCompletion(
            text=(choice.get("message") or {}).get("content") or "",
            prompt_tokens=usage.get("prompt_tokens"),
            completion_tokens=usage.get("completion_tokens"),
            incomplete=choice.get("finish_reason") == "length",
        )

    def is_overloaded(self, error: Exception) -> bool:
        if isinstance(error, httpx.TimeoutException):
            return True
        if isinstance(error, httpx.HTTPStatusError):
            return error.response.status_code in OVERLOADED_STATUS_CODES
        return False

    def is_token_limit_exceeded(self, error: Exception) -> bool:
        if not isinstance(error, httpx.HTTPStatusError):
            return False
        return "maximum context length" in error.response.text.lower()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
