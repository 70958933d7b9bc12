"""
Ollama Provider

Uses the Ollama local LLM server for completions and embeddings.
No API key required - runs entirely locally.
"""

from typing import Any, Optional

import httpx

from codecapture.configs import get_logger, get_timeout

from .provider import LLMProvider
from .token_limits import OLLAMA_TOKEN_LIMIT_PATTERNS
from .types import CompletionOptions, LLMOutputFormat, ModelMetadata, RawCompletion

logger = get_logger("llm.ollama")

OVERLOADED_STATUS_CODES = {429, 502, 503, 504}


class OllamaProvider(LLMProvider):
    """
    LLM provider using Ollama local server.

    Configuration:
        base_url: Ollama server URL (default: http://localhost:11434)

    Requires:
        Ollama to be installed and running locally
    """

    token_limit_patterns = OLLAMA_TOKEN_LIMIT_PATTERNS

    def __init__(
        self,
        config: Optional[dict] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(config)
        self._base_url = self._config.get("base_url", "http://localhost:11434").rstrip("/")
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def name(self) -> str:
        return "ollama"

    @property
    def supports_embeddings(self) -> bool:
        return True

    def is_available(self) -> bool:
        """Check if Ollama server is running and has models installed."""
        try:
            response = httpx.get(
                f"{self._base_url}/api/tags", timeout=get_timeout("llm_availability_check")
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.debug(f"Ollama not reachable: {e}")
            return False
        if response.json().get("models"):
            return True
        logger.debug("Ollama running but no models installed")
        return False

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            # Per-call timeouts are enforced by the base class
            self._client = httpx.AsyncClient(
                base_url=self._base_url, timeout=None, transport=self._transport
            )
        return self._client

    async def _post(self, path: str, payload: dict) -> dict:
        response = await self._get_client().post(path, json=payload)
        response.raise_for_status()
        return response.json()

    async def _complete(
        self, model: ModelMetadata, prompt: str, options: CompletionOptions
    ) -> RawCompletion:
        payload: dict[str, Any] = {
            "model": model.urn,
            "prompt": prompt,
            "stream": False,
            "options": {"temperature": 0},
        }
        if model.max_completion_tokens:
            payload["options"]["num_predict"] = model.max_completion_tokens
        if options.output_format == LLMOutputFormat.JSON:
            payload["format"] = options.native_schema() or "json"

        data = await self._post("/api/generate", payload)
        return RawCompletion(
            text=data.get("response", ""),
            prompt_tokens=data.get("prompt_eval_count"),
            completion_tokens=data.get("eval_count"),
            incomplete=data.get("done_reason") == "length",
        )

    async def _embed(self, model: ModelMetadata, text: str) -> Any:
        data = await self._post("/api/embed", {"model": model.urn, "input": text})
        embeddings = data.get("embeddings") or []
        return embeddings[0] if embeddings else None

    def is_overloaded(self, error: Exception) -> bool:
        if isinstance(error, httpx.TimeoutException):
            return True
        if isinstance(error, httpx.HTTPStatusError):
            return error.response.status_code in OVERLOADED_STATUS_CODES
        return False

    def is_token_limit_exceeded(self, error: Exception) -> bool:
        if not isinstance(error, httpx.HTTPStatusError):
            return False
        return "context length" in error.response.text.lower()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
