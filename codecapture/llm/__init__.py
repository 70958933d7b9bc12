"""
LLM Provider Abstraction

Unified interface for completion and embedding backends, with retry,
prompt cropping and model fallback layered on top.
"""

from typing import Optional

from codecapture.configs import get_logger
from codecapture.configs.runtime import CaptureSettings
from codecapture.exceptions import ConfigurationError, MissingConfigError

from .adaptation import adapt_prompt, compute_reduction_ratio
from .anthropic_provider import AnthropicProvider
from .ollama_provider import OllamaProvider
from .openrouter_provider import OpenRouterProvider
from .provider import LLMProvider
from .retry import RetryStrategy
from .router import LLMRouter
from .stats import LLMExecutionStats
from .types import (
    CompletionOptions,
    LLMContext,
    LLMOutputFormat,
    LLMPurpose,
    LLMResponse,
    LLMResponseStatus,
    ModelMetadata,
    TokensUsage,
)
from .validation import ValidationErrorKind, ValidationResult, validate

logger = get_logger("llm")

__all__ = [
    "LLMProvider",
    "AnthropicProvider",
    "OllamaProvider",
    "OpenRouterProvider",
    "LLMRouter",
    "RetryStrategy",
    "LLMExecutionStats",
    "CompletionOptions",
    "LLMContext",
    "LLMOutputFormat",
    "LLMPurpose",
    "LLMResponse",
    "LLMResponseStatus",
    "ModelMetadata",
    "TokensUsage",
    "ValidationErrorKind",
    "ValidationResult",
    "validate",
    "adapt_prompt",
    "compute_reduction_ratio",
    "create_provider",
    "get_router",
]


def create_provider(name: str, llm_config: dict) -> LLMProvider:
    """Create a provider instance by name."""
    if name == "anthropic":
        return AnthropicProvider(llm_config.get("anthropic", {}))
    elif name == "ollama":
        return OllamaProvider(llm_config.get("ollama", {}))
    elif name == "openrouter":
        return OpenRouterProvider(llm_config.get("openrouter", {}))
    else:
        raise ConfigurationError(f"Unknown provider: {name}")


def get_router(
    settings: CaptureSettings,
    stats: Optional[LLMExecutionStats] = None,
    completion_provider: Optional[LLMProvider] = None,
    embedding_provider: Optional[LLMProvider] = None,
) -> LLMRouter:
    """
    Build the router for a capture run from settings.

    Args:
        settings: Capture settings; settings.llm holds the 'llm' config section
        stats: Statistics object to record into (a new one when None)
        completion_provider: Overrides the configured completion provider
        embedding_provider: Overrides the configured embedding provider

    Returns:
        Configured LLMRouter

    Raises:
        MissingConfigError: If no completion or embedding model is configured
        ConfigurationError: If a provider name is unknown or unavailable
    """
    llm_config = settings.llm
    stats = stats or LLMExecutionStats()

    model_entries = llm_config.get("completion_models") or []
    if not model_entries:
        raise MissingConfigError("llm.completion_models is empty")
    if not llm_config.get("embedding_model"):
        raise MissingConfigError("llm.embedding_model is not set")

    completion_models = [
        ModelMetadata.from_dict(entry, LLMPurpose.COMPLETIONS) for entry in model_entries
    ]
    embedding_model = ModelMetadata.from_dict(
        llm_config["embedding_model"], LLMPurpose.EMBEDDINGS
    )

    if completion_provider is None:
        completion_provider = create_provider(
            llm_config.get("completion_provider", "anthropic"), llm_config
        )
        if not completion_provider.is_available():
            raise ConfigurationError(
                f"Completion provider {completion_provider.name} is not available"
            )
    if embedding_provider is None:
        name = llm_config.get("embedding_provider", "ollama")
        if name == completion_provider.name:
            embedding_provider = completion_provider
        else:
            embedding_provider = create_provider(name, llm_config)

    retry_strategy = RetryStrategy(stats, settings.retry, settings.adaptation)
    router = LLMRouter(
        completion_provider,
        completion_models,
        embedding_provider,
        embedding_model,
        retry_strategy,
        stats,
        chars_per_token=settings.chunking.average_chars_per_token,
    )
    logger.info(f"Using LLM {router.describe()}")
    return router
