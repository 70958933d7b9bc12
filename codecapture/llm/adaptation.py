"""
Prompt Adaptation

Shrinks a prompt that hit a token limit, using the token usage reported by
the failed attempt. Character length stands in for token count.
"""

import math
from typing import Optional

from codecapture.configs import get_logger
from codecapture.configs.runtime import AdaptationConfig
from codecapture.exceptions import BadResponseMetadataError

from .types import LLMResponse, ModelMetadata

logger = get_logger("llm.adaptation")


def compute_reduction_ratio(
    prompt_tokens: int,
    completion_tokens: int,
    max_total_tokens: int,
    max_completion_tokens: int,
    config: AdaptationConfig,
) -> float:
    """
    Ratio (at most 1) to apply to the prompt length.

    A completion that ran into its own output limit is the stronger signal
    and is checked first; otherwise an oversized prompt plus completion is
    scaled back towards the total limit.
    """
    ratio = 1.0

    if completion_tokens >= max_completion_tokens - config.completion_max_tokens_limit_buffer:
        ratio = min(
            max_completion_tokens / (completion_tokens + 1),
            config.max_completion_reduction_ratio,
        )

    if ratio == 1.0 and prompt_tokens + completion_tokens > max_total_tokens:
        ratio = min(
            max_total_tokens / (prompt_tokens + completion_tokens + 1),
            config.max_prompt_reduction_ratio,
        )

    return min(ratio, 1.0)


def adapt_prompt(
    prompt: str,
    last_response: LLMResponse,
    model: ModelMetadata,
    config: Optional[AdaptationConfig] = None,
) -> str:
    """
    Crop prompt so the next attempt fits the model's token limits.

    Args:
        prompt: Prompt sent on the failed attempt
        last_response: Response of that attempt, must carry tokens_usage
        model: Limits of the model that produced last_response
        config: Buffer and maximum reduction ratios (defaults when None)

    Returns:
        A prefix of prompt, never longer than prompt

    Raises:
        BadResponseMetadataError: If last_response has no token usage
    """
    usage = last_response.tokens_usage
    if usage is None:
        raise BadResponseMetadataError(
            "Token usage is required to adapt the prompt",
            {"model": last_response.model_key, "status": last_response.status.value},
        )

    if not prompt:
        return prompt

    config = config or AdaptationConfig()
    max_completion_tokens = model.max_completion_tokens or usage.max_total_tokens

    ratio = compute_reduction_ratio(
        usage.prompt_tokens,
        usage.completion_tokens,
        usage.max_total_tokens,
        max_completion_tokens,
        config,
    )
    new_length = math.floor(len(prompt) * ratio)
    logger.debug(
        f"Cropping prompt for {model.key} from {len(prompt)} to {new_length} chars "
        f"(ratio {ratio:.3f}, prompt={usage.prompt_tokens}, "
        f"completion={usage.completion_tokens}, max={usage.max_total_tokens})"
    )
    return prompt[:new_length]
