"""
Token-Bounded Chunker

Groups texts so each group fits a single completion call, based on an
estimated chars-per-token ratio rather than a real tokenizer.
"""

import math

from codecapture.configs import get_logger
from codecapture.configs.constants import AVERAGE_CHARS_PER_TOKEN

logger = get_logger("ingest.chunker")


def estimate_tokens(text: str, chars_per_token: float = AVERAGE_CHARS_PER_TOKEN) -> float:
    """Estimate the token count of text from its character length."""
    return len(text) / chars_per_token


def chunk_text_by_token_limit(
    items: list[str],
    max_tokens: int,
    chunk_token_limit_ratio: float,
    chars_per_token: float = AVERAGE_CHARS_PER_TOKEN,
) -> list[list[str]]:
    """
    Split items into ordered groups that each fit under a token budget.

    The budget per group is max_tokens * chunk_token_limit_ratio, leaving
    headroom for instructions and the completion. An item that alone exceeds
    the budget is truncated and placed in a group of its own.

    Args:
        items: Texts to group, order is preserved
        max_tokens: Total token limit of the target model
        chunk_token_limit_ratio: Share of max_tokens a group may use
        chars_per_token: Average characters per token

    Returns:
        List of groups; concatenated they reproduce items (oversized items
        truncated)
    """
    if not items:
        return []

    budget = max_tokens * chunk_token_limit_ratio
    max_item_chars = max(1, math.floor(budget * chars_per_token))

    chunks: list[list[str]] = []
    current: list[str] = []
    current_tokens = 0.0

    for item in items:
        item_tokens = estimate_tokens(item, chars_per_token)

        if item_tokens > budget:
            logger.warning(
                f"Item of ~{int(item_tokens)} tokens exceeds chunk budget of "
                f"{int(budget)} tokens, truncating to {max_item_chars} chars"
            )
            if current:
                chunks.append(current)
                current, current_tokens = [], 0.0
            chunks.append([item[:max_item_chars]])
            continue

        if current and current_tokens + item_tokens > budget:
            chunks.append(current)
            current, current_tokens = [], 0.0

        current.append(item)
        current_tokens += item_tokens

    if current:
        chunks.append(current)

    if not chunks:
        logger.warning("Chunking produced no groups, placing all items in one group")
        chunks = [list(items)]

    return chunks
