"""
Token Usage

Normalizes token counts reported by providers and recovers them from
token-limit error messages when the provider only reports text.
"""

import re
from dataclasses import dataclass
from typing import Optional

from .types import ModelMetadata, TokensUsage


@dataclass(frozen=True)
class TokenLimitPattern:
    """A regex over an error message and the meaning of each capture group.

    Group names are "prompt", "completion" or "max".
    """

    regex: re.Pattern
    groups: tuple[str, ...]


def token_limit_pattern(regex: str, *groups: str) -> TokenLimitPattern:
    return TokenLimitPattern(re.compile(regex, re.IGNORECASE | re.DOTALL), groups)


def normalize_token_usage(
    model: ModelMetadata,
    prompt_tokens: Optional[int] = None,
    completion_tokens: Optional[int] = None,
    max_total_tokens: Optional[int] = None,
) -> TokensUsage:
    """
    Fill in unknown token counts.

    Unknown or negative completion tokens count as 0, the total limit defaults
    to the model's, and an unknown prompt size is assumed to just exceed the
    room left by the completion.
    """
    completion = completion_tokens if completion_tokens and completion_tokens > 0 else 0
    max_total = max_total_tokens if max_total_tokens and max_total_tokens > 0 else model.max_total_tokens
    if prompt_tokens is None or prompt_tokens < 0:
        prompt = max(1, max_total - completion + 1)
    else:
        prompt = prompt_tokens
    return TokensUsage(
        prompt_tokens=prompt,
        completion_tokens=completion,
        max_total_tokens=max_total,
    )


def extract_token_usage_from_error(
    message: str,
    patterns: list[TokenLimitPattern],
    model: ModelMetadata,
) -> TokensUsage:
    """
    Recover token usage from a provider's token-limit error text.

    The first matching pattern wins; when none match, usage is derived from
    the model limits alone.
    """
    for pattern in patterns:
        match = pattern.regex.search(message)
        if not match:
            continue
        values = dict(zip(pattern.groups, (int(g) for g in match.groups())))
        return normalize_token_usage(
            model,
            prompt_tokens=values.get("prompt"),
            completion_tokens=values.get("completion"),
            max_total_tokens=values.get("max"),
        )
    return normalize_token_usage(model)
