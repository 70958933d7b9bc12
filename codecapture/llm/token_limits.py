"""
Token-limit error formats per provider.
"""

from .token_usage import token_limit_pattern

ANTHROPIC_TOKEN_LIMIT_PATTERNS = [
    token_limit_pattern(r"prompt is too long: (\d+) tokens > (\d+) maximum", "prompt", "max"),
    token_limit_pattern(
        r"input length and `max_tokens` exceed context limit: (\d+) \+ (\d+) > (\d+)",
        "prompt",
        "completion",
        "max",
    ),
]

OPENAI_COMPATIBLE_TOKEN_LIMIT_PATTERNS = [
    token_limit_pattern(
        r"maximum context length is (\d+) tokens.*?\((\d+) in the messages, (\d+) in the completion\)",
        "max",
        "prompt",
        "completion",
    ),
    token_limit_pattern(
        r"maximum context length is (\d+) tokens.*?requested (\d+) tokens",
        "max",
        "prompt",
    ),
]

OLLAMA_TOKEN_LIMIT_PATTERNS = [
    token_limit_pattern(
        r"input length \((\d+)\) exceeds (?:the )?(?:maximum )?context length \((\d+)\)",
        "prompt",
        "max",
    ),
]
