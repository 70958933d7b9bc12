"""
CodeCapture Runtime Configuration

Configuration merging and typed settings for a capture run.
Combines defaults, YAML config, and environment variables.
"""

import copy
import os
from dataclasses import dataclass, field
from typing import Optional

import yaml

from codecapture.configs.constants import (
    AVERAGE_CHARS_PER_TOKEN,
    BINARY_EXTENSIONS,
    COMPLETION_MAX_TOKENS_LIMIT_BUFFER,
    DEFAULT_CHUNK_TOKEN_LIMIT_RATIO,
    DEFAULT_MAX_RETRY_ATTEMPTS,
    DEFAULT_MAX_RETRY_DELAY_MILLIS,
    DEFAULT_MIN_RETRY_DELAY_MILLIS,
    FILENAME_IGNORE_LIST,
    FILENAME_PREFIX_IGNORE,
    FOLDER_IGNORE_LIST,
    MAX_COMPLETION_REDUCTION_RATIO,
    MAX_CONCURRENCY,
    MAX_PROMPT_REDUCTION_RATIO,
)
from codecapture.configs.yaml_config import DEFAULT_CONFIG_YAML, load_yaml_config
from codecapture.exceptions import ConfigurationError

# --- Default Runtime Configuration ---

DEFAULT_CONFIG = yaml.safe_load(DEFAULT_CONFIG_YAML)
DEFAULT_CONFIG["filters"] = {
    "folder_ignore_list": list(FOLDER_IGNORE_LIST),
    "filename_prefix_ignore": list(FILENAME_PREFIX_IGNORE),
    "filename_ignore_list": list(FILENAME_IGNORE_LIST),
    "binary_extensions": sorted(BINARY_EXTENSIONS),
}
DEFAULT_CONFIG["adaptation"] = {
    "completion_max_tokens_limit_buffer": COMPLETION_MAX_TOKENS_LIMIT_BUFFER,
    "max_completion_reduction_ratio": MAX_COMPLETION_REDUCTION_RATIO,
    "max_prompt_reduction_ratio": MAX_PROMPT_REDUCTION_RATIO,
}

# (env var, config section, key, type)
ENV_OVERRIDES = [
    ("CODECAPTURE_MAX_CONCURRENCY", "capture", "max_concurrency", int),
    ("CODECAPTURE_MAX_RETRY_ATTEMPTS", "retry", "max_retry_attempts", int),
    ("CODECAPTURE_COMPLETION_PROVIDER", "llm", "completion_provider", str),
    ("CODECAPTURE_EMBEDDING_PROVIDER", "llm", "embedding_provider", str),
]


@dataclass(frozen=True)
class RetryConfig:
    """Bounded retry policy for a single LLM call."""

    max_retry_attempts: int = DEFAULT_MAX_RETRY_ATTEMPTS
    min_retry_delay_millis: int = DEFAULT_MIN_RETRY_DELAY_MILLIS
    max_retry_delay_millis: int = DEFAULT_MAX_RETRY_DELAY_MILLIS

    def __post_init__(self):
        if self.max_retry_attempts < 1:
            raise ConfigurationError(
                "max_retry_attempts must be at least 1",
                {"max_retry_attempts": self.max_retry_attempts},
            )
        if not 0 <= self.min_retry_delay_millis <= self.max_retry_delay_millis:
            raise ConfigurationError(
                "Retry delay bounds must satisfy 0 <= min <= max",
                {"min": self.min_retry_delay_millis, "max": self.max_retry_delay_millis},
            )


@dataclass(frozen=True)
class ChunkingConfig:
    chunk_token_limit_ratio: float = DEFAULT_CHUNK_TOKEN_LIMIT_RATIO
    average_chars_per_token: float = AVERAGE_CHARS_PER_TOKEN


@dataclass(frozen=True)
class AdaptationConfig:
    """Constants steering how far an oversized prompt is cropped."""

    completion_max_tokens_limit_buffer: int = COMPLETION_MAX_TOKENS_LIMIT_BUFFER
    max_completion_reduction_ratio: float = MAX_COMPLETION_REDUCTION_RATIO
    max_prompt_reduction_ratio: float = MAX_PROMPT_REDUCTION_RATIO


@dataclass(frozen=True)
class FileFilterConfig:
    folder_ignore_list: tuple[str, ...] = tuple(FOLDER_IGNORE_LIST)
    filename_prefix_ignore: tuple[str, ...] = tuple(FILENAME_PREFIX_IGNORE)
    filename_ignore_list: tuple[str, ...] = tuple(FILENAME_IGNORE_LIST)
    binary_extensions: frozenset[str] = frozenset(BINARY_EXTENSIONS)


@dataclass(frozen=True)
class CaptureSettings:
    """Typed view over the merged configuration dictionary."""

    max_concurrency: int = MAX_CONCURRENCY
    skip_already_captured: bool = True
    retry: RetryConfig = field(default_factory=RetryConfig)
    chunking: ChunkingConfig = field(default_factory=ChunkingConfig)
    adaptation: AdaptationConfig = field(default_factory=AdaptationConfig)
    filters: FileFilterConfig = field(default_factory=FileFilterConfig)
    llm: dict = field(default_factory=dict)


def _deep_merge(base: dict, override: dict) -> dict:
    """Merge override into a copy of base, recursing into nested dicts."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def get_full_config(yaml_config: Optional[dict] = None) -> dict:
    """
    Get full configuration merged from defaults, YAML, and environment.

    Priority (highest wins):
    1. Environment variables
    2. YAML config file
    3. DEFAULT_CONFIG

    Args:
        yaml_config: Already-loaded YAML dict (reads config.yaml when None)

    Returns:
        Merged configuration dictionary
    """
    if yaml_config is None:
        yaml_config = load_yaml_config()

    config = _deep_merge(DEFAULT_CONFIG, yaml_config)

    for env_var, section, key, cast in ENV_OVERRIDES:
        raw = os.environ.get(env_var)
        if not raw:
            continue
        try:
            config.setdefault(section, {})[key] = cast(raw)
        except ValueError:
            raise ConfigurationError(
                f"Invalid value for {env_var}", {"value": raw}
            ) from None

    return config


def get_capture_settings(config: Optional[dict] = None) -> CaptureSettings:
    """
    Build typed capture settings from a merged configuration dictionary.

    Args:
        config: Merged config (from get_full_config() when None)

    Returns:
        CaptureSettings instance

    Raises:
        ConfigurationError: If a value is out of range
    """
    config = config if config is not None else get_full_config()
    capture = config.get("capture", {})
    filters = config.get("filters", {})

    max_concurrency = int(capture.get("max_concurrency", MAX_CONCURRENCY))
    if max_concurrency < 1:
        raise ConfigurationError(
            "max_concurrency must be at least 1", {"max_concurrency": max_concurrency}
        )

    return CaptureSettings(
        max_concurrency=max_concurrency,
        skip_already_captured=bool(capture.get("skip_already_captured", True)),
        retry=RetryConfig(**config.get("retry", {})),
        chunking=ChunkingConfig(**config.get("chunking", {})),
        adaptation=AdaptationConfig(**config.get("adaptation", {})),
        filters=FileFilterConfig(
            folder_ignore_list=tuple(filters.get("folder_ignore_list", FOLDER_IGNORE_LIST)),
            filename_prefix_ignore=tuple(
                filters.get("filename_prefix_ignore", FILENAME_PREFIX_IGNORE)
            ),
            filename_ignore_list=tuple(filters.get("filename_ignore_list", FILENAME_IGNORE_LIST)),
            binary_extensions=frozenset(
                ext.lower() for ext in filters.get("binary_extensions", BINARY_EXTENSIONS)
            ),
        ),
        llm=config.get("llm", {}),
    )
