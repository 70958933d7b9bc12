"""
CodeCapture YAML Configuration

Loading and defaults for ~/.codecapture/config.yaml.
"""

from pathlib import Path
from typing import Optional

import yaml

from codecapture.configs.logging import get_logger
from codecapture.configs.paths import get_data_path

logger = get_logger("configs.yaml")

# --- Default Config Template ---

DEFAULT_CONFIG_YAML = """\
# CodeCapture Configuration
# Edit this file to customize capture behavior.

# Capture Settings
capture:
  # Maximum number of files processed at the same time
  max_concurrency: 10

  # Skip files already captured for the project (false = full rebuild)
  skip_already_captured: true

# Retry policy for completion and embedding calls
retry:
  max_retry_attempts: 3
  min_retry_delay_millis: 1000
  max_retry_delay_millis: 10000

# Token estimation used when batching texts into one completion call
chunking:
  chunk_token_limit_ratio: 0.7
  average_chars_per_token: 4

# LLM Configuration
llm:
  # Provider for summaries: anthropic, ollama, openrouter
  completion_provider: "anthropic"

  # Provider for vector embeddings: ollama
  embedding_provider: "ollama"

  # Completion models, tried in order (primary first)
  completion_models:
    - key: "primary"
      urn: "claude-3-5-haiku-20241022"
      max_completion_tokens: 8192
      max_total_tokens: 200000

  embedding_model:
    key: "embeddings"
    urn: "nomic-embed-text"
    dimensions: 768
    max_total_tokens: 8192

  # Provider-specific settings
  anthropic:
    # API key read from ANTHROPIC_API_KEY env var
    temperature: 0.0

  ollama:
    base_url: "http://localhost:11434"

  openrouter:
    base_url: "https://openrouter.ai/api/v1"
    # API key read from OPENROUTER_API_KEY env var
"""


def get_config_path() -> Path:
    """Get the path to config.yaml."""
    return get_data_path() / "config.yaml"


def load_yaml_config(config_path: Optional[Path] = None) -> dict:
    """
    Load configuration from ~/.codecapture/config.yaml.

    Args:
        config_path: Explicit file to read instead of the default location

    Returns:
        Configuration dictionary (empty if file doesn't exist)
    """
    config_path = config_path or get_config_path()
    if not config_path.exists():
        return {}

    try:
        return yaml.safe_load(config_path.read_text()) or {}
    except yaml.YAMLError as e:
        logger.warning(f"Ignoring malformed config file {config_path}: {e}")
        return {}

