"""
CodeCapture Configuration Module

Re-exports commonly used functions for cleaner imports across the codebase.
"""

# Logging (most commonly used)
from codecapture.configs.logging import get_logger, setup_logging

# Paths
from codecapture.configs.paths import get_data_path, DB_PATH

# Constants
from codecapture.configs.constants import (
    BINARY_EXTENSIONS,
    FOLDER_IGNORE_LIST,
    FILENAME_PREFIX_IGNORE,
    FILENAME_IGNORE_LIST,
    MAX_CONCURRENCY,
    TIMEOUTS,
    get_timeout,
)

# YAML config
from codecapture.configs.yaml_config import (
    DEFAULT_CONFIG_YAML,
    get_config_path,
    load_yaml_config,
)

# Runtime
from codecapture.configs.runtime import (
    DEFAULT_CONFIG,
    AdaptationConfig,
    CaptureSettings,
    ChunkingConfig,
    FileFilterConfig,
    RetryConfig,
    get_capture_settings,
    get_full_config,
)

__all__ = [
    # Logging
    "get_logger",
    "setup_logging",
    # Paths
    "get_data_path",
    "DB_PATH",
    # Constants
    "BINARY_EXTENSIONS",
    "FOLDER_IGNORE_LIST",
    "FILENAME_PREFIX_IGNORE",
    "FILENAME_IGNORE_LIST",
    "MAX_CONCURRENCY",
    "TIMEOUTS",
    "get_timeout",
    # YAML config
    "DEFAULT_CONFIG_YAML",
    "get_config_path",
    "load_yaml_config",
    # Runtime
    "DEFAULT_CONFIG",
    "AdaptationConfig",
    "CaptureSettings",
    "ChunkingConfig",
    "FileFilterConfig",
    "RetryConfig",
    "get_capture_settings",
    "get_full_config",
]
