"""
CodeCapture Logging Configuration

Configures logging based on environment variables:
- CODECAPTURE_DEBUG: Enable debug logging (default: false)
- CODECAPTURE_LOG_FILE: Log file path (default: ~/.codecapture/capture.log)
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

from codecapture.configs.paths import get_data_path


def setup_logging(
    debug: Optional[bool] = None,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Configure logging for a capture run.

    Args:
        debug: Enable debug level. Defaults to CODECAPTURE_DEBUG env var.
        log_file: Log file path. Defaults to CODECAPTURE_LOG_FILE env var,
                  or $CODECAPTURE_DATA_PATH/capture.log if not set.

    Returns:
        Root logger for codecapture
    """
    if debug is None:
        debug = os.environ.get("CODECAPTURE_DEBUG", "").lower() in ("true", "1", "yes")
    if log_file is None:
        log_file = os.environ.get("CODECAPTURE_LOG_FILE")
        if not log_file:
            log_file = str(get_data_path() / "capture.log")

    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    level = logging.DEBUG if debug else logging.INFO

    formatter = logging.Formatter(
        "%(asctime)s %(levelname)-5s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    logger = logging.getLogger("codecapture")
    logger.setLevel(level)
    logger.handlers.clear()

    # stderr only carries warnings when a log file is in use
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(formatter)
    if log_file:
        stderr_handler.setLevel(logging.WARNING)
    else:
        stderr_handler.setLevel(level)
    logger.addHandler(stderr_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        file_handler.setLevel(level)
        logger.addHandler(file_handler)
        logger.info(f"Logging to file: {log_file}")

    return logger


def get_logger(component: str) -> logging.Logger:
    """
    Get a logger for a specific component.

    Args:
        component: Component name (e.g., "ingest.engine", "llm.retry")

    Returns:
        Logger instance for the component
    """
    return logging.getLogger(f"codecapture.{component}")
