"""
CodeCapture Data Paths

Data directory and vector database locations.
"""

import os
from pathlib import Path

DEFAULT_DATA_PATH = Path.home() / ".codecapture"


def get_data_path() -> Path:
    """Get the data directory path.

    CODECAPTURE_DATA_PATH wins when set, otherwise ~/.codecapture.
    """
    env_path = os.environ.get("CODECAPTURE_DATA_PATH")
    if env_path:
        return Path(os.path.expanduser(env_path))
    return DEFAULT_DATA_PATH


def get_default_db_path() -> str:
    """Get the default ChromaDB persistence path.

    Returns:
        CODECAPTURE_DB_PATH if set, otherwise <data path>/db
    """
    env_path = os.environ.get("CODECAPTURE_DB_PATH")
    if env_path:
        return os.path.expanduser(env_path)
    return str(get_data_path() / "db")


DB_PATH = get_default_db_path()
