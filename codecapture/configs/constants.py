"""
CodeCapture Constants

Static configuration values that rarely change: ignore lists, concurrency
ceiling, retry and token-budget tuning, and timeout configuration.
"""

# --- Binary Extensions ---
# Files with these extensions are never read or summarized

BINARY_EXTENSIONS = {
    ".exe",
    ".bin",
    ".so",
    ".dylib",
    ".dll",
    ".o",
    ".a",
    ".lib",
    ".class",
    ".jar",
    ".war",
    ".ear",
    ".pyc",
    # Images
    ".png",
    ".jpg",
    ".jpeg",
    ".gif",
    ".bmp",
    ".ico",
    ".svg",
    ".webp",
    # Media
    ".mp3",
    ".mp4",
    ".wav",
    ".avi",
    ".mov",
    ".webm",
    # Archives
    ".zip",
    ".tar",
    ".gz",
    ".bz2",
    ".7z",
    ".rar",
    # Documents
    ".pdf",
    ".doc",
    ".docx",
    ".xls",
    ".xlsx",
    # Fonts
    ".ttf",
    ".otf",
    ".woff",
    ".woff2",
    ".eot",
    # Databases
    ".db",
    ".sqlite",
    ".sqlite3",
}

# --- Discovery Ignore Rules ---

FOLDER_IGNORE_LIST = [
    ".git",
    ".github",
    ".idea",
    ".vscode",
    "node_modules",
    "__pycache__",
    ".venv",
    "venv",
    "dist",
    "build",
    "target",
    "bin",
    "obj",
    "coverage",
]

FILENAME_PREFIX_IGNORE = ["."]

FILENAME_IGNORE_LIST = [
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "poetry.lock",
    "Cargo.lock",
]

# --- Concurrency ---

MAX_CONCURRENCY = 10

# --- Retry Defaults ---

DEFAULT_MAX_RETRY_ATTEMPTS = 3
DEFAULT_MIN_RETRY_DELAY_MILLIS = 1000
DEFAULT_MAX_RETRY_DELAY_MILLIS = 10000

# --- Token Budget Tuning ---

DEFAULT_CHUNK_TOKEN_LIMIT_RATIO = 0.7
AVERAGE_CHARS_PER_TOKEN = 4

COMPLETION_MAX_TOKENS_LIMIT_BUFFER = 5
MAX_COMPLETION_REDUCTION_RATIO = 0.75
MAX_PROMPT_REDUCTION_RATIO = 0.85

# --- Timeout Configuration ---
# Centralized timeout values (in seconds)

TIMEOUTS = {
    "http_default": 10,  # Default HTTP request timeout
    "llm_request": 120,  # Single completion call (can be slow)
    "llm_embeddings": 60,  # Single embeddings call
    "llm_availability_check": 5,  # Provider availability check
}


def get_timeout(key: str, default: int | float | None = None) -> int | float:
    """
    Get a timeout value by key.

    Args:
        key: Timeout key from TIMEOUTS dict
        default: Default value if key not found

    Returns:
        Timeout value in seconds
    """
    if default is None:
        default = TIMEOUTS.get("http_default", 10)
    return TIMEOUTS.get(key, default)
