"""
Codebase Walker

File system traversal with ignore rules, ordered for scheduling.
"""

import os
from pathlib import Path
from typing import Generator, Optional

from codecapture.configs import get_logger
from codecapture.configs.runtime import FileFilterConfig

logger = get_logger("ingest.walker")


def walk_codebase(
    root_path: str | Path,
    filters: Optional[FileFilterConfig] = None,
) -> Generator[tuple[Path, int], None, None]:
    """
    Walk codebase yielding files to capture together with their size.

    Args:
        root_path: Root directory to walk
        filters: Folder, filename-prefix, filename and binary-extension
                 ignore rules (defaults when None)

    Yields:
        (absolute path, size in bytes) for each file that passes the filters
    """
    filters = filters or FileFilterConfig()
    root = Path(root_path).resolve()
    ignored_folders = set(filters.folder_ignore_list)
    ignored_names = set(filters.filename_ignore_list)

    for dirpath, dirnames, filenames in os.walk(root):
        # Filter out ignored directories (in-place modification)
        dirnames[:] = [d for d in dirnames if d not in ignored_folders]

        for filename in filenames:
            if filename in ignored_names:
                continue
            if any(filename.startswith(prefix) for prefix in filters.filename_prefix_ignore):
                continue

            file_path = Path(dirpath) / filename
            if file_path.suffix.lower() in filters.binary_extensions:
                continue

            try:
                size = file_path.stat().st_size
            except OSError as e:
                logger.warning(f"Cannot stat {file_path}, skipping: {e}")
                continue

            yield file_path, size


def find_files_sorted_by_size(
    root_path: str | Path,
    filters: Optional[FileFilterConfig] = None,
) -> list[Path]:
    """
    List capturable files under root_path, largest first.

    Largest-first ordering keeps the slowest files from landing at the tail
    of a bounded worker pool. Ties are broken by path so the order is stable.

    Args:
        root_path: Root directory to walk
        filters: Ignore rules (defaults when None)

    Returns:
        Absolute file paths in descending size order
    """
    sized = list(walk_codebase(root_path, filters))
    sized.sort(key=lambda item: (-item[1], str(item[0])))
    logger.debug(f"Discovered {len(sized)} files under {root_path}")
    return [path for path, _ in sized]
