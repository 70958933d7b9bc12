"""
Capture Engine

Main orchestration for capturing a codebase into the content store: file
discovery, skip/rebuild mode, bounded concurrent per-file pipelines and the
final statistics.
"""

import asyncio
import json
import time
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from codecapture.configs import get_logger
from codecapture.configs.runtime import CaptureSettings, get_capture_settings
from codecapture.documents import RECORD_ID_SEPARATOR, LLMCaptureInfo, SourceFileRecord
from codecapture.exceptions import (
    BadResponseMetadataError,
    ConfigurationError,
    PersistenceError,
    SourceReadError,
)
from codecapture.llm import get_router
from codecapture.llm.router import LLMRouter
from codecapture.storage import ChromaSourcesRepository, get_chroma_client
from codecapture.storage.sources import SourcesRepository

from .concurrency import ConcurrencyCoordinator
from .file_types import classify, get_file_extension
from .summarizer import FileSummarizer
from .walker import find_files_sorted_by_size

logger = get_logger("ingest.engine")

# Errors that signal a broken setup rather than a bad file; raised once the
# whole batch has settled
FATAL_ERRORS = (PersistenceError, ConfigurationError, BadResponseMetadataError)


class FileOutcome(str, Enum):
    CAPTURED = "captured"
    ALREADY_CAPTURED = "already_captured"
    BINARY = "binary"
    EMPTY = "empty"


# =============================================================================
# Per-File Pipeline
# =============================================================================


class SourceFileProcessor:
    """Runs read, classify, summarize, embed and persist for one file."""

    def __init__(
        self,
        project_name: str,
        root: Path,
        repository: SourcesRepository,
        router: LLMRouter,
        binary_extensions: frozenset[str],
        captured_paths: Optional[set[str]] = None,
    ):
        self.project_name = project_name
        self.root = root
        self.repository = repository
        self.router = router
        self.summarizer = FileSummarizer(router)
        self.binary_extensions = binary_extensions
        self.captured_paths = captured_paths or set()

    async def process_file(self, file_path: Path) -> FileOutcome:
        """
        Capture one file.

        Raises:
            SourceReadError: If the file cannot be read
            PersistenceError: If the record cannot be stored
        """
        filepath = file_path.relative_to(self.root).as_posix()

        if filepath in self.captured_paths:
            logger.debug(f"Skipped (already captured): {filepath}")
            return FileOutcome.ALREADY_CAPTURED

        if file_path.suffix.lower() in self.binary_extensions:
            logger.debug(f"Skipped (binary): {filepath}")
            return FileOutcome.BINARY

        try:
            raw = await asyncio.to_thread(file_path.read_text, encoding="utf-8", errors="replace")
        except OSError as e:
            raise SourceReadError(f"Cannot read {filepath}", {"error": str(e)}) from e

        content = raw.strip()
        if not content:
            logger.warning(f"Skipped (empty): {filepath}")
            return FileOutcome.EMPTY

        file_type = classify(filepath, get_file_extension(filepath))
        lines_count = content.count("\n") + 1

        summary_result = await self.summarizer.summarize(filepath, file_type, content)
        if not summary_result.ok:
            logger.warning(f"No summary for {filepath}: {summary_result.error}")

        summary_vector, content_vector = await asyncio.gather(
            self._embed_summary(filepath, summary_result.summary),
            self.router.generate_embeddings(filepath, content),
        )
        if content_vector is None:
            logger.warning(f"No content embedding for {filepath}")

        record = SourceFileRecord(
            project_name=self.project_name,
            filename=file_path.name,
            filepath=filepath,
            type=file_type.value,
            lines_count=lines_count,
            content=content,
            summary=summary_result.summary,
            summary_error=summary_result.error,
            summary_vector=summary_vector,
            content_vector=content_vector,
            llm_capture=LLMCaptureInfo(
                completion_model=summary_result.model_key,
                embedding_model=self.router.embedding_model_key,
            ),
        )
        await self.repository.upsert(record)
        logger.debug(f"Captured {filepath} ({file_type.value}, {lines_count} lines)")
        return FileOutcome.CAPTURED

    async def _embed_summary(
        self, filepath: str, summary: Optional[dict[str, Any]]
    ) -> Optional[list[float]]:
        if summary is None:
            return None
        vector = await self.router.generate_embeddings(
            f"{filepath} (summary)", json.dumps(summary)
        )
        if vector is None:
            logger.warning(f"No summary embedding for {filepath}")
        return vector


# =============================================================================
# Main Capture Function
# =============================================================================


async def capture_codebase(
    root_path: str | Path,
    project_name: str,
    repository: SourcesRepository,
    router: LLMRouter,
    settings: Optional[CaptureSettings] = None,
    skip_if_already_captured: Optional[bool] = None,
) -> dict[str, Any]:
    """
    Capture every file of a codebase into the content store.

    In skip mode, files already stored for the project are left alone. In
    rebuild mode, every record of the project is deleted first.

    Args:
        root_path: Root directory of the codebase
        project_name: Project the records belong to
        repository: Content store
        router: LLM router for summaries and embeddings
        settings: Capture settings (loaded from config when None)
        skip_if_already_captured: Overrides settings.skip_already_captured

    Returns:
        Stats dictionary with capture results

    Raises:
        PersistenceError: After the batch settles, if any record failed to store
        ConfigurationError: If project_name contains the record id separator;
            after the batch settles, if a prompt or model definition is broken
    """
    start_time = time.time()
    if RECORD_ID_SEPARATOR in project_name:
        raise ConfigurationError(
            f"Project name may not contain '{RECORD_ID_SEPARATOR}'",
            {"project_name": project_name},
        )
    settings = settings or get_capture_settings()
    skip = (
        settings.skip_already_captured
        if skip_if_already_captured is None
        else skip_if_already_captured
    )
    root = Path(root_path).resolve()

    logger.info(
        f"Starting capture: {root} (project={project_name}, "
        f"mode={'skip' if skip else 'rebuild'})"
    )

    files = await asyncio.to_thread(find_files_sorted_by_size, root, settings.filters)

    if skip:
        captured_paths = await repository.list_captured_paths(project_name)
        logger.info(f"{len(captured_paths)} files already captured for {project_name}")
    else:
        await repository.delete_all_for_project(project_name)
        captured_paths = set()

    processor = SourceFileProcessor(
        project_name,
        root,
        repository,
        router,
        settings.filters.binary_extensions,
        captured_paths,
    )
    coordinator = ConcurrencyCoordinator(settings.max_concurrency)
    results = await coordinator.run_all(files, processor.process_file)

    stats: dict[str, Any] = {
        "project": project_name,
        "files_scanned": len(files),
        "files_captured": 0,
        "files_skipped": 0,
        "files_failed": 0,
        "errors": [],
    }
    fatal: Optional[BaseException] = None

    for file_path, result in zip(files, results):
        if isinstance(result, FileOutcome):
            key = "files_captured" if result == FileOutcome.CAPTURED else "files_skipped"
            stats[key] += 1
            continue

        stats["files_failed"] += 1
        stats["errors"].append({"file": str(file_path), "error": str(result)})
        if isinstance(result, SourceReadError):
            logger.warning(f"Skipped (read error): {file_path} - {result}")
        elif isinstance(result, FATAL_ERRORS):
            fatal = fatal or result
        else:
            logger.error(f"Error capturing {file_path}: {result!r}", exc_info=result)

    stats["llm"] = router.stats.snapshot()
    stats["elapsed_seconds"] = round(time.time() - start_time, 1)

    logger.info(
        f"Processed {len(files)} files. Succeeded: {stats['files_captured']}, "
        f"Failed: {stats['files_failed']}, Skipped: {stats['files_skipped']}"
    )
    router.stats.log_summary()

    if fatal is not None:
        raise fatal
    return stats


async def run_capture(
    root_path: str | Path,
    project_name: str,
    config: Optional[dict] = None,
    skip_if_already_captured: Optional[bool] = None,
) -> dict[str, Any]:
    """
    Capture a codebase using the configured ChromaDB store and LLM providers.

    Args:
        root_path: Root directory of the codebase
        project_name: Project the records belong to
        config: Merged config dict (get_full_config() when None)
        skip_if_already_captured: Overrides the configured mode

    Returns:
        Stats dictionary with capture results
    """
    settings = get_capture_settings(config)
    repository = ChromaSourcesRepository(get_chroma_client())
    router = get_router(settings)
    try:
        return await capture_codebase(
            root_path,
            project_name,
            repository,
            router,
            settings,
            skip_if_already_captured,
        )
    finally:
        await router.close()
