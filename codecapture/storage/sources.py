"""
Sources Repository

Content store for captured source files. One record per (project,
filepath); writes are upserts so recapturing a file replaces its record.

The ChromaDB implementation keeps three collections sharing the record id:
the record itself (content document plus scalar metadata), the content
vectors and the summary vectors. Every Chroma record needs an embedding, so
the record collection stores a constant placeholder vector.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Optional

import chromadb

from codecapture.configs import get_logger
from codecapture.documents import (
    CONTENT_VECTORS_COLLECTION,
    SOURCES_COLLECTION,
    SUMMARY_VECTORS_COLLECTION,
    SourceFileRecord,
    record_id,
)
from codecapture.exceptions import PersistenceError, StorageError

from .chromadb import get_or_create_collection

logger = get_logger("storage.sources")

PLACEHOLDER_EMBEDDING = [1.0]


class SourcesRepository(ABC):
    """Persistence contract used by the capture pipeline."""

    @abstractmethod
    async def upsert(self, record: SourceFileRecord) -> None:
        """Insert or replace the record keyed by (project, filepath)."""

    @abstractmethod
    async def list_captured_paths(self, project_name: str) -> set[str]:
        """Filepaths already stored for a project, in one read."""

    @abstractmethod
    async def delete_all_for_project(self, project_name: str) -> None:
        """Remove every record of a project."""

    @abstractmethod
    async def get_record(self, project_name: str, filepath: str) -> Optional[SourceFileRecord]:
        """Fetch one record with its vectors, or None."""

    @abstractmethod
    async def count_for_project(self, project_name: str) -> int:
        pass


def _first_vector(result: dict[str, Any]) -> Optional[list[float]]:
    embeddings = result.get("embeddings")
    if embeddings is None or len(embeddings) == 0:
        return None
    return [float(v) for v in embeddings[0]]


class ChromaSourcesRepository(SourcesRepository):
    """
    SourcesRepository backed by ChromaDB.

    Chroma calls are blocking, so each one runs in a worker thread to keep
    the event loop free for in-flight LLM calls.
    """

    def __init__(self, client: chromadb.PersistentClient):
        self._client = client
        self._sources = get_or_create_collection(client, SOURCES_COLLECTION)
        self._content_vectors = get_or_create_collection(client, CONTENT_VECTORS_COLLECTION)
        self._summary_vectors = get_or_create_collection(client, SUMMARY_VECTORS_COLLECTION)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def _upsert_sync(self, record: SourceFileRecord) -> None:
        rid = record.id
        vector_metadata = {"project_name": record.project_name, "filepath": record.filepath}

        self._sources.upsert(
            ids=[rid],
            documents=[record.content],
            metadatas=[record.to_metadata()],
            embeddings=[PLACEHOLDER_EMBEDDING],
        )

        for collection, vector in (
            (self._content_vectors, record.content_vector),
            (self._summary_vectors, record.summary_vector),
        ):
            if vector is not None:
                collection.upsert(ids=[rid], embeddings=[vector], metadatas=[vector_metadata])
            else:
                # Drop a vector left over from an earlier capture of this file
                collection.delete(ids=[rid])

    async def upsert(self, record: SourceFileRecord) -> None:
        """
        Insert or replace a record.

        Raises:
            PersistenceError: If ChromaDB rejects the write
        """
        try:
            await asyncio.to_thread(self._upsert_sync, record)
        except Exception as e:
            details = {
                "project": record.project_name,
                "filepath": record.filepath,
                "type": record.type,
                "content_chars": len(record.content),
                "content_vector_dims": len(record.content_vector or []),
                "summary_vector_dims": len(record.summary_vector or []),
                "error": f"{type(e).__name__}: {e}",
            }
            logger.error(f"Failed to persist {record.filepath}: {details}")
            raise PersistenceError(f"Failed to persist {record.filepath}", details) from e

    def _delete_project_sync(self, project_name: str) -> None:
        where = {"project_name": project_name}
        for collection in (self._sources, self._content_vectors, self._summary_vectors):
            collection.delete(where=where)

    async def delete_all_for_project(self, project_name: str) -> None:
        try:
            await asyncio.to_thread(self._delete_project_sync, project_name)
        except Exception as e:
            logger.error(f"Failed to delete records of project {project_name}: {e}")
            raise PersistenceError(
                f"Failed to delete records of project {project_name}", {"error": str(e)}
            ) from e
        logger.info(f"Deleted existing records of project {project_name}")

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def list_captured_paths(self, project_name: str) -> set[str]:
        try:
            result = await asyncio.to_thread(
                self._sources.get,
                where={"project_name": project_name},
                include=["metadatas"],
            )
        except Exception as e:
            raise StorageError(
                f"Failed to list captured files of {project_name}", {"error": str(e)}
            ) from e
        return {metadata["filepath"] for metadata in result.get("metadatas") or []}

    def _get_record_sync(self, project_name: str, filepath: str) -> Optional[SourceFileRecord]:
        rid = record_id(project_name, filepath)
        result = self._sources.get(ids=[rid], include=["documents", "metadatas"])
        if not result["ids"]:
            return None

        content = self._content_vectors.get(ids=[rid], include=["embeddings"])
        summary = self._summary_vectors.get(ids=[rid], include=["embeddings"])
        return SourceFileRecord.from_stored(
            result["documents"][0],
            result["metadatas"][0],
            content_vector=_first_vector(content),
            summary_vector=_first_vector(summary),
        )

    async def get_record(self, project_name: str, filepath: str) -> Optional[SourceFileRecord]:
        try:
            return await asyncio.to_thread(self._get_record_sync, project_name, filepath)
        except Exception as e:
            raise StorageError(
                f"Failed to read {filepath} of {project_name}", {"error": str(e)}
            ) from e

    async def count_for_project(self, project_name: str) -> int:
        return len(await self.list_captured_paths(project_name))

    async def find_similar_by_content(
        self,
        project_name: str,
        query_vector: list[float],
        n_results: int = 10,
    ) -> list[tuple[str, float]]:
        """
        Nearest files of a project by content vector.

        Returns:
            (filepath, cosine distance) pairs, closest first
        """
        try:
            result = await asyncio.to_thread(
                self._content_vectors.query,
                query_embeddings=[query_vector],
                n_results=n_results,
                where={"project_name": project_name},
                include=["metadatas", "distances"],
            )
        except Exception as e:
            raise StorageError(
                f"Vector query on {project_name} failed", {"error": str(e)}
            ) from e

        metadatas = (result.get("metadatas") or [[]])[0]
        distances = (result.get("distances") or [[]])[0]
        return [(m["filepath"], float(d)) for m, d in zip(metadatas, distances)]
