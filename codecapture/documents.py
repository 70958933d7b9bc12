"""
Document Type Definitions for CodeCapture

The captured source file record, its persisted document shape, and the
flat metadata schema it is stored under in ChromaDB.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, TypedDict


# =============================================================================
# Collection Names
# =============================================================================

SOURCES_COLLECTION = "sources"
CONTENT_VECTORS_COLLECTION = "source_content_vectors"
SUMMARY_VECTORS_COLLECTION = "source_summary_vectors"


# =============================================================================
# TypedDict Metadata Schemas
# =============================================================================


class SourceMetadata(TypedDict, total=False):
    """Scalar metadata stored with each record (ChromaDB only accepts scalars)."""

    project_name: str
    filename: str
    filepath: str
    type: str  # CanonicalFileType value
    lines_count: int
    summary: str  # JSON-encoded summary object
    summary_error: str
    has_summary_vector: bool
    has_content_vector: bool
    completion_model: str
    embedding_model: str
    captured_at: str  # ISO 8601


class VectorMetadata(TypedDict):
    """Metadata on the vector collections, used for per-project filtering."""

    project_name: str
    filepath: str


# =============================================================================
# Records
# =============================================================================


RECORD_ID_SEPARATOR = ":"


def record_id(project_name: str, filepath: str) -> str:
    """
    Store key of a record: unique per (project, relative filepath).

    Raises:
        ValueError: If project_name contains the separator, which would let
            two different (project, filepath) pairs share a key
    """
    if RECORD_ID_SEPARATOR in project_name:
        raise ValueError(
            f"Project name may not contain '{RECORD_ID_SEPARATOR}': {project_name!r}"
        )
    return f"{project_name}{RECORD_ID_SEPARATOR}{filepath}"



def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class LLMCaptureInfo:
    """Which models produced a record, and when."""

    completion_model: str = ""
    embedding_model: str = ""
    captured_at: str = field(default_factory=utc_now_iso)


@dataclass
class SourceFileRecord:
    """One captured source file."""

    project_name: str
    filename: str
    filepath: str
    type: str
    lines_count: int
    content: str
    summary: Optional[dict[str, Any]] = None
    summary_error: Optional[str] = None
    summary_vector: Optional[list[float]] = None
    content_vector: Optional[list[float]] = None
    llm_capture: Optional[LLMCaptureInfo] = None

    def __post_init__(self):
        if self.summary is not None and self.summary_error is not None:
            raise ValueError(
                f"Record {self.filepath} cannot have both a summary and a summary error"
            )

    @property
    def id(self) -> str:
        return record_id(self.project_name, self.filepath)

    def to_document(self) -> dict[str, Any]:
        """Persisted document shape (camelCase), omitting absent optionals."""
        doc: dict[str, Any] = {
            "projectName": self.project_name,
            "filename": self.filename,
            "filepath": self.filepath,
            "type": self.type,
            "linesCount": self.lines_count,
            "content": self.content,
        }
        optional = {
            "summary": self.summary,
            "summaryError": self.summary_error,
            "summaryVector": self.summary_vector,
            "contentVector": self.content_vector,
        }
        doc.update({k: v for k, v in optional.items() if v is not None})
        if self.llm_capture is not None:
            doc["llmCapture"] = {
                "completionModel": self.llm_capture.completion_model,
                "embeddingModel": self.llm_capture.embedding_model,
                "capturedAt": self.llm_capture.captured_at,
            }
        return doc

    def to_metadata(self) -> SourceMetadata:
        metadata: SourceMetadata = {
            "project_name": self.project_name,
            "filename": self.filename,
            "filepath": self.filepath,
            "type": self.type,
            "lines_count": self.lines_count,
            "has_summary_vector": self.summary_vector is not None,
            "has_content_vector": self.content_vector is not None,
        }
        if self.summary is not None:
            metadata["summary"] = json.dumps(self.summary)
        if self.summary_error is not None:
            metadata["summary_error"] = self.summary_error
        if self.llm_capture is not None:
            metadata["completion_model"] = self.llm_capture.completion_model
            metadata["embedding_model"] = self.llm_capture.embedding_model
            metadata["captured_at"] = self.llm_capture.captured_at
        return metadata

    @classmethod
    def from_stored(
        cls,
        document: str,
        metadata: dict[str, Any],
        content_vector: Optional[list[float]] = None,
        summary_vector: Optional[list[float]] = None,
    ) -> "SourceFileRecord":
        """Rebuild a record from a stored document and its metadata."""
        llm_capture = None
        if metadata.get("captured_at"):
            llm_capture = LLMCaptureInfo(
                completion_model=metadata.get("completion_model", ""),
                embedding_model=metadata.get("embedding_model", ""),
                captured_at=metadata["captured_at"],
            )
        summary = metadata.get("summary")
        return cls(
            project_name=metadata["project_name"],
            filename=metadata["filename"],
            filepath=metadata["filepath"],
            type=metadata["type"],
            lines_count=int(metadata["lines_count"]),
            content=document,
            summary=json.loads(summary) if summary else None,
            summary_error=metadata.get("summary_error"),
            summary_vector=summary_vector,
            content_vector=content_vector,
            llm_capture=llm_capture,
        )
