"""
CodeCapture Exception Hierarchy

Centralized exception classes for structured error handling across the codebase.
All CodeCapture-specific exceptions inherit from CaptureError.

Usage:
    from codecapture.exceptions import CaptureError, PersistenceError

    try:
        await repository.upsert(record)
    except PersistenceError as e:
        logger.error(f"Store write failed: {e}")
"""


class CaptureError(Exception):
    """Base exception for all CodeCapture errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} ({self.details})"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(CaptureError):
    """Error in CodeCapture configuration."""

    pass


class MissingConfigError(ConfigurationError):
    """Required configuration value is missing."""

    pass


class PromptCompilationError(ConfigurationError):
    """Prompt template or response schema could not be compiled."""

    pass


# =============================================================================
# Storage Errors
# =============================================================================


class StorageError(CaptureError):
    """Base class for storage-related errors."""

    pass


class PersistenceError(StorageError):
    """Writing a record to the content store failed."""

    pass


# =============================================================================
# Ingest Errors
# =============================================================================


class IngestError(CaptureError):
    """Base class for ingestion errors."""

    pass


class SourceReadError(IngestError):
    """Source file could not be read."""

    pass


class ClassificationError(IngestError):
    """File could not be mapped to a canonical type."""

    pass


# =============================================================================
# LLM Errors
# =============================================================================


class LLMError(CaptureError):
    """Base class for LLM provider errors."""

    pass


class BadResponseContentError(LLMError):
    """LLM returned a payload that is unusable after validation."""

    pass


class BadResponseMetadataError(LLMError):
    """LLM response lacks the token-usage metadata a caller relies on."""

    pass


class RetryableLLMError(LLMError):
    """Transient LLM outcome that the retry strategy consumes."""

    pass


class RetryableOverloadedError(RetryableLLMError):
    """Provider reported it is overloaded or rate limited."""

    pass


class RetryableInvalidError(RetryableLLMError):
    """Provider answered but the payload failed validation."""

    pass
