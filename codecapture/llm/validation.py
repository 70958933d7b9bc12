"""
Response Validation

Turns raw provider output into a checked value. Kept apart from the
providers so their contract stays prompt in, classified response out.
"""

import json
import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ValidationError

from .json_sanitizer import parse_json_with_repair

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*\n?(.*?)```", re.DOTALL)


class ValidationErrorKind(str, Enum):
    EMPTY = "empty"
    NOT_JSON = "not_json"
    SCHEMA_MISMATCH = "schema_mismatch"


@dataclass(frozen=True)
class ValidationResult:
    value: Any = None
    error_kind: Optional[ValidationErrorKind] = None
    message: str = ""
    # Sanitizer steps needed before the JSON parsed
    repairs: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.error_kind is None

    @classmethod
    def failure(cls, kind: ValidationErrorKind, message: str) -> "ValidationResult":
        return cls(error_kind=kind, message=message)


def _unfence(raw: str) -> str:
    text = raw.strip()
    fenced = _FENCE_RE.search(text)
    if fenced:
        text = fenced.group(1).strip()
    return text


def _first_opener(text: str) -> int:
    starts = [i for i in (text.find("{"), text.find("[")) if i != -1]
    return min(starts) if starts else -1


def extract_json_text(raw: str) -> str:
    """
    Pull the JSON document out of a completion.

    Models sometimes wrap JSON in Markdown fences or add a sentence around it.
    Returns the fenced body if present, otherwise the span from the first
    opening brace/bracket to the last closing one, otherwise raw stripped.
    """
    text = _unfence(raw)
    start = _first_opener(text)
    if start == -1:
        return text
    end = max(text.rfind("}"), text.rfind("]"))
    if end <= start:
        return text
    return text[start : end + 1]


def _parse_completion(raw: str) -> tuple[Any, tuple[str, ...]]:
    """Decode the completion's JSON, repairing it when it does not parse as-is."""
    text = extract_json_text(raw)
    try:
        return json.loads(text), ()
    except json.JSONDecodeError:
        pass

    # Repair everything after the first opener before the closer-bounded span,
    # so a truncated document keeps the tail after its last closer
    unfenced = _unfence(raw)
    start = _first_opener(unfenced)
    if start != -1 and unfenced[start:] != text:
        try:
            return parse_json_with_repair(unfenced[start:])
        except json.JSONDecodeError:
            pass
    return parse_json_with_repair(text)


def validate(raw: Any, response_model: Optional[type[BaseModel]] = None) -> ValidationResult:
    """
    Validate a JSON completion.

    Args:
        raw: Completion text, or an already-decoded dict/list
        response_model: Pydantic model the JSON must satisfy (any JSON
                        accepted when None)

    Returns:
        ValidationResult holding the model instance (or decoded JSON) on success
    """
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return ValidationResult.failure(ValidationErrorKind.EMPTY, "Completion is empty")

    repairs: tuple[str, ...] = ()
    if isinstance(raw, (dict, list)):
        parsed = raw
    else:
        try:
            parsed, repairs = _parse_completion(str(raw))
        except json.JSONDecodeError as e:
            return ValidationResult.failure(ValidationErrorKind.NOT_JSON, str(e))

    if response_model is None:
        return ValidationResult(value=parsed, repairs=repairs)

    try:
        return ValidationResult(value=response_model.model_validate(parsed), repairs=repairs)
    except ValidationError as e:
        return ValidationResult.failure(
            ValidationErrorKind.SCHEMA_MISMATCH,
            f"{e.error_count()} validation errors: {e.errors()[0]['msg']}",
        )


def validate_text(raw: Any) -> ValidationResult:
    """Accept any non-blank text completion."""
    if not isinstance(raw, str) or not raw.strip():
        return ValidationResult.failure(ValidationErrorKind.EMPTY, "Completion is empty")
    return ValidationResult(value=raw.strip())


def validate_embedding(raw: Any, dimensions: Optional[int] = None) -> ValidationResult:
    """
    Check that an embeddings payload is a non-empty vector of finite numbers.

    Args:
        raw: Candidate vector
        dimensions: Expected length, unchecked when None

    Returns:
        ValidationResult holding the vector as a list of floats
    """
    if not isinstance(raw, (list, tuple)) or not raw:
        return ValidationResult.failure(ValidationErrorKind.EMPTY, "Embedding is empty")

    if not all(
        isinstance(v, (int, float)) and not isinstance(v, bool) and math.isfinite(v)
        for v in raw
    ):
        return ValidationResult.failure(
            ValidationErrorKind.SCHEMA_MISMATCH, "Embedding contains non-numeric values"
        )

    if dimensions is not None and len(raw) != dimensions:
        return ValidationResult.failure(
            ValidationErrorKind.SCHEMA_MISMATCH,
            f"Embedding has {len(raw)} dimensions, expected {dimensions}",
        )

    return ValidationResult(value=[float(v) for v in raw])
