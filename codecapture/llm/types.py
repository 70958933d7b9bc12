"""
LLM Types

Statuses, model metadata and the response record shared by providers, the
retry strategy and the router.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel


class LLMResponseStatus(str, Enum):
    """Classified outcome of one provider call."""

    SUCCESS = "success"
    OVERLOADED = "overloaded"  # rate limited, busy or timed out
    INVALID = "invalid"  # answered, but the payload failed validation
    EXCEEDED = "exceeded"  # prompt or completion hit a token limit
    ERRORED = "errored"  # any other provider failure


class LLMPurpose(str, Enum):
    COMPLETIONS = "completions"
    EMBEDDINGS = "embeddings"


class LLMOutputFormat(str, Enum):
    JSON = "json"
    TEXT = "text"


@dataclass(frozen=True)
class ModelMetadata:
    """Static limits of a configured model."""

    key: str
    urn: str
    purpose: LLMPurpose
    max_total_tokens: int
    max_completion_tokens: Optional[int] = None
    dimensions: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict, purpose: LLMPurpose) -> "ModelMetadata":
        return cls(
            key=data["key"],
            urn=data["urn"],
            purpose=purpose,
            max_total_tokens=int(data["max_total_tokens"]),
            max_completion_tokens=(
                int(data["max_completion_tokens"])
                if data.get("max_completion_tokens") is not None
                else None
            ),
            dimensions=int(data["dimensions"]) if data.get("dimensions") is not None else None,
        )


@dataclass(frozen=True)
class TokensUsage:
    prompt_tokens: int
    completion_tokens: int
    max_total_tokens: int


@dataclass(frozen=True)
class CompletionOptions:
    """How a completion should be requested and validated."""

    output_format: LLMOutputFormat = LLMOutputFormat.JSON
    response_model: Optional[type[BaseModel]] = None
    # Set for schemas that backends' structured-output modes reject or mangle
    has_complex_schema: bool = False

    def native_schema(self) -> Optional[dict]:
        """JSON schema to hand the backend, or None to fall back to plain JSON mode."""
        if self.output_format != LLMOutputFormat.JSON:
            return None
        if self.response_model is None or self.has_complex_schema:
            return None
        return self.response_model.model_json_schema()


@dataclass(frozen=True)
class LLMContext:
    """Identifies a call in logs and statistics."""

    resource: str
    purpose: LLMPurpose
    model_key: str = ""


@dataclass(frozen=True)
class RawCompletion:
    """Unclassified completion as returned by a backend."""

    text: str
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    incomplete: bool = False


@dataclass(frozen=True)
class LLMResponse:
    status: LLMResponseStatus
    model_key: str
    data: Any = None
    tokens_usage: Optional[TokensUsage] = None
    error: Optional[str] = None
    # JSON sanitizer steps applied to a successful completion
    repairs: tuple[str, ...] = ()

    @property
    def is_success(self) -> bool:
        return self.status == LLMResponseStatus.SUCCESS
