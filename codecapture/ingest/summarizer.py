"""
File Summarizer

Builds the per-type prompt for a file and asks the router for a validated
summary. Failure is returned as data so one file never aborts a batch.
"""

from dataclasses import dataclass
from typing import Any, Optional

from pydantic import BaseModel

from codecapture.configs import get_logger
from codecapture.exceptions import BadResponseContentError
from codecapture.ingest.file_types import CanonicalFileType
from codecapture.llm.router import LLMRouter
from codecapture.llm.types import CompletionOptions, LLMOutputFormat
from codecapture.prompts.compiler import SOURCE_SUMMARY_TEMPLATE, compile_prompt
from codecapture.prompts.definitions import get_prompt_spec

logger = get_logger("ingest.summarizer")


@dataclass(frozen=True)
class SummaryResult:
    summary: Optional[dict[str, Any]] = None
    error: Optional[str] = None
    model_key: str = ""

    @property
    def ok(self) -> bool:
        return self.summary is not None


def _to_summary_dict(data: Any) -> dict[str, Any]:
    if isinstance(data, BaseModel):
        return data.model_dump(by_alias=True, exclude_none=True)
    if isinstance(data, dict):
        return data
    raise BadResponseContentError(
        "Summary payload is not a JSON object", {"type": type(data).__name__}
    )


class FileSummarizer:
    def __init__(self, router: LLMRouter):
        self._router = router

    async def summarize(
        self,
        filepath: str,
        file_type: CanonicalFileType,
        content: str,
    ) -> SummaryResult:
        """
        Summarize one file.

        Args:
            filepath: Project-relative path (for logs)
            file_type: Canonical type selecting the prompt definition
            content: Trimmed file content

        Returns:
            SummaryResult with either the summary dict or an error message

        Raises:
            PromptCompilationError: If the prompt definition is broken
        """
        spec = get_prompt_spec(file_type)
        prompt = compile_prompt(
            SOURCE_SUMMARY_TEMPLATE,
            spec.content_desc,
            spec.instructions,
            spec.response_model,
            content,
        )
        options = CompletionOptions(
            output_format=LLMOutputFormat.JSON,
            response_model=spec.response_model,
            has_complex_schema=spec.has_complex_schema,
        )

        response = await self._router.execute_completion(filepath, prompt, options)
        if response is None:
            return SummaryResult(error="No valid summary was returned by any completion model")

        try:
            return SummaryResult(summary=_to_summary_dict(response.data), model_key=response.model_key)
        except BadResponseContentError as e:
            logger.warning(f"{filepath}: {e}")
            return SummaryResult(error=str(e), model_key=response.model_key)
