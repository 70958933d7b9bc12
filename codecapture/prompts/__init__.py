"""
Prompt construction: response schemas, per-type definitions and the compiler.
"""

from .compiler import (
    FORCE_JSON_FORMAT,
    SOURCE_SUMMARY_TEMPLATE,
    compile_prompt,
    serialize_schema,
)
from .definitions import PROMPT_SPECS, PromptSpec, get_prompt_spec
from .schemas import FileSummary, PassthroughModel

__all__ = [
    "FORCE_JSON_FORMAT",
    "SOURCE_SUMMARY_TEMPLATE",
    "compile_prompt",
    "serialize_schema",
    "PROMPT_SPECS",
    "PromptSpec",
    "get_prompt_spec",
    "FileSummary",
    "PassthroughModel",
]
