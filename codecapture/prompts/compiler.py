"""
Prompt Compiler

Fills a prompt template with a content description, instructions, the JSON
schema of the expected response and the file content.
"""

import json
from functools import lru_cache
from string import Template
from typing import Any, Iterable

from pydantic import BaseModel, TypeAdapter
from pydantic.errors import PydanticUserError

from codecapture.exceptions import PromptCompilationError

FORCE_JSON_FORMAT = (
    "Respond with a single JSON object and nothing else: no explanations before "
    "or after it, no Markdown code fences and never XML. Use double quotes for "
    "every field name and string value, and escape any quote or backslash that "
    "appears inside a string value."
)

SOURCE_SUMMARY_TEMPLATE = """\
Act as a senior developer analyzing the code in an existing application. \
Based on the ${content_desc} shown below in the section marked 'CODE', \
return a JSON response that contains:

${instructions}

The JSON response must follow this JSON schema:
```json
${json_schema}
```

${force_json_format}

CODE:
```
${content}
```
"""


@lru_cache(maxsize=None)
def _schema_for_model(model: type) -> str:
    if isinstance(model, type) and issubclass(model, BaseModel):
        schema = model.model_json_schema()
    else:
        schema = TypeAdapter(model).json_schema()
    return json.dumps(schema, indent=2)


def serialize_schema(schema: Any) -> str:
    """
    Render a response schema as JSON-schema text.

    Args:
        schema: A pydantic model class, any type pydantic can describe, or a
                JSON-schema dict

    Returns:
        Indented JSON-schema document

    Raises:
        PromptCompilationError: If the schema cannot be serialized
    """
    try:
        if isinstance(schema, dict):
            return json.dumps(schema, indent=2)
        return _schema_for_model(schema)
    except (PydanticUserError, TypeError, ValueError) as e:
        raise PromptCompilationError(
            "Response schema cannot be serialized to JSON schema",
            {"schema": repr(schema), "error": str(e)},
        ) from e


def compile_prompt(
    template: str,
    content_desc: str,
    instructions: str | Iterable[str],
    schema: Any,
    content: str,
) -> str:
    """
    Build the final prompt text for one completion call.

    Args:
        template: Template using ${content_desc}, ${instructions},
                  ${force_json_format}, ${json_schema} and ${content}
        content_desc: Short description of what the content is
        instructions: Instruction text, or several joined by blank lines
        schema: Response schema (see serialize_schema)
        content: The data to analyze

    Returns:
        The filled prompt

    Raises:
        PromptCompilationError: If the schema or template is broken
    """
    if not isinstance(instructions, str):
        instructions = "\n\n".join(instructions)

    try:
        return Template(template).substitute(
            content_desc=content_desc,
            instructions=instructions,
            force_json_format=FORCE_JSON_FORMAT,
            json_schema=serialize_schema(schema),
            content=content,
        )
    except (KeyError, ValueError) as e:
        raise PromptCompilationError(
            "Prompt template has an unknown or malformed placeholder",
            {"error": str(e)},
        ) from e
