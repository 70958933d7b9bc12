"""
Prompt Definitions

One PromptSpec per canonical file type: what the content is, what to
extract, and the response model the completion must satisfy.
"""

from dataclasses import dataclass

from pydantic import BaseModel

from codecapture.ingest.file_types import CanonicalFileType
from codecapture.prompts.schemas import (
    BuildManifestSummary,
    CodeFileSummary,
    FileSummary,
    ScriptSummary,
    SqlFileSummary,
)


@dataclass(frozen=True)
class PromptSpec:
    content_desc: str
    instructions: tuple[str, ...]
    response_model: type[BaseModel]
    has_complex_schema: bool = False


_PURPOSE = "A detailed definition of its purpose in a couple of sentences"
_IMPLEMENTATION = "A description of how it is implemented in a few sentences"

_CODE_INSTRUCTIONS = (
    _PURPOSE,
    _IMPLEMENTATION,
    "The name of its main type, its namespace or package, and its kind "
    "(class, interface, enum, module and so on)",
    "A list of the internal references to other types in the same codebase",
    "A list of the external references to third-party libraries or frameworks",
    "A list of public constants with their name, value and type",
    "A list of public functions or methods with their name, purpose, "
    "parameters and return type",
    "How it integrates with a database, naming the mechanism and the tables used",
    "A list of integration points (REST, SOAP, messaging and so on) it "
    "exposes or consumes",
)


def _code_spec(language: str) -> PromptSpec:
    return PromptSpec(
        content_desc=f"{language} source code",
        instructions=_CODE_INSTRUCTIONS,
        response_model=CodeFileSummary,
        has_complex_schema=True,
    )


def _manifest_spec(build_tool: str) -> PromptSpec:
    return PromptSpec(
        content_desc=f"{build_tool} build configuration",
        instructions=(
            _PURPOSE,
            _IMPLEMENTATION,
            "A list of the declared dependencies with their name, group, "
            "version and scope where present",
        ),
        response_model=BuildManifestSummary,
        has_complex_schema=True,
    )


def _script_spec(kind: str) -> PromptSpec:
    return PromptSpec(
        content_desc=kind,
        instructions=(
            _PURPOSE,
            _IMPLEMENTATION,
            "A list of scheduled or batch jobs it defines with their trigger, "
            "purpose, input resources and output resources",
        ),
        response_model=ScriptSummary,
    )


_DEFAULT_SPEC = PromptSpec(
    content_desc="project file content",
    instructions=(_PURPOSE, _IMPLEMENTATION),
    response_model=FileSummary,
)

PROMPT_SPECS: dict[CanonicalFileType, PromptSpec] = {
    CanonicalFileType.JAVA: _code_spec("JVM"),
    CanonicalFileType.JAVASCRIPT: _code_spec("JavaScript/TypeScript"),
    CanonicalFileType.PYTHON: _code_spec("Python"),
    CanonicalFileType.RUBY: _code_spec("Ruby"),
    CanonicalFileType.CSHARP: _code_spec("C#"),
    CanonicalFileType.C: _code_spec("C"),
    CanonicalFileType.CPP: _code_spec("C++"),
    CanonicalFileType.JSP: _code_spec("JSP"),
    CanonicalFileType.SQL: PromptSpec(
        content_desc="database DDL/DML/SQL code",
        instructions=(
            _PURPOSE,
            _IMPLEMENTATION,
            "A list of the tables it creates or uses",
            "A list of stored procedures with their name, purpose and complexity",
            "A list of triggers it defines",
            "How it integrates with the database, naming the mechanism",
        ),
        response_model=SqlFileSummary,
        has_complex_schema=True,
    ),
    CanonicalFileType.XML: PromptSpec(
        content_desc="XML configuration",
        instructions=(_PURPOSE, _IMPLEMENTATION),
        response_model=FileSummary,
    ),
    CanonicalFileType.MARKDOWN: PromptSpec(
        content_desc="Markdown documentation",
        instructions=(_PURPOSE, _IMPLEMENTATION),
        response_model=FileSummary,
    ),
    CanonicalFileType.MAVEN: _manifest_spec("Maven POM"),
    CanonicalFileType.GRADLE: _manifest_spec("Gradle"),
    CanonicalFileType.ANT: _manifest_spec("Ant"),
    CanonicalFileType.NPM: _manifest_spec("npm package.json"),
    CanonicalFileType.DOTNET_PROJ: _manifest_spec(".NET project"),
    CanonicalFileType.NUGET: _manifest_spec("NuGet"),
    CanonicalFileType.RUBY_BUNDLER: _manifest_spec("Ruby Bundler Gemfile"),
    CanonicalFileType.PYTHON_PIP: _manifest_spec("pip requirements"),
    CanonicalFileType.PYTHON_SETUP: _manifest_spec("Python setup.py"),
    CanonicalFileType.PYTHON_POETRY: _manifest_spec("Python pyproject.toml"),
    CanonicalFileType.SHELL_SCRIPT: _script_spec("shell script"),
    CanonicalFileType.BATCH_SCRIPT: _script_spec("Windows batch script"),
    CanonicalFileType.JCL: _script_spec("mainframe JCL"),
    CanonicalFileType.DEFAULT: _DEFAULT_SPEC,
}


def get_prompt_spec(file_type: CanonicalFileType) -> PromptSpec:
    """Return the PromptSpec for file_type, falling back to the default one."""
    return PROMPT_SPECS.get(file_type, _DEFAULT_SPEC)
