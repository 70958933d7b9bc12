"""
Canonical File Types

Maps a file to one canonical type using an ordered rule list. Exact filename
rules are evaluated before extension rules, and a default rule always
matches last.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import PurePath
from typing import Callable, Optional

from codecapture.exceptions import ClassificationError


class CanonicalFileType(str, Enum):
    """Normalized file categories a source file is captured as."""

    JAVA = "java"
    JAVASCRIPT = "javascript"
    PYTHON = "python"
    RUBY = "ruby"
    CSHARP = "csharp"
    C = "c"
    CPP = "cpp"
    SQL = "sql"
    XML = "xml"
    JSP = "jsp"
    MARKDOWN = "markdown"
    MAVEN = "maven"
    GRADLE = "gradle"
    ANT = "ant"
    NPM = "npm"
    DOTNET_PROJ = "dotnet-proj"
    NUGET = "nuget"
    RUBY_BUNDLER = "ruby-bundler"
    PYTHON_PIP = "python-pip"
    PYTHON_SETUP = "python-setup"
    PYTHON_POETRY = "python-poetry"
    SHELL_SCRIPT = "shell-script"
    BATCH_SCRIPT = "batch-script"
    JCL = "jcl"
    DEFAULT = "default"


# Build manifests and other files whose name says more than their extension
FILENAME_TYPES: dict[str, CanonicalFileType] = {
    "pom.xml": CanonicalFileType.MAVEN,
    "build.gradle": CanonicalFileType.GRADLE,
    "build.gradle.kts": CanonicalFileType.GRADLE,
    "settings.gradle": CanonicalFileType.GRADLE,
    "build.xml": CanonicalFileType.ANT,
    "package.json": CanonicalFileType.NPM,
    "packages.config": CanonicalFileType.NUGET,
    "gemfile": CanonicalFileType.RUBY_BUNDLER,
    "gemfile.lock": CanonicalFileType.RUBY_BUNDLER,
    "requirements.txt": CanonicalFileType.PYTHON_PIP,
    "setup.py": CanonicalFileType.PYTHON_SETUP,
    "pyproject.toml": CanonicalFileType.PYTHON_POETRY,
    "crontab": CanonicalFileType.SHELL_SCRIPT,
    "makefile": CanonicalFileType.SHELL_SCRIPT,
}

EXTENSION_TYPES: dict[str, CanonicalFileType] = {
    "java": CanonicalFileType.JAVA,
    "kt": CanonicalFileType.JAVA,
    "js": CanonicalFileType.JAVASCRIPT,
    "mjs": CanonicalFileType.JAVASCRIPT,
    "jsx": CanonicalFileType.JAVASCRIPT,
    "ts": CanonicalFileType.JAVASCRIPT,
    "tsx": CanonicalFileType.JAVASCRIPT,
    "py": CanonicalFileType.PYTHON,
    "rb": CanonicalFileType.RUBY,
    "cs": CanonicalFileType.CSHARP,
    "c": CanonicalFileType.C,
    "h": CanonicalFileType.C,
    "cpp": CanonicalFileType.CPP,
    "cxx": CanonicalFileType.CPP,
    "cc": CanonicalFileType.CPP,
    "hpp": CanonicalFileType.CPP,
    "hh": CanonicalFileType.CPP,
    "hxx": CanonicalFileType.CPP,
    "sql": CanonicalFileType.SQL,
    "ddl": CanonicalFileType.SQL,
    "xml": CanonicalFileType.XML,
    "jsp": CanonicalFileType.JSP,
    "md": CanonicalFileType.MARKDOWN,
    "markdown": CanonicalFileType.MARKDOWN,
    "csproj": CanonicalFileType.DOTNET_PROJ,
    "vbproj": CanonicalFileType.DOTNET_PROJ,
    "fsproj": CanonicalFileType.DOTNET_PROJ,
    "nuspec": CanonicalFileType.NUGET,
    "sh": CanonicalFileType.SHELL_SCRIPT,
    "bash": CanonicalFileType.SHELL_SCRIPT,
    "ksh": CanonicalFileType.SHELL_SCRIPT,
    "bat": CanonicalFileType.BATCH_SCRIPT,
    "cmd": CanonicalFileType.BATCH_SCRIPT,
    "jcl": CanonicalFileType.JCL,
}


@dataclass(frozen=True)
class FileTypeRule:
    """A classification rule: first rule whose predicate matches wins."""

    name: str
    predicate: Callable[[str, str], bool]
    resolve: Callable[[str, str], CanonicalFileType]


FILE_TYPE_RULES: tuple[FileTypeRule, ...] = (
    FileTypeRule(
        name="filename",
        predicate=lambda filename, _ext: filename in FILENAME_TYPES,
        resolve=lambda filename, _ext: FILENAME_TYPES[filename],
    ),
    FileTypeRule(
        name="extension",
        predicate=lambda _filename, ext: ext in EXTENSION_TYPES,
        resolve=lambda _filename, ext: EXTENSION_TYPES[ext],
    ),
    FileTypeRule(
        name="default",
        predicate=lambda _filename, _ext: True,
        resolve=lambda _filename, _ext: CanonicalFileType.DEFAULT,
    ),
)


def get_file_extension(filepath: str) -> str:
    """Return the lowercase extension of filepath without the leading dot."""
    return PurePath(filepath).suffix.lower().lstrip(".")


def classify(filepath: str, extension: Optional[str] = None) -> CanonicalFileType:
    """
    Resolve a file to its canonical type.

    Args:
        filepath: File path (only the final component is inspected)
        extension: Declared extension, with or without the dot. Derived from
                   filepath when None.

    Returns:
        The canonical type of the first matching rule
    """
    filename = PurePath(filepath).name.lower()
    if extension is None:
        ext = get_file_extension(filepath)
    else:
        ext = extension.lower().lstrip(".")

    for rule in FILE_TYPE_RULES:
        if rule.predicate(filename, ext):
            return rule.resolve(filename, ext)

    # The default rule matches everything, so this means the rules were broken
    raise ClassificationError(f"No file type rule matched {filepath}")
