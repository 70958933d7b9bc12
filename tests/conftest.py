"""
Pytest fixtures for CodeCapture tests.
"""

import inspect
import os
import sys
import tempfile
from pathlib import Path
from typing import Any, Callable, Generator, Optional

import pytest

# Add project root to path for codecapture imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Set test environment
os.environ["CODECAPTURE_DB_PATH"] = "/tmp/codecapture_test_db"

from codecapture.configs.runtime import AdaptationConfig, RetryConfig  # noqa: E402
from codecapture.documents import SourceFileRecord  # noqa: E402
from codecapture.exceptions import PersistenceError  # noqa: E402
from codecapture.llm.provider import LLMProvider  # noqa: E402
from codecapture.llm.retry import RetryStrategy  # noqa: E402
from codecapture.llm.router import LLMRouter  # noqa: E402
from codecapture.llm.stats import LLMExecutionStats  # noqa: E402
from codecapture.llm.types import LLMPurpose, ModelMetadata, RawCompletion  # noqa: E402
from codecapture.storage.sources import SourcesRepository  # noqa: E402

VALID_SUMMARY_JSON = '{"purpose": "Does things", "implementation": "With code"}'


async def no_sleep(_seconds: float) -> None:
    """Retry delay replacement so tests never wait."""
    return None


def completion_model(key: str = "primary", **overrides) -> ModelMetadata:
    values = {
        "key": key,
        "urn": f"{key}-urn",
        "purpose": LLMPurpose.COMPLETIONS,
        "max_total_tokens": 1000,
        "max_completion_tokens": 200,
    }
    values.update(overrides)
    return ModelMetadata(**values)


def embedding_model(**overrides) -> ModelMetadata:
    values = {
        "key": "embeddings",
        "urn": "embed-urn",
        "purpose": LLMPurpose.EMBEDDINGS,
        "max_total_tokens": 500,
        "dimensions": 3,
    }
    values.update(overrides)
    return ModelMetadata(**values)


class FakeProvider(LLMProvider):
    """Provider answering from scripted callables instead of the network.

    complete(model, prompt, options) and embed(model, text) may return a
    value, an awaitable, or an exception instance to raise.
    """

    def __init__(
        self,
        complete: Optional[Callable] = None,
        embed: Optional[Callable] = None,
        embeddings: bool = True,
        config: Optional[dict] = None,
    ):
        super().__init__(config)
        self.complete_fn = complete or (
            lambda model, prompt, options: RawCompletion(
                text=VALID_SUMMARY_JSON, prompt_tokens=10, completion_tokens=5
            )
        )
        self.embed_fn = embed or (lambda model, text: [0.1, 0.2, 0.3])
        self._embeddings = embeddings
        self.prompts: list[str] = []
        self.embedded: list[str] = []
        self.closed = False

    @property
    def name(self) -> str:
        return "fake"

    @property
    def supports_embeddings(self) -> bool:
        return self._embeddings

    def is_available(self) -> bool:
        return True

    @staticmethod
    async def _resolve(result: Any) -> Any:
        if inspect.isawaitable(result):
            result = await result
        if isinstance(result, BaseException):
            raise result
        return result

    async def _complete(self, model, prompt, options):
        self.prompts.append(prompt)
        return await self._resolve(self.complete_fn(model, prompt, options))

    async def _embed(self, model, text):
        self.embedded.append(text)
        return await self._resolve(self.embed_fn(model, text))

    async def aclose(self) -> None:
        self.closed = True


class InMemorySourcesRepository(SourcesRepository):
    """Dict-backed content store; fail_on names filepaths whose write fails."""

    def __init__(self, fail_on: Optional[set[str]] = None):
        self.records: dict[tuple[str, str], SourceFileRecord] = {}
        self.upserted: list[str] = []
        self.fail_on = fail_on or set()

    async def upsert(self, record: SourceFileRecord) -> None:
        if record.filepath in self.fail_on:
            raise PersistenceError(f"Failed to persist {record.filepath}")
        self.records[(record.project_name, record.filepath)] = record
        self.upserted.append(record.filepath)

    async def list_captured_paths(self, project_name: str) -> set[str]:
        return {path for project, path in self.records if project == project_name}

    async def delete_all_for_project(self, project_name: str) -> None:
        for key in [k for k in self.records if k[0] == project_name]:
            del self.records[key]

    async def get_record(self, project_name: str, filepath: str) -> Optional[SourceFileRecord]:
        return self.records.get((project_name, filepath))

    async def count_for_project(self, project_name: str) -> int:
        return len(await self.list_captured_paths(project_name))


def make_router(
    provider: Optional[FakeProvider] = None,
    embedding_provider: Optional[FakeProvider] = None,
    models: Optional[list[ModelMetadata]] = None,
    max_retry_attempts: int = 3,
    stats: Optional[LLMExecutionStats] = None,
) -> LLMRouter:
    provider = provider or FakeProvider()
    stats = stats or LLMExecutionStats()
    retry = RetryStrategy(
        stats,
        RetryConfig(max_retry_attempts, min_retry_delay_millis=0, max_retry_delay_millis=0),
        AdaptationConfig(),
        sleep=no_sleep,
    )
    return LLMRouter(
        provider,
        models or [completion_model()],
        embedding_provider or provider,
        embedding_model(),
        retry,
        stats,
    )


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_chroma_client():
    """Create a temporary ChromaDB client for testing."""
    import chromadb
    from chromadb.config import Settings

    with tempfile.TemporaryDirectory() as tmpdir:
        client = chromadb.PersistentClient(
            path=tmpdir,
            settings=Settings(anonymized_telemetry=False),
        )
        yield client


@pytest.fixture
def stats() -> LLMExecutionStats:
    return LLMExecutionStats()


@pytest.fixture
def repository() -> InMemorySourcesRepository:
    return InMemorySourcesRepository()


@pytest.fixture
def sample_codebase(temp_dir: Path) -> Path:
    """A small codebase with code, a manifest, a binary and an ignored folder."""
    (temp_dir / "src").mkdir()
    (temp_dir / "src" / "App.java").write_text(
        "public class App {\n    public static void main(String[] a) {}\n}\n"
    )
    (temp_dir / "schema.sql").write_text("CREATE TABLE users (id INT PRIMARY KEY);\n")
    (temp_dir / "pom.xml").write_text("<project><artifactId>demo</artifactId></project>\n")
    (temp_dir / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n")
    (temp_dir / "node_modules").mkdir()
    (temp_dir / "node_modules" / "lib.js").write_text("module.exports = {};\n")
    return temp_dir
