"""
Tests for the LLM router and its factory
"""

import pytest

from codecapture.configs.runtime import DEFAULT_CONFIG, CaptureSettings
from codecapture.exceptions import ConfigurationError, MissingConfigError
from codecapture.llm import create_provider, get_router
from codecapture.llm.anthropic_provider import AnthropicProvider
from codecapture.llm.ollama_provider import OllamaProvider
from codecapture.llm.openrouter_provider import OpenRouterProvider
from codecapture.llm.types import CompletionOptions, RawCompletion
from codecapture.prompts.schemas import FileSummary

from conftest import VALID_SUMMARY_JSON, FakeProvider, completion_model, make_router


def _default_llm_section() -> dict:
    return dict(DEFAULT_CONFIG["llm"])


def answers_by_model(table):
    """complete() answering per model key."""

    def complete(model, prompt, options):
        return table[model.key]

    return complete


class ContextTooLong(Exception):
    pass


class ContextLimitedProvider(FakeProvider):
    """FakeProvider treating ContextTooLong as a token-limit error."""

    def is_token_limit_exceeded(self, error: Exception) -> bool:
        return isinstance(error, ContextTooLong)



class TestCompletionRouting:
    """Tests for execute_completion across models."""

    @pytest.mark.asyncio
    async def test_first_model_success(self):
        """Test a good first model is used without switching."""
        router = make_router()
        response = await router.execute_completion(
            "a.py", "prompt", CompletionOptions(response_model=FileSummary)
        )
        assert response.is_success
        assert response.model_key == "primary"
        assert router.stats.get("success") == 1
        assert router.stats.get("switch") == 0

    @pytest.mark.asyncio
    async def test_falls_back_to_next_model(self):
        """Test exhausting the first model switches to the second."""
        provider = FakeProvider(
            complete=answers_by_model(
                {
                    "primary": RawCompletion(text="garbage"),
                    "secondary": RawCompletion(text=VALID_SUMMARY_JSON),
                }
            )
        )
        router = make_router(
            provider, models=[completion_model("primary"), completion_model("secondary")]
        )

        response = await router.execute_completion("a.py", "prompt")

        assert response.model_key == "secondary"
        assert router.stats.get("hopeful_retry") == 3
        assert router.stats.get("switch") == 1
        assert router.stats.get("success") == 1

    @pytest.mark.asyncio
    async def test_errored_model_falls_back(self):
        """Test a terminal error on one model still tries the next."""
        provider = FakeProvider(
            complete=answers_by_model(
                {
                    "primary": RuntimeError("bad model"),
                    "secondary": RawCompletion(text=VALID_SUMMARY_JSON),
                }
            )
        )
        router = make_router(
            provider, models=[completion_model("primary"), completion_model("secondary")]
        )

        response = await router.execute_completion("a.py", "prompt")

        assert response.model_key == "secondary"
        assert len(provider.prompts) == 2

    @pytest.mark.asyncio
    async def test_all_models_fail(self):
        """Test None is returned and a failure recorded when nothing works."""
        provider = FakeProvider(complete=lambda m, p, o: RawCompletion(text="garbage"))
        router = make_router(provider, max_retry_attempts=2)

        assert await router.execute_completion("a.py", "prompt") is None
        assert router.stats.get("failure") == 1
        assert len(provider.prompts) == 2

    @pytest.mark.asyncio
    async def test_token_limit_crops_and_retries(self):
        """Test an oversized prompt is cropped before the next attempt."""
        answers = iter(
            [
                RawCompletion(text="", prompt_tokens=1900, completion_tokens=0, incomplete=True),
                RawCompletion(text=VALID_SUMMARY_JSON),
            ]
        )
        provider = FakeProvider(complete=lambda m, p, o: next(answers))
        router = make_router(provider)

        response = await router.execute_completion("a.py", "x" * 1000)

        assert response.is_success
        assert router.stats.get("crop") == 1
        assert len(provider.prompts[1]) < len(provider.prompts[0])

    @pytest.mark.asyncio
    async def test_repaired_json_is_counted(self):
        """Test a summary that needed JSON repair still succeeds and is counted."""
        sloppy = VALID_SUMMARY_JSON.rstrip().rstrip("}") + ",}"
        provider = FakeProvider(complete=lambda m, p, o: RawCompletion(text=sloppy))
        router = make_router(provider)

        response = await router.execute_completion(
            "a.py", "prompt", CompletionOptions(response_model=FileSummary)
        )

        assert response.is_success
        assert "remove_trailing_commas" in response.repairs
        assert router.stats.get("json_mutated") == 1
        assert router.stats.get("hopeful_retry") == 0

    @pytest.mark.asyncio
    async def test_clean_json_is_not_counted_as_repaired(self):
        """Test well-formed output leaves json_mutated at zero."""
        router = make_router()
        await router.execute_completion("a.py", "prompt")
        assert router.stats.get("json_mutated") == 0



class TestEmbeddings:
    """Tests for generate_embeddings."""

    @pytest.mark.asyncio
    async def test_vector_returned(self):
        """Test the validated vector is returned."""
        router = make_router()
        assert await router.generate_embeddings("a.py", "content") == [0.1, 0.2, 0.3]

    @pytest.mark.asyncio
    async def test_long_content_cropped(self):
        """Test input is cropped to the embedding model's context."""
        provider = FakeProvider()
        router = make_router(provider)

        await router.generate_embeddings("a.py", "z" * 10_000)

        # 500 tokens at 4 chars per token
        assert len(provider.embedded[0]) == 2000

    @pytest.mark.asyncio
    async def test_failure_returns_none(self):
        """Test a malformed vector is not retried and yields None."""
        provider = FakeProvider(embed=lambda m, t: ["not", "numbers"])
        router = make_router(provider, max_retry_attempts=2)

        assert await router.generate_embeddings("a.py", "content") is None
        assert router.stats.get("embedding_failure") == 1
        assert router.stats.get("hopeful_retry") == 0
        assert len(provider.embedded) == 1

    @pytest.mark.asyncio
    async def test_token_limit_crops_embedding_input(self):
        """Test an embedder rejecting long input gets a shorter prefix."""

        def embed(model, text):
            if len(text) > 300:
                return ContextTooLong("input too long for context")
            return [0.1, 0.2, 0.3]

        provider = ContextLimitedProvider(embed=embed)
        router = make_router(provider)
        content = "y" * 1000

        assert await router.generate_embeddings("a.py", content) == [0.1, 0.2, 0.3]
        assert router.stats.get("crop") >= 1
        assert router.stats.get("embedding_failure") == 0
        assert all(content.startswith(text) for text in provider.embedded)
        assert len(provider.embedded[-1]) <= 300

    def test_embedding_provider_must_support_embeddings(self):
        """Test a completion-only provider cannot be the embedder."""
        with pytest.raises(ConfigurationError):
            make_router(FakeProvider(), embedding_provider=FakeProvider(embeddings=False))

    @pytest.mark.asyncio
    async def test_close_closes_each_provider_once(self):
        """Test close() reaches both providers."""
        completer, embedder = FakeProvider(), FakeProvider()
        router = make_router(completer, embedding_provider=embedder)
        await router.close()
        assert completer.closed and embedder.closed


class TestFactory:
    """Tests for create_provider and get_router."""

    def test_create_provider(self):
        """Test provider names map to their classes."""
        assert isinstance(create_provider("anthropic", {}), AnthropicProvider)
        assert isinstance(create_provider("ollama", {}), OllamaProvider)
        assert isinstance(create_provider("openrouter", {}), OpenRouterProvider)
        with pytest.raises(ConfigurationError):
            create_provider("nope", {})

    def test_get_router_from_defaults(self):
        """Test the default config describes a usable router."""
        settings = CaptureSettings(llm=_default_llm_section())
        router = get_router(
            settings, completion_provider=FakeProvider(), embedding_provider=FakeProvider()
        )
        assert router.completion_model_keys == ["primary"]
        assert router.embedding_model_key == "embeddings"

    def test_missing_models(self):
        """Test an empty llm section is rejected."""
        with pytest.raises(MissingConfigError):
            get_router(CaptureSettings(llm={}), completion_provider=FakeProvider())

    def test_shared_provider_for_embeddings(self):
        """Test the completion provider is reused when names match."""
        llm = _default_llm_section()
        llm["embedding_provider"] = "fake"
        provider = FakeProvider()
        router = get_router(CaptureSettings(llm=llm), completion_provider=provider)
        assert "embeddings: fake" in router.describe()
