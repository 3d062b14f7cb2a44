"""
Tests for the LLM service used by AI-powered characters.
"""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from src.cli.repl import GameREPL
from src.interpreter import InterpreterConfig
from src.models import Character, Item, Location
from src.services.llm import (
    LLMService,
    LMStudioProvider,
    MockLLMProvider,
    create_llm_service,
    sanitize_response,
)


@pytest.fixture
def sage() -> Character:
    return Character(
        id="sage",
        name="Ancient Sage",
        is_ai_powered=True,
        personality="a cryptic hermit",
    )


@pytest.fixture
def forest(sage: Character) -> Location:
    return Location(
        id="forest-path",
        name="Tickwood Forest Path",
        description="A winding trail.",
        exits={"south": "tavern"},
        characters=[sage],
        items=[Item(id="torch", name="Unlit torch")],
    )


# =============================================================================
# Mock Provider Tests
# =============================================================================


class TestMockLLMProvider:
    """Tests for MockLLMProvider."""

    @pytest.mark.asyncio
    async def test_complete_basic(self) -> None:
        """Test basic completion returns mock response."""
        provider = MockLLMProvider()
        messages = [{"role": "user", "content": "Hello"}]
        response = await provider.complete(messages)
        assert response == "[Mock LLM response]"

    @pytest.mark.asyncio
    async def test_complete_with_custom_response(self) -> None:
        """Test custom response for specific input."""
        provider = MockLLMProvider()
        provider.set_response("Hello", "Hi there!")

        messages = [{"role": "user", "content": "Hello"}]
        response = await provider.complete(messages)
        assert response == "Hi there!"

    def test_is_available(self) -> None:
        """Test mock provider is always available."""
        provider = MockLLMProvider()
        assert provider.is_available is True

    def test_model_name(self) -> None:
        """Test model name property."""
        provider = MockLLMProvider()
        assert provider.model_name == "mock"


# =============================================================================
# LM Studio Provider Tests
# =============================================================================


class TestLMStudioProvider:
    """Tests for LMStudioProvider."""

    @patch.dict(os.environ, {}, clear=True)
    def test_not_available_without_base_url(self) -> None:
        """Test provider is not available when no server is configured."""
        provider = LMStudioProvider()
        assert provider.is_available is False

    @patch.dict(os.environ, {}, clear=True)
    def test_with_base_url(self) -> None:
        """Test provider is available with an explicit base URL."""
        provider = LMStudioProvider(base_url="localhost:1234")
        assert provider.is_available is True
        assert provider.model_name == "default"

    @patch.dict(
        os.environ,
        {
            "LMSTUDIO_BASE_URL": "http://127.0.0.1:1234",
            "LMSTUDIO_MODEL": "qwen2.5-7b-instruct",
            "LMSTUDIO_MAX_TOKENS": "64",
        },
        clear=True,
    )
    def test_env_configuration(self) -> None:
        """Test configuration from environment variables."""
        provider = LMStudioProvider()
        assert provider.is_available is True
        assert provider.model_name == "qwen2.5-7b-instruct"
        assert provider.max_tokens == 64

    @pytest.mark.asyncio
    async def test_complete_without_client_raises(self) -> None:
        """Test that complete raises without client configured."""
        with patch.dict(os.environ, {}, clear=True):
            provider = LMStudioProvider()
        messages = [{"role": "user", "content": "Hello"}]

        with pytest.raises(RuntimeError, match="not configured"):
            await provider.complete(messages)


# =============================================================================
# LLM Service Tests
# =============================================================================


class TestLLMService:
    """Tests for LLMService."""

    @pytest.mark.asyncio
    async def test_chat_basic(self, sage: Character, forest: Location) -> None:
        """Test a basic exchange with the mock provider."""
        service = LLMService(provider=MockLLMProvider())
        reply = await service.chat(sage, "Hello", forest)
        assert reply == "[Mock LLM response]"

    @pytest.mark.asyncio
    async def test_chat_keeps_history(self, sage: Character) -> None:
        """Test history is sent with the next message and bounded."""
        seen: list[list[dict[str, str]]] = []

        class RecordingProvider(MockLLMProvider):
            async def complete(self, messages, max_tokens=None, temperature=None) -> str:
                seen.append(list(messages))
                return "Riddles."

        service = LLMService(provider=RecordingProvider(), history_limit=2)
        await service.chat(sage, "first")
        await service.chat(sage, "second")
        await service.chat(sage, "third")

        # system + previous exchange (2 messages) + new message
        assert [m["content"] for m in seen[-1][1:]] == ["second", "Riddles.", "third"]

    @pytest.mark.asyncio
    async def test_end_conversation(self, sage: Character) -> None:
        seen: list[int] = []

        class CountingProvider(MockLLMProvider):
            async def complete(self, messages, max_tokens=None, temperature=None) -> str:
                seen.append(len(messages))
                return "ok"

        service = LLMService(provider=CountingProvider())
        await service.chat(sage, "hi")
        service.end_conversation(sage.id)
        await service.chat(sage, "hi again")
        assert seen == [2, 2]

    @pytest.mark.asyncio
    async def test_chat_uses_character_ai_config(self, sage: Character) -> None:
        """Test per-character sampling settings reach the provider."""
        seen: list[tuple[int | None, float | None]] = []

        class RecordingProvider(MockLLMProvider):
            async def complete(self, messages, max_tokens=None, temperature=None) -> str:
                seen.append((max_tokens, temperature))
                return "ok"

        service = LLMService(provider=RecordingProvider())
        await service.chat(sage, "hi")
        sage.ai_temperature = 0.2
        sage.ai_max_tokens = 40
        await service.chat(sage, "hi again")
        assert seen == [(None, None), (40, 0.2)]

    def test_system_prompt_describes_scene(self, sage: Character, forest: Location) -> None:
        prompt = LLMService(provider=MockLLMProvider()).build_system_prompt(sage, forest)
        assert prompt.startswith("You are Ancient Sage, a cryptic hermit.")
        assert "Tickwood Forest Path" in prompt
        assert "Unlit torch" in prompt
        assert "Exits: south." in prompt

    def test_is_available(self) -> None:
        """Test availability check delegates to provider."""
        service = LLMService(provider=MockLLMProvider())
        assert service.is_available is True


class TestHelpers:
    """Tests for module helpers."""

    def test_sanitize_response(self) -> None:
        assert sanitize_response('  "Beware   the\ncrypt."  ') == "Beware the crypt."
        assert sanitize_response("plain") == "plain"

    def test_factory(self) -> None:
        assert isinstance(create_llm_service("mock").provider, MockLLMProvider)
        with pytest.raises(ValueError, match="Unknown provider type"):
            create_llm_service("carrier-pigeon")

    @patch.dict(os.environ, {}, clear=True)
    def test_factory_falls_back_to_mock_without_server(self) -> None:
        service = create_llm_service()
        assert isinstance(service.provider, MockLLMProvider)
        assert service.is_available is True

    @patch.dict(os.environ, {"LMSTUDIO_BASE_URL": "localhost:1234"}, clear=True)
    def test_factory_uses_configured_server(self) -> None:
        assert isinstance(create_llm_service().provider, LMStudioProvider)

    @pytest.mark.asyncio
    async def test_offline_chat_through_shell(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            repl = GameREPL(config=InterpreterConfig(), llm=create_llm_service())
        for line in ("load demo-adventure", "move north"):
            await repl.interpreter.submit(line, repl.context)

        result = await repl.interpreter.submit("chat sage hello", repl.context)
        assert result.output == ["Ancient Sage: [Mock LLM response]"]
