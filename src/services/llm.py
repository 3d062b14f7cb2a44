"""
LLM Service for AI-powered characters.

Forwards character conversations to a local inference server (LM Studio)
through its OpenAI-compatible API.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass, field
from typing import Protocol

from openai import AsyncOpenAI

from src.models import Character, Location

logger = logging.getLogger(__name__)


class LLMProvider(Protocol):
    """
    Interface for LLM providers.

    Supports any OpenAI-compatible API (LM Studio, Ollama, OpenAI, etc.)
    """

    async def complete(
        self,
        messages: list[dict[str, str]],
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        """
        Generate a completion from messages.

        Args:
            messages: List of {"role": "user"|"assistant"|"system", "content": str}
            max_tokens: Maximum tokens in response (None: provider default)
            temperature: Randomness, 0.0 = deterministic (None: provider default)

        Returns:
            Generated text response
        """
        ...

    @property
    def model_name(self) -> str:
        """The model being used."""
        ...

    @property
    def is_available(self) -> bool:
        """Whether the provider is configured and ready."""
        ...


def _normalize_base_url(url: str) -> str:
    if not url.startswith(("http://", "https://")):
        url = f"http://{url}"
    url = url.rstrip("/")
    if not url.endswith("/v1"):
        url = f"{url}/v1"
    return url


@dataclass
class LMStudioProvider:
    """
    Local LM Studio provider using the OpenAI-compatible API.

    Configuration via environment variables:
        LMSTUDIO_BASE_URL: Server address, e.g. http://localhost:1234
            (no default; the provider is unavailable while it is unset)
        LMSTUDIO_MODEL: Model to use (default: the server's loaded model)
        LMSTUDIO_API_KEY: Key sent to the server (LM Studio ignores it)
        LMSTUDIO_TEMPERATURE: Default sampling temperature (default: 0.8)
        LMSTUDIO_MAX_TOKENS: Default response length (default: 150)
    """

    base_url: str | None = None
    model: str = "default"
    api_key: str = "lm-studio"
    temperature: float = 0.8
    max_tokens: int = 150

    _client: AsyncOpenAI | None = field(init=False, default=None)

    def __post_init__(self) -> None:
        """Initialize from environment if not provided."""
        if self.base_url is None:
            self.base_url = os.getenv("LMSTUDIO_BASE_URL")

        if os.getenv("LMSTUDIO_MODEL"):
            self.model = os.getenv("LMSTUDIO_MODEL", self.model)

        if os.getenv("LMSTUDIO_API_KEY"):
            self.api_key = os.getenv("LMSTUDIO_API_KEY", self.api_key)

        if os.getenv("LMSTUDIO_TEMPERATURE"):
            self.temperature = float(os.getenv("LMSTUDIO_TEMPERATURE", self.temperature))

        if os.getenv("LMSTUDIO_MAX_TOKENS"):
            self.max_tokens = int(os.getenv("LMSTUDIO_MAX_TOKENS", self.max_tokens))

        # Only talk to a server that was explicitly configured
        if self.base_url:
            self._client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=_normalize_base_url(self.base_url),
            )

    @property
    def model_name(self) -> str:
        """The model being used."""
        return self.model

    @property
    def is_available(self) -> bool:
        """Whether the provider is configured and ready."""
        return self._client is not None

    async def complete(
        self,
        messages: list[dict[str, str]],
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        """
        Generate a completion from messages.

        Raises:
            RuntimeError: If provider is not configured (no base URL)
        """
        if self._client is None:
            raise RuntimeError(
                "LM Studio provider not configured. Set LMSTUDIO_BASE_URL environment variable."
            )

        # Retry up to 3 times for empty responses (common with small local models)
        content = ""
        for attempt in range(3):
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=messages,  # type: ignore[arg-type]
                max_tokens=max_tokens or self.max_tokens,
                temperature=self.temperature if temperature is None else temperature,
            )

            content = response.choices[0].message.content or ""
            if content.strip():
                return content

            if attempt < 2:
                await asyncio.sleep(2.0**attempt)

        return content


@dataclass
class MockLLMProvider:
    """
    Mock LLM provider for testing and offline play.

    Returns template-based responses without making API calls.
    """

    model: str = "mock"
    responses: dict[str, str] = field(default_factory=dict)

    @property
    def model_name(self) -> str:
        """The model being used."""
        return self.model

    @property
    def is_available(self) -> bool:
        """Mock provider is always available."""
        return True

    async def complete(
        self,
        messages: list[dict[str, str]],
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        """Return a mock response."""
        if messages:
            last_user_msg = next(
                (m["content"] for m in reversed(messages) if m["role"] == "user"),
                "",
            )
            if last_user_msg in self.responses:
                return self.responses[last_user_msg]

        return "[Mock LLM response]"

    def set_response(self, trigger: str, response: str) -> None:
        """Set a custom response for a specific input."""
        self.responses[trigger] = response


@dataclass
class LLMService:
    """
    High-level LLM service for character conversations.

    Builds the character's system prompt, keeps per-character
    conversation history and cleans replies for terminal display.
    """

    provider: LLMProvider
    history_limit: int = 10
    _conversations: dict[str, list[dict[str, str]]] = field(init=False, default_factory=dict)

    @property
    def is_available(self) -> bool:
        """Whether LLM features are available."""
        return self.provider.is_available

    def build_system_prompt(self, character: Character, location: Location | None) -> str:
        """System prompt describing who the character is and where they are."""
        personality = character.personality or "a helpful character"
        prompt = f"You are {character.name}, {personality}."
        if location is not None:
            others = [c.name for c in location.characters if c.id != character.id]
            prompt += f"\n\nYou are in {location.name}. {location.description}"
            if others:
                prompt += f"\nAlso here: {', '.join(others)}."
            if location.items:
                prompt += f"\nVisible items: {', '.join(i.name for i in location.items)}."
            if location.exits:
                prompt += f"\nExits: {', '.join(location.exits)}."
        prompt += (
            "\n\nStay in character. Keep responses to 1-3 sentences."
            " Do not mention being an AI."
        )
        return prompt

    async def chat(
        self,
        character: Character,
        message: str,
        location: Location | None = None,
    ) -> str:
        """
        Send a player message to a character and return the reply.

        Args:
            character: The AI-powered character being addressed
            message: What the player said
            location: Where the conversation happens (adds scene context)

        Returns:
            The character's reply, sanitized for the terminal
        """
        history = self._conversations.setdefault(character.id, [])
        messages = [
            {"role": "system", "content": self.build_system_prompt(character, location)},
            *history,
            {"role": "user", "content": message},
        ]

        reply = sanitize_response(
            await self.provider.complete(
                messages=messages,
                max_tokens=character.ai_max_tokens,
                temperature=character.ai_temperature,
            )
        )

        history.extend(
            [{"role": "user", "content": message}, {"role": "assistant", "content": reply}]
        )
        del history[: max(0, len(history) - self.history_limit)]
        return reply

    def end_conversation(self, character_id: str) -> None:
        """Forget the history with one character."""
        self._conversations.pop(character_id, None)


def sanitize_response(text: str) -> str:
    """Strip wrapping quotes and collapse whitespace for terminal display."""
    text = " ".join(text.split())
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'":
        text = text[1:-1].strip()
    return text


def create_llm_service(
    provider_type: str = "lmstudio",
    **kwargs,
) -> LLMService:
    """
    Factory function to create an LLM service.

    An LM Studio provider with no server configured falls back to the
    mock provider, so AI characters still answer offline.

    Args:
        provider_type: Type of provider ("lmstudio", "mock")
        **kwargs: Provider-specific configuration

    Returns:
        Configured LLMService

    Example:
        # Auto-configure from environment
        service = create_llm_service()

        # Mock for testing
        service = create_llm_service(provider_type="mock")
    """
    provider: LLMProvider
    if provider_type == "mock":
        provider = MockLLMProvider(**kwargs)
    elif provider_type == "lmstudio":
        provider = LMStudioProvider(**kwargs)
        if not provider.is_available:
            logger.info("LMSTUDIO_BASE_URL not set, using mock LLM provider")
            provider = MockLLMProvider()
    else:
        raise ValueError(f"Unknown provider type: {provider_type}")

    return LLMService(provider=provider)
