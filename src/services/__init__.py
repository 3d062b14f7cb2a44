"""
Service layer for the adventure shell.

Services wrap external collaborators that command handlers call into.
"""

from __future__ import annotations

from src.services.llm import (
    LLMProvider,
    LLMService,
    LMStudioProvider,
    MockLLMProvider,
    create_llm_service,
)

__all__ = [
    "LLMProvider",
    "LLMService",
    "LMStudioProvider",
    "MockLLMProvider",
    "create_llm_service",
]
