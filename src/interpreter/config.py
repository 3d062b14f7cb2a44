"""
Interpreter configuration.

Defaults suit interactive play; every value can be overridden from the
environment:
    ADVENTURE_CACHE_TTL: Seconds an autocomplete list stays fresh (default: 5)
    ADVENTURE_SUGGESTION_LIMIT: Max "did you mean" suggestions (default: 3)
    ADVENTURE_SUGGESTION_MIN_CUTOFF: Smallest edit distance cutoff (default: 2)
    ADVENTURE_HISTORY_SIZE: Lines kept in command history (default: 50)
    ADVENTURE_ELEVATE_COMMAND: Command named in wrong-mode hints (default: sudo)
    ADVENTURE_DROP_COMMAND: Command named in wrong-mode hints (default: exit)
"""

from __future__ import annotations

import os

from pydantic import BaseModel, Field

ENV_PREFIX = "ADVENTURE_"


class InterpreterConfig(BaseModel):
    """Interpreter configuration."""

    # Autocomplete
    cache_ttl: float = Field(default=5.0, gt=0)

    # Suggestions
    suggestion_limit: int = Field(default=3, ge=0)
    suggestion_min_cutoff: int = Field(default=2, ge=0)

    # History
    history_size: int = Field(default=50, ge=1)

    # Mode hints
    elevate_command: str = "sudo"
    drop_command: str = "exit"

    @classmethod
    def from_env(cls, **overrides: object) -> InterpreterConfig:
        """Build a config from ADVENTURE_* environment variables."""
        values: dict[str, object] = {}
        for name in cls.model_fields:
            raw = os.getenv(f"{ENV_PREFIX}{name.upper()}")
            if raw is not None and raw != "":
                values[name] = raw
        values.update(overrides)
        return cls.model_validate(values)
