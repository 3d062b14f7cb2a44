"""
Command interpretation for the adventure shell.

The interpreter turns a raw input line into a dispatched action:
- Tokenizing (quoted segments stay together)
- Resolution (longest-prefix match over names and aliases)
- Suggestions (edit-distance "did you mean")
- Dispatch (player/admin mode gating, handler errors contained)
- Autocomplete (command names and cached entity identifiers)
"""

from __future__ import annotations

from src.interpreter.autocomplete import AutocompleteEngine, cache_key, filter_candidates
from src.interpreter.cache import AutocompleteCache, CacheEntry
from src.interpreter.config import InterpreterConfig
from src.interpreter.dispatcher import Dispatcher
from src.interpreter.fuzzy import FuzzyMatcher, cutoff_for, levenshtein
from src.interpreter.help import HelpSystem
from src.interpreter.history import CommandHistory
from src.interpreter.interpreter import CommandInterpreter
from src.interpreter.models import (
    AutocompleteResult,
    CommandError,
    CommandResult,
    CommandSpec,
    ErrorCode,
    GameContext,
    Handler,
    Mode,
    ParsedCommand,
    normalize_name,
)
from src.interpreter.registry import CommandRegistry, RegistrationConflictError
from src.interpreter.tokenizer import tokenize

__all__ = [
    # Facade
    "CommandInterpreter",
    "InterpreterConfig",
    # Models
    "AutocompleteResult",
    "CommandError",
    "CommandResult",
    "CommandSpec",
    "ErrorCode",
    "GameContext",
    "Handler",
    "Mode",
    "ParsedCommand",
    "normalize_name",
    # Components
    "AutocompleteCache",
    "AutocompleteEngine",
    "CacheEntry",
    "CommandHistory",
    "CommandRegistry",
    "Dispatcher",
    "FuzzyMatcher",
    "HelpSystem",
    "RegistrationConflictError",
    # Helpers
    "cache_key",
    "cutoff_for",
    "filter_candidates",
    "levenshtein",
    "tokenize",
]
