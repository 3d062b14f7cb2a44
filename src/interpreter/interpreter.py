"""
Command Interpreter for the adventure shell.

The interpreter wires together:
- Registry (names, aliases, longest-prefix resolution)
- Fuzzy matcher ("did you mean" suggestions)
- Dispatcher (mode gating, handler invocation)
- Autocomplete engine (Tab completion with a TTL cache)
- History and help

One instance is built at startup and handed to the UI loop.
"""

from __future__ import annotations

import asyncio
import logging

from src.db.interfaces import EntityLookupService
from src.interpreter.autocomplete import AutocompleteEngine
from src.interpreter.cache import AutocompleteCache
from src.interpreter.config import InterpreterConfig
from src.interpreter.dispatcher import Dispatcher
from src.interpreter.fuzzy import FuzzyMatcher
from src.interpreter.help import HelpSystem
from src.interpreter.history import CommandHistory
from src.interpreter.models import (
    AutocompleteResult,
    CommandResult,
    CommandSpec,
    GameContext,
    Mode,
    ParsedCommand,
)
from src.interpreter.registry import CommandRegistry
from src.interpreter.tokenizer import tokenize

logger = logging.getLogger(__name__)


class CommandInterpreter:
    """
    Turns input lines into dispatched, mode-checked commands.

    Submitted lines run one at a time in submission order: while a handler
    is suspended, later submissions wait their turn. Autocomplete requests
    do not wait; they only read the context and the cache.
    """

    def __init__(
        self,
        lookup: EntityLookupService | None = None,
        config: InterpreterConfig | None = None,
        *,
        registry: CommandRegistry | None = None,
        cache: AutocompleteCache | None = None,
    ) -> None:
        self.config = config or InterpreterConfig()
        self.registry = registry or CommandRegistry()
        self.matcher = FuzzyMatcher(
            self.registry,
            limit=self.config.suggestion_limit,
            min_cutoff=self.config.suggestion_min_cutoff,
        )
        self.dispatcher = Dispatcher(
            self.matcher,
            elevate_command=self.config.elevate_command,
            drop_command=self.config.drop_command,
        )
        self.autocomplete = AutocompleteEngine(
            self.registry,
            lookup,
            cache or AutocompleteCache(ttl=self.config.cache_ttl),
        )
        self.history = CommandHistory(self.config.history_size)
        self.help = HelpSystem(self.registry)
        self._lock = asyncio.Lock()

    def register(self, spec: CommandSpec) -> None:
        """Register a command. Raises RegistrationConflictError on collisions."""
        self.registry.register(spec)

    def register_all(self, specs: list[CommandSpec]) -> None:
        """Register a batch of commands, stopping at the first conflict."""
        for spec in specs:
            self.register(spec)

    def parse(self, line: str, mode: Mode) -> ParsedCommand:
        """Resolve a raw line to a command and its arguments."""
        raw = line.strip()
        return self.registry.resolve(tokenize(raw), mode, raw=raw)

    def suggest(self, text: str, mode: Mode, limit: int | None = None) -> list[str]:
        """Fuzzy 'did you mean' candidates for unmatched input."""
        return self.matcher.suggest(text, mode, limit)

    async def execute(self, parsed: ParsedCommand, context: GameContext) -> CommandResult:
        """Run a parsed command. Never raises."""
        return await self.dispatcher.execute(parsed, context)

    async def complete(self, partial: str, context: GameContext) -> AutocompleteResult:
        """Completion candidates for a partial line."""
        return await self.autocomplete.complete(partial, context)

    async def submit(self, line: str, context: GameContext) -> CommandResult:
        """
        Parse and execute a submitted line.

        Submissions are serialized: a line is parsed only after every
        earlier submission finished, so it sees the context they left.
        """
        async with self._lock:
            self.history.add(line.strip())
            mode_before = context.mode
            parsed = self.parse(line, context.mode)
            result = await self.execute(parsed, context)
            if context.mode != mode_before:
                logger.info("Mode changed: %s -> %s", mode_before.value, context.mode.value)
            return result
