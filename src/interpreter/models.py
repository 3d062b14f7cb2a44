"""
Interpreter Data Models.

Defines the structures that flow through command interpretation:
- CommandSpec: A registered command (name, aliases, mode, handler)
- ParsedCommand: The result of resolving an input line
- CommandResult: What a handler (or the dispatcher) hands back
- GameContext: Session state owned by the caller
- AutocompleteResult: Completion candidates for a partial line
"""

from __future__ import annotations

from collections.abc import Awaitable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from pydantic import BaseModel, Field

from src.models.adventure import EntityKind


class Mode(str, Enum):
    """Privilege modes gating which commands are visible."""

    PLAYER = "player"
    ADMIN = "admin"
    BOTH = "both"


class ErrorCode(str, Enum):
    """Error codes carried by failed command results."""

    # Raised by the dispatcher
    NO_MATCH = "NO_MATCH"
    WRONG_MODE = "WRONG_MODE"
    HANDLER_ERROR = "HANDLER_ERROR"

    # Reported by handlers themselves
    MISSING_ARGUMENT = "MISSING_ARGUMENT"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    NOT_FOUND = "NOT_FOUND"
    AUTH_FAILED = "AUTH_FAILED"


def normalize_name(text: str) -> str:
    """Lower-case and collapse whitespace runs to single spaces."""
    return " ".join(text.lower().split())


class CommandError(BaseModel):
    """Structured error attached to a failed result."""

    code: ErrorCode
    message: str
    suggestion: str | None = None


class CommandResult(BaseModel):
    """Outcome of running a command."""

    success: bool
    output: list[str] = Field(default_factory=list)
    error: CommandError | None = None

    @classmethod
    def ok(cls, *lines: str) -> CommandResult:
        """Build a successful result from output lines."""
        return cls(success=True, output=list(lines))

    @classmethod
    def fail(
        cls,
        code: ErrorCode,
        message: str,
        suggestion: str | None = None,
    ) -> CommandResult:
        """Build a failed result with a structured error."""
        return cls(
            success=False,
            error=CommandError(code=code, message=message, suggestion=suggestion),
        )


@dataclass
class GameContext:
    """
    Session-scoped state passed into every handler.

    Owned by the caller. The interpreter reads it but never changes it;
    handlers (e.g. sudo/exit) are the only writers.
    """

    mode: Mode = Mode.PLAYER
    current_adventure: str | None = None
    current_location: str | None = None
    is_authenticated: bool = False
    running: bool = True
    values: dict[str, Any] = field(default_factory=dict)

    def elevate(self) -> None:
        """Switch to admin mode."""
        self.mode = Mode.ADMIN
        self.is_authenticated = True

    def drop_privileges(self) -> None:
        """Return to player mode."""
        self.mode = Mode.PLAYER
        self.is_authenticated = False


class Handler(Protocol):
    """
    Interface for command handlers.

    Handlers receive the leftover argument tokens and the live context.
    They may be plain functions or coroutines.
    """

    def __call__(
        self, args: list[str], context: GameContext
    ) -> CommandResult | Awaitable[CommandResult]:
        """Run the command."""
        ...


@dataclass(frozen=True)
class CommandSpec:
    """A registered command. Created once at startup and never mutated."""

    name: str
    handler: Handler = field(compare=False, repr=False)
    aliases: tuple[str, ...] = ()
    description: str = ""
    syntax: str = ""
    examples: tuple[str, ...] = ()
    mode: Mode = Mode.BOTH
    completes: EntityKind | None = None
    """Entity kind whose identifier the first argument takes, if any."""

    def __post_init__(self) -> None:
        # Accept lists from callers while keeping the spec hashable
        object.__setattr__(self, "aliases", tuple(self.aliases))
        object.__setattr__(self, "examples", tuple(self.examples))

    @property
    def normalized_name(self) -> str:
        return normalize_name(self.name)

    @property
    def names(self) -> tuple[str, ...]:
        """Canonical name followed by every alias, normalized."""
        return (self.normalized_name, *(normalize_name(a) for a in self.aliases))

    @property
    def word_count(self) -> int:
        """Longest word count across the name and its aliases."""
        return max(len(n.split()) for n in self.names)

    def is_visible_in(self, mode: Mode) -> bool:
        """Whether this command can be seen (and run) in the given mode."""
        return self.mode == Mode.BOTH or mode == Mode.BOTH or self.mode == mode


@dataclass(frozen=True)
class ParsedCommand:
    """Result of resolving an input line against the registry."""

    raw: str = ""
    command: str = ""
    """Canonical name of the resolved command, or the unmatched first word."""
    spec: CommandSpec | None = None
    args: tuple[str, ...] = ()
    is_valid: bool = False
    error: str | None = None


class AutocompleteResult(BaseModel):
    """Completion candidates for a partial input line."""

    suggestions: list[str] = Field(default_factory=list)
    completion_text: str | None = Field(
        default=None, description="Set when exactly one completion applies"
    )
    replace_from: int = Field(
        default=0, description="Index in the line where the completed fragment starts"
    )

    @property
    def is_unambiguous(self) -> bool:
        return self.completion_text is not None

    def apply(self, line: str) -> str:
        """Return the input line with the unambiguous completion applied."""
        if self.completion_text is None:
            return line
        text = self.completion_text
        if self.replace_from > 0 and any(ch.isspace() for ch in text):
            text = f'"{text}"'
        return line[: self.replace_from] + text
