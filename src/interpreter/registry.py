"""
Command Registry.

Holds every registered command, indexed by its normalized canonical name
and aliases, and resolves token sequences with longest-prefix matching.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from types import MappingProxyType

from src.interpreter.models import CommandSpec, Mode, ParsedCommand, normalize_name

logger = logging.getLogger(__name__)


class RegistrationConflictError(ValueError):
    """Two commands claim the same name or alias in an overlapping mode."""

    def __init__(self, key: str, existing: CommandSpec, incoming: CommandSpec) -> None:
        self.key = key
        self.existing = existing
        self.incoming = incoming
        super().__init__(
            f"Cannot register '{incoming.name}' ({incoming.mode.value}): "
            f"'{key}' is already taken by '{existing.name}' ({existing.mode.value})"
        )


def _modes_overlap(a: Mode, b: Mode) -> bool:
    return a == Mode.BOTH or b == Mode.BOTH or a == b


class CommandRegistry:
    """
    Registry of commands, looked up by name or alias.

    Registration is append-only: a name or alias can be shared by two
    commands only when their modes never overlap (one Player-only and one
    Admin-only). Anything else raises RegistrationConflictError.
    """

    def __init__(self, specs: Sequence[CommandSpec] = ()) -> None:
        self._specs: list[CommandSpec] = []
        self._index: dict[str, tuple[CommandSpec, ...]] = {}
        self._max_words = 1
        for spec in specs:
            self.register(spec)

    def register(self, spec: CommandSpec) -> None:
        """Register a command under its canonical name and every alias."""
        if not spec.normalized_name:
            raise ValueError("Command name must not be empty")

        keys = list(dict.fromkeys(spec.names))
        # Validate everything before touching the index
        for key in keys:
            if not key:
                raise ValueError(f"Command '{spec.name}' has an empty alias")
            for existing in self._index.get(key, ()):
                if _modes_overlap(existing.mode, spec.mode):
                    raise RegistrationConflictError(key, existing, spec)

        for key in keys:
            self._index[key] = (*self._index.get(key, ()), spec)
        self._specs.append(spec)
        self._max_words = max(self._max_words, spec.word_count)

        logger.debug("Registered command: %s (%s)", spec.name, spec.mode.value)

    @property
    def index(self) -> Mapping[str, tuple[CommandSpec, ...]]:
        """Read-only view of the name index."""
        return MappingProxyType(self._index)

    @property
    def max_words(self) -> int:
        """Word count of the longest registered name or alias."""
        return self._max_words

    def __len__(self) -> int:
        return len(self._specs)

    def __iter__(self) -> Iterator[CommandSpec]:
        return iter(self._specs)

    def get(self, name: str, mode: Mode = Mode.BOTH) -> CommandSpec | None:
        """Get a command visible in `mode` by name or alias."""
        for spec in self._index.get(normalize_name(name), ()):
            if spec.is_visible_in(mode):
                return spec
        return None

    def visible(self, mode: Mode) -> list[CommandSpec]:
        """All commands visible in a mode, in registration order."""
        return [spec for spec in self._specs if spec.is_visible_in(mode)]

    def visible_names(self, mode: Mode) -> dict[str, CommandSpec]:
        """Every normalized name and alias visible in a mode."""
        return {
            key: spec
            for key, specs in self._index.items()
            for spec in specs
            if spec.is_visible_in(mode)
        }

    def match_prefix(
        self,
        tokens: Sequence[str],
        mode: Mode = Mode.BOTH,
    ) -> tuple[CommandSpec, int] | None:
        """
        Find the longest token prefix naming a command visible in `mode`.

        Returns the command and how many tokens it consumed.
        """
        for count in range(min(len(tokens), self._max_words), 0, -1):
            key = normalize_name(" ".join(tokens[:count]))
            for spec in self._index.get(key, ()):
                if spec.is_visible_in(mode):
                    return spec, count
        return None

    def resolve(self, tokens: Sequence[str], mode: Mode, raw: str = "") -> ParsedCommand:
        """
        Resolve tokens to a command and its leftover arguments.

        A longer name always beats a shorter alias because matching starts
        at the longest candidate prefix. Commands hidden in `mode` never
        resolve as valid; if one matches, it is still attached to the result
        so the dispatcher can report the mode mismatch.
        """
        if not tokens:
            return ParsedCommand(raw=raw, error="Empty command")

        match = self.match_prefix(tokens, mode)
        if match is not None:
            spec, count = match
            return ParsedCommand(
                raw=raw,
                command=spec.name,
                spec=spec,
                args=tuple(tokens[count:]),
                is_valid=True,
            )

        hidden = self.match_prefix(tokens, Mode.BOTH)
        if hidden is not None:
            spec, count = hidden
            return ParsedCommand(
                raw=raw,
                command=spec.name,
                spec=spec,
                args=tuple(tokens[count:]),
                is_valid=False,
                error=f'Command "{spec.name}" is not available in {mode.value} mode',
            )

        word = tokens[0].lower()
        return ParsedCommand(
            raw=raw,
            command=word,
            args=tuple(tokens[1:]),
            is_valid=False,
            error=f"Unknown command: {word}",
        )
