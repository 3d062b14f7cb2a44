"""
Autocomplete Engine.

Answers Tab presses: given a partial input line and the session context,
returns command names/aliases that extend it, plus entity identifiers
when the line is already a command that takes one.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence

from src.db.interfaces import EntityLookupService
from src.interpreter.cache import AutocompleteCache
from src.interpreter.models import (
    AutocompleteResult,
    GameContext,
    Mode,
    normalize_name,
)
from src.interpreter.registry import CommandRegistry
from src.interpreter.tokenizer import ends_with_separator, last_token_start, tokenize
from src.models import EntityKind

logger = logging.getLogger(__name__)

# Identifiers held by the session itself (e.g. the player's copy of the
# world); None means the shared lookup answers instead.
SessionIds = Callable[[EntityKind, GameContext], "list[str] | None"]


def cache_key(kind: EntityKind, adventure_id: str | None = None) -> str:
    """Cache key for an identifier list, e.g. 'location-ids:demo-adventure'."""
    key = f"{kind.value}-ids"
    if kind.scoped and adventure_id:
        key = f"{key}:{adventure_id}"
    return key


def filter_candidates(candidates: Iterable[str], fragment: str) -> list[str]:
    """
    Filter identifiers against a typed fragment.

    Prefix matches win. Only when nothing matches by prefix are candidates
    matched on whole words, so "bottle" finds "Abandoned bottle of wine".
    """
    candidates = list(candidates)
    lowered = fragment.lower()

    by_prefix = [c for c in candidates if c.lower().startswith(lowered)]
    if by_prefix:
        return by_prefix

    return [c for c in candidates if lowered in (word.lower() for word in c.split())]


class AutocompleteEngine:
    """
    Context-sensitive completion for the input line.

    Two sources are merged: static command names visible in the current
    mode, and dynamic entity identifiers fetched through a TTL cache.
    Identifiers supplied by `session_ids` bypass the cache.
    """

    def __init__(
        self,
        registry: CommandRegistry,
        lookup: EntityLookupService | None = None,
        cache: AutocompleteCache | None = None,
        session_ids: SessionIds | None = None,
    ) -> None:
        self.registry = registry
        self.lookup = lookup
        self.cache = cache or AutocompleteCache()
        self.session_ids = session_ids

    async def complete(self, partial: str, context: GameContext) -> AutocompleteResult:
        """Return completion candidates for a partial line."""
        tokens = tokenize(partial)
        if not tokens:
            return AutocompleteResult()

        trailing = ends_with_separator(partial)
        names, aliases = self.static_candidates(tokens, trailing, context.mode)
        dynamic = await self.dynamic_candidates(tokens, trailing, context)

        suggestions = list(dict.fromkeys([*names, *aliases, *dynamic]))

        if len(names) == 1 and not dynamic:
            return AutocompleteResult(suggestions=suggestions, completion_text=names[0])
        if not names and not aliases and len(dynamic) == 1:
            return AutocompleteResult(
                suggestions=suggestions,
                completion_text=dynamic[0],
                replace_from=last_token_start(partial),
            )
        return AutocompleteResult(suggestions=suggestions)

    def static_candidates(
        self,
        tokens: Sequence[str],
        trailing: bool,
        mode: Mode,
    ) -> tuple[list[str], list[str]]:
        """
        Command names and aliases extending the typed words.

        Canonical names come first; a hyphenated alias is also offered when
        its canonical command matched (so "edit t" brings "edit-title").
        """
        prefix = normalize_name(" ".join(tokens))
        if trailing:
            prefix += " "
        hyphenated = prefix.replace(" ", "-") if " " in prefix else None

        visible = self.registry.visible_names(mode)
        names = sorted(
            {
                spec.normalized_name
                for spec in visible.values()
                if spec.normalized_name.startswith(prefix)
            }
        )

        aliases = []
        for key, spec in visible.items():
            if key == spec.normalized_name or key in names:
                continue
            if key.startswith(prefix):
                aliases.append(key)
            elif hyphenated and key.startswith(hyphenated) and spec.normalized_name in names:
                aliases.append(key)

        return names, sorted(aliases)

    async def dynamic_candidates(
        self,
        tokens: Sequence[str],
        trailing: bool,
        context: GameContext,
    ) -> list[str]:
        """Entity identifiers for the first argument of an entity-taking command."""
        command_tokens = tokens if trailing else tokens[:-1]
        if not command_tokens:
            return []

        match = self.registry.match_prefix(command_tokens, context.mode)
        if match is None:
            return []
        spec, consumed = match
        # Only the first argument is completed
        if spec.completes is None or consumed != len(command_tokens):
            return []

        kind = spec.completes
        fragment = "" if trailing else tokens[-1]
        if self.session_ids is not None:
            local = self.session_ids(kind, context)
            if local is not None:
                return filter_candidates(local, fragment)

        adventure_id = context.current_adventure
        if self.lookup is None or (kind.scoped and not adventure_id):
            return []

        lookup = self.lookup

        async def fetch() -> list[str]:
            return await lookup.list_ids(kind, adventure_id if kind.scoped else None)

        values = await self.cache.get(cache_key(kind, adventure_id), fetch)
        return filter_candidates(values, fragment)
