"""
Fuzzy Matcher.

Produces "did you mean" suggestions for input that resolved to nothing,
ranked by Levenshtein edit distance.
"""

from __future__ import annotations

from src.interpreter.models import Mode, normalize_name
from src.interpreter.registry import CommandRegistry
from src.interpreter.tokenizer import tokenize

DEFAULT_LIMIT = 3
DEFAULT_MIN_CUTOFF = 2


def levenshtein(a: str, b: str) -> int:
    """Edit distance (insertions, deletions, substitutions) between two strings."""
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(
                min(
                    previous[j] + 1,  # deletion
                    current[j - 1] + 1,  # insertion
                    previous[j - 1] + cost,  # substitution
                )
            )
        previous = current
    return previous[-1]


def cutoff_for(text: str, min_cutoff: int = DEFAULT_MIN_CUTOFF) -> int:
    """Largest distance still worth suggesting: half the input length, floored at min_cutoff."""
    return max(min_cutoff, len(text) // 2)


class FuzzyMatcher:
    """
    Ranks visible command names against mistyped input.

    Each candidate name is compared with the same number of leading input
    words as the name itself has, so a typo in the first word matches
    single-word aliases and a typo anywhere in "creat adventure" still
    matches the two-word "create adventure". For one-word names this is
    exactly a first-token comparison.
    """

    def __init__(
        self,
        registry: CommandRegistry,
        *,
        limit: int = DEFAULT_LIMIT,
        min_cutoff: int = DEFAULT_MIN_CUTOFF,
    ) -> None:
        self.registry = registry
        self.limit = limit
        self.min_cutoff = min_cutoff

    def suggest(self, text: str, mode: Mode, limit: int | None = None) -> list[str]:
        """
        Suggest up to `limit` command names for unmatched input.

        Sorted by ascending distance, then shorter name, then alphabetically.
        Each command appears once, under its canonical name when that scores
        as well as its best alias.
        """
        limit = self.limit if limit is None else limit
        words = [normalize_name(t) for t in tokenize(text)]
        words = [w for w in words if w]
        if not words or limit <= 0:
            return []

        best: dict[int, tuple[int, int, int, str]] = {}
        for name, spec in self.registry.visible_names(mode).items():
            span = len(name.split())
            if span > len(words):
                continue
            typed = " ".join(words[:span])
            distance = levenshtein(typed, name)
            if distance > cutoff_for(typed, self.min_cutoff):
                continue
            is_alias = 0 if name == spec.normalized_name else 1
            score = (distance, is_alias, len(name), name)
            key = id(spec)
            if key not in best or score < best[key]:
                best[key] = score

        ranked = sorted(best.values(), key=lambda s: (s[0], s[2], s[3]))
        return [name for _, _, _, name in ranked[:limit]]
