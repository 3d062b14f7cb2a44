"""
Tokenizer for command input.

Splits a raw line into tokens, keeping quoted segments together.
"""

from __future__ import annotations

QUOTE = '"'


def tokenize(line: str) -> list[str]:
    """
    Split a line on whitespace, honoring double quotes.

    Quotes are stripped and the whitespace they enclose is kept, so a
    quoted segment becomes a single token. An unbalanced quote swallows
    the rest of the line as one token; this never raises.

    Examples:
        'talk sage' -> ['talk', 'sage']
        'chat "Ancient Sage" hello' -> ['chat', 'Ancient Sage', 'hello']
        'say "unfinished thought' -> ['say', 'unfinished thought']
    """
    tokens: list[str] = []
    current: list[str] = []
    in_quotes = False
    # Tracks a quoted token even when it is empty ("")
    pending = False

    for char in line:
        if char == QUOTE:
            in_quotes = not in_quotes
            pending = True
        elif char.isspace() and not in_quotes:
            if current or pending:
                tokens.append("".join(current))
                current = []
                pending = False
        else:
            current.append(char)

    if current or pending:
        tokens.append("".join(current))

    return tokens


def ends_with_separator(line: str) -> bool:
    """Whether the line ends in whitespace outside of an open quote."""
    if not line or not line[-1].isspace():
        return False
    return line.count(QUOTE) % 2 == 0


def last_token_start(line: str) -> int:
    """
    Index where the final token of the line begins.

    Returns len(line) when the line ends with a separator, i.e. when the
    next token has not been started yet.
    """
    if ends_with_separator(line):
        return len(line)

    in_quotes = False
    start = 0
    boundary = True
    for index, char in enumerate(line):
        if char == QUOTE:
            if boundary:
                start = index
                boundary = False
            in_quotes = not in_quotes
        elif char.isspace() and not in_quotes:
            boundary = True
        elif boundary:
            start = index
            boundary = False
    return start
