"""
Command history with arrow-key style navigation.
"""

from __future__ import annotations

from collections import deque

DEFAULT_HISTORY_SIZE = 50


class CommandHistory:
    """
    Bounded list of submitted lines.

    Empty lines and immediate repeats are not recorded. `previous()` and
    `following()` walk the list like the up/down arrows of a terminal;
    adding a line resets the cursor.
    """

    def __init__(self, max_size: int = DEFAULT_HISTORY_SIZE) -> None:
        self._entries: deque[str] = deque(maxlen=max_size)
        self._cursor: int | None = None

    def __len__(self) -> int:
        return len(self._entries)

    def add(self, line: str) -> None:
        """Record a submitted line."""
        self._cursor = None
        if not line.strip():
            return
        if self._entries and self._entries[-1] == line:
            return
        self._entries.append(line)

    def entries(self) -> list[str]:
        """Copy of the recorded lines, oldest first."""
        return list(self._entries)

    def previous(self) -> str | None:
        """Step back to an older line (stays on the oldest)."""
        if not self._entries:
            return None
        if self._cursor is None:
            self._cursor = len(self._entries) - 1
        elif self._cursor > 0:
            self._cursor -= 1
        return self._entries[self._cursor]

    def following(self) -> str | None:
        """Step forward to a newer line; None once past the newest."""
        if self._cursor is None:
            return None
        if self._cursor < len(self._entries) - 1:
            self._cursor += 1
            return self._entries[self._cursor]
        self._cursor = None
        return None
