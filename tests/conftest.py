"""
Shared fixtures for interpreter tests.
"""

from __future__ import annotations

import pytest

from src.interpreter import CommandRegistry, CommandResult, CommandSpec, GameContext, Mode


def echo(args: list[str], context: GameContext) -> CommandResult:
    """Handler that reports its arguments."""
    return CommandResult.ok(*args)


def make_spec(name: str, mode: Mode = Mode.BOTH, *aliases: str, **kwargs) -> CommandSpec:
    return CommandSpec(name=name, handler=echo, aliases=aliases, mode=mode, **kwargs)


@pytest.fixture
def admin_registry() -> CommandRegistry:
    """A small registry shaped like the adventure shell's admin commands."""
    return CommandRegistry(
        [
            make_spec("help", Mode.BOTH, "?"),
            make_spec("exit", Mode.BOTH, "quit"),
            make_spec("look", Mode.PLAYER, "l"),
            make_spec("create adventure", Mode.ADMIN, "create", "create-adventure"),
            make_spec("select adventure", Mode.ADMIN, "select", "select-adventure"),
            make_spec("select location", Mode.ADMIN),
            make_spec("delete adventure", Mode.ADMIN, "delete-adventure"),
        ]
    )
