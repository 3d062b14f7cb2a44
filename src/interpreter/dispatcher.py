"""
Dispatcher.

Runs a parsed command: enforces mode gating, invokes the handler and
guarantees a well-formed CommandResult on every path.
"""

from __future__ import annotations

import inspect
import logging

from src.interpreter.fuzzy import FuzzyMatcher
from src.interpreter.models import (
    CommandResult,
    ErrorCode,
    GameContext,
    Mode,
    ParsedCommand,
)

logger = logging.getLogger(__name__)


class Dispatcher:
    """
    Executes parsed commands against the session context.

    Never raises: unknown input, mode mismatches and handler failures all
    come back as failed results.
    """

    def __init__(
        self,
        matcher: FuzzyMatcher,
        *,
        elevate_command: str = "sudo",
        drop_command: str = "exit",
    ) -> None:
        self.matcher = matcher
        self.elevate_command = elevate_command
        self.drop_command = drop_command

    async def execute(self, parsed: ParsedCommand, context: GameContext) -> CommandResult:
        """Run a parsed command and return its result."""
        spec = parsed.spec
        if spec is None:
            return self._no_match(parsed, context)

        if not spec.is_visible_in(context.mode):
            return self._wrong_mode(parsed, context)

        if not parsed.is_valid:
            # Resolved against hidden commands; the handler never runs.
            return CommandResult.fail(
                ErrorCode.NO_MATCH,
                f'Command "{parsed.command}" was not resolved in {context.mode.value} mode',
                self.suggestion_message(parsed.raw or parsed.command, context.mode),
            )

        try:
            result = spec.handler(list(parsed.args), context)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.exception("Error executing command %s", spec.name)
            return CommandResult.fail(
                ErrorCode.HANDLER_ERROR,
                str(e) or "Command execution failed",
                f'Try "help {spec.name}" for usage information',
            )

        if not isinstance(result, CommandResult):
            logger.error(
                "Handler for %s returned %s instead of a CommandResult",
                spec.name,
                type(result).__name__,
            )
            return CommandResult.fail(
                ErrorCode.HANDLER_ERROR,
                f'Command "{spec.name}" produced no result',
                f'Try "help {spec.name}" for usage information',
            )

        return result

    def suggestion_message(self, text: str, mode: Mode) -> str:
        """Build the 'did you mean' hint for unmatched input."""
        suggestions = self.matcher.suggest(text, mode)
        if suggestions:
            return f"Did you mean: {', '.join(suggestions)}?"
        return 'Type "help" to see available commands'

    def _no_match(self, parsed: ParsedCommand, context: GameContext) -> CommandResult:
        if not parsed.command:
            return CommandResult.fail(
                ErrorCode.NO_MATCH,
                parsed.error or "Empty command",
                'Type "help" to see available commands',
            )
        return CommandResult.fail(
            ErrorCode.NO_MATCH,
            parsed.error or f"Unknown command: {parsed.command}",
            self.suggestion_message(parsed.raw or parsed.command, context.mode),
        )

    def _wrong_mode(self, parsed: ParsedCommand, context: GameContext) -> CommandResult:
        if context.mode == Mode.PLAYER:
            hint = f'Use "{self.elevate_command}" to enter admin mode'
        else:
            hint = f'Use "{self.drop_command}" to return to player mode'
        return CommandResult.fail(
            ErrorCode.WRONG_MODE,
            f'Command "{parsed.command}" is not available in {context.mode.value} mode',
            hint,
        )
