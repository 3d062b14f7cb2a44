"""
Interactive REPL for the adventure shell.

Reads lines, hands them to the command interpreter and prints results.
Tab completion goes through the interpreter's autocomplete engine.
"""

from __future__ import annotations

import asyncio
import logging
import os

from src.cli.commands import AdventureCommands
from src.content import create_demo_adventure
from src.db.memory import InMemoryAdventureStore
from src.interpreter import (
    CommandInterpreter,
    CommandResult,
    GameContext,
    InterpreterConfig,
    Mode,
    normalize_name,
)
from src.interpreter.tokenizer import last_token_start
from src.services.llm import LLMService, create_llm_service

try:
    import readline
except ImportError:  # Windows without pyreadline
    readline = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)


class GameREPL:
    """
    Interactive REPL for the adventure shell.

    Handles user input, Tab completion and output formatting. All command
    semantics live in the interpreter and the registered handlers.
    """

    def __init__(
        self,
        *,
        store: InMemoryAdventureStore | None = None,
        config: InterpreterConfig | None = None,
        llm: LLMService | None = None,
        admin_password: str | None = None,
    ) -> None:
        self.store = store or InMemoryAdventureStore([create_demo_adventure()])
        self.interpreter = CommandInterpreter(self.store, config or InterpreterConfig.from_env())
        self.commands = AdventureCommands(
            self.store,
            self.interpreter.help,
            self.interpreter.history,
            llm=llm,
            admin_password=admin_password,
        )
        self.interpreter.register_all(self.commands.specs())
        self.interpreter.autocomplete.session_ids = self.commands.session_ids
        self.context = GameContext()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._matches: list[str] = []

    # =========================================================================
    # Output
    # =========================================================================

    def prompt(self) -> str:
        """Prompt showing mode and the selected or loaded adventure."""
        where = self.context.current_adventure
        if self.context.mode == Mode.ADMIN:
            return f"[admin{':' + where if where else ''}] # "
        return f"[{where}] > " if where else "> "

    def format_result(self, result: CommandResult) -> str:
        """Render a command result for the terminal."""
        if result.success:
            return "\n".join(result.output)
        if result.error is None:
            return "Error: Command failed"
        parts = [f"Error: {result.error.message}"]
        if result.error.suggestion:
            parts.append(result.error.suggestion)
        return "\n".join(parts)

    def _print_banner(self) -> None:
        """Print the game banner."""
        print()
        print("  The Adventure Shell")
        print("  ===================")
        print()
        print('Type "help" for commands, "adventures" to see what you can play.')
        print("Press Tab to complete commands and names.\n")

    # =========================================================================
    # Tab completion
    # =========================================================================

    def _complete(self, text: str, state: int) -> str | None:
        """readline completer; runs the async engine on the REPL's loop."""
        if state == 0:
            self._matches = self._compute_matches(readline.get_line_buffer() if readline else text)
        if state < len(self._matches):
            return self._matches[state]
        return None

    def _compute_matches(self, line: str) -> list[str]:
        """Whole-line completions for the current buffer."""
        if self._loop is None:
            return []
        future = asyncio.run_coroutine_threadsafe(
            self.interpreter.complete(line, self.context), self._loop
        )
        try:
            result = future.result(timeout=2.0)
        except Exception:
            logger.exception("Completion failed for %r", line)
            return []

        if result.is_unambiguous:
            return [result.apply(line) + " "]

        commands = self.interpreter.registry.visible_names(self.context.mode)
        head = line[: last_token_start(line)]
        matches = []
        for suggestion in result.suggestions:
            if normalize_name(suggestion) in commands:
                matches.append(suggestion)
            else:
                quoted = f'"{suggestion}"' if " " in suggestion else suggestion
                matches.append(head + quoted)
        return matches

    def _install_completer(self) -> None:
        if readline is None:
            return
        readline.set_completer(self._complete)
        # Complete the whole line; candidates may span several words
        readline.set_completer_delims("")
        readline.parse_and_bind("tab: complete")

    # =========================================================================
    # Main loop
    # =========================================================================

    async def handle(self, line: str) -> str:
        """Submit one line and return the formatted output."""
        result = await self.interpreter.submit(line, self.context)
        return self.format_result(result)

    async def run(self) -> None:
        """Run the interactive REPL."""
        self._loop = asyncio.get_running_loop()
        self._install_completer()
        self._print_banner()

        while self.context.running:
            try:
                # input() blocks, so it runs off-loop and completion can
                # still schedule work on this loop
                user_input = await self._loop.run_in_executor(None, input, self.prompt())
                user_input = user_input.strip()

                if not user_input:
                    continue

                response = await self.handle(user_input)

                if response:
                    print()
                    print(response)
                    print()

            except KeyboardInterrupt:
                print("\n")
                self.context.running = False
            except EOFError:
                print("\n")
                self.context.running = False

        print("Thanks for playing!")


def configure_logging(level: str | None = None) -> None:
    """Configure root logging from ADVENTURE_LOG_LEVEL (default WARNING)."""
    level = (level or os.getenv("ADVENTURE_LOG_LEVEL") or "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def run_game(
    *,
    llm_provider: str = "lmstudio",
    log_level: str | None = None,
) -> None:
    """
    Run the adventure shell.

    Args:
        llm_provider: Provider for AI characters ("lmstudio", "mock")
        log_level: Logging level name; falls back to ADVENTURE_LOG_LEVEL
    """
    configure_logging(log_level)
    repl = GameREPL(
        llm=create_llm_service(provider_type=llm_provider),
        admin_password=os.getenv("ADVENTURE_ADMIN_PASSWORD") or None,
    )
    asyncio.run(repl.run())


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Adventure Shell")
    parser.add_argument(
        "--llm",
        choices=["lmstudio", "mock"],
        default="lmstudio",
        help="Provider for AI-powered characters",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: $ADVENTURE_LOG_LEVEL or WARNING)",
    )

    args = parser.parse_args()
    run_game(llm_provider=args.llm, log_level=args.log_level)
