"""
Help System.

Renders the command list and man-page style help for a single command,
straight from the registered CommandSpecs.
"""

from __future__ import annotations

from src.interpreter.models import CommandSpec, Mode
from src.interpreter.registry import CommandRegistry


class HelpSystem:
    """Generates help text for the commands visible in a mode."""

    def __init__(self, registry: CommandRegistry) -> None:
        self.registry = registry

    def command_list(self, mode: Mode) -> list[str]:
        """Aligned one-line summary of every visible command."""
        commands = sorted(self.registry.visible(mode), key=lambda c: c.name)
        if not commands:
            return ["No commands available."]

        width = max(len(c.name) for c in commands) + 2
        lines = ["Available Commands:", ""]
        for cmd in commands:
            aliases = f" ({', '.join(cmd.aliases)})" if cmd.aliases else ""
            lines.append(f"  {cmd.name.ljust(width)}{cmd.description}{aliases}")
        lines.extend(
            ["", 'Type "help <command>" for detailed information about a specific command.']
        )
        return lines

    def find(self, topic: str, mode: Mode) -> CommandSpec | None:
        """Look up a command by name or alias, hidden commands excluded."""
        return self.registry.get(topic, mode)

    def command_help(self, topic: str, mode: Mode) -> list[str] | None:
        """Man-page style help for one command, or None if not visible."""
        spec = self.find(topic, mode)
        if spec is None:
            return None

        lines = ["NAME", f"    {spec.name}", ""]
        lines.extend(["SYNOPSIS", f"    {spec.syntax or spec.name}", ""])
        lines.append("DESCRIPTION")
        lines.extend(f"    {line}" for line in (spec.description or "-").splitlines())
        lines.append("")
        if spec.aliases:
            lines.extend(["ALIASES", f"    {', '.join(spec.aliases)}", ""])
        if spec.examples:
            lines.append("EXAMPLES")
            lines.extend(f"    {example}" for example in spec.examples)
            lines.append("")
        return lines

    def search(self, query: str, mode: Mode) -> list[CommandSpec]:
        """Commands whose name, alias or description mentions the query."""
        lowered = query.lower()
        return [
            spec
            for spec in self.registry.visible(mode)
            if lowered in spec.name.lower()
            or lowered in spec.description.lower()
            or any(lowered in alias.lower() for alias in spec.aliases)
        ]
