"""
Default command set for the adventure shell.

Handlers for player commands (explore a loaded adventure) and admin
commands (author adventures), packaged as CommandSpecs for the
interpreter. Handlers are the only code that changes the GameContext.
"""

from __future__ import annotations

import logging
import secrets
from pathlib import Path

from pydantic import ValidationError

from src.db.interfaces import AdventureRepository
from src.interpreter import (
    CommandHistory,
    CommandResult,
    CommandSpec,
    ErrorCode,
    GameContext,
    HelpSystem,
    Mode,
)
from src.models import Adventure, Character, EntityKind, Item, Location, slugify
from src.services.llm import LLMService

logger = logging.getLogger(__name__)

CLEAR_SCREEN = "\033[2J\033[H"

# Keys into GameContext.values
WORLD = "world"
INVENTORY = "inventory"


def _usage(spec_syntax: str) -> str:
    return f"Usage: {spec_syntax}"


def _missing(what: str, syntax: str) -> CommandResult:
    return CommandResult.fail(ErrorCode.MISSING_ARGUMENT, f"Missing {what}", _usage(syntax))


class AdventureCommands:
    """
    The shell's built-in commands.

    Player commands work on a private copy of the loaded adventure kept in
    the context; admin commands edit the stored adventures directly.
    """

    def __init__(
        self,
        store: AdventureRepository,
        help_system: HelpSystem,
        history: CommandHistory,
        llm: LLMService | None = None,
        admin_password: str | None = None,
    ) -> None:
        self.store = store
        self.help_system = help_system
        self.history = history
        self.llm = llm
        self.admin_password = admin_password

    def specs(self) -> list[CommandSpec]:
        """Every built-in command, ready to register."""
        return [
            # --- Both modes ---
            CommandSpec(
                name="help",
                aliases=("?", "h"),
                description="Show available commands or help for one command",
                syntax="help [command]",
                examples=("help", "help move"),
                handler=self.cmd_help,
            ),
            CommandSpec(
                name="clear",
                aliases=("cls",),
                description="Clear the screen",
                syntax="clear",
                handler=self.cmd_clear,
            ),
            CommandSpec(
                name="history",
                description="Show previously entered commands",
                syntax="history",
                handler=self.cmd_history,
            ),
            CommandSpec(
                name="exit",
                aliases=("quit", "q"),
                description="Leave admin mode, or quit the game",
                syntax="exit",
                handler=self.cmd_exit,
            ),
            CommandSpec(
                name="sudo",
                description="Enter admin mode",
                syntax="sudo [password]",
                handler=self.cmd_sudo,
            ),
            # --- Player ---
            CommandSpec(
                name="adventures",
                description="List adventures you can play",
                syntax="adventures",
                mode=Mode.PLAYER,
                handler=self.cmd_adventures,
            ),
            CommandSpec(
                name="load",
                aliases=("play",),
                description="Start playing an adventure",
                syntax="load <adventure-id>",
                examples=("load demo-adventure",),
                mode=Mode.PLAYER,
                completes=EntityKind.ADVENTURE,
                handler=self.cmd_load,
            ),
            CommandSpec(
                name="look",
                aliases=("l", "examine"),
                description="Look around, or at something specific",
                syntax="look [target]",
                examples=("look", 'look "Ancient Sage"'),
                mode=Mode.PLAYER,
                handler=self.cmd_look,
            ),
            CommandSpec(
                name="move",
                aliases=("go",),
                description="Move in a direction",
                syntax="move <direction>",
                examples=("move north", "go east"),
                mode=Mode.PLAYER,
                handler=self.cmd_move,
            ),
            CommandSpec(
                name="talk",
                aliases=("speak", "t"),
                description="Talk to a character",
                syntax="talk [character]",
                examples=("talk", "talk innkeeper"),
                mode=Mode.PLAYER,
                completes=EntityKind.CHARACTER,
                handler=self.cmd_talk,
            ),
            CommandSpec(
                name="chat",
                aliases=("talk-ai", "converse"),
                description="Say something to an AI-powered character",
                syntax="chat <character> <message>",
                examples=('chat "Ancient Sage" what lies in the crypt?',),
                mode=Mode.PLAYER,
                completes=EntityKind.CHARACTER,
                handler=self.cmd_chat,
            ),
            CommandSpec(
                name="inventory",
                aliases=("inv", "i"),
                description="Show what you are carrying",
                syntax="inventory",
                mode=Mode.PLAYER,
                handler=self.cmd_inventory,
            ),
            CommandSpec(
                name="take",
                aliases=("get", "pick"),
                description="Pick up an item",
                syntax="take <item>",
                examples=("take rope", 'take "Abandoned bottle of wine"'),
                mode=Mode.PLAYER,
                completes=EntityKind.ITEM,
                handler=self.cmd_take,
            ),
            CommandSpec(
                name="drop",
                description="Drop an item you carry",
                syntax="drop <item>",
                mode=Mode.PLAYER,
                handler=self.cmd_drop,
            ),
            # --- Admin: adventures ---
            CommandSpec(
                name="create adventure",
                aliases=("create", "create-adventure"),
                description="Create a new adventure and select it",
                syntax="create adventure <title>",
                examples=('create adventure "The Lost Mine"',),
                mode=Mode.ADMIN,
                handler=self.cmd_create_adventure,
            ),
            CommandSpec(
                name="list adventures",
                aliases=("list", "ls", "list-adventures"),
                description="List all adventures",
                syntax="list adventures",
                mode=Mode.ADMIN,
                handler=self.cmd_adventures,
            ),
            CommandSpec(
                name="select adventure",
                aliases=("select", "select-adventure"),
                description="Select an adventure for editing",
                syntax="select adventure <adventure-id>",
                mode=Mode.ADMIN,
                completes=EntityKind.ADVENTURE,
                handler=self.cmd_select_adventure,
            ),
            CommandSpec(
                name="deselect adventure",
                aliases=("deselect", "deselect-adventure"),
                description="Stop editing the selected adventure",
                syntax="deselect adventure",
                mode=Mode.ADMIN,
                handler=self.cmd_deselect_adventure,
            ),
            CommandSpec(
                name="show adventure",
                aliases=("show", "view-adventure", "show-adventure"),
                description="Show the selected adventure",
                syntax="show adventure",
                mode=Mode.ADMIN,
                handler=self.cmd_show_adventure,
            ),
            CommandSpec(
                name="delete adventure",
                aliases=("del-adventure", "delete-adventure"),
                description="Delete an adventure",
                syntax="delete adventure <adventure-id>",
                mode=Mode.ADMIN,
                completes=EntityKind.ADVENTURE,
                handler=self.cmd_delete_adventure,
            ),
            CommandSpec(
                name="edit title",
                aliases=("edit-title",),
                description="Change the title of the selected adventure",
                syntax="edit title <new-title>",
                examples=('edit title "The Haunted Mine"',),
                mode=Mode.ADMIN,
                handler=self.cmd_edit_title,
            ),
            CommandSpec(
                name="edit description",
                aliases=("edit-description",),
                description="Change the description of the selected adventure",
                syntax="edit description <new-description>",
                examples=('edit description "A short tale of greed and lanterns."',),
                mode=Mode.ADMIN,
                handler=self.cmd_edit_description,
            ),
            CommandSpec(
                name="export",
                description="Export an adventure as JSON",
                syntax="export <adventure-id> [file]",
                examples=("export demo-adventure", "export demo-adventure demo.json"),
                mode=Mode.ADMIN,
                completes=EntityKind.ADVENTURE,
                handler=self.cmd_export,
            ),
            CommandSpec(
                name="import",
                description="Import an adventure from a JSON file",
                syntax="import <file>",
                examples=("import demo.json",),
                mode=Mode.ADMIN,
                handler=self.cmd_import,
            ),
            # --- Admin: locations ---
            CommandSpec(
                name="add location",
                aliases=("addloc", "add-location"),
                description="Add a location to the selected adventure",
                syntax="add location <name> [description]",
                examples=('add location "Dark Cave" "Water drips somewhere."',),
                mode=Mode.ADMIN,
                handler=self.cmd_add_location,
            ),
            CommandSpec(
                name="select location",
                description="Select a location for adding characters and items",
                syntax="select location <location-id>",
                mode=Mode.ADMIN,
                completes=EntityKind.LOCATION,
                handler=self.cmd_select_location,
            ),
            CommandSpec(
                name="delete location",
                aliases=("del-location", "delete-location"),
                description="Delete a location and every exit leading to it",
                syntax="delete location <location-id>",
                mode=Mode.ADMIN,
                completes=EntityKind.LOCATION,
                handler=self.cmd_delete_location,
            ),
            CommandSpec(
                name="show locations",
                description="List locations of the selected adventure",
                syntax="show locations",
                mode=Mode.ADMIN,
                handler=self.cmd_show_locations,
            ),
            CommandSpec(
                name="connect",
                aliases=("link",),
                description="Connect two locations",
                syntax="connect <from> <direction> <to> [back-direction]",
                examples=("connect tavern east market west",),
                mode=Mode.ADMIN,
                completes=EntityKind.LOCATION,
                handler=self.cmd_connect,
            ),
            CommandSpec(
                name="remove connection",
                aliases=("remove-exit", "remove-connection"),
                description="Remove an exit from a location",
                syntax="remove connection <location-id> <direction>",
                mode=Mode.ADMIN,
                completes=EntityKind.LOCATION,
                handler=self.cmd_remove_connection,
            ),
            CommandSpec(
                name="edit location",
                aliases=("edit-location",),
                description="Edit a location property",
                syntax="edit location <location-id> <property> <value>",
                examples=(
                    'edit location tavern name "The Rusty Dragon"',
                    'edit location crypt description "Cold stone and older bones."',
                ),
                mode=Mode.ADMIN,
                completes=EntityKind.LOCATION,
                handler=self.cmd_edit_location,
            ),
            # --- Admin: characters ---
            CommandSpec(
                name="add character",
                aliases=("addchar", "add-character"),
                description="Add a scripted character to the selected location",
                syntax="add character <name> [dialogue...]",
                examples=('add character Guard "Halt!" "Move along."',),
                mode=Mode.ADMIN,
                handler=self.cmd_add_character,
            ),
            CommandSpec(
                name="create ai character",
                aliases=("create-ai-npc", "create-ai-character"),
                description="Add an AI-powered character to the selected location",
                syntax="create ai character <name> <personality>",
                examples=('create ai character Sage "a cryptic hermit"',),
                mode=Mode.ADMIN,
                handler=self.cmd_create_ai_character,
            ),
            CommandSpec(
                name="delete character",
                aliases=("del-character", "delete-character"),
                description="Delete a character from the selected adventure",
                syntax="delete character <name>",
                mode=Mode.ADMIN,
                completes=EntityKind.CHARACTER,
                handler=self.cmd_delete_character,
            ),
            CommandSpec(
                name="show characters",
                description="List characters of the selected adventure",
                syntax="show characters",
                mode=Mode.ADMIN,
                handler=self.cmd_show_characters,
            ),
            CommandSpec(
                name="edit character personality",
                aliases=("edit-personality", "edit-character-personality"),
                description="Change the personality of an AI-powered character",
                syntax="edit character personality <character> <new-personality>",
                examples=('edit character personality sage "a weary, kind scholar"',),
                mode=Mode.ADMIN,
                completes=EntityKind.CHARACTER,
                handler=self.cmd_edit_personality,
            ),
            CommandSpec(
                name="set ai config",
                aliases=("config-ai", "set-ai-config"),
                description="Configure AI parameters for a character",
                syntax="set ai config <character> [temperature=<value>] [max-tokens=<value>]",
                examples=(
                    "set ai config sage temperature=0.9",
                    "set ai config sage temperature=0.7 max-tokens=150",
                ),
                mode=Mode.ADMIN,
                completes=EntityKind.CHARACTER,
                handler=self.cmd_set_ai_config,
            ),
            # --- Admin: items ---
            CommandSpec(
                name="add item",
                aliases=("additem", "add-item"),
                description="Add an item to the selected location",
                syntax="add item <name> [description]",
                mode=Mode.ADMIN,
                handler=self.cmd_add_item,
            ),
            CommandSpec(
                name="delete item",
                aliases=("del-item", "delete-item"),
                description="Delete an item from the selected adventure",
                syntax="delete item <name>",
                mode=Mode.ADMIN,
                completes=EntityKind.ITEM,
                handler=self.cmd_delete_item,
            ),
            CommandSpec(
                name="show items",
                description="List items of the selected adventure",
                syntax="show items",
                mode=Mode.ADMIN,
                handler=self.cmd_show_items,
            ),
        ]

    # =========================================================================
    # Both modes
    # =========================================================================

    async def cmd_help(self, args: list[str], context: GameContext) -> CommandResult:
        """Handle help command."""
        if not args:
            return CommandResult.ok(*self.help_system.command_list(context.mode))

        topic = " ".join(args)
        page = self.help_system.command_help(topic, context.mode)
        if page is None:
            return CommandResult.fail(
                ErrorCode.NOT_FOUND,
                f"No help available for: {topic}",
                'Type "help" to see available commands',
            )
        return CommandResult.ok(*page)

    async def cmd_clear(self, args: list[str], context: GameContext) -> CommandResult:
        """Handle clear command."""
        return CommandResult.ok(CLEAR_SCREEN)

    async def cmd_history(self, args: list[str], context: GameContext) -> CommandResult:
        """Handle history command."""
        entries = self.history.entries()
        if not entries:
            return CommandResult.ok("No commands in history.")
        width = len(str(len(entries)))
        return CommandResult.ok(
            *(f"  {str(n).rjust(width)}  {line}" for n, line in enumerate(entries, start=1))
        )

    async def cmd_exit(self, args: list[str], context: GameContext) -> CommandResult:
        """Handle exit command: drop admin mode first, quit second."""
        if context.mode == Mode.ADMIN:
            context.drop_privileges()
            context.current_adventure = None
            context.current_location = None
            return CommandResult.ok("Returned to player mode.")
        context.running = False
        return CommandResult.ok("Farewell, adventurer!")

    async def cmd_sudo(self, args: list[str], context: GameContext) -> CommandResult:
        """Handle sudo command."""
        if context.mode == Mode.ADMIN:
            return CommandResult.ok("Already in admin mode.")

        if self.admin_password:
            given = args[0] if args else ""
            if not secrets.compare_digest(given.encode(), self.admin_password.encode()):
                return CommandResult.fail(
                    ErrorCode.AUTH_FAILED,
                    "Authentication failed",
                    "Incorrect password. Please try again.",
                )

        context.elevate()
        # Admin editing starts from a clean selection
        context.current_adventure = None
        context.current_location = None
        context.values.pop(WORLD, None)
        return CommandResult.ok("Entered admin mode. Type \"help\" for admin commands.")

    # =========================================================================
    # Player
    # =========================================================================

    async def cmd_adventures(self, args: list[str], context: GameContext) -> CommandResult:
        """Handle adventures / list adventures command."""
        adventures = await self.store.list_adventures()
        if not adventures:
            return CommandResult.ok("No adventures available.")
        width = max(len(a.id) for a in adventures) + 2
        lines = ["Adventures:"]
        lines.extend(f"  {a.id.ljust(width)}{a.title}" for a in adventures)
        return CommandResult.ok(*lines)

    async def cmd_load(self, args: list[str], context: GameContext) -> CommandResult:
        """Handle load command."""
        if not args:
            return _missing("adventure id", "load <adventure-id>")

        adventure = await self.store.get_adventure(args[0])
        if adventure is None:
            return CommandResult.fail(
                ErrorCode.NOT_FOUND,
                f"Adventure not found: {args[0]}",
                'Type "adventures" to list available adventures',
            )
        if not adventure.start_location_id or adventure.start_location_id not in adventure.locations:
            return CommandResult.fail(
                ErrorCode.INVALID_ARGUMENT,
                f"Adventure {adventure.id} has no starting location",
            )

        context.values[WORLD] = adventure
        context.values[INVENTORY] = []
        context.current_adventure = adventure.id
        context.current_location = adventure.start_location_id

        location = adventure.locations[adventure.start_location_id]
        return CommandResult.ok(f"Loading {adventure.title}...", "", *self._describe(location))

    async def cmd_look(self, args: list[str], context: GameContext) -> CommandResult:
        """Handle look command."""
        location, error = self._here(context)
        if location is None:
            return error

        if not args:
            return CommandResult.ok(*self._describe(location))

        target = " ".join(args)
        character = location.find_character(target)
        if character is not None:
            kind = "They seem to be lost in thought." if character.is_ai_powered else ""
            return CommandResult.ok(f"You see {character.name}. {kind}".strip())
        item = location.find_item(target) or _find_item(self._inventory(context), target)
        if item is not None:
            return CommandResult.ok(f"{item.name}: {item.description or 'Nothing special.'}")
        return CommandResult.fail(ErrorCode.NOT_FOUND, f"You don't see '{target}' here.")

    async def cmd_move(self, args: list[str], context: GameContext) -> CommandResult:
        """Handle move command."""
        location, error = self._here(context)
        if location is None:
            return error
        if not args:
            return _missing("direction", "move <direction>")

        direction = args[0].lower()
        destination_id = location.exits.get(direction)
        world: Adventure = context.values[WORLD]
        if destination_id is None or destination_id not in world.locations:
            exits = ", ".join(location.exits) or "none"
            return CommandResult.fail(
                ErrorCode.INVALID_ARGUMENT,
                f"You can't go {direction} from here.",
                f"Exits: {exits}",
            )

        context.current_location = destination_id
        return CommandResult.ok(*self._describe(world.locations[destination_id]))

    async def cmd_talk(self, args: list[str], context: GameContext) -> CommandResult:
        """Handle talk command."""
        location, error = self._here(context)
        if location is None:
            return error

        if not args:
            if not location.characters:
                return CommandResult.ok("There's nobody here to talk to.")
            return CommandResult.ok(
                "Who do you want to talk to?",
                *(f"  {c.name}" for c in location.characters),
            )

        name = " ".join(args)
        character = location.find_character(name)
        if character is None:
            return CommandResult.fail(ErrorCode.NOT_FOUND, f"{name} is not here.")
        if character.is_ai_powered:
            return CommandResult.ok(
                f"{character.name} regards you silently.",
                f'Use "chat {character.name} <message>" to speak with them.',
            )

        line = character.next_line()
        if line is None:
            return CommandResult.ok(f"{character.name} has nothing to say.")
        return CommandResult.ok(f'{character.name}: "{line}"')

    async def cmd_chat(self, args: list[str], context: GameContext) -> CommandResult:
        """Handle chat command - forwards the message to the LLM service."""
        location, error = self._here(context)
        if location is None:
            return error
        if self.llm is None or not self.llm.is_available:
            return CommandResult.fail(
                ErrorCode.INVALID_ARGUMENT,
                "AI chat is not available",
                "Set LMSTUDIO_BASE_URL to enable AI characters",
            )

        ai_characters = [c for c in location.characters if c.is_ai_powered]
        if not args:
            if not ai_characters:
                return CommandResult.fail(
                    ErrorCode.NOT_FOUND, "There are no AI-powered characters here."
                )
            return _missing("character and message", "chat <character> <message>")

        character = location.find_character(args[0])
        if character is None:
            names = ", ".join(c.name for c in ai_characters)
            return CommandResult.fail(
                ErrorCode.NOT_FOUND,
                f"{args[0]} is not here.",
                f"AI characters here: {names}" if names else "There are no AI characters here.",
            )
        if not character.is_ai_powered:
            return CommandResult.fail(
                ErrorCode.INVALID_ARGUMENT,
                f"{character.name} is not an AI-powered character.",
                'Use "talk" for scripted conversations.',
            )
        if len(args) < 2:
            return _missing("message", "chat <character> <message>")

        reply = await self.llm.chat(character, " ".join(args[1:]), location)
        return CommandResult.ok(f"{character.name}: {reply}")

    async def cmd_inventory(self, args: list[str], context: GameContext) -> CommandResult:
        """Handle inventory command."""
        items = self._inventory(context)
        if not items:
            return CommandResult.ok("You are not carrying anything.")
        return CommandResult.ok("You are carrying:", *(f"  - {i.name}" for i in items))

    async def cmd_take(self, args: list[str], context: GameContext) -> CommandResult:
        """Handle take command."""
        location, error = self._here(context)
        if location is None:
            return error
        if not args:
            return _missing("item", "take <item>")

        name = " ".join(args)
        item = location.find_item(name)
        if item is None:
            return CommandResult.fail(ErrorCode.NOT_FOUND, f"There is no {name} here.")
        location.items.remove(item)
        self._inventory(context).append(item)
        return CommandResult.ok(f"You take the {item.name}.")

    async def cmd_drop(self, args: list[str], context: GameContext) -> CommandResult:
        """Handle drop command."""
        location, error = self._here(context)
        if location is None:
            return error
        if not args:
            return _missing("item", "drop <item>")

        name = " ".join(args)
        inventory = self._inventory(context)
        item = _find_item(inventory, name)
        if item is None:
            return CommandResult.fail(ErrorCode.NOT_FOUND, f"You are not carrying {name}.")
        inventory.remove(item)
        location.items.append(item)
        return CommandResult.ok(f"You drop the {item.name}.")

    # =========================================================================
    # Admin: adventures
    # =========================================================================

    async def cmd_create_adventure(self, args: list[str], context: GameContext) -> CommandResult:
        """Handle create adventure command."""
        if not args:
            return _missing("title", "create adventure <title>")

        title = " ".join(args)
        adventure_id = slugify(title)
        if await self.store.get_adventure(adventure_id) is not None:
            return CommandResult.fail(
                ErrorCode.INVALID_ARGUMENT,
                f"Adventure already exists: {adventure_id}",
                f'Use "select adventure {adventure_id}" to edit it',
            )

        await self.store.save_adventure(Adventure(id=adventure_id, title=title))
        context.current_adventure = adventure_id
        context.current_location = None
        return CommandResult.ok(f"Created adventure {adventure_id} ({title}) and selected it.")

    async def cmd_select_adventure(self, args: list[str], context: GameContext) -> CommandResult:
        """Handle select adventure command."""
        if not args:
            return _missing("adventure id", "select adventure <adventure-id>")
        adventure = await self.store.get_adventure(args[0])
        if adventure is None:
            return CommandResult.fail(
                ErrorCode.NOT_FOUND,
                f"Adventure not found: {args[0]}",
                'Type "list adventures" to see all adventures',
            )
        context.current_adventure = adventure.id
        context.current_location = None
        return CommandResult.ok(f"Selected adventure {adventure.id} ({adventure.title}).")

    async def cmd_deselect_adventure(self, args: list[str], context: GameContext) -> CommandResult:
        """Handle deselect adventure command."""
        if context.current_adventure is None:
            return CommandResult.ok("No adventure selected.")
        previous = context.current_adventure
        context.current_adventure = None
        context.current_location = None
        return CommandResult.ok(f"Deselected adventure {previous}.")

    async def cmd_show_adventure(self, args: list[str], context: GameContext) -> CommandResult:
        """Handle show adventure command."""
        adventure, error = await self._selected(context)
        if adventure is None:
            return error
        lines = [
            adventure.title,
            "=" * len(adventure.title),
            f"  Id: {adventure.id}",
            f"  Start: {adventure.start_location_id or '(none)'}",
            f"  Locations: {len(adventure.locations)}",
            f"  Characters: {len(adventure.characters)}",
            f"  Items: {len(adventure.items)}",
        ]
        if adventure.description:
            lines.extend(["", adventure.description])
        return CommandResult.ok(*lines)

    async def cmd_delete_adventure(self, args: list[str], context: GameContext) -> CommandResult:
        """Handle delete adventure command."""
        if not args:
            return _missing("adventure id", "delete adventure <adventure-id>")
        adventure = await self.store.get_adventure(args[0])
        if adventure is None or not await self.store.delete_adventure(adventure.id):
            return CommandResult.fail(ErrorCode.NOT_FOUND, f"Adventure not found: {args[0]}")
        if context.current_adventure == adventure.id:
            context.current_adventure = None
            context.current_location = None
        return CommandResult.ok(f"Deleted adventure {adventure.id}.")

    async def cmd_edit_title(self, args: list[str], context: GameContext) -> CommandResult:
        """Handle edit title command."""
        adventure, error = await self._selected(context)
        if adventure is None:
            return error
        if not args:
            return _missing("title", "edit title <new-title>")

        adventure.title = " ".join(args)
        await self.store.save_adventure(adventure)
        return CommandResult.ok(f'Updated adventure title: "{adventure.title}"')

    async def cmd_edit_description(self, args: list[str], context: GameContext) -> CommandResult:
        """Handle edit description command."""
        adventure, error = await self._selected(context)
        if adventure is None:
            return error
        if not args:
            return _missing("description", "edit description <new-description>")

        adventure.description = " ".join(args)
        await self.store.save_adventure(adventure)
        return CommandResult.ok("Updated adventure description.")

    async def cmd_export(self, args: list[str], context: GameContext) -> CommandResult:
        """Handle export command: print the adventure as JSON, or write it to a file."""
        if not args:
            return _missing("adventure id", "export <adventure-id> [file]")
        adventure = await self.store.get_adventure(args[0])
        if adventure is None:
            return CommandResult.fail(
                ErrorCode.NOT_FOUND,
                f"Adventure not found: {args[0]}",
                'Type "list adventures" to see all adventures',
            )

        data = adventure.model_dump_json(indent=2)
        if len(args) < 2:
            return CommandResult.ok(*data.splitlines())

        path = Path(args[1]).expanduser()
        try:
            path.write_text(data + "\n", encoding="utf-8")
        except OSError as e:
            logger.warning("Export of %s to %s failed: %s", adventure.id, path, e)
            return CommandResult.fail(
                ErrorCode.INVALID_ARGUMENT, f"Cannot write {path}: {e.strerror}"
            )
        return CommandResult.ok(f"Exported adventure {adventure.id} to {path}.")

    async def cmd_import(self, args: list[str], context: GameContext) -> CommandResult:
        """Handle import command."""
        if not args:
            return _missing("file", "import <file>")

        path = Path(" ".join(args)).expanduser()
        try:
            adventure = Adventure.model_validate_json(path.read_text(encoding="utf-8"))
        except OSError as e:
            return CommandResult.fail(ErrorCode.NOT_FOUND, f"Cannot read {path}: {e.strerror}")
        except ValidationError as e:
            logger.info("Rejected adventure file %s: %s", path, e)
            return CommandResult.fail(
                ErrorCode.INVALID_ARGUMENT,
                f"Invalid adventure file: {path}",
                f"{e.error_count()} validation error(s); export an adventure to see the format",
            )

        if await self.store.get_adventure(adventure.id) is not None:
            return CommandResult.fail(
                ErrorCode.INVALID_ARGUMENT,
                f"Adventure already exists: {adventure.id}",
                f'Use "delete adventure {adventure.id}" first to replace it',
            )

        await self.store.save_adventure(adventure)
        context.current_adventure = adventure.id
        context.current_location = None
        return CommandResult.ok(
            f"Imported adventure {adventure.id} ({adventure.title}) and selected it."
        )

    # =========================================================================
    # Admin: locations
    # =========================================================================

    async def cmd_add_location(self, args: list[str], context: GameContext) -> CommandResult:
        """Handle add location command."""
        adventure, error = await self._selected(context)
        if adventure is None:
            return error
        if not args:
            return _missing("location name", "add location <name> [description]")

        name = args[0]
        location_id = slugify(name)
        if location_id in adventure.locations:
            return CommandResult.fail(
                ErrorCode.INVALID_ARGUMENT, f"Location already exists: {location_id}"
            )

        adventure.locations[location_id] = Location(
            id=location_id, name=name, description=" ".join(args[1:])
        )
        if adventure.start_location_id is None:
            adventure.start_location_id = location_id
        await self.store.save_adventure(adventure)
        context.current_location = location_id
        return CommandResult.ok(f"Added location {location_id} and selected it.")

    async def cmd_select_location(self, args: list[str], context: GameContext) -> CommandResult:
        """Handle select location command."""
        adventure, error = await self._selected(context)
        if adventure is None:
            return error
        if not args:
            return _missing("location id", "select location <location-id>")
        location = adventure.find_location(" ".join(args))
        if location is None:
            return CommandResult.fail(ErrorCode.NOT_FOUND, f"Location not found: {' '.join(args)}")
        context.current_location = location.id
        return CommandResult.ok(f"Selected location {location.id} ({location.name}).")

    async def cmd_delete_location(self, args: list[str], context: GameContext) -> CommandResult:
        """Handle delete location command."""
        adventure, error = await self._selected(context)
        if adventure is None:
            return error
        if not args:
            return _missing("location id", "delete location <location-id>")
        location = adventure.find_location(" ".join(args))
        if location is None:
            return CommandResult.fail(ErrorCode.NOT_FOUND, f"Location not found: {' '.join(args)}")

        del adventure.locations[location.id]
        removed_exits = 0
        for other in adventure.locations.values():
            for direction in [d for d, dest in other.exits.items() if dest == location.id]:
                del other.exits[direction]
                removed_exits += 1
        if adventure.start_location_id == location.id:
            adventure.start_location_id = next(iter(adventure.locations), None)
        await self.store.save_adventure(adventure)

        if context.current_location == location.id:
            context.current_location = None
        return CommandResult.ok(
            f"Deleted location {location.id} ({removed_exits} connecting exits removed)."
        )

    async def cmd_show_locations(self, args: list[str], context: GameContext) -> CommandResult:
        """Handle show locations command."""
        adventure, error = await self._selected(context)
        if adventure is None:
            return error
        if not adventure.locations:
            return CommandResult.ok("No locations yet.")
        lines = ["Locations:"]
        for location in adventure.locations.values():
            marker = " (start)" if location.id == adventure.start_location_id else ""
            exits = ", ".join(f"{d} -> {dest}" for d, dest in location.exits.items())
            lines.append(f"  {location.id}: {location.name}{marker}")
            if exits:
                lines.append(f"      exits: {exits}")
        return CommandResult.ok(*lines)

    async def cmd_connect(self, args: list[str], context: GameContext) -> CommandResult:
        """Handle connect command."""
        adventure, error = await self._selected(context)
        if adventure is None:
            return error
        syntax = "connect <from> <direction> <to> [back-direction]"
        if len(args) < 3:
            return _missing("arguments", syntax)

        source = adventure.find_location(args[0])
        target = adventure.find_location(args[2])
        if source is None or target is None:
            missing = args[0] if source is None else args[2]
            return CommandResult.fail(ErrorCode.NOT_FOUND, f"Location not found: {missing}")

        direction = args[1].lower()
        source.exits[direction] = target.id
        lines = [f"Connected {source.id} --{direction}--> {target.id}."]
        if len(args) > 3:
            back = args[3].lower()
            target.exits[back] = source.id
            lines.append(f"Connected {target.id} --{back}--> {source.id}.")
        await self.store.save_adventure(adventure)
        return CommandResult.ok(*lines)

    async def cmd_remove_connection(self, args: list[str], context: GameContext) -> CommandResult:
        """Handle remove connection command."""
        adventure, error = await self._selected(context)
        if adventure is None:
            return error
        if len(args) < 2:
            return _missing("location and direction", "remove connection <location-id> <direction>")

        location = adventure.find_location(args[0])
        if location is None:
            return CommandResult.fail(ErrorCode.NOT_FOUND, f"Location not found: {args[0]}")
        direction = args[1].lower()
        if location.exits.pop(direction, None) is None:
            return CommandResult.fail(
                ErrorCode.NOT_FOUND,
                f"{location.id} has no exit {direction}",
                f"Exits: {', '.join(location.exits) or 'none'}",
            )
        await self.store.save_adventure(adventure)
        return CommandResult.ok(f"Removed exit {direction} from {location.id}.")

    async def cmd_edit_location(self, args: list[str], context: GameContext) -> CommandResult:
        """Handle edit location command."""
        adventure, error = await self._selected(context)
        if adventure is None:
            return error
        if len(args) < 3:
            return _missing(
                "location, property and value", "edit location <location-id> <property> <value>"
            )

        location = adventure.find_location(args[0])
        if location is None:
            return CommandResult.fail(
                ErrorCode.NOT_FOUND,
                f"Location not found: {args[0]}",
                'Type "show locations" to list locations',
            )
        prop = args[1].lower()
        if prop not in ("name", "description"):
            return CommandResult.fail(
                ErrorCode.INVALID_ARGUMENT,
                f"Invalid property: {prop}",
                "Valid properties: name, description",
            )

        value = " ".join(args[2:])
        setattr(location, prop, value)
        await self.store.save_adventure(adventure)
        return CommandResult.ok(f'Updated location {prop}: "{value}"')

    # =========================================================================
    # Admin: characters and items
    # =========================================================================

    async def cmd_add_character(self, args: list[str], context: GameContext) -> CommandResult:
        """Handle add character command."""
        return await self._add_character(
            args, context, "add character <name> [dialogue...]", is_ai_powered=False
        )

    async def cmd_create_ai_character(self, args: list[str], context: GameContext) -> CommandResult:
        """Handle create ai character command."""
        return await self._add_character(
            args, context, "create ai character <name> <personality>", is_ai_powered=True
        )

    async def _add_character(
        self,
        args: list[str],
        context: GameContext,
        syntax: str,
        *,
        is_ai_powered: bool,
    ) -> CommandResult:
        adventure, location, error = await self._selected_location(context)
        if adventure is None or location is None:
            return error
        if not args:
            return _missing("character name", syntax)
        if is_ai_powered and len(args) < 2:
            return _missing("personality", syntax)

        name = args[0]
        character = Character(id=slugify(name), name=name)
        if is_ai_powered:
            character.is_ai_powered = True
            character.personality = " ".join(args[1:])
        else:
            character.dialogue = list(args[1:])
        location.characters.append(character)
        await self.store.save_adventure(adventure)
        kind = "AI character" if is_ai_powered else "character"
        return CommandResult.ok(f"Added {kind} {name} to {location.id}.")

    async def cmd_delete_character(self, args: list[str], context: GameContext) -> CommandResult:
        """Handle delete character command."""
        adventure, error = await self._selected(context)
        if adventure is None:
            return error
        if not args:
            return _missing("character name", "delete character <name>")

        name = " ".join(args)
        for location in adventure.locations.values():
            character = location.find_character(name)
            if character is not None:
                location.characters.remove(character)
                await self.store.save_adventure(adventure)
                return CommandResult.ok(f"Deleted character {character.name} from {location.id}.")
        return CommandResult.fail(ErrorCode.NOT_FOUND, f"Character not found: {name}")

    async def cmd_show_characters(self, args: list[str], context: GameContext) -> CommandResult:
        """Handle show characters command."""
        adventure, error = await self._selected(context)
        if adventure is None:
            return error
        lines = ["Characters:"]
        for location in adventure.locations.values():
            for character in location.characters:
                ai = " [AI]" if character.is_ai_powered else ""
                lines.append(f"  {character.name}{ai} @ {location.id}")
        return CommandResult.ok(*lines) if len(lines) > 1 else CommandResult.ok("No characters yet.")

    async def cmd_edit_personality(self, args: list[str], context: GameContext) -> CommandResult:
        """Handle edit character personality command."""
        syntax = "edit character personality <character> <new-personality>"
        adventure, error = await self._selected(context)
        if adventure is None:
            return error
        if len(args) < 2:
            return _missing("character and personality", syntax)

        character, error = self._ai_character(adventure, args[0])
        if character is None:
            return error
        character.personality = " ".join(args[1:])
        await self.store.save_adventure(adventure)
        if self.llm is not None:
            self.llm.end_conversation(character.id)
        return CommandResult.ok(f"Updated personality of {character.name}.")

    async def cmd_set_ai_config(self, args: list[str], context: GameContext) -> CommandResult:
        """Handle set ai config command: temperature=<0-2> and/or max-tokens=<1-500>."""
        syntax = "set ai config <character> [temperature=<value>] [max-tokens=<value>]"
        adventure, error = await self._selected(context)
        if adventure is None:
            return error
        if not args:
            return _missing("character", syntax)
        if len(args) < 2:
            return _missing("configuration parameter", syntax)

        temperature: float | None = None
        max_tokens: int | None = None
        for param in args[1:]:
            key, _, value = param.partition("=")
            key = key.lower()
            try:
                if key == "temperature":
                    temperature = float(value)
                    if not 0.0 <= temperature <= 2.0:
                        raise ValueError(value)
                elif key == "max-tokens":
                    max_tokens = int(value)
                    if not 1 <= max_tokens <= 500:
                        raise ValueError(value)
                else:
                    return CommandResult.fail(
                        ErrorCode.INVALID_ARGUMENT,
                        f"Unknown parameter: {param}",
                        "Valid parameters: temperature=<value>, max-tokens=<value>",
                    )
            except ValueError:
                hint = (
                    "Temperature must be a number between 0 and 2"
                    if key == "temperature"
                    else "Max tokens must be an integer between 1 and 500"
                )
                return CommandResult.fail(
                    ErrorCode.INVALID_ARGUMENT, f"Invalid {key} value: {value}", hint
                )

        character, error = self._ai_character(adventure, args[0])
        if character is None:
            return error
        lines = [f"Updated AI configuration for {character.name}:"]
        if temperature is not None:
            character.ai_temperature = temperature
            lines.append(f"  Temperature: {temperature}")
        if max_tokens is not None:
            character.ai_max_tokens = max_tokens
            lines.append(f"  Max tokens: {max_tokens}")
        await self.store.save_adventure(adventure)
        return CommandResult.ok(*lines)

    async def cmd_add_item(self, args: list[str], context: GameContext) -> CommandResult:
        """Handle add item command."""
        adventure, location, error = await self._selected_location(context)
        if adventure is None or location is None:
            return error
        if not args:
            return _missing("item name", "add item <name> [description]")

        item = Item(id=slugify(args[0]), name=args[0], description=" ".join(args[1:]))
        location.items.append(item)
        await self.store.save_adventure(adventure)
        return CommandResult.ok(f"Added item {item.name} to {location.id}.")

    async def cmd_delete_item(self, args: list[str], context: GameContext) -> CommandResult:
        """Handle delete item command."""
        adventure, error = await self._selected(context)
        if adventure is None:
            return error
        if not args:
            return _missing("item name", "delete item <name>")

        name = " ".join(args)
        for location in adventure.locations.values():
            item = location.find_item(name)
            if item is not None:
                location.items.remove(item)
                await self.store.save_adventure(adventure)
                return CommandResult.ok(f"Deleted item {item.name} from {location.id}.")
        return CommandResult.fail(ErrorCode.NOT_FOUND, f"Item not found: {name}")

    async def cmd_show_items(self, args: list[str], context: GameContext) -> CommandResult:
        """Handle show items command."""
        adventure, error = await self._selected(context)
        if adventure is None:
            return error
        lines = ["Items:"]
        for location in adventure.locations.values():
            lines.extend(f"  {item.name} @ {location.id}" for item in location.items)
        return CommandResult.ok(*lines) if len(lines) > 1 else CommandResult.ok("No items yet.")

    # =========================================================================
    # Helpers
    # =========================================================================

    def session_ids(self, kind: EntityKind, context: GameContext) -> list[str] | None:
        """
        Completion candidates from the player's own copy of the world.

        While playing, characters and items complete from the current
        location as it is now (taken items are gone). Returns None outside
        play so the shared lookup answers.
        """
        if context.mode != Mode.PLAYER or kind not in (EntityKind.CHARACTER, EntityKind.ITEM):
            return None
        location, _ = self._here(context)
        if location is None:
            return None
        entities = location.characters if kind is EntityKind.CHARACTER else location.items
        return sorted({e.name for e in entities})

    def _ai_character(
        self, adventure: Adventure, name: str
    ) -> tuple[Character | None, CommandResult]:
        """Find an AI-powered character anywhere in the adventure."""
        for location in adventure.locations.values():
            character = location.find_character(name)
            if character is None:
                continue
            if not character.is_ai_powered:
                return None, CommandResult.fail(
                    ErrorCode.INVALID_ARGUMENT,
                    f"{character.name} is not an AI-powered character.",
                    'Use "create ai character" to add one',
                )
            return character, CommandResult.ok()
        return None, CommandResult.fail(
            ErrorCode.NOT_FOUND,
            f"Character not found: {name}",
            'Type "show characters" to list characters',
        )

    def _here(self, context: GameContext) -> tuple[Location | None, CommandResult]:
        """The player's current location in the loaded adventure."""
        world: Adventure | None = context.values.get(WORLD)
        location = None
        if world is not None and context.current_location:
            location = world.locations.get(context.current_location)
        error = CommandResult.fail(
            ErrorCode.NOT_FOUND,
            "No adventure loaded",
            'Type "adventures" to list adventures, then "load <adventure-id>"',
        )
        return location, error

    def _inventory(self, context: GameContext) -> list[Item]:
        return context.values.setdefault(INVENTORY, [])

    def _describe(self, location: Location) -> list[str]:
        lines = [location.name, "=" * len(location.name)]
        if location.description:
            lines.append(location.description)
        if location.characters:
            lines.append("People here: " + ", ".join(c.name for c in location.characters))
        if location.items:
            lines.append("You see: " + ", ".join(i.name for i in location.items))
        lines.append("Exits: " + (", ".join(location.exits) or "none"))
        return lines

    async def _selected(self, context: GameContext) -> tuple[Adventure | None, CommandResult]:
        """The adventure selected for editing."""
        error = CommandResult.fail(
            ErrorCode.NOT_FOUND,
            "No adventure selected",
            'Use "select adventure <adventure-id>" or "create adventure <title>"',
        )
        if not context.current_adventure:
            return None, error
        adventure = await self.store.get_adventure(context.current_adventure)
        if adventure is None:
            logger.warning("Selected adventure %s no longer exists", context.current_adventure)
            context.current_adventure = None
        return adventure, error

    async def _selected_location(
        self, context: GameContext
    ) -> tuple[Adventure | None, Location | None, CommandResult]:
        adventure, error = await self._selected(context)
        if adventure is None:
            return None, None, error
        location = adventure.locations.get(context.current_location or "")
        if location is None:
            return adventure, None, CommandResult.fail(
                ErrorCode.NOT_FOUND,
                "No location selected",
                'Use "select location <location-id>" or "add location <name>"',
            )
        return adventure, location, error


def _find_item(items: list[Item], name: str) -> Item | None:
    lowered = name.lower()
    for item in items:
        if item.id.lower() == lowered or item.name.lower() == lowered:
            return item
    for item in items:
        if lowered in item.name.lower():
            return item
    return None
