"""
Tests for the built-in command set, driven through the REPL front end.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from src.cli.repl import GameREPL
from src.content import DEMO_ADVENTURE_ID
from src.interpreter import CommandResult, ErrorCode, InterpreterConfig, Mode
from src.services.llm import create_llm_service


@pytest.fixture
def repl() -> GameREPL:
    return GameREPL(config=InterpreterConfig(), llm=create_llm_service("mock"))


async def run(repl: GameREPL, line: str) -> CommandResult:
    return await repl.interpreter.submit(line, repl.context)


def text(result: CommandResult) -> str:
    return "\n".join(result.output)


# =============================================================================
# General commands
# =============================================================================


class TestGeneralCommands:
    """Tests for commands available in both modes."""

    def test_builtin_commands_register_cleanly(self, repl: GameREPL) -> None:
        names = {spec.name for spec in repl.interpreter.registry}
        assert {"help", "sudo", "load", "create adventure", "create ai character"} <= names

    @pytest.mark.asyncio
    async def test_help_lists_visible_commands(self, repl: GameREPL) -> None:
        player = text(await run(repl, "help"))
        assert "sudo" in player
        assert "create adventure" not in player

        await run(repl, "sudo")
        admin = text(await run(repl, "help"))
        assert "create adventure" in admin

    @pytest.mark.asyncio
    async def test_help_for_one_command(self, repl: GameREPL) -> None:
        result = await run(repl, "help go")
        assert result.success
        assert "    move <direction>" in result.output

    @pytest.mark.asyncio
    async def test_help_for_hidden_command(self, repl: GameREPL) -> None:
        result = await run(repl, "help create adventure")
        assert result.error is not None
        assert result.error.code == ErrorCode.NOT_FOUND

    @pytest.mark.asyncio
    async def test_history(self, repl: GameREPL) -> None:
        await run(repl, "adventures")
        result = await run(repl, "history")
        assert result.output == ["  1  adventures", "  2  history"]

    @pytest.mark.asyncio
    async def test_exit_in_player_mode_stops_game(self, repl: GameREPL) -> None:
        await run(repl, "quit")
        assert repl.context.running is False

    @pytest.mark.asyncio
    async def test_typo_suggests(self, repl: GameREPL) -> None:
        result = await run(repl, "mvoe north")
        assert result.error is not None
        assert result.error.code == ErrorCode.NO_MATCH
        assert result.error.suggestion is not None
        assert result.error.suggestion.startswith("Did you mean: move")

    @pytest.mark.asyncio
    async def test_admin_command_refused_in_player_mode(self, repl: GameREPL) -> None:
        result = await run(repl, "create adventure Lost Mine")
        assert result.error is not None
        assert result.error.code == ErrorCode.WRONG_MODE
        assert result.error.suggestion == 'Use "sudo" to enter admin mode'


# =============================================================================
# Player commands
# =============================================================================


class TestPlayerCommands:
    """Tests for exploring the demo adventure."""

    @pytest.mark.asyncio
    async def test_look_without_adventure(self, repl: GameREPL) -> None:
        result = await run(repl, "look")
        assert result.error is not None
        assert result.error.message == "No adventure loaded"

    @pytest.mark.asyncio
    async def test_load_and_explore(self, repl: GameREPL) -> None:
        loaded = await run(repl, f"load {DEMO_ADVENTURE_ID}")
        assert "The Rusty Dragon Inn" in loaded.output
        assert repl.context.current_location == "tavern"

        moved = await run(repl, "go east")
        assert moved.output[0] == "Sandpoint Market Square"

        blocked = await run(repl, "move up")
        assert blocked.error is not None
        assert blocked.error.code == ErrorCode.INVALID_ARGUMENT

    @pytest.mark.asyncio
    async def test_load_unknown(self, repl: GameREPL) -> None:
        result = await run(repl, "play nowhere")
        assert result.error is not None
        assert result.error.code == ErrorCode.NOT_FOUND

    @pytest.mark.asyncio
    async def test_take_and_drop(self, repl: GameREPL) -> None:
        await run(repl, "load demo-adventure")
        await run(repl, 'take "Abandoned bottle of wine"')

        carried = await run(repl, "inventory")
        assert "  - Abandoned bottle of wine" in carried.output

        here = await run(repl, "look")
        assert not any("wine" in line for line in here.output)

        await run(repl, "drop bottle")
        assert text(await run(repl, "i")) == "You are not carrying anything."

    @pytest.mark.asyncio
    async def test_taking_does_not_change_stored_adventure(self, repl: GameREPL) -> None:
        await run(repl, "load demo-adventure")
        await run(repl, "take wine-bottle")

        stored = await repl.store.get_adventure(DEMO_ADVENTURE_ID)
        assert stored is not None
        assert stored.locations["tavern"].find_item("wine-bottle") is not None

    @pytest.mark.asyncio
    async def test_talk_cycles_dialogue(self, repl: GameREPL) -> None:
        await run(repl, "load demo-adventure")
        first = await run(repl, "talk innkeeper")
        second = await run(repl, "t innkeeper")
        third = await run(repl, "speak innkeeper")

        assert first.output[0].startswith("Ameiko the Innkeeper: ")
        assert first.output != second.output
        assert first.output == third.output

    @pytest.mark.asyncio
    async def test_chat_with_ai_character(self, repl: GameREPL) -> None:
        await run(repl, "load demo-adventure")
        await run(repl, "move north")

        result = await run(repl, 'chat "Ancient Sage" what lies below?')
        assert result.output == ["Ancient Sage: [Mock LLM response]"]

    @pytest.mark.asyncio
    async def test_chat_with_scripted_character(self, repl: GameREPL) -> None:
        await run(repl, "load demo-adventure")
        result = await run(repl, "chat innkeeper hello")
        assert result.error is not None
        assert result.error.code == ErrorCode.INVALID_ARGUMENT

    @pytest.mark.asyncio
    async def test_chat_without_llm(self) -> None:
        repl = GameREPL(config=InterpreterConfig())
        await run(repl, "load demo-adventure")
        result = await run(repl, "chat sage hi")
        assert result.error is not None
        assert result.error.message == "AI chat is not available"

    @pytest.mark.asyncio
    async def test_item_completion_follows_the_players_world(self, repl: GameREPL) -> None:
        await run(repl, "load demo-adventure")
        before = await repl.interpreter.complete("take ", repl.context)
        assert before.suggestions == ["Abandoned bottle of wine"]

        await run(repl, "take wine-bottle")
        after = await repl.interpreter.complete("take ", repl.context)
        assert after.suggestions == []

    @pytest.mark.asyncio
    async def test_character_completion_limited_to_current_location(
        self, repl: GameREPL
    ) -> None:
        await run(repl, "load demo-adventure")
        await run(repl, "go east")
        result = await repl.interpreter.complete("talk ", repl.context)
        assert result.suggestions == ["Ven the Merchant"]
        assert result.completion_text == "Ven the Merchant"


# =============================================================================
# Admin commands
# =============================================================================


class TestAdminCommands:
    """Tests for authoring adventures in admin mode."""

    @pytest.mark.asyncio
    async def test_sudo_and_exit(self, repl: GameREPL) -> None:
        await run(repl, "sudo")
        assert repl.context.mode == Mode.ADMIN
        assert repl.prompt() == "[admin] # "

        await run(repl, "exit")
        assert repl.context.mode == Mode.PLAYER
        assert repl.context.running is True

    @pytest.mark.asyncio
    async def test_sudo_password(self) -> None:
        repl = GameREPL(config=InterpreterConfig(), admin_password="swordfish")

        denied = await run(repl, "sudo guess")
        assert denied.error is not None
        assert denied.error.code == ErrorCode.AUTH_FAILED
        assert repl.context.mode == Mode.PLAYER

        await run(repl, "sudo swordfish")
        assert repl.context.mode == Mode.ADMIN

    @pytest.mark.asyncio
    async def test_build_adventure(self, repl: GameREPL) -> None:
        await run(repl, "sudo")
        created = await run(repl, "create adventure Lost Mine")
        assert created.success
        assert repl.context.current_adventure == "lost-mine"

        await run(repl, 'add location "Dark Cave" "Water drips somewhere."')
        await run(repl, "add location Entrance")
        linked = await run(repl, "connect dark-cave north entrance south")
        assert len(linked.output) == 2

        await run(repl, "select location dark-cave")
        await run(repl, 'add character Guard "Halt!"')
        await run(repl, 'create ai character Hermit "a grumpy old man"')
        await run(repl, "add item Lantern")

        characters = await run(repl, "show characters")
        assert characters.output == ["Characters:", "  Guard @ dark-cave", "  Hermit [AI] @ dark-cave"]

        stored = await repl.store.get_adventure("lost-mine")
        assert stored is not None
        assert stored.start_location_id == "dark-cave"
        assert stored.locations["entrance"].exits == {"south": "dark-cave"}
        assert stored.locations["dark-cave"].find_item("Lantern") is not None

    @pytest.mark.asyncio
    async def test_delete_location_removes_exits(self, repl: GameREPL) -> None:
        await run(repl, "sudo")
        await run(repl, "select demo-adventure")
        result = await run(repl, "delete location crypt")
        assert result.output == ["Deleted location crypt (1 connecting exits removed)."]

        stored = await repl.store.get_adventure(DEMO_ADVENTURE_ID)
        assert stored is not None
        assert "north" not in stored.locations["forest-path"].exits

    @pytest.mark.asyncio
    async def test_add_character_needs_location(self, repl: GameREPL) -> None:
        await run(repl, "sudo")
        await run(repl, "select adventure demo-adventure")
        result = await run(repl, "add character Guard")
        assert result.error is not None
        assert result.error.message == "No location selected"

    @pytest.mark.asyncio
    async def test_commands_need_selected_adventure(self, repl: GameREPL) -> None:
        await run(repl, "sudo")
        result = await run(repl, "show locations")
        assert result.error is not None
        assert result.error.message == "No adventure selected"

    @pytest.mark.asyncio
    async def test_create_existing_adventure(self, repl: GameREPL) -> None:
        await run(repl, "sudo")
        result = await run(repl, "create Demo Adventure")
        assert result.error is not None
        assert result.error.code == ErrorCode.INVALID_ARGUMENT

    @pytest.mark.asyncio
    async def test_delete_selected_adventure(self, repl: GameREPL) -> None:
        await run(repl, "sudo")
        await run(repl, "select demo-adventure")
        await run(repl, "delete adventure demo-adventure")

        assert repl.context.current_adventure is None
        assert await repl.store.list_adventures() == []

    @pytest.mark.asyncio
    async def test_entity_completion_follows_selection(self, repl: GameREPL) -> None:
        await run(repl, "sudo")
        await run(repl, "select adventure demo-adventure")
        result = await repl.interpreter.complete("delete item unl", repl.context)
        assert result.completion_text == "Unlit torch"

    @pytest.mark.asyncio
    async def test_edit_title_completes_with_hyphenated_alias(self, repl: GameREPL) -> None:
        await run(repl, "sudo")
        result = await repl.interpreter.complete("edit t", repl.context)
        assert result.suggestions == ["edit title", "edit-title"]
        assert result.completion_text == "edit title"

    @pytest.mark.asyncio
    async def test_edit_title_and_description(self, repl: GameREPL) -> None:
        await run(repl, "sudo")
        await run(repl, "select demo-adventure")
        titled = await run(repl, 'edit-title "Sandpoint Nights"')
        assert titled.output == ['Updated adventure title: "Sandpoint Nights"']
        await run(repl, "edit description A short tale.")

        stored = await repl.store.get_adventure(DEMO_ADVENTURE_ID)
        assert stored is not None
        assert stored.title == "Sandpoint Nights"
        assert stored.description == "A short tale."

    @pytest.mark.asyncio
    async def test_edit_location(self, repl: GameREPL) -> None:
        await run(repl, "sudo")
        await run(repl, "select demo-adventure")
        completed = await repl.interpreter.complete("edit location cr", repl.context)
        assert completed.completion_text == "crypt"

        result = await run(repl, 'edit location crypt name "The Old Crypt"')
        assert result.output == ['Updated location name: "The Old Crypt"']
        stored = await repl.store.get_adventure(DEMO_ADVENTURE_ID)
        assert stored is not None
        assert stored.locations["crypt"].name == "The Old Crypt"

        invalid = await run(repl, "edit location crypt exits none")
        assert invalid.error is not None
        assert invalid.error.code == ErrorCode.INVALID_ARGUMENT
        assert invalid.error.suggestion == "Valid properties: name, description"

        short = await run(repl, "edit location crypt name")
        assert short.error is not None
        assert short.error.code == ErrorCode.MISSING_ARGUMENT

    @pytest.mark.asyncio
    async def test_edit_character_personality(self, repl: GameREPL) -> None:
        await run(repl, "sudo")
        await run(repl, "select demo-adventure")
        result = await run(repl, 'edit-personality sage "a weary, kind scholar"')
        assert result.output == ["Updated personality of Ancient Sage."]

        stored = await repl.store.get_adventure(DEMO_ADVENTURE_ID)
        assert stored is not None
        assert stored.locations["forest-path"].characters[0].personality == "a weary, kind scholar"

        scripted = await run(repl, 'edit character personality innkeeper "grumpy"')
        assert scripted.error is not None
        assert scripted.error.code == ErrorCode.INVALID_ARGUMENT

    @pytest.mark.asyncio
    async def test_set_ai_config(self, repl: GameREPL) -> None:
        await run(repl, "sudo")
        await run(repl, "select demo-adventure")
        result = await run(repl, "set ai config sage temperature=0.3 max-tokens=60")
        assert result.output == [
            "Updated AI configuration for Ancient Sage:",
            "  Temperature: 0.3",
            "  Max tokens: 60",
        ]
        stored = await repl.store.get_adventure(DEMO_ADVENTURE_ID)
        assert stored is not None
        sage = stored.locations["forest-path"].characters[0]
        assert (sage.ai_temperature, sage.ai_max_tokens) == (0.3, 60)

    @pytest.mark.asyncio
    async def test_set_ai_config_rejects_bad_values(self, repl: GameREPL) -> None:
        await run(repl, "sudo")
        await run(repl, "select demo-adventure")

        hot = await run(repl, "set ai config sage temperature=3")
        assert hot.error is not None
        assert hot.error.suggestion == "Temperature must be a number between 0 and 2"

        unknown = await run(repl, "set ai config sage top-p=0.5")
        assert unknown.error is not None
        assert unknown.error.message == "Unknown parameter: top-p=0.5"

        missing = await run(repl, "set ai config sage")
        assert missing.error is not None
        assert missing.error.code == ErrorCode.MISSING_ARGUMENT

    @pytest.mark.asyncio
    async def test_export_prints_json(self, repl: GameREPL) -> None:
        await run(repl, "sudo")
        assert (await repl.interpreter.complete("export d", repl.context)).completion_text == (
            DEMO_ADVENTURE_ID
        )

        result = await run(repl, "export demo-adventure")
        data = json.loads("\n".join(result.output))
        assert data["id"] == DEMO_ADVENTURE_ID
        assert "crypt" in data["locations"]

    @pytest.mark.asyncio
    async def test_export_then_import(self, repl: GameREPL, tmp_path: Path) -> None:
        target = tmp_path / "demo.json"
        await run(repl, "sudo")
        exported = await run(repl, f"export demo-adventure {target}")
        assert exported.output == [f"Exported adventure demo-adventure to {target}."]

        clash = await run(repl, f"import {target}")
        assert clash.error is not None
        assert clash.error.message == "Adventure already exists: demo-adventure"

        await run(repl, "delete adventure demo-adventure")
        imported = await run(repl, f"import {target}")
        assert imported.success
        assert repl.context.current_adventure == DEMO_ADVENTURE_ID

        stored = await repl.store.get_adventure(DEMO_ADVENTURE_ID)
        assert stored is not None
        assert stored.locations["crypt"].find_item("torch") is not None

    @pytest.mark.asyncio
    async def test_import_rejects_bad_files(self, repl: GameREPL, tmp_path: Path) -> None:
        await run(repl, "sudo")

        absent = await run(repl, f"import {tmp_path / 'missing.json'}")
        assert absent.error is not None
        assert absent.error.code == ErrorCode.NOT_FOUND

        broken = tmp_path / "broken.json"
        broken.write_text('{"title": "No id"}', encoding="utf-8")
        invalid = await run(repl, f"import {broken}")
        assert invalid.error is not None
        assert invalid.error.code == ErrorCode.INVALID_ARGUMENT


class TestFormatting:
    """Tests for REPL output helpers."""

    @pytest.mark.asyncio
    async def test_format_failure(self, repl: GameREPL) -> None:
        output = await repl.handle("create adventure x")
        assert output == (
            'Error: Command "create adventure" is not available in player mode\n'
            'Use "sudo" to enter admin mode'
        )

    def test_format_failure_without_error_details(self, repl: GameREPL) -> None:
        assert repl.format_result(CommandResult(success=False)) == "Error: Command failed"

    @pytest.mark.asyncio
    async def test_prompt_shows_loaded_adventure(self, repl: GameREPL) -> None:
        assert repl.prompt() == "> "
        await run(repl, "load demo-adventure")
        assert repl.prompt() == "[demo-adventure] > "
