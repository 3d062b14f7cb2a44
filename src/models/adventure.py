"""
Adventure Models.

Defines the world data that command handlers operate on:
Adventures made of Locations, which hold Characters and Items.

The interpreter itself only ever sees identifiers of these entities
(through the entity lookup service); handlers see the full models.
"""

from __future__ import annotations

import re
from enum import Enum

from pydantic import BaseModel, Field


class EntityKind(str, Enum):
    """Kinds of entity whose identifiers can be autocompleted."""

    ADVENTURE = "adventure"
    LOCATION = "location"
    CHARACTER = "character"
    ITEM = "item"

    @property
    def scoped(self) -> bool:
        """Whether identifiers of this kind live inside an adventure."""
        return self is not EntityKind.ADVENTURE


class Item(BaseModel):
    """An object that can lie in a location or be carried."""

    id: str
    name: str
    description: str = ""


class Character(BaseModel):
    """A non-player character."""

    id: str
    name: str
    dialogue: list[str] = Field(default_factory=list)
    current_dialogue_index: int = 0
    is_ai_powered: bool = False
    personality: str | None = Field(
        default=None, description="System prompt seed for AI-powered characters"
    )
    ai_temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    ai_max_tokens: int | None = Field(default=None, ge=1, le=500)

    def next_line(self) -> str | None:
        """Return the next scripted line, cycling through the dialogue."""
        if not self.dialogue:
            return None
        line = self.dialogue[self.current_dialogue_index % len(self.dialogue)]
        self.current_dialogue_index += 1
        return line


class Location(BaseModel):
    """A node in the adventure's location graph."""

    id: str
    name: str
    description: str = ""
    exits: dict[str, str] = Field(
        default_factory=dict, description="direction -> destination location id"
    )
    characters: list[Character] = Field(default_factory=list)
    items: list[Item] = Field(default_factory=list)

    def find_character(self, name: str) -> Character | None:
        """Find a character by id or (partial) name, case-insensitive."""
        return _find_named(self.characters, name)

    def find_item(self, name: str) -> Item | None:
        """Find an item by id or (partial) name, case-insensitive."""
        return _find_named(self.items, name)


class Adventure(BaseModel):
    """A complete, playable adventure."""

    id: str
    title: str
    description: str = ""
    start_location_id: str | None = None
    locations: dict[str, Location] = Field(default_factory=dict)

    def find_location(self, identifier: str) -> Location | None:
        """Find a location by exact id, then by name (case-insensitive)."""
        if identifier in self.locations:
            return self.locations[identifier]
        lowered = identifier.lower()
        for location in self.locations.values():
            if location.id.lower() == lowered or location.name.lower() == lowered:
                return location
        return None

    @property
    def characters(self) -> list[Character]:
        return [c for loc in self.locations.values() for c in loc.characters]

    @property
    def items(self) -> list[Item]:
        return [i for loc in self.locations.values() for i in loc.items]


def _find_named(entities: list, name: str):
    lowered = name.lower()
    for entity in entities:
        if entity.id.lower() == lowered or entity.name.lower() == lowered:
            return entity
    for entity in entities:
        if lowered in entity.name.lower():
            return entity
    return None


def slugify(text: str) -> str:
    """Turn a display name into an identifier: 'Dark Cave' -> 'dark-cave'."""
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return slug or "unnamed"
