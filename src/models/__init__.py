"""
Core Data Models for the adventure shell.

These models define the world the command handlers operate on:
adventures, their location graph, and the characters and items inside.

Models are stored behind the AdventureRepository interface (see src.db).
"""

from src.models.adventure import (
    Adventure,
    Character,
    EntityKind,
    Item,
    Location,
    slugify,
)

__all__ = [
    "Adventure",
    "Character",
    "EntityKind",
    "Item",
    "Location",
    "slugify",
]
