"""
Data store layer for the adventure shell.

Provides interfaces and implementations for:
- AdventureRepository: Whole-adventure storage used by command handlers
- EntityLookupService: Identifier listings used by autocomplete

Implementations:
- InMemoryAdventureStore: For testing and offline play (no backend needed)
"""

from __future__ import annotations

from src.db.interfaces import AdventureRepository, EntityLookupService
from src.db.memory import InMemoryAdventureStore

__all__ = [
    # Protocol interfaces
    "AdventureRepository",
    "EntityLookupService",
    # In-memory implementation
    "InMemoryAdventureStore",
]
