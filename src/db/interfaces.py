"""
Data store interface definitions.

Uses Protocol classes to define the contract for the adventure data store.
Implementations can call a real backend or keep everything in memory
for testing.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from src.models import Adventure, EntityKind


class EntityLookupService(Protocol):
    """
    Interface for listing entity identifiers.

    Feeds the autocomplete cache. Adventure ids are global; location,
    character and item identifiers are listed within one adventure.
    """

    async def list_ids(self, kind: EntityKind, adventure_id: str | None = None) -> list[str]:
        """List identifiers of every entity of `kind`."""
        ...


class AdventureRepository(Protocol):
    """
    Interface for adventure storage operations.

    Handlers work on whole Adventure models and save them back.
    """

    async def list_adventures(self) -> list[Adventure]:
        """Get every stored adventure."""
        ...

    async def get_adventure(self, adventure_id: str) -> Adventure | None:
        """Get an adventure by id, or None if unknown."""
        ...

    async def save_adventure(self, adventure: Adventure) -> None:
        """Insert or replace an adventure."""
        ...

    async def delete_adventure(self, adventure_id: str) -> bool:
        """Delete an adventure. Returns False if it did not exist."""
        ...
