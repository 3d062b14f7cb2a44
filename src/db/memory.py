"""
In-memory implementation of the data store interfaces.

Stores everything in a dictionary, making tests and offline play fast
and isolated from the real adventure backend.
"""

from __future__ import annotations

from copy import deepcopy

from src.models import Adventure, EntityKind


class InMemoryAdventureStore:
    """
    In-memory implementation of AdventureRepository and EntityLookupService.

    Returned adventures are copies; callers save them back to persist
    changes, the same as they would against the real backend.
    """

    def __init__(self, adventures: list[Adventure] | None = None) -> None:
        self._adventures: dict[str, Adventure] = {}
        for adventure in adventures or []:
            self._adventures[adventure.id] = deepcopy(adventure)

    async def list_adventures(self) -> list[Adventure]:
        """Get every stored adventure, ordered by id."""
        return [deepcopy(self._adventures[k]) for k in sorted(self._adventures)]

    async def get_adventure(self, adventure_id: str) -> Adventure | None:
        """Get an adventure by id (case-insensitive)."""
        adventure = self._adventures.get(adventure_id)
        if adventure is None:
            lowered = adventure_id.lower()
            adventure = next(
                (a for k, a in self._adventures.items() if k.lower() == lowered),
                None,
            )
        return deepcopy(adventure) if adventure else None

    async def save_adventure(self, adventure: Adventure) -> None:
        """Insert or replace an adventure."""
        self._adventures[adventure.id] = deepcopy(adventure)

    async def delete_adventure(self, adventure_id: str) -> bool:
        """Delete an adventure. Returns False if it did not exist."""
        return self._adventures.pop(adventure_id, None) is not None

    async def list_ids(self, kind: EntityKind, adventure_id: str | None = None) -> list[str]:
        """
        List identifiers of every entity of `kind`.

        Adventures and locations are listed by id; characters and items by
        display name, since that is how players refer to them.
        """
        if kind is EntityKind.ADVENTURE:
            return sorted(self._adventures)

        adventure = self._adventures.get(adventure_id) if adventure_id else None
        if adventure is None:
            return []

        if kind is EntityKind.LOCATION:
            return sorted(adventure.locations)
        if kind is EntityKind.CHARACTER:
            return sorted({c.name for c in adventure.characters})
        return sorted({i.name for i in adventure.items})
