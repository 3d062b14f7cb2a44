"""
Demo Adventure.

Provides a small pre-built adventure so a fresh shell has something to
load, explore and edit right away.
"""

from __future__ import annotations

from src.models import Adventure, Character, Item, Location

DEMO_ADVENTURE_ID = "demo-adventure"


def _connect(a: Location, direction: str, b: Location, back: str) -> None:
    a.exits[direction] = b.id
    b.exits[back] = a.id


def create_demo_adventure() -> Adventure:
    """
    Create the demo adventure.

    Returns an adventure with:
    - A tavern as the starting location
    - A market, an alley, a forest path and a crypt entrance
    - Scripted characters and one AI-powered character
    - A few items to pick up
    """
    tavern = Location(
        id="tavern",
        name="The Rusty Dragon Inn",
        description=(
            "A warm and inviting tavern with a roaring fireplace at its heart. "
            "The smell of roasted meat and fresh bread mingles with pipe smoke."
        ),
        characters=[
            Character(
                id="innkeeper",
                name="Ameiko the Innkeeper",
                dialogue=[
                    "Welcome to the Rusty Dragon! Sit anywhere you like.",
                    "Strange lights have been seen near the old crypt lately.",
                ],
            )
        ],
        items=[
            Item(
                id="wine-bottle",
                name="Abandoned bottle of wine",
                description="Half full, and the cork is still warm.",
            )
        ],
    )

    market = Location(
        id="market",
        name="Sandpoint Market Square",
        description=(
            "A bustling marketplace filled with colorful stalls. "
            "The sound of haggling and the smell of exotic spices fill the air."
        ),
        characters=[
            Character(
                id="merchant",
                name="Ven the Merchant",
                dialogue=["Finest wares in Sandpoint, friend. Have a look."],
            )
        ],
        items=[Item(id="rope", name="Coil of rope", description="Fifty feet of hemp.")],
    )

    alley = Location(
        id="alley",
        name="Shadow Alley",
        description=(
            "A narrow, dimly lit passage between buildings. "
            "The shadows seem to move on their own."
        ),
        items=[Item(id="dagger", name="Rusty dagger")],
    )

    forest = Location(
        id="forest-path",
        name="Tickwood Forest Path",
        description=(
            "A winding trail through ancient trees. Dappled sunlight filters "
            "through the canopy."
        ),
        characters=[
            Character(
                id="sage",
                name="Ancient Sage",
                is_ai_powered=True,
                personality="a cryptic hermit who speaks in riddles about the old crypt",
            )
        ],
    )

    crypt = Location(
        id="crypt",
        name="The Old Crypt",
        description=(
            "Ancient stone doors stand ajar, leading into darkness below. "
            "Cold air seeps from within."
        ),
        items=[Item(id="torch", name="Unlit torch")],
    )

    _connect(tavern, "east", market, "west")
    _connect(market, "north", alley, "south")
    _connect(tavern, "north", forest, "south")
    _connect(forest, "north", crypt, "south")

    locations = [tavern, market, alley, forest, crypt]
    return Adventure(
        id=DEMO_ADVENTURE_ID,
        title="The Rusty Dragon",
        description="A short demo adventure around a small coastal town.",
        start_location_id=tavern.id,
        locations={loc.id: loc for loc in locations},
    )
