from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from .events import EventBus
from .heroes import HeroRoster
from .inventory import Inventory
from .loader import ContentBundle
from .models import GuildState
from .rng import RandomSource
from .settings import SimSettings

ActionError = Literal[
    "CARD_NOT_FOUND",
    "CARD_NOT_ASSIGNABLE",
    "CARD_SLOT_OCCUPIED",
    "HERO_NOT_FOUND",
    "HERO_WOUNDED",
    "HERO_ALREADY_ASSIGNED",
    "SKILL_REQUIREMENT_NOT_MET",
    "NO_HERO_ASSIGNED",
    "INVALID_CARD",
    "INVALID_SLOT",
    "ITEM_NOT_ACCEPTED",
    "ITEM_NOT_IN_STOCK",
    "BIOME_NOT_AVAILABLE",
    "NOT_AWAITING_DISCOVERY",
    "NOT_AWAITING_CLAIM",
    "ITEM_NOT_FOUND",
    "ITEM_NOT_EQUIPPABLE",
    "SLOT_EMPTY",
]


@dataclass(slots=True)
class ActionResult:
    success: bool
    error: ActionError | None = None
    card_id: str | None = None

    @classmethod
    def ok(cls, card_id: str | None = None) -> "ActionResult":
        return cls(success=True, card_id=card_id)

    @classmethod
    def fail(cls, error: ActionError) -> "ActionResult":
        return cls(success=False, error=error)


@dataclass(slots=True)
class World:
    """Everything a card handler may read or mutate during a tick."""

    state: GuildState
    content: ContentBundle
    settings: SimSettings
    bus: EventBus
    rng: RandomSource
    inventory: Inventory
    heroes: HeroRoster

    @property
    def now_ms(self) -> float:
        return self.state.elapsed_ms
