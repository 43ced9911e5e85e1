"""Core deterministic simulation modules."""

from .area import claim_area_task
from .cards import (
    assign_hero,
    assign_item,
    discard_card,
    select_combat_style,
    spawn_area_card,
    spawn_combat_card,
    spawn_explore_card,
    spawn_recruit_card,
    spawn_task_card,
    unassign_hero,
)
from .dispatcher import DispatchReport, dispatch_tick
from .equipment import equip_item, unequip_item
from .engine import auto_manage, create_initial_state, create_world, run_simulation, state_signature, step
from .events import DomainEvent, EventBus
from .exploration import discover_biome, select_biome
from .loader import ContentBundle, ContentValidationError, MissingReferenceError, load_content
from .models import Card, GuildState, Hero
from .settings import SimSettings, load_settings
from .world import ActionResult, World

__all__ = [
    "ActionResult",
    "Card",
    "ContentBundle",
    "ContentValidationError",
    "DispatchReport",
    "DomainEvent",
    "EventBus",
    "GuildState",
    "Hero",
    "MissingReferenceError",
    "SimSettings",
    "World",
    "assign_hero",
    "assign_item",
    "auto_manage",
    "claim_area_task",
    "create_initial_state",
    "create_world",
    "discard_card",
    "discover_biome",
    "dispatch_tick",
    "equip_item",
    "load_content",
    "load_settings",
    "run_simulation",
    "select_biome",
    "select_combat_style",
    "spawn_area_card",
    "spawn_combat_card",
    "spawn_explore_card",
    "spawn_recruit_card",
    "spawn_task_card",
    "state_signature",
    "step",
    "unassign_hero",
    "unequip_item",
]
