from __future__ import annotations

import logging

from .cards import find_card, set_status, spawn_area_card, unassign_hero
from .gradual import can_make_progress, consume_cycle, slot_resolver, total_progress_percent
from .models import Card, ExplorationPayload
from .requirements import ensure_biome_progress
from .world import ActionResult, World

logger = logging.getLogger(__name__)


def unexplored_biomes(world: World, payload: ExplorationPayload) -> list[str]:
    region = world.content.require_region(payload.region_id)
    return [biome_id for biome_id in region.biomes if biome_id not in payload.explored_biomes]


def tick_exploration(world: World, card: Card, delta_ms: float) -> None:
    payload = card.payload_as(ExplorationPayload)
    hero = world.heroes.get(card.assigned_hero_id)
    if card.status == "complete" or payload.awaiting_discovery:
        return
    progress = ensure_biome_progress(world, payload)
    if progress is None:
        return

    world.heroes.set_status(hero, "working")
    resolver = slot_resolver(payload.assigned_items, progress.requirements)
    if not can_make_progress(world.inventory, progress.input_progress, progress.requirements, resolver):
        set_status(world, card, "paused")
        return
    set_status(world, card, "active")

    timing = world.settings.timing
    payload.cycle_progress += delta_ms
    if payload.cycle_progress < timing.work_cycle_ms:
        return
    payload.cycle_progress -= timing.work_cycle_ms
    if hero.energy.current < timing.work_cycle_energy_cost:
        return
    world.heroes.modify_energy(hero, -timing.work_cycle_energy_cost)

    result = consume_cycle(world.inventory, progress.input_progress, progress.requirements, resolver)
    world.bus.publish(
        "exploration_progress",
        card_id=card.id,
        biome_id=payload.selected_biome_id,
        percent=round(total_progress_percent(progress.input_progress), 2),
    )
    if result.complete:
        payload.awaiting_discovery = True
        payload.pending_discovery = payload.selected_biome_id
        world.bus.publish("exploration_ready", card_id=card.id, biome_id=payload.selected_biome_id)
        logger.info("%s ready to discover %s", card.name, payload.selected_biome_id)
        unassign_hero(world, card.id)
    elif result.blocked:
        set_status(world, card, "paused")


def discover_biome(world: World, card_id: str) -> ActionResult:
    card = find_card(world, card_id)
    if card is None:
        return ActionResult.fail("CARD_NOT_FOUND")
    payload = card.payload
    if not isinstance(payload, ExplorationPayload):
        return ActionResult.fail("INVALID_CARD")
    if not payload.awaiting_discovery or payload.pending_discovery is None:
        return ActionResult.fail("NOT_AWAITING_DISCOVERY")

    biome_id = payload.pending_discovery
    payload.explored_biomes.append(biome_id)
    world.state.exploration_count += 1
    if biome_id not in world.state.unlocked_biomes:
        world.state.unlocked_biomes.append(biome_id)
    area = spawn_area_card(world, biome_id, payload.region_id)
    world.bus.publish("biome_discovered", card_id=card.id, biome_id=biome_id, area_card_id=area.id)
    logger.info("Discovered %s", biome_id)

    payload.awaiting_discovery = False
    payload.pending_discovery = None
    payload.biome_progress.pop(biome_id, None)
    payload.assigned_items.clear()
    payload.cycle_progress = 0.0

    remaining = unexplored_biomes(world, payload)
    if remaining:
        payload.selected_biome_id = remaining[0]
        set_status(world, card, "idle")
    else:
        payload.selected_biome_id = None
        set_status(world, card, "complete")
        if card.id not in world.state.pending_discards:
            world.state.pending_discards.append(card.id)
        world.bus.publish("region_complete", card_id=card.id, region_id=payload.region_id)
    return ActionResult.ok(area.id)


def select_biome(world: World, card_id: str, biome_id: str) -> ActionResult:
    card = find_card(world, card_id)
    if card is None:
        return ActionResult.fail("CARD_NOT_FOUND")
    payload = card.payload
    if not isinstance(payload, ExplorationPayload):
        return ActionResult.fail("INVALID_CARD")
    if payload.awaiting_discovery or biome_id not in unexplored_biomes(world, payload):
        return ActionResult.fail("BIOME_NOT_AVAILABLE")
    if payload.selected_biome_id != biome_id:
        payload.selected_biome_id = biome_id
        payload.cycle_progress = 0.0
        payload.assigned_items.clear()
    if card.status != "complete":
        set_status(world, card, "idle")
    return ActionResult.ok(card.id)
