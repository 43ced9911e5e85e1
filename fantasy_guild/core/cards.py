from __future__ import annotations

import logging

from .combat import best_combat_style, new_encounter, reset_encounter
from .effects import completion_effects, speed_modifier
from .loader import MissingReferenceError
from .models import (
    TAG_PREFIX,
    AreaPayload,
    Card,
    CardStatus,
    CombatPayload,
    CombatStyle,
    EnemyGroupState,
    ExplorationPayload,
    Hero,
    ProductionPayload,
    RecruitPayload,
)
from .requirements import slot_requirement_keys
from .world import ActionResult, World

logger = logging.getLogger(__name__)


def _next_card_id(world: World, prefix: str) -> str:
    seq = world.state.next_card_seq
    world.state.next_card_seq += 1
    return f"{prefix}_{seq:04d}"


def _add_card(world: World, card: Card) -> Card:
    world.state.cards.append(card)
    world.bus.publish("card_spawned", card_id=card.id, card_type=card.card_type, card_name=card.name)
    logger.info("Spawned %s card %s (%s)", card.card_type, card.id, card.name)
    return card


def find_card(world: World, card_id: str) -> Card | None:
    for card in world.state.cards:
        if card.id == card_id:
            return card
    return None


def get_card(world: World, card_id: str) -> Card:
    card = find_card(world, card_id)
    if card is None:
        raise MissingReferenceError("card", card_id)
    return card


def card_for_hero(world: World, hero_id: str) -> Card | None:
    for card in world.state.cards:
        if card.assigned_hero_id == hero_id:
            return card
    return None


def set_status(world: World, card: Card, status: CardStatus) -> None:
    if card.status == status:
        return
    previous = card.status
    card.status = status
    world.bus.publish("card_status_changed", card_id=card.id, previous=previous, status=status)
    logger.debug("Card %s %s -> %s", card.id, previous, status)


# --- spawning ----------------------------------------------------------------


def spawn_task_card(world: World, template_id: str, biome_id: str | None = None, region_id: str | None = None) -> Card:
    template = world.content.require_task(template_id)
    base_tick_time = float(template.base_tick_time or world.settings.timing.default_task_duration_ms)
    effects = []
    if biome_id is not None:
        biome = world.content.require_biome(biome_id)
        base_tick_time *= speed_modifier(biome.effects, template.skill, world.settings.timing.min_speed_multiplier)
        effects = completion_effects(biome.effects)
    payload = ProductionPayload(
        template_id=template.id,
        task_category=template.task_category,
        biome_id=biome_id,
        region_id=region_id,
        base_tick_time=base_tick_time,
        source_effects=effects,
    )
    return _add_card(world, Card(id=_next_card_id(world, "task"), name=template.name, payload=payload))


def spawn_combat_card(world: World, template_id: str) -> Card:
    template = world.content.require_combat(template_id)
    enemy = world.content.require_enemy(template.enemy_id)
    payload = CombatPayload(template_id=template.id, enemy_id=enemy.id, encounter=new_encounter(enemy))
    return _add_card(world, Card(id=_next_card_id(world, "combat"), name=template.name, payload=payload))


def spawn_explore_card(world: World, region_id: str, biome_id: str | None = None) -> Card:
    region = world.content.require_region(region_id)
    selected = biome_id if biome_id is not None else region.biomes[0]
    payload = ExplorationPayload(region_id=region.id, selected_biome_id=selected)
    return _add_card(world, Card(id=_next_card_id(world, "explore"), name=f"Explore {region.name}", payload=payload))


def spawn_area_card(world: World, biome_id: str, region_id: str | None = None) -> Card:
    biome = world.content.require_biome(biome_id)
    groups = []
    for group in biome.enemy_groups:
        total = group.count if group.type == "combat" else 1
        groups.append(
            EnemyGroupState(
                type=group.type,
                enemy_id=group.enemy_id,
                name=group.name,
                total=total,
                remaining=total,
                unlocks_task=group.unlocks_task,
                rewards=[reward.model_copy() for reward in group.rewards],
                xp_rewards=[reward.model_copy() for reward in group.xp_rewards],
                requirements=dict(group.requirements),
            )
        )
    payload = AreaPayload(
        biome_id=biome.id,
        region_id=region_id,
        enemy_groups=groups,
        project_chain=list(biome.project_chain),
    )
    return _add_card(world, Card(id=_next_card_id(world, "area"), name=biome.name, payload=payload))


def spawn_recruit_card(world: World, free: bool = False) -> Card:
    name = "Free Recruit" if free else "Recruit"
    return _add_card(world, Card(id=_next_card_id(world, "recruit"), name=name, payload=RecruitPayload(free=free)))


# --- hero assignment ---------------------------------------------------------


def _is_gated(card: Card) -> bool:
    payload = card.payload
    if isinstance(payload, ExplorationPayload):
        return payload.awaiting_discovery
    if isinstance(payload, AreaPayload):
        return payload.awaiting_task_claim
    return False


def _meets_skill_requirement(world: World, card: Card, hero: Hero) -> bool:
    payload = card.payload
    if isinstance(payload, ProductionPayload):
        template = world.content.require_task(payload.template_id)
        return hero.skill_level(template.skill) >= template.skill_requirement
    if isinstance(payload, CombatPayload):
        template = world.content.require_combat(payload.template_id)
        return hero.skill_level(best_combat_style(hero)) >= template.skill_requirement
    return True


def activity_status(card: Card) -> str:
    payload = card.payload
    if isinstance(payload, CombatPayload):
        return "combat"
    if isinstance(payload, AreaPayload) and payload.phase == "questing":
        group = payload.current_group()
        if group is not None and group.type == "combat":
            return "combat"
    return "working"


def assign_hero(world: World, card_id: str, hero_id: str) -> ActionResult:
    card = find_card(world, card_id)
    if card is None:
        return ActionResult.fail("CARD_NOT_FOUND")
    if isinstance(card.payload, RecruitPayload) or card.status == "complete" or _is_gated(card):
        return ActionResult.fail("CARD_NOT_ASSIGNABLE")
    if card.assigned_hero_id is not None:
        return ActionResult.fail("CARD_SLOT_OCCUPIED")
    hero = world.heroes.find(hero_id)
    if hero is None:
        return ActionResult.fail("HERO_NOT_FOUND")
    if hero.status == "wounded":
        return ActionResult.fail("HERO_WOUNDED")
    if card_for_hero(world, hero_id) is not None:
        return ActionResult.fail("HERO_ALREADY_ASSIGNED")
    if not _meets_skill_requirement(world, card, hero):
        return ActionResult.fail("SKILL_REQUIREMENT_NOT_MET")

    card.assigned_hero_id = hero.id
    if isinstance(card.payload, (CombatPayload, AreaPayload)):
        card.payload.selected_style = best_combat_style(hero)
    world.heroes.set_status(hero, activity_status(card))
    set_status(world, card, "idle")
    world.bus.publish("hero_assigned", card_id=card.id, hero_id=hero.id)
    logger.info("%s assigned to %s", hero.name, card.name)
    return ActionResult.ok(card.id)


def _reset_card_progress(world: World, card: Card) -> None:
    payload = card.payload
    if isinstance(payload, ProductionPayload):
        payload.progress = 0.0
    elif isinstance(payload, CombatPayload):
        reset_encounter(payload.encounter, world.content.require_enemy(payload.enemy_id))
    elif isinstance(payload, ExplorationPayload):
        payload.cycle_progress = 0.0
    elif isinstance(payload, AreaPayload):
        payload.cycle_progress = 0.0
        if payload.encounter is not None:
            reset_encounter(payload.encounter, world.content.require_enemy(payload.encounter.enemy_id))


def unassign_hero(world: World, card_id: str) -> ActionResult:
    card = find_card(world, card_id)
    if card is None:
        return ActionResult.fail("CARD_NOT_FOUND")
    hero_id = card.assigned_hero_id
    if hero_id is None:
        return ActionResult.fail("NO_HERO_ASSIGNED")

    card.assigned_hero_id = None
    _reset_card_progress(world, card)
    if card.status != "complete":
        set_status(world, card, "idle")
    hero = world.heroes.find(hero_id)
    if hero is not None and hero.status != "wounded":
        world.heroes.set_status(hero, "idle")
    world.bus.publish("hero_unassigned", card_id=card.id, hero_id=hero_id)
    logger.info("Hero %s unassigned from %s", hero_id, card.name)
    return ActionResult.ok(card.id)


def release_hero(world: World, hero_id: str) -> ActionResult:
    card = card_for_hero(world, hero_id)
    if card is None:
        return ActionResult.fail("NO_HERO_ASSIGNED")
    return unassign_hero(world, card.id)


# --- other player actions ----------------------------------------------------


def assign_item(world: World, card_id: str, slot: int, item_id: str | None) -> ActionResult:
    card = find_card(world, card_id)
    if card is None:
        return ActionResult.fail("CARD_NOT_FOUND")
    if not isinstance(card.payload, (ProductionPayload, ExplorationPayload, AreaPayload)):
        return ActionResult.fail("INVALID_CARD")
    keys = slot_requirement_keys(world, card)
    if slot < 0 or slot >= len(keys):
        return ActionResult.fail("INVALID_SLOT")

    if item_id is None:
        card.payload.assigned_items.pop(slot, None)
        return ActionResult.ok(card.id)

    key = keys[slot]
    if key is None or not key.startswith(TAG_PREFIX):
        return ActionResult.fail("INVALID_SLOT")
    template = world.content.item_by_id.get(item_id)
    if template is None or key[len(TAG_PREFIX):] not in template.tags:
        return ActionResult.fail("ITEM_NOT_ACCEPTED")
    if not world.inventory.has(item_id, 1):
        return ActionResult.fail("ITEM_NOT_IN_STOCK")
    card.payload.assigned_items[slot] = item_id
    return ActionResult.ok(card.id)


def select_combat_style(world: World, card_id: str, style: CombatStyle) -> ActionResult:
    card = find_card(world, card_id)
    if card is None:
        return ActionResult.fail("CARD_NOT_FOUND")
    if not isinstance(card.payload, (CombatPayload, AreaPayload)):
        return ActionResult.fail("INVALID_CARD")
    card.payload.selected_style = style
    return ActionResult.ok(card.id)


def discard_card(world: World, card_id: str) -> ActionResult:
    card = find_card(world, card_id)
    if card is None:
        return ActionResult.fail("CARD_NOT_FOUND")
    if card.assigned_hero_id is not None:
        unassign_hero(world, card.id)
    world.state.cards.remove(card)
    if card.id in world.state.pending_discards:
        world.state.pending_discards.remove(card.id)
    world.bus.publish("card_discarded", card_id=card.id, card_type=card.card_type)
    logger.info("Discarded card %s", card.id)
    return ActionResult.ok(card.id)
