from __future__ import annotations

import logging
from typing import Literal

from .models import Hero
from .world import World

logger = logging.getLogger(__name__)

SupplySlot = Literal["food", "drink"]


def needs_food(world: World, hero: Hero) -> bool:
    return hero.hp.fraction < world.settings.upkeep.auto_consume_hp_threshold


def needs_drink(world: World, hero: Hero) -> bool:
    return hero.energy.fraction < world.settings.upkeep.auto_consume_energy_threshold


def _consume_supply(world: World, hero: Hero, slot: SupplySlot) -> bool:
    item_id = getattr(hero.equipment, slot)
    if not item_id or not world.inventory.has(item_id, 1):
        return False
    template = world.content.require_item(item_id)
    if template.restore_amount <= 0:
        return False
    if not world.inventory.remove(item_id, 1):
        return False

    if slot == "food":
        world.heroes.modify_hp(hero, template.restore_amount)
        restored = "hp"
    else:
        world.heroes.modify_energy(hero, template.restore_amount)
        restored = "energy"
    hero.last_consumed_at_ms = world.now_ms
    world.bus.publish(
        "combat_consumed" if hero.status == "combat" else "hero_consumed",
        hero_id=hero.id,
        item_id=item_id,
        restore_type=restored,
        amount=template.restore_amount,
    )

    if not world.inventory.has(item_id, 1):
        setattr(hero.equipment, slot, None)
        logger.info("%s's %s supply is exhausted", hero.name, template.name)
    return True


def auto_consume(world: World, hero: Hero, *, food_first: bool, respect_cooldown: bool) -> bool:
    """Eat or drink one equipped supply if a vital is below its threshold.

    Returns True when something was consumed; callers treat that as the
    hero's action for the tick.
    """
    if respect_cooldown and hero.last_consumed_at_ms is not None:
        if world.now_ms - hero.last_consumed_at_ms < world.settings.upkeep.auto_consume_cooldown_ms:
            return False

    checks: list[tuple[bool, SupplySlot]] = [(needs_food(world, hero), "food"), (needs_drink(world, hero), "drink")]
    if not food_first:
        checks.reverse()
    for needed, slot in checks:
        if needed and _consume_supply(world, hero, slot):
            return True
    return False
