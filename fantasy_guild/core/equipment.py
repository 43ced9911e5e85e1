from __future__ import annotations

import logging

from .models import EquipSlot, Hero, ItemTemplate
from .world import ActionError, ActionResult, World

logger = logging.getLogger(__name__)

EQUIP_SLOTS: tuple[EquipSlot, ...] = ("weapon", "armor", "food", "drink")


def can_equip_to_slot(world: World, item_id: str, slot: str) -> bool:
    template = world.content.item_by_id.get(item_id)
    return template is not None and template.equip_slot == slot


def equip_blocker(hero: Hero, template: ItemTemplate) -> ActionError | None:
    """Why ``hero`` may not wear ``template``; supplies carry no requirement."""
    if template.equip_slot is None:
        return "ITEM_NOT_EQUIPPABLE"
    if template.equip_slot in ("food", "drink") or template.skill_required is None:
        return None
    if hero.skill_level(template.skill_required) < template.level_required:
        return "SKILL_REQUIREMENT_NOT_MET"
    return None


def equip_item(world: World, hero_id: str, item_id: str) -> ActionResult:
    hero = world.heroes.find(hero_id)
    if hero is None:
        return ActionResult.fail("HERO_NOT_FOUND")
    template = world.content.item_by_id.get(item_id)
    if template is None:
        return ActionResult.fail("ITEM_NOT_FOUND")
    if template.equip_slot is None:
        return ActionResult.fail("ITEM_NOT_EQUIPPABLE")
    if not world.inventory.has(item_id, 1):
        return ActionResult.fail("ITEM_NOT_IN_STOCK")
    blocker = equip_blocker(hero, template)
    if blocker is not None:
        logger.info("%s cannot equip %s: %s", hero.name, template.name, blocker)
        return ActionResult.fail(blocker)

    slot = template.equip_slot
    previous = getattr(hero.equipment, slot)
    setattr(hero.equipment, slot, item_id)
    world.bus.publish(
        "hero_equipment_changed",
        hero_id=hero.id,
        slot=slot,
        item_id=item_id,
        previous_item_id=previous,
        action="equip",
    )
    logger.info("%s equipped %s as %s", hero.name, template.name, slot)
    return ActionResult.ok()


def unequip_item(world: World, hero_id: str, slot: str) -> ActionResult:
    hero = world.heroes.find(hero_id)
    if hero is None:
        return ActionResult.fail("HERO_NOT_FOUND")
    if slot not in EQUIP_SLOTS:
        return ActionResult.fail("INVALID_SLOT")
    previous = getattr(hero.equipment, slot)
    if previous is None:
        return ActionResult.fail("SLOT_EMPTY")

    setattr(hero.equipment, slot, None)
    world.bus.publish(
        "hero_equipment_changed",
        hero_id=hero.id,
        slot=slot,
        item_id=None,
        previous_item_id=previous,
        action="unequip",
    )
    logger.info("%s unequipped %s from %s", hero.name, previous, slot)
    return ActionResult.ok()
