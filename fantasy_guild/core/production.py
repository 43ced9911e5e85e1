from __future__ import annotations

import logging
import math

from .cards import set_status
from .consumables import auto_consume
from .effects import EffectContext, apply_task_effects
from .models import Card, Hero, ProductionPayload, TaskOutput, TaskTemplate
from .rng import roll_fraction, roll_percent
from .world import World

logger = logging.getLogger(__name__)


def _slot_item(payload: ProductionPayload, template: TaskTemplate, index: int) -> str | None:
    task_input = template.inputs[index]
    if task_input.item_id is not None:
        return task_input.item_id
    return payload.assigned_items.get(index)


def _input_totals(
    payload: ProductionPayload, template: TaskTemplate, include_tools: bool = True
) -> dict[str, int] | None:
    """Quantity per concrete item id across all slots, or None while a slot is empty."""
    totals: dict[str, int] = {}
    for index, task_input in enumerate(template.inputs):
        item_id = _slot_item(payload, template, index)
        if item_id is None:
            return None
        if task_input.is_tool and not include_tools:
            continue
        totals[item_id] = totals.get(item_id, 0) + task_input.quantity
    return totals


def _in_stock(world: World, totals: dict[str, int] | None) -> bool:
    return totals is not None and all(world.inventory.has(item_id, qty) for item_id, qty in totals.items())


def has_resources(world: World, card: Card, hero: Hero) -> bool:
    payload = card.payload_as(ProductionPayload)
    template = world.content.require_task(payload.template_id)
    if hero.energy.current < template.base_energy_cost:
        return False
    return _in_stock(world, _input_totals(payload, template))


def skill_speed_multiplier(world: World, hero: Hero, skill: str) -> float:
    return 1 + hero.skill_level(skill) * world.settings.timing.skill_speed_per_level


def _category_bonus(values: dict[str, float], category: str) -> float:
    bonus = values.get("all", 0.0)
    if category != "all":
        bonus += values.get(category, 0.0)
    return bonus


def _select_outputs(card: Card, payload: ProductionPayload, template: TaskTemplate) -> list[TaskOutput]:
    if not template.output_map:
        return template.outputs
    keyed = payload.assigned_items.get(0)
    if keyed is None or keyed not in template.output_map:
        logger.warning("%s has no output mapped for %s", card.name, keyed)
        return []
    return template.output_map[keyed]


def _grant_outputs(world: World, card: Card, outputs: list[TaskOutput], doubled: bool) -> dict[str, int]:
    granted: dict[str, int] = {}
    for output in outputs:
        if not roll_percent(world.rng, output.chance):
            continue
        qty = output.quantity * (2 if doubled else 1)
        if output.currency_id is not None:
            balance = world.state.currencies.get(output.currency_id, 0)
            world.state.currencies[output.currency_id] = balance + qty
            world.bus.publish("currency_granted", card_id=card.id, currency_id=output.currency_id, amount=qty)
            continue
        added = world.inventory.add(output.item_id, qty)
        if added:
            granted[output.item_id] = granted.get(output.item_id, 0) + added
    if granted:
        world.bus.publish("items_granted", card_id=card.id, items=dict(granted), doubled=doubled)
    return granted


def _consume_inputs(world: World, card: Card, template: TaskTemplate) -> bool | None:
    """Spend one cycle's inputs.

    Returns None (and spends nothing) when stock is short, otherwise whether a
    tool stack ran out.
    """
    payload = card.payload_as(ProductionPayload)
    spend = _input_totals(payload, template, include_tools=False)
    if spend is None or not _in_stock(world, spend):
        return None
    for item_id, qty in spend.items():
        if not world.inventory.remove(item_id, qty):
            logger.warning("%s lost %s x%s mid-cycle", card.name, item_id, qty)
            return None

    tool_depleted = False
    for index, task_input in enumerate(template.inputs):
        item_id = _slot_item(payload, template, index)
        if item_id is None or not task_input.is_tool:
            continue
        result = world.inventory.decrement_durability(item_id, 1)
        if result.broke:
            world.bus.publish("tool_broken", card_id=card.id, item_id=item_id, depleted=result.depleted)
            logger.info("%s broke on %s", item_id, card.name)
        if result.depleted:
            tool_depleted = True
            if task_input.is_open:
                payload.assigned_items.pop(index, None)
    return tool_depleted


def _award_xp(world: World, hero: Hero, template: TaskTemplate, category: str, context: EffectContext) -> int:
    base = template.xp_awarded if template.xp_awarded is not None else world.settings.progression.default_task_xp
    multiplier = (
        world.heroes.xp_multiplier(hero, template.skill)
        + context.xp_bonus
        + _category_bonus(world.state.modifiers.xp_bonus, category)
    )
    amount = math.floor(base * multiplier)
    world.heroes.add_xp(hero, template.skill, amount)
    return amount


def _pause_short(world: World, card: Card, payload: ProductionPayload) -> bool:
    payload.progress = 0.0
    set_status(world, card, "paused")
    world.bus.publish("task_paused", card_id=card.id, reason="insufficient_resources")
    logger.info("%s could not complete: insufficient resources", card.name)
    return False


def complete_cycle(world: World, card: Card, hero: Hero) -> bool:
    payload = card.payload_as(ProductionPayload)
    template = world.content.require_task(payload.template_id)

    if not has_resources(world, card, hero):
        return _pause_short(world, card, payload)
    tool_depleted = _consume_inputs(world, card, template)
    if tool_depleted is None:
        return _pause_short(world, card, payload)
    world.heroes.modify_energy(hero, -template.base_energy_cost)

    context = apply_task_effects(payload.source_effects, template.skill, world.rng)
    doubled = context.double_output or roll_fraction(
        world.rng, _category_bonus(world.state.modifiers.double_items_chance, payload.task_category)
    )
    granted: dict[str, int] = {}
    if context.output_failed:
        logger.debug("%s output failed", card.name)
    else:
        granted = _grant_outputs(world, card, _select_outputs(card, payload, template), doubled)
    xp = _award_xp(world, hero, template, payload.task_category, context)

    payload.progress = 0.0
    world.bus.publish(
        "task_completed",
        card_id=card.id,
        hero_id=hero.id,
        template_id=template.id,
        items=granted,
        xp=xp,
        failed=context.output_failed,
    )
    set_status(world, card, "paused" if tool_depleted else "idle")
    return True


def tick_production(world: World, card: Card, delta_ms: float) -> None:
    payload = card.payload_as(ProductionPayload)
    hero = world.heroes.get(card.assigned_hero_id)
    template = world.content.require_task(payload.template_id)
    if card.status == "complete":
        return
    world.heroes.set_status(hero, "working")

    if auto_consume(world, hero, food_first=False, respect_cooldown=True):
        return

    if card.status == "paused":
        if not has_resources(world, card, hero):
            return
        set_status(world, card, "idle")
    if card.status == "idle":
        if not has_resources(world, card, hero):
            set_status(world, card, "paused")
            world.bus.publish("task_paused", card_id=card.id, reason="waiting_for_resources")
            return
        set_status(world, card, "active")

    payload.progress += delta_ms * skill_speed_multiplier(world, hero, template.skill)
    if payload.progress >= payload.base_tick_time:
        complete_cycle(world, card, hero)
