from __future__ import annotations

import logging

from .cards import set_status, unassign_hero
from .combat import advance_encounter, reset_encounter, roll_drops
from .models import Card, CombatPayload
from .world import World

logger = logging.getLogger(__name__)


def tick_combat_card(world: World, card: Card, delta_ms: float) -> None:
    payload = card.payload_as(CombatPayload)
    hero = world.heroes.get(card.assigned_hero_id)
    if hero.status == "wounded":
        unassign_hero(world, card.id)
        return
    enemy = world.content.require_enemy(payload.enemy_id)
    set_status(world, card, "active")

    outcome = advance_encounter(world, card, payload.encounter, hero, enemy, payload.selected_style, delta_ms)
    if outcome == "victory":
        drops = roll_drops(world, enemy, card)
        world.bus.publish("combat_victory", card_id=card.id, hero_id=hero.id, enemy_id=enemy.id, drops=drops)
        logger.info("%s defeated %s", hero.name, enemy.name)
        reset_encounter(payload.encounter, enemy)
    elif outcome == "defeat":
        logger.info("%s was defeated by %s", hero.name, enemy.name)
        unassign_hero(world, card.id)
        world.heroes.wound(hero)
        world.bus.publish("combat_defeat", card_id=card.id, hero_id=hero.id, enemy_id=enemy.id)
