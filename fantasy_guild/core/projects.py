from __future__ import annotations

import logging

from .cards import spawn_explore_card, spawn_recruit_card
from .models import Card, ProjectTemplate
from .world import World

logger = logging.getLogger(__name__)


def apply_project_effect(world: World, card: Card, project: ProjectTemplate) -> None:
    effect = project.effect
    state = world.state
    match project.effect_type:
        case "recruit_card":
            for _ in range(effect.count or 1):
                spawn_recruit_card(world, free=True)
        case "inventory_slots":
            state.inventory.max_slots += effect.slots or 1
        case "max_stack":
            state.inventory.max_stack_bonus += effect.stack_bonus or 1
        case "double_items":
            current = state.modifiers.double_items_chance.get(effect.target_category, 0.0)
            state.modifiers.double_items_chance[effect.target_category] = current + (effect.chance or 0.0)
        case "xp_bonus":
            current = state.modifiers.xp_bonus.get(effect.target_category, 0.0)
            state.modifiers.xp_bonus[effect.target_category] = current + (effect.bonus or 0.0)
        case "unlock_biome":
            biome = world.content.require_biome(effect.biome_id)
            if biome.id not in state.unlocked_biomes:
                state.unlocked_biomes.append(biome.id)
            world.bus.publish("biome_unlocked", card_id=card.id, biome_id=biome.id)
        case "unlock_region":
            region = world.content.require_region(effect.region_id)
            spawn_explore_card(world, region.id, region.biomes[0])
    logger.info("Project %s applied %s", project.id, project.effect_type)
