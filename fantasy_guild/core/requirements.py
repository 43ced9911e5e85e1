from __future__ import annotations

import logging

from .gradual import apply_multiplier, combine_requirements, init_progress
from .models import AreaPayload, Card, ExplorationPayload, GradualProgress, ProductionPayload
from .world import World

logger = logging.getLogger(__name__)


def exploration_requirements(world: World, region_id: str, biome_id: str) -> dict[str, int]:
    biome = world.content.require_biome(biome_id)
    region = world.content.require_region(region_id)
    cost = biome.exploration_cost
    combined = combine_requirements(cost.base, cost.specific) if cost is not None else {}
    if not combined:
        combined = dict(world.settings.progression.fallback_exploration_cost)
    scale = 1 + world.settings.progression.exploration_cost_step * world.state.exploration_count
    return apply_multiplier(combined, scale * region.base_cost_multiplier)


def ensure_biome_progress(world: World, payload: ExplorationPayload) -> GradualProgress | None:
    biome_id = payload.selected_biome_id
    if biome_id is None:
        return None
    progress = payload.biome_progress.get(biome_id)
    if progress is None:
        requirements = exploration_requirements(world, payload.region_id, biome_id)
        progress = GradualProgress(input_progress=init_progress(requirements), requirements=requirements)
        payload.biome_progress[biome_id] = progress
        logger.debug("Initialised exploration cost for %s: %s", biome_id, requirements)
    return progress


def ensure_quest_progress(payload: AreaPayload) -> GradualProgress | None:
    group = payload.current_group()
    if group is None or group.type != "collection":
        return None
    if payload.quest_progress is None:
        payload.quest_progress = GradualProgress(
            input_progress=init_progress(group.requirements),
            requirements=dict(group.requirements),
        )
    return payload.quest_progress


def ensure_project_progress(world: World, payload: AreaPayload) -> GradualProgress | None:
    if payload.current_project_index >= len(payload.project_chain):
        return None
    if payload.project_progress is None:
        project = world.content.require_project(payload.project_chain[payload.current_project_index])
        payload.project_progress = GradualProgress(
            input_progress=init_progress(project.resource_cost),
            requirements=dict(project.resource_cost),
        )
    return payload.project_progress


def slot_requirement_keys(world: World, card: Card) -> list[str | None]:
    """Requirement key behind each item slot of a card, ``None`` for fixed slots."""
    payload = card.payload
    if isinstance(payload, ProductionPayload):
        template = world.content.require_task(payload.template_id)
        return [f"tag:{task_input.accept_tag}" if task_input.is_open else None for task_input in template.inputs]
    if isinstance(payload, ExplorationPayload):
        progress = ensure_biome_progress(world, payload)
        return list(progress.requirements) if progress is not None else []
    if isinstance(payload, AreaPayload):
        # project costs draw tag keys from any matching stock, so only quests expose slots
        progress = ensure_quest_progress(payload) if payload.phase == "questing" else None
        return list(progress.requirements) if progress is not None else []
    return []
