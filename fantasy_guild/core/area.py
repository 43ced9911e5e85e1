"""Area cards: a questing phase of enemy groups followed by a project chain.

Finishing a group raises the task-claim gate; nothing on the card advances
again until ``claim_area_task`` is called.
"""

from __future__ import annotations

import logging

from .cards import find_card, set_status, spawn_task_card, unassign_hero
from .combat import advance_encounter, new_encounter, reset_encounter, roll_drops
from .gradual import CycleResult, can_make_progress, consume_cycle, slot_resolver, total_progress_percent
from .models import AreaPayload, Card, EnemyGroupState, GradualProgress, Hero, PendingTaskClaim
from .projects import apply_project_effect
from .requirements import ensure_project_progress, ensure_quest_progress
from .world import ActionResult, World

logger = logging.getLogger(__name__)


def _run_work_cycle(world: World, hero: Hero, payload: AreaPayload, delta_ms: float) -> bool:
    """Accumulate time; True when a full, paid-for work cycle is due."""
    timing = world.settings.timing
    payload.cycle_progress += delta_ms
    if payload.cycle_progress < timing.work_cycle_ms:
        return False
    payload.cycle_progress -= timing.work_cycle_ms
    if hero.energy.current < timing.work_cycle_energy_cost:
        return False
    world.heroes.modify_energy(hero, -timing.work_cycle_energy_cost)
    return True


def _enter_projects(world: World, card: Card) -> None:
    payload = card.payload_as(AreaPayload)
    payload.phase = "projects"
    payload.encounter = None
    payload.quest_progress = None
    payload.cycle_progress = 0.0
    payload.assigned_items.clear()
    world.bus.publish("area_phase_changed", card_id=card.id, phase="projects")
    logger.info("%s entered the project phase", card.name)
    if payload.current_project_index >= len(payload.project_chain):
        _complete_area(world, card)


def _complete_area(world: World, card: Card) -> None:
    payload = card.payload_as(AreaPayload)
    payload.phase = "complete"
    payload.project_progress = None
    set_status(world, card, "complete")
    world.bus.publish("area_completed", card_id=card.id, biome_id=payload.biome_id)
    logger.info("%s is complete", card.name)
    if card.assigned_hero_id is not None:
        unassign_hero(world, card.id)


def complete_enemy_group(world: World, card: Card, group: EnemyGroupState) -> None:
    payload = card.payload_as(AreaPayload)
    payload.awaiting_task_claim = True
    payload.pending_task_claim = PendingTaskClaim(
        task_id=group.unlocks_task,
        group_index=payload.current_group_index,
        rewards=[reward.model_copy() for reward in group.rewards],
        xp_rewards=[reward.model_copy() for reward in group.xp_rewards],
    )
    world.bus.publish(
        "area_group_complete",
        card_id=card.id,
        group_index=payload.current_group_index,
        task_id=group.unlocks_task,
    )
    logger.info("%s group %s complete, awaiting claim", card.name, payload.current_group_index)
    if card.assigned_hero_id is not None:
        unassign_hero(world, card.id)


def _tick_group_combat(world: World, card: Card, hero: Hero, group: EnemyGroupState, delta_ms: float) -> None:
    payload = card.payload_as(AreaPayload)
    enemy = world.content.require_enemy(group.enemy_id)
    if payload.encounter is None or payload.encounter.enemy_id != enemy.id:
        payload.encounter = new_encounter(enemy)
    encounter = payload.encounter
    set_status(world, card, "active")

    outcome = advance_encounter(world, card, encounter, hero, enemy, payload.selected_style, delta_ms)
    if outcome == "victory":
        roll_drops(world, enemy, card)
        group.remaining = max(0, group.remaining - 1)
        world.bus.publish(
            "combat_victory",
            card_id=card.id,
            hero_id=hero.id,
            enemy_id=enemy.id,
            remaining=group.remaining,
        )
        if group.remaining <= 0:
            complete_enemy_group(world, card, group)
        else:
            reset_encounter(encounter, enemy)
    elif outcome == "defeat":
        unassign_hero(world, card.id)
        world.heroes.wound(hero)
        world.bus.publish("combat_defeat", card_id=card.id, hero_id=hero.id, enemy_id=enemy.id)


def _tick_gradual(
    world: World,
    card: Card,
    hero: Hero,
    progress: GradualProgress,
    delta_ms: float,
    use_slots: bool,
) -> CycleResult | None:
    """Shared cadence for collection quests and projects; returns the cycle that ran, if any."""
    payload = card.payload_as(AreaPayload)
    world.heroes.set_status(hero, "working")
    resolver = slot_resolver(payload.assigned_items, progress.requirements) if use_slots else None
    if not can_make_progress(world.inventory, progress.input_progress, progress.requirements, resolver):
        set_status(world, card, "paused")
        return None
    set_status(world, card, "active")
    if not _run_work_cycle(world, hero, payload, delta_ms):
        return None
    result = consume_cycle(world.inventory, progress.input_progress, progress.requirements, resolver)
    if result.blocked:
        set_status(world, card, "paused")
    return result


def _tick_questing(world: World, card: Card, hero: Hero, delta_ms: float) -> None:
    payload = card.payload_as(AreaPayload)
    if payload.awaiting_task_claim:
        return
    group = payload.current_group()
    if group is None or group.remaining <= 0:
        _enter_projects(world, card)
        return
    if group.type == "combat":
        _tick_group_combat(world, card, hero, group, delta_ms)
        return

    progress = ensure_quest_progress(payload)
    if progress is None:
        return
    result = _tick_gradual(world, card, hero, progress, delta_ms, use_slots=True)
    if result is not None and result.complete:
        group.remaining = 0
        complete_enemy_group(world, card, group)


def _tick_projects(world: World, card: Card, hero: Hero, delta_ms: float) -> None:
    payload = card.payload_as(AreaPayload)
    if payload.current_project_index >= len(payload.project_chain):
        _complete_area(world, card)
        return
    project_id = payload.project_chain[payload.current_project_index]
    project = world.content.project_by_id.get(project_id)
    if project is None:
        logger.warning("Skipping unknown project %s on %s", project_id, card.id)
        payload.current_project_index += 1
        payload.project_progress = None
        return

    progress = ensure_project_progress(world, payload)
    if progress is None:
        return
    result = _tick_gradual(world, card, hero, progress, delta_ms, use_slots=False)
    if result is None:
        return
    world.bus.publish(
        "project_progress",
        card_id=card.id,
        project_id=project.id,
        percent=round(total_progress_percent(progress.input_progress), 2),
    )
    if not result.complete:
        return

    apply_project_effect(world, card, project)
    payload.completed_projects.append(project.id)
    payload.current_project_index += 1
    payload.project_progress = None
    world.bus.publish("project_completed", card_id=card.id, project_id=project.id, effect=project.effect_type)
    if payload.current_project_index >= len(payload.project_chain):
        _complete_area(world, card)
    else:
        ensure_project_progress(world, payload)


def tick_area(world: World, card: Card, delta_ms: float) -> None:
    payload = card.payload_as(AreaPayload)
    hero = world.heroes.get(card.assigned_hero_id)
    if payload.phase == "questing":
        _tick_questing(world, card, hero, delta_ms)
    elif payload.phase == "projects":
        _tick_projects(world, card, hero, delta_ms)


def claim_area_task(world: World, card_id: str) -> ActionResult:
    card = find_card(world, card_id)
    if card is None:
        return ActionResult.fail("CARD_NOT_FOUND")
    payload = card.payload
    if not isinstance(payload, AreaPayload):
        return ActionResult.fail("INVALID_CARD")
    if not payload.awaiting_task_claim or payload.pending_task_claim is None:
        return ActionResult.fail("NOT_AWAITING_CLAIM")

    claim = payload.pending_task_claim
    spawned_id: str | None = None
    if claim.task_id is not None and claim.task_id not in payload.unlocked_tasks:
        task_card = spawn_task_card(world, claim.task_id, payload.biome_id, payload.region_id)
        payload.unlocked_tasks.append(claim.task_id)
        spawned_id = task_card.id
        world.bus.publish("task_unlocked", card_id=card.id, task_id=claim.task_id, task_card_id=task_card.id)
    for reward in claim.rewards:
        world.inventory.add(reward.item_id, reward.count)
    if claim.rewards:
        world.bus.publish(
            "items_granted",
            card_id=card.id,
            items={reward.item_id: reward.count for reward in claim.rewards},
            doubled=False,
        )
    for xp_reward in claim.xp_rewards:
        for hero in world.heroes.heroes:
            world.heroes.add_xp(hero, xp_reward.skill, xp_reward.amount)

    payload.awaiting_task_claim = False
    payload.pending_task_claim = None
    payload.current_group_index += 1
    payload.encounter = None
    payload.quest_progress = None
    payload.cycle_progress = 0.0
    payload.assigned_items.clear()
    set_status(world, card, "idle")
    logger.info("Claimed group %s on %s", claim.group_index, card.name)
    if payload.current_group() is None:
        _enter_projects(world, card)
    return ActionResult.ok(spawned_id or card.id)
