from __future__ import annotations

import logging
from pathlib import Path

import pytest

from fantasy_guild.core.cards import assign_hero, assign_item, spawn_task_card
from fantasy_guild.core.dispatcher import dispatch_tick
from fantasy_guild.core.engine import create_initial_state, create_world
from fantasy_guild.core.loader import load_content
from fantasy_guild.core.models import InventoryStack, TaskInput


def _world(seed: int = 3):
    content = load_content(Path(__file__).resolve().parents[1] / "content")
    return create_world(create_initial_state(seed, content), content)


def _tick(world, card, delta_ms: float, times: int = 1) -> None:
    for _ in range(times):
        dispatch_tick(world, [card], delta_ms)


def test_hundred_short_ticks_complete_exactly_one_cycle():
    world = _world()
    card = spawn_task_card(world, "charcoal_kiln")
    hero = world.heroes.get("hero_mira")
    assert assign_hero(world, card.id, hero.id).success

    _tick(world, card, 100, times=99)
    assert world.inventory.count("charcoal") == 0
    _tick(world, card, 100)

    assert world.bus.names().count("task_completed") == 1
    assert world.inventory.count("charcoal") == 1
    assert world.inventory.count("wood") == 4
    assert hero.energy.current == hero.energy.max - 2
    assert hero.skills["industry"].xp == 15
    assert card.payload.progress == 0
    assert card.status == "idle"
    assert card.assigned_hero_id == hero.id


def test_missing_inputs_pause_once_and_resume_when_restocked():
    world = _world()
    card = spawn_task_card(world, "charcoal_kiln")
    world.inventory.remove("wood", 6)
    assert assign_hero(world, card.id, "hero_mira").success

    _tick(world, card, 100, times=5)
    assert card.status == "paused"
    assert card.payload.progress == 0
    assert world.bus.names().count("task_paused") == 1

    world.inventory.add("wood", 2)
    _tick(world, card, 100)
    assert card.status == "active"
    assert card.payload.progress > 0


def test_inputs_lost_mid_cycle_discard_progress_without_output():
    world = _world()
    card = spawn_task_card(world, "charcoal_kiln")
    hero = world.heroes.get("hero_mira")
    assert assign_hero(world, card.id, hero.id).success

    _tick(world, card, 9000)
    world.inventory.remove("wood", 6)
    _tick(world, card, 1000)

    assert card.status == "paused"
    assert card.payload.progress == 0
    assert world.inventory.count("charcoal") == 0
    assert hero.energy.current == hero.energy.max


def test_last_tool_breaking_clears_the_slot_and_pauses():
    world = _world()
    card = spawn_task_card(world, "chop_logs")
    world.inventory.state.items["copper_axe"] = InventoryStack(qty=1, dur=1)
    assert assign_item(world, card.id, 0, "copper_axe").success
    assert assign_hero(world, card.id, "hero_bram").success

    _tick(world, card, 6000)
    assert world.inventory.count("wood") == 8
    assert world.inventory.count("copper_axe") == 0
    assert card.payload.assigned_items == {}
    assert card.status == "paused"
    assert "tool_broken" in world.bus.names()

    _tick(world, card, 6000, times=3)
    assert card.status == "paused"
    assert world.inventory.count("wood") == 8


def test_output_map_keys_on_the_first_slot():
    world = _world()
    world.inventory.add("copper_ore", 1)
    world.inventory.add("charcoal", 1)
    card = spawn_task_card(world, "smelt_ore")
    assert assign_item(world, card.id, 0, "copper_ore").success
    assert assign_item(world, card.id, 1, "charcoal").success
    assert assign_hero(world, card.id, "hero_bram").success

    _tick(world, card, 12000)
    assert world.inventory.count("copper_bar") == 1
    assert world.inventory.count("copper_ore") == 0
    assert world.inventory.count("charcoal") == 0


def test_currency_outputs_land_in_the_ledger():
    world = _world()
    world.inventory.add("scrap", 2)
    card = spawn_task_card(world, "sell_scrap")
    assert assign_hero(world, card.id, "hero_mira").success

    _tick(world, card, 4000)
    assert world.state.currencies == {"gold": 3}
    assert "currency_granted" in world.bus.names()


def test_assign_item_rejections():
    world = _world()
    chop = spawn_task_card(world, "chop_logs")
    quarry = spawn_task_card(world, "quarry_stone")
    kiln = spawn_task_card(world, "charcoal_kiln")

    assert assign_item(world, chop.id, 0, "wood").error == "ITEM_NOT_ACCEPTED"
    assert assign_item(world, quarry.id, 0, "stone_pickaxe").error == "ITEM_NOT_IN_STOCK"
    assert assign_item(world, chop.id, 3, "copper_axe").error == "INVALID_SLOT"
    assert assign_item(world, kiln.id, 0, "wood").error == "INVALID_SLOT"
    assert assign_item(world, "task_9999", 0, "wood").error == "CARD_NOT_FOUND"
    assert chop.payload.assigned_items == {}


def test_biome_speed_effects_fold_into_cycle_time():
    world = _world()
    slow = spawn_task_card(world, "well", "guild_hall", "ruined_guild_hall")
    assert slow.payload.base_tick_time == pytest.approx(6000)
    assert slow.payload.source_effects == []

    forest = spawn_task_card(world, "foraging", "forest", "wilderness")
    assert forest.payload.base_tick_time == pytest.approx(6000 * 0.95)
    assert [effect.type for effect in forest.payload.source_effects] == ["xp_skill"]


def test_double_items_modifier_doubles_category_outputs():
    world = _world()
    world.state.modifiers.double_items_chance["logging"] = 1.0
    card = next(card for card in world.state.cards if card.card_type == "production")
    assert assign_hero(world, card.id, "hero_bram").success

    _tick(world, card, 8000)
    assert world.inventory.count("wood") == 8
    granted = [event for event in world.bus.history if event.name == "items_granted"]
    assert granted[-1].data["doubled"] is True


def test_slots_drawing_on_the_same_item_need_the_combined_stock():
    world = _world()
    kiln = world.content.task_by_id["charcoal_kiln"]
    world.content.task_by_id["charcoal_kiln"] = kiln.model_copy(
        update={"inputs": [*kiln.inputs, TaskInput(accept_tag="fuel", quantity=2)]}
    )
    world.inventory.remove("wood", 3)
    card = spawn_task_card(world, "charcoal_kiln")
    assert assign_item(world, card.id, 1, "wood").success
    assert assign_hero(world, card.id, "hero_mira").success

    _tick(world, card, 10000, times=3)
    assert card.status == "paused"
    assert world.inventory.count("wood") == 3
    assert world.inventory.count("charcoal") == 0
    assert "task_completed" not in world.bus.names()

    world.inventory.add("wood", 1)
    _tick(world, card, 10000)
    assert world.inventory.count("wood") == 0
    assert world.inventory.count("charcoal") == 1


def test_unmapped_primary_input_grants_nothing(caplog):
    world = _world()
    smelt = world.content.task_by_id["smelt_ore"]
    world.content.task_by_id["smelt_ore"] = smelt.model_copy(
        update={"output_map": {"copper_ore": smelt.output_map["copper_ore"]}}
    )
    world.inventory.add("tin_ore", 1)
    world.inventory.add("charcoal", 1)
    card = spawn_task_card(world, "smelt_ore")
    assert assign_item(world, card.id, 0, "tin_ore").success
    assert assign_item(world, card.id, 1, "charcoal").success
    assert assign_hero(world, card.id, "hero_bram").success

    with caplog.at_level(logging.WARNING, logger="fantasy_guild.core.production"):
        _tick(world, card, 12000)

    assert world.inventory.count("tin_ore") == 0
    assert world.inventory.count("tin_bar") == 0
    assert world.inventory.count("copper_bar") == 0
    assert world.bus.names().count("task_completed") == 1
    assert "no output mapped for tin_ore" in caplog.text
