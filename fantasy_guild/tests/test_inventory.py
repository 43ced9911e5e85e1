from __future__ import annotations

from pathlib import Path

from fantasy_guild.core.engine import create_initial_state, create_world
from fantasy_guild.core.loader import load_content
from fantasy_guild.core.models import InventoryStack


def _world():
    content = load_content(Path(__file__).resolve().parents[1] / "content")
    return create_world(create_initial_state(11, content), content)


def test_starting_inventory_and_tool_durability():
    world = _world()
    assert world.inventory.count("torch") == 12
    assert world.inventory.get_durability("copper_axe") == 20
    assert world.inventory.get_durability("wood") is None


def test_durability_cycles_through_a_stack_before_depleting():
    world = _world()
    world.inventory.state.items["copper_axe"] = InventoryStack(qty=2, dur=1)

    first = world.inventory.decrement_durability("copper_axe")
    assert first.broke is True
    assert first.depleted is False
    assert world.inventory.count("copper_axe") == 1
    assert world.inventory.get_durability("copper_axe") == 20

    for _ in range(19):
        assert world.inventory.decrement_durability("copper_axe").broke is False
    last = world.inventory.decrement_durability("copper_axe")
    assert last.broke is True
    assert last.depleted is True
    assert world.inventory.count("copper_axe") == 0


def test_decrementing_missing_or_unbreakable_items():
    world = _world()
    missing = world.inventory.decrement_durability("stone_pickaxe")
    assert (missing.broke, missing.depleted) == (False, True)
    plain = world.inventory.decrement_durability("wood")
    assert (plain.broke, plain.depleted) == (False, False)
    assert world.inventory.count("wood") == 6


def test_add_respects_stack_limit_and_slot_cap():
    world = _world()
    world.state.inventory.max_slots = world.inventory.used_slots()

    assert world.inventory.add("wood", 100) == 44
    assert world.inventory.count("wood") == 50
    assert world.inventory.add("stone", 3) == 0
    assert "inventory_full" in world.bus.names()

    world.state.inventory.max_stack_bonus = 10
    assert world.inventory.add("wood", 100) == 10


def test_remove_is_all_or_nothing():
    world = _world()
    assert world.inventory.remove("bread", 9) is False
    assert world.inventory.count("bread") == 8
    assert world.inventory.remove("bread", 8) is True
    assert world.inventory.has("bread") is False
    assert "bread" not in world.inventory.snapshot()
