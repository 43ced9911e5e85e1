from __future__ import annotations

from pathlib import Path

from fantasy_guild.core.cards import assign_hero, assign_item
from fantasy_guild.core.dispatcher import dispatch_tick
from fantasy_guild.core.engine import create_initial_state, create_world, step
from fantasy_guild.core.exploration import discover_biome, select_biome
from fantasy_guild.core.loader import load_content
from fantasy_guild.core.requirements import ensure_biome_progress, exploration_requirements


def _world():
    content = load_content(Path(__file__).resolve().parents[1] / "content")
    return create_world(create_initial_state(29, content), content)


def _explore_card(world, region_id: str):
    return next(
        card
        for card in world.state.cards
        if card.card_type == "exploration" and card.payload.region_id == region_id
    )


def test_cost_scales_with_prior_explorations_and_region():
    world = _world()
    assert exploration_requirements(world, "wilderness", "forest") == {"torch": 5, "bread": 3, "tag:axe": 2}
    world.state.exploration_count = 2
    assert exploration_requirements(world, "wilderness", "forest") == {"torch": 7, "bread": 5, "tag:axe": 3}


def test_biome_without_cost_uses_fallback():
    world = _world()
    assert exploration_requirements(world, "highlands", "quarry") == {"torch": 10}


def test_unfilled_tag_slot_pauses_exploration():
    world = _world()
    card = _explore_card(world, "ruined_guild_hall")
    assert assign_hero(world, card.id, "hero_aldric").success

    dispatch_tick(world, [card], 1000)
    assert card.status == "paused"
    assert world.inventory.count("rusty_key") == 1


def test_exploring_the_guild_hall_gates_then_discovers():
    world = _world()
    card = _explore_card(world, "ruined_guild_hall")
    hero = world.heroes.get("hero_aldric")
    assert assign_item(world, card.id, 0, "rusty_key").success
    assert assign_hero(world, card.id, hero.id).success

    dispatch_tick(world, [card], 500)
    assert world.inventory.count("rusty_key") == 1
    dispatch_tick(world, [card], 500)

    assert card.payload.awaiting_discovery is True
    assert card.payload.pending_discovery == "guild_hall"
    assert card.assigned_hero_id is None
    assert hero.status == "idle"
    assert hero.energy.current == hero.energy.max - 1
    assert "exploration_ready" in world.bus.names()
    assert assign_hero(world, card.id, hero.id).error == "CARD_NOT_ASSIGNABLE"

    result = discover_biome(world, card.id)
    assert result.success
    area = next(c for c in world.state.cards if c.id == result.card_id)
    assert area.card_type == "area"
    assert area.payload.biome_id == "guild_hall"
    assert world.state.exploration_count == 1
    assert "guild_hall" in world.state.unlocked_biomes
    assert card.status == "complete"
    assert card.id in world.state.pending_discards
    assert "region_complete" in world.bus.names()

    step(world, 100)
    assert card not in world.state.cards
    assert world.state.pending_discards == []
    assert discover_biome(world, card.id).error == "CARD_NOT_FOUND"


def test_discovery_moves_on_to_the_next_biome():
    world = _world()
    card = _explore_card(world, "wilderness")
    assert card.payload.selected_biome_id == "forest"
    assert discover_biome(world, card.id).error == "NOT_AWAITING_DISCOVERY"

    card.payload.awaiting_discovery = True
    card.payload.pending_discovery = "forest"
    assert discover_biome(world, card.id).success

    assert card.payload.selected_biome_id == "plains"
    assert card.status == "idle"
    assert card.payload.explored_biomes == ["forest"]
    assert ensure_biome_progress(world, card.payload).requirements == {"torch": 4}


def test_select_biome_only_accepts_unexplored_region_biomes():
    world = _world()
    card = _explore_card(world, "wilderness")
    assert select_biome(world, card.id, "plains").success
    assert card.payload.selected_biome_id == "plains"
    assert select_biome(world, card.id, "guild_hall").error == "BIOME_NOT_AVAILABLE"
    assert select_biome(world, _explore_card(world, "ruined_guild_hall").id, "forest").error == "BIOME_NOT_AVAILABLE"


def test_paused_exploration_stays_put_across_many_ticks():
    world = _world()
    card = _explore_card(world, "ruined_guild_hall")
    hero = world.heroes.get("hero_aldric")
    assert assign_hero(world, card.id, hero.id).success
    dispatch_tick(world, [card], 700)
    assert card.status == "paused"

    stock = world.inventory.snapshot()
    ledger = {key: entry.current for key, entry in ensure_biome_progress(world, card.payload).input_progress.items()}
    cycle = card.payload.cycle_progress
    for _ in range(50):
        dispatch_tick(world, [card], 1000)

    assert card.status == "paused"
    assert world.inventory.snapshot() == stock
    assert {key: entry.current for key, entry in ensure_biome_progress(world, card.payload).input_progress.items()} == ledger
    assert card.payload.cycle_progress == cycle
    assert hero.energy.current == hero.energy.max
    assert "exploration_progress" not in world.bus.names()
