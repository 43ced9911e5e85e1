from __future__ import annotations

from pathlib import Path

import pytest

from fantasy_guild.core.cards import assign_hero
from fantasy_guild.core.combat import (
    compute_hero_damage,
    defence_reduction,
    hero_attack_interval,
    hit_chance,
    rps_multiplier,
)
from fantasy_guild.core.dispatcher import dispatch_tick
from fantasy_guild.core.engine import create_initial_state, create_world
from fantasy_guild.core.loader import load_content
from fantasy_guild.core.models import EnemyTemplate, InventoryStack


class ScriptedRNG:
    """Always rolls the lowest float and the highest integer unless told otherwise."""

    def __init__(self, floats: list[float] | None = None, ints: list[int] | None = None) -> None:
        self.floats = list(floats or [])
        self.ints = list(ints or [])

    def next_float(self) -> float:
        return self.floats.pop(0) if self.floats else 0.0

    def randint(self, low: int, high: int) -> int:
        return self.ints.pop(0) if self.ints else high


def _world(rng=None):
    content = load_content(Path(__file__).resolve().parents[1] / "content")
    return create_world(create_initial_state(21, content), content, rng=rng)


def _combat_card(world):
    return next(card for card in world.state.cards if card.card_type == "combat")


def test_hit_chance_is_clamped():
    assert hit_chance(10, 5) == 60
    assert hit_chance(1, 100) == 5
    assert hit_chance(100, 1) == 95


def test_style_triangle_and_defence_cap():
    assert rps_multiplier("melee", "magic") == 1.25
    assert rps_multiplier("magic", "ranged") == 1.25
    assert rps_multiplier("melee", "ranged") == 0.75
    assert rps_multiplier("ranged", "ranged") == 1.0
    assert defence_reduction(10) == pytest.approx(0.05)
    assert defence_reduction(400) == 0.5


def test_attack_interval_scales_with_skill_and_has_a_floor():
    assert hero_attack_interval(1) == pytest.approx(3000 / 1.005)
    assert hero_attack_interval(99, -3000) == 500


def test_weapon_style_mismatch_falls_back_to_unarmed_damage():
    content = load_content(Path(__file__).resolve().parents[1] / "content")
    dummy = EnemyTemplate(id="dummy", name="Dummy", hp=10, defence_skill=0, combat_type="magic")

    bow = content.require_item("short_bow")
    assert compute_hero_damage(ScriptedRNG(), bow, dummy, 0, "melee") == 2

    sword = content.require_item("rusty_sword")
    assert compute_hero_damage(ScriptedRNG(), sword, dummy, 0, "melee") == 6


def test_defeat_wounds_hero_and_resets_card():
    world = _world(ScriptedRNG(ints=[1]))
    card = _combat_card(world)
    hero = world.heroes.get("hero_aldric")
    hero.equipment.food = None
    hero.hp.current = 1
    assert assign_hero(world, card.id, hero.id).success

    dispatch_tick(world, world.state.cards, 2500)

    assert hero.status == "wounded"
    assert hero.wounded_remaining_ms == world.settings.upkeep.wounded_recovery_ms
    assert card.assigned_hero_id is None
    assert card.status == "idle"
    assert card.payload.encounter.enemy_hp.current == card.payload.encounter.enemy_hp.max
    assert card.payload.encounter.hero_tick_progress == 0
    names = world.bus.names()
    assert "combat_defeat" in names
    assert "hero_wounded" in names


def test_victory_rolls_drops_and_keeps_fighting():
    world = _world(ScriptedRNG())
    card = _combat_card(world)
    hero = world.heroes.get("hero_aldric")
    world.inventory.add("rusty_sword", 1)
    hero.equipment.weapon = "rusty_sword"
    assert assign_hero(world, card.id, hero.id).success

    dispatch_tick(world, world.state.cards, 3000)
    assert card.payload.encounter.enemy_hp.current == 4
    assert hero.hp.current == hero.hp.max - 1
    dispatch_tick(world, world.state.cards, 3000)

    assert "combat_victory" in world.bus.names()
    assert world.inventory.count("rat_tail") == 1
    assert world.inventory.count("leather") == 1
    assert card.assigned_hero_id == hero.id
    assert hero.status == "combat"
    assert card.payload.encounter.enemy_hp.current == 8
    assert hero.skills["melee"].xp > 0


def test_low_hp_hero_eats_instead_of_attacking():
    world = _world(ScriptedRNG())
    card = _combat_card(world)
    hero = world.heroes.get("hero_aldric")
    assert assign_hero(world, card.id, hero.id).success
    hero.hp.current = 5

    dispatch_tick(world, world.state.cards, 1000)

    assert hero.hp.current == 25
    assert world.inventory.count("bread") == 7
    assert card.payload.encounter.hero_consuming is True
    assert card.payload.encounter.hero_tick_progress == 0
    assert card.payload.encounter.enemy_tick_progress == 1000
    assert "combat_consumed" in world.bus.names()


def test_no_attack_without_energy_but_timer_keeps_running():
    world = _world(ScriptedRNG())
    card = _combat_card(world)
    hero = world.heroes.get("hero_aldric")
    hero.equipment.drink = None
    assert assign_hero(world, card.id, hero.id).success
    hero.energy.current = 0

    dispatch_tick(world, world.state.cards, 2000)
    dispatch_tick(world, world.state.cards, 2000)

    assert card.payload.encounter.enemy_hp.current == 8
    assert card.payload.encounter.hero_tick_progress == 4000
    assert "combat_hero_attack" not in world.bus.names()
