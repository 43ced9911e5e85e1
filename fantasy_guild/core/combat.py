"""Combat resolution shared by standalone combat cards and area quests.

The hero and the enemy tick independently: each side accumulates elapsed time
in its own counter and acts when that counter reaches its own attack interval.
"""

from __future__ import annotations

import logging
import math
from typing import Literal

from .consumables import auto_consume
from .heroes import EquipmentBonuses
from .models import COMBAT_STYLES, Card, CombatStyle, EncounterState, EnemyTemplate, Hero, ItemTemplate, Vital
from .rng import RandomSource, roll_percent
from .settings import CombatSettings
from .world import World

logger = logging.getLogger(__name__)

EncounterOutcome = Literal["ongoing", "victory", "defeat"]

_STYLE_RULES: dict[str, tuple[str, str]] = {
    # style: (strong against, weak against)
    "melee": ("magic", "ranged"),
    "ranged": ("melee", "magic"),
    "magic": ("ranged", "melee"),
}

_DEFAULTS = CombatSettings()


def hit_chance(attacker_skill: float, defender_skill: float, settings: CombatSettings = _DEFAULTS) -> float:
    chance = settings.hit_chance_base + (attacker_skill - defender_skill) * settings.hit_chance_per_point
    return max(settings.hit_chance_min, min(settings.hit_chance_max, chance))


def roll_hit(
    rng: RandomSource,
    attacker_skill: float,
    defender_skill: float,
    settings: CombatSettings = _DEFAULTS,
) -> bool:
    return roll_percent(rng, hit_chance(attacker_skill, defender_skill, settings))


def roll_damage(rng: RandomSource, min_damage: int, max_damage: int) -> int:
    if min_damage >= max_damage:
        return min_damage
    return rng.randint(min_damage, max_damage)


def defence_reduction(defence_skill: float, settings: CombatSettings = _DEFAULTS) -> float:
    percent = min(defence_skill * settings.defence_reduction_per_level, settings.defence_reduction_cap)
    return max(0.0, percent) / 100


def rps_multiplier(
    attacker_type: str | None,
    defender_type: str | None,
    settings: CombatSettings = _DEFAULTS,
) -> float:
    if not attacker_type or not defender_type or attacker_type not in _STYLE_RULES:
        return 1.0
    strong, weak = _STYLE_RULES[attacker_type]
    if defender_type == strong:
        return settings.advantage_multiplier
    if defender_type == weak:
        return settings.disadvantage_multiplier
    return 1.0


def compute_hero_damage(
    rng: RandomSource,
    weapon: ItemTemplate | None,
    enemy: EnemyTemplate,
    damage_bonus: int,
    style: CombatStyle,
    settings: CombatSettings = _DEFAULTS,
) -> int:
    mismatch = weapon is not None and (weapon.skill_required or "melee") != style
    if mismatch:
        base = roll_damage(rng, settings.unarmed_min_damage, settings.unarmed_max_damage)
    else:
        low = weapon.min_damage if weapon is not None and weapon.min_damage is not None else settings.unarmed_min_damage
        high = weapon.max_damage if weapon is not None and weapon.max_damage is not None else settings.unarmed_max_damage
        base = roll_damage(rng, low, high) + damage_bonus
    scaled = base * rps_multiplier(style, enemy.combat_type, settings)
    return max(1, math.floor(scaled * (1 - defence_reduction(enemy.defence_skill, settings))))


def compute_enemy_damage(
    rng: RandomSource,
    enemy: EnemyTemplate,
    hero_defence: float,
    hero_style: CombatStyle,
    settings: CombatSettings = _DEFAULTS,
) -> int:
    base = roll_damage(rng, enemy.min_damage, enemy.max_damage)
    scaled = base * rps_multiplier(enemy.combat_type, hero_style, settings)
    return max(1, math.floor(scaled * (1 - defence_reduction(hero_defence, settings))))


def hero_attack_interval(skill_level: int, tick_speed_bonus: int = 0, settings: CombatSettings = _DEFAULTS) -> float:
    after_skill = settings.hero_base_attack_ms / (1 + skill_level * settings.attack_speed_per_level)
    return max(settings.hero_min_attack_ms, after_skill + tick_speed_bonus)


def hero_defence(hero: Hero, bonuses: EquipmentBonuses, settings: CombatSettings = _DEFAULTS) -> int:
    return hero.skill_level("defence", settings.default_hero_defence) + bonuses.defense


def best_combat_style(hero: Hero) -> CombatStyle:
    best: CombatStyle = "melee"
    for style in COMBAT_STYLES:
        if hero.skill_level(style) > hero.skill_level(best):
            best = style
    return best


def new_encounter(enemy: EnemyTemplate) -> EncounterState:
    return EncounterState(enemy_id=enemy.id, enemy_hp=Vital(current=enemy.hp, max=enemy.hp))


def reset_encounter(encounter: EncounterState, enemy: EnemyTemplate) -> None:
    encounter.enemy_id = enemy.id
    encounter.enemy_hp = Vital(current=enemy.hp, max=enemy.hp)
    encounter.hero_tick_progress = 0.0
    encounter.enemy_tick_progress = 0.0
    encounter.active = False
    encounter.hero_consuming = False
    encounter.last_hero_hit = None
    encounter.last_hero_damage = 0
    encounter.last_enemy_hit = None
    encounter.last_enemy_damage = 0


def roll_drops(world: World, enemy: EnemyTemplate, card: Card) -> dict[str, int]:
    granted: dict[str, int] = {}
    for drop in enemy.drops:
        if not roll_percent(world.rng, drop.chance):
            continue
        qty = world.rng.randint(drop.min_qty, drop.max_qty or drop.min_qty)
        added = world.inventory.add(drop.item_id, qty)
        if added > 0:
            granted[drop.item_id] = granted.get(drop.item_id, 0) + added
    if granted:
        world.bus.publish("loot_generated", card_id=card.id, enemy_id=enemy.id, items=dict(granted))
    return granted


def _enemy_xp(world: World, enemy: EnemyTemplate) -> int:
    return enemy.xp_awarded if enemy.xp_awarded is not None else world.settings.combat.default_enemy_xp


def _hero_attack(
    world: World,
    card: Card,
    encounter: EncounterState,
    hero: Hero,
    enemy: EnemyTemplate,
    style: CombatStyle,
    bonuses: EquipmentBonuses,
) -> None:
    settings = world.settings.combat
    weapon = world.content.item_by_id.get(hero.equipment.weapon or "")
    skill = hero.skill_level(style, 1)
    hit = roll_hit(world.rng, skill, enemy.defence_skill, settings)
    damage = 0
    if hit:
        damage = compute_hero_damage(world.rng, weapon, enemy, bonuses.damage, style, settings)
        encounter.enemy_hp.current = max(0, encounter.enemy_hp.current - damage)
    encounter.last_hero_hit = hit
    encounter.last_hero_damage = damage
    world.bus.publish("combat_hero_attack", card_id=card.id, hero_id=hero.id, hit=hit, damage=damage)
    world.heroes.add_xp(hero, style, _enemy_xp(world, enemy))


def _enemy_attack(
    world: World,
    card: Card,
    encounter: EncounterState,
    hero: Hero,
    enemy: EnemyTemplate,
    style: CombatStyle,
    bonuses: EquipmentBonuses,
) -> None:
    settings = world.settings.combat
    defence = hero_defence(hero, bonuses, settings)
    hit = roll_hit(world.rng, enemy.attack_skill, defence, settings)
    damage = 0
    if hit:
        damage = compute_enemy_damage(world.rng, enemy, defence, style, settings)
        world.heroes.modify_hp(hero, -damage)
    encounter.last_enemy_hit = hit
    encounter.last_enemy_damage = damage
    world.bus.publish("combat_enemy_attack", card_id=card.id, hero_id=hero.id, hit=hit, damage=damage)
    world.heroes.add_xp(hero, "defence", _enemy_xp(world, enemy))


def _advance_enemy(
    world: World,
    card: Card,
    encounter: EncounterState,
    hero: Hero,
    enemy: EnemyTemplate,
    style: CombatStyle,
    bonuses: EquipmentBonuses,
    delta_ms: float,
) -> None:
    encounter.enemy_tick_progress += delta_ms
    if encounter.enemy_tick_progress >= enemy.attack_speed:
        _enemy_attack(world, card, encounter, hero, enemy, style, bonuses)
        encounter.enemy_tick_progress = 0.0


def advance_encounter(
    world: World,
    card: Card,
    encounter: EncounterState,
    hero: Hero,
    enemy: EnemyTemplate,
    style: CombatStyle,
    delta_ms: float,
) -> EncounterOutcome:
    """Advance one encounter by ``delta_ms`` and report how it stands.

    The caller owns what victory and defeat mean for its card type.
    """
    world.heroes.set_status(hero, "combat")
    encounter.active = True
    bonuses = world.heroes.equipment_bonuses(hero)

    if auto_consume(world, hero, food_first=True, respect_cooldown=False):
        encounter.hero_consuming = True
        _advance_enemy(world, card, encounter, hero, enemy, style, bonuses, delta_ms)
        return "defeat" if hero.hp.current <= 0 else "ongoing"
    encounter.hero_consuming = False

    encounter.hero_tick_progress += delta_ms
    interval = hero_attack_interval(hero.skill_level(style, 1), bonuses.tick_speed_bonus, world.settings.combat)
    if encounter.hero_tick_progress >= interval:
        energy_cost = enemy.energy_cost
        if energy_cost is None:
            energy_cost = world.settings.combat.default_enemy_energy_cost
        if hero.energy.current >= energy_cost:
            world.heroes.modify_energy(hero, -energy_cost)
            _hero_attack(world, card, encounter, hero, enemy, style, bonuses)
            encounter.hero_tick_progress = 0.0
            if encounter.enemy_hp.current <= 0:
                return "victory"

    _advance_enemy(world, card, encounter, hero, enemy, style, bonuses, delta_ms)
    if hero.hp.current <= 0:
        return "defeat"
    return "ongoing"
