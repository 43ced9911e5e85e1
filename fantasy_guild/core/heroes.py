from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from functools import lru_cache

from .events import EventBus
from .inventory import Inventory
from .loader import ContentBundle, MissingReferenceError
from .models import SKILL_IDS, Hero, HeroStatus, SkillProgress, StartingHero, Vital
from .settings import SimSettings

logger = logging.getLogger(__name__)

MAX_LEVEL = 99


@lru_cache(maxsize=None)
def xp_for_level(level: int) -> int:
    if level <= 1:
        return 0
    level = min(level, MAX_LEVEL)
    total = 0
    for i in range(1, level):
        total += math.floor(i + 300 * 2 ** (i / 7))
    return total // 4


def level_from_xp(xp: int) -> int:
    if xp <= 0:
        return 1
    for level in range(1, MAX_LEVEL + 1):
        if xp_for_level(level + 1) > xp:
            return level
    return MAX_LEVEL


@dataclass(slots=True)
class EquipmentBonuses:
    damage: int = 0
    defense: int = 0
    tick_speed_bonus: int = 0


def build_hero(template: StartingHero) -> Hero:
    skills = {skill: SkillProgress(level=1, xp=0) for skill in SKILL_IDS}
    for skill, level in template.skills.items():
        skills[skill] = SkillProgress(level=level, xp=xp_for_level(level))
    return Hero(
        id=template.id,
        name=template.name,
        class_id=template.class_id,
        trait_id=template.trait_id,
        hp=Vital(current=template.hp, max=template.hp),
        energy=Vital(current=template.energy, max=template.energy),
        skills=skills,
        equipment=template.equipment.model_copy(deep=True),
    )


class HeroRoster:
    def __init__(
        self,
        heroes: list[Hero],
        content: ContentBundle,
        settings: SimSettings,
        bus: EventBus,
        inventory: Inventory,
    ) -> None:
        self.heroes = heroes
        self.content = content
        self.settings = settings
        self.bus = bus
        self.inventory = inventory

    def find(self, hero_id: str | None) -> Hero | None:
        for hero in self.heroes:
            if hero.id == hero_id:
                return hero
        return None

    def get(self, hero_id: str | None) -> Hero:
        hero = self.find(hero_id)
        if hero is None:
            raise MissingReferenceError("hero", hero_id)
        return hero

    def modify_hp(self, hero: Hero, delta: int) -> int:
        hero.hp.current = max(0, min(hero.hp.max, hero.hp.current + int(delta)))
        return hero.hp.current

    def modify_energy(self, hero: Hero, delta: int) -> int:
        hero.energy.current = max(0, min(hero.energy.max, hero.energy.current + int(delta)))
        return hero.energy.current

    def set_status(self, hero: Hero, status: HeroStatus) -> None:
        if hero.status == status:
            return
        hero.status = status
        logger.debug("Hero %s is now %s", hero.id, status)

    def xp_multiplier(self, hero: Hero, skill: str) -> float:
        bonus = self.settings.progression.affinity_xp_bonus
        multiplier = 1.0
        hero_class = self.content.class_by_id.get(hero.class_id or "")
        if hero_class is not None and skill in hero_class.skills:
            multiplier += bonus
        trait = self.content.trait_by_id.get(hero.trait_id or "")
        if trait is not None and skill in trait.skills:
            multiplier += bonus
        return multiplier

    def add_xp(self, hero: Hero, skill: str, amount: int) -> int:
        if amount <= 0:
            return 0
        progress = hero.skills.setdefault(skill, SkillProgress())
        old_level = progress.level
        progress.xp += int(amount)
        new_level = min(self.settings.progression.max_level, max(old_level, level_from_xp(progress.xp)))
        self.bus.publish("xp_gained", hero_id=hero.id, skill=skill, amount=int(amount))
        if new_level > old_level:
            progress.level = new_level
            for level in range(old_level + 1, new_level + 1):
                self.bus.publish("hero_leveled", hero_id=hero.id, skill=skill, level=level)
            logger.info("%s reached %s level %s", hero.name, skill, new_level)
        return new_level - old_level

    def validate_equipment(self, hero: Hero) -> list[str]:
        removed: list[str] = []
        for slot in ("weapon", "armor", "food", "drink"):
            item_id = getattr(hero.equipment, slot)
            if item_id and not self.inventory.has(item_id):
                setattr(hero.equipment, slot, None)
                removed.append(item_id)
        return removed

    def equipment_bonuses(self, hero: Hero) -> EquipmentBonuses:
        self.validate_equipment(hero)
        bonuses = EquipmentBonuses()
        for item_id in hero.equipment.as_values():
            template = self.content.item_by_id.get(item_id)
            if template is None:
                continue
            bonuses.damage += template.damage
            bonuses.defense += template.defense
            bonuses.tick_speed_bonus += template.tick_speed_bonus
        return bonuses

    def wound(self, hero: Hero) -> None:
        hero.status = "wounded"
        hero.wounded_remaining_ms = self.settings.upkeep.wounded_recovery_ms
        self.bus.publish("hero_wounded", hero_id=hero.id)
        logger.info("%s was wounded", hero.name)

    def tick_wounded(self, delta_ms: float) -> list[str]:
        recovered: list[str] = []
        upkeep = self.settings.upkeep
        for hero in self.heroes:
            if hero.status != "wounded":
                continue
            hero.wounded_remaining_ms = max(0.0, hero.wounded_remaining_ms - delta_ms)
            if hero.wounded_remaining_ms > 0:
                continue
            hero.status = "idle"
            hero.hp.current = max(hero.hp.current, math.floor(hero.hp.max * upkeep.wounded_recovery_hp_fraction))
            recovered.append(hero.id)
            self.bus.publish("hero_recovered", hero_id=hero.id, hp=hero.hp.current)
            logger.info("%s recovered from wounds", hero.name)
        return recovered

    def regenerate(self, hp_amount: int, energy_amount: int) -> None:
        for hero in self.heroes:
            if hero.status not in ("idle", "working"):
                continue
            if hp_amount:
                self.modify_hp(hero, hp_amount)
            if energy_amount:
                self.modify_energy(hero, energy_amount)

    def retire(self, hero_id: str) -> Hero:
        hero = self.get(hero_id)
        self.bus.publish("hero_retired", hero_id=hero.id)
        self.heroes.remove(hero)
        logger.info("%s retired from the guild", hero.name)
        return hero
