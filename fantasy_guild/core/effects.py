from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from .models import SourceEffect
from .rng import RandomSource, roll_fraction

logger = logging.getLogger(__name__)

STUB_EFFECT_TYPES = frozenset({"damage", "dodge", "drink_effect"})


@dataclass(slots=True)
class EffectContext:
    xp_bonus: float = 0.0
    double_output: bool = False
    output_failed: bool = False


def apply_task_effects(effects: Iterable[SourceEffect], skill: str, rng: RandomSource) -> EffectContext:
    context = EffectContext()
    for effect in effects:
        if not effect.applies_to(skill):
            continue
        if effect.type == "xp_skill":
            context.xp_bonus += effect.bonus
        elif effect.type == "output_double":
            if roll_fraction(rng, effect.bonus):
                context.double_output = True
        elif effect.type == "output_fail_chance":
            if roll_fraction(rng, effect.bonus):
                context.output_failed = True
        elif effect.type == "speed_skill" or effect.type in STUB_EFFECT_TYPES:
            continue
        else:
            logger.warning("Unknown source effect type %s", effect.type)
    return context


def speed_modifier(effects: Iterable[SourceEffect], skill: str, floor: float = 0.1) -> float:
    multiplier = 1.0
    for effect in effects:
        if effect.type == "speed_skill" and effect.applies_to(skill):
            multiplier -= effect.bonus
    return max(floor, multiplier)


def completion_effects(effects: Iterable[SourceEffect]) -> list[SourceEffect]:
    return [effect for effect in effects if effect.type != "speed_skill"]
