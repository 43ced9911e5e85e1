from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Iterable

from .area import tick_area
from .combat_card import tick_combat_card
from .exploration import tick_exploration
from .loader import MissingReferenceError
from .models import AreaPayload, Card, CombatPayload, ExplorationPayload, ProductionPayload, RecruitPayload
from .production import tick_production
from .world import World

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DispatchReport:
    processed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


def _route(world: World, card: Card, delta_ms: float) -> bool:
    match card.payload:
        case ProductionPayload():
            tick_production(world, card, delta_ms)
        case ExplorationPayload():
            tick_exploration(world, card, delta_ms)
        case AreaPayload():
            tick_area(world, card, delta_ms)
        case CombatPayload():
            tick_combat_card(world, card, delta_ms)
        case RecruitPayload():
            return False
    return True


def dispatch_tick(world: World, cards: Iterable[Card], delta_ms: float) -> DispatchReport:
    report = DispatchReport()
    if not delta_ms or math.isnan(delta_ms) or delta_ms < 0:
        return report

    # snapshot: handlers may spawn or discard cards mid-tick
    for card in list(cards):
        if card.assigned_hero_id is None:
            report.skipped.append(card.id)
            continue
        try:
            handled = _route(world, card, delta_ms)
        except MissingReferenceError as exc:
            logger.warning("Skipping card %s this tick: %s", card.id, exc)
            report.failed.append(card.id)
            continue
        except Exception:
            logger.exception("Card %s handler failed; skipping this tick", card.id)
            report.failed.append(card.id)
            continue
        (report.processed if handled else report.skipped).append(card.id)
    return report
