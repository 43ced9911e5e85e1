"""Gradual multi-resource consumption.

A requirement set such as ``{"wood": 3, "tag:fuel": 2}`` is satisfied one unit
per unmet key per work cycle, so every resource drains in parallel.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Mapping

from .inventory import Inventory
from .models import TAG_PREFIX, ProgressEntry

logger = logging.getLogger(__name__)

Resolver = Callable[[str], str | None]


@dataclass(slots=True)
class CycleResult:
    consumed: dict[str, int] = field(default_factory=dict)
    complete: bool = False
    blocked: bool = False


def combine_requirements(base: Mapping[str, int] | None, specific: Mapping[str, int] | None) -> dict[str, int]:
    combined: dict[str, int] = dict(base or {})
    for key, amount in (specific or {}).items():
        combined[key] = combined.get(key, 0) + amount
    return combined


def apply_multiplier(requirements: Mapping[str, int], factor: float) -> dict[str, int]:
    return {key: math.ceil(amount * factor) for key, amount in requirements.items()}


def init_progress(requirements: Mapping[str, int]) -> dict[str, ProgressEntry]:
    return {key: ProgressEntry(current=0, required=int(amount)) for key, amount in requirements.items()}


def is_complete(ledger: Mapping[str, ProgressEntry]) -> bool:
    return all(entry.current >= entry.required for entry in ledger.values())


def total_progress_percent(ledger: Mapping[str, ProgressEntry]) -> float:
    required = sum(entry.required for entry in ledger.values())
    if required <= 0:
        return 100.0
    current = sum(entry.current for entry in ledger.values())
    return current / required * 100


def slot_resolver(assigned_items: Mapping[int, str], requirements: Mapping[str, int]) -> Resolver:
    """Map each requirement key to the item the player dropped in the slot with the same position."""
    keys = list(requirements)

    def resolve(key: str) -> str | None:
        if key not in keys:
            return None
        return assigned_items.get(keys.index(key))

    return resolve


def resolve_key(inventory: Inventory, key: str, resolver: Resolver | None = None) -> str | None:
    if not key.startswith(TAG_PREFIX):
        return key
    tag = key[len(TAG_PREFIX):]
    if resolver is None:
        return inventory.find_by_tag(tag)
    item_id = resolver(key)
    if item_id is None:
        return None
    template = inventory.content.item_by_id.get(item_id)
    if template is None or tag not in template.tags:
        return None
    return item_id


def _ensure_ledger(ledger: dict[str, ProgressEntry], requirements: Mapping[str, int]) -> None:
    for key, amount in requirements.items():
        if key not in ledger:
            logger.warning("Progress ledger missing key %s, initialising", key)
            ledger[key] = ProgressEntry(current=0, required=int(amount))


def can_make_progress(
    inventory: Inventory,
    ledger: dict[str, ProgressEntry],
    requirements: Mapping[str, int],
    resolver: Resolver | None = None,
) -> bool:
    _ensure_ledger(ledger, requirements)
    for key in requirements:
        if ledger[key].satisfied:
            continue
        item_id = resolve_key(inventory, key, resolver)
        if item_id is not None and inventory.has(item_id, 1):
            return True
    return False


def consume_cycle(
    inventory: Inventory,
    ledger: dict[str, ProgressEntry],
    requirements: Mapping[str, int],
    resolver: Resolver | None = None,
) -> CycleResult:
    _ensure_ledger(ledger, requirements)
    result = CycleResult()
    for key in requirements:
        entry = ledger[key]
        if entry.satisfied:
            continue
        item_id = resolve_key(inventory, key, resolver)
        if item_id is None:
            continue
        if inventory.remove(item_id, 1):
            entry.current += 1
            result.consumed[key] = 1
            logger.debug("Consumed 1 %s for %s (%s/%s)", item_id, key, entry.current, entry.required)

    remaining = any(not ledger[key].satisfied for key in requirements)
    result.complete = not remaining
    result.blocked = not result.consumed and remaining
    return result
