from __future__ import annotations

import logging
from dataclasses import dataclass

from .events import EventBus
from .loader import ContentBundle
from .models import InventoryStack, InventoryState

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DurabilityResult:
    broke: bool
    depleted: bool
    remaining: int | None = None


class Inventory:
    """Single global item pool shared by every card.

    Stacks carry an optional durability counter that always describes the
    top unit of the stack; lower units are implicitly at full durability.
    """

    def __init__(self, state: InventoryState, content: ContentBundle, bus: EventBus | None = None) -> None:
        self.state = state
        self.content = content
        self.bus = bus

    def count(self, item_id: str) -> int:
        stack = self.state.items.get(item_id)
        return stack.qty if stack is not None else 0

    def has(self, item_id: str, qty: int = 1) -> bool:
        return self.count(item_id) >= qty

    def used_slots(self) -> int:
        return len(self.state.items)

    def stack_limit(self, item_id: str) -> int:
        template = self.content.require_item(item_id)
        if not template.stackable:
            return 1
        return template.max_stack + self.state.max_stack_bonus

    def add(self, item_id: str, qty: int = 1) -> int:
        if qty <= 0:
            return 0
        template = self.content.require_item(item_id)
        stack = self.state.items.get(item_id)
        if stack is None:
            if self.used_slots() >= self.state.max_slots:
                logger.warning("Inventory full, dropping %sx %s", qty, item_id)
                if self.bus is not None:
                    self.bus.publish("inventory_full", item_id=item_id, qty=qty)
                return 0
            stack = InventoryStack(qty=0, dur=template.max_durability)
            self.state.items[item_id] = stack

        room = max(0, self.stack_limit(item_id) - stack.qty)
        added = min(qty, room)
        stack.qty += added
        if stack.qty == 0:
            del self.state.items[item_id]
        if added < qty:
            logger.debug("Stack cap reached for %s, %s discarded", item_id, qty - added)
        return added

    def remove(self, item_id: str, qty: int = 1) -> bool:
        if qty <= 0:
            return True
        stack = self.state.items.get(item_id)
        if stack is None or stack.qty < qty:
            return False
        stack.qty -= qty
        if stack.qty == 0:
            del self.state.items[item_id]
        return True

    def get_durability(self, item_id: str) -> int | None:
        stack = self.state.items.get(item_id)
        return stack.dur if stack is not None else None

    def decrement_durability(self, item_id: str, amount: int = 1) -> DurabilityResult:
        stack = self.state.items.get(item_id)
        if stack is None:
            return DurabilityResult(broke=False, depleted=True)
        max_durability = self.content.require_item(item_id).max_durability
        if max_durability is None:
            return DurabilityResult(broke=False, depleted=False)

        current = stack.dur if stack.dur is not None else max_durability
        current -= amount
        if current > 0:
            stack.dur = current
            return DurabilityResult(broke=False, depleted=False, remaining=current)

        stack.qty -= 1
        if stack.qty <= 0:
            del self.state.items[item_id]
            return DurabilityResult(broke=True, depleted=True, remaining=0)
        stack.dur = max_durability
        return DurabilityResult(broke=True, depleted=False, remaining=max_durability)

    def find_by_tag(self, tag: str) -> str | None:
        for item_id, stack in self.state.items.items():
            if stack.qty <= 0:
                continue
            template = self.content.item_by_id.get(item_id)
            if template is not None and tag in template.tags:
                return item_id
        return None

    def snapshot(self) -> dict[str, int]:
        return {item_id: stack.qty for item_id, stack in sorted(self.state.items.items())}
