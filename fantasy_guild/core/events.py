"""Synchronous domain-event bus.

State machines publish fire-and-forget notifications here; nothing in the
simulation reads a handler's return value. The only subscriber the core itself
installs is the hero-retirement hook in ``engine.create_world``.
"""

from __future__ import annotations

import logging
from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Any, Callable

feed_logger = logging.getLogger("fantasy_guild.events")

EventHandler = Callable[["DomainEvent"], None]


@dataclass(slots=True)
class DomainEvent:
    name: str
    data: dict[str, Any] = field(default_factory=dict)
    time_ms: float = 0.0

    def format(self) -> str:
        details = " ".join(f"{key}={value}" for key, value in sorted(self.data.items()))
        return f"[t={self.time_ms / 1000:8.1f}s] {self.name} {details}".rstrip()


class EventBus:
    def __init__(self, history_limit: int = 500) -> None:
        self._subscribers: dict[str, list[EventHandler]] = defaultdict(list)
        self._history: deque[DomainEvent] = deque(maxlen=history_limit)
        self.clock: Callable[[], float] = lambda: 0.0

    def subscribe(self, name: str, handler: EventHandler) -> None:
        self._subscribers[name].append(handler)

    def unsubscribe(self, name: str, handler: EventHandler) -> None:
        handlers = self._subscribers.get(name, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, name: str, /, **data: Any) -> DomainEvent:
        event = DomainEvent(name=name, data=data, time_ms=self.clock())
        self._history.append(event)
        feed_logger.info(event.format())
        for handler in list(self._subscribers.get(name, [])) + list(self._subscribers.get("*", [])):
            handler(event)
        return event

    @property
    def history(self) -> list[DomainEvent]:
        return list(self._history)

    def names(self) -> list[str]:
        return [event.name for event in self._history]

    def clear(self) -> None:
        self._history.clear()
