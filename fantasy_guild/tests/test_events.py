from __future__ import annotations

from pathlib import Path

from fantasy_guild.core.cards import spawn_task_card
from fantasy_guild.core.engine import create_initial_state, create_world
from fantasy_guild.core.events import DomainEvent, EventBus
from fantasy_guild.core.loader import load_content


def test_publish_reaches_named_and_wildcard_subscribers() -> None:
    bus = EventBus()
    named: list[DomainEvent] = []
    everything: list[str] = []
    bus.subscribe("item_added", named.append)
    bus.subscribe("*", lambda event: everything.append(event.name))

    bus.publish("item_added", item_id="wood", qty=2)
    bus.publish("card_spawned", card_id="task_0001")

    assert [event.data for event in named] == [{"item_id": "wood", "qty": 2}]
    assert everything == ["item_added", "card_spawned"]
    assert bus.names() == ["item_added", "card_spawned"]


def test_unsubscribe_and_clear() -> None:
    bus = EventBus()
    seen: list[DomainEvent] = []
    bus.subscribe("hero_leveled", seen.append)
    bus.unsubscribe("hero_leveled", seen.append)
    bus.unsubscribe("never_subscribed", seen.append)

    bus.publish("hero_leveled", hero_id="hero_mira", level=2)
    assert seen == []
    assert len(bus.history) == 1

    bus.clear()
    assert bus.history == []


def test_history_limit_and_clock() -> None:
    now = {"ms": 0.0}
    bus = EventBus(history_limit=3)
    bus.clock = lambda: now["ms"]
    for index in range(5):
        now["ms"] = index * 1500.0
        bus.publish("tick", index=index)

    assert [event.data["index"] for event in bus.history] == [2, 3, 4]
    assert bus.history[-1].time_ms == 6000.0
    assert bus.history[-1].format() == "[t=     6.0s] tick index=4"


def test_payload_may_carry_a_name_field() -> None:
    bus = EventBus()
    event = bus.publish("hero_renamed", name="Mira the Bold")
    assert event.name == "hero_renamed"
    assert event.data == {"name": "Mira the Bold"}


def test_spawning_a_card_publishes_card_spawned() -> None:
    content = load_content(Path(__file__).resolve().parents[1] / "content")
    world = create_world(create_initial_state(7, content), content)

    card = spawn_task_card(world, "well")

    spawned = [event for event in world.bus.history if event.name == "card_spawned"]
    assert [event.data["card_id"] for event in spawned] == [card.id]
    assert spawned[0].data["card_name"] == card.name
    assert spawned[0].data["card_type"] == "production"
