from __future__ import annotations

import hashlib
import json
import logging

from .area import claim_area_task
from .cards import (
    assign_hero,
    assign_item,
    discard_card,
    release_hero,
    spawn_combat_card,
    spawn_explore_card,
    spawn_task_card,
)
from .dispatcher import DispatchReport, dispatch_tick
from .events import DomainEvent, EventBus
from .exploration import discover_biome
from .heroes import HeroRoster, build_hero
from .inventory import Inventory
from .loader import ContentBundle
from .models import (
    TAG_PREFIX,
    AreaPayload,
    Card,
    ExplorationPayload,
    GuildState,
    InventoryState,
    ProductionPayload,
    RecruitPayload,
    StartingCard,
)
from .requirements import slot_requirement_keys
from .rng import DeterministicRNG, RandomSource
from .settings import SimSettings
from .world import World

logger = logging.getLogger(__name__)


def _rng_from_state(state: GuildState) -> DeterministicRNG:
    return DeterministicRNG(seed=state.seed, state=state.rng_state, calls=state.rng_calls)


def _sync_rng_to_state(state: GuildState, rng: RandomSource) -> None:
    if isinstance(rng, DeterministicRNG):
        state.rng_state = rng.state
        state.rng_calls = rng.calls


def create_world(
    state: GuildState,
    content: ContentBundle,
    settings: SimSettings | None = None,
    rng: RandomSource | None = None,
    bus: EventBus | None = None,
) -> World:
    settings = settings or SimSettings()
    bus = bus or EventBus()
    inventory = Inventory(state.inventory, content, bus)
    world = World(
        state=state,
        content=content,
        settings=settings,
        bus=bus,
        rng=rng if rng is not None else _rng_from_state(state),
        inventory=inventory,
        heroes=HeroRoster(state.heroes, content, settings, bus, inventory),
    )
    bus.clock = lambda: state.elapsed_ms

    def on_hero_retired(event: DomainEvent) -> None:
        release_hero(world, event.data["hero_id"])

    bus.subscribe("hero_retired", on_hero_retired)
    return world


def _spawn_starting_card(world: World, card: StartingCard) -> None:
    if card.kind == "task":
        spawn_task_card(world, card.template_id, card.biome_id, card.region_id)
    elif card.kind == "combat":
        spawn_combat_card(world, card.template_id)
    else:
        spawn_explore_card(world, card.region_id, card.biome_id)


def create_initial_state(seed: int | str, content: ContentBundle, settings: SimSettings | None = None) -> GuildState:
    settings = settings or SimSettings()
    rng = DeterministicRNG.from_seed(seed)
    setup = content.start
    state = GuildState(
        seed=seed,
        inventory=InventoryState(max_slots=settings.progression.default_max_slots),
        heroes=[build_hero(template) for template in setup.heroes],
        unlocked_biomes=list(setup.unlocked_biomes),
        rng_state=rng.state,
        rng_calls=rng.calls,
    )
    world = create_world(state, content, settings, rng=rng)
    for item_id, qty in setup.inventory.items():
        world.inventory.add(item_id, qty)
    for card in setup.cards:
        _spawn_starting_card(world, card)
    _sync_rng_to_state(state, rng)
    return state


def _regenerate(world: World, delta_ms: float) -> None:
    upkeep = world.settings.upkeep
    state = world.state
    state.hp_regen_ms += delta_ms
    while state.hp_regen_ms >= upkeep.hp_regen_interval_ms:
        state.hp_regen_ms -= upkeep.hp_regen_interval_ms
        world.heroes.regenerate(upkeep.hp_regen_amount, 0)
    state.energy_regen_ms += delta_ms
    while state.energy_regen_ms >= upkeep.energy_regen_interval_ms:
        state.energy_regen_ms -= upkeep.energy_regen_interval_ms
        world.heroes.regenerate(0, upkeep.energy_regen_amount)


def _process_pending_discards(world: World) -> None:
    for card_id in list(world.state.pending_discards):
        result = discard_card(world, card_id)
        if not result.success:
            world.state.pending_discards.remove(card_id)


def step(world: World, delta_ms: float | None = None) -> DispatchReport:
    if delta_ms is None:
        delta_ms = world.settings.timing.tick_interval_ms
    state = world.state
    if delta_ms > 0:
        state.elapsed_ms += delta_ms
    state.tick_count += 1

    report = dispatch_tick(world, state.cards, delta_ms)
    if delta_ms > 0:
        world.heroes.tick_wounded(delta_ms)
        _regenerate(world, delta_ms)
    _process_pending_discards(world)
    _sync_rng_to_state(state, world.rng)
    return report


def _fill_open_slots(world: World, card: Card) -> None:
    for slot, key in enumerate(slot_requirement_keys(world, card)):
        if key is None or not key.startswith(TAG_PREFIX) or slot in card.payload.assigned_items:
            continue
        item_id = world.inventory.find_by_tag(key[len(TAG_PREFIX):])
        if item_id is not None:
            assign_item(world, card.id, slot, item_id)


def auto_manage(world: World) -> int:
    """Resolve gates and put idle heroes on idle cards, in card order."""
    actions = 0
    for card in list(world.state.cards):
        payload = card.payload
        if isinstance(payload, ExplorationPayload) and payload.awaiting_discovery:
            actions += int(discover_biome(world, card.id).success)
        elif isinstance(payload, AreaPayload) and payload.awaiting_task_claim:
            actions += int(claim_area_task(world, card.id).success)

    idle_heroes = [hero for hero in world.heroes.heroes if hero.status == "idle"]
    for card in list(world.state.cards):
        if not idle_heroes:
            break
        if isinstance(card.payload, RecruitPayload) or card.assigned_hero_id is not None or card.status == "complete":
            continue
        if isinstance(card.payload, (ProductionPayload, ExplorationPayload, AreaPayload)):
            _fill_open_slots(world, card)
        for hero in list(idle_heroes):
            if assign_hero(world, card.id, hero.id).success:
                idle_heroes.remove(hero)
                actions += 1
                break
    return actions


def run_simulation(
    world: World,
    ticks: int,
    delta_ms: float | None = None,
    autoassign: bool = False,
) -> World:
    for _ in range(ticks):
        if autoassign:
            auto_manage(world)
        step(world, delta_ms)
    logger.info("Simulated %s ticks (%.1fs)", ticks, world.state.elapsed_ms / 1000)
    return world


def state_signature(state: GuildState) -> str:
    encoded = json.dumps(state.model_dump(mode="json"), sort_keys=True).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()[:16]
