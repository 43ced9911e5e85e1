from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from fantasy_guild.core.engine import create_initial_state, create_world, run_simulation, state_signature
from fantasy_guild.core.loader import ContentValidationError, load_content
from fantasy_guild.core.models import AreaPayload, Card, ExplorationPayload, ProductionPayload
from fantasy_guild.core.settings import load_settings
from fantasy_guild.core.world import World
from fantasy_guild.services.logger import configure_logging

app = typer.Typer(add_completion=False, help="Run a deterministic headless guild simulation for balancing and testing.")
console = Console()


def _normalize_seed(raw_seed: str) -> int | str:
    try:
        return int(raw_seed)
    except ValueError:
        return raw_seed


def _card_detail(card: Card) -> str:
    payload = card.payload
    if isinstance(payload, ProductionPayload):
        return f"{payload.progress:.0f}/{payload.base_tick_time:.0f}ms"
    if isinstance(payload, ExplorationPayload):
        return f"biome={payload.selected_biome_id or '-'} explored={len(payload.explored_biomes)}"
    if isinstance(payload, AreaPayload):
        return f"phase={payload.phase} group={payload.current_group_index} projects={len(payload.completed_projects)}"
    return "-"


def _cards_table(world: World) -> Table:
    table = Table(title="Cards")
    table.add_column("Id", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Status")
    table.add_column("Hero")
    table.add_column("Detail", style="white")
    for card in world.state.cards:
        table.add_row(
            card.id,
            card.name,
            card.card_type,
            card.status,
            card.assigned_hero_id or "-",
            _card_detail(card),
        )
    return table


def _heroes_table(world: World) -> Table:
    table = Table(title="Heroes")
    table.add_column("Id", style="cyan", no_wrap=True)
    table.add_column("Status")
    table.add_column("HP")
    table.add_column("Energy")
    table.add_column("Skills", style="white")
    for hero in world.heroes.heroes:
        trained = sorted((skill for skill, progress in hero.skills.items() if progress.xp > 0))
        skills = ", ".join(f"{skill}={hero.skill_level(skill)}" for skill in trained) or "-"
        table.add_row(
            hero.id,
            hero.status,
            f"{hero.hp.current}/{hero.hp.max}",
            f"{hero.energy.current}/{hero.energy.max}",
            skills,
        )
    return table


@app.command()
def main(
    seed: str = typer.Option("123", "--seed", help="Seed value (int or string)."),
    ticks: int = typer.Option(600, "--ticks", min=1, help="Number of ticks to simulate."),
    delta_ms: float = typer.Option(100.0, "--delta-ms", min=1.0, help="Simulated milliseconds per tick."),
    autoassign: bool = typer.Option(False, "--autoassign", help="Assign idle heroes and resolve gates automatically."),
    show_events: bool = typer.Option(False, "--show-events", help="Print the domain-event feed."),
    settings_path: Path | None = typer.Option(None, "--settings", help="Optional JSON file with tuning overrides."),
    logs_dir: Path | None = typer.Option(None, "--logs-dir", help="Write latest.log and events.log here."),
) -> None:
    if logs_dir is not None:
        configure_logging(logs_dir)

    content_dir = Path(__file__).resolve().parents[1] / "content"
    try:
        content = load_content(content_dir)
    except ContentValidationError as exc:
        console.print(f"[bold red]Content load failed:[/bold red] {exc}")
        raise typer.Exit(1) from exc

    settings = load_settings(settings_path)
    state = create_initial_state(_normalize_seed(seed), content, settings)
    world = create_world(state, content, settings)
    run_simulation(world, ticks, delta_ms=delta_ms, autoassign=autoassign)

    if show_events:
        for event in world.bus.history:
            console.print(event.format(), markup=False)

    summary = Table(title="Simulation Summary")
    summary.add_column("Field", style="cyan", no_wrap=True)
    summary.add_column("Value", style="white")
    summary.add_row("Seed", str(state.seed))
    summary.add_row("Ticks", str(state.tick_count))
    summary.add_row("Elapsed", f"{state.elapsed_ms / 1000:.1f}s")
    summary.add_row("Autoassign", str(autoassign))
    summary.add_row("Explorations", str(state.exploration_count))
    summary.add_row("Unlocked Biomes", ", ".join(state.unlocked_biomes) or "-")
    summary.add_row(
        "Inventory",
        ", ".join(f"{item_id}x{qty}" for item_id, qty in world.inventory.snapshot().items()) or "-",
    )
    summary.add_row(
        "Currencies",
        ", ".join(f"{currency}={amount}" for currency, amount in sorted(state.currencies.items())) or "-",
    )
    console.print()
    console.print(summary)
    console.print(_cards_table(world))
    console.print(_heroes_table(world))

    console.print(f"\n[bold green]Deterministic signature:[/bold green] {state_signature(state)}")


if __name__ == "__main__":
    app()
