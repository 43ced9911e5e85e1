from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from fantasy_guild.core.engine import create_initial_state, create_world, run_simulation
from fantasy_guild.core.loader import load_content
from fantasy_guild.tools.simulate import app


def test_smoke_run_with_autoassign_makes_progress():
    content = load_content(Path(__file__).resolve().parents[1] / "content")
    world = create_world(create_initial_state(9991, content), content)
    run_simulation(world, 1200, delta_ms=500, autoassign=True)

    assert world.state.tick_count == 1200
    assert world.state.elapsed_ms == 600_000
    assert "guild_hall" in world.state.unlocked_biomes
    assert any(card.card_type == "area" for card in world.state.cards)
    assert "task_completed" in world.bus.names() or world.state.exploration_count > 0


def test_simulate_cli_prints_summary_and_signature():
    result = CliRunner().invoke(app, ["--seed", "123", "--ticks", "300", "--autoassign"])
    assert result.exit_code == 0, result.output
    assert "Simulation Summary" in result.output
    assert "Deterministic signature" in result.output
