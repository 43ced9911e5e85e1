from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from fantasy_guild.core.settings import SimSettings, default_settings, load_settings, merge_settings


def test_defaults() -> None:
    settings = SimSettings()
    assert settings.timing.tick_interval_ms == 100
    assert settings.progression.fallback_exploration_cost == {"torch": 5}
    assert settings.combat.hit_chance_min == 5.0
    assert settings.combat.hit_chance_max == 95.0
    assert settings.upkeep.wounded_recovery_ms == 300000.0
    assert default_settings()["progression"]["max_level"] == 99


def test_merge_overrides_and_ignores_unknown_keys() -> None:
    settings = merge_settings(
        {
            "timing": {"tick_interval_ms": 250, "legacy_field": True},
            "combat": {"advantage_multiplier": 1.5},
            "audio": {"master": 0.5},
        }
    )
    assert settings.timing.tick_interval_ms == 250
    assert settings.timing.work_cycle_ms == 1000
    assert settings.combat.advantage_multiplier == 1.5
    assert merge_settings(None) == SimSettings()


def test_merge_rejects_out_of_range_values() -> None:
    with pytest.raises(ValidationError):
        merge_settings({"combat": {"hit_chance_max": 140}})


def test_load_settings_from_file(tmp_path: Path) -> None:
    path = tmp_path / "tuning.json"
    path.write_text(json.dumps({"upkeep": {"hp_regen_amount": 5}}), encoding="utf-8")

    assert load_settings(path).upkeep.hp_regen_amount == 5
    assert load_settings(tmp_path / "missing.json") == SimSettings()
    assert load_settings(None) == SimSettings()
