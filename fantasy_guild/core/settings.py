from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TimingSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    tick_interval_ms: int = Field(default=100, ge=1)
    work_cycle_ms: int = Field(default=1000, ge=1)
    work_cycle_energy_cost: int = Field(default=1, ge=0)
    default_task_duration_ms: int = Field(default=10000, ge=1)
    skill_speed_per_level: float = Field(default=0.005, ge=0)
    min_speed_multiplier: float = Field(default=0.1, gt=0, le=1.0)


class ProgressionSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    default_task_xp: int = Field(default=10, ge=0)
    affinity_xp_bonus: float = Field(default=0.10, ge=0)
    exploration_cost_step: float = Field(default=0.2, ge=0)
    fallback_exploration_cost: dict[str, int] = Field(default_factory=lambda: {"torch": 5})
    default_max_slots: int = Field(default=20, ge=1)
    max_level: int = Field(default=99, ge=1)


class CombatSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    hit_chance_base: float = 50.0
    hit_chance_per_point: float = 2.0
    hit_chance_min: float = Field(default=5.0, ge=0, le=100)
    hit_chance_max: float = Field(default=95.0, ge=0, le=100)
    hero_base_attack_ms: float = Field(default=3000.0, gt=0)
    hero_min_attack_ms: float = Field(default=500.0, gt=0)
    attack_speed_per_level: float = Field(default=0.005, ge=0)
    default_enemy_energy_cost: int = Field(default=2, ge=0)
    default_enemy_xp: int = Field(default=5, ge=0)
    defence_reduction_per_level: float = Field(default=0.5, ge=0)
    defence_reduction_cap: float = Field(default=50.0, ge=0, le=100)
    advantage_multiplier: float = Field(default=1.25, gt=0)
    disadvantage_multiplier: float = Field(default=0.75, gt=0)
    unarmed_min_damage: int = Field(default=1, ge=0)
    unarmed_max_damage: int = Field(default=2, ge=0)
    default_hero_defence: int = Field(default=1, ge=0)


class UpkeepSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    auto_consume_hp_threshold: float = Field(default=0.20, ge=0, le=1)
    auto_consume_energy_threshold: float = Field(default=0.20, ge=0, le=1)
    auto_consume_cooldown_ms: float = Field(default=2000.0, ge=0)
    wounded_recovery_ms: float = Field(default=300000.0, ge=0)
    wounded_recovery_hp_fraction: float = Field(default=0.5, gt=0, le=1)
    hp_regen_amount: int = Field(default=2, ge=0)
    hp_regen_interval_ms: float = Field(default=1000.0, gt=0)
    energy_regen_amount: int = Field(default=1, ge=0)
    energy_regen_interval_ms: float = Field(default=5000.0, gt=0)


class SimSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    timing: TimingSettings = Field(default_factory=TimingSettings)
    progression: ProgressionSettings = Field(default_factory=ProgressionSettings)
    combat: CombatSettings = Field(default_factory=CombatSettings)
    upkeep: UpkeepSettings = Field(default_factory=UpkeepSettings)

    def as_dict(self) -> dict[str, Any]:
        return json.loads(self.model_dump_json())


def merge_settings(payload: dict[str, Any] | None) -> SimSettings:
    if not isinstance(payload, dict):
        payload = {}
    return SimSettings.model_validate(payload)


def load_settings(path: Path | str | None) -> SimSettings:
    if path is None:
        return SimSettings()
    settings_path = Path(path)
    if not settings_path.exists():
        return SimSettings()
    return merge_settings(json.loads(settings_path.read_text(encoding="utf-8")))


def default_settings() -> dict[str, Any]:
    return SimSettings().as_dict()
