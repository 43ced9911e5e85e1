from __future__ import annotations

import json
import shutil
from pathlib import Path

import pytest

from fantasy_guild.core.loader import ContentValidationError, MissingReferenceError, load_content


def _copy_content(tmp_path: Path) -> Path:
    source_content = Path(__file__).resolve().parents[1] / "content"
    test_content = tmp_path / "content"
    shutil.copytree(source_content, test_content)
    return test_content


def _edit(path: Path, mutate) -> None:
    payload = json.loads(path.read_text(encoding="utf-8"))
    mutate(payload)
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


def test_bundled_content_loads_and_indexes_by_id():
    content = load_content(Path(__file__).resolve().parents[1] / "content")
    assert "guild_hall" in content.biome_by_id
    assert content.require_task("chop_logs").inputs[0].accept_tag == "axe"
    assert {item.id for item in content.items_with_tag("ore")} == {"copper_ore", "tin_ore"}
    assert len(content.start.heroes) >= 1


def test_require_helpers_raise_missing_reference():
    content = load_content(Path(__file__).resolve().parents[1] / "content")
    with pytest.raises(MissingReferenceError, match="Unknown enemy 'dragon'"):
        content.require_enemy("dragon")


def test_missing_item_reference_in_enemy_drop_raises_clear_error(tmp_path: Path):
    test_content = _copy_content(tmp_path)

    def mutate(enemies):
        enemies[0]["drops"][0]["itemId"] = "missing_item_id"

    _edit(test_content / "enemies.json", mutate)
    with pytest.raises(ContentValidationError, match="missing item 'missing_item_id'"):
        load_content(test_content)


def test_enemy_group_unlocking_unknown_task_is_rejected(tmp_path: Path):
    test_content = _copy_content(tmp_path)

    def mutate(biomes):
        biomes[0]["enemyGroups"][1]["unlocksTask"] = "no_such_task"

    _edit(test_content / "biomes.json", mutate)
    with pytest.raises(ContentValidationError, match="unlocks missing task 'no_such_task'"):
        load_content(test_content)


def test_open_slot_tag_without_any_item_is_rejected(tmp_path: Path):
    test_content = _copy_content(tmp_path)

    def mutate(tasks):
        for task in tasks:
            if task["id"] == "chop_logs":
                task["inputs"][0]["acceptTag"] = "ghost"

    _edit(test_content / "tasks.json", mutate)
    with pytest.raises(ContentValidationError, match="tag 'ghost' that no item carries"):
        load_content(test_content)


def test_project_unlocking_unknown_region_is_rejected(tmp_path: Path):
    test_content = _copy_content(tmp_path)

    def mutate(projects):
        for project in projects:
            if project["effectType"] == "unlock_region":
                project["effect"]["regionId"] = "atlantis"

    _edit(test_content / "projects.json", mutate)
    with pytest.raises(ContentValidationError, match="unlocks missing region 'atlantis'"):
        load_content(test_content)


def test_schema_errors_name_the_file_and_field(tmp_path: Path):
    test_content = _copy_content(tmp_path)

    def mutate(enemies):
        enemies[0]["hp"] = 0

    _edit(test_content / "enemies.json", mutate)
    with pytest.raises(ContentValidationError, match=r"enemies\.json:0\.hp"):
        load_content(test_content)


def test_duplicate_ids_are_rejected(tmp_path: Path):
    test_content = _copy_content(tmp_path)

    def mutate(items):
        items.append(dict(items[0]))

    _edit(test_content / "items.json", mutate)
    with pytest.raises(ContentValidationError, match="Duplicate item id 'wood'"):
        load_content(test_content)


def test_starting_equipment_must_fit_its_slot(tmp_path: Path):
    test_content = _copy_content(tmp_path)

    def mutate(start):
        start["heroes"][0]["equipment"]["weapon"] = "bread"

    _edit(test_content / "start.json", mutate)
    with pytest.raises(ContentValidationError, match="cannot equip 'bread' as weapon"):
        load_content(test_content)
