from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TypeVar

from pydantic import TypeAdapter, ValidationError

from .models import (
    TAG_PREFIX,
    BiomeTemplate,
    CombatTemplate,
    EnemyTemplate,
    HeroClass,
    HeroTrait,
    ItemTemplate,
    ProjectTemplate,
    RegionTemplate,
    StartSetup,
    TaskOutput,
    TaskTemplate,
)

T = TypeVar("T")

DEFAULT_CONTENT_DIR = Path(__file__).resolve().parents[1] / "content"


class ContentValidationError(ValueError):
    def __init__(self, message: str, details: list[str] | None = None) -> None:
        self.details = details or []
        suffix = "\n".join(self.details)
        super().__init__(f"{message}\n{suffix}" if suffix else message)


class MissingReferenceError(LookupError):
    def __init__(self, kind: str, ref_id: str | None) -> None:
        self.kind = kind
        self.ref_id = ref_id
        super().__init__(f"Unknown {kind} '{ref_id}'.")


@dataclass(slots=True)
class ContentBundle:
    items: list[ItemTemplate]
    enemies: list[EnemyTemplate]
    tasks: list[TaskTemplate]
    combat_cards: list[CombatTemplate]
    biomes: list[BiomeTemplate]
    regions: list[RegionTemplate]
    projects: list[ProjectTemplate]
    classes: list[HeroClass]
    traits: list[HeroTrait]
    start: StartSetup
    item_by_id: dict[str, ItemTemplate]
    enemy_by_id: dict[str, EnemyTemplate]
    task_by_id: dict[str, TaskTemplate]
    combat_by_id: dict[str, CombatTemplate]
    biome_by_id: dict[str, BiomeTemplate]
    region_by_id: dict[str, RegionTemplate]
    project_by_id: dict[str, ProjectTemplate]
    class_by_id: dict[str, HeroClass]
    trait_by_id: dict[str, HeroTrait]

    def require_item(self, item_id: str | None) -> ItemTemplate:
        return _require(self.item_by_id, "item", item_id)

    def require_enemy(self, enemy_id: str | None) -> EnemyTemplate:
        return _require(self.enemy_by_id, "enemy", enemy_id)

    def require_task(self, task_id: str | None) -> TaskTemplate:
        return _require(self.task_by_id, "task template", task_id)

    def require_combat(self, template_id: str | None) -> CombatTemplate:
        return _require(self.combat_by_id, "combat template", template_id)

    def require_biome(self, biome_id: str | None) -> BiomeTemplate:
        return _require(self.biome_by_id, "biome", biome_id)

    def require_region(self, region_id: str | None) -> RegionTemplate:
        return _require(self.region_by_id, "region", region_id)

    def require_project(self, project_id: str | None) -> ProjectTemplate:
        return _require(self.project_by_id, "project", project_id)

    def items_with_tag(self, tag: str) -> list[ItemTemplate]:
        return [item for item in self.items if tag in item.tags]


def _require(lookup: dict[str, T], kind: str, ref_id: str | None) -> T:
    if ref_id is None or ref_id not in lookup:
        raise MissingReferenceError(kind, ref_id)
    return lookup[ref_id]


def _load_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ContentValidationError(f"Missing content file: {path}") from exc
    except json.JSONDecodeError as exc:
        raise ContentValidationError(f"Invalid JSON in {path.name}: {exc.msg} at line {exc.lineno}") from exc


def _schema_errors(path: Path, exc: ValidationError) -> list[str]:
    errors = []
    for issue in exc.errors():
        issue_path = ".".join(str(part) for part in issue.get("loc", [])) or "(root)"
        errors.append(f"{path.name}:{issue_path}: {issue.get('msg', 'validation error')}")
    return errors


def _load_typed_list(path: Path, item_type: type[T]) -> list[T]:
    data = _load_json(path)
    adapter = TypeAdapter(list[item_type])  # type: ignore[index]
    try:
        return adapter.validate_python(data)
    except ValidationError as exc:
        raise ContentValidationError(f"Schema validation failed for {path.name}.", _schema_errors(path, exc)) from exc


def _load_optional_typed_list(path: Path, item_type: type[T]) -> list[T]:
    if not path.exists():
        return []
    return _load_typed_list(path, item_type)


def _load_start(path: Path) -> StartSetup:
    data = _load_json(path)
    try:
        return StartSetup.model_validate(data)
    except ValidationError as exc:
        raise ContentValidationError(f"Schema validation failed for {path.name}.", _schema_errors(path, exc)) from exc


def _assert_unique_ids(kind: str, values: list[Any]) -> None:
    seen: set[str] = set()
    for entry in values:
        entry_id = entry.id
        if entry_id in seen:
            raise ContentValidationError(f"Duplicate {kind} id '{entry_id}'.")
        seen.add(entry_id)


def _assert_ref(exists: bool, message: str) -> None:
    if not exists:
        raise ContentValidationError(message)


def _assert_requirement_keys(requirements: dict[str, int], path: str, item_ids: set[str], tags: set[str]) -> None:
    for key, amount in requirements.items():
        if amount <= 0:
            raise ContentValidationError(f"{path} amount for '{key}' must be positive.")
        if key.startswith(TAG_PREFIX):
            tag = key[len(TAG_PREFIX):]
            _assert_ref(tag in tags, f"{path} references tag '{tag}' that no item carries.")
        else:
            _assert_ref(key in item_ids, f"{path} references missing item '{key}'.")


def _assert_outputs(outputs: list[TaskOutput], path: str, item_ids: set[str]) -> None:
    for idx, output in enumerate(outputs):
        if output.item_id is not None:
            _assert_ref(output.item_id in item_ids, f"{path}[{idx}] references missing item '{output.item_id}'.")


def _validate_references(
    items: list[ItemTemplate],
    enemies: list[EnemyTemplate],
    tasks: list[TaskTemplate],
    combat_cards: list[CombatTemplate],
    biomes: list[BiomeTemplate],
    regions: list[RegionTemplate],
    projects: list[ProjectTemplate],
    classes: list[HeroClass],
    traits: list[HeroTrait],
    start: StartSetup,
) -> None:
    item_ids = {item.id for item in items}
    tags = {tag for item in items for tag in item.tags}
    equip_slots = {item.id: item.equip_slot for item in items}
    enemy_ids = {enemy.id for enemy in enemies}
    task_ids = {task.id for task in tasks}
    combat_ids = {template.id for template in combat_cards}
    biome_ids = {biome.id for biome in biomes}
    region_ids = {region.id for region in regions}
    project_ids = {project.id for project in projects}

    for enemy in enemies:
        for idx, drop in enumerate(enemy.drops):
            _assert_ref(drop.item_id in item_ids, f"enemy '{enemy.id}' drops[{idx}] references missing item '{drop.item_id}'.")

    for task in tasks:
        for idx, task_input in enumerate(task.inputs):
            if task_input.item_id is not None:
                _assert_ref(
                    task_input.item_id in item_ids,
                    f"task '{task.id}' inputs[{idx}] references missing item '{task_input.item_id}'.",
                )
            else:
                _assert_ref(
                    task_input.accept_tag in tags,
                    f"task '{task.id}' inputs[{idx}] accepts tag '{task_input.accept_tag}' that no item carries.",
                )
        _assert_outputs(task.outputs, f"task '{task.id}' outputs", item_ids)
        for key, outputs in task.output_map.items():
            _assert_ref(key in item_ids, f"task '{task.id}' outputMap key references missing item '{key}'.")
            _assert_outputs(outputs, f"task '{task.id}' outputMap.{key}", item_ids)

    for template in combat_cards:
        _assert_ref(
            template.enemy_id in enemy_ids,
            f"combat card '{template.id}' references missing enemy '{template.enemy_id}'.",
        )

    for biome in biomes:
        if biome.exploration_cost is not None:
            _assert_requirement_keys(biome.exploration_cost.base, f"biome '{biome.id}' explorationCost.base", item_ids, tags)
            _assert_requirement_keys(
                biome.exploration_cost.specific, f"biome '{biome.id}' explorationCost.specific", item_ids, tags
            )
        for idx, group in enumerate(biome.enemy_groups):
            path = f"biome '{biome.id}' enemyGroups[{idx}]"
            if group.enemy_id is not None:
                _assert_ref(group.enemy_id in enemy_ids, f"{path} references missing enemy '{group.enemy_id}'.")
            _assert_requirement_keys(group.requirements, f"{path} requirements", item_ids, tags)
            if group.unlocks_task is not None:
                _assert_ref(group.unlocks_task in task_ids, f"{path} unlocks missing task '{group.unlocks_task}'.")
            for reward in group.rewards:
                _assert_ref(reward.item_id in item_ids, f"{path} rewards references missing item '{reward.item_id}'.")
        for project_id in biome.project_chain:
            _assert_ref(project_id in project_ids, f"biome '{biome.id}' projectChain references missing project '{project_id}'.")

    for region in regions:
        for biome_id in region.biomes:
            _assert_ref(biome_id in biome_ids, f"region '{region.id}' references missing biome '{biome_id}'.")

    for project in projects:
        _assert_requirement_keys(project.resource_cost, f"project '{project.id}' resourceCost", item_ids, tags)
        effect = project.effect
        if project.effect_type == "unlock_biome":
            _assert_ref(effect.biome_id in biome_ids, f"project '{project.id}' unlocks missing biome '{effect.biome_id}'.")
        if project.effect_type == "unlock_region":
            _assert_ref(
                effect.region_id in region_ids, f"project '{project.id}' unlocks missing region '{effect.region_id}'."
            )
        if project.effect_type == "double_items":
            _assert_ref(effect.chance is not None, f"project '{project.id}' double_items effect requires a chance.")
        if project.effect_type == "xp_bonus":
            _assert_ref(effect.bonus is not None, f"project '{project.id}' xp_bonus effect requires a bonus.")

    class_ids = {hero_class.id for hero_class in classes}
    trait_ids = {trait.id for trait in traits}
    for hero in start.heroes:
        _assert_ref(hero.class_id in class_ids, f"start hero '{hero.id}' references missing class '{hero.class_id}'.")
        if hero.trait_id is not None:
            _assert_ref(hero.trait_id in trait_ids, f"start hero '{hero.id}' references missing trait '{hero.trait_id}'.")
        for slot, item_id in hero.equipment.model_dump().items():
            if item_id is None:
                continue
            _assert_ref(item_id in item_ids, f"start hero '{hero.id}' equips missing item '{item_id}'.")
            _assert_ref(
                equip_slots[item_id] == slot,
                f"start hero '{hero.id}' cannot equip '{item_id}' as {slot}.",
            )
    for item_id in start.inventory:
        _assert_ref(item_id in item_ids, f"start inventory references missing item '{item_id}'.")
    for biome_id in start.unlocked_biomes:
        _assert_ref(biome_id in biome_ids, f"start unlockedBiomes references missing biome '{biome_id}'.")
    for idx, card in enumerate(start.cards):
        if card.kind == "task":
            _assert_ref(card.template_id in task_ids, f"start cards[{idx}] references missing task '{card.template_id}'.")
        elif card.kind == "combat":
            _assert_ref(
                card.template_id in combat_ids, f"start cards[{idx}] references missing combat card '{card.template_id}'."
            )
        else:
            _assert_ref(card.region_id in region_ids, f"start cards[{idx}] references missing region '{card.region_id}'.")


def load_content(content_dir: Path | str = DEFAULT_CONTENT_DIR) -> ContentBundle:
    base_path = Path(content_dir)
    items = _load_typed_list(base_path / "items.json", ItemTemplate)
    enemies = _load_typed_list(base_path / "enemies.json", EnemyTemplate)
    tasks = _load_typed_list(base_path / "tasks.json", TaskTemplate)
    combat_cards = _load_optional_typed_list(base_path / "combat_cards.json", CombatTemplate)
    biomes = _load_typed_list(base_path / "biomes.json", BiomeTemplate)
    regions = _load_typed_list(base_path / "regions.json", RegionTemplate)
    projects = _load_optional_typed_list(base_path / "projects.json", ProjectTemplate)
    classes = _load_typed_list(base_path / "classes.json", HeroClass)
    traits = _load_optional_typed_list(base_path / "traits.json", HeroTrait)
    start = _load_start(base_path / "start.json")

    _assert_unique_ids("item", items)
    _assert_unique_ids("enemy", enemies)
    _assert_unique_ids("task", tasks)
    _assert_unique_ids("combat card", combat_cards)
    _assert_unique_ids("biome", biomes)
    _assert_unique_ids("region", regions)
    _assert_unique_ids("project", projects)
    _assert_unique_ids("class", classes)
    _assert_unique_ids("trait", traits)
    _assert_unique_ids("start hero", start.heroes)

    _validate_references(items, enemies, tasks, combat_cards, biomes, regions, projects, classes, traits, start)

    return ContentBundle(
        items=items,
        enemies=enemies,
        tasks=tasks,
        combat_cards=combat_cards,
        biomes=biomes,
        regions=regions,
        projects=projects,
        classes=classes,
        traits=traits,
        start=start,
        item_by_id={item.id: item for item in items},
        enemy_by_id={enemy.id: enemy for enemy in enemies},
        task_by_id={task.id: task for task in tasks},
        combat_by_id={template.id: template for template in combat_cards},
        biome_by_id={biome.id: biome for biome in biomes},
        region_by_id={region.id: region for region in regions},
        project_by_id={project.id: project for project in projects},
        class_by_id={hero_class.id: hero_class for hero_class in classes},
        trait_by_id={trait.id: trait for trait in traits},
    )
