from __future__ import annotations

from typing import Annotated, Literal, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

SkillId = Literal[
    "melee",
    "ranged",
    "magic",
    "defence",
    "industry",
    "nature",
    "nautical",
    "crafting",
    "culinary",
    "crime",
    "occult",
    "science",
]
CombatStyle = Literal["melee", "ranged", "magic"]
CardStatus = Literal["idle", "active", "paused", "complete"]
HeroStatus = Literal["idle", "working", "combat", "wounded"]
EquipSlot = Literal["weapon", "armor", "food", "drink"]
AreaPhase = Literal["questing", "projects", "complete"]
GroupType = Literal["combat", "collection"]
ProjectEffectType = Literal[
    "recruit_card",
    "inventory_slots",
    "max_stack",
    "double_items",
    "xp_bonus",
    "unlock_biome",
    "unlock_region",
]
StartCardKind = Literal["task", "combat", "explore"]

SKILL_IDS: tuple[SkillId, ...] = (
    "melee",
    "ranged",
    "magic",
    "defence",
    "industry",
    "nature",
    "nautical",
    "crafting",
    "culinary",
    "crime",
    "occult",
    "science",
)
COMBAT_STYLES: tuple[CombatStyle, CombatStyle, CombatStyle] = ("melee", "ranged", "magic")
TAG_PREFIX = "tag:"


class StrictModel(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


# --- content templates -------------------------------------------------------


class ItemTemplate(StrictModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    type: str = "material"
    tags: list[str] = Field(default_factory=list)
    stackable: bool = True
    max_stack: int = Field(default=50, alias="maxStack", ge=1)
    max_durability: int | None = Field(default=None, alias="maxDurability", ge=1)
    equip_slot: EquipSlot | None = Field(default=None, alias="equipSlot")
    skill_required: SkillId | None = Field(default=None, alias="skillRequired")
    level_required: int = Field(default=1, alias="levelRequired", ge=1)
    damage: int = 0
    min_damage: int | None = Field(default=None, alias="minDamage", ge=0)
    max_damage: int | None = Field(default=None, alias="maxDamage", ge=0)
    defense: int = 0
    tick_speed_bonus: int = Field(default=0, alias="tickSpeedBonus")
    restore_amount: int = Field(default=0, alias="restoreAmount", ge=0)

    @model_validator(mode="after")
    def validate_damage_range(self) -> "ItemTemplate":
        if self.min_damage is not None and self.max_damage is not None and self.max_damage < self.min_damage:
            raise ValueError("Item maxDamage must be greater than or equal to minDamage.")
        return self


class EnemyDrop(StrictModel):
    item_id: str = Field(alias="itemId", min_length=1)
    min_qty: int = Field(default=1, alias="minQty", ge=1)
    max_qty: int | None = Field(default=None, alias="maxQty", ge=1)
    chance: float = Field(default=100.0, ge=0, le=100)

    @model_validator(mode="after")
    def validate_min_max(self) -> "EnemyDrop":
        if self.max_qty is not None and self.max_qty < self.min_qty:
            raise ValueError("EnemyDrop.maxQty must be greater than or equal to minQty.")
        return self


class EnemyTemplate(StrictModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    combat_type: CombatStyle = Field(default="melee", alias="combatType")
    hp: int = Field(ge=1)
    attack_skill: int = Field(default=1, alias="attackSkill", ge=0)
    defence_skill: int = Field(default=1, alias="defenceSkill", ge=0)
    min_damage: int = Field(default=1, alias="minDamage", ge=0)
    max_damage: int = Field(default=1, alias="maxDamage", ge=0)
    attack_speed: int = Field(default=3000, alias="attackSpeed", gt=0)
    energy_cost: int | None = Field(default=None, alias="energyCost", ge=0)
    drops: list[EnemyDrop] = Field(default_factory=list)
    xp_awarded: int | None = Field(default=None, alias="xpAwarded", ge=0)

    @model_validator(mode="after")
    def validate_damage_range(self) -> "EnemyTemplate":
        if self.max_damage < self.min_damage:
            raise ValueError("Enemy maxDamage must be greater than or equal to minDamage.")
        return self


class TaskInput(StrictModel):
    item_id: str | None = Field(default=None, alias="itemId")
    accept_tag: str | None = Field(default=None, alias="acceptTag")
    quantity: int = Field(default=1, ge=1)
    is_tool: bool = Field(default=False, alias="isTool")
    slot_label: str | None = Field(default=None, alias="slotLabel")

    @model_validator(mode="after")
    def validate_slot_kind(self) -> "TaskInput":
        if (self.item_id is None) == (self.accept_tag is None):
            raise ValueError("Task input must define exactly one of itemId or acceptTag.")
        return self

    @property
    def is_open(self) -> bool:
        return self.accept_tag is not None


class TaskOutput(StrictModel):
    item_id: str | None = Field(default=None, alias="itemId")
    currency_id: str | None = Field(default=None, alias="currencyId")
    quantity: int = Field(default=1, ge=1)
    chance: float = Field(default=100.0, ge=0, le=100)

    @model_validator(mode="after")
    def validate_target(self) -> "TaskOutput":
        if (self.item_id is None) == (self.currency_id is None):
            raise ValueError("Task output must define exactly one of itemId or currencyId.")
        return self


class SourceEffect(StrictModel):
    type: str = Field(min_length=1)
    skills: list[str] = Field(default_factory=list)
    bonus: float = 0.0

    def applies_to(self, skill: str) -> bool:
        if not self.skills:
            return True
        return "all" in self.skills or skill in self.skills


class TaskTemplate(StrictModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    task_category: str = Field(default="all", alias="taskCategory")
    skill: SkillId
    skill_requirement: int = Field(default=0, alias="skillRequirement", ge=0)
    base_tick_time: int | None = Field(default=None, alias="baseTickTime", gt=0)
    base_energy_cost: int = Field(default=0, alias="baseEnergyCost", ge=0)
    inputs: list[TaskInput] = Field(default_factory=list)
    outputs: list[TaskOutput] = Field(default_factory=list)
    output_map: dict[str, list[TaskOutput]] = Field(default_factory=dict, alias="outputMap")
    xp_awarded: int | None = Field(default=None, alias="xpAwarded", ge=0)


class CombatTemplate(StrictModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    enemy_id: str = Field(alias="enemyId", min_length=1)
    skill_requirement: int = Field(default=0, alias="skillRequirement", ge=0)


class ItemReward(StrictModel):
    item_id: str = Field(alias="itemId", min_length=1)
    count: int = Field(default=1, ge=1)


class XpReward(StrictModel):
    skill: SkillId
    amount: int = Field(ge=0)


class EnemyGroupTemplate(StrictModel):
    type: GroupType = "combat"
    enemy_id: str | None = Field(default=None, alias="enemyId")
    count: int = Field(default=1, ge=1)
    name: str | None = None
    requirements: dict[str, int] = Field(default_factory=dict)
    unlocks_task: str | None = Field(default=None, alias="unlocksTask")
    rewards: list[ItemReward] = Field(default_factory=list)
    xp_rewards: list[XpReward] = Field(default_factory=list, alias="xpRewards")

    @model_validator(mode="after")
    def validate_group_kind(self) -> "EnemyGroupTemplate":
        if self.type == "combat" and not self.enemy_id:
            raise ValueError("Combat enemy groups require an enemyId.")
        if self.type == "collection" and not self.requirements:
            raise ValueError("Collection enemy groups require non-empty requirements.")
        return self


class ExplorationCost(StrictModel):
    base: dict[str, int] = Field(default_factory=dict)
    specific: dict[str, int] = Field(default_factory=dict)


class BiomeTemplate(StrictModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    effects: list[SourceEffect] = Field(default_factory=list)
    exploration_cost: ExplorationCost | None = Field(default=None, alias="explorationCost")
    enemy_groups: list[EnemyGroupTemplate] = Field(default_factory=list, alias="enemyGroups")
    project_chain: list[str] = Field(default_factory=list, alias="projectChain")


class RegionTemplate(StrictModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    biomes: list[str] = Field(min_length=1)
    base_cost_multiplier: float = Field(default=1.0, alias="baseCostMultiplier", gt=0)


class ProjectEffect(StrictModel):
    count: int | None = Field(default=None, ge=1)
    slots: int | None = Field(default=None, ge=1)
    stack_bonus: int | None = Field(default=None, alias="stackBonus", ge=1)
    chance: float | None = Field(default=None, ge=0, le=1)
    bonus: float | None = None
    target_category: str = Field(default="all", alias="targetCategory")
    biome_id: str | None = Field(default=None, alias="biomeId")
    region_id: str | None = Field(default=None, alias="regionId")


class ProjectTemplate(StrictModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    resource_cost: dict[str, int] = Field(default_factory=dict, alias="resourceCost")
    effect_type: ProjectEffectType = Field(alias="effectType")
    effect: ProjectEffect = Field(default_factory=ProjectEffect)

    @field_validator("resource_cost")
    @classmethod
    def validate_cost(cls, cost: dict[str, int]) -> dict[str, int]:
        for key, amount in cost.items():
            if amount <= 0:
                raise ValueError(f"Project cost for '{key}' must be positive.")
        return cost


class HeroClass(StrictModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    skills: list[SkillId] = Field(default_factory=list)


class HeroTrait(StrictModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    skills: list[SkillId] = Field(default_factory=list)


class Equipment(StrictModel):
    weapon: str | None = None
    armor: str | None = None
    food: str | None = None
    drink: str | None = None

    def as_values(self) -> list[str]:
        values = self.model_dump(mode="python")
        return [item_id for item_id in values.values() if item_id]


class StartingHero(StrictModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    class_id: str = Field(alias="classId", min_length=1)
    trait_id: str | None = Field(default=None, alias="traitId")
    hp: int = Field(default=100, ge=1)
    energy: int = Field(default=100, ge=1)
    skills: dict[SkillId, int] = Field(default_factory=dict)
    equipment: Equipment = Field(default_factory=Equipment)


class StartingCard(StrictModel):
    kind: StartCardKind
    template_id: str | None = Field(default=None, alias="templateId")
    region_id: str | None = Field(default=None, alias="regionId")
    biome_id: str | None = Field(default=None, alias="biomeId")

    @model_validator(mode="after")
    def validate_target(self) -> "StartingCard":
        if self.kind in {"task", "combat"} and not self.template_id:
            raise ValueError(f"Starting {self.kind} card requires a templateId.")
        if self.kind == "explore" and not self.region_id:
            raise ValueError("Starting explore card requires a regionId.")
        return self


class StartSetup(StrictModel):
    heroes: list[StartingHero] = Field(min_length=1)
    inventory: dict[str, int] = Field(default_factory=dict)
    unlocked_biomes: list[str] = Field(default_factory=list, alias="unlockedBiomes")
    cards: list[StartingCard] = Field(default_factory=list)


# --- runtime state -----------------------------------------------------------


class ProgressEntry(BaseModel):
    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    current: int = Field(default=0, ge=0)
    required: int = Field(ge=0)

    @model_validator(mode="after")
    def validate_bounds(self) -> "ProgressEntry":
        if self.current > self.required:
            raise ValueError("Progress current cannot exceed required.")
        return self

    @property
    def satisfied(self) -> bool:
        return self.current >= self.required


ProgressLedger = dict[str, ProgressEntry]


class GradualProgress(StrictModel):
    input_progress: dict[str, ProgressEntry] = Field(default_factory=dict)
    requirements: dict[str, int] = Field(default_factory=dict)


class Vital(StrictModel):
    current: int = Field(ge=0)
    max: int = Field(ge=1)

    @model_validator(mode="after")
    def validate_current(self) -> "Vital":
        if self.current > self.max:
            raise ValueError("Vital current cannot exceed max.")
        return self

    @property
    def fraction(self) -> float:
        return self.current / self.max


class EncounterState(StrictModel):
    enemy_id: str = Field(min_length=1)
    enemy_hp: Vital
    hero_tick_progress: float = Field(default=0.0, ge=0)
    enemy_tick_progress: float = Field(default=0.0, ge=0)
    active: bool = False
    hero_consuming: bool = False
    last_hero_hit: bool | None = None
    last_hero_damage: int = 0
    last_enemy_hit: bool | None = None
    last_enemy_damage: int = 0


class SkillProgress(StrictModel):
    level: int = Field(default=1, ge=0, le=99)
    xp: int = Field(default=0, ge=0)


class Hero(StrictModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    class_id: str | None = None
    trait_id: str | None = None
    hp: Vital
    energy: Vital
    status: HeroStatus = "idle"
    skills: dict[str, SkillProgress] = Field(default_factory=dict)
    equipment: Equipment = Field(default_factory=Equipment)
    wounded_remaining_ms: float = Field(default=0.0, ge=0)
    last_consumed_at_ms: float | None = None

    def skill_level(self, skill: str, default: int = 0) -> int:
        progress = self.skills.get(skill)
        return progress.level if progress is not None else default


class InventoryStack(StrictModel):
    qty: int = Field(ge=0)
    dur: int | None = Field(default=None, ge=0)


class InventoryState(StrictModel):
    items: dict[str, InventoryStack] = Field(default_factory=dict)
    max_slots: int = Field(default=20, ge=1)
    max_stack_bonus: int = Field(default=0, ge=0)


class Modifiers(StrictModel):
    double_items_chance: dict[str, float] = Field(default_factory=dict)
    xp_bonus: dict[str, float] = Field(default_factory=dict)


class EnemyGroupState(StrictModel):
    type: GroupType = "combat"
    enemy_id: str | None = None
    name: str | None = None
    total: int = Field(ge=1)
    remaining: int = Field(ge=0)
    unlocks_task: str | None = None
    rewards: list[ItemReward] = Field(default_factory=list)
    xp_rewards: list[XpReward] = Field(default_factory=list)
    requirements: dict[str, int] = Field(default_factory=dict)


class PendingTaskClaim(StrictModel):
    task_id: str | None = None
    group_index: int = Field(ge=0)
    rewards: list[ItemReward] = Field(default_factory=list)
    xp_rewards: list[XpReward] = Field(default_factory=list)


class ProductionPayload(StrictModel):
    kind: Literal["production"] = "production"
    template_id: str = Field(min_length=1)
    task_category: str = "all"
    biome_id: str | None = None
    region_id: str | None = None
    progress: float = Field(default=0.0, ge=0)
    base_tick_time: float = Field(gt=0)
    assigned_items: dict[int, str] = Field(default_factory=dict)
    source_effects: list[SourceEffect] = Field(default_factory=list)


class ExplorationPayload(StrictModel):
    kind: Literal["exploration"] = "exploration"
    region_id: str = Field(min_length=1)
    selected_biome_id: str | None = None
    explored_biomes: list[str] = Field(default_factory=list)
    biome_progress: dict[str, GradualProgress] = Field(default_factory=dict)
    awaiting_discovery: bool = False
    pending_discovery: str | None = None
    cycle_progress: float = Field(default=0.0, ge=0)
    assigned_items: dict[int, str] = Field(default_factory=dict)


class AreaPayload(StrictModel):
    kind: Literal["area"] = "area"
    biome_id: str = Field(min_length=1)
    region_id: str | None = None
    phase: AreaPhase = "questing"
    enemy_groups: list[EnemyGroupState] = Field(default_factory=list)
    current_group_index: int = Field(default=0, ge=0)
    unlocked_tasks: list[str] = Field(default_factory=list)
    awaiting_task_claim: bool = False
    pending_task_claim: PendingTaskClaim | None = None
    encounter: EncounterState | None = None
    quest_progress: GradualProgress | None = None
    cycle_progress: float = Field(default=0.0, ge=0)
    project_chain: list[str] = Field(default_factory=list)
    current_project_index: int = Field(default=0, ge=0)
    project_progress: GradualProgress | None = None
    completed_projects: list[str] = Field(default_factory=list)
    selected_style: CombatStyle = "melee"
    assigned_items: dict[int, str] = Field(default_factory=dict)

    def current_group(self) -> EnemyGroupState | None:
        if 0 <= self.current_group_index < len(self.enemy_groups):
            return self.enemy_groups[self.current_group_index]
        return None


class CombatPayload(StrictModel):
    kind: Literal["combat"] = "combat"
    template_id: str = Field(min_length=1)
    enemy_id: str = Field(min_length=1)
    selected_style: CombatStyle = "melee"
    encounter: EncounterState


class RecruitPayload(StrictModel):
    kind: Literal["recruit"] = "recruit"
    free: bool = False


CardPayload = Annotated[
    Union[ProductionPayload, ExplorationPayload, AreaPayload, CombatPayload, RecruitPayload],
    Field(discriminator="kind"),
]
PayloadT = TypeVar("PayloadT", ProductionPayload, ExplorationPayload, AreaPayload, CombatPayload, RecruitPayload)


class Card(StrictModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    status: CardStatus = "idle"
    assigned_hero_id: str | None = None
    payload: CardPayload

    @property
    def card_type(self) -> str:
        return self.payload.kind

    def payload_as(self, kind: type[PayloadT]) -> PayloadT:
        if not isinstance(self.payload, kind):
            raise TypeError(f"Card {self.id} carries a {self.payload.kind} payload, not {kind.__name__}.")
        return self.payload


class GuildState(StrictModel):
    seed: int | str
    elapsed_ms: float = Field(default=0.0, ge=0)
    tick_count: int = Field(default=0, ge=0)
    inventory: InventoryState = Field(default_factory=InventoryState)
    currencies: dict[str, int] = Field(default_factory=dict)
    heroes: list[Hero] = Field(default_factory=list)
    cards: list[Card] = Field(default_factory=list)
    modifiers: Modifiers = Field(default_factory=Modifiers)
    exploration_count: int = Field(default=0, ge=0)
    unlocked_biomes: list[str] = Field(default_factory=list)
    pending_discards: list[str] = Field(default_factory=list)
    next_card_seq: int = Field(default=1, ge=1)
    hp_regen_ms: float = Field(default=0.0, ge=0)
    energy_regen_ms: float = Field(default=0.0, ge=0)
    rng_state: int = Field(gt=0)
    rng_calls: int = Field(default=0, ge=0)

    @field_validator("currencies")
    @classmethod
    def validate_currencies(cls, currencies: dict[str, int]) -> dict[str, int]:
        for currency_id, amount in currencies.items():
            if amount < 0:
                raise ValueError(f"Currency balance for '{currency_id}' cannot be negative.")
        return currencies

    @model_validator(mode="after")
    def validate_unique_assignments(self) -> "GuildState":
        seen: set[str] = set()
        for card in self.cards:
            hero_id = card.assigned_hero_id
            if hero_id is None:
                continue
            if hero_id in seen:
                raise ValueError(f"Hero '{hero_id}' is assigned to more than one card.")
            seen.add(hero_id)
        return self
