"""API request/response schemas."""

from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


# === Request Schemas ===


class EnsureCharacterRequest(BaseModel):
    """Create-or-load a character"""

    character_id: str = Field(..., min_length=1, max_length=64, description="Character ID")


class GrantXpRequest(BaseModel):
    """Direct XP grant from a host activity"""

    source_module: str = Field(..., min_length=1)
    source_action: str = Field(..., min_length=1)
    source_item_id: str = Field(..., min_length=1, description="Idempotency key")
    primary_stat: str
    primary_xp: int = Field(..., ge=0)
    secondary_stat: Optional[str] = None
    secondary_xp: Optional[int] = Field(None, ge=0)


class ActivityXpRequest(BaseModel):
    """XP grant looked up in the activity reward table"""

    source_module: str = Field(..., min_length=1)
    source_action: str = Field(..., min_length=1)
    source_item_id: str = Field(..., min_length=1)


class AchievementRequest(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    icon: str = ""


class GenerateQuestsRequest(BaseModel):
    scope: str = Field(..., description="daily | weekly")
    as_of: Optional[date] = Field(None, description="Defaults to today on the server clock")


class QuestProgressRequest(BaseModel):
    source_module: str = Field(..., min_length=1)
    source_action: str = Field(..., min_length=1)


class PerkPointsRequest(BaseModel):
    amount: int = Field(..., ge=1)


class SpawnEncounterRequest(BaseModel):
    enemy_id: str = Field(..., min_length=1)
    source_action: str = ""


class SpawnTriggerRequest(BaseModel):
    trigger: str = Field(..., min_length=1, description="host activity, e.g. workout_complete")


class BattleTurnRequest(BaseModel):
    action: str = Field(..., description="attack | defend | skill | truth")
    random_draw: Optional[float] = Field(None, ge=0.0, lt=1.0)


class CollectTruthRequest(BaseModel):
    text: str
    theme: str
    source_entry_id: str = ""


class EquipTruthRequest(BaseModel):
    equip: bool


# === Response Schemas ===


class ErrorResponse(BaseModel):
    """Engine error body"""

    detail: str
    code: str


class LevelInfoSchema(BaseModel):
    level: int
    current_level_xp: int
    next_level_xp: int
    progress: float


class StatInfo(BaseModel):
    stat: str
    name: str
    total_xp: int
    level: int
    current_level_xp: int
    next_level_xp: int


class SecondaryStatsSchema(BaseModel):
    hp: int
    energy: int
    crit: float
    resistance: int
    initiative: float


class CharacterResponse(BaseModel):
    """Character sheet"""

    character_id: str
    total_xp: int
    title: str
    aura_color: str
    gear: list[str] = []
    level: LevelInfoSchema
    stats: list[StatInfo]
    secondary: SecondaryStatsSchema
    perk_points_available: int
    perk_points_earned: int


class GrantResultResponse(BaseModel):
    character_id: str
    xp_granted: int
    old_level: int
    new_level: int
    leveled_up: bool
    stat_level_ups: list[dict[str, Any]] = []
    perk_points_earned: int = 0
    duplicate: bool = False


class AchievementInfo(BaseModel):
    name: str
    description: str
    icon: str
    unlocked_at: Optional[datetime] = None


class QuestInfo(BaseModel):
    quest_id: str
    scope: str
    period_key: str
    catalog_id: str
    name: str
    description: str
    source_module: str
    source_action: str
    target_count: int
    current_count: int
    xp_reward: dict[str, int]
    status: str
    completed_at: Optional[datetime] = None


class QuestlineInfo(BaseModel):
    questline_id: str
    name: str
    current_step: int
    total_steps: int
    status: str
    completed_at: Optional[datetime] = None


class QuestlineProgressInfo(BaseModel):
    questline: QuestlineInfo
    advanced: bool
    completed: bool


class QuestProgressInfo(BaseModel):
    quest: QuestInfo
    completed: bool
    questline_updates: list[QuestlineProgressInfo] = []


class PerkInfo(BaseModel):
    number: int
    name: str
    effect: str
    perk_type: str
    skill_name: Optional[str] = None
    skill_energy_cost: Optional[int] = None
    requires_perks: list[int] = []
    requires_level: int = 0
    requires_stats: dict[str, int] = {}
    state: Optional[str] = None
    unmet: list[str] = []


class SkillTreeInfo(BaseModel):
    tree_id: str
    name: str
    stats: list[str]
    perks: list[PerkInfo]


class PerkUnlockInfo(BaseModel):
    tree_id: str
    perk_number: int
    unlocked_at: Optional[datetime] = None


class PerkPointsInfo(BaseModel):
    available: int
    total_earned: int


class EncounterInfo(BaseModel):
    encounter_id: str
    character_id: str
    enemy_id: str
    enemy_name: str
    difficulty: str
    status: str
    enemy_hp: int
    enemy_max_hp: int
    enemy_power: int
    enemy_defense: int
    character_hp: int
    character_max_hp: int
    character_energy: int
    character_max_energy: int
    turns_elapsed: int
    expires_at: Optional[datetime] = None


class BattleTurnInfo(BaseModel):
    turn_number: int
    action: str
    enemy_move: Optional[str] = None
    damage_dealt: int
    damage_taken: int
    character_hp_after: int
    enemy_hp_after: int
    character_energy_after: int
    result_flags: list[str] = []


class BattleTurnResponse(BaseModel):
    turn: BattleTurnInfo
    encounter: EncounterInfo
    victory: bool
    defeat: bool


class TruthInfo(BaseModel):
    truth_id: str
    text: str
    source_entry_id: str
    theme: str
    equipped: bool
    battle_effect: str
    battle_power: int
    collected_at: Optional[datetime] = None


class LogEntryInfo(BaseModel):
    entry_id: int
    log_type: str
    title: str
    description: str
    data: dict[str, Any] = {}
    timestamp: Optional[datetime] = None
