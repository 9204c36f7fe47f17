"""Battle domain models (no DB)."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from lifequest.core.progression.enums import StatType

from .enums import BattleAction, Difficulty, EncounterStatus, LootType


@dataclass(frozen=True)
class LootDrop:
    loot_type: LootType
    item_id: str
    amount: int = 1
    stat: Optional[StatType] = None  # xp_orb only; None means every stat


@dataclass(frozen=True)
class EnemyDefinition:
    enemy_id: str
    name: str
    theme: str
    primary_stat: StatType
    secondary_stat: StatType
    difficulty: Difficulty
    base_hp: int
    base_power: int
    base_defense: int
    pattern: tuple[str, ...]  # cycle of move ids
    xp_reward: int
    loot: tuple[LootDrop, ...] = ()
    spawns_after: str = ""


@dataclass(frozen=True)
class ScaledEnemy:
    hp: int
    power: int
    defense: int


@dataclass
class Encounter:
    encounter_id: str
    character_id: str
    enemy_id: str
    enemy_name: str
    difficulty: Difficulty
    enemy_hp: int
    enemy_max_hp: int
    enemy_power: int
    enemy_defense: int
    status: EncounterStatus = EncounterStatus.PENDING
    pattern_index: int = 0
    character_hp_at_start: int = 0
    character_hp: int = 0
    character_max_hp: int = 0
    character_energy: int = 0
    character_max_energy: int = 0
    turns_elapsed: int = 0
    spawned_by: str = ""
    loot: list[LootDrop] = field(default_factory=list)
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


@dataclass(frozen=True)
class BattleTurn:
    """One immutable row of an encounter's turn log."""

    encounter_id: str
    turn_number: int
    action: BattleAction
    enemy_move: Optional[str]  # None when the enemy fell before acting
    damage_dealt: int
    damage_taken: int
    character_hp_after: int
    enemy_hp_after: int
    character_energy_after: int
    result_flags: tuple[str, ...] = ()
    created_at: Optional[datetime] = None

    @property
    def is_crit(self) -> bool:
        return "crit" in self.result_flags


@dataclass(frozen=True)
class TurnOutcome:
    """Pure resolution of one turn, before anything is written."""

    damage_dealt: int
    damage_taken: int
    healed: int
    energy_delta: int
    is_crit: bool
    enemy_move: Optional[str]
    character_hp_after: int
    enemy_hp_after: int
    character_energy_after: int
    next_pattern_index: int
    victory: bool
    defeat: bool

    @property
    def flags(self) -> tuple[str, ...]:
        flags = []
        if self.is_crit:
            flags.append("crit")
        if self.healed:
            flags.append("healed")
        if self.victory:
            flags.append("victory")
        if self.defeat:
            flags.append("defeat")
        return tuple(flags)


@dataclass(frozen=True)
class BattleTurnResult:
    turn: BattleTurn
    encounter: Encounter
    victory: bool
    defeat: bool
