"""Progression domain models (no DB)."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .enums import StatType


@dataclass(frozen=True)
class LevelInfo:
    """Position on an XP curve."""

    level: int
    current_level_xp: int  # XP earned since entering ``level``
    next_level_xp: int  # XP needed for the next level, 0 at the cap

    @property
    def at_cap(self) -> bool:
        return self.next_level_xp == 0

    @property
    def progress(self) -> float:
        """Fraction of the current level completed (1.0 at the cap)."""
        if self.at_cap:
            return 1.0
        return self.current_level_xp / self.next_level_xp


@dataclass(frozen=True)
class SecondaryStats:
    hp: int
    energy: int
    crit: float  # percent
    resistance: int
    initiative: float


@dataclass
class Character:
    character_id: str
    total_xp: int = 0
    level: int = 1
    title: str = "Novice"
    aura_color: str = ""
    gear: list[str] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class StatTrack:
    character_id: str
    stat: StatType
    total_xp: int = 0
    level: int = 1


@dataclass
class PerkPoints:
    character_id: str
    available: int = 0
    total_earned: int = 0


@dataclass(frozen=True)
class StatLevelUp:
    stat: StatType
    old_level: int
    new_level: int


@dataclass
class GrantResult:
    """Outcome of one XP grant."""

    character_id: str
    xp_granted: int
    old_level: int
    new_level: int
    stat_level_ups: list[StatLevelUp] = field(default_factory=list)
    perk_points_earned: int = 0
    duplicate: bool = False

    @property
    def leveled_up(self) -> bool:
        return self.new_level > self.old_level


@dataclass(frozen=True)
class ActivityReward:
    """Static XP mapping for one host activity (module, action)."""

    source_module: str
    source_action: str
    primary_stat: StatType
    primary_xp: int
    secondary_stat: Optional[StatType] = None
    secondary_xp: int = 0


@dataclass
class Achievement:
    character_id: str
    name: str
    description: str = ""
    icon: str = ""
    unlocked_at: Optional[datetime] = None
