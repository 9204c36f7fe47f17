"""Skill tree domain models (no DB)."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional

from lifequest.core.progression.enums import StatType


class PerkState(str, Enum):
    LOCKED = "locked"
    AVAILABLE = "available"
    UNLOCKED = "unlocked"


class PerkType(str, Enum):
    PASSIVE = "passive"
    SKILL = "skill"


@dataclass(frozen=True)
class PerkRequirement:
    """Everything a perk needs before it can be unlocked."""

    perks: tuple[int, ...] = ()  # perk numbers in the same tree
    min_level: int = 0
    min_stats: Mapping[StatType, int] = field(
        default_factory=lambda: MappingProxyType({})
    )


@dataclass(frozen=True)
class PerkDefinition:
    number: int  # unique within the tree, also the display order
    name: str
    requirement: PerkRequirement
    effect: str
    perk_type: PerkType = PerkType.PASSIVE
    skill_name: Optional[str] = None
    skill_energy_cost: Optional[int] = None


@dataclass(frozen=True)
class SkillTreeDefinition:
    tree_id: str
    name: str
    stats: tuple[StatType, ...]
    perks: tuple[PerkDefinition, ...]

    def get_perk(self, number: int) -> Optional[PerkDefinition]:
        for perk in self.perks:
            if perk.number == number:
                return perk
        return None

    @property
    def perk_numbers(self) -> tuple[int, ...]:
        return tuple(p.number for p in self.perks)


@dataclass
class PerkUnlock:
    character_id: str
    tree_id: str
    perk_number: int
    unlocked_at: Optional[datetime] = None


@dataclass(frozen=True)
class PerkView:
    """A perk together with the character's current state for it."""

    perk: PerkDefinition
    state: PerkState
    unmet: tuple[str, ...] = ()
