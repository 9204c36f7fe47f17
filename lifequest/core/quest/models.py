"""Quest domain models (no DB)."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from lifequest.core.progression.enums import StatType

from .enums import QuestlineStatus, QuestScope, QuestStatus


@dataclass(frozen=True)
class QuestTemplate:
    """Catalog entry a daily/weekly quest is generated from."""

    catalog_id: str
    scope: QuestScope
    name: str
    description: str
    source_module: str
    source_action: str
    target_count: int
    xp_reward: tuple[tuple[StatType, int], ...]

    @property
    def reward_map(self) -> dict[StatType, int]:
        return dict(self.xp_reward)


@dataclass
class Quest:
    quest_id: str
    character_id: str
    scope: QuestScope
    period_key: str  # ISO date of the day, or of the week's Monday
    catalog_id: str
    name: str
    description: str
    source_module: str
    source_action: str
    target_count: int
    current_count: int = 0
    xp_reward: dict[StatType, int] = field(default_factory=dict)
    status: QuestStatus = QuestStatus.PENDING
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


@dataclass(frozen=True)
class QuestProgressResult:
    quest: Quest
    completed: bool  # True only for the call that completed the quest
    questline_updates: tuple["QuestlineProgressResult", ...] = ()


@dataclass(frozen=True)
class QuestlineDefinition:
    questline_id: str
    name: str
    description: str
    total_steps: int
    trigger_catalog_ids: tuple[str, ...] = ()
    xp_reward: tuple[tuple[StatType, int], ...] = ()

    @property
    def reward_map(self) -> dict[StatType, int]:
        return dict(self.xp_reward)


@dataclass
class Questline:
    character_id: str
    questline_id: str
    name: str
    total_steps: int
    current_step: int = 0
    status: QuestlineStatus = QuestlineStatus.ACTIVE
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


@dataclass(frozen=True)
class QuestlineProgressResult:
    questline: Questline
    advanced: bool
    completed: bool  # True only for the step that reached total_steps
