"""Activity log domain model (no DB)."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class LogType(str, Enum):
    LEVEL_UP = "level_up"
    STAT_UP = "stat_up"
    QUEST_COMPLETE = "quest_complete"
    BATTLE = "battle"
    ACHIEVEMENT = "achievement"
    LOOT = "loot"
    PERK = "perk"


@dataclass(frozen=True)
class LogEntry:
    """One display-only milestone. Immutable once written."""

    entry_id: int
    character_id: str
    log_type: LogType
    title: str
    description: str
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: Optional[datetime] = None
