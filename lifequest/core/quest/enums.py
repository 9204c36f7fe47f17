"""Quest enums."""

from enum import Enum


class QuestScope(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"


class QuestStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    EXPIRED = "expired"


class QuestlineStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
