"""Quest & questline core package."""

from lifequest.core.quest.catalog import QuestCatalog
from lifequest.core.quest.enums import QuestlineStatus, QuestScope, QuestStatus
from lifequest.core.quest.models import (
    Quest,
    Questline,
    QuestlineDefinition,
    QuestlineProgressResult,
    QuestProgressResult,
    QuestTemplate,
)
from lifequest.core.quest.progress_logic import (
    advance_quest,
    advance_questline,
    matches,
)
from lifequest.core.quest.scheduling import missing_templates, period_key, week_start

__all__ = [
    # enums
    "QuestScope",
    "QuestStatus",
    "QuestlineStatus",
    # models
    "QuestTemplate",
    "Quest",
    "QuestProgressResult",
    "QuestlineDefinition",
    "Questline",
    "QuestlineProgressResult",
    # catalog
    "QuestCatalog",
    # scheduling
    "week_start",
    "period_key",
    "missing_templates",
    # progress
    "matches",
    "advance_quest",
    "advance_questline",
]
