"""Quest and questline counters. Mutate the passed model in place."""

from datetime import datetime
from typing import Optional

from .enums import QuestlineStatus, QuestStatus
from .models import Quest, Questline


def matches(quest: Quest, source_module: str, source_action: str) -> bool:
    return (
        quest.status == QuestStatus.PENDING
        and quest.source_module == source_module
        and quest.source_action == source_action
    )


def advance_quest(quest: Quest, now: Optional[datetime] = None) -> bool:
    """Add one to the count, clamped at the target.

    Returns True when this call completed the quest. Non-pending quests are
    left untouched.
    """
    if quest.status != QuestStatus.PENDING:
        return False

    quest.current_count = min(quest.current_count + 1, quest.target_count)
    if quest.current_count == quest.target_count:
        quest.status = QuestStatus.COMPLETED
        quest.completed_at = now
        return True
    return False


def advance_questline(
    questline: Questline, now: Optional[datetime] = None
) -> tuple[bool, bool]:
    """Move one step forward. Returns (advanced, completed_now).

    A completed questline is terminal: nothing changes.
    """
    if questline.status == QuestlineStatus.COMPLETED:
        return False, False

    questline.current_step = min(questline.current_step + 1, questline.total_steps)
    if questline.current_step == questline.total_steps:
        questline.status = QuestlineStatus.COMPLETED
        questline.completed_at = now
        return True, True
    return True, False
