"""Period keys for time-boxed quests.

A daily quest belongs to one calendar date; a weekly quest to one ISO week,
identified by its Monday. Regenerating a period that is already covered is a
no-op, so the only decision is which templates are still missing.
"""

from datetime import date, timedelta
from typing import Iterable

from .enums import QuestScope
from .models import QuestTemplate


def week_start(d: date) -> date:
    """Monday of the ISO week containing ``d``."""
    return d - timedelta(days=d.weekday())


def period_key(scope: QuestScope, d: date) -> str:
    if scope == QuestScope.WEEKLY:
        return week_start(d).isoformat()
    return d.isoformat()


def missing_templates(
    templates: Iterable[QuestTemplate],
    existing_catalog_ids: Iterable[str],
) -> list[QuestTemplate]:
    """Templates that have no quest yet for the period."""
    existing = set(existing_catalog_ids)
    return [t for t in templates if t.catalog_id not in existing]
