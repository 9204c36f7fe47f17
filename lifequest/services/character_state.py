"""Shared DB reads/writes every service needs about a character.

Plain functions over a Session. They never commit; the calling service owns
the unit of work.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy.orm import Session

from lifequest.core.activity_log import LogEntry, LogType
from lifequest.core.errors import NotFoundError
from lifequest.core.progression.enums import ALL_STATS, StatType
from lifequest.db.models import CharacterModel, LogEntryModel, StatTrackModel


def to_db_time(dt: datetime) -> datetime:
    """Aware datetime -> naive UTC, the storage convention."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def require_character(db: Session, character_id: str) -> CharacterModel:
    orm = db.get(CharacterModel, character_id)
    if orm is None:
        raise NotFoundError(f"Character not found: {character_id}")
    return orm


def load_stat_tracks(db: Session, character_id: str) -> dict[StatType, StatTrackModel]:
    rows = (
        db.query(StatTrackModel)
        .filter(StatTrackModel.character_id == character_id)
        .all()
    )
    return {StatType(r.stat): r for r in rows}


def load_stat_levels(db: Session, character_id: str) -> dict[StatType, int]:
    """Current level of every stat; a missing track counts as level 1."""
    tracks = load_stat_tracks(db, character_id)
    return {
        stat: (tracks[stat].level if stat in tracks else 1) for stat in ALL_STATS
    }


def append_log_entry(
    db: Session,
    character_id: str,
    log_type: LogType,
    title: str,
    description: str,
    timestamp: datetime,
    data: Optional[dict[str, Any]] = None,
) -> LogEntryModel:
    orm = LogEntryModel(
        character_id=character_id,
        log_type=log_type.value,
        title=title,
        description=description,
        data=data or {},
        timestamp=to_db_time(timestamp),
    )
    db.add(orm)
    return orm


def log_entry_to_core(orm: LogEntryModel) -> LogEntry:
    return LogEntry(
        entry_id=orm.id,
        character_id=orm.character_id,
        log_type=LogType(orm.log_type),
        title=orm.title,
        description=orm.description,
        data=dict(orm.data or {}),
        timestamp=orm.timestamp,
    )
