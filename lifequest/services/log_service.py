"""Log Service - read side of the append-only activity log.

Entries are written by the other services inside their own commits
(see character_state.append_log_entry); this service only reads.
"""

from sqlalchemy.orm import Session

from lifequest.core.activity_log import LogEntry, LogType
from lifequest.core.errors import InvalidInputError
from lifequest.db.models import LogEntryModel
from lifequest.services.character_state import log_entry_to_core, require_character

MAX_LOG_LIMIT = 500


class LogService:
    def __init__(self, db: Session):
        self._db = db

    def get_recent_log(
        self,
        character_id: str,
        limit: int = 50,
        log_type: LogType | str | None = None,
    ) -> list[LogEntry]:
        """Newest first; ties on timestamp fall back to insertion order."""
        if not 1 <= limit <= MAX_LOG_LIMIT:
            raise InvalidInputError(f"limit must be between 1 and {MAX_LOG_LIMIT}")
        require_character(self._db, character_id)

        query = self._db.query(LogEntryModel).filter(
            LogEntryModel.character_id == character_id
        )
        if log_type is not None:
            try:
                log_type = LogType(log_type)
            except ValueError:
                raise InvalidInputError(f"Unknown log type: {log_type}") from None
            query = query.filter(LogEntryModel.log_type == log_type.value)

        rows = (
            query.order_by(LogEntryModel.timestamp.desc(), LogEntryModel.id.desc())
            .limit(limit)
            .all()
        )
        return [log_entry_to_core(r) for r in rows]
