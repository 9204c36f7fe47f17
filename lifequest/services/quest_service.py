"""Quest Service - daily/weekly generation, progress and questlines.

Completion rewards are not granted here: quest_completed and
questline_completed are published before the commit and the progression
service applies the XP inside the same unit of work.
"""

import logging
import uuid
from datetime import date

from sqlalchemy.orm import Session

from lifequest.core.activity_log import LogType
from lifequest.core.clock import Clock
from lifequest.core.errors import InvalidInputError, NotFoundError
from lifequest.core.event_bus import EventBus, GameEvent
from lifequest.core.event_types import EventTypes
from lifequest.core.progression.enums import StatType
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
from lifequest.core.quest.progress_logic import advance_quest, advance_questline
from lifequest.core.quest.scheduling import missing_templates, period_key
from lifequest.db.models import QuestlineModel, QuestModel
from lifequest.services.character_state import (
    append_log_entry,
    require_character,
    to_db_time,
)
from lifequest.services.unit_of_work import rollback_on_error

logger = logging.getLogger(__name__)

SOURCE = "quest_service"


class QuestService:
    """Quest generation + progress + questlines"""

    def __init__(
        self,
        db: Session,
        event_bus: EventBus,
        clock: Clock,
        catalog: QuestCatalog,
    ):
        self._db = db
        self._bus = event_bus
        self._clock = clock
        self._catalog = catalog

    # === Generation ===

    @rollback_on_error
    def generate_daily_quests(
        self, character_id: str, as_of: date | None = None
    ) -> list[Quest]:
        """Ensure today's daily quests exist. Returns only the new ones."""
        return self._generate(character_id, QuestScope.DAILY, as_of)

    @rollback_on_error
    def generate_weekly_quests(
        self, character_id: str, week_start: date | None = None
    ) -> list[Quest]:
        """Ensure this ISO week's quests exist; any date maps to its Monday."""
        return self._generate(character_id, QuestScope.WEEKLY, week_start)

    def _generate(
        self, character_id: str, scope: QuestScope, as_of: date | None
    ) -> list[Quest]:
        require_character(self._db, character_id)
        as_of = as_of or self._clock.today()
        key = period_key(scope, as_of)
        now = self._clock.now()

        expired = self._expire_earlier_periods(character_id, scope, key)

        existing = (
            self._db.query(QuestModel.catalog_id)
            .filter(
                QuestModel.character_id == character_id,
                QuestModel.scope == scope.value,
                QuestModel.period_key == key,
            )
            .all()
        )
        new_templates = missing_templates(
            self._catalog.templates_for(scope), (r[0] for r in existing)
        )

        created: list[QuestModel] = []
        for template in new_templates:
            orm = self._template_to_orm(character_id, template, key, now)
            self._db.add(orm)
            created.append(orm)

        if created or expired:
            self._db.commit()

        if created:
            logger.info(
                "Generated %d %s quests for %s (%s)",
                len(created),
                scope.value,
                character_id,
                key,
            )
        return [self._quest_to_core(o) for o in created]

    def _expire_earlier_periods(
        self, character_id: str, scope: QuestScope, key: str
    ) -> int:
        # ISO dates sort lexicographically
        stale = (
            self._db.query(QuestModel)
            .filter(
                QuestModel.character_id == character_id,
                QuestModel.scope == scope.value,
                QuestModel.status == QuestStatus.PENDING.value,
                QuestModel.period_key < key,
            )
            .all()
        )
        for orm in stale:
            orm.status = QuestStatus.EXPIRED.value
        if stale:
            logger.debug(
                "Expired %d %s quests for %s before %s",
                len(stale),
                scope.value,
                character_id,
                key,
            )
        return len(stale)

    # === Progress ===

    @rollback_on_error
    def progress_quest(
        self, character_id: str, source_module: str, source_action: str
    ) -> list[QuestProgressResult]:
        """Count one occurrence of (module, action) toward every matching quest."""
        if not source_module or not source_action:
            raise InvalidInputError("source_module and source_action are required")
        require_character(self._db, character_id)

        rows = (
            self._db.query(QuestModel)
            .filter(
                QuestModel.character_id == character_id,
                QuestModel.source_module == source_module,
                QuestModel.source_action == source_action,
                QuestModel.status == QuestStatus.PENDING.value,
            )
            .order_by(QuestModel.created_at, QuestModel.quest_id)
            .all()
        )
        if not rows:
            return []

        now = self._clock.now()
        results: list[QuestProgressResult] = []
        for orm in rows:
            quest = self._quest_to_core(orm)
            completed = advance_quest(quest, to_db_time(now))
            orm.current_count = quest.current_count
            orm.status = quest.status.value
            orm.completed_at = quest.completed_at

            updates: tuple[QuestlineProgressResult, ...] = ()
            if completed:
                append_log_entry(
                    self._db,
                    character_id,
                    LogType.QUEST_COMPLETE,
                    f"Quest complete: {quest.name}",
                    quest.description,
                    now,
                    {"quest_id": quest.quest_id, "catalog_id": quest.catalog_id},
                )
                self._bus.emit(
                    GameEvent(
                        event_type=EventTypes.QUEST_COMPLETED,
                        data={
                            "character_id": character_id,
                            "quest_id": quest.quest_id,
                            "catalog_id": quest.catalog_id,
                            "xp_reward": {
                                s.value: xp for s, xp in quest.xp_reward.items()
                            },
                        },
                        source=SOURCE,
                        key=quest.quest_id,
                    )
                )
                updates = tuple(
                    self._advance_triggered_questlines(
                        character_id, quest.catalog_id, now
                    )
                )
                logger.info("Quest %s completed by %s", quest.quest_id, character_id)

            results.append(
                QuestProgressResult(
                    quest=quest, completed=completed, questline_updates=updates
                )
            )

        self._db.commit()
        return results

    def get_quests(
        self,
        character_id: str,
        scope: QuestScope | str | None = None,
        status: QuestStatus | str | None = None,
    ) -> list[Quest]:
        query = self._db.query(QuestModel).filter(
            QuestModel.character_id == character_id
        )
        if scope is not None:
            query = query.filter(QuestModel.scope == QuestScope(scope).value)
        if status is not None:
            query = query.filter(QuestModel.status == QuestStatus(status).value)
        rows = query.order_by(
            QuestModel.period_key.desc(), QuestModel.created_at, QuestModel.catalog_id
        ).all()
        return [self._quest_to_core(o) for o in rows]

    def get_quest(self, quest_id: str) -> Quest | None:
        orm = self._db.get(QuestModel, quest_id)
        if orm is None:
            return None
        return self._quest_to_core(orm)

    # === Questlines ===

    @rollback_on_error
    def start_questline(self, character_id: str, questline_id: str) -> Questline:
        """Begin a questline at step 0. Starting it again returns it unchanged."""
        definition = self._require_questline(questline_id)
        require_character(self._db, character_id)

        orm = self._questline_row(character_id, questline_id)
        if orm is not None:
            return self._questline_to_core(orm)

        orm = QuestlineModel(
            character_id=character_id,
            questline_id=questline_id,
            name=definition.name,
            current_step=0,
            total_steps=definition.total_steps,
            status=QuestlineStatus.ACTIVE.value,
            started_at=to_db_time(self._clock.now()),
        )
        self._db.add(orm)
        self._db.commit()

        logger.info("Questline %s started for %s", questline_id, character_id)
        return self._questline_to_core(orm)

    @rollback_on_error
    def advance_questline(
        self, character_id: str, questline_id: str
    ) -> QuestlineProgressResult:
        definition = self._require_questline(questline_id)
        require_character(self._db, character_id)
        orm = self._questline_row(character_id, questline_id)
        if orm is None:
            raise NotFoundError(
                f"Questline {questline_id} not started for {character_id}"
            )

        result = self._advance(orm, definition, self._clock.now())
        if result.advanced:
            self._db.commit()
        return result

    def get_questlines(self, character_id: str) -> list[Questline]:
        rows = (
            self._db.query(QuestlineModel)
            .filter(QuestlineModel.character_id == character_id)
            .order_by(QuestlineModel.started_at, QuestlineModel.id)
            .all()
        )
        return [self._questline_to_core(o) for o in rows]

    def _advance_triggered_questlines(
        self, character_id: str, catalog_id: str, now
    ) -> list[QuestlineProgressResult]:
        updates = []
        for definition in self._catalog.questlines_triggered_by(catalog_id):
            orm = self._questline_row(character_id, definition.questline_id)
            if orm is None or orm.status != QuestlineStatus.ACTIVE.value:
                continue
            updates.append(self._advance(orm, definition, now))
        return updates

    def _advance(
        self, orm: QuestlineModel, definition: QuestlineDefinition, now
    ) -> QuestlineProgressResult:
        """One step forward; no commit."""
        questline = self._questline_to_core(orm)
        advanced, completed = advance_questline(questline, to_db_time(now))
        orm.current_step = questline.current_step
        orm.status = questline.status.value
        orm.completed_at = questline.completed_at

        if completed:
            append_log_entry(
                self._db,
                orm.character_id,
                LogType.QUEST_COMPLETE,
                f"Questline complete: {definition.name}",
                definition.description,
                now,
                {"questline_id": definition.questline_id},
            )
            self._bus.emit(
                GameEvent(
                    event_type=EventTypes.QUESTLINE_COMPLETED,
                    data={
                        "character_id": orm.character_id,
                        "questline_id": definition.questline_id,
                        "xp_reward": {
                            s.value: xp for s, xp in definition.xp_reward
                        },
                    },
                    source=SOURCE,
                    key=f"{orm.character_id}:{definition.questline_id}",
                )
            )
            logger.info(
                "Questline %s completed by %s",
                definition.questline_id,
                orm.character_id,
            )
        elif not advanced:
            logger.debug(
                "Questline %s already completed for %s",
                definition.questline_id,
                orm.character_id,
            )

        return QuestlineProgressResult(
            questline=questline, advanced=advanced, completed=completed
        )

    def _require_questline(self, questline_id: str) -> QuestlineDefinition:
        definition = self._catalog.get_questline(questline_id)
        if definition is None:
            raise InvalidInputError(f"Unknown questline: {questline_id}")
        return definition

    def _questline_row(
        self, character_id: str, questline_id: str
    ) -> QuestlineModel | None:
        return (
            self._db.query(QuestlineModel)
            .filter(
                QuestlineModel.character_id == character_id,
                QuestlineModel.questline_id == questline_id,
            )
            .first()
        )

    # === Core ↔ ORM converters ===

    def _template_to_orm(
        self, character_id: str, template: QuestTemplate, key: str, now
    ) -> QuestModel:
        return QuestModel(
            quest_id=f"quest_{uuid.uuid4().hex[:12]}",
            character_id=character_id,
            scope=template.scope.value,
            period_key=key,
            catalog_id=template.catalog_id,
            name=template.name,
            description=template.description,
            source_module=template.source_module,
            source_action=template.source_action,
            target_count=template.target_count,
            current_count=0,
            xp_reward={s.value: xp for s, xp in template.xp_reward},
            status=QuestStatus.PENDING.value,
            created_at=to_db_time(now),
        )

    def _quest_to_core(self, orm: QuestModel) -> Quest:
        return Quest(
            quest_id=orm.quest_id,
            character_id=orm.character_id,
            scope=QuestScope(orm.scope),
            period_key=orm.period_key,
            catalog_id=orm.catalog_id,
            name=orm.name,
            description=orm.description,
            source_module=orm.source_module,
            source_action=orm.source_action,
            target_count=orm.target_count,
            current_count=orm.current_count,
            xp_reward={StatType(s): int(xp) for s, xp in (orm.xp_reward or {}).items()},
            status=QuestStatus(orm.status),
            created_at=orm.created_at,
            completed_at=orm.completed_at,
        )

    def _questline_to_core(self, orm: QuestlineModel) -> Questline:
        return Questline(
            character_id=orm.character_id,
            questline_id=orm.questline_id,
            name=orm.name,
            total_steps=orm.total_steps,
            current_step=orm.current_step,
            status=QuestlineStatus(orm.status),
            started_at=orm.started_at,
            completed_at=orm.completed_at,
        )
