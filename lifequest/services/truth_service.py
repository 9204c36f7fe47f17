"""Truth Service - collect truths and manage the equip slots."""

import logging
import uuid

from sqlalchemy.orm import Session

from lifequest.core.activity_log import LogType
from lifequest.core.clock import Clock
from lifequest.core.errors import EquipSlotsFullError, NotFoundError
from lifequest.core.event_bus import EventBus, GameEvent
from lifequest.core.event_types import EventTypes
from lifequest.core.truth.equip import (
    battle_effect_for,
    check_equip,
    validate_truth_text,
)
from lifequest.core.truth.models import Truth
from lifequest.db.models import TruthModel
from lifequest.services.character_state import (
    append_log_entry,
    require_character,
    to_db_time,
)
from lifequest.services.unit_of_work import rollback_on_error

logger = logging.getLogger(__name__)


class TruthService:
    def __init__(self, db: Session, event_bus: EventBus, clock: Clock):
        self._db = db
        self._bus = event_bus
        self._clock = clock

    @rollback_on_error
    def collect_truth(
        self,
        character_id: str,
        text: str,
        source_entry_id: str = "",
        theme: str = "",
    ) -> Truth:
        """Store a new, unequipped truth and log it as loot."""
        text, theme = validate_truth_text(text, theme)
        require_character(self._db, character_id)

        now = self._clock.now()
        orm = TruthModel(
            truth_id=f"truth_{uuid.uuid4().hex[:12]}",
            character_id=character_id,
            text=text,
            source_entry_id=source_entry_id or "",
            theme=theme,
            is_equipped=False,
            battle_effect=battle_effect_for(theme),
            battle_power=1,
            collected_at=to_db_time(now),
        )
        self._db.add(orm)
        append_log_entry(
            self._db,
            character_id,
            LogType.LOOT,
            "Truth collected",
            text,
            now,
            {"truth_id": orm.truth_id, "theme": theme},
        )
        self._bus.emit(
            GameEvent(
                event_type=EventTypes.TRUTH_COLLECTED,
                data={
                    "character_id": character_id,
                    "truth_id": orm.truth_id,
                    "theme": theme,
                },
                source="truth_service",
                key=orm.truth_id,
            )
        )
        self._db.commit()

        logger.info("Truth %s collected by %s", orm.truth_id, character_id)
        return self._truth_to_core(orm)

    @rollback_on_error
    def toggle_truth_equip(self, truth_id: str, equip: bool) -> Truth:
        orm = self._db.get(TruthModel, truth_id)
        if orm is None:
            raise NotFoundError(f"Truth not found: {truth_id}")

        try:
            check_equip(
                self._equipped_count(orm.character_id), orm.is_equipped, equip
            )
        except EquipSlotsFullError:
            logger.warning(
                "Equip rejected for %s (%s): slots full", truth_id, orm.character_id
            )
            raise

        if orm.is_equipped != equip:
            orm.is_equipped = equip
            self._db.commit()
            logger.info(
                "Truth %s %s", truth_id, "equipped" if equip else "unequipped"
            )
        return self._truth_to_core(orm)

    def get_truth(self, truth_id: str) -> Truth | None:
        orm = self._db.get(TruthModel, truth_id)
        if orm is None:
            return None
        return self._truth_to_core(orm)

    def get_truths(self, character_id: str) -> list[Truth]:
        rows = (
            self._db.query(TruthModel)
            .filter(TruthModel.character_id == character_id)
            .order_by(TruthModel.collected_at, TruthModel.truth_id)
            .all()
        )
        return [self._truth_to_core(r) for r in rows]

    def get_equipped_truths(self, character_id: str) -> list[Truth]:
        return [t for t in self.get_truths(character_id) if t.equipped]

    def _equipped_count(self, character_id: str) -> int:
        return (
            self._db.query(TruthModel)
            .filter(
                TruthModel.character_id == character_id,
                TruthModel.is_equipped.is_(True),
            )
            .count()
        )

    def _truth_to_core(self, orm: TruthModel) -> Truth:
        return Truth(
            truth_id=orm.truth_id,
            character_id=orm.character_id,
            text=orm.text,
            source_entry_id=orm.source_entry_id,
            theme=orm.theme,
            equipped=orm.is_equipped,
            battle_effect=orm.battle_effect,
            battle_power=orm.battle_power,
            collected_at=orm.collected_at,
        )
