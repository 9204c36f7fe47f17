"""Skill tree Service - perk points and perk unlocks.

Eligibility lives in core.skill_tree.resolver; this service loads the
unlocked set, character level and stat levels, and persists the unlock.
"""

import logging

from sqlalchemy.orm import Session

from lifequest.core.activity_log import LogType
from lifequest.core.clock import Clock
from lifequest.core.errors import InvalidInputError, PreconditionNotMetError
from lifequest.core.event_bus import EventBus, GameEvent
from lifequest.core.event_types import EventTypes
from lifequest.core.progression.models import PerkPoints
from lifequest.core.skill_tree.catalog import SkillTreeCatalog
from lifequest.core.skill_tree.models import (
    PerkUnlock,
    PerkView,
    SkillTreeDefinition,
)
from lifequest.core.skill_tree.resolver import check_unlock, describe_tree
from lifequest.db.models import PerkPointsModel, PerkUnlockModel
from lifequest.services.character_state import (
    append_log_entry,
    load_stat_levels,
    require_character,
    to_db_time,
)
from lifequest.services.unit_of_work import rollback_on_error

logger = logging.getLogger(__name__)


class SkillTreeService:
    """Perk unlocks against the static skill tree catalog."""

    def __init__(
        self,
        db: Session,
        event_bus: EventBus,
        clock: Clock,
        catalog: SkillTreeCatalog,
    ):
        self._db = db
        self._bus = event_bus
        self._clock = clock
        self._catalog = catalog

    # === Catalog ===

    def get_skill_trees(self) -> list[SkillTreeDefinition]:
        return self._catalog.get_all()

    def _require_tree(self, tree_id: str) -> SkillTreeDefinition:
        tree = self._catalog.get(tree_id)
        if tree is None:
            raise InvalidInputError(f"Unknown skill tree: {tree_id}")
        return tree

    # === Per-character state ===

    def get_skill_tree(self, character_id: str, tree_id: str) -> list[PerkView]:
        """Every perk of the tree with its locked/available/unlocked state."""
        tree = self._require_tree(tree_id)
        character = require_character(self._db, character_id)
        return describe_tree(
            tree,
            self._unlocked_numbers(character_id, tree_id),
            character.level,
            load_stat_levels(self._db, character_id),
        )

    def get_unlocked_perks(
        self, character_id: str, tree_id: str | None = None
    ) -> list[PerkUnlock]:
        query = self._db.query(PerkUnlockModel).filter(
            PerkUnlockModel.character_id == character_id
        )
        if tree_id is not None:
            query = query.filter(PerkUnlockModel.tree_id == tree_id)
        rows = query.order_by(PerkUnlockModel.unlocked_at, PerkUnlockModel.id).all()
        return [self._unlock_to_core(r) for r in rows]

    def get_perk_points(self, character_id: str) -> PerkPoints:
        require_character(self._db, character_id)
        orm = self._db.get(PerkPointsModel, character_id)
        if orm is None:
            return PerkPoints(character_id=character_id)
        return PerkPoints(
            character_id=character_id,
            available=orm.available,
            total_earned=orm.total_earned,
        )

    @rollback_on_error
    def award_perk_points(self, character_id: str, amount: int) -> PerkPoints:
        """Host-awarded points on top of the ones earned by leveling."""
        if amount < 1:
            raise InvalidInputError("Perk point award must be at least 1")
        require_character(self._db, character_id)

        orm = self._points_row(character_id)
        orm.available += amount
        orm.total_earned += amount
        self._db.commit()

        logger.info("Awarded %d perk points to %s", amount, character_id)
        return self.get_perk_points(character_id)

    @rollback_on_error
    def unlock_perk(
        self, character_id: str, tree_id: str, perk_number: int
    ) -> PerkUnlock:
        tree = self._require_tree(tree_id)
        perk = tree.get_perk(perk_number)
        if perk is None:
            raise InvalidInputError(f"Unknown perk {tree_id}#{perk_number}")
        character = require_character(self._db, character_id)

        points = self._db.get(PerkPointsModel, character_id)
        try:
            check_unlock(
                tree,
                perk,
                self._unlocked_numbers(character_id, tree_id),
                character.level,
                load_stat_levels(self._db, character_id),
                points.available if points is not None else 0,
            )
        except PreconditionNotMetError as e:
            logger.warning(
                "Perk unlock rejected for %s (%s#%d): %s",
                character_id,
                tree_id,
                perk_number,
                e,
            )
            raise

        now = self._clock.now()
        orm = PerkUnlockModel(
            character_id=character_id,
            tree_id=tree_id,
            perk_number=perk_number,
            unlocked_at=to_db_time(now),
        )
        self._db.add(orm)
        points.available -= 1  # check_unlock guarantees a row with points
        append_log_entry(
            self._db,
            character_id,
            LogType.PERK,
            f"Perk unlocked: {perk.name}",
            perk.effect,
            now,
            {"tree_id": tree_id, "perk_number": perk_number},
        )

        self._bus.emit(
            GameEvent(
                event_type=EventTypes.PERK_UNLOCKED,
                data={
                    "character_id": character_id,
                    "tree_id": tree_id,
                    "perk_number": perk_number,
                },
                source="skill_tree_service",
                key=f"{character_id}:{tree_id}:{perk_number}",
            )
        )
        self._db.commit()

        logger.info("Perk %s#%d unlocked for %s", tree_id, perk_number, character_id)
        return self._unlock_to_core(orm)

    # === helpers ===

    def _points_row(self, character_id: str) -> PerkPointsModel:
        orm = self._db.get(PerkPointsModel, character_id)
        if orm is None:
            orm = PerkPointsModel(character_id=character_id, available=0, total_earned=0)
            self._db.add(orm)
        return orm

    def _unlocked_numbers(self, character_id: str, tree_id: str) -> set[int]:
        rows = (
            self._db.query(PerkUnlockModel.perk_number)
            .filter(
                PerkUnlockModel.character_id == character_id,
                PerkUnlockModel.tree_id == tree_id,
            )
            .all()
        )
        return {r[0] for r in rows}

    def _unlock_to_core(self, orm: PerkUnlockModel) -> PerkUnlock:
        return PerkUnlock(
            character_id=orm.character_id,
            tree_id=orm.tree_id,
            perk_number=orm.perk_number,
            unlocked_at=orm.unlocked_at,
        )
