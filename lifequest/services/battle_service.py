"""Battle Service - encounter lifecycle and turn persistence.

pending --start--> active --turn*--> victory | defeat

Turn math is in core.battle.resolver. Victory rewards are granted by the
progression service from the battle_won event, inside this commit.
"""

import logging
import random
import uuid
from datetime import timedelta

from sqlalchemy.orm import Session

from lifequest.core.activity_log import LogType
from lifequest.core.battle.catalog import EnemyCatalog
from lifequest.core.battle.combat import scale_enemy
from lifequest.core.battle.enums import (
    BattleAction,
    Difficulty,
    EncounterStatus,
    LootType,
)
from lifequest.core.battle.models import (
    BattleTurn,
    BattleTurnResult,
    Encounter,
    EnemyDefinition,
    LootDrop,
)
from lifequest.core.battle.resolver import ensure_active, resolve_turn
from lifequest.core.clock import Clock
from lifequest.core.errors import (
    EncounterLimitReachedError,
    EncounterNotPendingError,
    EncounterResolvedError,
    InvalidInputError,
    NotFoundError,
    PreconditionNotMetError,
)
from lifequest.core.event_bus import EventBus, GameEvent
from lifequest.core.event_types import EventTypes
from lifequest.core.progression.enums import StatType
from lifequest.core.progression.secondary import compute_secondary_stats
from lifequest.db.models import BattleTurnModel, EncounterModel, TruthModel
from lifequest.services.character_state import (
    append_log_entry,
    load_stat_levels,
    require_character,
    to_db_time,
)
from lifequest.services.unit_of_work import rollback_on_error

logger = logging.getLogger(__name__)

SOURCE = "battle_service"

OPEN_STATUSES = (EncounterStatus.PENDING.value, EncounterStatus.ACTIVE.value)


class BattleService:
    """Encounter spawn / start / turn"""

    def __init__(
        self,
        db: Session,
        event_bus: EventBus,
        clock: Clock,
        catalog: EnemyCatalog,
        rng: random.Random | None = None,
        max_open_encounters: int = 3,
        encounter_ttl_hours: int = 48,
    ):
        self._db = db
        self._bus = event_bus
        self._clock = clock
        self._catalog = catalog
        self._rng = rng or random.Random()
        self._max_open = max_open_encounters
        self._ttl = timedelta(hours=encounter_ttl_hours)

    # === Spawn ===

    @rollback_on_error
    def spawn_encounter(
        self, character_id: str, enemy_id: str, source_action: str = ""
    ) -> Encounter:
        """Create a pending encounter scaled to the character's level."""
        enemy = self._catalog.get(enemy_id)
        if enemy is None:
            raise InvalidInputError(f"Unknown enemy: {enemy_id}")
        character = require_character(self._db, character_id)

        now = self._clock.now()
        open_count = self._open_query(character_id, now).count()
        if open_count >= self._max_open:
            logger.warning(
                "Encounter limit reached for %s (%d open)", character_id, open_count
            )
            raise EncounterLimitReachedError(
                f"At most {self._max_open} open encounters",
                details={"open": open_count, "max": self._max_open},
            )

        scaled = scale_enemy(enemy, character.level)
        orm = EncounterModel(
            encounter_id=f"enc_{uuid.uuid4().hex[:12]}",
            character_id=character_id,
            enemy_id=enemy.enemy_id,
            enemy_name=enemy.name,
            difficulty=enemy.difficulty.value,
            status=EncounterStatus.PENDING.value,
            enemy_hp=scaled.hp,
            enemy_max_hp=scaled.hp,
            enemy_power=scaled.power,
            enemy_defense=scaled.defense,
            pattern_index=0,
            turns_elapsed=0,
            spawned_by=source_action,
            loot=[self._loot_to_dict(d) for d in enemy.loot],
            created_at=to_db_time(now),
            expires_at=to_db_time(now + self._ttl),
        )
        self._db.add(orm)
        self._db.commit()

        logger.info(
            "Spawned %s (%s) for %s: hp=%d power=%d def=%d",
            enemy.enemy_id,
            orm.encounter_id,
            character_id,
            scaled.hp,
            scaled.power,
            scaled.defense,
        )
        return self._encounter_to_core(orm)

    @rollback_on_error
    def spawn_for_trigger(self, character_id: str, trigger: str) -> list[Encounter]:
        """Spawn the enemies that follow a host activity such as "workout_complete".

        Unlike spawn_encounter, a full encounter slate is not an error: spawning
        stops at the limit and the encounters created so far are returned. A
        trigger no enemy listens for spawns nothing.
        """
        require_character(self._db, character_id)
        spawned: list[Encounter] = []
        for enemy in self._catalog.spawned_by(trigger):
            open_count = self._open_query(character_id, self._clock.now()).count()
            if open_count >= self._max_open:
                logger.info(
                    "Trigger %s for %s: encounter limit reached, %s not spawned",
                    trigger,
                    character_id,
                    enemy.enemy_id,
                )
                break
            spawned.append(
                self.spawn_encounter(character_id, enemy.enemy_id, source_action=trigger)
            )
        return spawned

    def get_encounter(self, encounter_id: str) -> Encounter | None:
        orm = self._db.get(EncounterModel, encounter_id)
        if orm is None:
            return None
        return self._encounter_to_core(orm)

    def get_open_encounters(self, character_id: str) -> list[Encounter]:
        """Unexpired pending or active encounters, oldest first."""
        rows = (
            self._open_query(character_id, self._clock.now())
            .order_by(EncounterModel.created_at, EncounterModel.encounter_id)
            .all()
        )
        return [self._encounter_to_core(o) for o in rows]

    def _open_query(self, character_id: str, now):
        return self._db.query(EncounterModel).filter(
            EncounterModel.character_id == character_id,
            EncounterModel.status.in_(OPEN_STATUSES),
            EncounterModel.expires_at > to_db_time(now),
        )

    # === Start ===

    @rollback_on_error
    def start_encounter(self, encounter_id: str) -> Encounter:
        """pending -> active, snapshotting HP and energy."""
        orm = self._require_encounter(encounter_id)
        status = EncounterStatus(orm.status)
        if status.is_terminal:
            raise EncounterResolvedError(
                f"Encounter {encounter_id} is already resolved ({status.value})",
                details={"status": status.value},
            )
        if status != EncounterStatus.PENDING:
            raise EncounterNotPendingError(
                f"Encounter {encounter_id} is not pending ({status.value})",
                details={"status": status.value},
            )
        now = self._clock.now()
        if orm.expires_at <= to_db_time(now):
            raise EncounterNotPendingError(
                f"Encounter {encounter_id} has expired",
                details={"status": status.value, "expired": True},
            )

        secondary = compute_secondary_stats(
            load_stat_levels(self._db, orm.character_id)
        )
        orm.status = EncounterStatus.ACTIVE.value
        orm.character_hp_at_start = secondary.hp
        orm.character_hp = secondary.hp
        orm.character_max_hp = secondary.hp
        orm.character_energy = secondary.energy
        orm.character_max_energy = secondary.energy
        self._db.commit()

        logger.info(
            "Encounter %s started (hp=%d energy=%d)",
            encounter_id,
            secondary.hp,
            secondary.energy,
        )
        return self._encounter_to_core(orm)

    # === Turn ===

    @rollback_on_error
    def execute_battle_turn(
        self,
        encounter_id: str,
        action: BattleAction | str,
        random_draw: float | None = None,
    ) -> BattleTurnResult:
        """Resolve and persist one turn."""
        try:
            action = BattleAction(action)
        except ValueError:
            raise InvalidInputError(f"Unknown battle action: {action}") from None

        orm = self._require_encounter(encounter_id)
        encounter = self._encounter_to_core(orm)
        ensure_active(encounter)

        enemy = self._require_enemy(orm.enemy_id)
        character = require_character(self._db, orm.character_id)
        stat_levels = load_stat_levels(self._db, orm.character_id)
        draw = self._rng.random() if random_draw is None else random_draw

        try:
            outcome = resolve_turn(
                encounter,
                enemy,
                action,
                draw,
                stat_levels,
                character.level,
                compute_secondary_stats(stat_levels),
                equipped_truths=self._equipped_truth_count(orm.character_id),
            )
        except PreconditionNotMetError as e:
            logger.warning("Turn rejected for %s: %s", encounter_id, e)
            raise

        now = self._clock.now()
        turn_number = orm.turns_elapsed + 1
        turn_orm = BattleTurnModel(
            encounter_id=encounter_id,
            turn_number=turn_number,
            action=action.value,
            enemy_move=outcome.enemy_move,
            damage_dealt=outcome.damage_dealt,
            damage_taken=outcome.damage_taken,
            character_hp_after=outcome.character_hp_after,
            enemy_hp_after=outcome.enemy_hp_after,
            character_energy_after=outcome.character_energy_after,
            result_flags=list(outcome.flags),
            created_at=to_db_time(now),
        )
        self._db.add(turn_orm)

        orm.turns_elapsed = turn_number
        orm.enemy_hp = outcome.enemy_hp_after
        orm.character_hp = outcome.character_hp_after
        orm.character_energy = outcome.character_energy_after
        orm.pattern_index = outcome.next_pattern_index

        if outcome.victory:
            self._finish(orm, enemy, EncounterStatus.VICTORY, now)
        elif outcome.defeat:
            self._finish(orm, enemy, EncounterStatus.DEFEAT, now)

        self._db.commit()

        logger.debug(
            "Turn %d of %s: %s dealt=%d taken=%d",
            turn_number,
            encounter_id,
            action.value,
            outcome.damage_dealt,
            outcome.damage_taken,
        )
        return BattleTurnResult(
            turn=self._turn_to_core(turn_orm),
            encounter=self._encounter_to_core(orm),
            victory=outcome.victory,
            defeat=outcome.defeat,
        )

    def _finish(
        self,
        orm: EncounterModel,
        enemy: EnemyDefinition,
        status: EncounterStatus,
        now,
    ) -> None:
        """Terminal transition + log entry + event; no commit."""
        orm.status = status.value
        orm.completed_at = to_db_time(now)
        won = status == EncounterStatus.VICTORY

        append_log_entry(
            self._db,
            orm.character_id,
            LogType.BATTLE,
            f"Defeated {enemy.name}" if won else f"Fell to {enemy.name}",
            f"{orm.turns_elapsed} turns",
            now,
            {
                "encounter_id": orm.encounter_id,
                "enemy_id": enemy.enemy_id,
                "result": status.value,
                "turns": orm.turns_elapsed,
            },
        )

        if won:
            event = GameEvent(
                event_type=EventTypes.BATTLE_WON,
                data={
                    "character_id": orm.character_id,
                    "encounter_id": orm.encounter_id,
                    "enemy_id": enemy.enemy_id,
                    "primary_stat": enemy.primary_stat.value,
                    "xp_reward": enemy.xp_reward,
                    "loot": list(orm.loot or []),
                },
                source=SOURCE,
                key=orm.encounter_id,
            )
        else:
            event = GameEvent(
                event_type=EventTypes.BATTLE_LOST,
                data={
                    "character_id": orm.character_id,
                    "encounter_id": orm.encounter_id,
                    "enemy_id": enemy.enemy_id,
                },
                source=SOURCE,
                key=orm.encounter_id,
            )
        self._bus.emit(event)
        logger.info("Encounter %s ended: %s", orm.encounter_id, status.value)

    def get_battle_turns(self, encounter_id: str) -> list[BattleTurn]:
        self._require_encounter(encounter_id)
        rows = (
            self._db.query(BattleTurnModel)
            .filter(BattleTurnModel.encounter_id == encounter_id)
            .order_by(BattleTurnModel.turn_number)
            .all()
        )
        return [self._turn_to_core(r) for r in rows]

    # === helpers ===

    def _require_encounter(self, encounter_id: str) -> EncounterModel:
        orm = self._db.get(EncounterModel, encounter_id)
        if orm is None:
            raise NotFoundError(f"Encounter not found: {encounter_id}")
        return orm

    def _require_enemy(self, enemy_id: str) -> EnemyDefinition:
        enemy = self._catalog.get(enemy_id)
        if enemy is None:
            raise InvalidInputError(f"Enemy no longer in catalog: {enemy_id}")
        return enemy

    def _equipped_truth_count(self, character_id: str) -> int:
        return (
            self._db.query(TruthModel)
            .filter(
                TruthModel.character_id == character_id,
                TruthModel.is_equipped.is_(True),
            )
            .count()
        )

    @staticmethod
    def _loot_to_dict(drop: LootDrop) -> dict:
        return {
            "type": drop.loot_type.value,
            "item_id": drop.item_id,
            "amount": drop.amount,
            "stat": drop.stat.value if drop.stat else None,
        }

    @staticmethod
    def _loot_from_dict(raw: dict) -> LootDrop:
        return LootDrop(
            loot_type=LootType(raw["type"]),
            item_id=raw["item_id"],
            amount=int(raw.get("amount", 1)),
            stat=StatType(raw["stat"]) if raw.get("stat") else None,
        )

    def _encounter_to_core(self, orm: EncounterModel) -> Encounter:
        return Encounter(
            encounter_id=orm.encounter_id,
            character_id=orm.character_id,
            enemy_id=orm.enemy_id,
            enemy_name=orm.enemy_name,
            difficulty=Difficulty(orm.difficulty),
            enemy_hp=orm.enemy_hp,
            enemy_max_hp=orm.enemy_max_hp,
            enemy_power=orm.enemy_power,
            enemy_defense=orm.enemy_defense,
            status=EncounterStatus(orm.status),
            pattern_index=orm.pattern_index,
            character_hp_at_start=orm.character_hp_at_start,
            character_hp=orm.character_hp,
            character_max_hp=orm.character_max_hp,
            character_energy=orm.character_energy,
            character_max_energy=orm.character_max_energy,
            turns_elapsed=orm.turns_elapsed,
            spawned_by=orm.spawned_by,
            loot=[self._loot_from_dict(d) for d in (orm.loot or [])],
            created_at=orm.created_at,
            expires_at=orm.expires_at,
            completed_at=orm.completed_at,
        )

    def _turn_to_core(self, orm: BattleTurnModel) -> BattleTurn:
        return BattleTurn(
            encounter_id=orm.encounter_id,
            turn_number=orm.turn_number,
            action=BattleAction(orm.action),
            enemy_move=orm.enemy_move,
            damage_dealt=orm.damage_dealt,
            damage_taken=orm.damage_taken,
            character_hp_after=orm.character_hp_after,
            enemy_hp_after=orm.enemy_hp_after,
            character_energy_after=orm.character_energy_after,
            result_flags=tuple(orm.result_flags or ()),
            created_at=orm.created_at,
        )
