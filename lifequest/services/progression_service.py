"""Progression Service - characters, stat tracks, XP grants, achievements.

Rewards coming from other services (quest completion, questline completion,
battle victory) arrive as EventBus events and are applied through the same
XP path as a direct grant, inside the publisher's unit of work.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from lifequest.core.activity_log import LogType
from lifequest.core.battle.enums import LootType
from lifequest.core.clock import Clock
from lifequest.core.errors import InvalidInputError
from lifequest.core.event_bus import EventBus, GameEvent
from lifequest.core.event_types import EventTypes
from lifequest.core.logging import get_logger
from lifequest.core.progression.activity import ActivityCatalog
from lifequest.core.progression.curve import level_from_xp, stat_level_from_xp
from lifequest.core.progression.enums import ALL_STATS, STAT_COLORS, StatType
from lifequest.core.progression.models import (
    Achievement,
    Character,
    GrantResult,
    LevelInfo,
    SecondaryStats,
    StatLevelUp,
    StatTrack,
)
from lifequest.core.progression.secondary import (
    compute_secondary_stats,
    dominant_stat,
)
from lifequest.db.models import (
    AchievementModel,
    CharacterModel,
    PerkPointsModel,
    StatTrackModel,
    XpEventModel,
)
from lifequest.services.character_state import (
    append_log_entry,
    load_stat_levels,
    load_stat_tracks,
    require_character,
    to_db_time,
)
from lifequest.services.unit_of_work import rollback_on_error

logger = get_logger(__name__)

SOURCE = "progression_service"


def _parse_stat(value, field_name: str) -> StatType:
    try:
        return StatType(value)
    except ValueError:
        raise InvalidInputError(f"Unknown stat for {field_name}: {value}") from None


def _humanize(item_id: str) -> str:
    return item_id.replace("_", " ").title()


class ProgressionService:
    """Character lifecycle + XP granting."""

    def __init__(
        self,
        db: Session,
        event_bus: EventBus,
        clock: Clock,
        activities: Optional[ActivityCatalog] = None,
        perk_points_per_level: int = 1,
    ):
        self._db = db
        self._bus = event_bus
        self._clock = clock
        self._activities = activities or ActivityCatalog()
        self._perk_points_per_level = perk_points_per_level
        self._register_event_handlers()

    def _register_event_handlers(self) -> None:
        self._bus.subscribe(EventTypes.QUEST_COMPLETED, self._on_quest_completed)
        self._bus.subscribe(
            EventTypes.QUESTLINE_COMPLETED, self._on_questline_completed
        )
        self._bus.subscribe(EventTypes.BATTLE_WON, self._on_battle_won)

    # === Character ===

    @rollback_on_error
    def ensure_character(self, character_id: str) -> Character:
        """Return the character, creating it with zeroed stats on first access."""
        if not character_id or not character_id.strip():
            raise InvalidInputError("character_id must not be empty")

        orm = self._db.get(CharacterModel, character_id)
        if orm is not None:
            return self._character_to_core(orm)

        now = to_db_time(self._clock.now())
        orm = CharacterModel(
            character_id=character_id,
            total_xp=0,
            level=1,
            title="Novice",
            aura_color=STAT_COLORS[StatType.DIS],
            gear=[],
            created_at=now,
            updated_at=now,
        )
        self._db.add(orm)
        for stat in ALL_STATS:
            self._db.add(
                StatTrackModel(
                    character_id=character_id, stat=stat.value, total_xp=0, level=1
                )
            )
        self._db.add(
            PerkPointsModel(character_id=character_id, available=0, total_earned=0)
        )
        self._db.commit()

        logger.info("Created character %s", character_id)
        return self._character_to_core(orm)

    def get_character(self, character_id: str) -> Character | None:
        orm = self._db.get(CharacterModel, character_id)
        if orm is None:
            return None
        return self._character_to_core(orm)

    def get_level_info(self, character_id: str) -> LevelInfo:
        orm = require_character(self._db, character_id)
        return level_from_xp(orm.total_xp)

    def get_stat_tracks(self, character_id: str) -> list[StatTrack]:
        require_character(self._db, character_id)
        tracks = load_stat_tracks(self._db, character_id)
        return [
            StatTrack(
                character_id=character_id,
                stat=stat,
                total_xp=tracks[stat].total_xp,
                level=tracks[stat].level,
            )
            for stat in ALL_STATS
            if stat in tracks
        ]

    def get_stat_level_infos(self, character_id: str) -> dict[StatType, LevelInfo]:
        return {
            t.stat: stat_level_from_xp(t.total_xp)
            for t in self.get_stat_tracks(character_id)
        }

    def get_stat_levels(self, character_id: str) -> dict[StatType, int]:
        require_character(self._db, character_id)
        return load_stat_levels(self._db, character_id)

    def get_secondary_stats(self, character_id: str) -> SecondaryStats:
        return compute_secondary_stats(self.get_stat_levels(character_id))

    # === XP ===

    @rollback_on_error
    def grant_xp(
        self,
        character_id: str,
        source_module: str,
        source_action: str,
        source_item_id: str,
        primary_stat: StatType | str,
        primary_xp: int,
        secondary_stat: StatType | str | None = None,
        secondary_xp: int | None = None,
    ) -> GrantResult:
        """Apply one XP grant. Repeating the same source is a no-op."""
        result, events = self._apply_xp(
            character_id,
            source_module,
            source_action,
            source_item_id,
            primary_stat,
            primary_xp,
            secondary_stat,
            secondary_xp,
        )
        if result.duplicate:
            return result

        self._emit_all(events)
        self._db.commit()
        return result

    @rollback_on_error
    def grant_activity_xp(
        self,
        character_id: str,
        source_module: str,
        source_action: str,
        source_item_id: str,
    ) -> GrantResult:
        """Grant XP using the static activity reward table."""
        reward = self._activities.get(source_module, source_action)
        if reward is None:
            raise InvalidInputError(
                f"No XP mapping for activity {source_module}/{source_action}"
            )
        return self.grant_xp(
            character_id,
            source_module,
            source_action,
            source_item_id,
            reward.primary_stat,
            reward.primary_xp,
            reward.secondary_stat,
            reward.secondary_xp if reward.secondary_stat else None,
        )

    def _apply_xp(
        self,
        character_id: str,
        source_module: str,
        source_action: str,
        source_item_id: str,
        primary_stat: StatType | str,
        primary_xp: int,
        secondary_stat: StatType | str | None = None,
        secondary_xp: int | None = None,
    ) -> tuple[GrantResult, list[GameEvent]]:
        """Validate and stage a grant in the session without committing."""
        primary = _parse_stat(primary_stat, "primary_stat")
        secondary = (
            _parse_stat(secondary_stat, "secondary_stat")
            if secondary_stat is not None
            else None
        )
        if secondary is None and secondary_xp:
            raise InvalidInputError("secondary_xp given without secondary_stat")
        secondary_xp = secondary_xp or 0
        if primary_xp < 0 or secondary_xp < 0:
            raise InvalidInputError("XP amounts must be non-negative")
        if not source_module or not source_action or not source_item_id:
            raise InvalidInputError("XP source module, action and item id are required")

        character = require_character(self._db, character_id)
        old_level = character.level

        existing = (
            self._db.query(XpEventModel)
            .filter(
                XpEventModel.character_id == character_id,
                XpEventModel.source_module == source_module,
                XpEventModel.source_action == source_action,
                XpEventModel.source_item_id == source_item_id,
            )
            .first()
        )
        if existing is not None:
            logger.debug(
                "Duplicate XP grant ignored: %s %s/%s/%s",
                character_id,
                source_module,
                source_action,
                source_item_id,
            )
            return (
                GrantResult(
                    character_id=character_id,
                    xp_granted=0,
                    old_level=old_level,
                    new_level=old_level,
                    duplicate=True,
                ),
                [],
            )

        now = self._clock.now()
        tracks = load_stat_tracks(self._db, character_id)
        stat_ups: list[StatLevelUp] = []
        for stat, xp in ((primary, primary_xp), (secondary, secondary_xp)):
            if stat is None or xp <= 0:
                continue
            track = tracks.get(stat)
            if track is None:
                track = StatTrackModel(
                    character_id=character_id, stat=stat.value, total_xp=0, level=1
                )
                self._db.add(track)
                tracks[stat] = track
            before = track.level
            track.total_xp += xp
            track.level = stat_level_from_xp(track.total_xp).level
            if track.level > before:
                stat_ups.append(StatLevelUp(stat=stat, old_level=before, new_level=track.level))

        total_added = primary_xp + secondary_xp
        character.total_xp += total_added
        character.level = level_from_xp(character.total_xp).level
        levels = {stat: t.level for stat, t in tracks.items()}
        character.aura_color = STAT_COLORS[dominant_stat(levels)]
        character.updated_at = to_db_time(now)

        self._db.add(
            XpEventModel(
                character_id=character_id,
                source_module=source_module,
                source_action=source_action,
                source_item_id=source_item_id,
                primary_stat=primary.value,
                primary_xp=primary_xp,
                secondary_stat=secondary.value if secondary else None,
                secondary_xp=secondary_xp,
                timestamp=to_db_time(now),
            )
        )

        result = GrantResult(
            character_id=character_id,
            xp_granted=total_added,
            old_level=old_level,
            new_level=character.level,
            stat_level_ups=stat_ups,
        )
        events: list[GameEvent] = []

        if result.leveled_up:
            earned = (result.new_level - old_level) * self._perk_points_per_level
            points = self._db.get(PerkPointsModel, character_id)
            if points is None:
                points = PerkPointsModel(
                    character_id=character_id, available=0, total_earned=0
                )
                self._db.add(points)
            points.available += earned
            points.total_earned += earned
            result.perk_points_earned = earned

            append_log_entry(
                self._db,
                character_id,
                LogType.LEVEL_UP,
                f"Level {result.new_level}!",
                f"You reached level {result.new_level}",
                now,
                {"old_level": old_level, "new_level": result.new_level},
            )
            events.append(
                GameEvent(
                    event_type=EventTypes.CHARACTER_LEVELED_UP,
                    data={
                        "character_id": character_id,
                        "old_level": old_level,
                        "new_level": result.new_level,
                        "perk_points_earned": earned,
                    },
                    source=SOURCE,
                    key=f"{character_id}:{result.new_level}",
                )
            )
            logger.info(
                "Character %s leveled up %d -> %d", character_id, old_level, result.new_level
            )

        for up in stat_ups:
            append_log_entry(
                self._db,
                character_id,
                LogType.STAT_UP,
                f"{up.stat.value} {up.old_level} → {up.new_level}",
                f"{up.stat.value} leveled up!",
                now,
                {
                    "stat": up.stat.value,
                    "old_level": up.old_level,
                    "new_level": up.new_level,
                },
            )
            events.append(
                GameEvent(
                    event_type=EventTypes.STAT_LEVELED_UP,
                    data={
                        "character_id": character_id,
                        "stat": up.stat.value,
                        "old_level": up.old_level,
                        "new_level": up.new_level,
                    },
                    source=SOURCE,
                    key=f"{character_id}:{up.stat.value}:{up.new_level}",
                )
            )

        self._db.flush()
        logger.debug(
            "Granted %d XP to %s (%s/%s/%s)",
            total_added,
            character_id,
            source_module,
            source_action,
            source_item_id,
        )
        return result, events

    # === Achievements ===

    @rollback_on_error
    def unlock_achievement(
        self,
        character_id: str,
        name: str,
        description: str = "",
        icon: str = "",
    ) -> Achievement | None:
        """Record an achievement once. Returns None if it was already unlocked."""
        if not name or not name.strip():
            raise InvalidInputError("Achievement name must not be empty")
        require_character(self._db, character_id)

        existing = (
            self._db.query(AchievementModel)
            .filter(
                AchievementModel.character_id == character_id,
                AchievementModel.name == name,
            )
            .first()
        )
        if existing is not None:
            return None

        now = self._clock.now()
        orm = AchievementModel(
            character_id=character_id,
            name=name,
            description=description,
            icon=icon,
            unlocked_at=to_db_time(now),
        )
        self._db.add(orm)
        append_log_entry(
            self._db,
            character_id,
            LogType.ACHIEVEMENT,
            name,
            description,
            now,
            {"icon": icon},
        )
        self._db.commit()
        logger.info("Achievement unlocked for %s: %s", character_id, name)
        return self._achievement_to_core(orm)

    def get_achievements(self, character_id: str) -> list[Achievement]:
        rows = (
            self._db.query(AchievementModel)
            .filter(AchievementModel.character_id == character_id)
            .order_by(AchievementModel.unlocked_at, AchievementModel.id)
            .all()
        )
        return [self._achievement_to_core(r) for r in rows]

    # === EventBus handlers ===

    def _emit_all(self, events: list[GameEvent]) -> None:
        for event in events:
            self._bus.emit(event)

    def _grant_reward_map(
        self,
        character_id: str,
        source_module: str,
        source_item_id: str,
        reward: dict[str, int],
        action_prefix: str,
    ) -> None:
        for stat, xp in sorted(reward.items()):
            _, events = self._apply_xp(
                character_id,
                source_module,
                f"{action_prefix}:{stat}",
                source_item_id,
                stat,
                int(xp),
            )
            self._emit_all(events)

    def _on_quest_completed(self, event: GameEvent) -> None:
        data = event.data
        self._grant_reward_map(
            data["character_id"],
            "quest",
            data["quest_id"],
            data.get("xp_reward", {}),
            "complete",
        )

    def _on_questline_completed(self, event: GameEvent) -> None:
        data = event.data
        self._grant_reward_map(
            data["character_id"],
            "questline",
            data["questline_id"],
            data.get("xp_reward", {}),
            "complete",
        )

    def _on_battle_won(self, event: GameEvent) -> None:
        """Enemy XP on its primary stat, then loot."""
        data = event.data
        character_id = data["character_id"]
        encounter_id = data["encounter_id"]

        _, events = self._apply_xp(
            character_id,
            "battle",
            "victory",
            encounter_id,
            data["primary_stat"],
            int(data.get("xp_reward", 0)),
        )
        self._emit_all(events)

        character = require_character(self._db, character_id)
        for drop in data.get("loot", []):
            loot_type = LootType(drop["type"])
            item_id = drop["item_id"]
            if loot_type == LootType.XP_ORB:
                stats = [drop["stat"]] if drop.get("stat") else [s.value for s in ALL_STATS]
                for stat in stats:
                    _, events = self._apply_xp(
                        character_id,
                        "battle",
                        f"loot:{item_id}:{stat}",
                        encounter_id,
                        stat,
                        int(drop.get("amount", 0)),
                    )
                    self._emit_all(events)
            elif loot_type == LootType.TITLE:
                character.title = _humanize(item_id)
            elif loot_type == LootType.GEAR:
                if item_id not in (character.gear or []):
                    character.gear = [*(character.gear or []), item_id]
        self._db.flush()

    # === Converters ===

    def _character_to_core(self, orm: CharacterModel) -> Character:
        return Character(
            character_id=orm.character_id,
            total_xp=orm.total_xp,
            level=orm.level,
            title=orm.title,
            aura_color=orm.aura_color,
            gear=list(orm.gear or []),
            created_at=orm.created_at,
            updated_at=orm.updated_at,
        )

    def _achievement_to_core(self, orm: AchievementModel) -> Achievement:
        return Achievement(
            character_id=orm.character_id,
            name=orm.name,
            description=orm.description,
            icon=orm.icon,
            unlocked_at=orm.unlocked_at,
        )

