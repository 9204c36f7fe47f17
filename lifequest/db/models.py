"""SQLAlchemy ORM models for every piece of engine state.

Every row is partitioned by ``character_id``. Timestamps are stored as naive
UTC datetimes.
"""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import JSON


class Base(DeclarativeBase):
    """Base class for all database models."""


# ── character & progression ─────────────────────────────────


class CharacterModel(Base):
    __tablename__ = "characters"

    character_id: Mapped[str] = mapped_column(String, primary_key=True)
    total_xp: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    title: Mapped[str] = mapped_column(String, nullable=False, default="Novice")
    aura_color: Mapped[str] = mapped_column(String, nullable=False, default="")
    gear: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


class StatTrackModel(Base):
    __tablename__ = "stat_tracks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    character_id: Mapped[str] = mapped_column(
        String, ForeignKey("characters.character_id", ondelete="CASCADE"), nullable=False
    )
    stat: Mapped[str] = mapped_column(String, nullable=False)
    total_xp: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    __table_args__ = (UniqueConstraint("character_id", "stat", name="uq_stat_track"),)


class XpEventModel(Base):
    """One applied XP grant; the unique key makes grants idempotent."""

    __tablename__ = "xp_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    character_id: Mapped[str] = mapped_column(String, nullable=False)
    source_module: Mapped[str] = mapped_column(String, nullable=False)
    source_action: Mapped[str] = mapped_column(String, nullable=False)
    source_item_id: Mapped[str] = mapped_column(String, nullable=False)
    primary_stat: Mapped[str] = mapped_column(String, nullable=False)
    primary_xp: Mapped[int] = mapped_column(Integer, nullable=False)
    secondary_stat: Mapped[str | None] = mapped_column(String, nullable=True)
    secondary_xp: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "character_id",
            "source_module",
            "source_action",
            "source_item_id",
            name="uq_xp_event_source",
        ),
    )


class AchievementModel(Base):
    __tablename__ = "achievements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    character_id: Mapped[str] = mapped_column(String, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    icon: Mapped[str] = mapped_column(String, nullable=False, default="")
    unlocked_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        UniqueConstraint("character_id", "name", name="uq_achievement_name"),
    )


# ── skill tree ──────────────────────────────────────────────


class PerkPointsModel(Base):
    __tablename__ = "perk_points"

    character_id: Mapped[str] = mapped_column(
        String, ForeignKey("characters.character_id", ondelete="CASCADE"), primary_key=True
    )
    available: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_earned: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class PerkUnlockModel(Base):
    __tablename__ = "perk_unlocks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    character_id: Mapped[str] = mapped_column(String, nullable=False)
    tree_id: Mapped[str] = mapped_column(String, nullable=False)
    perk_number: Mapped[int] = mapped_column(Integer, nullable=False)
    unlocked_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "character_id", "tree_id", "perk_number", name="uq_perk_unlock"
        ),
    )


# ── quests ──────────────────────────────────────────────────


class QuestModel(Base):
    __tablename__ = "quests"

    quest_id: Mapped[str] = mapped_column(String, primary_key=True)
    character_id: Mapped[str] = mapped_column(String, nullable=False)
    scope: Mapped[str] = mapped_column(String, nullable=False)
    period_key: Mapped[str] = mapped_column(String, nullable=False)
    catalog_id: Mapped[str] = mapped_column(String, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    source_module: Mapped[str] = mapped_column(String, nullable=False)
    source_action: Mapped[str] = mapped_column(String, nullable=False)
    target_count: Mapped[int] = mapped_column(Integer, nullable=False)
    current_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    xp_reward: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    status: Mapped[str] = mapped_column(String, nullable=False, default="pending")
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "character_id", "scope", "period_key", "catalog_id", name="uq_quest_period"
        ),
        Index("idx_quest_trigger", "character_id", "source_module", "source_action"),
    )


class QuestlineModel(Base):
    __tablename__ = "questlines"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    character_id: Mapped[str] = mapped_column(String, nullable=False)
    questline_id: Mapped[str] = mapped_column(String, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    current_step: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_steps: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="active")
    started_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    __table_args__ = (
        UniqueConstraint("character_id", "questline_id", name="uq_questline"),
    )


# ── battle ──────────────────────────────────────────────────


class EncounterModel(Base):
    __tablename__ = "encounters"

    encounter_id: Mapped[str] = mapped_column(String, primary_key=True)
    character_id: Mapped[str] = mapped_column(String, nullable=False)
    enemy_id: Mapped[str] = mapped_column(String, nullable=False)
    enemy_name: Mapped[str] = mapped_column(String, nullable=False)
    difficulty: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="pending")

    enemy_hp: Mapped[int] = mapped_column(Integer, nullable=False)
    enemy_max_hp: Mapped[int] = mapped_column(Integer, nullable=False)
    enemy_power: Mapped[int] = mapped_column(Integer, nullable=False)
    enemy_defense: Mapped[int] = mapped_column(Integer, nullable=False)
    pattern_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # snapshot taken at start
    character_hp_at_start: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    character_hp: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    character_max_hp: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    character_energy: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    character_max_energy: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    turns_elapsed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    spawned_by: Mapped[str] = mapped_column(String, nullable=False, default="")
    loot: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    __table_args__ = (Index("idx_encounter_character", "character_id", "status"),)


class BattleTurnModel(Base):
    __tablename__ = "battle_turns"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    encounter_id: Mapped[str] = mapped_column(
        String, ForeignKey("encounters.encounter_id", ondelete="CASCADE"), nullable=False
    )
    turn_number: Mapped[int] = mapped_column(Integer, nullable=False)
    action: Mapped[str] = mapped_column(String, nullable=False)
    enemy_move: Mapped[str | None] = mapped_column(String, nullable=True)
    damage_dealt: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    damage_taken: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    character_hp_after: Mapped[int] = mapped_column(Integer, nullable=False)
    enemy_hp_after: Mapped[int] = mapped_column(Integer, nullable=False)
    character_energy_after: Mapped[int] = mapped_column(Integer, nullable=False)
    result_flags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        UniqueConstraint("encounter_id", "turn_number", name="uq_battle_turn"),
    )


# ── truths & log ────────────────────────────────────────────


class TruthModel(Base):
    __tablename__ = "truths"

    truth_id: Mapped[str] = mapped_column(String, primary_key=True)
    character_id: Mapped[str] = mapped_column(String, nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    source_entry_id: Mapped[str] = mapped_column(String, nullable=False, default="")
    theme: Mapped[str] = mapped_column(String, nullable=False)
    is_equipped: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    battle_effect: Mapped[str] = mapped_column(Text, nullable=False, default="")
    battle_power: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    collected_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (Index("idx_truth_character", "character_id", "is_equipped"),)


class LogEntryModel(Base):
    """Append-only activity log row. Never updated."""

    __tablename__ = "log_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    character_id: Mapped[str] = mapped_column(String, nullable=False)
    log_type: Mapped[str] = mapped_column(String, nullable=False)
    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    data: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (Index("idx_log_character_time", "character_id", "timestamp"),)
