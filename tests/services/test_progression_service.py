"""ProgressionService integration tests (in-memory SQLite + EventBus)"""

import pytest

from lifequest.core.activity_log import LogType
from lifequest.core.errors import EventDeliveryError, InvalidInputError, NotFoundError
from lifequest.core.event_types import EventTypes
from lifequest.core.progression.enums import STAT_COLORS, StatType
from lifequest.db.models import PerkPointsModel, StatTrackModel, XpEventModel


class TestEnsureCharacter:
    def test_creates_with_zero_xp(self, services, db):
        character = services.progression.ensure_character("new_one")
        assert character.total_xp == 0
        assert character.level == 1
        assert character.title == "Novice"

        tracks = services.progression.get_stat_tracks("new_one")
        assert len(tracks) == 6
        assert all(t.level == 1 and t.total_xp == 0 for t in tracks)
        assert db.get(PerkPointsModel, "new_one").available == 0

    def test_idempotent(self, services, db):
        services.progression.ensure_character("twice")
        services.progression.ensure_character("twice")
        assert db.query(StatTrackModel).filter_by(character_id="twice").count() == 6

    def test_blank_id_rejected(self, services):
        with pytest.raises(InvalidInputError):
            services.progression.ensure_character("  ")

    def test_unknown_character(self, services):
        assert services.progression.get_character("ghost") is None
        with pytest.raises(NotFoundError):
            services.progression.get_level_info("ghost")


class TestGrantXp:
    def test_level_up_writes_log(self, services, hero):
        result = services.progression.grant_xp(
            hero, "workout", "complete_workout", "w1", StatType.STR, 150
        )
        assert result.old_level == 1
        assert result.new_level == 2
        assert result.leveled_up
        assert result.perk_points_earned == 1
        assert [u.stat for u in result.stat_level_ups] == [StatType.STR]

        character = services.progression.get_character(hero)
        assert character.total_xp == 150
        assert character.level == 2

        log = services.log.get_recent_log(hero)
        types = [e.log_type for e in log]
        assert LogType.LEVEL_UP in types
        assert LogType.STAT_UP in types
        level_entry = next(e for e in log if e.log_type == LogType.LEVEL_UP)
        assert level_entry.data == {"old_level": 1, "new_level": 2}

    def test_below_threshold_no_log(self, services, hero):
        result = services.progression.grant_xp(hero, "journal", "write", "j1", "WIS", 40)
        assert not result.leveled_up
        assert result.stat_level_ups == []
        assert services.log.get_recent_log(hero) == []

    def test_secondary_stat(self, services, hero):
        services.progression.grant_xp(hero, "m", "a", "i", "STR", 60, "END", 40)
        tracks = {t.stat: t for t in services.progression.get_stat_tracks(hero)}
        assert tracks[StatType.STR].total_xp == 60
        assert tracks[StatType.END].total_xp == 40
        assert services.progression.get_character(hero).total_xp == 100

    def test_duplicate_source_is_noop(self, services, hero, db):
        services.progression.grant_xp(hero, "tasks", "complete_task", "t1", "DIS", 20)
        again = services.progression.grant_xp(hero, "tasks", "complete_task", "t1", "DIS", 20)
        assert again.duplicate
        assert again.xp_granted == 0
        assert services.progression.get_character(hero).total_xp == 20
        assert db.query(XpEventModel).count() == 1

    def test_invalid_inputs(self, services, hero):
        with pytest.raises(InvalidInputError):
            services.progression.grant_xp(hero, "m", "a", "i", "LUCK", 10)
        with pytest.raises(InvalidInputError):
            services.progression.grant_xp(hero, "m", "a", "i", "STR", -1)
        with pytest.raises(InvalidInputError):
            services.progression.grant_xp(hero, "m", "a", "i", "STR", 1, None, 5)
        with pytest.raises(NotFoundError):
            services.progression.grant_xp("ghost", "m", "a", "i", "STR", 1)

    def test_aura_follows_dominant_stat(self, services, hero):
        services.progression.grant_xp(hero, "journal", "write", "j1", "WIS", 250)
        character = services.progression.get_character(hero)
        assert character.aura_color == STAT_COLORS[StatType.WIS]

    def test_secondary_stats_grow(self, services, hero):
        before = services.progression.get_secondary_stats(hero)
        services.progression.grant_xp(hero, "workout", "pr", "p1", "STR", 100)
        after = services.progression.get_secondary_stats(hero)
        assert after.hp == before.hp + 3

    def test_level_up_event(self, services, hero, bus):
        seen = []
        bus.subscribe(EventTypes.CHARACTER_LEVELED_UP, seen.append)
        services.progression.grant_xp(hero, "m", "a", "big", "STR", 1000)
        assert len(seen) == 1
        assert seen[0].data["new_level"] == 4
        assert seen[0].data["perk_points_earned"] == 3

    def test_failed_delivery_keeps_nothing(self, services, hero, bus, db):
        def broken(event):
            raise RuntimeError("notifier down")

        bus.subscribe(EventTypes.CHARACTER_LEVELED_UP, broken)
        with pytest.raises(EventDeliveryError):
            services.progression.grant_xp(hero, "m", "a", "big", "STR", 1000)

        assert services.progression.get_character(hero).total_xp == 0
        assert db.query(XpEventModel).filter_by(character_id=hero).count() == 0

        bus.unsubscribe(EventTypes.CHARACTER_LEVELED_UP, broken)
        result = services.progression.grant_xp(hero, "m", "a", "big", "STR", 1000)
        assert not result.duplicate
        assert result.new_level == 4


class TestActivityXp:
    def test_uses_reward_table(self, services, hero):
        result = services.progression.grant_activity_xp(
            hero, "workout", "complete_workout", "session-1"
        )
        assert result.xp_granted == 75
        tracks = {t.stat: t.total_xp for t in services.progression.get_stat_tracks(hero)}
        assert tracks[StatType.STR] == 50
        assert tracks[StatType.END] == 25

    def test_unmapped_activity(self, services, hero):
        with pytest.raises(InvalidInputError):
            services.progression.grant_activity_xp(hero, "workout", "nap", "x")


class TestAchievements:
    def test_unlocked_once(self, services, hero):
        first = services.progression.unlock_achievement(hero, "First Blood", "Win a battle")
        assert first is not None
        assert services.progression.unlock_achievement(hero, "First Blood") is None
        assert [a.name for a in services.progression.get_achievements(hero)] == ["First Blood"]
        log = services.log.get_recent_log(hero, log_type=LogType.ACHIEVEMENT)
        assert len(log) == 1

    def test_blank_name(self, services, hero):
        with pytest.raises(InvalidInputError):
            services.progression.unlock_achievement(hero, "")
