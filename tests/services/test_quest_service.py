"""QuestService integration tests"""

import threading
from datetime import date
from unittest.mock import MagicMock

import pytest

from lifequest.core.activity_log import LogType
from lifequest.core.errors import EventDeliveryError, InvalidInputError, NotFoundError
from lifequest.core.event_bus import GameEvent
from lifequest.core.event_types import EventTypes
from lifequest.core.progression.enums import StatType
from lifequest.core.quest.enums import QuestlineStatus, QuestScope, QuestStatus
from lifequest.db.models import XpEventModel

TODAY = date(2026, 3, 4)


class TestGeneration:
    def test_daily_generation_is_idempotent(self, services, hero):
        created = services.quests.generate_daily_quests(hero)
        assert len(created) == 7
        assert {q.period_key for q in created} == {"2026-03-04"}
        assert all(q.status == QuestStatus.PENDING for q in created)

        services.quests.progress_quest(hero, "mobility", "complete_session")
        assert services.quests.generate_daily_quests(hero, TODAY) == []

        quests = services.quests.get_quests(hero, QuestScope.DAILY)
        assert len(quests) == 7
        mobility = next(q for q in quests if q.catalog_id == "body_maintenance")
        assert mobility.status == QuestStatus.COMPLETED

    def test_weekly_key_is_monday(self, services, hero):
        created = services.quests.generate_weekly_quests(hero, TODAY)
        assert len(created) == 5
        assert {q.period_key for q in created} == {"2026-03-02"}
        assert services.quests.generate_weekly_quests(hero, date(2026, 3, 8)) == []

    def test_new_period_expires_earlier_pending(self, services, hero):
        services.quests.generate_daily_quests(hero, TODAY)
        services.quests.progress_quest(hero, "journal", "write_entry")
        services.quests.generate_daily_quests(hero, date(2026, 3, 5))

        old = [q for q in services.quests.get_quests(hero, "daily") if q.period_key == "2026-03-04"]
        statuses = {q.catalog_id: q.status for q in old}
        assert statuses["daily_reflection"] == QuestStatus.COMPLETED
        assert statuses["morning_discipline"] == QuestStatus.EXPIRED
        assert len(services.quests.get_quests(hero, "daily", "pending")) == 7

    def test_regenerating_earlier_day_leaves_later_alone(self, services, hero):
        services.quests.generate_daily_quests(hero, date(2026, 3, 5))
        services.quests.generate_daily_quests(hero, TODAY)
        later = [q for q in services.quests.get_quests(hero, "daily") if q.period_key == "2026-03-05"]
        assert all(q.status == QuestStatus.PENDING for q in later)

    def test_unknown_character(self, services):
        with pytest.raises(NotFoundError):
            services.quests.generate_daily_quests("ghost")


class TestProgress:
    def test_completion_grants_reward_xp(self, services, hero, db):
        services.quests.generate_daily_quests(hero)
        results = services.quests.progress_quest(hero, "workout", "complete_workout")

        assert len(results) == 1
        assert results[0].completed
        assert results[0].quest.current_count == 1

        character = services.progression.get_character(hero)
        assert character.total_xp == 150
        assert character.level == 2

        actions = {
            e.source_action
            for e in db.query(XpEventModel).filter_by(source_module="quest").all()
        }
        assert actions == {"complete:STR", "complete:DIS"}

        log_types = [e.log_type for e in services.log.get_recent_log(hero)]
        assert LogType.QUEST_COMPLETE in log_types
        assert LogType.LEVEL_UP in log_types

    def test_completion_published_once(self, services, hero, bus):
        handler = MagicMock()
        bus.subscribe(EventTypes.QUEST_COMPLETED, handler)
        services.quests.generate_daily_quests(hero)
        services.quests.progress_quest(hero, "prayer", "log_prayer")
        services.quests.progress_quest(hero, "prayer", "log_prayer")

        handler.assert_called_once()
        event = handler.call_args[0][0]
        assert event.data["catalog_id"] == "morning_offering"
        assert event.data["xp_reward"] == {"FAI": 100}

    def test_count_clamps_and_completes_once(self, services, hero):
        services.quests.generate_weekly_quests(hero)
        for _ in range(7):
            services.quests.progress_quest(hero, "workout", "complete_workout")

        iron = next(
            q for q in services.quests.get_quests(hero, "weekly") if q.catalog_id == "iron_week"
        )
        assert iron.current_count == 5
        assert iron.status == QuestStatus.COMPLETED
        tracks = {t.stat: t.total_xp for t in services.progression.get_stat_tracks(hero)}
        assert tracks[StatType.STR] == 500

    def test_progress_hits_daily_and_weekly(self, services, hero):
        services.quests.generate_daily_quests(hero)
        services.quests.generate_weekly_quests(hero)
        results = services.quests.progress_quest(hero, "workout", "complete_workout")
        assert {r.quest.catalog_id for r in results} == {"morning_discipline", "iron_week"}
        assert [r.completed for r in results if r.quest.catalog_id == "iron_week"] == [False]

    def test_no_match_is_empty(self, services, hero):
        services.quests.generate_daily_quests(hero)
        assert services.quests.progress_quest(hero, "workout", "stretch") == []

    def test_blank_source_rejected(self, services, hero):
        with pytest.raises(InvalidInputError):
            services.quests.progress_quest(hero, "", "complete_workout")


class TestDeliveryFailures:
    def test_failing_subscriber_rolls_back_completion(self, services, hero, bus):
        services.quests.generate_daily_quests(hero)

        def broken(event):
            raise RuntimeError("reward ledger unavailable")

        bus.subscribe(EventTypes.QUEST_COMPLETED, broken)
        with pytest.raises(EventDeliveryError):
            services.quests.progress_quest(hero, "workout", "complete_workout")

        quest = next(
            q
            for q in services.quests.get_quests(hero, "daily")
            if q.catalog_id == "morning_discipline"
        )
        assert quest.status == QuestStatus.PENDING
        assert quest.current_count == 0
        assert services.progression.get_character(hero).total_xp == 0
        log_types = [e.log_type for e in services.log.get_recent_log(hero)]
        assert LogType.QUEST_COMPLETE not in log_types

        bus.unsubscribe(EventTypes.QUEST_COMPLETED, broken)
        results = services.quests.progress_quest(hero, "workout", "complete_workout")
        assert results[0].completed
        assert services.progression.get_character(hero).total_xp == 150

    def test_reward_survives_chains_parked_on_other_threads(self, services, hero, bus):
        services.quests.generate_daily_quests(hero)
        release = threading.Event()
        entered = threading.Semaphore(0)

        def parked(event):
            entered.release()
            release.wait(timeout=5)

        bus.subscribe("sync_pending", parked)
        threads = [
            threading.Thread(
                target=bus.emit,
                args=(GameEvent("sync_pending", {}, "sync", str(n)),),
            )
            for n in range(5)
        ]
        for t in threads:
            t.start()
        try:
            for _ in threads:
                assert entered.acquire(timeout=5)
            results = services.quests.progress_quest(hero, "workout", "complete_workout")
        finally:
            release.set()
            for t in threads:
                t.join(timeout=5)

        assert results[0].completed
        character = services.progression.get_character(hero)
        assert character.total_xp == 150
        assert character.level == 2


class TestQuestlines:
    def test_start_is_idempotent(self, services, hero):
        first = services.quests.start_questline(hero, "iron_path")
        again = services.quests.start_questline(hero, "iron_path")
        assert first.current_step == again.current_step == 0
        assert len(services.quests.get_questlines(hero)) == 1

    def test_manual_advance_to_completion(self, services, hero):
        services.quests.start_questline(hero, "iron_path")
        for _ in range(3):
            result = services.quests.advance_questline(hero, "iron_path")
        assert result.completed
        assert result.questline.status == QuestlineStatus.COMPLETED

        tracks = {t.stat: t.total_xp for t in services.progression.get_stat_tracks(hero)}
        assert tracks[StatType.STR] == 750
        assert tracks[StatType.END] == 250

        extra = services.quests.advance_questline(hero, "iron_path")
        assert not extra.advanced
        assert extra.questline.current_step == 3

    def test_trigger_advances_started_questline(self, services, hero):
        services.quests.start_questline(hero, "order_from_chaos")
        services.quests.generate_daily_quests(hero)
        results = services.quests.progress_quest(hero, "tasks", "complete_all_top3")

        updates = results[0].questline_updates
        assert len(updates) == 1
        assert updates[0].questline.questline_id == "order_from_chaos"
        assert updates[0].questline.current_step == 1

    def test_trigger_ignores_unstarted_questline(self, services, hero):
        services.quests.generate_daily_quests(hero)
        results = services.quests.progress_quest(hero, "tasks", "complete_all_top3")
        assert results[0].questline_updates == ()
        assert services.quests.get_questlines(hero) == []

    def test_advance_requires_start(self, services, hero):
        with pytest.raises(NotFoundError):
            services.quests.advance_questline(hero, "iron_path")

    def test_unknown_questline(self, services, hero):
        with pytest.raises(InvalidInputError):
            services.quests.start_questline(hero, "no_such_line")
