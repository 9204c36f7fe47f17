"""LogService tests"""

from datetime import timedelta

import pytest

from lifequest.core.activity_log import LogType
from lifequest.core.errors import InvalidInputError, NotFoundError


class TestRecentLog:
    def test_newest_first(self, services, hero, clock):
        services.progression.unlock_achievement(hero, "First")
        clock.advance(timedelta(minutes=5))
        services.progression.unlock_achievement(hero, "Second")
        clock.advance(timedelta(minutes=5))
        services.truths.collect_truth(hero, "Third", theme="order")

        titles = [e.title for e in services.log.get_recent_log(hero)]
        assert titles == ["Truth collected", "Second", "First"]

    def test_same_timestamp_falls_back_to_insert_order(self, services, hero):
        services.progression.unlock_achievement(hero, "Alpha")
        services.progression.unlock_achievement(hero, "Beta")
        entries = services.log.get_recent_log(hero)
        assert entries[0].title == "Beta"
        assert entries[0].entry_id > entries[1].entry_id

    def test_limit_and_filter(self, services, hero):
        for i in range(5):
            services.progression.unlock_achievement(hero, f"A{i}")
        services.truths.collect_truth(hero, "x", theme="y")

        assert len(services.log.get_recent_log(hero, limit=2)) == 2
        achievements = services.log.get_recent_log(hero, log_type="achievement")
        assert len(achievements) == 5
        assert all(e.log_type == LogType.ACHIEVEMENT for e in achievements)

    def test_invalid_arguments(self, services, hero):
        with pytest.raises(InvalidInputError):
            services.log.get_recent_log(hero, limit=0)
        with pytest.raises(InvalidInputError):
            services.log.get_recent_log(hero, log_type="gossip")
        with pytest.raises(NotFoundError):
            services.log.get_recent_log("ghost")
