"""Activity reward table tests"""

import json

import pytest

from lifequest.core.errors import CatalogError
from lifequest.core.progression.activity import ActivityCatalog
from lifequest.core.progression.enums import StatType
from lifequest.core.progression.models import ActivityReward


def test_shipped_catalog(catalogs):
    reward = catalogs.activities.get("workout", "complete_workout")
    assert reward.primary_stat == StatType.STR
    assert reward.primary_xp == 50
    assert reward.secondary_stat == StatType.END
    assert reward.secondary_xp == 25
    assert catalogs.activities.get("workout", "nap") is None


def test_load_from_json(tmp_path):
    path = tmp_path / "activities.json"
    path.write_text(
        json.dumps(
            [{"module": "journal", "action": "write", "primary_stat": "WIS", "primary_xp": 5}]
        )
    )
    catalog = ActivityCatalog()
    assert catalog.load_from_json(path) == 1
    assert catalog.get("journal", "write").secondary_stat is None


def test_unknown_stat_is_catalog_error(tmp_path):
    path = tmp_path / "activities.json"
    path.write_text(
        json.dumps([{"module": "m", "action": "a", "primary_stat": "LUCK", "primary_xp": 1}])
    )
    with pytest.raises(CatalogError):
        ActivityCatalog().load_from_json(path)


def test_duplicate_rejected():
    catalog = ActivityCatalog()
    reward = ActivityReward("m", "a", StatType.STR, 10)
    catalog.register(reward)
    with pytest.raises(CatalogError):
        catalog.register(reward)


def test_negative_xp_rejected():
    with pytest.raises(CatalogError):
        ActivityCatalog().register(ActivityReward("m", "a", StatType.STR, -1))
