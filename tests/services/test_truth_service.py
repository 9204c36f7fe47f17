"""TruthService integration tests"""

import random

import pytest

from lifequest.core.activity_log import LogType
from lifequest.core.errors import EquipSlotsFullError, InvalidInputError, NotFoundError
from lifequest.core.event_types import EventTypes


def _collect(services, hero, n):
    return [
        services.truths.collect_truth(hero, f"Truth number {i}", f"entry-{i}", "patience")
        for i in range(n)
    ]


class TestCollect:
    def test_collected_unequipped(self, services, hero, bus):
        seen = []
        bus.subscribe(EventTypes.TRUTH_COLLECTED, seen.append)
        truth = services.truths.collect_truth(hero, "  Rest is part of the work ", "j-1", "rest")

        assert truth.text == "Rest is part of the work"
        assert not truth.equipped
        assert truth.battle_power == 1
        assert "rest" in truth.battle_effect
        assert seen[0].data["truth_id"] == truth.truth_id

        loot = services.log.get_recent_log(hero, log_type=LogType.LOOT)
        assert loot[0].data == {"truth_id": truth.truth_id, "theme": "rest"}

    def test_blank_text_rejected(self, services, hero):
        with pytest.raises(InvalidInputError):
            services.truths.collect_truth(hero, "   ", theme="rest")
        assert services.truths.get_truths(hero) == []

    def test_unknown_character(self, services):
        with pytest.raises(NotFoundError):
            services.truths.collect_truth("ghost", "text", theme="rest")


class TestEquip:
    def test_fourth_equip_needs_free_slot(self, services, hero):
        truths = _collect(services, hero, 4)
        for t in truths[:3]:
            services.truths.toggle_truth_equip(t.truth_id, True)

        with pytest.raises(EquipSlotsFullError):
            services.truths.toggle_truth_equip(truths[3].truth_id, True)
        assert len(services.truths.get_equipped_truths(hero)) == 3

        services.truths.toggle_truth_equip(truths[0].truth_id, False)
        services.truths.toggle_truth_equip(truths[3].truth_id, True)
        equipped = {t.truth_id for t in services.truths.get_equipped_truths(hero)}
        assert equipped == {truths[1].truth_id, truths[2].truth_id, truths[3].truth_id}

    def test_reequip_is_noop_when_full(self, services, hero):
        truths = _collect(services, hero, 3)
        for t in truths:
            services.truths.toggle_truth_equip(t.truth_id, True)
        again = services.truths.toggle_truth_equip(truths[0].truth_id, True)
        assert again.equipped

    @pytest.mark.parametrize("seed", [3, 17, 2026])
    def test_random_toggles_never_exceed_three(self, services, hero, seed):
        rng = random.Random(seed)
        truths = _collect(services, hero, 6)
        expected: set[str] = set()
        for _ in range(60):
            truth = rng.choice(truths)
            equip = rng.random() < 0.6
            try:
                services.truths.toggle_truth_equip(truth.truth_id, equip)
            except EquipSlotsFullError:
                assert len(expected) == 3
                assert truth.truth_id not in expected
            else:
                if equip:
                    expected.add(truth.truth_id)
                else:
                    expected.discard(truth.truth_id)

            equipped = {t.truth_id for t in services.truths.get_equipped_truths(hero)}
            assert len(equipped) <= 3
            assert equipped == expected

    def test_unknown_truth(self, services):
        with pytest.raises(NotFoundError):
            services.truths.toggle_truth_equip("truth_missing", True)
