"""XP curve tests"""

import random

import pytest

from lifequest.core.errors import InvalidInputError
from lifequest.core.progression.curve import (
    CHARACTER_LEVEL_CAP,
    STAT_LEVEL_CAP,
    level_from_xp,
    stat_level_from_xp,
    stat_xp_required,
    total_stat_xp_for_level,
    total_xp_for_level,
    xp_required_for_level,
)


class TestCharacterCurve:
    def test_zero_xp_is_level_one(self):
        info = level_from_xp(0)
        assert info.level == 1
        assert info.current_level_xp == 0
        assert info.next_level_xp == 100

    def test_requirements(self):
        assert xp_required_for_level(1) == 100
        assert xp_required_for_level(2) == 282
        assert xp_required_for_level(3) == 519
        assert xp_required_for_level(4) == 800

    def test_threshold_boundaries(self):
        assert level_from_xp(99).level == 1
        assert level_from_xp(100).level == 2
        assert level_from_xp(381).level == 2
        assert level_from_xp(382).level == 3
        assert level_from_xp(1701).level == 5

    def test_current_level_xp(self):
        info = level_from_xp(150)
        assert info.level == 2
        assert info.current_level_xp == 50
        assert info.next_level_xp == 282
        assert info.progress == pytest.approx(50 / 282)

    def test_total_xp_for_level_round_trips(self):
        for level in (1, 2, 5, 17, 60):
            assert level_from_xp(total_xp_for_level(level)).level == level

    def test_cap(self):
        info = level_from_xp(total_xp_for_level(CHARACTER_LEVEL_CAP) + 10**6)
        assert info.level == CHARACTER_LEVEL_CAP
        assert info.at_cap
        assert info.next_level_xp == 0
        assert info.current_level_xp == 0
        assert info.progress == 1.0

    def test_negative_xp_rejected(self):
        with pytest.raises(InvalidInputError):
            level_from_xp(-1)


class TestStatCurve:
    def test_segments(self):
        assert stat_xp_required(1) == 100
        assert stat_xp_required(2) == 120
        assert stat_xp_required(20) == 480
        assert stat_xp_required(21) == 550

    def test_levels(self):
        assert stat_level_from_xp(0).level == 1
        assert stat_level_from_xp(100).level == 2
        assert stat_level_from_xp(219).level == 2
        assert stat_level_from_xp(220).level == 3

    def test_cap(self):
        info = stat_level_from_xp(total_stat_xp_for_level(STAT_LEVEL_CAP))
        assert info.level == STAT_LEVEL_CAP
        assert info.at_cap

    def test_negative_xp_rejected(self):
        with pytest.raises(InvalidInputError):
            stat_level_from_xp(-5)


class TestCurveProperties:
    def test_monotonic_over_random_pairs(self):
        rng = random.Random(1234)
        for _ in range(500):
            a = rng.randint(0, 2_000_000)
            b = rng.randint(0, 2_000_000)
            lo, hi = min(a, b), max(a, b)
            assert level_from_xp(lo).level <= level_from_xp(hi).level
            assert stat_level_from_xp(lo).level <= stat_level_from_xp(hi).level

    def test_deterministic(self):
        rng = random.Random(99)
        for _ in range(100):
            xp = rng.randint(0, 500_000)
            assert level_from_xp(xp) == level_from_xp(xp)
            assert stat_level_from_xp(xp) == stat_level_from_xp(xp)

    def test_progress_within_bounds(self):
        for xp in range(0, 5000, 37):
            assert 0.0 <= level_from_xp(xp).progress < 1.0
