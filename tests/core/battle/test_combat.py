"""Combat formula tests"""

import pytest

from lifequest.core.battle import combat
from lifequest.core.battle.enums import Difficulty
from lifequest.core.battle.models import EnemyDefinition
from lifequest.core.errors import InvalidInputError
from lifequest.core.progression.enums import StatType


def _enemy(**overrides) -> EnemyDefinition:
    fields = dict(
        enemy_id="e",
        name="E",
        theme="",
        primary_stat=StatType.DIS,
        secondary_stat=StatType.FOC,
        difficulty=Difficulty.EASY,
        base_hp=60,
        base_power=12,
        base_defense=4,
        pattern=("attack",),
        xp_reward=50,
    )
    fields.update(overrides)
    return EnemyDefinition(**fields)


class TestScaling:
    def test_level_one_is_base(self):
        scaled = combat.scale_enemy(_enemy(), 1)
        assert (scaled.hp, scaled.power, scaled.defense) == (60, 12, 4)

    def test_five_percent_per_level(self):
        scaled = combat.scale_enemy(_enemy(), 11)
        assert (scaled.hp, scaled.power, scaled.defense) == (90, 18, 6)


class TestPlayerDamage:
    def test_floor_of_one(self):
        damage, crit = combat.player_attack_damage(1, 1, 50, 0, 0.5)
        assert damage == 1
        assert crit is False

    def test_formula(self):
        # floor(10*1.5 + 4*0.5 - 3) = 14
        assert combat.player_attack_damage(10, 4, 3, 5.0, 0.99) == (14, False)

    def test_crit(self):
        assert combat.player_attack_damage(10, 4, 3, 5.0, 0.04) == (21, True)
        assert combat.is_critical(5.0, 0.05) is False

    def test_skill_and_truth(self):
        assert combat.skill_damage(7) == 14
        assert combat.truth_damage(10, 0) == 15
        assert combat.truth_damage(10, 3) == 22
        assert combat.truth_heal(5) == 2


class TestEnemy:
    def test_attack_damage(self):
        assert combat.enemy_attack_damage(12, 14) == 7
        assert combat.enemy_attack_damage(3, 100) == 1

    def test_pattern_cycles(self):
        pattern = ("attack", "rest")
        assert combat.enemy_move(pattern, 0) == ("attack", 1)
        assert combat.enemy_move(pattern, 1) == ("rest", 0)
        assert combat.is_passive_move("rest")
        assert combat.is_passive_move("regrow")
        assert not combat.is_passive_move("drain")


@pytest.mark.parametrize("draw", [-0.1, 1.0, 1.5])
def test_draw_out_of_range(draw):
    with pytest.raises(InvalidInputError):
        combat.validate_draw(draw)
