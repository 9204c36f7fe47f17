"""Turn resolution tests"""

import pytest

from lifequest.core.battle.enums import BattleAction, Difficulty, EncounterStatus
from lifequest.core.battle.models import Encounter, EnemyDefinition
from lifequest.core.battle.resolver import ensure_active, resolve_turn
from lifequest.core.errors import (
    EncounterNotActiveError,
    EncounterResolvedError,
    InsufficientEnergyError,
    InvalidInputError,
)
from lifequest.core.progression.enums import ALL_STATS, StatType
from lifequest.core.progression.secondary import compute_secondary_stats

LEVELS = {stat: 1 for stat in ALL_STATS}
SECONDARY = compute_secondary_stats(LEVELS)  # crit 5.8, resistance 14


def _enemy(pattern=("attack",), power=20) -> EnemyDefinition:
    return EnemyDefinition(
        enemy_id="dummy",
        name="Dummy",
        theme="",
        primary_stat=StatType.STR,
        secondary_stat=StatType.END,
        difficulty=Difficulty.EASY,
        base_hp=50,
        base_power=power,
        base_defense=0,
        pattern=pattern,
        xp_reward=10,
    )


def _encounter(enemy_hp=50, hp=106, energy=53, power=20, status=EncounterStatus.ACTIVE):
    return Encounter(
        encounter_id="enc",
        character_id="c",
        enemy_id="dummy",
        enemy_name="Dummy",
        difficulty=Difficulty.EASY,
        enemy_hp=enemy_hp,
        enemy_max_hp=50,
        enemy_power=power,
        enemy_defense=0,
        status=status,
        character_hp=hp,
        character_max_hp=106,
        character_energy=energy,
        character_max_energy=53,
    )


class TestEnsureActive:
    def test_pending(self):
        with pytest.raises(EncounterNotActiveError):
            ensure_active(_encounter(status=EncounterStatus.PENDING))

    @pytest.mark.parametrize("status", [EncounterStatus.VICTORY, EncounterStatus.DEFEAT])
    def test_resolved(self, status):
        with pytest.raises(EncounterResolvedError):
            ensure_active(_encounter(status=status))


class TestActions:
    def test_attack_then_counter(self):
        out = resolve_turn(_encounter(), _enemy(), BattleAction.ATTACK, 0.9, LEVELS, 1, SECONDARY)
        # floor(1.5 + 0.5 - 0) = 2; counter floor(20 - 4.2) = 15
        assert out.damage_dealt == 2
        assert out.enemy_hp_after == 48
        assert out.enemy_move == "attack"
        assert out.damage_taken == 15
        assert out.character_hp_after == 91
        assert out.next_pattern_index == 0
        assert not out.victory and not out.defeat

    def test_crit_draw(self):
        out = resolve_turn(_encounter(), _enemy(), BattleAction.ATTACK, 0.0, LEVELS, 1, SECONDARY)
        assert out.is_crit
        assert out.damage_dealt == 3
        assert "crit" in out.flags

    def test_defend_halves_and_recovers(self):
        out = resolve_turn(
            _encounter(energy=40), _enemy(), BattleAction.DEFEND, 0.5, LEVELS, 1, SECONDARY
        )
        assert out.damage_dealt == 0
        assert out.damage_taken == 7
        assert out.character_energy_after == 45

    def test_defend_energy_capped(self):
        out = resolve_turn(_encounter(), _enemy(), BattleAction.DEFEND, 0.5, LEVELS, 1, SECONDARY)
        assert out.character_energy_after == 53

    def test_skill_costs_energy(self):
        out = resolve_turn(_encounter(), _enemy(), BattleAction.SKILL, 0.5, LEVELS, 1, SECONDARY)
        assert out.damage_dealt == 2
        assert out.character_energy_after == 38

    def test_skill_without_energy(self):
        with pytest.raises(InsufficientEnergyError):
            resolve_turn(
                _encounter(energy=14), _enemy(), BattleAction.SKILL, 0.5, LEVELS, 1, SECONDARY
            )

    def test_truth_heals(self):
        levels = {**LEVELS, StatType.WIS: 4, StatType.FAI: 6}
        out = resolve_turn(
            _encounter(hp=50), _enemy(pattern=("rest",)), BattleAction.TRUTH, 0.5,
            levels, 1, SECONDARY, equipped_truths=2,
        )
        assert out.damage_dealt == 8
        assert out.healed == 3
        assert out.damage_taken == 0
        assert out.character_hp_after == 53
        assert "healed" in out.flags

    def test_passive_move_deals_nothing(self):
        out = resolve_turn(
            _encounter(), _enemy(pattern=("regrow", "attack")), BattleAction.ATTACK,
            0.5, LEVELS, 1, SECONDARY,
        )
        assert out.enemy_move == "regrow"
        assert out.damage_taken == 0
        assert out.next_pattern_index == 1


class TestOutcomes:
    def test_felled_enemy_does_not_counter(self):
        out = resolve_turn(
            _encounter(enemy_hp=2, hp=1), _enemy(), BattleAction.ATTACK, 0.9, LEVELS, 1, SECONDARY
        )
        assert out.victory
        assert not out.defeat
        assert out.enemy_move is None
        assert out.damage_taken == 0
        assert out.character_hp_after == 1

    def test_defeat(self):
        out = resolve_turn(
            _encounter(hp=10), _enemy(), BattleAction.ATTACK, 0.9, LEVELS, 1, SECONDARY
        )
        assert out.defeat
        assert out.character_hp_after == 0

    def test_bad_draw(self):
        with pytest.raises(InvalidInputError):
            resolve_turn(_encounter(), _enemy(), BattleAction.ATTACK, 1.0, LEVELS, 1, SECONDARY)
