"""Combat formulas. All pure; randomness enters only as a draw in [0, 1)."""

import math

from lifequest.core.errors import InvalidInputError

from .enums import PASSIVE_MOVES
from .models import EnemyDefinition, ScaledEnemy

CRIT_MULTIPLIER = 1.5
ENEMY_SCALE_PER_LEVEL = 0.05
RESISTANCE_MITIGATION = 0.3
DEFEND_DAMAGE_FACTOR = 0.5
DEFEND_ENERGY_RECOVERY = 5
SKILL_ENERGY_COST = 15
SKILL_DAMAGE_FACTOR = 2.0
TRUTH_BASE_FACTOR = 1.5
TRUTH_FACTOR_PER_EQUIPPED = 0.25
TRUTH_HEAL_FACTOR = 0.5


def validate_draw(draw: float) -> float:
    if not 0.0 <= draw < 1.0:
        raise InvalidInputError(f"Random draw must be in [0, 1), got {draw}")
    return draw


def scale_enemy(enemy: EnemyDefinition, character_level: int) -> ScaledEnemy:
    """+5% hp/power/defense per character level above 1."""
    scale = 1 + (max(1, character_level) - 1) * ENEMY_SCALE_PER_LEVEL
    return ScaledEnemy(
        hp=math.floor(enemy.base_hp * scale),
        power=math.floor(enemy.base_power * scale),
        defense=math.floor(enemy.base_defense * scale),
    )


def is_critical(crit_chance: float, draw: float) -> bool:
    return draw * 100 < crit_chance


def player_attack_damage(
    primary_stat_level: int,
    character_level: int,
    enemy_defense: int,
    crit_chance: float,
    draw: float,
) -> tuple[int, bool]:
    """Basic attack. Returns (damage, is_crit); never below 1."""
    base = max(
        1,
        math.floor(primary_stat_level * 1.5 + character_level * 0.5 - enemy_defense),
    )
    crit = is_critical(crit_chance, draw)
    if crit:
        return math.floor(base * CRIT_MULTIPLIER), True
    return base, False


def skill_damage(primary_stat_level: int) -> int:
    return max(1, math.floor(primary_stat_level * SKILL_DAMAGE_FACTOR))


def truth_damage(wisdom_level: int, equipped_truths: int) -> int:
    factor = TRUTH_BASE_FACTOR + TRUTH_FACTOR_PER_EQUIPPED * equipped_truths
    return max(1, math.floor(wisdom_level * factor))


def truth_heal(faith_level: int) -> int:
    return math.floor(faith_level * TRUTH_HEAL_FACTOR)


def enemy_attack_damage(enemy_power: int, resistance: float) -> int:
    """Enemy hit after resistance mitigation; never below 1."""
    return max(1, math.floor(enemy_power - resistance * RESISTANCE_MITIGATION))


def enemy_move(pattern: tuple[str, ...], pattern_index: int) -> tuple[str, int]:
    """Next move from the cycle and the index after it."""
    move = pattern[pattern_index % len(pattern)]
    return move, (pattern_index + 1) % len(pattern)


def is_passive_move(move: str) -> bool:
    return move in PASSIVE_MOVES
