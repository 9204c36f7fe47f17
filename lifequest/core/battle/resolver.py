"""Turn resolution.

The character always acts first. If that drops the enemy to 0 HP the enemy
never counters, so a turn can end in victory or defeat but never both.
"""

from typing import Mapping

from lifequest.core.errors import (
    EncounterNotActiveError,
    EncounterResolvedError,
    InsufficientEnergyError,
)
from lifequest.core.progression.enums import StatType
from lifequest.core.progression.models import SecondaryStats

from . import combat
from .enums import BattleAction, EncounterStatus
from .models import Encounter, EnemyDefinition, TurnOutcome


def ensure_active(encounter: Encounter) -> None:
    if encounter.status.is_terminal:
        raise EncounterResolvedError(
            f"Encounter {encounter.encounter_id} is already resolved "
            f"({encounter.status.value})",
            details={"status": encounter.status.value},
        )
    if encounter.status != EncounterStatus.ACTIVE:
        raise EncounterNotActiveError(
            f"Encounter {encounter.encounter_id} is not active "
            f"({encounter.status.value})",
            details={"status": encounter.status.value},
        )


def resolve_turn(
    encounter: Encounter,
    enemy: EnemyDefinition,
    action: BattleAction,
    draw: float,
    stat_levels: Mapping[StatType, int],
    character_level: int,
    secondary: SecondaryStats,
    equipped_truths: int = 0,
) -> TurnOutcome:
    """Compute one turn without touching the encounter."""
    ensure_active(encounter)
    combat.validate_draw(draw)

    primary = stat_levels.get(enemy.primary_stat, 0)
    dealt = 0
    healed = 0
    energy_delta = 0
    is_crit = False

    if action == BattleAction.ATTACK:
        dealt, is_crit = combat.player_attack_damage(
            primary,
            character_level,
            encounter.enemy_defense,
            secondary.crit,
            draw,
        )
    elif action == BattleAction.DEFEND:
        energy_delta = combat.DEFEND_ENERGY_RECOVERY
    elif action == BattleAction.SKILL:
        if encounter.character_energy < combat.SKILL_ENERGY_COST:
            raise InsufficientEnergyError(
                f"Skill needs {combat.SKILL_ENERGY_COST} energy, "
                f"have {encounter.character_energy}",
                details={
                    "required": combat.SKILL_ENERGY_COST,
                    "available": encounter.character_energy,
                },
            )
        dealt = combat.skill_damage(primary)
        energy_delta = -combat.SKILL_ENERGY_COST
    elif action == BattleAction.TRUTH:
        dealt = combat.truth_damage(stat_levels.get(StatType.WIS, 0), equipped_truths)
        healed = combat.truth_heal(stat_levels.get(StatType.FAI, 0))

    enemy_hp = max(0, encounter.enemy_hp - dealt)
    character_hp = min(encounter.character_max_hp, encounter.character_hp + healed)
    energy = max(
        0,
        min(encounter.character_max_energy, encounter.character_energy + energy_delta),
    )

    # actor first: a felled enemy does not counter
    if enemy_hp == 0:
        return TurnOutcome(
            damage_dealt=dealt,
            damage_taken=0,
            healed=healed,
            energy_delta=energy_delta,
            is_crit=is_crit,
            enemy_move=None,
            character_hp_after=character_hp,
            enemy_hp_after=0,
            character_energy_after=energy,
            next_pattern_index=encounter.pattern_index,
            victory=True,
            defeat=False,
        )

    move, next_index = combat.enemy_move(enemy.pattern, encounter.pattern_index)
    taken = 0
    if not combat.is_passive_move(move):
        taken = combat.enemy_attack_damage(encounter.enemy_power, secondary.resistance)
        if action == BattleAction.DEFEND:
            taken = int(taken * combat.DEFEND_DAMAGE_FACTOR)
    character_hp = max(0, character_hp - taken)

    return TurnOutcome(
        damage_dealt=dealt,
        damage_taken=taken,
        healed=healed,
        energy_delta=energy_delta,
        is_crit=is_crit,
        enemy_move=move,
        character_hp_after=character_hp,
        enemy_hp_after=enemy_hp,
        character_energy_after=energy,
        next_pattern_index=next_index,
        victory=False,
        defeat=character_hp == 0,
    )
