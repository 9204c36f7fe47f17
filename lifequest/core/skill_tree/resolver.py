"""Perk eligibility - pure functions over the unlocked set.

Check order for an unlock attempt:
1. already unlocked     -> AlreadyUnlockedError
2. requirements unmet   -> PrerequisiteNotMetError (all reasons listed)
3. no perk point left   -> InsufficientPointsError
"""

from typing import AbstractSet, Mapping

from lifequest.core.errors import (
    AlreadyUnlockedError,
    InsufficientPointsError,
    PrerequisiteNotMetError,
)
from lifequest.core.progression.enums import StatType

from .models import PerkDefinition, PerkState, PerkView, SkillTreeDefinition


def unmet_requirements(
    perk: PerkDefinition,
    unlocked: AbstractSet[int],
    character_level: int,
    stat_levels: Mapping[StatType, int],
) -> list[str]:
    """Human-readable list of every requirement the character misses."""
    unmet: list[str] = []
    req = perk.requirement
    for number in req.perks:
        if number not in unlocked:
            unmet.append(f"perk #{number}")
    if character_level < req.min_level:
        unmet.append(f"level {req.min_level}")
    for stat, threshold in req.min_stats.items():
        if stat_levels.get(stat, 0) < threshold:
            unmet.append(f"{stat.value} {threshold}")
    return unmet


def perk_state(
    perk: PerkDefinition,
    unlocked: AbstractSet[int],
    character_level: int,
    stat_levels: Mapping[StatType, int],
) -> PerkState:
    if perk.number in unlocked:
        return PerkState.UNLOCKED
    if unmet_requirements(perk, unlocked, character_level, stat_levels):
        return PerkState.LOCKED
    return PerkState.AVAILABLE


def describe_tree(
    tree: SkillTreeDefinition,
    unlocked: AbstractSet[int],
    character_level: int,
    stat_levels: Mapping[StatType, int],
) -> list[PerkView]:
    views = []
    for perk in tree.perks:
        unmet = ()
        if perk.number not in unlocked:
            unmet = tuple(
                unmet_requirements(perk, unlocked, character_level, stat_levels)
            )
        views.append(
            PerkView(
                perk=perk,
                state=perk_state(perk, unlocked, character_level, stat_levels),
                unmet=unmet,
            )
        )
    return views


def available_perks(
    tree: SkillTreeDefinition,
    unlocked: AbstractSet[int],
    character_level: int,
    stat_levels: Mapping[StatType, int],
) -> list[PerkDefinition]:
    return [
        p
        for p in tree.perks
        if perk_state(p, unlocked, character_level, stat_levels)
        == PerkState.AVAILABLE
    ]


def check_unlock(
    tree: SkillTreeDefinition,
    perk: PerkDefinition,
    unlocked: AbstractSet[int],
    character_level: int,
    stat_levels: Mapping[StatType, int],
    points_available: int,
) -> None:
    """Raise the first failing precondition; return None when unlockable."""
    if perk.number in unlocked:
        raise AlreadyUnlockedError(
            f"Perk {tree.tree_id}#{perk.number} is already unlocked",
            details={"tree_id": tree.tree_id, "perk_number": perk.number},
        )

    unmet = unmet_requirements(perk, unlocked, character_level, stat_levels)
    if unmet:
        raise PrerequisiteNotMetError(
            f"Perk {tree.tree_id}#{perk.number} requires: {', '.join(unmet)}",
            details={
                "tree_id": tree.tree_id,
                "perk_number": perk.number,
                "unmet": unmet,
            },
        )

    if points_available < 1:
        raise InsufficientPointsError(
            "No perk points available",
            details={"available": points_available},
        )
