"""XP -> level curves.

Pure functions. The same walker serves the character curve and every stat
track curve; only the per-level requirement and the cap differ.
"""

import math
from typing import Callable

from lifequest.core.errors import InvalidInputError

from .models import LevelInfo

CHARACTER_LEVEL_CAP = 100
STAT_LEVEL_CAP = 50


def xp_required_for_level(level: int) -> int:
    """Character XP needed to go from ``level`` to ``level + 1``."""
    return math.floor(100 * level**1.5)


def stat_xp_required(level: int) -> int:
    """Stat XP needed to go from ``level`` to ``level + 1``.

    Linear in two segments: +20 per level up to 20, +50 per level after.
    """
    if level <= 20:
        return 100 + (level - 1) * 20
    return 500 + (level - 20) * 50


def walk_curve(
    total_xp: int,
    required: Callable[[int], int],
    level_cap: int,
) -> LevelInfo:
    """Consume ``total_xp`` level by level until the next threshold or the cap."""
    if total_xp < 0:
        raise InvalidInputError(f"XP must be non-negative, got {total_xp}")

    level = 1
    cumulative = 0
    while level < level_cap:
        needed = required(level)
        if cumulative + needed > total_xp:
            return LevelInfo(
                level=level,
                current_level_xp=total_xp - cumulative,
                next_level_xp=needed,
            )
        cumulative += needed
        level += 1
    return LevelInfo(level=level_cap, current_level_xp=0, next_level_xp=0)


def level_from_xp(total_xp: int) -> LevelInfo:
    """Character level for an accumulated XP total."""
    return walk_curve(total_xp, xp_required_for_level, CHARACTER_LEVEL_CAP)


def stat_level_from_xp(total_xp: int) -> LevelInfo:
    """Stat track level for an accumulated stat XP total."""
    return walk_curve(total_xp, stat_xp_required, STAT_LEVEL_CAP)


def total_xp_for_level(level: int) -> int:
    """Character XP at which ``level`` is first reached."""
    level = max(1, min(level, CHARACTER_LEVEL_CAP))
    return sum(xp_required_for_level(lv) for lv in range(1, level))


def total_stat_xp_for_level(level: int) -> int:
    """Stat XP at which ``level`` is first reached."""
    level = max(1, min(level, STAT_LEVEL_CAP))
    return sum(stat_xp_required(lv) for lv in range(1, level))
