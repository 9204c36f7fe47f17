"""Secondary (combat) stats derived from stat levels.

Never stored. Every coefficient is non-negative, so raising any stat level
never lowers any secondary stat.
"""

from typing import Mapping, Union

from lifequest.core.errors import InvalidInputError

from .enums import ALL_STATS, StatType
from .models import SecondaryStats

CRIT_CAP = 75.0


def normalize_stat_levels(
    stat_levels: Mapping[Union[StatType, str], int],
) -> dict[StatType, int]:
    """Coerce keys to StatType, fill missing stats with 0.

    Unknown stat names and negative levels are rejected.
    """
    result = {stat: 0 for stat in ALL_STATS}
    for key, value in stat_levels.items():
        try:
            stat = StatType(key)
        except ValueError:
            raise InvalidInputError(f"Unknown stat: {key}") from None
        if value < 0:
            raise InvalidInputError(f"Stat level must be non-negative: {key}={value}")
        result[stat] = int(value)
    return result


def compute_secondary_stats(
    stat_levels: Mapping[Union[StatType, str], int],
) -> SecondaryStats:
    levels = normalize_stat_levels(stat_levels)
    strength = levels[StatType.STR]
    endurance = levels[StatType.END]
    discipline = levels[StatType.DIS]
    wisdom = levels[StatType.WIS]
    focus = levels[StatType.FOC]
    faith = levels[StatType.FAI]

    return SecondaryStats(
        hp=100 + strength * 3 + endurance * 2 + faith,
        energy=50 + endurance * 2 + discipline,
        crit=min(CRIT_CAP, 5 + focus * 0.5 + discipline * 0.3),
        resistance=10 + wisdom * 2 + faith + endurance,
        initiative=5 + discipline + focus * 0.5,
    )


def dominant_stat(stat_levels: Mapping[StatType, int]) -> StatType:
    """Highest stat; ties go to the stat listed first in StatType."""
    best = ALL_STATS[0]
    for stat in ALL_STATS:
        if stat_levels.get(stat, 0) > stat_levels.get(best, 0):
            best = stat
    return best
