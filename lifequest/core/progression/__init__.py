"""XP curves, secondary stats and activity rewards."""

from lifequest.core.progression.activity import ActivityCatalog
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
from lifequest.core.progression.enums import (
    ALL_STATS,
    STAT_COLORS,
    STAT_NAMES,
    StatType,
)
from lifequest.core.progression.models import (
    Achievement,
    ActivityReward,
    Character,
    GrantResult,
    LevelInfo,
    PerkPoints,
    SecondaryStats,
    StatLevelUp,
    StatTrack,
)
from lifequest.core.progression.secondary import (
    compute_secondary_stats,
    dominant_stat,
    normalize_stat_levels,
)

__all__ = [
    # enums
    "StatType",
    "ALL_STATS",
    "STAT_NAMES",
    "STAT_COLORS",
    # models
    "LevelInfo",
    "SecondaryStats",
    "Character",
    "StatTrack",
    "PerkPoints",
    "StatLevelUp",
    "GrantResult",
    "ActivityReward",
    "Achievement",
    # curve
    "CHARACTER_LEVEL_CAP",
    "STAT_LEVEL_CAP",
    "level_from_xp",
    "stat_level_from_xp",
    "xp_required_for_level",
    "stat_xp_required",
    "total_xp_for_level",
    "total_stat_xp_for_level",
    # secondary
    "compute_secondary_stats",
    "normalize_stat_levels",
    "dominant_stat",
    # activities
    "ActivityCatalog",
]
