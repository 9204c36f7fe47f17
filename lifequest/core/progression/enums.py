"""Progression enums."""

from enum import Enum


class StatType(str, Enum):
    STR = "STR"
    END = "END"
    DIS = "DIS"
    WIS = "WIS"
    FOC = "FOC"
    FAI = "FAI"


ALL_STATS: tuple[StatType, ...] = tuple(StatType)

STAT_NAMES: dict[StatType, str] = {
    StatType.STR: "Strength",
    StatType.END: "Endurance",
    StatType.DIS: "Discipline",
    StatType.WIS: "Wisdom",
    StatType.FOC: "Focus",
    StatType.FAI: "Faith",
}

# aura colours, keyed by the dominant stat
STAT_COLORS: dict[StatType, str] = {
    StatType.STR: "#DC2626",
    StatType.END: "#D97706",
    StatType.DIS: "#2563EB",
    StatType.WIS: "#7C3AED",
    StatType.FOC: "#0891B2",
    StatType.FAI: "#EAB308",
}
