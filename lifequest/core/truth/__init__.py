"""Truth collectible core package."""

from lifequest.core.truth.equip import (
    MAX_EQUIPPED_TRUTHS,
    battle_effect_for,
    check_equip,
    validate_truth_text,
)
from lifequest.core.truth.models import Truth

__all__ = [
    "Truth",
    "MAX_EQUIPPED_TRUTHS",
    "check_equip",
    "validate_truth_text",
    "battle_effect_for",
]
