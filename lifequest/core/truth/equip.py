"""Equip slot rules."""

from lifequest.core.errors import EquipSlotsFullError, InvalidInputError

MAX_EQUIPPED_TRUTHS = 3


def check_equip(equipped_count: int, already_equipped: bool, equip: bool) -> None:
    """Raise EquipSlotsFullError if equipping would exceed the cap.

    Unequipping, and re-equipping an equipped truth, always pass.
    """
    if not equip or already_equipped:
        return
    if equipped_count >= MAX_EQUIPPED_TRUTHS:
        raise EquipSlotsFullError(
            f"All {MAX_EQUIPPED_TRUTHS} truth slots are in use",
            details={"equipped": equipped_count, "max": MAX_EQUIPPED_TRUTHS},
        )


def validate_truth_text(text: str, theme: str) -> tuple[str, str]:
    text = (text or "").strip()
    theme = (theme or "").strip()
    if not text:
        raise InvalidInputError("Truth text must not be empty")
    if not theme:
        raise InvalidInputError("Truth theme must not be empty")
    return text, theme


def battle_effect_for(theme: str) -> str:
    return f"Deals WIS-based damage and inspires {theme}"
