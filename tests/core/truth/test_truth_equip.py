"""Truth equip rule tests"""

import pytest

from lifequest.core.errors import EquipSlotsFullError, InvalidInputError
from lifequest.core.truth.equip import (
    MAX_EQUIPPED_TRUTHS,
    battle_effect_for,
    check_equip,
    validate_truth_text,
)


def test_equip_below_cap():
    for count in range(MAX_EQUIPPED_TRUTHS):
        check_equip(count, already_equipped=False, equip=True)


def test_fourth_equip_rejected():
    with pytest.raises(EquipSlotsFullError):
        check_equip(3, already_equipped=False, equip=True)


def test_unequip_and_reequip_always_pass():
    check_equip(3, already_equipped=True, equip=False)
    check_equip(3, already_equipped=True, equip=True)


def test_text_validation():
    assert validate_truth_text("  Hold fast  ", " courage ") == ("Hold fast", "courage")
    with pytest.raises(InvalidInputError):
        validate_truth_text("   ", "courage")
    with pytest.raises(InvalidInputError):
        validate_truth_text("Hold fast", "")


def test_battle_effect_mentions_theme():
    assert "patience" in battle_effect_for("patience")
