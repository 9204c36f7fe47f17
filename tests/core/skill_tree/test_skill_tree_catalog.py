"""Skill tree catalog validation tests"""

import json

import pytest

from lifequest.core.errors import CatalogError
from lifequest.core.progression.enums import StatType
from lifequest.core.skill_tree.catalog import (
    SkillTreeCatalog,
    find_cycle,
    parse_tree,
    validate_tree,
)
from lifequest.core.skill_tree.models import PerkType


def _tree(perks):
    return parse_tree({"id": "t", "name": "Test", "stats": ["STR"], "perks": perks})


def _perk(number, perks=(), **extra):
    return {"number": number, "name": f"P{number}", "requires": {"perks": list(perks)}, **extra}


class TestShippedTrees:
    def test_loaded(self, catalogs):
        ids = {t.tree_id for t in catalogs.skill_trees.get_all()}
        assert ids == {"warrior", "sage", "leader"}

    def test_warrior_perk_details(self, catalogs):
        warrior = catalogs.skill_trees.get("warrior")
        heavy = warrior.get_perk(3)
        assert heavy.requirement.min_level == 5
        assert heavy.requirement.min_stats[StatType.STR] == 10
        surge = warrior.get_perk(8)
        assert surge.perk_type == PerkType.SKILL
        assert surge.skill_energy_cost == 15

    def test_every_tree_is_acyclic(self, catalogs):
        for tree in catalogs.skill_trees.get_all():
            assert find_cycle(tree) is None


class TestValidation:
    def test_valid_tree(self):
        validate_tree(_tree([_perk(1), _perk(2, [1]), _perk(3, [1, 2])]))

    def test_duplicate_numbers(self):
        with pytest.raises(CatalogError, match="Duplicate"):
            validate_tree(_tree([_perk(1), _perk(1)]))

    def test_self_prerequisite(self):
        with pytest.raises(CatalogError, match="itself"):
            validate_tree(_tree([_perk(1, [1])]))

    def test_unknown_reference(self):
        with pytest.raises(CatalogError, match="unknown"):
            validate_tree(_tree([_perk(1, [9])]))

    def test_cycle(self):
        tree = _tree([_perk(1, [3]), _perk(2, [1]), _perk(3, [2])])
        assert find_cycle(tree) is not None
        with pytest.raises(CatalogError, match="cycle"):
            validate_tree(tree)

    def test_bad_perk_type(self):
        with pytest.raises(CatalogError):
            _tree([_perk(1, type="ultimate")])

    def test_unknown_stat_requirement(self):
        with pytest.raises(CatalogError):
            _tree([{"number": 1, "name": "x", "requires": {"stats": {"CHA": 3}}}])

    def test_perks_sorted_by_number(self):
        tree = _tree([_perk(3), _perk(1), _perk(2)])
        assert tree.perk_numbers == (1, 2, 3)


class TestCatalog:
    def test_load_and_register(self, tmp_path):
        path = tmp_path / "trees.json"
        path.write_text(json.dumps([{"id": "a", "perks": [_perk(1)]}]))
        catalog = SkillTreeCatalog()
        assert catalog.load_from_json(path) == 1
        assert catalog.get("a").name == "a"
        with pytest.raises(CatalogError):
            catalog.register(catalog.get("a"))

    def test_cyclic_file_rejected(self, tmp_path):
        path = tmp_path / "trees.json"
        path.write_text(json.dumps([{"id": "a", "perks": [_perk(1, [2]), _perk(2, [1])]}]))
        with pytest.raises(CatalogError):
            SkillTreeCatalog().load_from_json(path)
