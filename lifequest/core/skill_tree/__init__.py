"""Skill tree core package."""

from lifequest.core.skill_tree.catalog import (
    SkillTreeCatalog,
    find_cycle,
    parse_tree,
    validate_tree,
)
from lifequest.core.skill_tree.models import (
    PerkDefinition,
    PerkRequirement,
    PerkState,
    PerkType,
    PerkUnlock,
    PerkView,
    SkillTreeDefinition,
)
from lifequest.core.skill_tree.resolver import (
    available_perks,
    check_unlock,
    describe_tree,
    perk_state,
    unmet_requirements,
)

__all__ = [
    # models
    "PerkState",
    "PerkType",
    "PerkRequirement",
    "PerkDefinition",
    "SkillTreeDefinition",
    "PerkUnlock",
    "PerkView",
    # catalog
    "SkillTreeCatalog",
    "parse_tree",
    "validate_tree",
    "find_cycle",
    # resolver
    "unmet_requirements",
    "perk_state",
    "describe_tree",
    "available_perks",
    "check_unlock",
]
