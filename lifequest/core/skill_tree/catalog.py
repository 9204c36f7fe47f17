"""Skill tree catalog - JSON load + validation.

A tree is only accepted if its prerequisites form a DAG over its own perks,
so the resolver never has to guard against cycles at unlock time.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Optional

from lifequest.core.errors import CatalogError
from lifequest.core.progression.enums import StatType

from .models import PerkDefinition, PerkRequirement, PerkType, SkillTreeDefinition

logger = logging.getLogger(__name__)


def _parse_perk(tree_id: str, raw: dict) -> PerkDefinition:
    req = raw.get("requires", {})
    try:
        min_stats = {StatType(k): int(v) for k, v in req.get("stats", {}).items()}
        return PerkDefinition(
            number=int(raw["number"]),
            name=raw["name"],
            requirement=PerkRequirement(
                perks=tuple(int(n) for n in req.get("perks", [])),
                min_level=int(req.get("level", 0)),
                min_stats=MappingProxyType(min_stats),
            ),
            effect=raw.get("effect", ""),
            perk_type=PerkType(raw.get("type", "passive")),
            skill_name=raw.get("skill_name"),
            skill_energy_cost=raw.get("skill_energy_cost"),
        )
    except (KeyError, ValueError, TypeError) as e:
        raise CatalogError(
            f"Invalid perk in tree {tree_id}: {raw.get('number', '?')} ({e})"
        ) from e


def parse_tree(raw: dict) -> SkillTreeDefinition:
    try:
        tree_id = raw["id"]
        tree = SkillTreeDefinition(
            tree_id=tree_id,
            name=raw.get("name", tree_id),
            stats=tuple(StatType(s) for s in raw.get("stats", [])),
            perks=tuple(
                sorted(
                    (_parse_perk(tree_id, p) for p in raw.get("perks", [])),
                    key=lambda p: p.number,
                )
            ),
        )
    except (KeyError, ValueError) as e:
        raise CatalogError(f"Invalid skill tree {raw.get('id', '?')}: {e}") from e
    return tree


def find_cycle(tree: SkillTreeDefinition) -> Optional[list[int]]:
    """Return one prerequisite cycle as a list of perk numbers, or None."""
    graph = {p.number: p.requirement.perks for p in tree.perks}
    WHITE, GREY, BLACK = 0, 1, 2
    color = {n: WHITE for n in graph}
    stack: list[int] = []

    def visit(node: int) -> Optional[list[int]]:
        color[node] = GREY
        stack.append(node)
        for dep in graph.get(node, ()):
            if color.get(dep) == GREY:
                return stack[stack.index(dep):] + [dep]
            if color.get(dep) == WHITE:
                found = visit(dep)
                if found:
                    return found
        stack.pop()
        color[node] = BLACK
        return None

    for node in graph:
        if color[node] == WHITE:
            found = visit(node)
            if found:
                return found
    return None


def validate_tree(tree: SkillTreeDefinition) -> None:
    """Raise CatalogError unless the tree is a well-formed DAG."""
    numbers = [p.number for p in tree.perks]
    if len(numbers) != len(set(numbers)):
        raise CatalogError(f"Duplicate perk numbers in tree {tree.tree_id}")

    known = set(numbers)
    for perk in tree.perks:
        if perk.number in perk.requirement.perks:
            raise CatalogError(
                f"Perk {tree.tree_id}#{perk.number} lists itself as a prerequisite"
            )
        missing = [n for n in perk.requirement.perks if n not in known]
        if missing:
            raise CatalogError(
                f"Perk {tree.tree_id}#{perk.number} requires unknown perks {missing}"
            )
        if perk.requirement.min_level < 0:
            raise CatalogError(f"Perk {tree.tree_id}#{perk.number}: negative level")
        if any(v < 0 for v in perk.requirement.min_stats.values()):
            raise CatalogError(f"Perk {tree.tree_id}#{perk.number}: negative stat")

    cycle = find_cycle(tree)
    if cycle:
        path = " -> ".join(str(n) for n in cycle)
        raise CatalogError(f"Prerequisite cycle in tree {tree.tree_id}: {path}")


class SkillTreeCatalog:
    """Immutable-at-runtime store of skill tree definitions."""

    def __init__(self) -> None:
        self._trees: dict[str, SkillTreeDefinition] = {}

    def load_from_json(self, path: str | Path) -> int:
        """Load skill_trees.json. Returns the number of trees loaded."""
        path = Path(path)
        with path.open("r", encoding="utf-8") as f:
            raw_list: list[dict] = json.load(f)

        for raw in raw_list:
            self.register(parse_tree(raw))

        logger.info("Loaded %d skill trees from %s", len(raw_list), path)
        return len(raw_list)

    def register(self, tree: SkillTreeDefinition) -> None:
        validate_tree(tree)
        if tree.tree_id in self._trees:
            raise CatalogError(f"Duplicate skill tree: {tree.tree_id}")
        self._trees[tree.tree_id] = tree

    def get(self, tree_id: str) -> Optional[SkillTreeDefinition]:
        return self._trees.get(tree_id)

    def get_all(self) -> list[SkillTreeDefinition]:
        return list(self._trees.values())

    def count(self) -> int:
        return len(self._trees)
