"""Enemy catalog - JSON load + validation."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from lifequest.core.errors import CatalogError
from lifequest.core.progression.enums import StatType

from .enums import Difficulty, LootType
from .models import EnemyDefinition, LootDrop

logger = logging.getLogger(__name__)


def _parse_loot(raw: dict) -> LootDrop:
    stat = raw.get("stat")
    return LootDrop(
        loot_type=LootType(raw["type"]),
        item_id=raw["item_id"],
        amount=int(raw.get("amount", 1)),
        stat=StatType(stat) if stat else None,
    )


class EnemyCatalog:
    def __init__(self) -> None:
        self._enemies: dict[str, EnemyDefinition] = {}

    def load_from_json(self, path: str | Path) -> int:
        """Load enemies.json. Returns the number of enemies loaded."""
        path = Path(path)
        with path.open("r", encoding="utf-8") as f:
            raw_list: list[dict] = json.load(f)

        for raw in raw_list:
            try:
                enemy = EnemyDefinition(
                    enemy_id=raw["id"],
                    name=raw["name"],
                    theme=raw.get("theme", ""),
                    primary_stat=StatType(raw["primary_stat"]),
                    secondary_stat=StatType(raw["secondary_stat"]),
                    difficulty=Difficulty(raw["difficulty"]),
                    base_hp=int(raw["base_hp"]),
                    base_power=int(raw["base_power"]),
                    base_defense=int(raw["base_defense"]),
                    pattern=tuple(raw["pattern"]),
                    xp_reward=int(raw.get("xp_reward", 0)),
                    loot=tuple(_parse_loot(l) for l in raw.get("loot", [])),
                    spawns_after=raw.get("spawns_after", ""),
                )
            except (KeyError, ValueError) as e:
                raise CatalogError(f"Invalid enemy {raw.get('id', '?')}: {e}") from e
            self.register(enemy)

        logger.info("Loaded %d enemies from %s", len(raw_list), path)
        return len(raw_list)

    def register(self, enemy: EnemyDefinition) -> None:
        if enemy.base_hp < 1:
            raise CatalogError(f"{enemy.enemy_id}: base_hp must be positive")
        if not enemy.pattern:
            raise CatalogError(f"{enemy.enemy_id}: empty move pattern")
        if enemy.enemy_id in self._enemies:
            raise CatalogError(f"Duplicate enemy: {enemy.enemy_id}")
        self._enemies[enemy.enemy_id] = enemy

    def get(self, enemy_id: str) -> Optional[EnemyDefinition]:
        return self._enemies.get(enemy_id)

    def spawned_by(self, trigger: str) -> list[EnemyDefinition]:
        """Enemies whose ``spawns_after`` is this activity trigger, in catalog order."""
        if not trigger:
            return []
        return [e for e in self._enemies.values() if e.spawns_after == trigger]

    def get_all(self) -> list[EnemyDefinition]:
        return list(self._enemies.values())

    def count(self) -> int:
        return len(self._enemies)
