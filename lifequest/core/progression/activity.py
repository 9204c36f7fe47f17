"""Activity reward table - which stats an activity feeds and how much."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from lifequest.core.errors import CatalogError

from .enums import StatType
from .models import ActivityReward

logger = logging.getLogger(__name__)


class ActivityCatalog:
    """(source_module, source_action) -> ActivityReward."""

    def __init__(self) -> None:
        self._rewards: dict[tuple[str, str], ActivityReward] = {}

    def load_from_json(self, path: str | Path) -> int:
        """Load activities.json. Returns the number of rewards loaded."""
        path = Path(path)
        with path.open("r", encoding="utf-8") as f:
            raw_list: list[dict] = json.load(f)

        for raw in raw_list:
            try:
                secondary = raw.get("secondary_stat")
                reward = ActivityReward(
                    source_module=raw["module"],
                    source_action=raw["action"],
                    primary_stat=StatType(raw["primary_stat"]),
                    primary_xp=int(raw["primary_xp"]),
                    secondary_stat=StatType(secondary) if secondary else None,
                    secondary_xp=int(raw.get("secondary_xp", 0)),
                )
            except (KeyError, ValueError) as e:
                raise CatalogError(f"Invalid activity entry {raw!r}: {e}") from e
            self.register(reward)

        logger.info("Loaded %d activity rewards from %s", len(raw_list), path)
        return len(raw_list)

    def register(self, reward: ActivityReward) -> None:
        if reward.primary_xp < 0 or reward.secondary_xp < 0:
            raise CatalogError(
                f"Negative XP for {reward.source_module}/{reward.source_action}"
            )
        key = (reward.source_module, reward.source_action)
        if key in self._rewards:
            raise CatalogError(f"Duplicate activity: {key[0]}/{key[1]}")
        self._rewards[key] = reward

    def get(self, source_module: str, source_action: str) -> Optional[ActivityReward]:
        return self._rewards.get((source_module, source_action))

    def get_all(self) -> list[ActivityReward]:
        return list(self._rewards.values())

    def count(self) -> int:
        return len(self._rewards)
