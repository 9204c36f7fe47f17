"""Quest template and questline catalog - JSON load + validation."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from lifequest.core.errors import CatalogError
from lifequest.core.progression.enums import StatType

from .enums import QuestScope
from .models import QuestlineDefinition, QuestTemplate

logger = logging.getLogger(__name__)


def _parse_reward(owner: str, raw: dict) -> tuple[tuple[StatType, int], ...]:
    reward = []
    for stat, xp in raw.items():
        try:
            stat_type = StatType(stat)
        except ValueError:
            raise CatalogError(f"{owner}: unknown reward stat {stat}") from None
        if int(xp) < 0:
            raise CatalogError(f"{owner}: negative reward for {stat}")
        reward.append((stat_type, int(xp)))
    return tuple(reward)


class QuestCatalog:
    """Quest templates by scope, plus questline definitions."""

    def __init__(self) -> None:
        self._templates: dict[str, QuestTemplate] = {}
        self._questlines: dict[str, QuestlineDefinition] = {}

    # === templates ===

    def load_templates_from_json(self, path: str | Path) -> int:
        """Load quests.json: ``{"daily": [...], "weekly": [...]}``."""
        path = Path(path)
        with path.open("r", encoding="utf-8") as f:
            raw: dict[str, list[dict]] = json.load(f)

        count = 0
        for scope_name, entries in raw.items():
            try:
                scope = QuestScope(scope_name)
            except ValueError:
                raise CatalogError(f"Unknown quest scope: {scope_name}") from None
            for entry in entries:
                try:
                    template = QuestTemplate(
                        catalog_id=entry["id"],
                        scope=scope,
                        name=entry["name"],
                        description=entry.get("description", ""),
                        source_module=entry["module"],
                        source_action=entry["action"],
                        target_count=int(entry.get("target_count", 1)),
                        xp_reward=_parse_reward(entry["id"], entry.get("xp_reward", {})),
                    )
                except KeyError as e:
                    raise CatalogError(f"Quest template missing field {e}") from e
                self.register_template(template)
                count += 1

        logger.info("Loaded %d quest templates from %s", count, path)
        return count

    def register_template(self, template: QuestTemplate) -> None:
        if template.target_count < 1:
            raise CatalogError(f"{template.catalog_id}: target_count must be >= 1")
        if template.catalog_id in self._templates:
            raise CatalogError(f"Duplicate quest template: {template.catalog_id}")
        self._templates[template.catalog_id] = template

    def get_template(self, catalog_id: str) -> Optional[QuestTemplate]:
        return self._templates.get(catalog_id)

    def templates_for(self, scope: QuestScope) -> list[QuestTemplate]:
        return [t for t in self._templates.values() if t.scope == scope]

    # === questlines ===

    def load_questlines_from_json(self, path: str | Path) -> int:
        """Load questlines.json."""
        path = Path(path)
        with path.open("r", encoding="utf-8") as f:
            raw_list: list[dict] = json.load(f)

        for raw in raw_list:
            try:
                definition = QuestlineDefinition(
                    questline_id=raw["id"],
                    name=raw["name"],
                    description=raw.get("description", ""),
                    total_steps=int(raw["total_steps"]),
                    trigger_catalog_ids=tuple(raw.get("triggers", [])),
                    xp_reward=_parse_reward(raw["id"], raw.get("xp_reward", {})),
                )
            except KeyError as e:
                raise CatalogError(f"Questline missing field {e}") from e
            self.register_questline(definition)

        logger.info("Loaded %d questlines from %s", len(raw_list), path)
        return len(raw_list)

    def register_questline(self, definition: QuestlineDefinition) -> None:
        if definition.total_steps < 1:
            raise CatalogError(f"{definition.questline_id}: total_steps must be >= 1")
        if definition.questline_id in self._questlines:
            raise CatalogError(f"Duplicate questline: {definition.questline_id}")
        unknown = [
            c for c in definition.trigger_catalog_ids if c not in self._templates
        ]
        if unknown:
            raise CatalogError(
                f"{definition.questline_id}: unknown trigger templates {unknown}"
            )
        self._questlines[definition.questline_id] = definition

    def get_questline(self, questline_id: str) -> Optional[QuestlineDefinition]:
        return self._questlines.get(questline_id)

    def questlines_triggered_by(self, catalog_id: str) -> list[QuestlineDefinition]:
        return [
            q for q in self._questlines.values() if catalog_id in q.trigger_catalog_ids
        ]

    def get_all_questlines(self) -> list[QuestlineDefinition]:
        return list(self._questlines.values())
