"""Catalog loading and per-session service wiring."""

import random
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from sqlalchemy.orm import Session

from lifequest.config import settings
from lifequest.core.battle.catalog import EnemyCatalog
from lifequest.core.clock import Clock
from lifequest.core.event_bus import EventBus
from lifequest.core.progression.activity import ActivityCatalog
from lifequest.core.quest.catalog import QuestCatalog
from lifequest.core.skill_tree.catalog import SkillTreeCatalog
from lifequest.services.battle_service import BattleService
from lifequest.services.log_service import LogService
from lifequest.services.progression_service import ProgressionService
from lifequest.services.quest_service import QuestService
from lifequest.services.skill_tree_service import SkillTreeService
from lifequest.services.truth_service import TruthService


@dataclass
class Catalogs:
    """Static data loaded once at startup."""

    skill_trees: SkillTreeCatalog
    quests: QuestCatalog
    enemies: EnemyCatalog
    activities: ActivityCatalog


def load_catalogs(catalog_dir: Path) -> Catalogs:
    """Load and validate every JSON catalog. Raises CatalogError on bad data."""
    catalog_dir = Path(catalog_dir)

    skill_trees = SkillTreeCatalog()
    skill_trees.load_from_json(catalog_dir / "skill_trees.json")

    # questline triggers reference templates, so templates load first
    quests = QuestCatalog()
    quests.load_templates_from_json(catalog_dir / "quests.json")
    quests.load_questlines_from_json(catalog_dir / "questlines.json")

    enemies = EnemyCatalog()
    enemies.load_from_json(catalog_dir / "enemies.json")

    activities = ActivityCatalog()
    activities.load_from_json(catalog_dir / "activities.json")

    return Catalogs(
        skill_trees=skill_trees,
        quests=quests,
        enemies=enemies,
        activities=activities,
    )


@dataclass
class Services:
    """Every service bound to one session and one bus."""

    event_bus: EventBus
    progression: ProgressionService
    skill_trees: SkillTreeService
    quests: QuestService
    battles: BattleService
    truths: TruthService
    log: LogService


def build_services(
    db: Session,
    catalogs: Catalogs,
    clock: Clock,
    rng: Optional[random.Random] = None,
) -> Services:
    """Wire a fresh bus and service set around ``db``.

    Built once per request; the bus lives exactly as long as the session
    its subscribers write to.
    """
    event_bus = EventBus()
    return Services(
        event_bus=event_bus,
        progression=ProgressionService(
            db=db,
            event_bus=event_bus,
            clock=clock,
            activities=catalogs.activities,
            perk_points_per_level=settings.PERK_POINTS_PER_LEVEL,
        ),
        skill_trees=SkillTreeService(
            db=db, event_bus=event_bus, clock=clock, catalog=catalogs.skill_trees
        ),
        quests=QuestService(
            db=db, event_bus=event_bus, clock=clock, catalog=catalogs.quests
        ),
        battles=BattleService(
            db=db,
            event_bus=event_bus,
            clock=clock,
            catalog=catalogs.enemies,
            rng=rng,
            max_open_encounters=settings.MAX_OPEN_ENCOUNTERS,
            encounter_ttl_hours=settings.ENCOUNTER_TTL_HOURS,
        ),
        truths=TruthService(db=db, event_bus=event_bus, clock=clock),
        log=LogService(db=db),
    )
