"""Battle core package."""

from lifequest.core.battle.catalog import EnemyCatalog
from lifequest.core.battle.combat import (
    enemy_attack_damage,
    enemy_move,
    player_attack_damage,
    scale_enemy,
)
from lifequest.core.battle.enums import (
    BattleAction,
    Difficulty,
    EncounterStatus,
    LootType,
)
from lifequest.core.battle.models import (
    BattleTurn,
    BattleTurnResult,
    Encounter,
    EnemyDefinition,
    LootDrop,
    ScaledEnemy,
    TurnOutcome,
)
from lifequest.core.battle.resolver import ensure_active, resolve_turn

__all__ = [
    # enums
    "EncounterStatus",
    "BattleAction",
    "Difficulty",
    "LootType",
    # models
    "LootDrop",
    "EnemyDefinition",
    "ScaledEnemy",
    "Encounter",
    "BattleTurn",
    "TurnOutcome",
    "BattleTurnResult",
    # catalog
    "EnemyCatalog",
    # combat
    "scale_enemy",
    "player_attack_damage",
    "enemy_attack_damage",
    "enemy_move",
    # resolver
    "ensure_active",
    "resolve_turn",
]
