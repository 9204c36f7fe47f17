"""Battle enums."""

from enum import Enum


class EncounterStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    VICTORY = "victory"
    DEFEAT = "defeat"

    @property
    def is_terminal(self) -> bool:
        return self in (EncounterStatus.VICTORY, EncounterStatus.DEFEAT)


class BattleAction(str, Enum):
    ATTACK = "attack"
    DEFEND = "defend"
    SKILL = "skill"
    TRUTH = "truth"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    BOSS = "boss"


class LootType(str, Enum):
    XP_ORB = "xp_orb"
    ESSENCE_FRAGMENT = "essence_fragment"
    QUEST_TOKEN = "quest_token"
    GEAR = "gear"
    TITLE = "title"


# enemy moves that skip the attack
PASSIVE_MOVES = frozenset({"rest", "regrow"})
