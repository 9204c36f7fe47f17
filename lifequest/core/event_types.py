"""Event type constants.

Payloads always carry ``character_id``; the rest is listed per event.
"""


class EventTypes:
    """Event type string constants."""

    # progression: old_level, new_level, perk_points_earned
    CHARACTER_LEVELED_UP = "character_leveled_up"
    # progression: stat, old_level, new_level
    STAT_LEVELED_UP = "stat_leveled_up"

    # quest: quest_id, catalog_id, xp_reward
    QUEST_COMPLETED = "quest_completed"
    # quest: questline_id, xp_reward
    QUESTLINE_COMPLETED = "questline_completed"

    # battle: encounter_id, enemy_id, primary_stat, xp_reward, loot
    BATTLE_WON = "battle_won"
    # battle: encounter_id, enemy_id
    BATTLE_LOST = "battle_lost"

    # skill tree: tree_id, perk_number
    PERK_UNLOCKED = "perk_unlocked"

    # truth: truth_id, theme
    TRUTH_COLLECTED = "truth_collected"
