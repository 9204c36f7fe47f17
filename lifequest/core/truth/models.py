"""Truth domain model (no DB)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class Truth:
    """A collected insight. At most MAX_EQUIPPED_TRUTHS are equipped."""

    truth_id: str
    character_id: str
    text: str
    source_entry_id: str
    theme: str
    equipped: bool = False
    battle_effect: str = ""
    battle_power: int = 1
    collected_at: Optional[datetime] = None
