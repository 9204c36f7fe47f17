"""Per-character critical sections.

Mutating operations on one character must run one at a time; operations on
different characters never contend.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator

from lifequest.core.logging import get_logger

logger = get_logger(__name__)


class CharacterLocks:
    """Registry of one lock per character id."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def _lock_for(self, character_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(character_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[character_id] = lock
            return lock

    @contextmanager
    def hold(self, character_id: str) -> Iterator[None]:
        """Hold the character's lock for the duration of the block."""
        lock = self._lock_for(character_id)
        lock.acquire()
        logger.debug("Acquired character lock: %s", character_id)
        try:
            yield
        finally:
            lock.release()

    def __len__(self) -> int:
        return len(self._locks)
