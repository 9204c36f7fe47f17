"""Clock and per-character lock tests"""

import threading
import time
from datetime import date, datetime, timedelta, timezone

from lifequest.core.clock import FixedClock, SystemClock
from lifequest.core.locks import CharacterLocks


class TestClock:
    def test_fixed_clock(self):
        clock = FixedClock(datetime(2026, 3, 4, 23, 30))
        assert clock.now().tzinfo is timezone.utc
        assert clock.today() == date(2026, 3, 4)
        clock.advance(timedelta(hours=1))
        assert clock.today() == date(2026, 3, 5)

    def test_set(self):
        clock = FixedClock(datetime(2026, 1, 1, tzinfo=timezone.utc))
        clock.set(datetime(2026, 6, 1))
        assert clock.today() == date(2026, 6, 1)

    def test_system_clock_is_aware(self):
        now = SystemClock("Europe/Berlin").now()
        assert now.tzinfo is not None


class TestCharacterLocks:
    def test_same_character_serialized(self):
        locks = CharacterLocks()
        active = 0
        peak = 0
        guard = threading.Lock()

        def work():
            nonlocal active, peak
            with locks.hold("hero"):
                with guard:
                    active += 1
                    peak = max(peak, active)
                time.sleep(0.01)
                with guard:
                    active -= 1

        threads = [threading.Thread(target=work) for _ in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert peak == 1

    def test_one_lock_per_character(self):
        locks = CharacterLocks()
        with locks.hold("a"):
            with locks.hold("b"):
                pass
        assert len(locks) == 2

    def test_released_after_error(self):
        locks = CharacterLocks()
        try:
            with locks.hold("a"):
                raise RuntimeError("fail")
        except RuntimeError:
            pass
        with locks.hold("a"):
            pass
