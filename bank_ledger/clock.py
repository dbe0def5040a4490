"""
Clock Module

Source of transaction timestamps. The ledger never calls datetime.now()
directly so tests can pin time.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Optional
import threading


class Clock(ABC):
    """Supplies the current timestamp"""

    @abstractmethod
    def now(self) -> datetime:
        pass


class SystemClock(Clock):
    """UTC wall clock that never goes backwards"""

    def __init__(self):
        self._last: Optional[datetime] = None
        self._lock = threading.Lock()

    def now(self) -> datetime:
        with self._lock:
            current = datetime.now(timezone.utc)
            if self._last is not None and current < self._last:
                current = self._last
            self._last = current
            return current


class FixedClock(Clock):
    """Manually driven clock for tests"""

    def __init__(self, start: Optional[datetime] = None):
        self._now = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._now

    def advance(self, **kwargs) -> datetime:
        """Move forward by a timedelta given as keyword arguments"""
        self._now = self._now + timedelta(**kwargs)
        return self._now
