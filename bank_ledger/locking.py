"""
Account Locking Module

Per-account mutual exclusion held across a load -> mutate -> persist cycle.
Multi-account operations take their locks in ascending account id order, so
two opposite-direction transfers cannot deadlock.
"""

from contextlib import contextmanager
from typing import Dict, Iterator, List
import threading

from .errors import ConcurrencyConflict


class AccountLockManager:
    """Registry of one lock per account id"""

    def __init__(self, timeout: float = 5.0):
        self.timeout = timeout
        self._locks: Dict[int, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, account_id: int) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(account_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[account_id] = lock
            return lock

    @contextmanager
    def hold(self, *account_ids: int) -> Iterator[None]:
        """
        Hold the locks of all given accounts for the duration of the block

        Raises:
            ConcurrencyConflict: If any lock is not acquired within the timeout
        """
        acquired: List[threading.Lock] = []
        try:
            for account_id in sorted(set(account_ids)):
                lock = self._lock_for(account_id)
                if not lock.acquire(timeout=self.timeout):
                    raise ConcurrencyConflict(
                        f"Account {account_id} is busy, try again",
                        {"account_id": account_id}
                    )
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()

    def forget(self, account_id: int) -> None:
        """Drop the lock of a closed account; ids are never reused"""
        with self._registry_lock:
            self._locks.pop(account_id, None)
