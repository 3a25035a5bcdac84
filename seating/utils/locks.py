import threading
import weakref
from contextlib import contextmanager
from typing import Hashable

from seating.core.exceptions import TransientStorageError


class ShowtimeLockRegistry:
    """
    One mutex per showtime, created on first use.

    Serializes the read-check-write of a commit within this process. Writers
    in other processes are caught by the booking_seats unique constraint.
    A lock lives only while some commit holds or waits on it, so the registry
    does not grow with the number of showtimes ever booked.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: "weakref.WeakValueDictionary[Hashable, threading.Lock]" = weakref.WeakValueDictionary()

    def __len__(self) -> int:
        return len(self._locks)

    def _lock_for(self, showtime_id: Hashable) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(showtime_id)
            if lock is None:
                lock = self._locks[showtime_id] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, showtime_id: Hashable, timeout: float):
        lock = self._lock_for(showtime_id)
        if not lock.acquire(timeout=timeout):
            raise TransientStorageError(
                f"Timed out after {timeout}s waiting to commit for showtime {showtime_id}"
            )
        try:
            yield
        finally:
            lock.release()
