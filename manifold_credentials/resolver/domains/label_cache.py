"""Project label -> project identifier cache shared by concurrent callers."""
import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

logger = logging.getLogger(__name__)


class ReadWriteLock:
    """
    Shared-read / exclusive-write lock.

    Any number of readers may hold the lock together. A writer waits for the
    active readers to drain and blocks new readers while it is waiting, so a
    steady stream of cache hits cannot starve a fill.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class LabelCache:
    """
    Label -> identifier mapping that is filled on demand and never evicted.

    The raw mapping is only reachable through ``get`` and ``set``; neither
    holds the lock longer than the dictionary access itself.
    """

    def __init__(self):
        self._lock = ReadWriteLock()
        self._ids: Dict[str, str] = {}

    def get(self, label: str) -> Optional[str]:
        with self._lock.read_locked():
            return self._ids.get(label)

    def set(self, label: str, identifier: str) -> str:
        """
        Store an identifier for a label unless one is already cached.

        Returns:
            The identifier now cached for the label (the first one stored wins)
        """
        with self._lock.write_locked():
            cached = self._ids.setdefault(label, identifier)

        if cached != identifier:
            logger.debug(f"Label '{label}' already cached, keeping first identifier")
        return cached

    def __contains__(self, label: str) -> bool:
        with self._lock.read_locked():
            return label in self._ids

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._ids)
