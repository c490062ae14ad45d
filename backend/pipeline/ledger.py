"""Session-scoped record of URLs that have already been processed.

One :class:`DedupLedger` is created by whoever owns the session (CLI run,
API app, test) and injected into the orchestrator.  Nothing is persisted.
"""

from __future__ import annotations

import threading


class DedupLedger:
    """A lock-guarded set of normalised URLs.

    ``has``/``add``/``clear`` are the plain set operations.  Concurrent
    drivers use ``reserve``/``commit``/``release`` instead so that two racing
    submissions of the same URL cannot both get past the duplicate check.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._completed: set[str] = set()
        self._in_flight: set[str] = set()

    def has(self, url: str) -> bool:
        with self._lock:
            return url in self._completed

    def add(self, url: str) -> None:
        with self._lock:
            self._in_flight.discard(url)
            self._completed.add(url)

    def clear(self) -> None:
        with self._lock:
            self._completed.clear()
            self._in_flight.clear()

    def reserve(self, url: str) -> bool:
        """Atomically claim *url*; ``False`` if completed or already in flight."""
        with self._lock:
            if url in self._completed or url in self._in_flight:
                return False
            self._in_flight.add(url)
            return True

    def commit(self, url: str) -> None:
        """Mark a reserved *url* as completed."""
        self.add(url)

    def release(self, url: str) -> None:
        """Drop a reservation without marking *url* completed."""
        with self._lock:
            self._in_flight.discard(url)

    def __contains__(self, url: object) -> bool:
        return isinstance(url, str) and self.has(url)

    def __len__(self) -> int:
        with self._lock:
            return len(self._completed)
