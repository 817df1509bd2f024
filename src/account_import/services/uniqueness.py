from __future__ import annotations

import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager

"""In-run uniqueness tracker shared by all row tasks of one import."""

__all__ = [
    "UniquenessTracker",
    "RowTurnstile",
]


class UniquenessTracker:
    """field name -> set of values already claimed in this import run.

    claim() is an atomic check-then-insert: two rows presenting the same value
    at the same time can never both observe "not present".
    """

    def __init__(self, fields: Iterable[str]) -> None:
        self._seen: dict[str, set[str]] = {f: set() for f in fields}
        self._lock = threading.Lock()

    def claim(self, field: str, value: str) -> bool:
        """Register value for field.

        Returns:
            True if the value was not seen before (now registered),
            False if another row already claimed it.
        """
        with self._lock:
            seen = self._seen.setdefault(field, set())
            if value in seen:
                return False
            seen.add(value)
            return True

    def seen(self, field: str) -> frozenset[str]:
        with self._lock:
            return frozenset(self._seen.get(field, ()))


class RowTurnstile:
    """Lets row tasks through one at a time, in submission order.

    Row tasks hold their turn only while evaluating rules against the shared
    UniquenessTracker, so the first row of a file always claims a value and
    later rows are the ones reported as duplicates, whatever the thread
    scheduling. Store checks, hashing and inserts run outside the turn.

    Tasks must be submitted in position order to an executor with a FIFO
    queue: a task only ever waits for tasks submitted before it, which have
    already started.
    """

    def __init__(self) -> None:
        self._next = 0
        self._cond = threading.Condition()

    @contextmanager
    def turn(self, position: int) -> Iterator[None]:
        with self._cond:
            self._cond.wait_for(lambda: self._next == position)
        try:
            yield
        finally:
            with self._cond:
                self._next += 1
                self._cond.notify_all()
