"""Reader/writer lock for the in-memory graph."""

import threading
from contextlib import contextmanager
from typing import Iterator


class ReadWriteLock:
    """Many concurrent readers or one writer.

    Writers are preferred: once a writer is waiting, new readers block until
    it has finished, so a steady stream of traversals cannot starve a merge.
    The write side is re-entrant for the owning thread, which lets merge
    listeners run inside the writer's critical section.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writers_waiting = 0
        self._writer: int | None = None
        self._write_depth = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        """Acquire the shared side."""
        me = threading.get_ident()
        with self._cond:
            if self._writer == me:
                # Reads from inside a write section are already exclusive
                self._write_depth += 1
                reentrant = True
            else:
                while self._writer is not None or self._writers_waiting:
                    self._cond.wait()
                self._readers += 1
                reentrant = False
        try:
            yield
        finally:
            with self._cond:
                if reentrant:
                    self._write_depth -= 1
                else:
                    self._readers -= 1
                    if self._readers == 0:
                        self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        """Acquire the exclusive side."""
        me = threading.get_ident()
        with self._cond:
            if self._writer == me:
                self._write_depth += 1
            else:
                self._writers_waiting += 1
                while self._writer is not None or self._readers:
                    self._cond.wait()
                self._writers_waiting -= 1
                self._writer = me
                self._write_depth = 1
        try:
            yield
        finally:
            with self._cond:
                self._write_depth -= 1
                if self._write_depth == 0:
                    self._writer = None
                    self._cond.notify_all()
