"""Reader-writer lock with writer re-entrance and optional order profiling."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager

from servercore.deadlock import DeadLockProfiler
from servercore.errors import CrashError

ACQUIRE_TIMEOUT_TICK = 10000


class Lock:
    """A reader-writer lock.

    The writing thread may take the write lock again and may also take read
    locks; other threads wait. Waiting longer than the acquire timeout raises
    ``CrashError("LOCK_TIMEOUT")``.
    """

    def __init__(
        self,
        profiler: DeadLockProfiler | None = None,
        acquire_timeout_ms: int = ACQUIRE_TIMEOUT_TICK,
    ) -> None:
        self._profiler = profiler
        self._timeout = acquire_timeout_ms / 1000
        self._cond = threading.Condition(threading.Lock())
        self._owner: int | None = None
        self._write_count = 0
        self._read_count = 0

    def _acquire_when(self, ready, name: str) -> None:
        if not self._cond.wait_for(ready, timeout=self._timeout):
            if self._profiler is not None:
                self._profiler.pop_lock(name)
            raise CrashError("LOCK_TIMEOUT")

    def write_lock(self, name: str) -> None:
        """Take the lock exclusively."""
        if self._profiler is not None:
            self._profiler.push_lock(name)
        me = threading.get_ident()
        with self._cond:
            if self._owner == me:
                self._write_count += 1
                return
            self._acquire_when(
                lambda: self._owner is None and self._read_count == 0, name
            )
            self._owner = me
            self._write_count += 1

    def write_unlock(self, name: str) -> None:
        """Release one level of the exclusive lock."""
        if self._profiler is not None:
            self._profiler.pop_lock(name)
        with self._cond:
            if self._read_count != 0:
                raise CrashError("INVALID_UNLOCK_ORDER")
            if self._write_count == 0:
                raise CrashError("MULTIPLE_UNLOCK")
            self._write_count -= 1
            if self._write_count == 0:
                self._owner = None
                self._cond.notify_all()

    def read_lock(self, name: str) -> None:
        """Take the lock shared."""
        if self._profiler is not None:
            self._profiler.push_lock(name)
        me = threading.get_ident()
        with self._cond:
            if self._owner == me:
                self._read_count += 1
                return
            self._acquire_when(lambda: self._owner is None, name)
            self._read_count += 1

    def read_unlock(self, name: str) -> None:
        """Release one shared hold."""
        if self._profiler is not None:
            self._profiler.pop_lock(name)
        with self._cond:
            if self._read_count == 0:
                raise CrashError("MULTIPLE_UNLOCK")
            self._read_count -= 1
            if self._read_count == 0:
                self._cond.notify_all()

    @contextmanager
    def read_guard(self, name: str) -> Iterator[None]:
        """Hold a shared lock for the duration of the block."""
        self.read_lock(name)
        try:
            yield
        finally:
            self.read_unlock(name)

    @contextmanager
    def write_guard(self, name: str) -> Iterator[None]:
        """Hold the exclusive lock for the duration of the block."""
        self.write_lock(name)
        try:
            yield
        finally:
            self.write_unlock(name)