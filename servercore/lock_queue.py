"""A FIFO queue guarded by the server core's reader-writer lock."""

from __future__ import annotations

from collections import deque
from typing import Generic, TypeVar

from servercore.lock import Lock

T = TypeVar("T")


class LockQueue(Generic[T]):
    """Thread-safe FIFO; ``pop`` returns ``None`` when empty."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._items: deque[T] = deque()

    def push(self, item: T) -> None:
        with self._lock.write_guard("LockQueue"):
            self._items.append(item)

    def pop(self) -> T | None:
        with self._lock.write_guard("LockQueue"):
            if not self._items:
                return None
            return self._items.popleft()

    def pop_all(self) -> list[T]:
        """Remove and return every queued item in order."""
        with self._lock.write_guard("LockQueue"):
            items = list(self._items)
            self._items.clear()
            return items

    def clear(self) -> None:
        with self._lock.write_guard("LockQueue"):
            self._items.clear()

    def __len__(self) -> int:
        with self._lock.read_guard("LockQueue"):
            return len(self._items)