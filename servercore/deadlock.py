"""Lock-order tracking that reports cycles in the lock acquisition graph."""

from __future__ import annotations

import threading

from servercore.errors import CrashError
from servercore.tls import thread_state


class DeadlockError(CrashError):
    """A cycle was found among lock acquisition orders."""

    def __init__(self, cycle: list[tuple[str, str]]) -> None:
        detail = "; ".join(f"{src} -> {dst}" for src, dst in cycle)
        super().__init__("DEADLOCK_DETECTED", detail)
        self.cycle = cycle


class DeadLockProfiler:
    """Records which lock was taken while holding which, and detects cycles."""

    def __init__(self) -> None:
        self._name_to_id: dict[str, int] = {}
        self._id_to_name: dict[int, str] = {}
        self._lock_history: dict[int, set[int]] = {}
        self._lock = threading.Lock()

    def push_lock(self, name: str) -> None:
        """Note that the calling thread is acquiring the lock ``name``."""
        with self._lock:
            lock_id = self._name_to_id.get(name)
            if lock_id is None:
                lock_id = len(self._name_to_id)
                self._name_to_id[name] = lock_id
                self._id_to_name[lock_id] = name

            stack = thread_state().lock_stack
            if stack:
                prev_id = stack[-1]
                if lock_id != prev_id:
                    history = self._lock_history.setdefault(prev_id, set())
                    if lock_id not in history:
                        history.add(lock_id)
                        self._check_cycle()

            stack.append(lock_id)

    def pop_lock(self, name: str) -> None:
        """Note that the calling thread is releasing the lock ``name``."""
        with self._lock:
            stack = thread_state().lock_stack
            if not stack:
                raise CrashError("MULTIPLE_UNLOCK")
            if stack[-1] != self._name_to_id.get(name):
                raise CrashError("INVALID_UNLOCK")
            stack.pop()

    def check_cycle(self) -> None:
        """Raise :class:`DeadlockError` if the recorded orders form a cycle."""
        with self._lock:
            self._check_cycle()

    def _check_cycle(self) -> None:
        lock_count = len(self._name_to_id)
        discovered: list[int] = [-1] * lock_count
        finished: list[bool] = [False] * lock_count
        parent: list[int] = [-1] * lock_count
        counter = 0

        def dfs(here: int) -> None:
            nonlocal counter
            if discovered[here] != -1:
                return
            discovered[here] = counter
            counter += 1

            next_set = self._lock_history.get(here)
            if next_set is None:
                finished[here] = True
                return

            for there in sorted(next_set):
                if discovered[there] == -1:
                    parent[there] = here
                    dfs(there)
                    continue
                if discovered[here] < discovered[there]:
                    continue
                if not finished[there]:
                    names = self._id_to_name
                    cycle = [(names[here], names[there])]
                    now = here
                    while True:
                        cycle.append((names[parent[now]], names[now]))
                        now = parent[now]
                        if now == there:
                            break
                    raise DeadlockError(cycle)

            finished[here] = True

        for lock_id in range(lock_count):
            dfs(lock_id)