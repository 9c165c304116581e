"""Per-thread state shared by the locking and job machinery."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Any


@dataclass
class ThreadState:
    """State that each thread owns privately."""

    thread_id: int = 0
    end_tick_count: int = 0
    lock_stack: list[int] = field(default_factory=list)
    current_job_queue: Any = None


_local = threading.local()


def thread_state() -> ThreadState:
    """Return the calling thread's state, creating it on first use."""
    state = getattr(_local, "state", None)
    if state is None:
        state = ThreadState()
        _local.state = state
    return state


def tick_count() -> int:
    """Milliseconds from a monotonic clock."""
    return time.monotonic_ns() // 1_000_000