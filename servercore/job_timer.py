"""Jobs reserved for a later tick and handed to their queues when due."""

from __future__ import annotations

import heapq
import itertools
import threading
import weakref
from dataclasses import dataclass, field

from servercore.job_queue import Job, JobQueue
from servercore.lock import Lock
from servercore.memory import ObjectPool


@dataclass
class JobData:
    """A reserved job and a weak reference to the queue that will run it."""

    owner: weakref.ReferenceType
    job: Job


@dataclass(order=True)
class TimerItem:
    """A heap entry; earlier ticks first, then reservation order."""

    execute_tick: int
    sequence: int
    job_data: JobData = field(compare=False)


class JobTimer:
    """Holds reserved jobs until their tick arrives."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._items: list[TimerItem] = []
        self._sequence = itertools.count()
        self._distributing = threading.Lock()
        self._job_data_pool: ObjectPool[JobData] = ObjectPool(JobData)

    def __len__(self) -> int:
        with self._lock.read_guard("JobTimer"):
            return len(self._items)

    def reserve(self, execute_tick: int, owner: JobQueue, job: Job) -> None:
        """Have ``owner`` run ``job`` once ``execute_tick`` is reached."""
        job_data = self._job_data_pool.pop(weakref.ref(owner), job)
        with self._lock.write_guard("JobTimer"):
            item = TimerItem(execute_tick, next(self._sequence), job_data)
            heapq.heappush(self._items, item)

    def distribute(self, now: int) -> int:
        """Push every job due at ``now`` into its queue.

        Only one thread distributes at a time; others return 0 at once.
        Returns how many reserved jobs were taken off the timer.
        """
        if not self._distributing.acquire(blocking=False):
            return 0
        try:
            due: list[TimerItem] = []
            with self._lock.write_guard("JobTimer"):
                while self._items and self._items[0].execute_tick <= now:
                    due.append(heapq.heappop(self._items))

            for item in due:
                owner = item.job_data.owner()
                if owner is not None:
                    owner.push(item.job_data.job)
                self._job_data_pool.push(item.job_data)
            return len(due)
        finally:
            self._distributing.release()


JOB_TIMER = JobTimer()