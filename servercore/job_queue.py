"""Serialised job queues and the global queue that hands them to idle threads."""

from __future__ import annotations

import threading
from typing import Any, Callable

from servercore.lock_queue import LockQueue
from servercore.tls import thread_state, tick_count


class Job:
    """A deferred call: a callable with the arguments to give it."""

    def __init__(self, callback: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        self._callback = callback
        self._args = args
        self._kwargs = kwargs

    def execute(self) -> Any:
        """Run the call and return what it returned."""
        return self._callback(*self._args, **self._kwargs)


class GlobalQueue:
    """Job queues waiting for a thread with time to spare."""

    def __init__(self) -> None:
        self._job_queues: LockQueue[JobQueue] = LockQueue()

    def push(self, job_queue: JobQueue) -> None:
        self._job_queues.push(job_queue)

    def pop(self) -> JobQueue | None:
        """The oldest waiting job queue, or ``None`` if there is none."""
        return self._job_queues.pop()

    def __len__(self) -> int:
        return len(self._job_queues)


GLOBAL_QUEUE = GlobalQueue()


class JobQueue:
    """Runs its jobs one batch at a time, never on two threads at once.

    The thread that pushes the first job into an idle queue runs it, unless
    that thread is already running a queue or the push is ``push_only``; the
    queue then goes to the global queue for another thread to pick up.
    """

    def __init__(self, global_queue: GlobalQueue | None = None) -> None:
        self._global_queue = global_queue if global_queue is not None else GLOBAL_QUEUE
        self._jobs: LockQueue[Job] = LockQueue()
        self._job_count = 0
        self._count_lock = threading.Lock()

    @property
    def job_count(self) -> int:
        """Jobs pushed and not yet finished."""
        with self._count_lock:
            return self._job_count

    def push(self, job: Job, push_only: bool = False) -> None:
        """Queue ``job``, running the queue now if this push made it busy."""
        with self._count_lock:
            prev_count = self._job_count
            self._job_count += 1
        self._jobs.push(job)

        if prev_count == 0:
            if thread_state().current_job_queue is None and not push_only:
                self.execute()
            else:
                self._global_queue.push(self)

    def execute(self) -> None:
        """Run queued jobs until none are left or the thread's time is up."""
        state = thread_state()
        state.current_job_queue = self
        try:
            while True:
                jobs = self._jobs.pop_all()
                for job in jobs:
                    job.execute()

                with self._count_lock:
                    self._job_count -= len(jobs)
                    remaining = self._job_count
                if remaining == 0:
                    return

                if tick_count() >= state.end_tick_count:
                    state.current_job_queue = None
                    self._global_queue.push(self)
                    return
        finally:
            state.current_job_queue = None