"""Worker thread launching and the per-tick work each worker does."""

from __future__ import annotations

import itertools
import threading
from typing import Callable

from servercore.job_queue import GLOBAL_QUEUE, GlobalQueue
from servercore.job_timer import JOB_TIMER, JobTimer
from servercore.tls import thread_state, tick_count

_thread_ids = itertools.count(1)
_thread_id_lock = threading.Lock()


class ThreadManager:
    """Starts worker threads that each get their own thread id.

    Creating the manager gives the calling thread an id as well. Used as a
    context manager it joins its threads on exit.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._threads: list[threading.Thread] = []
        self.init_tls()

    def __enter__(self) -> ThreadManager:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.join()

    def launch(self, callback: Callable[[], object]) -> None:
        """Run ``callback`` on a new thread with its own thread state."""

        def run() -> None:
            ThreadManager.init_tls()
            try:
                callback()
            finally:
                ThreadManager.destroy_tls()

        with self._lock:
            thread = threading.Thread(target=run, daemon=True)
            self._threads.append(thread)
            thread.start()

    def join(self) -> None:
        """Wait for every launched thread to finish."""
        with self._lock:
            threads = self._threads
            self._threads = []
        current = threading.current_thread()
        for thread in threads:
            if thread is not current:
                thread.join()

    @staticmethod
    def init_tls() -> int:
        """Give the calling thread the next thread id and return it."""
        with _thread_id_lock:
            thread_id = next(_thread_ids)
        thread_state().thread_id = thread_id
        return thread_id

    @staticmethod
    def destroy_tls() -> None:
        """Drop what the calling thread still holds in its state."""
        state = thread_state()
        state.lock_stack.clear()
        state.current_job_queue = None

    @staticmethod
    def do_global_queue_work(global_queue: GlobalQueue | None = None) -> int:
        """Run waiting job queues until none is left or time is up.

        Returns how many job queues were run.
        """
        queue = global_queue if global_queue is not None else GLOBAL_QUEUE
        state = thread_state()
        executed = 0
        while tick_count() <= state.end_tick_count:
            job_queue = queue.pop()
            if job_queue is None:
                break
            job_queue.execute()
            executed += 1
        return executed

    @staticmethod
    def distribute_reserved_jobs(job_timer: JobTimer | None = None) -> int:
        """Hand out every reserved job that is due now."""
        timer = job_timer if job_timer is not None else JOB_TIMER
        return timer.distribute(tick_count())