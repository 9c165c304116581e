import threading

import pytest

from servercore.job_queue import GlobalQueue, Job, JobQueue
from servercore.job_timer import JobTimer
from servercore.thread_manager import ThreadManager
from servercore.tls import thread_state, tick_count


@pytest.fixture
def state():
    st = thread_state()
    saved = (st.end_tick_count, st.current_job_queue, st.thread_id)
    st.current_job_queue = None
    st.end_tick_count = tick_count() + 60_000
    yield st
    st.end_tick_count, st.current_job_queue, st.thread_id = saved


def test_init_tls_hands_out_increasing_ids(state):
    first = ThreadManager.init_tls()
    second = ThreadManager.init_tls()
    assert second == first + 1
    assert state.thread_id == second


def test_manager_gives_calling_thread_an_id(state):
    state.thread_id = 0
    ThreadManager()
    assert state.thread_id > 0


def test_launched_threads_run_with_distinct_ids(state):
    manager = ThreadManager()
    ids = []
    lock = threading.Lock()

    def work():
        with lock:
            ids.append(thread_state().thread_id)

    for _ in range(3):
        manager.launch(work)
    manager.join()
    assert len(ids) == 3
    assert len(set(ids)) == 3
    assert all(i > 0 for i in ids)
    assert state.thread_id not in ids
    assert ThreadManager.init_tls() > max(ids)


def test_context_manager_joins_threads(state):
    done = []
    with ThreadManager() as manager:
        manager.launch(lambda: done.append(True))
        manager.launch(lambda: done.append(True))
    assert done == [True, True]


def test_destroy_tls_clears_thread_state(state):
    state.lock_stack.append(4)
    state.current_job_queue = object()
    ThreadManager.destroy_tls()
    assert state.lock_stack == []
    assert state.current_job_queue is None


def test_do_global_queue_work_runs_waiting_queues(state):
    gq = GlobalQueue()
    results = []
    a, b = JobQueue(gq), JobQueue(gq)
    a.push(Job(results.append, "a"), push_only=True)
    b.push(Job(results.append, "b"), push_only=True)
    assert ThreadManager.do_global_queue_work(gq) == 2
    assert results == ["a", "b"]
    assert gq.pop() is None


def test_do_global_queue_work_stops_when_out_of_time(state):
    state.end_tick_count = -1
    gq = GlobalQueue()
    results = []
    jq = JobQueue(gq)
    jq.push(Job(results.append, "late"), push_only=True)
    assert ThreadManager.do_global_queue_work(gq) == 0
    assert results == []
    assert gq.pop() is jq


def test_distribute_reserved_jobs_uses_current_tick(state):
    timer = JobTimer()
    jq = JobQueue(GlobalQueue())
    results = []
    timer.reserve(0, jq, Job(results.append, "now"))
    timer.reserve(tick_count() + 10**9, jq, Job(results.append, "far"))
    assert ThreadManager.distribute_reserved_jobs(timer) == 1
    assert results == ["now"]
    assert len(timer) == 1