import pytest

from servercore.job_queue import GlobalQueue, Job, JobQueue
from servercore.tls import thread_state, tick_count


@pytest.fixture
def state():
    st = thread_state()
    saved = (st.end_tick_count, st.current_job_queue)
    st.current_job_queue = None
    st.end_tick_count = tick_count() + 60_000
    yield st
    st.end_tick_count, st.current_job_queue = saved


def test_job_execute_passes_arguments():
    job = Job(lambda a, b, c=0: (a, b, c), 1, 2, c=3)
    assert job.execute() == (1, 2, 3)


def test_global_queue_is_fifo_and_empty_pop_is_none():
    gq = GlobalQueue()
    first, second = JobQueue(gq), JobQueue(gq)
    gq.push(first)
    gq.push(second)
    assert len(gq) == 2
    assert gq.pop() is first
    assert gq.pop() is second
    assert gq.pop() is None


def test_push_runs_immediately_when_idle(state):
    gq = GlobalQueue()
    jq = JobQueue(gq)
    results = []
    jq.push(Job(results.append, "a"))
    assert results == ["a"]
    assert len(gq) == 0
    assert jq.job_count == 0
    assert state.current_job_queue is None


def test_push_only_hands_queue_to_global(state):
    gq = GlobalQueue()
    jq = JobQueue(gq)
    results = []
    jq.push(Job(results.append, "x"), push_only=True)
    assert results == []
    assert jq.job_count == 1
    assert gq.pop() is jq
    jq.execute()
    assert results == ["x"]
    assert jq.job_count == 0


def test_job_pushed_during_execution_runs_in_same_pass(state):
    gq = GlobalQueue()
    jq = JobQueue(gq)
    results = []

    def first():
        results.append(1)
        jq.push(Job(results.append, 2))

    jq.push(Job(first))
    assert results == [1, 2]
    assert len(gq) == 0


def test_out_of_time_defers_to_global_queue(state):
    state.end_tick_count = -1
    gq = GlobalQueue()
    jq = JobQueue(gq)
    results = []

    def first():
        results.append(1)
        jq.push(Job(results.append, 2))

    jq.push(Job(first))
    assert results == [1]
    assert gq.pop() is jq
    state.end_tick_count = tick_count() + 60_000
    jq.execute()
    assert results == [1, 2]


def test_push_to_other_queue_while_running_goes_global(state):
    gq = GlobalQueue()
    a, b = JobQueue(gq), JobQueue(gq)
    results = []

    def in_a():
        assert thread_state().current_job_queue is a
        b.push(Job(results.append, "b"))
        results.append("a")

    a.push(Job(in_a))
    assert results == ["a"]
    assert gq.pop() is b
    b.execute()
    assert results == ["a", "b"]


def test_current_queue_cleared_after_failing_job(state):
    jq = JobQueue(GlobalQueue())

    def boom():
        raise KeyError("boom")

    with pytest.raises(KeyError):
        jq.push(Job(boom))
    assert state.current_job_queue is None