import threading

from servercore.tls import ThreadState, thread_state, tick_count


def test_same_thread_gets_same_state():
    state = thread_state()
    saved_id = state.thread_id
    try:
        state.thread_id = 99
        state.lock_stack.append(5)
        again = thread_state()
        assert again is state
        assert again.thread_id == 99
        assert again.lock_stack[-1] == 5
    finally:
        state.lock_stack.pop()
        state.thread_id = saved_id


def test_fresh_state_defaults():
    state = ThreadState()
    assert state.thread_id == 0
    assert state.end_tick_count == 0
    assert state.lock_stack == []
    assert state.current_job_queue is None


def test_each_thread_has_its_own_state():
    main = thread_state()
    seen = []

    def worker():
        other = thread_state()
        other.thread_id = 42
        other.lock_stack.append(7)
        seen.append((other is main, other.thread_id, list(other.lock_stack)))

    t = threading.Thread(target=worker)
    t.start()
    t.join()
    assert seen == [(False, 42, [7])]
    assert 7 not in main.lock_stack


def test_lock_stacks_are_not_shared_between_instances():
    a = ThreadState()
    b = ThreadState()
    a.lock_stack.append(1)
    assert b.lock_stack == []


def test_tick_count_does_not_go_backwards():
    first = tick_count()
    second = tick_count()
    assert second >= first
    assert first >= 0