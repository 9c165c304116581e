import pytest

from servercore.deadlock import DeadlockError, DeadLockProfiler
from servercore.errors import CrashError
from servercore.tls import thread_state


@pytest.fixture(autouse=True)
def clean_lock_stack():
    thread_state().lock_stack.clear()
    yield
    thread_state().lock_stack.clear()


def test_push_and_pop_in_order_leaves_stack_empty():
    profiler = DeadLockProfiler()
    profiler.push_lock("A")
    profiler.push_lock("B")
    assert len(thread_state().lock_stack) == 2
    profiler.pop_lock("B")
    profiler.pop_lock("A")
    assert thread_state().lock_stack == []


def test_pop_on_empty_stack_is_multiple_unlock():
    profiler = DeadLockProfiler()
    with pytest.raises(CrashError) as info:
        profiler.pop_lock("A")
    assert info.value.cause == "MULTIPLE_UNLOCK"


def test_pop_out_of_order_is_invalid_unlock():
    profiler = DeadLockProfiler()
    profiler.push_lock("A")
    profiler.push_lock("B")
    with pytest.raises(CrashError) as info:
        profiler.pop_lock("A")
    assert info.value.cause == "INVALID_UNLOCK"


def test_reversed_order_is_detected():
    profiler = DeadLockProfiler()
    profiler.push_lock("A")
    profiler.push_lock("B")
    profiler.pop_lock("B")
    profiler.pop_lock("A")

    profiler.push_lock("B")
    with pytest.raises(DeadlockError) as info:
        profiler.push_lock("A")
    assert info.value.cause == "DEADLOCK_DETECTED"
    assert info.value.cycle == [("B", "A"), ("A", "B")]


def test_three_lock_cycle_is_detected():
    profiler = DeadLockProfiler()
    for first, second in [("A", "B"), ("B", "C")]:
        profiler.push_lock(first)
        profiler.push_lock(second)
        profiler.pop_lock(second)
        profiler.pop_lock(first)

    profiler.push_lock("C")
    with pytest.raises(DeadlockError) as info:
        profiler.push_lock("A")
    assert set(info.value.cycle) == {("A", "B"), ("B", "C"), ("C", "A")}


def test_reentering_same_lock_is_not_a_cycle():
    profiler = DeadLockProfiler()
    profiler.push_lock("A")
    profiler.push_lock("A")
    profiler.check_cycle()
    profiler.pop_lock("A")
    profiler.pop_lock("A")
    assert thread_state().lock_stack == []


def test_consistent_order_check_cycle_passes():
    profiler = DeadLockProfiler()
    profiler.push_lock("A")
    profiler.push_lock("B")
    profiler.push_lock("C")
    profiler.check_cycle()
    assert len(thread_state().lock_stack) == 3