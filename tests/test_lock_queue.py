import threading

from servercore.lock_queue import LockQueue


def test_pop_is_first_in_first_out():
    queue = LockQueue()
    for item in ["a", "b", "c"]:
        queue.push(item)
    assert [queue.pop(), queue.pop(), queue.pop()] == ["a", "b", "c"]


def test_pop_on_empty_returns_none():
    queue = LockQueue()
    assert queue.pop() is None
    queue.push("x")
    queue.pop()
    assert queue.pop() is None


def test_pop_all_returns_everything_and_empties():
    queue = LockQueue()
    items = [3, 1, 2]
    for item in items:
        queue.push(item)
    assert queue.pop_all() == items
    assert len(queue) == 0
    assert queue.pop_all() == []


def test_clear_discards_items():
    queue = LockQueue()
    queue.push("a")
    queue.push("b")
    queue.clear()
    assert queue.pop() is None
    assert len(queue) == 0


def test_concurrent_pushes_are_all_kept():
    queue = LockQueue()
    workers, per_worker = 4, 250

    def work(base):
        for n in range(per_worker):
            queue.push((base, n))

    threads = [threading.Thread(target=work, args=(w,)) for w in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    items = queue.pop_all()
    assert len(items) == workers * per_worker
    for w in range(workers):
        assert [n for base, n in items if base == w] == list(range(per_worker))