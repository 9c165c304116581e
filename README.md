# servercore

Building blocks for a multi-threaded game server. It has no dependencies
outside the standard library.

## Contents

- `servercore.errors`: `CrashError`, raised when an invariant is broken (its
  `cause` names which), and `assert_crash(expr, cause)`.
- `servercore.tls`: `thread_state()` returns the calling thread's
  `ThreadState` (`thread_id`, `end_tick_count`, `lock_stack`,
  `current_job_queue`); `tick_count()` gives milliseconds from a monotonic
  clock.
- `servercore.lock.Lock`: a reader-writer lock. The thread that holds the
  write lock may take it again and may also take the read lock. `read_guard`
  and `write_guard` are context managers. Waiting longer than the acquire
  timeout (10 seconds by default) raises `CrashError("LOCK_TIMEOUT")`. Pass a
  `DeadLockProfiler` to have every acquisition recorded.
- `servercore.deadlock.DeadLockProfiler`: records the order in which named
  locks are taken on each thread and raises `DeadlockError` (with the cycle's
  edges in `cycle`) when two orders contradict each other.
- `servercore.lock_queue.LockQueue`: a thread-safe FIFO with `push`, `pop`
  (which returns `None` when empty), `pop_all` and `clear`.
- `servercore.memory`: `Memory` routes allocations to `MemoryPool`s by size
  class (32-byte steps up to 1024, 128 up to 2048, 256 up to 4096, counting a
  16-byte header); larger requests bypass the pools. Releasing a block twice
  is a crash. `ObjectPool` recycles instances of one class.
- `servercore.recv_buffer.RecvBuffer`: a receive buffer with separate read and
  write cursors, ten times the given size; `clean` compacts unread data once
  less than one buffer size is free.
- `servercore.net_address`: `NetAddress`, an IPv4 address and port, and
  `ip2address` to pack a dotted address.
- `servercore.job_queue`: `Job`, `JobQueue` and `GlobalQueue`. The thread that
  pushes the first job into an idle queue runs the queue, unless it is already
  running one or the push is `push_only`; the queue then goes to the global
  queue. A thread that runs past its `end_tick_count` also hands the queue to
  the global queue for another worker.
- `servercore.job_timer.JobTimer`: holds jobs reserved for a later tick and
  pushes them into their queues from `distribute(now)`. Only a weak reference
  to the owning queue is kept.
- `servercore.thread_manager.ThreadManager`: starts worker threads, each with
  its own thread id, joins them (also on leaving a `with` block), and provides
  `do_global_queue_work` and `distribute_reserved_jobs` for a worker's loop.
  `do_global_queue_work` runs only while `tick_count()` has not passed the
  thread's `end_tick_count`, so set that first.
- `servercore.event`: `EventType` and the completion events `ConnectEvent`,
  `DisconnectEvent`, `AcceptEvent`, `RecvEvent` and `SendEvent`.
- `servercore.session`: `Session`, `PacketSession`, `PacketHeader` and
  `SendBuffer`.
- `servercore.service`: `Service` and `ServiceType`. A service builds
  sessions with its factory and tracks the connected ones.
- `servercore.game_session_manager.GameSessionManager`: a thread-safe set of
  sessions.

## Examples

```python
from servercore.job_queue import GlobalQueue, Job, JobQueue
from servercore.job_timer import JobTimer

results = []
queue = JobQueue(GlobalQueue())
queue.push(Job(results.append, 1))      # runs at once on this thread
assert results == [1]

timer = JobTimer()
timer.reserve(100, queue, Job(results.append, "late"))
assert timer.distribute(50) == 0
assert timer.distribute(100) == 1
assert results == [1, "late"]
```

Packets are framed as `[size:2][id:2][payload]`, little-endian. The size
field counts the whole packet, header included; a size smaller than the
header disconnects the session. Subclass `PacketSession` and override
`on_recv_packet` to receive each complete packet:

```python
from servercore.session import PacketHeader, PacketSession

class GameSession(PacketSession):
    def __init__(self):
        super().__init__()
        self.packet_ids = []

    def on_recv_packet(self, buffer):
        self.packet_ids.append(PacketHeader.parse(buffer).id)

session = GameSession()
session.process_recv(PacketHeader(6, 1).pack() + b"hi" + PacketHeader(4, 2).pack()[:2])
assert session.packet_ids == [1]
assert session.recv_buffer.data_size == 2   # the partial header waits
```

## What it does not do

The package does no network I/O of its own. There is no listener, no
accepting of connections, no socket handling and no completion loop, and
`Service` has no way to start serving. A `Session` is driven from outside:
whatever performs the I/O feeds received bytes to `process_recv`, or
completes the session's events through `dispatch`, and reads what to send
from `pending_send`.

## Tests

```
pip install -e .[test]
pytest
```