"""Size-class memory pools and a recycling pool for objects of one type."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from servercore.errors import CrashError, assert_crash

HEADER_SIZE = 16
MAX_ALLOC_SIZE = 4096

T = TypeVar("T")


@dataclass(eq=False)
class MemoryBlock:
    """A chunk of storage with its allocation header.

    ``alloc_size`` counts the header too and is zero while the block sits in
    a pool.
    """

    buffer: bytearray
    alloc_size: int = 0

    @property
    def data(self) -> memoryview:
        """The usable bytes after the header."""
        return memoryview(self.buffer)[: max(self.alloc_size - HEADER_SIZE, 0)]


class MemoryPool:
    """A free list of blocks that all have the same allocation size."""

    def __init__(self, alloc_size: int) -> None:
        self.alloc_size = alloc_size
        self._free: deque[MemoryBlock] = deque()
        self._lock = threading.Lock()
        self._use_count = 0
        self._reserve_count = 0

    @property
    def use_count(self) -> int:
        """Blocks handed out and not yet returned."""
        return self._use_count

    @property
    def reserve_count(self) -> int:
        """Blocks waiting in the pool."""
        return self._reserve_count

    def push(self, block: MemoryBlock) -> None:
        """Return ``block`` to the pool."""
        block.alloc_size = 0
        with self._lock:
            self._free.append(block)
            self._use_count -= 1
            self._reserve_count += 1

    def pop(self) -> MemoryBlock:
        """Take a block from the pool, creating one if the pool is empty."""
        with self._lock:
            if self._free:
                block = self._free.pop()
                assert_crash(block.alloc_size == 0)
                self._reserve_count -= 1
            else:
                block = MemoryBlock(bytearray(max(self.alloc_size - HEADER_SIZE, 0)))
            self._use_count += 1
        return block


class Memory:
    """Routes allocations to pools by size; large requests bypass the pools.

    Pools step by 32 bytes up to 1024, then by 128 up to 2048, then by 256 up
    to 4096. Sizes the steps leave without a pool are allocated directly.
    """

    def __init__(self) -> None:
        self._pools: list[MemoryPool] = []
        self._pool_table: list[MemoryPool | None] = [None] * (MAX_ALLOC_SIZE + 1)

        table_index = 0
        size = 32
        for step, limit in ((32, 1024), (128, 2048), (256, 4096)):
            while size <= limit:
                pool = MemoryPool(size)
                self._pools.append(pool)
                while table_index <= size:
                    self._pool_table[table_index] = pool
                    table_index += 1
                size += step

    @property
    def pools(self) -> tuple[MemoryPool, ...]:
        return tuple(self._pools)

    def pool_for(self, alloc_size: int) -> MemoryPool | None:
        """The pool serving ``alloc_size`` bytes (header included), if any."""
        if alloc_size < 0:
            raise ValueError(f"negative allocation size: {alloc_size}")
        if alloc_size > MAX_ALLOC_SIZE:
            return None
        return self._pool_table[alloc_size]

    def allocate(self, size: int) -> MemoryBlock:
        """Return a block with at least ``size`` usable bytes."""
        if size < 0:
            raise ValueError(f"negative allocation size: {size}")
        alloc_size = size + HEADER_SIZE
        pool = self.pool_for(alloc_size)
        block = pool.pop() if pool is not None else MemoryBlock(bytearray(size))
        block.alloc_size = alloc_size
        return block

    def release(self, block: MemoryBlock) -> None:
        """Give ``block`` back; releasing it twice is a crash."""
        alloc_size = block.alloc_size
        assert_crash(alloc_size > 0)
        pool = self.pool_for(alloc_size)
        if pool is not None:
            pool.push(block)
        else:
            block.alloc_size = 0


class ObjectPool(Generic[T]):
    """Recycles instances of one class instead of building new ones."""

    def __init__(self, cls: type[T]) -> None:
        self._cls = cls
        self._free: deque[T] = deque()
        self._live: set[int] = set()
        self._lock = threading.Lock()

    @property
    def use_count(self) -> int:
        return len(self._live)

    @property
    def reserve_count(self) -> int:
        return len(self._free)

    def pop(self, *args: Any, **kwargs: Any) -> T:
        """Return an initialised instance, reusing a released one if possible."""
        with self._lock:
            obj = self._free.pop() if self._free else self._cls.__new__(self._cls)
            self._live.add(id(obj))
        try:
            obj.__init__(*args, **kwargs)
        except BaseException:
            with self._lock:
                self._live.discard(id(obj))
            raise
        return obj

    def push(self, obj: T) -> None:
        """Return ``obj`` for later reuse."""
        with self._lock:
            if id(obj) not in self._live:
                raise CrashError("INVALID_PUSH", type(obj).__name__)
            self._live.remove(id(obj))
            self._free.append(obj)