"""Receive buffer with separate read and write cursors."""

from __future__ import annotations

BUFFER_COUNT = 10


class RecvBuffer:
    """Holds received bytes until they are parsed.

    The capacity is ``BUFFER_COUNT`` times ``buffer_size``; ``clean`` moves
    unread data to the front once less than one ``buffer_size`` is free.
    """

    def __init__(self, buffer_size: int) -> None:
        if buffer_size <= 0:
            raise ValueError(f"buffer size must be positive: {buffer_size}")
        self._buffer_size = buffer_size
        self._capacity = buffer_size * BUFFER_COUNT
        self._buffer = bytearray(self._capacity)
        self._read_pos = 0
        self._write_pos = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def read_pos(self) -> int:
        return self._read_pos

    @property
    def write_pos(self) -> int:
        return self._write_pos

    @property
    def data_size(self) -> int:
        """Bytes written but not yet read."""
        return self._write_pos - self._read_pos

    @property
    def free_size(self) -> int:
        """Bytes that can still be written."""
        return self._capacity - self._write_pos

    def clean(self) -> None:
        """Reset or compact the cursors."""
        data_size = self.data_size
        if data_size == 0:
            self._read_pos = self._write_pos = 0
        elif self.free_size < self._buffer_size:
            self._buffer[:data_size] = self._buffer[self._read_pos : self._write_pos]
            self._read_pos = 0
            self._write_pos = data_size

    def on_read(self, num_of_bytes: int) -> bool:
        """Mark bytes as consumed; False if more than are available."""
        if num_of_bytes < 0 or num_of_bytes > self.data_size:
            return False
        self._read_pos += num_of_bytes
        return True

    def on_write(self, num_of_bytes: int) -> bool:
        """Mark bytes as received; False if there is not enough room."""
        if num_of_bytes < 0 or num_of_bytes > self.free_size:
            return False
        self._write_pos += num_of_bytes
        return True

    def write(self, data: bytes) -> bool:
        """Copy ``data`` in at the write cursor; False if it does not fit."""
        size = len(data)
        if size > self.free_size:
            return False
        self._buffer[self._write_pos : self._write_pos + size] = data
        self._write_pos += size
        return True

    def read_view(self) -> memoryview:
        """The unread bytes."""
        return memoryview(self._buffer)[self._read_pos : self._write_pos]

    def write_view(self) -> memoryview:
        """The free space after the write cursor."""
        return memoryview(self._buffer)[self._write_pos :]