"""Connections: cursor-driven receiving, gathered sending, packet framing."""

from __future__ import annotations

import abc
import errno
import logging
import struct
import threading
import weakref
from collections import deque
from dataclasses import dataclass
from typing import Any, ClassVar

from servercore.errors import CrashError
from servercore.event import (
    ConnectEvent,
    DisconnectEvent,
    EventType,
    IocpEvent,
    RecvEvent,
    SendEvent,
)
from servercore.lock import Lock
from servercore.net_address import NetAddress
from servercore.recv_buffer import RecvBuffer

logger = logging.getLogger(__name__)

BUFFER_SIZE = 0x10000

WSAECONNABORTED = 10053
WSAECONNRESET = 10054
_DISCONNECT_ERRORS = frozenset(
    {errno.ECONNRESET, errno.ECONNABORTED, WSAECONNRESET, WSAECONNABORTED}
)


@dataclass(frozen=True)
class SendBuffer:
    """Bytes queued for sending."""

    data: bytes = b""

    @property
    def write_size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class PacketHeader:
    """``[size(2)][id(2)]`` little-endian; ``size`` counts the header too."""

    size: int
    id: int

    SIZE: ClassVar[int] = 4
    _FORMAT: ClassVar[struct.Struct] = struct.Struct("<HH")

    @classmethod
    def parse(cls, data: bytes | bytearray | memoryview) -> PacketHeader:
        if len(data) < cls.SIZE:
            raise ValueError(f"packet header needs {cls.SIZE} bytes, got {len(data)}")
        size, packet_id = cls._FORMAT.unpack_from(data)
        return cls(size, packet_id)

    def pack(self) -> bytes:
        return self._FORMAT.pack(self.size, self.id)


class Session:
    """One connection, driven by completions passed to :meth:`dispatch`.

    Registering an operation sets the matching event's ``owner``; whatever
    performs the I/O completes it by dispatching the event back. Subclasses
    override the ``on_*`` hooks; the default hooks keep simple counters.
    """

    def __init__(self) -> None:
        self._service_ref: weakref.ReferenceType | None = None
        self.net_address = NetAddress()
        self._connected = False
        self._state_lock = threading.Lock()
        self._lock = Lock()
        self._lock_name = type(self).__name__

        self.recv_buffer = RecvBuffer(BUFFER_SIZE)
        self._send_queue: deque[SendBuffer] = deque()
        self._send_registered = False
        self.disconnect_cause: str | None = None

        self.connect_count = 0
        self.disconnect_count = 0
        self.total_bytes_sent = 0

        self.connect_event = ConnectEvent()
        self.disconnect_event = DisconnectEvent()
        self.recv_event = RecvEvent()
        self.send_event = SendEvent()

    @property
    def service(self) -> Any:
        """The owning service, or ``None`` once it is gone."""
        return self._service_ref() if self._service_ref is not None else None

    @service.setter
    def service(self, service: Any) -> None:
        self._service_ref = weakref.ref(service) if service is not None else None

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def send_registered(self) -> bool:
        return self._send_registered

    @property
    def pending_send(self) -> bytes:
        """The bytes of the send in flight, gathered into one block."""
        return b"".join(buf.data for buf in self.send_event.send_buffers)

    def disconnect(self, cause: str) -> None:
        """Begin disconnecting; only the first call has an effect."""
        with self._state_lock:
            if not self._connected:
                return
            self._connected = False
        self.disconnect_cause = cause
        logger.info("Disconnect : %s", cause)
        self._register_disconnect()

    def send(self, send_buffer: SendBuffer) -> None:
        """Queue ``send_buffer``, starting a send unless one is in flight."""
        with self._lock.write_guard(self._lock_name):
            self._send_queue.append(send_buffer)
            if self._send_registered:
                return
            self._send_registered = True
            self._register_send()

    def dispatch(self, event: IocpEvent, num_of_bytes: int = 0) -> None:
        """Complete the operation ``event`` stands for."""
        event_type = event.event_type
        if event_type is EventType.CONNECT:
            self.process_connect()
        elif event_type is EventType.DISCONNECT:
            self.process_disconnect()
        elif event_type is EventType.RECV:
            self._process_recv_bytes(num_of_bytes)
        elif event_type is EventType.SEND:
            self.process_send(num_of_bytes)

    def _register_disconnect(self) -> None:
        self.disconnect_event.init()
        self.disconnect_event.owner = self

    def _register_recv(self) -> None:
        if not self.connected:
            return
        self.recv_event.init()
        self.recv_event.owner = self

    def _register_send(self) -> None:
        if not self.connected:
            self._send_registered = False
            return
        event = self.send_event
        event.init()
        event.owner = self
        with self._lock.write_guard(self._lock_name):
            while self._send_queue:
                event.send_buffers.append(self._send_queue.popleft())

    def process_connect(self) -> None:
        """Mark the session connected and start receiving."""
        self.connect_event.owner = None
        service = self.service
        if service is None:
            raise CrashError("NO_SERVICE", self._lock_name)
        with self._state_lock:
            self._connected = True
        service.add_session(self)
        self.on_connected()
        self._register_recv()

    def process_disconnect(self) -> None:
        """Finish disconnecting and leave the service."""
        self.disconnect_event.owner = None
        self.on_disconnected()
        service = self.service
        if service is not None:
            service.release_session(self)

    def process_recv(self, data: bytes) -> None:
        """Take in received ``data``; empty data means the peer closed."""
        self.recv_event.owner = None
        if not data:
            self.disconnect("Recv 0")
            return
        if not self.recv_buffer.write(data):
            self.disconnect("OnWrite Overflow")
            return
        self._process_received()

    def _process_recv_bytes(self, num_of_bytes: int) -> None:
        self.recv_event.owner = None
        if num_of_bytes == 0:
            self.disconnect("Recv 0")
            return
        if not self.recv_buffer.on_write(num_of_bytes):
            self.disconnect("OnWrite Overflow")
            return
        self._process_received()

    def _process_received(self) -> None:
        data_size = self.recv_buffer.data_size
        process_len = self.on_recv(bytes(self.recv_buffer.read_view()))
        if (
            process_len < 0
            or data_size < process_len
            or not self.recv_buffer.on_read(process_len)
        ):
            self.disconnect("OnRead Overflow")
            return
        self.recv_buffer.clean()
        self._register_recv()

    def process_send(self, num_of_bytes: int) -> None:
        """Complete the send in flight and start the next one if queued."""
        self.send_event.owner = None
        self.send_event.send_buffers.clear()
        if num_of_bytes == 0:
            self.disconnect("Send 0")
            return
        self.on_send(num_of_bytes)
        with self._lock.write_guard(self._lock_name):
            if not self._send_queue:
                self._send_registered = False
            else:
                self._register_send()

    def handle_error(self, error_code: int) -> None:
        """Disconnect on a reset or aborted connection; log anything else."""
        if error_code in _DISCONNECT_ERRORS:
            self.disconnect("HandleError")
        else:
            logger.warning("Handle Error : %s", error_code)

    def on_connected(self) -> None:
        """Called once the session is connected; counts connections."""
        self.connect_count += 1

    def on_recv(self, buffer: bytes) -> int:
        """Handle unread bytes and return how many were consumed."""
        return len(buffer)

    def on_send(self, length: int) -> None:
        """Called after ``length`` bytes were sent; totals the bytes sent."""
        self.total_bytes_sent += length

    def on_disconnected(self) -> None:
        """Called once the session is disconnected; counts disconnections."""
        self.disconnect_count += 1


class PacketSession(Session, abc.ABC):
    """A session that splits the byte stream into size-prefixed packets."""

    def on_recv(self, buffer: bytes) -> int:
        view = memoryview(buffer)
        total = len(buffer)
        process_len = 0
        while True:
            data_size = total - process_len
            if data_size < PacketHeader.SIZE:
                break
            header = PacketHeader.parse(view[process_len:])
            if header.size < PacketHeader.SIZE:
                return -1
            if data_size < header.size:
                break
            self.on_recv_packet(bytes(view[process_len : process_len + header.size]))
            process_len += header.size
        return process_len

    @abc.abstractmethod
    def on_recv_packet(self, buffer: bytes) -> None:
        """Handle one whole packet, header included."""