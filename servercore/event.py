"""Completion events that carry I/O operations back to their owners."""

from __future__ import annotations

import enum
from typing import Any


class EventType(enum.IntEnum):
    """The kind of operation an event completes."""

    CONNECT = 0
    DISCONNECT = 1
    ACCEPT = 2
    RECV = 3
    SEND = 4


class IocpEvent:
    """An outstanding operation.

    ``owner`` holds the object the completion is dispatched to and keeps it
    alive while the operation is pending. ``num_of_bytes`` and ``error``
    describe how the operation ended.
    """

    def __init__(self, event_type: EventType) -> None:
        self.event_type = EventType(event_type)
        self.owner: Any = None
        self.num_of_bytes = 0
        self.error = 0
        self.init()

    def init(self) -> None:
        """Clear the completion state so the event can be reused."""
        self.num_of_bytes = 0
        self.error = 0

    def __repr__(self) -> str:
        return f"{type(self).__name__}(owner={self.owner!r})"


class ConnectEvent(IocpEvent):
    def __init__(self) -> None:
        super().__init__(EventType.CONNECT)


class DisconnectEvent(IocpEvent):
    def __init__(self) -> None:
        super().__init__(EventType.DISCONNECT)


class AcceptEvent(IocpEvent):
    """An accept; ``session`` is the session waiting for the new peer."""

    def __init__(self) -> None:
        super().__init__(EventType.ACCEPT)
        self.session: Any = None


class RecvEvent(IocpEvent):
    def __init__(self) -> None:
        super().__init__(EventType.RECV)


class SendEvent(IocpEvent):
    """A send; ``send_buffers`` holds the buffers gathered into it."""

    def __init__(self) -> None:
        super().__init__(EventType.SEND)
        self.send_buffers: list[Any] = []