"""Services own the sessions they create and count the live ones."""

from __future__ import annotations

import enum
from typing import Callable, Protocol

from servercore.errors import assert_crash
from servercore.lock import Lock
from servercore.net_address import NetAddress
from servercore.session import Session


class ServiceType(enum.IntEnum):
    SERVER = 0
    CLIENT = 1


class IoCore(Protocol):
    """What a service needs from the I/O core: registering sessions."""

    def register(self, obj: object) -> bool: ...


SessionFactory = Callable[[], Session]


class Service:
    """Creates sessions with its factory and tracks the connected ones."""

    def __init__(
        self,
        service_type: ServiceType,
        address: NetAddress,
        core: IoCore | None,
        session_factory: SessionFactory | None,
        max_session_count: int = 1,
    ) -> None:
        self._lock = Lock()
        self._type = ServiceType(service_type)
        self._net_address = address
        self._core = core
        self._session_factory = session_factory
        self._max_session_count = max_session_count
        self._sessions: set[Session] = set()
        self._session_count = 0

    @property
    def service_type(self) -> ServiceType:
        return self._type

    @property
    def net_address(self) -> NetAddress:
        return self._net_address

    @property
    def core(self) -> IoCore | None:
        return self._core

    @property
    def max_session_count(self) -> int:
        return self._max_session_count

    @property
    def session_count(self) -> int:
        return self._session_count

    @property
    def sessions(self) -> frozenset[Session]:
        with self._lock.read_guard("Service"):
            return frozenset(self._sessions)

    def can_start(self) -> bool:
        return self._session_factory is not None

    def create_session(self) -> Session | None:
        """Build a session for this service; ``None`` if the core refuses it."""
        if self._session_factory is None:
            return None
        session = self._session_factory()
        session.service = self
        if self._core is not None and not self._core.register(session):
            return None
        return session

    def add_session(self, session: Session) -> None:
        with self._lock.write_guard("Service"):
            self._session_count += 1
            self._sessions.add(session)

    def release_session(self, session: Session) -> None:
        """Forget ``session``; releasing one that is not held is a crash."""
        with self._lock.write_guard("Service"):
            assert_crash(session in self._sessions, "RELEASE_UNKNOWN_SESSION")
            self._sessions.remove(session)
            self._session_count -= 1