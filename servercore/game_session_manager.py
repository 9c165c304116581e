"""The set of game sessions currently connected."""

from __future__ import annotations

from typing import Any

from servercore.lock import Lock


class GameSessionManager:
    """Thread-safe set of sessions."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._sessions: set[Any] = set()

    def add(self, session: Any) -> None:
        with self._lock.write_guard("GameSessionManager"):
            self._sessions.add(session)

    def remove(self, session: Any) -> None:
        """Forget ``session``; removing one that is absent does nothing."""
        with self._lock.write_guard("GameSessionManager"):
            self._sessions.discard(session)

    @property
    def sessions(self) -> frozenset[Any]:
        with self._lock.read_guard("GameSessionManager"):
            return frozenset(self._sessions)

    def __len__(self) -> int:
        with self._lock.read_guard("GameSessionManager"):
            return len(self._sessions)

    def __contains__(self, session: object) -> bool:
        with self._lock.read_guard("GameSessionManager"):
            return session in self._sessions


GAME_SESSION_MANAGER = GameSessionManager()