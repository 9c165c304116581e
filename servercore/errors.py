"""Fatal conditions raised where the server core refuses to continue."""

from __future__ import annotations


class CrashError(RuntimeError):
    """An invariant of the server core was broken; ``cause`` names which one."""

    def __init__(self, cause: str, detail: str = "") -> None:
        super().__init__(f"{cause}: {detail}" if detail else cause)
        self.cause = cause
        self.detail = detail


def assert_crash(expr: object, cause: str = "ASSERT_CRASH") -> None:
    """Raise :class:`CrashError` with ``cause`` unless ``expr`` is truthy."""
    if not expr:
        raise CrashError(cause)