"""Locks with deadlock detection, job queues and timers, pooled memory and packet sessions for game servers."""

__version__ = "0.1.0"