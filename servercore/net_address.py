"""IPv4 socket addresses."""

from __future__ import annotations

import socket
from dataclasses import dataclass


def ip2address(ip: str) -> bytes:
    """Pack a dotted IPv4 address into its four network-order bytes."""
    try:
        return socket.inet_pton(socket.AF_INET, ip)
    except OSError as exc:
        raise ValueError(f"invalid IPv4 address: {ip!r}") from exc


@dataclass(frozen=True)
class NetAddress:
    """An IPv4 address and port; the default is 0.0.0.0:0."""

    ip: str = "0.0.0.0"
    port: int = 0

    def __post_init__(self) -> None:
        ip2address(self.ip)
        if not 0 <= self.port <= 0xFFFF:
            raise ValueError(f"port out of range: {self.port}")

    @classmethod
    def from_sockaddr(cls, sockaddr: tuple) -> NetAddress:
        """Build from an ``(ip, port)`` pair as sockets report it."""
        ip, port = sockaddr[0], sockaddr[1]
        return cls(ip, port)

    @property
    def address(self) -> bytes:
        """The packed IPv4 address."""
        return ip2address(self.ip)

    def sock_addr(self) -> tuple[str, int]:
        """The ``(ip, port)`` pair sockets accept."""
        return (self.ip, self.port)