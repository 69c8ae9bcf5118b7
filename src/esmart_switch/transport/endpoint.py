"""Broker URL parsing into aiomqtt connection arguments."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal
from urllib.parse import urlsplit

Transport = Literal["tcp", "websockets"]

# scheme -> (transport, tls, default port)
_SCHEMES: dict[str, tuple[Transport, bool, int]] = {
    "mqtt": ("tcp", False, 1883),
    "tcp": ("tcp", False, 1883),
    "mqtts": ("tcp", True, 8883),
    "ssl": ("tcp", True, 8883),
    "ws": ("websockets", False, 80),
    "wss": ("websockets", True, 443),
}


@dataclass(frozen=True, slots=True)
class BrokerEndpoint:
    """Where and how to reach the broker."""

    hostname: str
    port: int
    transport: Transport = "tcp"
    tls: bool = False
    websocket_path: str | None = None

    @classmethod
    def parse(cls, url: str) -> BrokerEndpoint:
        """Parse ``scheme://host[:port][/path]``.

        Raises:
            ValueError: unknown scheme or missing host

        """
        parts = urlsplit(url)
        scheme = parts.scheme.casefold()
        if scheme not in _SCHEMES:
            msg = f"Unsupported broker URL scheme: {parts.scheme!r} in {url!r}"
            raise ValueError(msg)
        if not parts.hostname:
            msg = f"Broker URL has no host: {url!r}"
            raise ValueError(msg)

        transport, tls, default_port = _SCHEMES[scheme]
        websocket_path = None
        if transport == "websockets":
            websocket_path = parts.path or "/mqtt"
        return cls(
            hostname=parts.hostname,
            port=parts.port or default_port,
            transport=transport,
            tls=tls,
            websocket_path=websocket_path,
        )

    def __str__(self) -> str:
        scheme = {("tcp", False): "mqtt", ("tcp", True): "mqtts", ("websockets", False): "ws"}.get(
            (self.transport, self.tls),
            "wss",
        )
        return f"{scheme}://{self.hostname}:{self.port}{self.websocket_path or ''}"
