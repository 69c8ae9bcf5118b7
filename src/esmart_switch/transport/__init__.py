"""Broker session ownership: endpoint parsing, reconnect policy, connection manager."""

from .connection_manager import ConnectionManager
from .endpoint import BrokerEndpoint
from .exceptions import NoActiveSessionError, TransportError
from .retry_policy import ReconnectPolicy

__all__ = [
    "BrokerEndpoint",
    "ConnectionManager",
    "NoActiveSessionError",
    "ReconnectPolicy",
    "TransportError",
]
