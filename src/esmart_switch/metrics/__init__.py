"""Metrics module."""

from .registry import (
    record_command,
    record_connect_attempt,
    record_connection_state,
    record_transport_error,
    start_metrics_server,
)

__all__ = [
    "record_command",
    "record_connect_attempt",
    "record_connection_state",
    "record_transport_error",
    "start_metrics_server",
]
