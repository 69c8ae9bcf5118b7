"""Prometheus metrics registry for the switch core."""

import threading
from typing import Final

from prometheus_client import (  # type: ignore[import-untyped]
    Counter,
    Gauge,
    start_http_server,
)

from esmart_switch.structs import ConnectionState

esmart_switch_command_total: Final = Counter(  # type: ignore[assignment]
    "esmart_switch_command_total",
    "Total commands handled by the command channel",
    ["command", "outcome"],
)

esmart_switch_connection_state: Final = Gauge(  # type: ignore[assignment]
    "esmart_switch_connection_state",
    "Current broker connection state (1 = active)",
    ["state"],
)

esmart_switch_connect_attempt_total: Final = Counter(  # type: ignore[assignment]
    "esmart_switch_connect_attempt_total",
    "Total broker connect attempts",
    ["outcome"],
)

esmart_switch_transport_error_total: Final = Counter(  # type: ignore[assignment]
    "esmart_switch_transport_error_total",
    "Total transport errors on an established session",
    ["reason"],
)

_server_state = {"started": False}
_server_lock = threading.Lock()


def start_metrics_server(port: int = 9400) -> None:
    """Start Prometheus HTTP metrics server (idempotent)."""
    with _server_lock:
        if not _server_state["started"]:
            start_http_server(port)  # type: ignore[no-untyped-call]
            _server_state["started"] = True


def record_command(command: str, outcome: str) -> None:
    """Record a command outcome (sent, rejected, failed)."""
    esmart_switch_command_total.labels(command=command, outcome=outcome).inc()  # type: ignore[no-untyped-call]


def record_connection_state(state: str) -> None:
    """Record connection state change."""
    # one-hot: 1 for the current state, 0 for the rest
    for s in ConnectionState:
        value = 1 if s.value == state else 0
        esmart_switch_connection_state.labels(state=s.value).set(value)  # type: ignore[no-untyped-call]


def record_connect_attempt(outcome: str) -> None:
    """Record a connect attempt (success, failure)."""
    esmart_switch_connect_attempt_total.labels(outcome=outcome).inc()  # type: ignore[no-untyped-call]


def record_transport_error(reason: str) -> None:
    """Record a transport error on an established session."""
    esmart_switch_transport_error_total.labels(reason=reason).inc()  # type: ignore[no-untyped-call]
