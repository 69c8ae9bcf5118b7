"""Last-known view of the switch for the presentation layer.

Holds the two observable facts, connection state and requested power
state, as an immutable DeviceSnapshot. Listeners are called with the new
snapshot whenever either fact changes, so the UI never has to poll.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import replace

from esmart_switch.logging_abstraction import get_logger
from esmart_switch.structs import ConnectionState, DeviceSnapshot

logger = get_logger(__name__)

SnapshotListener = Callable[[DeviceSnapshot], None]


class DeviceStateTracker:
    """Projection of connection and power events into a snapshot."""

    lp: str = "state:"

    def __init__(self, power_on: bool = False) -> None:
        self._snapshot: DeviceSnapshot = DeviceSnapshot(power_on=power_on)
        self._listeners: list[SnapshotListener] = []
        self._lock = threading.Lock()

    @property
    def snapshot(self) -> DeviceSnapshot:
        return self._snapshot

    def subscribe(self, listener: SnapshotListener, *, replay: bool = True) -> Callable[[], None]:
        """Register a listener; returns a callable that unregisters it.

        With ``replay`` the listener is called once right away with the
        current snapshot.
        """
        with self._lock:
            self._listeners.append(listener)
            current = self._snapshot
        if replay:
            self._notify_one(listener, current)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def set_connection(self, state: ConnectionState) -> None:
        self._update(connection=state)

    def set_power(self, power_on: bool) -> None:
        """Record the last requested power state (optimistic, never confirmed)."""
        self._update(power_on=power_on)

    def _update(self, **changes: object) -> None:
        with self._lock:
            new = replace(self._snapshot, **changes)  # type: ignore[arg-type]
            if new == self._snapshot:
                return
            self._snapshot = new
            listeners = list(self._listeners)

        logger.debug(
            "%s snapshot -> connection=%s power_on=%s",
            self.lp,
            new.connection.value,
            new.power_on,
        )
        for listener in listeners:
            self._notify_one(listener, new)

    def _notify_one(self, listener: SnapshotListener, snapshot: DeviceSnapshot) -> None:
        try:
            listener(snapshot)
        except Exception:
            logger.exception("%s listener %r failed", self.lp, listener)
