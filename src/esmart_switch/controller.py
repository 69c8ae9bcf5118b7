"""UI-facing entry point: connect/disconnect, toggle, schedule, observe.

Wires the connection manager, command channel and state tracker together.
A presentation layer typically does::

    async with SwitchController() as switch:
        unsubscribe = switch.subscribe(render)
        await switch.toggle_request()
"""

from __future__ import annotations

from collections.abc import Callable
from types import TracebackType

from esmart_switch.const import ESMART_ENABLE_METRICS, ESMART_METRICS_PORT
from esmart_switch.logging_abstraction import get_logger
from esmart_switch.metrics import start_metrics_server
from esmart_switch.mqtt.command_channel import CommandChannel
from esmart_switch.protocol.topics import CommandTopics
from esmart_switch.state_tracker import DeviceStateTracker, SnapshotListener
from esmart_switch.structs import BrokerOptions, DeviceSnapshot, PowerPayload, ScheduleSpec, TimerPayload
from esmart_switch.transport.connection_manager import ConnectionManager
from esmart_switch.transport.retry_policy import ReconnectPolicy

logger = get_logger(__name__)


class SwitchController:
    """One switch, one broker session."""

    lp: str = "controller:"

    def __init__(
        self,
        options: BrokerOptions | None = None,
        *,
        tracker: DeviceStateTracker | None = None,
        retry_policy: ReconnectPolicy | None = None,
        enable_metrics: bool = ESMART_ENABLE_METRICS,
    ) -> None:
        self.options: BrokerOptions = options or BrokerOptions.from_env()
        self.tracker: DeviceStateTracker = tracker or DeviceStateTracker()
        self.connection: ConnectionManager = ConnectionManager(self.options, self.tracker, retry_policy)
        self.channel: CommandChannel = CommandChannel(
            self.connection,
            CommandTopics(
                device=self.options.device_topic,
                prefix=self.options.command_prefix,
                timer_slot=self.options.timer_slot,
            ),
            qos=self.options.qos,
        )
        self.enable_metrics: bool = enable_metrics

    @property
    def snapshot(self) -> DeviceSnapshot:
        return self.tracker.snapshot

    def subscribe(self, listener: SnapshotListener, *, replay: bool = True) -> Callable[[], None]:
        """Observe connectivity and power changes. Returns an unsubscribe callable."""
        return self.tracker.subscribe(listener, replay=replay)

    async def connect(self) -> None:
        if self.enable_metrics:
            start_metrics_server(ESMART_METRICS_PORT)
        await self.connection.start()

    async def disconnect(self) -> None:
        await self.connection.stop()

    async def toggle_request(self) -> PowerPayload:
        """Request the opposite of the last requested power state."""
        return await self.power_request(not self.tracker.snapshot.power_on)

    async def power_request(self, target_on: bool) -> PowerPayload:
        """Send POWER and, once published, record ``target_on`` as the power state.

        Raises:
            NoActiveSessionError: not connected; power state is left unchanged

        """
        payload = await self.channel.send_power(target_on)
        self.tracker.set_power(target_on)
        logger.info("%s power requested: %s", self.lp, payload)
        return payload

    async def schedule_request(self, spec: ScheduleSpec, slot: int | None = None) -> TimerPayload:
        """Send a timer.

        Raises:
            EncodingPreconditionError: schedule or slot out of range
            NoActiveSessionError: not connected

        """
        payload = await self.channel.send_schedule(spec, slot)
        logger.info(
            "%s timer set: %s on days %s -> action %s",
            self.lp,
            payload.Time,
            payload.Days,
            payload.Action,
        )
        return payload

    async def __aenter__(self) -> SwitchController:
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.disconnect()
