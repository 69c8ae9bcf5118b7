"""Command channel: encode, borrow the session, publish once.

Fire-and-forget from this layer's point of view. There is no retry and no wait
for a device reply. Delivery beyond the broker hand-off is the QoS level's
business.
"""

from __future__ import annotations

import asyncio

from esmart_switch.correlation import correlation_context
from esmart_switch.logging_abstraction import get_logger
from esmart_switch.metrics import registry
from esmart_switch.protocol.codec import encode_power, encode_schedule
from esmart_switch.protocol.topics import CommandTopics
from esmart_switch.structs import PowerPayload, ScheduleSpec, TimerPayload
from esmart_switch.transport.connection_manager import ConnectionManager
from esmart_switch.transport.exceptions import NoActiveSessionError

logger = get_logger(__name__)


class CommandChannel:
    """Publishes POWER and Timer<n> commands over the manager's live session."""

    lp: str = "channel:"

    def __init__(self, connection: ConnectionManager, topics: CommandTopics, qos: int = 0) -> None:
        self.connection: ConnectionManager = connection
        self.topics: CommandTopics = topics
        self.qos: int = qos
        # FIFO: commands leave in the order they were issued
        self._emit_lock: asyncio.Lock = asyncio.Lock()

    async def send_power(self, target_on: bool) -> PowerPayload:
        """Publish ``ON``/``OFF`` to the POWER topic.

        Raises:
            NoActiveSessionError: not connected (nothing is queued)

        """
        payload = encode_power(target_on)
        await self._emit("power", self.topics.power, payload.encode("ascii"))
        return payload

    async def send_schedule(self, spec: ScheduleSpec, slot: int | None = None) -> TimerPayload:
        """Publish the JSON timer record to the Timer<slot> topic.

        Raises:
            EncodingPreconditionError: schedule or slot out of range (nothing is sent)
            NoActiveSessionError: not connected (nothing is queued)

        """
        payload = encode_schedule(spec)
        topic = self.topics.timer(slot)
        await self._emit("schedule", topic, payload.to_wire())
        return payload

    async def _emit(self, command: str, topic: str, data: bytes) -> None:
        lp = f"{self.lp}{command}:"
        with correlation_context():
            try:
                async with self._emit_lock, self.connection.borrow_session(f"send_{command}") as client:
                    logger.debug("%s publishing to %s: %s", lp, topic, data)
                    _ = await client.publish(topic, data, qos=self.qos, retain=False)
            except NoActiveSessionError as exc:
                outcome = "failed" if exc.__cause__ is not None else "rejected"
                registry.record_command(command, outcome)
                logger.warning("%s not sent: %s", lp, exc.reason)
                raise
            registry.record_command(command, "sent")
            logger.info("%s sent to %s", lp, topic)
