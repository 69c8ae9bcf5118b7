"""
Shared fixtures for unit tests.

The broker is never contacted: ``fake_broker`` replaces ``aiomqtt.Client``
with FakeMqttClient instances that record publishes and can be told to
refuse the handshake or drop an established link.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Iterator
from unittest.mock import patch

import aiomqtt
import pytest
import pytest_asyncio

from esmart_switch.state_tracker import DeviceStateTracker
from esmart_switch.structs import BrokerOptions, DeviceSnapshot
from esmart_switch.transport.connection_manager import ConnectionManager
from esmart_switch.transport.retry_policy import ReconnectPolicy

TEST_RECONNECT_SECONDS = 0.01


class FakeMqttClient:
    """Minimal stand-in for an aiomqtt.Client session."""

    def __init__(self, hostname: str, **kwargs: object) -> None:
        self.hostname = hostname
        self.kwargs = kwargs
        self.published: list[tuple[str, bytes, int]] = []
        self.connect_error: Exception | None = None
        self.publish_error: Exception | None = None
        self.entered = False
        self.exited = False
        self._link_down = asyncio.Event()

    async def __aenter__(self) -> FakeMqttClient:
        if self.connect_error is not None:
            raise self.connect_error
        self.entered = True
        return self

    async def __aexit__(self, *_exc_info: object) -> None:
        self.exited = True

    async def publish(self, topic: str, payload: bytes | None = None, qos: int = 0, retain: bool = False) -> None:
        if self.publish_error is not None:
            raise self.publish_error
        assert payload is not None
        self.published.append((topic, payload, qos))

    @property
    def messages(self) -> AsyncIterator[aiomqtt.Message]:
        return self._messages()

    async def _messages(self) -> AsyncIterator[aiomqtt.Message]:
        await self._link_down.wait()
        raise aiomqtt.MqttError("Disconnected during message iteration")
        yield  # pragma: no cover

    def drop_link(self) -> None:
        self._link_down.set()


class FakeBroker:
    """Factory patched over aiomqtt.Client; remembers every client it built."""

    def __init__(self) -> None:
        self.clients: list[FakeMqttClient] = []
        self.refuse_next = 0

    def __call__(self, hostname: str, **kwargs: object) -> FakeMqttClient:
        client = FakeMqttClient(hostname, **kwargs)
        if self.refuse_next > 0:
            self.refuse_next -= 1
            client.connect_error = aiomqtt.MqttError("[Errno 111] Connection refused")
        self.clients.append(client)
        return client

    @property
    def latest(self) -> FakeMqttClient:
        return self.clients[-1]

    @property
    def published(self) -> list[tuple[str, bytes, int]]:
        return [msg for client in self.clients for msg in client.published]


@pytest.fixture
def fake_broker() -> Iterator[FakeBroker]:
    broker = FakeBroker()
    with patch("esmart_switch.transport.connection_manager.aiomqtt.Client", broker):
        yield broker


@pytest.fixture
def broker_options() -> BrokerOptions:
    return BrokerOptions(
        url="mqtt://broker.test:1883",
        client_id="rn_led_test01",
        reconnect_interval_ms=10,
        connect_timeout_ms=500,
        device_topic="messi",
    )


@pytest.fixture
def tracker() -> DeviceStateTracker:
    return DeviceStateTracker()


@pytest.fixture
def snapshots(tracker: DeviceStateTracker) -> list[DeviceSnapshot]:
    """Every snapshot the tracker publishes from now on."""
    seen: list[DeviceSnapshot] = []
    _ = tracker.subscribe(seen.append, replay=False)
    return seen


@pytest_asyncio.fixture
async def manager(
    fake_broker: FakeBroker,
    broker_options: BrokerOptions,
    tracker: DeviceStateTracker,
) -> AsyncIterator[ConnectionManager]:
    conn = ConnectionManager(
        broker_options,
        tracker,
        ReconnectPolicy(base_delay_seconds=TEST_RECONNECT_SECONDS),
    )
    yield conn
    await conn.stop()
