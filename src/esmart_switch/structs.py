"""Core data structures for the switch core."""

from __future__ import annotations

import datetime
import os
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from esmart_switch.const import (
    ESMART_CLIENT_ID_PREFIX,
    ESMART_COMMAND_PREFIX,
    ESMART_CONNECT_TIMEOUT_MS,
    ESMART_DEVICE_TOPIC,
    ESMART_KEEPALIVE,
    ESMART_MQTT_URL,
    ESMART_QOS,
    ESMART_RECONNECT_MAX_MS,
    ESMART_RECONNECT_MS,
    ESMART_TIMER_SLOT,
    MAX_TIMER_SLOT,
)
from esmart_switch.utils import env_int, generate_client_id

DAYS_PER_WEEK = 7

PowerPayload = Literal["ON", "OFF"]


class ConnectionState(Enum):
    """Broker session state. Only the ConnectionManager transitions it."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FAILED = "failed"


class Weekday(IntEnum):
    """Day positions in the timer day mask (Sunday first)."""

    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6


class TimerAction(IntEnum):
    """What the timer does to the relay when it fires."""

    OFF = 0
    ON = 1


@dataclass(frozen=True, slots=True)
class ScheduleSpec:
    """A recurring on/off action confirmed by the user.

    ``days`` holds seven flags, index 0 = Sunday. An all-False selection is
    encoded as every day; see ``protocol.codec.day_mask``.
    """

    days: tuple[bool, ...]
    hour: int
    minute: int
    action: TimerAction = TimerAction.ON
    enabled: bool = True

    @classmethod
    def at(
        cls,
        time_of_day: datetime.time | datetime.datetime,
        days: Iterable[bool] = (False,) * DAYS_PER_WEEK,
        action: TimerAction = TimerAction.ON,
        enabled: bool = True,
    ) -> ScheduleSpec:
        """Build a schedule from a picker value; only hour and minute are kept."""
        return cls(
            days=tuple(days),
            hour=time_of_day.hour,
            minute=time_of_day.minute,
            action=action,
            enabled=enabled,
        )

    @classmethod
    def from_weekdays(
        cls,
        weekdays: Iterable[Weekday],
        hour: int,
        minute: int,
        action: TimerAction = TimerAction.ON,
        enabled: bool = True,
    ) -> ScheduleSpec:
        selected = set(weekdays)
        return cls(
            days=tuple(day in selected for day in Weekday),
            hour=hour,
            minute=minute,
            action=action,
            enabled=enabled,
        )


class TimerPayload(BaseModel):
    """Timer command record, serialized as compact JSON on the wire.

    Field names and order are the ones the firmware parses.
    """

    model_config = ConfigDict(frozen=True)

    Enable: int
    Mode: int
    Time: str
    Window: int
    Days: str
    Repeat: int
    Output: int
    Action: int

    def to_wire(self) -> bytes:
        return self.model_dump_json().encode("utf-8")


@dataclass(frozen=True, slots=True)
class DeviceSnapshot:
    """Read-only view handed to the presentation layer.

    ``power_on`` is the last *requested* state; the device never confirms it.
    """

    connection: ConnectionState = ConnectionState.DISCONNECTED
    power_on: bool = False

    @property
    def connected(self) -> bool:
        return self.connection is ConnectionState.CONNECTED


class BrokerOptions(BaseModel):
    """Connection parameters for the broker session.

    Defaults come from the ESMART_* environment variables, see ``const``.
    """

    url: str = ESMART_MQTT_URL
    client_id: str = Field(default_factory=lambda: generate_client_id(ESMART_CLIENT_ID_PREFIX))
    reconnect_interval_ms: int = Field(default=ESMART_RECONNECT_MS, gt=0)
    reconnect_max_interval_ms: int | None = Field(default=ESMART_RECONNECT_MAX_MS, gt=0)
    connect_timeout_ms: int = Field(default=ESMART_CONNECT_TIMEOUT_MS, gt=0)
    keepalive: int = Field(default=ESMART_KEEPALIVE, gt=0)
    qos: int = Field(default=ESMART_QOS, ge=0, le=2)
    command_prefix: str = ESMART_COMMAND_PREFIX
    device_topic: str = ESMART_DEVICE_TOPIC
    timer_slot: int = Field(default=ESMART_TIMER_SLOT, ge=1, le=MAX_TIMER_SLOT)

    @classmethod
    def from_env(cls) -> BrokerOptions:
        """Re-read the environment instead of the values captured at import time."""
        prefix = os.environ.get("ESMART_CLIENT_ID_PREFIX", ESMART_CLIENT_ID_PREFIX)
        return cls(
            url=os.environ.get("ESMART_MQTT_URL", ESMART_MQTT_URL),
            client_id=os.environ.get("ESMART_CLIENT_ID") or generate_client_id(prefix),
            reconnect_interval_ms=env_int("ESMART_RECONNECT_MS", ESMART_RECONNECT_MS),
            reconnect_max_interval_ms=env_int("ESMART_RECONNECT_MAX_MS", 0) or None,
            connect_timeout_ms=env_int("ESMART_CONNECT_TIMEOUT_MS", ESMART_CONNECT_TIMEOUT_MS),
            keepalive=env_int("ESMART_KEEPALIVE", ESMART_KEEPALIVE),
            qos=env_int("ESMART_QOS", ESMART_QOS),
            command_prefix=os.environ.get("ESMART_COMMAND_PREFIX", ESMART_COMMAND_PREFIX),
            device_topic=os.environ.get("ESMART_DEVICE_TOPIC", ESMART_DEVICE_TOPIC),
            timer_slot=env_int("ESMART_TIMER_SLOT", ESMART_TIMER_SLOT),
        )

    @property
    def reconnect_interval_seconds(self) -> float:
        return self.reconnect_interval_ms / 1000.0

    @property
    def reconnect_max_interval_seconds(self) -> float:
        ceiling = self.reconnect_max_interval_ms or self.reconnect_interval_ms
        return max(ceiling, self.reconnect_interval_ms) / 1000.0

    @property
    def connect_timeout_seconds(self) -> float:
        return self.connect_timeout_ms / 1000.0
