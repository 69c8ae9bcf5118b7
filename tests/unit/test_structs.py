"""Unit tests for core data structures and broker options."""

from __future__ import annotations

import datetime
import re

import pytest
from pydantic import ValidationError

from esmart_switch.structs import (
    BrokerOptions,
    ConnectionState,
    DeviceSnapshot,
    ScheduleSpec,
    TimerAction,
    Weekday,
)


class TestScheduleSpec:
    """Tests for ScheduleSpec constructors"""

    def test_at_keeps_hour_and_minute_only(self):
        picked = datetime.datetime(2026, 10, 19, 7, 30, 45, 123)
        spec = ScheduleSpec.at(picked, action=TimerAction.OFF)

        assert (spec.hour, spec.minute) == (7, 30)
        assert spec.days == (False,) * 7
        assert spec.action is TimerAction.OFF
        assert spec.enabled is True

    def test_at_accepts_time(self):
        spec = ScheduleSpec.at(datetime.time(18, 0), days=[True] * 7)
        assert (spec.hour, spec.minute) == (18, 0)
        assert spec.days == (True,) * 7

    def test_from_weekdays_sunday_first(self):
        spec = ScheduleSpec.from_weekdays([Weekday.SUNDAY, Weekday.SATURDAY], hour=9, minute=0)
        assert spec.days == (True, False, False, False, False, False, True)

    def test_frozen(self):
        spec = ScheduleSpec(days=(False,) * 7, hour=1, minute=2)
        with pytest.raises(AttributeError):
            spec.hour = 3  # type: ignore[misc]


class TestDeviceSnapshot:
    """Tests for DeviceSnapshot"""

    def test_defaults(self):
        snap = DeviceSnapshot()
        assert snap.connection is ConnectionState.DISCONNECTED
        assert snap.power_on is False
        assert snap.connected is False

    def test_connected_only_when_connected(self):
        for state in ConnectionState:
            assert DeviceSnapshot(connection=state).connected is (state is ConnectionState.CONNECTED)


class TestBrokerOptions:
    """Tests for BrokerOptions"""

    def test_generated_client_ids_are_unique(self):
        ids = {BrokerOptions().client_id for _ in range(20)}
        assert len(ids) == 20
        assert all(re.fullmatch(r"rn_led_[0-9a-f]{6}", cid) for cid in ids)

    def test_seconds_conversions(self):
        opts = BrokerOptions(reconnect_interval_ms=1500, connect_timeout_ms=5000)
        assert opts.reconnect_interval_seconds == 1.5
        assert opts.connect_timeout_seconds == 5.0
        assert opts.reconnect_max_interval_seconds == 1.5

    def test_max_interval_never_below_interval(self):
        opts = BrokerOptions(reconnect_interval_ms=2000, reconnect_max_interval_ms=500)
        assert opts.reconnect_max_interval_seconds == 2.0

    @pytest.mark.parametrize("field", [
        {"reconnect_interval_ms": 0},
        {"connect_timeout_ms": -1},
        {"qos": 3},
        {"timer_slot": 0},
        {"timer_slot": 17},
    ])
    def test_invalid_values_rejected(self, field):
        with pytest.raises(ValidationError):
            _ = BrokerOptions(**field)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("ESMART_MQTT_URL", "mqtt://10.0.0.2:1884")
        monkeypatch.setenv("ESMART_CLIENT_ID", "panel-1")
        monkeypatch.setenv("ESMART_RECONNECT_MS", "250")
        monkeypatch.setenv("ESMART_DEVICE_TOPIC", "porch")
        monkeypatch.setenv("ESMART_TIMER_SLOT", "4")
        monkeypatch.setenv("ESMART_CONNECT_TIMEOUT_MS", "not-a-number")

        opts = BrokerOptions.from_env()

        assert opts.url == "mqtt://10.0.0.2:1884"
        assert opts.client_id == "panel-1"
        assert opts.reconnect_interval_ms == 250
        assert opts.device_topic == "porch"
        assert opts.timer_slot == 4
        assert opts.connect_timeout_ms == 5000

    def test_from_env_generates_client_id_with_prefix(self, monkeypatch):
        monkeypatch.delenv("ESMART_CLIENT_ID", raising=False)
        monkeypatch.setenv("ESMART_CLIENT_ID_PREFIX", "wall_")

        assert BrokerOptions.from_env().client_id.startswith("wall_")
