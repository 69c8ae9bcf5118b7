"""Encoders for the switch's POWER and Timer<n> commands.

Pure functions: no I/O, no logging. Out-of-range input raises
EncodingPreconditionError instead of being clamped.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from esmart_switch.const import (
    POWER_OFF_PAYLOAD,
    POWER_ON_PAYLOAD,
    TIMER_MODE_TIME,
    TIMER_OUTPUT,
    TIMER_REPEAT,
    TIMER_WINDOW,
)
from esmart_switch.protocol.exceptions import EncodingPreconditionError
from esmart_switch.structs import DAYS_PER_WEEK, PowerPayload, ScheduleSpec, TimerAction, TimerPayload

__all__ = [
    "ALL_DAYS_MASK",
    "day_mask",
    "encode_power",
    "encode_schedule",
    "format_time",
    "parse_time",
]

ALL_DAYS_MASK = "1" * DAYS_PER_WEEK
_NO_DAYS_MASK = "0" * DAYS_PER_WEEK
_TIME_RE = re.compile(r"^([0-2][0-9]):([0-5][0-9])$")


def encode_power(target_on: bool) -> PowerPayload:
    """Literal POWER payload for the requested relay state."""
    return POWER_ON_PAYLOAD if target_on else POWER_OFF_PAYLOAD


def format_time(hour: int, minute: int) -> str:
    """Zero-padded 24-hour ``HH:MM``."""
    if isinstance(hour, bool) or not isinstance(hour, int) or not 0 <= hour <= 23:
        raise EncodingPreconditionError("hour_out_of_range", hour)
    if isinstance(minute, bool) or not isinstance(minute, int) or not 0 <= minute <= 59:
        raise EncodingPreconditionError("minute_out_of_range", minute)
    return f"{hour:02d}:{minute:02d}"


def parse_time(text: str) -> tuple[int, int]:
    """Inverse of format_time."""
    match = _TIME_RE.match(text)
    if match is None:
        raise EncodingPreconditionError("malformed_time", text)
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23:
        raise EncodingPreconditionError("hour_out_of_range", hour)
    return hour, minute


def day_mask(days: Sequence[bool]) -> str:
    """Render the seven day flags as ``'0'``/``'1'``, Sunday first.

    No day selected means every day: the firmware would otherwise store a
    timer that never fires.
    """
    if len(days) != DAYS_PER_WEEK:
        raise EncodingPreconditionError("day_selection_length", len(days))
    if not all(isinstance(day, bool) for day in days):
        raise EncodingPreconditionError("day_selection_type", tuple(days))

    mask = "".join("1" if day else "0" for day in days)
    if mask == _NO_DAYS_MASK:
        return ALL_DAYS_MASK
    return mask


def encode_schedule(spec: ScheduleSpec) -> TimerPayload:
    """Build the Timer<n> record for a confirmed schedule."""
    if not isinstance(spec.action, (TimerAction, bool)):
        raise EncodingPreconditionError("unknown_action", spec.action)

    return TimerPayload(
        Enable=1 if spec.enabled else 0,
        Mode=TIMER_MODE_TIME,
        Time=format_time(spec.hour, spec.minute),
        Window=TIMER_WINDOW,
        Days=day_mask(spec.days),
        Repeat=TIMER_REPEAT,
        Output=TIMER_OUTPUT,
        Action=int(spec.action),
    )
