"""Wire payloads and topics understood by the switch firmware."""

from .codec import day_mask, encode_power, encode_schedule, format_time, parse_time
from .exceptions import EncodingPreconditionError, SwitchProtocolError
from .topics import CommandTopics

__all__ = [
    "CommandTopics",
    "EncodingPreconditionError",
    "SwitchProtocolError",
    "day_mask",
    "encode_power",
    "encode_schedule",
    "format_time",
    "parse_time",
]
