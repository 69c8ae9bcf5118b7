"""Exception hierarchy for the switch core.

Errors raise instead of returning sentinel values. Every exception in this
package derives from SwitchProtocolError so callers can catch them all.
"""

from __future__ import annotations


class SwitchProtocolError(Exception):
    """Base exception for all switch core errors."""


class EncodingPreconditionError(SwitchProtocolError):
    """A value handed to the payload codec is out of range.

    Raised when:
    - hour is outside 0..23 or minute outside 0..59
    - the day selection does not hold exactly 7 booleans
    - a timer slot is outside the range the firmware accepts

    Attributes:
        reason: Specific failure reason (e.g., "hour_out_of_range")
        value: The offending value

    """

    def __init__(self, reason: str, value: object = None) -> None:
        self.reason: str = reason
        self.value: object = value
        super().__init__(f"Encoding precondition failed: {reason} (value: {value!r})")
