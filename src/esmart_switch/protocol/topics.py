"""Command topic layout: ``<prefix>/<device>/<command>``."""

from __future__ import annotations

from dataclasses import dataclass

from esmart_switch.const import MAX_TIMER_SLOT
from esmart_switch.protocol.exceptions import EncodingPreconditionError


@dataclass(frozen=True, slots=True)
class CommandTopics:
    """Topics for one switch, addressed by its device topic segment."""

    device: str
    prefix: str = "cmnd"
    timer_slot: int = 1

    @property
    def power(self) -> str:
        return f"{self.prefix}/{self.device}/POWER"

    def timer(self, slot: int | None = None) -> str:
        """Topic for a timer slot (defaults to the configured slot)."""
        slot = self.timer_slot if slot is None else slot
        if not 1 <= slot <= MAX_TIMER_SLOT:
            raise EncodingPreconditionError("timer_slot_out_of_range", slot)
        return f"{self.prefix}/{self.device}/Timer{slot}"
