"""Reconnect delay policy for the broker session loop."""

from __future__ import annotations

import random


class ReconnectPolicy:
    """Delay before the next connect attempt.

    With ``max_delay_seconds == base_delay_seconds`` (the default) every retry
    waits the configured reconnect interval. A larger ceiling enables
    exponential backoff: base * 2^attempt, capped, plus optional jitter
    that never pushes the delay past the ceiling.
    """

    def __init__(
        self,
        base_delay_seconds: float = 1.0,
        max_delay_seconds: float | None = None,
        jitter_factor: float = 0.0,
    ):
        """Initialize reconnect policy.

        Args:
            base_delay_seconds: Delay for the first retry (the reconnect interval)
            max_delay_seconds: Backoff ceiling (None = no growth)
            jitter_factor: Jitter as fraction of delay (0.1 = up to 10%)
        """
        self.base_delay_seconds = base_delay_seconds
        self.max_delay_seconds = max(max_delay_seconds or base_delay_seconds, base_delay_seconds)
        self.jitter_factor = jitter_factor

    def get_delay(self, attempt: int) -> float:
        """Delay in seconds for a retry (attempt is 0-indexed)."""
        # cap the exponent; the loop never gives up so attempt grows without bound
        delay = self.base_delay_seconds * (2 ** min(attempt, 32))
        delay = min(delay, self.max_delay_seconds)

        if self.jitter_factor:
            delay += random.uniform(0, delay * self.jitter_factor)
        return min(delay, self.max_delay_seconds)

    def __repr__(self) -> str:
        return (
            f"ReconnectPolicy(base_delay={self.base_delay_seconds}s, "
            f"max_delay={self.max_delay_seconds}s, "
            f"jitter_factor={self.jitter_factor})"
        )
