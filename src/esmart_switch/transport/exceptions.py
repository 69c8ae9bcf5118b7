"""Transport layer errors, extending the core exception hierarchy."""

from __future__ import annotations

from esmart_switch.protocol.exceptions import SwitchProtocolError


class TransportError(SwitchProtocolError):
    """Handshake or network failure on the broker link.

    Raised when:
    - the broker refuses or times out the connect handshake
    - the established link drops

    Absorbed by the reconnect loop; only visible as a state transition.

    Attributes:
        reason: Specific failure reason

    """

    def __init__(self, reason: str) -> None:
        self.reason: str = reason
        super().__init__(f"Transport error: {reason}")


class NoActiveSessionError(SwitchProtocolError):
    """A command was issued without a Connected broker session.

    Raised when:
    - sending while Disconnected, Connecting or Failed
    - the session drops while the publish is in flight

    Not retried by the core; the caller decides what to do.

    Attributes:
        reason: Specific failure reason
        state: Connection state when the command was rejected

    """

    def __init__(self, reason: str, state: str = "unknown") -> None:
        self.reason: str = reason
        self.state: str = state
        super().__init__(f"No active session: {reason} (state: {state})")
