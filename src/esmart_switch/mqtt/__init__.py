"""Outbound MQTT command emission for the switch.

- command_channel.py: CommandChannel, one publish per POWER/Timer request
"""

from .command_channel import CommandChannel

__all__ = ["CommandChannel"]
