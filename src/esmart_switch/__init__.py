"""Remote-control core for an MQTT-attached ESmart power switch."""

__version__ = "0.1.0"
