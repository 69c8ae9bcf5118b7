import os

from esmart_switch import __version__
from esmart_switch.utils import env_int

__all__ = [
    "ESMART_CLIENT_ID_PREFIX",
    "ESMART_COMMAND_PREFIX",
    "ESMART_CONNECT_TIMEOUT_MS",
    "ESMART_DEBUG",
    "ESMART_DEVICE_TOPIC",
    "ESMART_ENABLE_METRICS",
    "ESMART_KEEPALIVE",
    "ESMART_LOG_FORMAT",
    "ESMART_LOG_HUMAN_OUTPUT",
    "ESMART_LOG_JSON_FILE",
    "ESMART_METRICS_PORT",
    "ESMART_MQTT_URL",
    "ESMART_QOS",
    "ESMART_RECONNECT_MAX_MS",
    "ESMART_RECONNECT_MS",
    "ESMART_TIMER_SLOT",
    "ESMART_VERSION",
    "MAX_TIMER_SLOT",
    "POWER_OFF_PAYLOAD",
    "POWER_ON_PAYLOAD",
    "TIMER_MODE_TIME",
    "TIMER_OUTPUT",
    "TIMER_REPEAT",
    "TIMER_WINDOW",
    "YES_ANSWER",
]

YES_ANSWER = ("true", "1", "yes", "y", "t", 1, "on", "o")

ESMART_VERSION: str = __version__

# broker session
ESMART_MQTT_URL: str = os.environ.get("ESMART_MQTT_URL", "wss://broker.emqx.io:8084/mqtt")
ESMART_CLIENT_ID_PREFIX: str = os.environ.get("ESMART_CLIENT_ID_PREFIX", "rn_led_")
ESMART_RECONNECT_MS: int = env_int("ESMART_RECONNECT_MS", 1000)
# unset (0) keeps a constant reconnect interval
ESMART_RECONNECT_MAX_MS: int | None = env_int("ESMART_RECONNECT_MAX_MS", 0) or None
ESMART_CONNECT_TIMEOUT_MS: int = env_int("ESMART_CONNECT_TIMEOUT_MS", 5000)
ESMART_KEEPALIVE: int = env_int("ESMART_KEEPALIVE", 60)
ESMART_QOS: int = env_int("ESMART_QOS", 0)

# device addressing
ESMART_COMMAND_PREFIX: str = os.environ.get("ESMART_COMMAND_PREFIX", "cmnd")
ESMART_DEVICE_TOPIC: str = os.environ.get("ESMART_DEVICE_TOPIC", "messi")
ESMART_TIMER_SLOT: int = env_int("ESMART_TIMER_SLOT", 1)

ESMART_DEBUG: bool = os.environ.get("ESMART_DEBUG", "0").casefold() in YES_ANSWER
ESMART_LOG_FORMAT: str = os.environ.get("ESMART_LOG_FORMAT", "human").casefold()
_json_file = os.environ.get("ESMART_LOG_JSON_FILE")
ESMART_LOG_JSON_FILE: str | None = _json_file if _json_file else None
ESMART_LOG_HUMAN_OUTPUT: str = os.environ.get("ESMART_LOG_HUMAN_OUTPUT", "stdout")

ESMART_ENABLE_METRICS: bool = os.environ.get("ESMART_ENABLE_METRICS", "0").casefold() in YES_ANSWER
ESMART_METRICS_PORT: int = env_int("ESMART_METRICS_PORT", 9400)

# fixed wire values understood by the switch firmware
POWER_ON_PAYLOAD = "ON"
POWER_OFF_PAYLOAD = "OFF"
TIMER_MODE_TIME = 0  # absolute clock time, not sunrise/sunset relative
TIMER_WINDOW = 0
TIMER_REPEAT = 0
TIMER_OUTPUT = 1  # POWER1
MAX_TIMER_SLOT = 16
