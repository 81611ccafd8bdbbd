"""Constants used by mysa2mqtt."""

from __future__ import annotations

from .enums import DeviceMode, FanSpeed

# Vendor cloud
MYSA_API_URL = "https://app-prod.mysa.cloud"
COGNITO_REGION = "us-east-1"
COGNITO_CLIENT_ID = "19efs8tgqe942atbqmot5m36t3"
COGNITO_URL = f"https://cognito-idp.{COGNITO_REGION}.amazonaws.com/"
API_TIMEOUT = 10  # seconds
SESSION_EXPIRY_MARGIN = 60  # seconds

ENDPOINT_DEVICES = "devices"
ENDPOINT_FIRMWARE = "devices/firmware"
ENDPOINT_STATE = "devices/state"
ENDPOINT_DEVICE_INFO = "devices/{device_id}"
ENDPOINT_DEVICE_COMMAND = "devices/{device_id}/state"

DEFAULT_POLL_INTERVAL = 30  # seconds

# Emitter events
STATUS_CHANGED = "status_changed"
STATE_CHANGED = "state_changed"
SESSION_CHANGED = "session_changed"

# Raw vendor codes
RAW_MODE_TO_DEVICE_MODE: dict[int, DeviceMode] = {
    1: DeviceMode.OFF,
    2: DeviceMode.AUTO,
    3: DeviceMode.HEAT,
    4: DeviceMode.COOL,
    5: DeviceMode.FAN_ONLY,
    6: DeviceMode.DRY,
}
DEVICE_MODE_TO_RAW_MODE = {value: key for key, value in RAW_MODE_TO_DEVICE_MODE.items()}

RAW_FAN_SPEED_TO_FAN_SPEED: dict[int, FanSpeed] = {
    1: FanSpeed.AUTO,
    3: FanSpeed.LOW,
    5: FanSpeed.MEDIUM,
    7: FanSpeed.HIGH,
    8: FanSpeed.MAX,
}
FAN_SPEED_TO_RAW_FAN_SPEED = {value: key for key, value in RAW_FAN_SPEED_TO_FAN_SPEED.items()}

HEAT_ONLY_MODES: tuple[DeviceMode, ...] = (DeviceMode.OFF, DeviceMode.HEAT)
AC_MODES: tuple[DeviceMode, ...] = (
    DeviceMode.OFF,
    DeviceMode.HEAT,
    DeviceMode.COOL,
    DeviceMode.DRY,
    DeviceMode.FAN_ONLY,
    DeviceMode.AUTO,
)

# Setpoint bounds used when the device does not report any
DEFAULT_MIN_SETPOINT = 0.0
DEFAULT_MAX_SETPOINT = 100.0

# MQTT / Home Assistant
MANUFACTURER = "Mysa"
ORIGIN_NAME = "mysa2mqtt"
SUPPORT_URL = "https://github.com/bourquep/mysa2mqtt"
DEFAULT_DISCOVERY_PREFIX = "homeassistant"
DEFAULT_TOPIC_PREFIX = "mysa2mqtt"
DEFAULT_CLIENT_NAME = "mysa2mqtt"
STATE_UNKNOWN = "None"


class ClimateTopic:
    """Climate entity topic keys."""

    ACTION = "action_topic"
    CURRENT_HUMIDITY = "current_humidity_topic"
    CURRENT_TEMPERATURE = "current_temperature_topic"
    MODE_STATE = "mode_state_topic"
    TEMPERATURE_STATE = "temperature_state_topic"
    FAN_MODE_STATE = "fan_mode_state_topic"

    MODE_COMMAND = "mode_command_topic"
    POWER_COMMAND = "power_command_topic"
    TEMPERATURE_COMMAND = "temperature_command_topic"
    FAN_MODE_COMMAND = "fan_mode_command_topic"


SENSOR_STATE_TOPIC = "state_topic"
