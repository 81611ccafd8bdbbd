"""Translation of MQTT command messages into Mysa device commands."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Union

from .const import DEFAULT_MAX_SETPOINT, DEFAULT_MIN_SETPOINT, ClimateTopic
from .enums import DeviceMode, FanSpeed, TemperatureUnit
from .models import Device
from .translation import DeviceCapabilities
from .utils import clamp, fahrenheit_to_celsius, snap_to_half

_LOGGER = logging.getLogger(__name__)

Logger = Union[logging.Logger, logging.LoggerAdapter]


@dataclass(frozen=True)
class DeviceCommand:
    """Arguments of a single ``set_device_state`` call."""

    device_id: str
    target_temperature: float | None = None
    mode: DeviceMode | None = None
    fan_speed: FanSpeed | None = None


class CommandTranslator:
    """Turn command topic messages into device commands for one thermostat."""

    def __init__(
        self,
        device: Device,
        capabilities: DeviceCapabilities,
        temperature_unit: TemperatureUnit = TemperatureUnit.CELSIUS,
        logger: Logger | None = None,
    ) -> None:
        self._device = device
        self._capabilities = capabilities
        self._temperature_unit = temperature_unit
        self._logger = logger or _LOGGER

    @property
    def command_topics(self) -> list[str]:
        """Command topics this device exposes."""
        topics = [ClimateTopic.MODE_COMMAND]
        if self._capabilities.supports_power_command:
            topics.append(ClimateTopic.POWER_COMMAND)
        topics.append(ClimateTopic.TEMPERATURE_COMMAND)
        if self._capabilities.supports_fan:
            topics.append(ClimateTopic.FAN_MODE_COMMAND)
        return topics

    def translate(self, topic: str, message: str) -> DeviceCommand | None:
        """Return the command for ``message`` on ``topic``, or ``None`` for no call."""
        if topic == ClimateTopic.MODE_COMMAND:
            return DeviceCommand(self._device.id, mode=self._capabilities.parse_mode(message))

        if topic == ClimateTopic.POWER_COMMAND and self._capabilities.supports_power_command:
            return DeviceCommand(self._device.id, mode=self._power_to_mode(message))

        if topic == ClimateTopic.TEMPERATURE_COMMAND:
            if message == "":
                return DeviceCommand(self._device.id)
            temperature = self.parse_temperature(message)
            if temperature is None:
                return None
            return DeviceCommand(self._device.id, target_temperature=temperature)

        if topic == ClimateTopic.FAN_MODE_COMMAND and self._capabilities.supports_fan:
            return DeviceCommand(
                self._device.id, fan_speed=self._capabilities.parse_fan_speed(message)
            )

        self._logger.debug("Ignoring message on unsupported topic %s", topic)
        return None

    @staticmethod
    def _power_to_mode(message: str) -> DeviceMode | None:
        if message == "OFF":
            return DeviceMode.OFF
        if message == "ON":
            return DeviceMode.HEAT
        return None

    def parse_temperature(self, message: str) -> float | None:
        """Parse a set point and bring it into the device's native unit."""
        try:
            temperature = float(message)
        except ValueError:
            temperature = math.nan
        if not math.isfinite(temperature):
            self._logger.warning("Ignoring invalid target temperature %r", message)
            return None

        if self._temperature_unit is TemperatureUnit.FAHRENHEIT:
            minimum = self._device.min_setpoint
            maximum = self._device.max_setpoint
            temperature = clamp(
                snap_to_half(fahrenheit_to_celsius(temperature)),
                DEFAULT_MIN_SETPOINT if minimum is None else minimum,
                DEFAULT_MAX_SETPOINT if maximum is None else maximum,
            )

        return temperature
