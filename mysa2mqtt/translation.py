"""Mode, fan speed and action translation between Mysa and Home Assistant."""

from __future__ import annotations

from dataclasses import dataclass

from .const import (
    AC_MODES,
    HEAT_ONLY_MODES,
    RAW_FAN_SPEED_TO_FAN_SPEED,
    RAW_MODE_TO_DEVICE_MODE,
)
from .enums import ClimateAction, DeviceClass, DeviceMode, FanSpeed


def raw_mode_to_mode(raw: int | None) -> DeviceMode | None:
    """Return the canonical mode for a raw code, or ``None`` if unmapped."""
    if raw is None:
        return None
    return RAW_MODE_TO_DEVICE_MODE.get(raw)


def raw_fan_speed_to_fan_speed(raw: int | None) -> FanSpeed | None:
    """Return the canonical fan speed for a raw code, or ``None`` if unmapped."""
    if raw is None:
        return None
    return RAW_FAN_SPEED_TO_FAN_SPEED.get(raw)


def legal_modes(device_class: DeviceClass) -> tuple[DeviceMode, ...]:
    """Return the modes a device class accepts."""
    return AC_MODES if device_class is DeviceClass.AC else HEAT_ONLY_MODES


@dataclass(frozen=True)
class DeviceCapabilities:
    """What a device class can do, selected once per thermostat."""

    device_class: DeviceClass
    legal_modes: tuple[DeviceMode, ...]
    supports_fan: bool
    supports_power_command: bool
    # BB reports idle vs heating through current/duty; AC does not
    infers_idle_from_telemetry: bool

    @classmethod
    def for_class(cls, device_class: DeviceClass) -> DeviceCapabilities:
        is_ac = device_class is DeviceClass.AC
        return cls(
            device_class=device_class,
            legal_modes=legal_modes(device_class),
            supports_fan=is_ac,
            supports_power_command=not is_ac,
            infers_idle_from_telemetry=not is_ac,
        )

    @classmethod
    def for_model(cls, model: str | None) -> DeviceCapabilities:
        return cls.for_class(DeviceClass.from_model(model))

    def parse_mode(self, value: str) -> DeviceMode | None:
        """Return ``value`` as a legal mode for this device, else ``None``."""
        try:
            mode = DeviceMode(value)
        except ValueError:
            return None
        return mode if mode in self.legal_modes else None

    def parse_fan_speed(self, value: str) -> FanSpeed | None:
        """Return ``value`` as a fan speed, else ``None``."""
        if not self.supports_fan:
            return None
        try:
            return FanSpeed(value)
        except ValueError:
            return None


def compute_current_action(
    mode: DeviceMode | None,
    capabilities: DeviceCapabilities,
    current: float | None = None,
    duty_cycle: float | None = None,
) -> ClimateAction:
    """Derive the operating action from the mode and the latest telemetry."""
    if mode is DeviceMode.OFF:
        return ClimateAction.OFF
    if mode is DeviceMode.HEAT:
        if not capabilities.infers_idle_from_telemetry:
            return ClimateAction.HEATING
        if current is not None:
            return ClimateAction.HEATING if current > 0 else ClimateAction.IDLE
        return ClimateAction.HEATING if (duty_cycle or 0) > 0 else ClimateAction.IDLE
    if mode is DeviceMode.COOL:
        return ClimateAction.COOLING
    if mode is DeviceMode.FAN_ONLY:
        return ClimateAction.FAN
    if mode is DeviceMode.DRY:
        return ClimateAction.DRYING
    return ClimateAction.IDLE
