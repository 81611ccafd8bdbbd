"""This module contains the enums used across mysa2mqtt."""

from __future__ import annotations

from enum import Enum


class DeviceClass(str, Enum):
    """Hardware family, derived from the device model string."""

    AC = "AC"
    BB = "BB"

    @classmethod
    def from_model(cls, model: str | None) -> DeviceClass:
        """Return ``AC`` for air-conditioner models and ``BB`` otherwise."""
        return cls.AC if (model or "").startswith("AC") else cls.BB


class DeviceMode(str, Enum):
    """Canonical climate modes."""

    OFF = "off"
    HEAT = "heat"
    COOL = "cool"
    DRY = "dry"
    FAN_ONLY = "fan_only"
    AUTO = "auto"


class FanSpeed(str, Enum):
    """Canonical fan speeds (AC only)."""

    AUTO = "auto"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    MAX = "max"


class ClimateAction(str, Enum):
    """Canonical operating actions, as published on the action topic."""

    OFF = "off"
    HEATING = "heating"
    COOLING = "cooling"
    DRYING = "drying"
    FAN = "fan"
    IDLE = "idle"


class TemperatureUnit(str, Enum):
    """Deployment temperature unit."""

    CELSIUS = "C"
    FAHRENHEIT = "F"


class SyncState(str, Enum):
    """Lifecycle states of a thermostat synchronizer."""

    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
