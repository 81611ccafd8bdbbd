"""Pydantic models for Mysa cloud payloads and bridge telemetry."""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .const import RAW_FAN_SPEED_TO_FAN_SPEED, RAW_MODE_TO_DEVICE_MODE
from .enums import DeviceMode, FanSpeed


class Device(BaseModel):
    """A thermostat as listed by the Mysa cloud."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    id: str = Field(alias="Id")
    name: str = Field("", alias="Name")
    model: str = Field("", alias="Model")
    voltage: Optional[float] = Field(None, alias="Voltage")
    max_current: Optional[str] = Field(None, alias="MaxCurrent")
    min_setpoint: Optional[float] = Field(None, alias="MinSetpoint")
    max_setpoint: Optional[float] = Field(None, alias="MaxSetpoint")

    @field_validator("max_current", mode="before")
    @classmethod
    def _coerce_max_current(cls, v):
        # the cloud sends either "15" or 15
        if v is None:
            return None
        return str(v)

    @property
    def rated_max_current(self) -> float | None:
        """Return ``MaxCurrent`` as a number, or ``None`` if it does not parse."""
        if not self.max_current:
            return None
        try:
            value = float(self.max_current)
        except ValueError:
            return None
        return None if math.isnan(value) else value


class Firmware(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    installed_version: Optional[str] = Field(None, alias="InstalledVersion")


class Reading(BaseModel):
    """A single timestamped value as found in device state payloads."""

    model_config = ConfigDict(extra="ignore")

    v: Any = None
    t: Optional[int] = None


class DeviceState(BaseModel):
    """Point-in-time snapshot of one device, fetched once at start."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    kind: Literal["snapshot"] = "snapshot"
    device_id: Optional[str] = Field(None, alias="Device")
    corrected_temp: Optional[Reading] = Field(None, alias="CorrectedTemp")
    humidity: Optional[Reading] = Field(None, alias="Humidity")
    tstat_mode: Optional[Reading] = Field(None, alias="TstatMode")
    fan_speed: Optional[Reading] = Field(None, alias="FanSpeed")
    duty: Optional[Reading] = Field(None, alias="Duty")
    set_point: Optional[Reading] = Field(None, alias="SetPoint")
    current: Optional[Reading] = Field(None, alias="Current")

    @staticmethod
    def _value(reading: Reading | None) -> Any:
        return reading.v if reading is not None else None

    @property
    def temperature(self) -> float | None:
        return self._value(self.corrected_temp)

    @property
    def humidity_value(self) -> float | None:
        return self._value(self.humidity)

    @property
    def raw_mode(self) -> int | None:
        return self._value(self.tstat_mode)

    @property
    def raw_fan_speed(self) -> int | None:
        return self._value(self.fan_speed)

    @property
    def duty_cycle(self) -> float | None:
        return self._value(self.duty)

    @property
    def set_point_value(self) -> float | None:
        return self._value(self.set_point)

    @property
    def current_value(self) -> float | None:
        return self._value(self.current)

    @property
    def mode(self) -> DeviceMode | None:
        """Canonical mode, or ``None`` for an unmapped raw code."""
        return RAW_MODE_TO_DEVICE_MODE.get(self.raw_mode)  # type: ignore[arg-type]

    @property
    def fan_speed_mode(self) -> FanSpeed | None:
        """Canonical fan speed, or ``None`` for an unmapped raw code."""
        return RAW_FAN_SPEED_TO_FAN_SPEED.get(self.raw_fan_speed)  # type: ignore[arg-type]


class DeviceStates(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    states: Dict[str, DeviceState] = Field(default_factory=dict, alias="DeviceStatesObj")

    def get(self, device_id: str) -> DeviceState | None:
        return self.states.get(device_id)


class StatusPush(BaseModel):
    """Periodic telemetry pushed for one device."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["status"] = "status"
    device_id: str
    temperature: float
    humidity: float
    set_point: Optional[float] = None
    current: Optional[float] = None
    duty_cycle: Optional[float] = None

    @classmethod
    def from_state(cls, device_id: str, state: DeviceState) -> StatusPush | None:
        """Build a status push from a polled snapshot, or ``None`` without readings.

        The snapshot ``Current`` reading is left out: it stays non-zero on idle
        and switched-off devices, so only the duty cycle is carried over.
        """
        if state.temperature is None or state.humidity_value is None:
            return None
        return cls(
            device_id=device_id,
            temperature=state.temperature,
            humidity=state.humidity_value,
            set_point=state.set_point_value,
            duty_cycle=state.duty_cycle,
        )


class StateChange(BaseModel):
    """Discrete mode / set point / fan speed transition for one device."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["state"] = "state"
    device_id: str
    mode: Optional[DeviceMode] = None
    set_point: Optional[float] = None
    fan_speed: Optional[FanSpeed] = None


TelemetrySample = Annotated[
    Union[DeviceState, StatusPush, StateChange], Field(discriminator="kind")
]


class MysaSession(BaseModel):
    """Cognito tokens persisted between runs."""

    model_config = ConfigDict(extra="ignore")

    username: Optional[str] = None
    id_token: str
    access_token: str
    refresh_token: Optional[str] = None
    expires_at: datetime

    @field_validator("expires_at")
    @classmethod
    def _ensure_aware(cls, v: datetime) -> datetime:
        # naive timestamps are UTC
        return v if v.tzinfo is not None else v.replace(tzinfo=timezone.utc)

    @property
    def is_expired(self) -> bool:
        return datetime.now(timezone.utc) >= self.expires_at
