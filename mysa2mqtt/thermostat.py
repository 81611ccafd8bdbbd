"""Module that implements the Thermostat synchronizer.

A :class:`Thermostat` bridges one Mysa device to a set of Home Assistant MQTT
entities. It consumes three kinds of telemetry:

* the device state snapshot fetched once at start;
* the periodic status push (``status_changed``);
* the discrete state change (``state_changed``).

It folds them into a single :class:`EntityState` record, which is the only
mutable state it owns and the source of everything it publishes. Inbound MQTT
commands are translated and forwarded to the vendor API. Their effect becomes
visible only when the corresponding event comes back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol, Union

from . import __version__
from .commands import CommandTranslator, DeviceCommand
from .const import (
    MANUFACTURER,
    ORIGIN_NAME,
    STATE_CHANGED,
    STATE_UNKNOWN,
    STATUS_CHANGED,
    SUPPORT_URL,
    ClimateTopic,
)
from .enums import (
    ClimateAction,
    DeviceClass,
    DeviceMode,
    FanSpeed,
    SyncState,
    TemperatureUnit,
)
from .event_emitter import EventEmitter
from .models import Device, DeviceState, DeviceStates, Firmware, StateChange, StatusPush
from .mqtt import (
    Climate,
    DeviceConfiguration,
    MqttPublisher,
    OriginConfiguration,
    Sensor,
)
from .power import estimate_power, format_power
from .translation import DeviceCapabilities, compute_current_action
from .utils import format_decimal

_LOGGER = logging.getLogger(__name__)

Logger = Union[logging.Logger, logging.LoggerAdapter]


class MysaApi(Protocol):
    """The part of the vendor client a thermostat depends on."""

    emitter: EventEmitter

    async def get_device_states(self) -> DeviceStates:
        ...

    async def set_device_state(
        self,
        device_id: str,
        target_temperature: float | None = None,
        mode: DeviceMode | None = None,
        fan_speed: FanSpeed | None = None,
    ) -> None:
        ...

    async def start_realtime_updates(self, device_id: str) -> None:
        ...

    async def stop_realtime_updates(self, device_id: str) -> None:
        ...


@dataclass
class EntityState:
    """Externally visible state of one thermostat."""

    mode: DeviceMode | None = None
    fan_mode: FanSpeed | None = None
    action: ClimateAction | None = None
    current_temperature: float | None = None
    target_temperature: float | None = None
    current_humidity: float | None = None
    power: float | None = None


class Thermostat:
    """Synchronize one Mysa device with its Home Assistant entities."""

    def __init__(
        self,
        api: MysaApi,
        device: Device,
        mqtt: MqttPublisher,
        *,
        firmware: Firmware | None = None,
        serial_number: str | None = None,
        temperature_unit: TemperatureUnit = TemperatureUnit.CELSIUS,
        logger: Logger | None = None,
    ) -> None:
        """Initialize a thermostat and build its entities."""
        self.api = api
        self.device = device
        self.firmware = firmware
        self.serial_number = serial_number
        self.temperature_unit = temperature_unit
        self._logger = logger or logging.LoggerAdapter(_LOGGER, {"device_id": device.id})

        self.capabilities = DeviceCapabilities.for_model(device.model)
        self._translator = CommandTranslator(
            device, self.capabilities, temperature_unit, self._logger
        )
        self._sync_state = SyncState.STOPPED
        self.state = EntityState()

        # bound once so that the same objects are passed to on() and off()
        self._status_handler = self._handle_status_changed
        self._state_handler = self._handle_state_changed

        is_celsius = temperature_unit is TemperatureUnit.CELSIUS
        mqtt_device = DeviceConfiguration(
            identifiers=device.id,
            name=device.name,
            manufacturer=MANUFACTURER,
            model=device.model,
            sw_version=firmware.installed_version if firmware else None,
            serial_number=serial_number,
        )
        origin = OriginConfiguration(
            name=ORIGIN_NAME, sw_version=__version__, support_url=SUPPORT_URL
        )

        climate_config: dict[str, Any] = {
            "name": "Thermostat",
            "modes": [mode.value for mode in self.capabilities.legal_modes],
            "precision": 0.1 if is_celsius else 1.0,
            "temp_step": 0.5 if is_celsius else 1.0,
            "temperature_unit": "C",
            "optimistic": True,
        }
        if device.min_setpoint is not None:
            climate_config["min_temp"] = device.min_setpoint
        if device.max_setpoint is not None:
            climate_config["max_temp"] = device.max_setpoint
        state_topics = [
            ClimateTopic.ACTION,
            ClimateTopic.CURRENT_HUMIDITY,
            ClimateTopic.CURRENT_TEMPERATURE,
            ClimateTopic.MODE_STATE,
            ClimateTopic.TEMPERATURE_STATE,
        ]
        if self.capabilities.supports_fan:
            climate_config["fan_modes"] = [speed.value for speed in FanSpeed]
            state_topics.append(ClimateTopic.FAN_MODE_STATE)

        self.climate = Climate(
            mqtt,
            unique_id=f"mysa_{device.id}_climate",
            device=mqtt_device,
            origin=origin,
            config=climate_config,
            state_topics=state_topics,
            command_topics=self._translator.command_topics,
            command_handler=self.handle_command,
        )
        self.temperature_sensor = Sensor(
            mqtt,
            unique_id=f"mysa_{device.id}_temperature",
            device=mqtt_device,
            origin=origin,
            config=self._sensor_config(
                "Current temperature", "temperature", "°C", 1 if is_celsius else 0
            ),
        )
        self.humidity_sensor = Sensor(
            mqtt,
            unique_id=f"mysa_{device.id}_humidity",
            device=mqtt_device,
            origin=origin,
            config=self._sensor_config("Current humidity", "humidity", "%", 0),
        )
        self.power_sensor = Sensor(
            mqtt,
            unique_id=f"mysa_{device.id}_power",
            device=mqtt_device,
            origin=origin,
            config=self._sensor_config("Current power", "power", "W", 0),
        )

    @staticmethod
    def _sensor_config(name: str, device_class: str, unit: str, precision: int) -> dict[str, Any]:
        return {
            "name": name,
            "device_class": device_class,
            "state_class": "measurement",
            "unit_of_measurement": unit,
            "suggested_display_precision": precision,
            "force_update": True,
        }

    @property
    def id(self) -> str:  # pylint: disable=invalid-name
        """Return the device id."""
        return self.device.id

    @property
    def device_class(self) -> DeviceClass:
        return self.capabilities.device_class

    @property
    def sync_state(self) -> SyncState:
        return self._sync_state

    @property
    def is_started(self) -> bool:
        """Return ``True`` while events are being applied."""
        return self._sync_state is SyncState.RUNNING

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def start(self) -> None:
        """Publish the initial state and begin following realtime updates.

        Does nothing unless stopped. On failure the thermostat is left stopped
        and the error is re-raised.
        """
        if self._sync_state is not SyncState.STOPPED:
            return

        self._sync_state = SyncState.STARTING
        self._logger.debug("Starting thermostat %s (%s)", self.device.name, self.device_class.value)
        subscribed = False
        try:
            states = await self.api.get_device_states()
            snapshot = states.get(self.device.id)
            if snapshot is None:
                self._logger.warning("No state reported for device %s", self.device.id)
                snapshot = DeviceState()
            self.state = EntityState()
            self.climate.reset()
            self._apply_snapshot(snapshot)

            await self.climate.write_config()
            await self.temperature_sensor.write_config()
            await self.humidity_sensor.write_config()
            await self.power_sensor.write_config()

            await self._publish_climate(force=True)
            await self._publish_sensors()

            self.api.emitter.on(STATUS_CHANGED, self._status_handler)
            self.api.emitter.on(STATE_CHANGED, self._state_handler)
            subscribed = True
            self._sync_state = SyncState.RUNNING

            await self.api.start_realtime_updates(self.device.id)
        except Exception:
            if subscribed:
                self._unsubscribe()
            self._sync_state = SyncState.STOPPED
            raise
        self._logger.info("Thermostat %s started", self.device.name)

    async def stop(self) -> None:
        """Stop following updates and clear the sensor readings.

        Mode and action keep their last published values.
        """
        if self._sync_state is not SyncState.RUNNING:
            return

        self._sync_state = SyncState.STOPPING
        try:
            self._unsubscribe()
            await self.api.stop_realtime_updates(self.device.id)

            self.state.power = None
            await self.power_sensor.publish_state(STATE_UNKNOWN)
            await self.temperature_sensor.publish_state(STATE_UNKNOWN)
            await self.humidity_sensor.publish_state(STATE_UNKNOWN)
        finally:
            self._sync_state = SyncState.STOPPED
        self._logger.info("Thermostat %s stopped", self.device.name)

    def _unsubscribe(self) -> None:
        self.api.emitter.off(STATUS_CHANGED, self._status_handler)
        self.api.emitter.off(STATE_CHANGED, self._state_handler)

    # ------------------------------------------------------------------
    # Telemetry
    # ------------------------------------------------------------------
    def apply(self, sample: DeviceState | StatusPush | StateChange) -> None:
        """Fold one telemetry sample into the entity state."""
        if isinstance(sample, DeviceState):
            self._apply_snapshot(sample)
        elif isinstance(sample, StatusPush):
            self._apply_status(sample)
        elif isinstance(sample, StateChange):
            self._apply_state_change(sample)
        else:
            raise TypeError(f"Unsupported telemetry sample: {sample!r}")

    def _apply_snapshot(self, snapshot: DeviceState) -> None:
        state = self.state
        state.current_temperature = snapshot.temperature
        state.current_humidity = snapshot.humidity_value
        # unmapped raw codes keep the previous value
        state.mode = snapshot.mode or state.mode
        state.fan_mode = snapshot.fan_speed_mode or state.fan_mode
        state.action = compute_current_action(
            state.mode, self.capabilities, None, snapshot.duty_cycle
        )
        state.target_temperature = (
            snapshot.set_point_value if state.mode is not DeviceMode.OFF else None
        )
        # Current is non-zero even on devices that are off, so the snapshot
        # cannot be trusted for power.
        state.power = None

    def _apply_status(self, status: StatusPush) -> None:
        state = self.state
        state.action = compute_current_action(
            state.mode, self.capabilities, status.current, status.duty_cycle
        )
        state.current_temperature = status.temperature
        state.current_humidity = status.humidity
        state.target_temperature = (
            status.set_point if state.mode is not DeviceMode.OFF else None
        )
        state.power = estimate_power(self.device, status)

    def _apply_state_change(self, change: StateChange) -> None:
        state = self.state
        mode = change.mode
        if mode is DeviceMode.OFF:
            state.mode = DeviceMode.OFF
            state.action = ClimateAction.OFF
            state.target_temperature = None
            state.fan_mode = None
        elif mode in (DeviceMode.HEAT, DeviceMode.COOL, DeviceMode.AUTO):
            state.mode = mode
            if self.device_class is DeviceClass.AC:
                # no telemetry comes with a state change
                state.action = compute_current_action(mode, self.capabilities)
            state.target_temperature = change.set_point
            state.fan_mode = change.fan_speed
        elif mode in (DeviceMode.DRY, DeviceMode.FAN_ONLY):
            state.mode = mode
            state.action = compute_current_action(mode, self.capabilities)
            state.fan_mode = change.fan_speed
        else:
            self._logger.debug("Ignoring state change without a known mode: %s", change)

    def _accepts(self, device_id: str) -> bool:
        return self.is_started and device_id == self.device.id

    async def _handle_status_changed(self, status: StatusPush) -> None:
        if not self._accepts(status.device_id):
            return
        try:
            self._apply_status(status)
            await self._publish_climate()
            await self._publish_sensors()
        except Exception:  # pylint: disable=broad-except
            self._logger.exception("Failed to handle status update %s", status)

    async def _handle_state_changed(self, change: StateChange) -> None:
        if not self._accepts(change.device_id):
            return
        try:
            self._apply_state_change(change)
            await self._publish_climate()
        except Exception:  # pylint: disable=broad-except
            self._logger.exception("Failed to handle state change %s", change)

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------
    def climate_values(self) -> dict[str, Any]:
        """Return the climate state topic values for the current entity state."""
        state = self.state
        values: dict[str, Any] = {
            ClimateTopic.ACTION: state.action,
            ClimateTopic.CURRENT_HUMIDITY: state.current_humidity,
            ClimateTopic.CURRENT_TEMPERATURE: state.current_temperature,
            ClimateTopic.MODE_STATE: state.mode,
            ClimateTopic.TEMPERATURE_STATE: state.target_temperature,
        }
        if self.capabilities.supports_fan:
            values[ClimateTopic.FAN_MODE_STATE] = state.fan_mode
        return values

    async def _publish_climate(self, force: bool = False) -> None:
        await self.climate.publish(self.climate_values(), force=force)

    async def _publish_sensors(self) -> None:
        state = self.state
        await self.power_sensor.publish_state(format_power(state.power))
        await self.temperature_sensor.publish_state(
            format_decimal(state.current_temperature, STATE_UNKNOWN)
        )
        await self.humidity_sensor.publish_state(
            format_decimal(state.current_humidity, STATE_UNKNOWN)
        )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    async def handle_command(self, topic: str, message: str) -> None:
        """Forward a command topic message to the vendor API."""
        command = self._translator.translate(topic, message)
        if command is None:
            return
        await self.send_command(command)

    async def send_command(self, command: DeviceCommand) -> None:
        self._logger.debug("Sending command %s", command)
        try:
            await self.api.set_device_state(
                command.device_id,
                target_temperature=command.target_temperature,
                mode=command.mode,
                fan_speed=command.fan_speed,
            )
        except Exception:  # pylint: disable=broad-except
            self._logger.exception("Failed to send command %s", command)
