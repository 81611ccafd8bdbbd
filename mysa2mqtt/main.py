"""mysa2mqtt entry point."""

from __future__ import annotations

import asyncio
import logging
import signal
import sys

from .api import MysaApiClient
from .config import Settings, load_settings
from .const import SESSION_CHANGED
from .exceptions import MysaError
from .logger import configure_logging, device_logger
from .models import MysaSession
from .mqtt import MqttConnection
from .session import load_session, save_session
from .thermostat import Thermostat

_LOGGER = logging.getLogger(__name__)


async def fetch_serial_numbers(client: MysaApiClient, device_ids: list[str]) -> dict[str, str]:
    """Return serial numbers by device id, skipping devices that fail."""
    serial_numbers: dict[str, str] = {}
    for device_id in device_ids:
        try:
            serial = await client.get_device_serial_number(device_id)
        except MysaError as err:
            _LOGGER.error("Failed to retrieve serial number for device %s: %s", device_id, err)
            continue
        if serial:
            serial_numbers[device_id] = serial
    return serial_numbers


def _install_stop_signals(stop: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # not available on this platform
            pass


async def run(settings: Settings, stop: asyncio.Event | None = None) -> None:
    """Bridge every device on the account until ``stop`` is set."""
    _LOGGER.info("Starting mysa2mqtt...")
    stop = stop or asyncio.Event()

    session = load_session(settings.mysa_session_file)
    async with MysaApiClient(session, poll_interval=settings.poll_interval) as client:

        def on_session_changed(new_session: MysaSession | None) -> None:
            save_session(new_session, settings.mysa_session_file)

        client.emitter.on(SESSION_CHANGED, on_session_changed)

        if not client.is_authenticated:
            _LOGGER.info("Logging in...")
            await client.login(settings.mysa_username, settings.mysa_password)

        _LOGGER.debug("Fetching devices and firmwares...")
        devices, firmwares = await asyncio.gather(
            client.get_devices(), client.get_device_firmwares()
        )

        _LOGGER.debug("Fetching serial numbers...")
        serial_numbers = await fetch_serial_numbers(client, list(devices))

        _LOGGER.debug("Initializing MQTT entities...")
        async with MqttConnection(settings.mqtt_settings()) as mqtt:
            thermostats = [
                Thermostat(
                    client,
                    device,
                    mqtt,
                    firmware=firmwares.get(device.id),
                    serial_number=serial_numbers.get(device.id),
                    temperature_unit=settings.temperature_unit,
                    logger=device_logger("mysa2mqtt.thermostat", device.id),
                )
                for device in devices.values()
            ]
            try:
                for thermostat in thermostats:
                    await thermostat.start()
                _LOGGER.info("Bridging %d thermostat(s)", len(thermostats))
                await stop.wait()
            finally:
                _LOGGER.info("Stopping mysa2mqtt...")
                for thermostat in thermostats:
                    await thermostat.stop()


async def _main(settings: Settings) -> None:
    stop = asyncio.Event()
    _install_stop_signals(stop)
    await run(settings, stop)


def main() -> None:
    """Console script entry point."""
    settings = load_settings()
    configure_logging(settings.log_level, settings.log_format)
    try:
        asyncio.run(_main(settings))
    except Exception:  # pylint: disable=broad-except
        _LOGGER.critical("Unexpected error", exc_info=True)
        sys.exit(1)
