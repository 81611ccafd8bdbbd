"""Runtime configuration.

Values come from ``M2M_*`` environment variables, ``.env`` / ``.env.local``
files and, when enabled, command line arguments.
"""

from __future__ import annotations

from typing import Literal, Optional, Sequence

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .const import DEFAULT_CLIENT_NAME, DEFAULT_DISCOVERY_PREFIX, DEFAULT_POLL_INTERVAL, DEFAULT_TOPIC_PREFIX
from .enums import TemperatureUnit
from .mqtt import MqttSettings

LogLevel = Literal["silent", "fatal", "error", "warn", "info", "debug", "trace"]
LogFormat = Literal["pretty", "json"]


class Settings(BaseSettings):
    """Expose Mysa smart thermostats to home automation platforms via MQTT."""

    log_level: LogLevel = "info"
    log_format: LogFormat = "pretty"

    mqtt_host: str
    mqtt_port: int = 1883
    mqtt_username: Optional[str] = None
    mqtt_password: Optional[str] = None
    mqtt_client_name: str = DEFAULT_CLIENT_NAME
    mqtt_topic_prefix: str = DEFAULT_TOPIC_PREFIX
    mqtt_discovery_prefix: str = DEFAULT_DISCOVERY_PREFIX

    mysa_username: str
    mysa_password: str
    mysa_session_file: str = "session.json"

    temperature_unit: TemperatureUnit = TemperatureUnit.CELSIUS
    poll_interval: float = Field(DEFAULT_POLL_INTERVAL, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="M2M_",
        env_file=(".env", ".env.local"),
        extra="ignore",
        cli_prog_name="mysa2mqtt",
    )

    def mqtt_settings(self) -> MqttSettings:
        return MqttSettings(
            host=self.mqtt_host,
            port=self.mqtt_port,
            username=self.mqtt_username,
            password=self.mqtt_password,
            client_name=self.mqtt_client_name,
            state_prefix=self.mqtt_topic_prefix,
            discovery_prefix=self.mqtt_discovery_prefix,
        )


def load_settings(argv: Sequence[str] | None = None) -> Settings:
    """Build settings, parsing ``argv`` (``sys.argv`` when ``None``) as CLI flags."""
    return Settings(_cli_parse_args=True if argv is None else list(argv))
