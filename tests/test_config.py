"""Tests for settings loading."""
from __future__ import annotations

import pytest
from pydantic import ValidationError

from mysa2mqtt.config import Settings, load_settings
from mysa2mqtt.enums import TemperatureUnit


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    """Run each test away from any real .env file or M2M_ variable."""
    monkeypatch.chdir(tmp_path)
    for name in [
        "M2M_MQTT_HOST",
        "M2M_MQTT_PORT",
        "M2M_MYSA_USERNAME",
        "M2M_MYSA_PASSWORD",
        "M2M_TEMPERATURE_UNIT",
        "M2M_LOG_LEVEL",
        "M2M_POLL_INTERVAL",
    ]:
        monkeypatch.delenv(name, raising=False)


def _required(monkeypatch) -> None:
    monkeypatch.setenv("M2M_MQTT_HOST", "broker.local")
    monkeypatch.setenv("M2M_MYSA_USERNAME", "user@example.com")
    monkeypatch.setenv("M2M_MYSA_PASSWORD", "secret")


def test_defaults(monkeypatch):
    _required(monkeypatch)

    settings = Settings()

    assert settings.log_level == "info"
    assert settings.log_format == "pretty"
    assert settings.mqtt_port == 1883
    assert settings.mysa_session_file == "session.json"
    assert settings.temperature_unit is TemperatureUnit.CELSIUS
    assert settings.poll_interval == 30

    mqtt = settings.mqtt_settings()
    assert mqtt.host == "broker.local"
    assert mqtt.client_name == "mysa2mqtt"
    assert mqtt.state_prefix == "mysa2mqtt"
    assert mqtt.discovery_prefix == "homeassistant"


def test_environment_overrides(monkeypatch):
    _required(monkeypatch)
    monkeypatch.setenv("M2M_MQTT_PORT", "8883")
    monkeypatch.setenv("M2M_TEMPERATURE_UNIT", "F")
    monkeypatch.setenv("M2M_LOG_LEVEL", "debug")

    settings = Settings()

    assert settings.mqtt_port == 8883
    assert settings.temperature_unit is TemperatureUnit.FAHRENHEIT
    assert settings.log_level == "debug"


def test_dotenv_file(tmp_path):
    (tmp_path / ".env").write_text(
        "M2M_MQTT_HOST=from-file\nM2M_MYSA_USERNAME=u\nM2M_MYSA_PASSWORD=p\n", encoding="utf-8"
    )

    assert Settings().mqtt_host == "from-file"


@pytest.mark.parametrize(
    "name, value",
    [("M2M_LOG_LEVEL", "loud"), ("M2M_POLL_INTERVAL", "0"), ("M2M_TEMPERATURE_UNIT", "K")],
)
def test_invalid_values(monkeypatch, name, value):
    _required(monkeypatch)
    monkeypatch.setenv(name, value)

    with pytest.raises(ValidationError):
        Settings()


def test_missing_required_values():
    with pytest.raises(ValidationError):
        Settings()


def test_command_line_arguments(monkeypatch):
    _required(monkeypatch)

    settings = load_settings(["--mqtt_host", "cli-broker", "--mqtt_port", "1884"])

    assert settings.mqtt_host == "cli-broker"
    assert settings.mqtt_port == 1884
    assert settings.mysa_username == "user@example.com"
