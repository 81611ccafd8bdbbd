"""Recording stubs shared by the thermostat tests."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from mysa2mqtt.event_emitter import EventEmitter
from mysa2mqtt.models import Device, DeviceStates
from mysa2mqtt.mqtt import MqttSettings


class RecordingMqtt:  # pylint: disable=too-few-public-methods
    """Publisher stub that records publishes and subscriptions."""

    def __init__(self) -> None:
        self.settings = MqttSettings(host="broker")
        self.published: List[tuple[str, str, bool]] = []
        self.handlers: Dict[str, Any] = {}

    async def publish(self, topic: str, payload: str, retain: bool = True) -> None:
        self.published.append((topic, payload, retain))

    async def subscribe(self, topic: str, handler) -> None:
        self.handlers[topic] = handler

    def last(self, topic: str) -> Optional[str]:
        """Return the last payload published on ``topic``."""
        for published_topic, payload, _ in reversed(self.published):
            if published_topic == topic:
                return payload
        return None

    def topics(self) -> List[str]:
        return [topic for topic, _, _ in self.published]


class DummyApi:
    """Vendor API stub that serves canned states and records calls."""

    def __init__(self, states: dict | None = None) -> None:
        self.emitter = EventEmitter()
        self.states = states or {}
        self.calls: List[tuple] = []
        self.fail_on: Optional[str] = None

    def _record(self, name: str, *args: Any, **kwargs: Any) -> None:
        self.calls.append((name, args, kwargs))
        if self.fail_on == name:
            raise RuntimeError(f"{name} failed")

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)

    async def get_device_states(self) -> DeviceStates:
        self._record("get_device_states")
        return DeviceStates.model_validate({"DeviceStatesObj": self.states})

    async def set_device_state(self, device_id, target_temperature=None, mode=None, fan_speed=None):
        self._record(
            "set_device_state",
            device_id,
            target_temperature=target_temperature,
            mode=mode,
            fan_speed=fan_speed,
        )

    async def start_realtime_updates(self, device_id: str) -> None:
        self._record("start_realtime_updates", device_id)

    async def stop_realtime_updates(self, device_id: str) -> None:
        self._record("stop_realtime_updates", device_id)


def make_device(**overrides: Any) -> Device:
    raw = {
        "Id": "dev1",
        "Name": "Living room",
        "Model": "BB-V1-1",
        "Voltage": 240,
        "MaxCurrent": "15",
        "MinSetpoint": 5,
        "MaxSetpoint": 30,
    }
    raw.update(overrides)
    return Device.model_validate(raw)


def make_state(
    mode: int = 3,
    set_point: float = 21,
    temperature: float = 19.5,
    humidity: float = 40,
    duty: float | None = 0,
    current: float | None = None,
    fan_speed: int | None = None,
) -> dict:
    state: dict = {
        "CorrectedTemp": {"v": temperature},
        "Humidity": {"v": humidity},
        "TstatMode": {"v": mode},
        "SetPoint": {"v": set_point},
    }
    if duty is not None:
        state["Duty"] = {"v": duty}
    if current is not None:
        state["Current"] = {"v": current}
    if fan_speed is not None:
        state["FanSpeed"] = {"v": fan_speed}
    return state
