"""MQTT connection and Home Assistant discovery entities."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, Optional, Protocol

import aiomqtt
from pydantic import BaseModel, ConfigDict

from .const import (
    DEFAULT_CLIENT_NAME,
    DEFAULT_DISCOVERY_PREFIX,
    DEFAULT_TOPIC_PREFIX,
    SENSOR_STATE_TOPIC,
    STATE_UNKNOWN,
)

_LOGGER = logging.getLogger(__name__)

MessageHandler = Callable[[str], Awaitable[None]]
CommandHandler = Callable[[str, str], Awaitable[None]]

_UNSET = object()


class MqttSettings(BaseModel):
    """Broker connection and topic layout."""

    model_config = ConfigDict(frozen=True)

    host: str
    port: int = 1883
    username: Optional[str] = None
    password: Optional[str] = None
    client_name: str = DEFAULT_CLIENT_NAME
    state_prefix: str = DEFAULT_TOPIC_PREFIX
    discovery_prefix: str = DEFAULT_DISCOVERY_PREFIX


class DeviceConfiguration(BaseModel):
    """The ``device`` block of a discovery payload."""

    identifiers: str
    name: str
    manufacturer: str
    model: str
    sw_version: Optional[str] = None
    serial_number: Optional[str] = None


class OriginConfiguration(BaseModel):
    """The ``origin`` block of a discovery payload."""

    name: str
    sw_version: str
    support_url: str


class MqttPublisher(Protocol):
    """What entities need from a broker connection."""

    settings: MqttSettings

    async def publish(self, topic: str, payload: str, retain: bool = True) -> None:
        ...

    async def subscribe(self, topic: str, handler: MessageHandler) -> None:
        ...


class MqttConnection:
    """Broker connection with per-topic inbound message dispatch.

    Inbound messages are handled one at a time, in arrival order, by a single
    background task.
    """

    def __init__(self, settings: MqttSettings, client: aiomqtt.Client | None = None) -> None:
        self.settings = settings
        self._client = client or aiomqtt.Client(
            hostname=settings.host,
            port=settings.port,
            username=settings.username,
            password=settings.password,
            identifier=settings.client_name,
        )
        self._handlers: dict[str, MessageHandler] = {}
        self._task: asyncio.Task | None = None

    async def __aenter__(self) -> MqttConnection:
        _LOGGER.info("Connecting to MQTT broker at %s:%s", self.settings.host, self.settings.port)
        await self._client.__aenter__()
        self._task = asyncio.create_task(self._dispatch_messages())
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        await self._client.__aexit__(exc_type, exc, tb)
        _LOGGER.info("Disconnected from MQTT broker")

    async def publish(self, topic: str, payload: str, retain: bool = True) -> None:
        _LOGGER.debug("Publishing %s: %s", topic, payload)
        await self._client.publish(topic, payload=payload, qos=1, retain=retain)

    async def subscribe(self, topic: str, handler: MessageHandler) -> None:
        self._handlers[topic] = handler
        await self._client.subscribe(topic, qos=1)
        _LOGGER.debug("Subscribed to %s", topic)

    async def unsubscribe(self, topic: str) -> None:
        if self._handlers.pop(topic, None) is not None:
            await self._client.unsubscribe(topic)

    async def handle_message(self, topic: str, payload: Any) -> None:
        """Route one inbound message to its topic handler."""
        handler = self._handlers.get(topic)
        if handler is None:
            _LOGGER.debug("No handler for message on %s", topic)
            return
        if isinstance(payload, (bytes, bytearray)):
            text = payload.decode("utf-8", errors="replace")
        else:
            text = "" if payload is None else str(payload)
        try:
            await handler(text)
        except Exception:  # pylint: disable=broad-except
            _LOGGER.exception("Error handling message on %s", topic)

    async def _dispatch_messages(self) -> None:
        try:
            async for message in self._client.messages:
                await self.handle_message(message.topic.value, message.payload)
        except aiomqtt.MqttError as err:
            _LOGGER.error("Lost connection to MQTT broker, commands are no longer received: %s", err)


def render_state(value: Any) -> str:
    """Render a state value, using the unknown sentinel for ``None``."""
    if value is None:
        return STATE_UNKNOWN
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


class MqttEntity:
    """A Home Assistant MQTT entity with discovery config and state topics."""

    component = ""

    def __init__(
        self,
        publisher: MqttPublisher,
        *,
        unique_id: str,
        device: DeviceConfiguration,
        origin: OriginConfiguration,
        config: dict[str, Any],
        state_topics: list[str],
        command_topics: list[str] | None = None,
        command_handler: CommandHandler | None = None,
    ) -> None:
        self._publisher = publisher
        self.unique_id = unique_id
        self.device = device
        self.origin = origin
        self.config = config
        self.state_topics = list(state_topics)
        self.command_topics = list(command_topics or [])
        self._command_handler = command_handler
        self._subscribed = False

    @property
    def discovery_topic(self) -> str:
        settings = self._publisher.settings
        return f"{settings.discovery_prefix}/{self.component}/{self.unique_id}/config"

    def topic(self, key: str) -> str:
        """Return the full topic for a ``*_topic`` key."""
        name = key[: -len("_topic")] if key.endswith("_topic") else key
        return f"{self._publisher.settings.state_prefix}/{self.unique_id}/{name}"

    def discovery_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            **self.config,
            "unique_id": self.unique_id,
            "device": self.device.model_dump(exclude_none=True),
            "origin": self.origin.model_dump(),
        }
        for key in self.state_topics + self.command_topics:
            payload[key] = self.topic(key)
        return payload

    async def write_config(self) -> None:
        """Publish the retained discovery config and subscribe command topics."""
        await self._publisher.publish(
            self.discovery_topic, json.dumps(self.discovery_payload()), retain=True
        )
        handler = self._command_handler
        if self._subscribed or handler is None:
            return
        for key in self.command_topics:
            await self._publisher.subscribe(self.topic(key), self._make_command_callback(key, handler))
        self._subscribed = True

    @staticmethod
    def _make_command_callback(key: str, handler: CommandHandler) -> MessageHandler:
        async def callback(message: str) -> None:
            await handler(key, message)

        return callback

    async def set_state(self, key: str, value: Any) -> None:
        """Publish a retained value on one state topic."""
        await self._publisher.publish(self.topic(key), render_state(value), retain=True)


class Sensor(MqttEntity):
    component = "sensor"

    def __init__(self, publisher: MqttPublisher, **kwargs: Any) -> None:
        kwargs.setdefault("state_topics", [SENSOR_STATE_TOPIC])
        super().__init__(publisher, **kwargs)

    async def publish_state(self, value: Any) -> None:
        await self.set_state(SENSOR_STATE_TOPIC, value)


class Climate(MqttEntity):
    """Climate entity that only republishes the state topics that changed."""

    component = "climate"

    def __init__(self, publisher: MqttPublisher, **kwargs: Any) -> None:
        super().__init__(publisher, **kwargs)
        self._published: dict[str, Any] = {}

    def reset(self) -> None:
        """Forget what was published so the next publish sends everything."""
        self._published.clear()

    async def publish(self, values: dict[str, Any], force: bool = False) -> None:
        for key in self.state_topics:
            if key not in values:
                continue
            value = values[key]
            if not force and self._published.get(key, _UNSET) == value:
                continue
            await self.set_state(key, value)
            self._published[key] = value
