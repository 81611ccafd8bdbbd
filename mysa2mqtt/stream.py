"""Module defining the realtime update stream interface and implementations."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol

from .const import DEFAULT_POLL_INTERVAL, STATE_CHANGED, STATUS_CHANGED
from .event_emitter import EventEmitter
from .models import DeviceState, DeviceStates, StateChange, StatusPush

_LOGGER = logging.getLogger(__name__)


class EventStream(Protocol):
    """Protocol for realtime update stream implementations."""

    async def start(self, device_id: str) -> None:
        """Begin delivering updates for a device."""
        ...

    async def stop(self, device_id: str) -> None:
        """Stop delivering updates for a device."""
        ...

    async def close(self) -> None:
        """Tear down the stream."""
        ...


class PollingStream:
    """EventStream that polls device states and emits the differences.

    Every poll emits a ``status_changed`` event per registered device. A
    ``state_changed`` event is emitted when a device's mode, set point or fan
    speed differs from the previous poll.
    """

    def __init__(
        self,
        fetch_states: Callable[[], Awaitable[DeviceStates]],
        emitter: EventEmitter,
        interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        self._fetch_states = fetch_states
        self._emitter = emitter
        self._interval = interval
        self._device_ids: set[str] = set()
        self._previous: dict[str, tuple] = {}
        self._task: asyncio.Task | None = None

    @property
    def device_ids(self) -> frozenset[str]:
        return frozenset(self._device_ids)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self, device_id: str) -> None:
        self._device_ids.add(device_id)
        if not self.running:
            self._task = asyncio.create_task(self._run())
        _LOGGER.debug("Realtime updates started for %s", device_id)

    async def stop(self, device_id: str) -> None:
        self._device_ids.discard(device_id)
        self._previous.pop(device_id, None)
        _LOGGER.debug("Realtime updates stopped for %s", device_id)
        if not self._device_ids:
            await self.close()

    async def close(self) -> None:
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.poll()
            except asyncio.CancelledError:
                raise
            except Exception as err:  # pylint: disable=broad-except
                _LOGGER.error("Error polling device states: %s", err)

    async def poll(self) -> None:
        """Fetch states once and emit events for registered devices."""
        states = await self._fetch_states()
        for device_id in sorted(self._device_ids):
            state = states.get(device_id)
            if state is None:
                _LOGGER.debug("No state for device %s in poll", device_id)
                continue
            await self._emit_state(device_id, state)
            status = StatusPush.from_state(device_id, state)
            if status is not None:
                await self._emitter.emit(STATUS_CHANGED, status)

    async def _emit_state(self, device_id: str, state: DeviceState) -> None:
        key = (state.raw_mode, state.set_point_value, state.raw_fan_speed)
        previous = self._previous.get(device_id)
        self._previous[device_id] = key
        if previous is None or previous == key:
            return
        await self._emitter.emit(
            STATE_CHANGED,
            StateChange(
                device_id=device_id,
                mode=state.mode,
                set_point=state.set_point_value,
                fan_speed=state.fan_speed_mode,
            ),
        )
