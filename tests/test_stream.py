"""Tests for the polling realtime update stream."""
from __future__ import annotations

import asyncio
from typing import Any, Dict, List

import pytest
from helpers import make_state

from mysa2mqtt.const import STATE_CHANGED, STATUS_CHANGED
from mysa2mqtt.enums import DeviceMode
from mysa2mqtt.event_emitter import EventEmitter
from mysa2mqtt.models import DeviceStates, StateChange, StatusPush
from mysa2mqtt.stream import PollingStream


class _Source:
    """Serves whatever states the test puts in ``states``."""

    def __init__(self) -> None:
        self.states: Dict[str, dict] = {}
        self.fetches = 0

    async def __call__(self) -> DeviceStates:
        self.fetches += 1
        return DeviceStates.model_validate({"DeviceStatesObj": self.states})


@pytest.fixture()
def setup():
    source = _Source()
    emitter = EventEmitter()
    events: List[tuple[str, Any]] = []

    async def on_status(status: StatusPush) -> None:
        events.append((STATUS_CHANGED, status))

    async def on_state(change: StateChange) -> None:
        events.append((STATE_CHANGED, change))

    emitter.on(STATUS_CHANGED, on_status)
    emitter.on(STATE_CHANGED, on_state)
    stream = PollingStream(source, emitter, interval=3600)
    return stream, source, events


@pytest.mark.asyncio
async def test_poll_emits_status_for_registered_devices(setup):
    stream, source, events = setup
    source.states = {"a": make_state(current=1.5), "b": make_state()}
    await stream.start("a")

    await stream.poll()

    assert events == [
        (
            STATUS_CHANGED,
            StatusPush(device_id="a", temperature=19.5, humidity=40, set_point=21, duty_cycle=0),
        )
    ]
    await stream.close()


@pytest.mark.asyncio
async def test_state_change_emitted_only_on_difference(setup):
    stream, source, events = setup
    source.states = {"a": make_state(mode=3, set_point=21)}
    await stream.start("a")

    await stream.poll()
    await stream.poll()
    assert [name for name, _ in events] == [STATUS_CHANGED, STATUS_CHANGED]

    source.states = {"a": make_state(mode=1, set_point=21)}
    events.clear()
    await stream.poll()

    assert [name for name, _ in events] == [STATE_CHANGED, STATUS_CHANGED]
    change = events[0][1]
    assert change == StateChange(device_id="a", mode=DeviceMode.OFF, set_point=21)
    await stream.close()


@pytest.mark.asyncio
async def test_devices_without_readings_emit_nothing(setup):
    stream, source, events = setup
    source.states = {"a": {"TstatMode": {"v": 3}}}
    await stream.start("a")
    await stream.start("missing")

    await stream.poll()

    assert events == []
    await stream.close()


@pytest.mark.asyncio
async def test_start_and_stop_manage_the_task(setup):
    stream, _, _ = setup

    await stream.start("a")
    await stream.start("b")
    assert stream.running
    assert stream.device_ids == {"a", "b"}

    await stream.stop("a")
    assert stream.running

    await stream.stop("b")
    assert not stream.running
    assert stream.device_ids == frozenset()


@pytest.mark.asyncio
async def test_background_task_polls_and_survives_errors(caplog):
    emitter = EventEmitter()
    statuses: List[StatusPush] = []
    fetches = 0

    async def flaky_fetch() -> DeviceStates:
        nonlocal fetches
        fetches += 1
        if fetches == 1:
            raise ConnectionError("cloud unavailable")
        return DeviceStates.model_validate({"DeviceStatesObj": {"a": make_state()}})

    emitter.on(STATUS_CHANGED, statuses.append)
    stream = PollingStream(flaky_fetch, emitter, interval=0.01)
    await stream.start("a")

    for _ in range(100):
        if statuses:
            break
        await asyncio.sleep(0.01)
    await stream.close()

    assert "Error polling device states" in caplog.text
    assert statuses and statuses[0].device_id == "a"
    assert not stream.running
