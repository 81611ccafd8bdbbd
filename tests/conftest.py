"""Global test fixtures for the mysa2mqtt test suite.

The autouse fixture tracks every aiohttp ClientSession created during a test
and closes any that are still open when the test finishes, so tests that
build an API client do not need to close it themselves.
"""
from __future__ import annotations

import asyncio
from typing import List

import aiohttp
import pytest_asyncio


class _TrackingClientSession(aiohttp.ClientSession):
    """Subclass of ClientSession that registers every created instance."""

    _sessions: List[aiohttp.ClientSession] = []

    def __init__(self, *args, **kwargs):  # type: ignore[no-untyped-def]
        super().__init__(*args, **kwargs)
        self.__class__._sessions.append(self)


@pytest_asyncio.fixture(autouse=True)
async def ensure_client_sessions_closed(monkeypatch):  # type: ignore[missing-type-doc]
    """Close any ClientSession left open by the test."""
    monkeypatch.setattr(aiohttp, "ClientSession", _TrackingClientSession)
    yield
    close_tasks = [sess.close() for sess in list(_TrackingClientSession._sessions) if not sess.closed]
    if close_tasks:
        await asyncio.gather(*close_tasks, return_exceptions=True)
    _TrackingClientSession._sessions.clear()
