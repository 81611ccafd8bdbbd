"""Module that implements the Mysa cloud API client."""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import aiohttp

from .const import (
    API_TIMEOUT,
    COGNITO_CLIENT_ID,
    COGNITO_URL,
    DEFAULT_POLL_INTERVAL,
    DEVICE_MODE_TO_RAW_MODE,
    ENDPOINT_DEVICE_COMMAND,
    ENDPOINT_DEVICE_INFO,
    ENDPOINT_DEVICES,
    ENDPOINT_FIRMWARE,
    ENDPOINT_STATE,
    FAN_SPEED_TO_RAW_FAN_SPEED,
    MYSA_API_URL,
    SESSION_CHANGED,
    SESSION_EXPIRY_MARGIN,
)
from .enums import DeviceMode, FanSpeed
from .event_emitter import EventEmitter
from .exceptions import MysaApiError, MysaAuthenticationError
from .models import Device, DeviceStates, Firmware, MysaSession
from .stream import EventStream, PollingStream

_LOGGER = logging.getLogger(__name__)


class MysaApiClient:
    """Class to communicate with the Mysa cloud using asyncio.

    Events emitted on :attr:`emitter`:

    * ``session_changed`` with the new :class:`MysaSession`, or ``None``.
    * ``status_changed`` with a :class:`StatusPush`.
    * ``state_changed`` with a :class:`StateChange`.
    """

    def __init__(
        self,
        session: MysaSession | None = None,
        client_session: aiohttp.ClientSession | None = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        stream: EventStream | None = None,
        base_url: str = MYSA_API_URL,
    ) -> None:
        """Initialize the client."""
        self.emitter = EventEmitter()
        self._session = session
        self._base_url = base_url.rstrip("/")
        self.__client_session = client_session
        self.__owns_client_session = client_session is None
        self._stream: EventStream = stream or PollingStream(
            self.get_device_states, self.emitter, poll_interval
        )

    async def __aenter__(self) -> MysaApiClient:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def session(self) -> MysaSession | None:
        """Return the current session."""
        return self._session

    @property
    def is_authenticated(self) -> bool:
        """Return ``True`` if a usable or refreshable session is present."""
        session = self._session
        if session is None:
            return False
        return not session.is_expired or session.refresh_token is not None

    async def close(self) -> None:
        """Stop realtime updates and release the HTTP session."""
        await self._stream.close()
        if (
            self.__owns_client_session
            and self.__client_session is not None
            and not self.__client_session.closed
        ):
            await self.__client_session.close()
        self.__client_session = None

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------
    async def login(self, username: str, password: str) -> MysaSession:
        """Authenticate with username and password."""
        _LOGGER.debug("Logging in to Mysa as %s", username)
        result = await self.__cognito(
            "InitiateAuth",
            {
                "AuthFlow": "USER_PASSWORD_AUTH",
                "ClientId": COGNITO_CLIENT_ID,
                "AuthParameters": {"USERNAME": username, "PASSWORD": password},
            },
        )
        session = self.__session_from_auth_result(result, username, None)
        await self.__set_session(session)
        return session

    async def logout(self) -> None:
        """Forget the current session."""
        await self.__set_session(None)

    async def __refresh_session(self, session: MysaSession) -> MysaSession:
        _LOGGER.debug("Refreshing Mysa session")
        result = await self.__cognito(
            "InitiateAuth",
            {
                "AuthFlow": "REFRESH_TOKEN_AUTH",
                "ClientId": COGNITO_CLIENT_ID,
                "AuthParameters": {"REFRESH_TOKEN": session.refresh_token},
            },
        )
        refreshed = self.__session_from_auth_result(
            result, session.username, session.refresh_token
        )
        await self.__set_session(refreshed)
        return refreshed

    async def __ensure_session(self) -> MysaSession:
        session = self._session
        if session is None:
            raise MysaAuthenticationError("Not logged in")
        if session.is_expired:
            if session.refresh_token is None:
                raise MysaAuthenticationError("Session expired")
            session = await self.__refresh_session(session)
        return session

    async def __set_session(self, session: MysaSession | None) -> None:
        self._session = session
        await self.emitter.emit(SESSION_CHANGED, session)

    @staticmethod
    def __session_from_auth_result(
        result: dict, username: str | None, refresh_token: str | None
    ) -> MysaSession:
        try:
            auth = result["AuthenticationResult"]
            expires_in = int(auth.get("ExpiresIn", 3600))
            return MysaSession(
                username=username,
                id_token=auth["IdToken"],
                access_token=auth["AccessToken"],
                refresh_token=auth.get("RefreshToken", refresh_token),
                expires_at=datetime.now(timezone.utc)
                + timedelta(seconds=expires_in - SESSION_EXPIRY_MARGIN),
            )
        except (KeyError, TypeError, ValueError) as err:
            raise MysaAuthenticationError(f"Unexpected authentication response: {err}") from err

    async def __cognito(self, target: str, body: dict) -> dict:
        headers = {
            "X-Amz-Target": f"AWSCognitoIdentityProviderService.{target}",
            "Content-Type": "application/x-amz-json-1.1",
        }
        try:
            async with self.__client().post(
                COGNITO_URL,
                data=json.dumps(body),
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=API_TIMEOUT),
            ) as resp:
                data = await resp.json(content_type=None)
                if resp.status >= 400:
                    message = (data or {}).get("message", resp.reason)
                    raise MysaAuthenticationError(str(message), resp.status)
                return data
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as err:
            raise MysaApiError(f"Unable to reach authentication service: {err}") from err

    # ------------------------------------------------------------------
    # REST
    # ------------------------------------------------------------------
    def __client(self) -> aiohttp.ClientSession:
        if self.__client_session is None or self.__client_session.closed:
            self.__client_session = aiohttp.ClientSession()
        return self.__client_session

    async def __request(self, method: str, path: str, **kwargs: Any) -> Any:
        session = await self.__ensure_session()
        headers = {"authorization": session.id_token, "accept": "application/json"}
        url = f"{self._base_url}/{path}"
        try:
            async with self.__client().request(
                method,
                url,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=API_TIMEOUT),
                **kwargs,
            ) as resp:
                if resp.status == 401:
                    raise MysaAuthenticationError("Unauthorized", resp.status)
                if resp.status >= 400:
                    text = await resp.text()
                    raise MysaApiError(f"{method} {path} failed: {text}", resp.status)
                return await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as err:
            raise MysaApiError(f"{method} {path} failed: {err}") from err

    async def __get(self, path: str, **kwargs: Any) -> Any:
        return await self.__request("GET", path, **kwargs)

    async def __post(self, path: str, **kwargs: Any) -> Any:
        return await self.__request("POST", path, **kwargs)

    async def get_devices(self) -> dict[str, Device]:
        """Return the account's devices keyed by id."""
        data = await self.__get(ENDPOINT_DEVICES)
        return {
            device_id: Device.model_validate(raw)
            for device_id, raw in (data or {}).get("DevicesObj", {}).items()
        }

    async def get_device_firmwares(self) -> dict[str, Firmware]:
        """Return firmware information keyed by device id."""
        data = await self.__get(ENDPOINT_FIRMWARE)
        return {
            device_id: Firmware.model_validate(raw)
            for device_id, raw in (data or {}).get("Firmware", {}).items()
        }

    async def get_device_serial_number(self, device_id: str) -> str | None:
        """Return a device's serial number, if the cloud knows it."""
        data = await self.__get(ENDPOINT_DEVICE_INFO.format(device_id=device_id))
        return (data or {}).get("SerialNumber") or None

    async def get_device_states(self) -> DeviceStates:
        """Return the current state of every device."""
        data = await self.__get(ENDPOINT_STATE)
        return DeviceStates.model_validate(data or {})

    async def set_device_state(
        self,
        device_id: str,
        target_temperature: float | None = None,
        mode: DeviceMode | None = None,
        fan_speed: FanSpeed | None = None,
    ) -> None:
        """Change a device's set point, mode or fan speed.

        Arguments left to ``None`` are not changed. A call with nothing to
        change is ignored.
        """
        body: dict[str, Any] = {}
        if target_temperature is not None:
            body["sp"] = target_temperature
        if mode is not None:
            body["md"] = DEVICE_MODE_TO_RAW_MODE[mode]
        if fan_speed is not None:
            body["fn"] = FAN_SPEED_TO_RAW_FAN_SPEED[fan_speed]
        if not body:
            _LOGGER.debug("Nothing to change on device %s", device_id)
            return
        await self.__post(ENDPOINT_DEVICE_COMMAND.format(device_id=device_id), json=body)

    async def start_realtime_updates(self, device_id: str) -> None:
        await self._stream.start(device_id)

    async def stop_realtime_updates(self, device_id: str) -> None:
        await self._stream.stop(device_id)
