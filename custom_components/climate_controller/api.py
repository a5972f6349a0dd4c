import asyncio
import logging
from contextlib import suppress
from typing import Any, Optional

from .const import DEFAULT_REQUEST_TIMEOUT, READ_LIMIT
from .exceptions import CommunicationFailure, ExchangeTimeout, InvalidResponseType
from .protocol import (
    ControlTarget,
    ControllerConfiguration,
    DeviceStatus,
    Message,
    MessageType,
    decode_message,
    encode_request,
)

_LOGGER = logging.getLogger(__name__)

class ClimateControllerClient:
    """
    Request/response client for a room device or the controller itself.
    Every call opens its own connection; replies are matched by message type only,
    so connections are never shared between exchanges.
    """

    def __init__(self, host: str, port: int, timeout: float = DEFAULT_REQUEST_TIMEOUT) -> None:
        self._host = host
        self._port = port
        self._timeout = timeout

    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> int:
        return self._port

    async def _async_transact(self, request: Optional[bytes]) -> Message:
        """
        Connect, optionally write one request, read one payload and decode it.
        The connection is closed exactly once whichever way this ends.
        """
        try:
            async with asyncio.timeout(self._timeout):
                reader, writer = await asyncio.open_connection(self._host, self._port)
        except TimeoutError as err:
            raise ExchangeTimeout(f"Timed out connecting to {self._host}:{self._port}") from err
        except OSError as err:
            raise CommunicationFailure(f"Cannot connect to {self._host}:{self._port}: {err}") from err

        try:
            async with asyncio.timeout(self._timeout):
                if request is not None:
                    _LOGGER.debug("Sending request to %s:%s: %s", self._host, self._port, request)
                    writer.write(request)
                    await writer.drain()
                data = await reader.read(READ_LIMIT)
        except TimeoutError as err:
            raise ExchangeTimeout(f"No reply from {self._host}:{self._port} within {self._timeout}s") from err
        except OSError as err:
            raise CommunicationFailure(f"Connection to {self._host}:{self._port} failed: {err}") from err
        finally:
            writer.close()
            with suppress(OSError):
                await writer.wait_closed()

        if not data:
            raise CommunicationFailure(f"{self._host}:{self._port} closed the connection without replying")
        message = decode_message(data)
        _LOGGER.debug("Received response from %s:%s: %s", self._host, self._port, message.body)
        return message

    async def async_exchange(self, request_type: str, target: Optional[ControlTarget] = None) -> Any:
        message = await self._async_transact(encode_request(request_type, target))
        if message.type != request_type:
            raise InvalidResponseType(MessageType(request_type).value, message.type)
        return message.status

    async def async_get_status(self) -> DeviceStatus:
        status = await self.async_exchange(MessageType.GET_STATUS)
        return DeviceStatus.from_dict(status)

    async def async_set_control(self, target: ControlTarget) -> None:
        await self.async_exchange(MessageType.SET_CONTROL, target)

    async def async_get_configuration(self) -> ControllerConfiguration:
        """
        The controller pushes its room list as soon as a client connects;
        nothing is written and the reply carries no type to check.
        """
        message = await self._async_transact(None)
        configuration = ControllerConfiguration.from_message(message)
        _LOGGER.debug(
            "Controller %s:%s reported %d room(s), version %s",
            self._host, self._port, len(configuration.rooms), configuration.version,
        )
        return configuration
