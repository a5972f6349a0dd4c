from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from enum import Enum
from typing import Callable, Optional

from .const import CONNECT_TIMEOUT, READ_LIMIT, RECONNECT_DELAY
from .exceptions import MalformedMessage
from .protocol import DeviceStatus, MessageType, decode_message

_LOGGER = logging.getLogger(__name__)


class ListenerState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSED = "closed"


class StatusListener:
    """
    Holds a long-lived connection to a room device and feeds NotifyStatus
    pushes to ``on_status``. Whenever the connection ends it waits
    ``reconnect_delay`` seconds and dials again with a fresh connection.
    """

    def __init__(
        self,
        host: str,
        port: int,
        name: str,
        on_status: Callable[[DeviceStatus], None],
        reconnect_delay: float = RECONNECT_DELAY,
    ) -> None:
        self._host = host
        self._port = port
        self._name = name
        self._on_status = on_status
        self._reconnect_delay = reconnect_delay
        self._task: Optional[asyncio.Task] = None
        self.state = ListenerState.IDLE
        self.connection_count = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name=f"climate_controller listener {self._name}"
        )

    async def async_stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
        self.state = ListenerState.IDLE

    async def _run(self) -> None:
        while True:
            try:
                await self._listen_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                self.state = ListenerState.CLOSED
                _LOGGER.exception("%s listener failed", self._name)
            _LOGGER.debug("Reconnecting %s listener in %ss", self._name, self._reconnect_delay)
            await asyncio.sleep(self._reconnect_delay)

    async def _listen_once(self) -> None:
        self.state = ListenerState.CONNECTING
        try:
            async with asyncio.timeout(CONNECT_TIMEOUT):
                reader, writer = await asyncio.open_connection(self._host, self._port)
        except OSError as err:
            # TimeoutError is an OSError too
            _LOGGER.error("%s listener error: %s", self._name, str(err) or type(err).__name__)
            self.state = ListenerState.CLOSED
            _LOGGER.warning("%s listener connection closed", self._name)
            return

        self.connection_count += 1
        self.state = ListenerState.CONNECTED
        _LOGGER.debug("%s listener connected to %s:%s", self._name, self._host, self._port)
        try:
            while True:
                data = await reader.read(READ_LIMIT)
                if not data:
                    break
                self._handle_data(data)
        except OSError as err:
            _LOGGER.error("%s listener error: %s", self._name, err)
        finally:
            self.state = ListenerState.CLOSED
            writer.close()
            with suppress(OSError):
                await writer.wait_closed()
        _LOGGER.warning("%s listener connection closed", self._name)

    def _handle_data(self, data: bytes) -> None:
        try:
            message = decode_message(data)
            if message.type != MessageType.NOTIFY_STATUS:
                return
            status = DeviceStatus.from_dict(message.status)
        except MalformedMessage as err:
            _LOGGER.error("Failed to parse response from %s: %s", self._name, err)
            return
        _LOGGER.debug("Received status notification from %s: %s", self._name, status)
        try:
            self._on_status(status)
        except Exception:
            # Subscriber errors leave the connection open
            _LOGGER.exception("Error handling status notification from %s", self._name)
