import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from .api import ClimateControllerClient
from .const import DEFAULT_REQUEST_TIMEOUT, RECONNECT_DELAY
from .listener import StatusListener
from .protocol import ControlTarget, DeviceStatus

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessoryConfig:
    host: str
    port: int
    name: str
    firmware: str
    serial: str


class DeviceSession:
    """
    One room: a live status feed plus on-demand reads and writes.
    Must be created inside a running event loop; the listener starts right away
    and lives until ``async_stop``.
    """

    def __init__(
        self,
        config: AccessoryConfig,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        reconnect_delay: float = RECONNECT_DELAY,
    ) -> None:
        self.config = config
        self.status: Optional[DeviceStatus] = None
        self._listeners: List[Callable[[DeviceStatus], None]] = []
        self._client = ClimateControllerClient(config.host, config.port, request_timeout)
        self._listener = StatusListener(
            config.host, config.port, config.name, self._handle_status, reconnect_delay
        )
        self._listener.start()

    @property
    def listener(self) -> StatusListener:
        return self._listener

    def async_add_listener(self, update_callback: Callable[[DeviceStatus], None]) -> Callable[[], None]:
        self._listeners.append(update_callback)

        def remove_listener() -> None:
            if update_callback in self._listeners:
                self._listeners.remove(update_callback)

        return remove_listener

    def _handle_status(self, status: DeviceStatus) -> None:
        self.status = status
        _LOGGER.debug(
            "Updated %s - current temperature: %s, target temperature: %s, current state: %s, "
            "target state: %s, current humidity: %s",
            self.config.name,
            status.current_temperature,
            status.target_temperature,
            status.current_state,
            status.target_state,
            status.current_humidity,
        )
        for update_callback in list(self._listeners):
            update_callback(status)

    async def async_get_status(self) -> DeviceStatus:
        _LOGGER.debug("Getting %s status", self.config.name)
        status = await self._client.async_get_status()
        self.status = status
        return status

    async def async_set_control(self, target: ControlTarget) -> None:
        _LOGGER.debug("Setting %s control: %s", self.config.name, target)
        await self._client.async_set_control(target)

    async def async_stop(self) -> None:
        _LOGGER.debug("Stopping %s session", self.config.name)
        self._listeners.clear()
        await self._listener.async_stop()
