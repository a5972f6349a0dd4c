import logging
import uuid
from dataclasses import dataclass
from datetime import timedelta
from typing import Dict, Optional

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator, UpdateFailed

from .api import ClimateControllerClient
from .const import DEFAULT_REQUEST_TIMEOUT, DOMAIN
from .exceptions import ClimateControllerError
from .protocol import ControllerConfiguration, RoomConfig
from .session import AccessoryConfig, DeviceSession

_LOGGER = logging.getLogger(__name__)

ROOM_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_DNS, "climate-controller.tmplt.io")


def room_key(name: str) -> str:
    """Stable key for a room; two rooms with the same name collide."""
    return str(uuid.uuid5(ROOM_NAMESPACE, name))


@dataclass
class RoomBinding:
    room: RoomConfig
    session: DeviceSession


class ClimateControllerCoordinator(DataUpdateCoordinator[ControllerConfiguration]):
    """
    Fetches the room list from the controller and keeps one DeviceSession per room.
    bindings => { room_key: RoomBinding }, only ever appended to or rebound.
    """

    def __init__(
        self,
        hass: HomeAssistant,
        entry: Optional[ConfigEntry],
        client: ClimateControllerClient,
        update_interval: Optional[timedelta] = None,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        self._client = client
        self._request_timeout = request_timeout
        self.bindings: Dict[str, RoomBinding] = {}
        super().__init__(
            hass,
            _LOGGER,
            config_entry=entry,
            name=f"{DOMAIN} {client.host}:{client.port}",
            update_interval=update_interval,
        )

    async def _async_update_data(self) -> ControllerConfiguration:
        try:
            configuration = await self._client.async_get_configuration()
        except ClimateControllerError as err:
            raise UpdateFailed(str(err)) from err
        await self.async_bind_rooms(configuration)
        return configuration

    async def async_bind_rooms(self, configuration: ControllerConfiguration) -> None:
        for room in configuration.rooms:
            key = room_key(room.name)
            config = AccessoryConfig(
                host=self._client.host,
                port=room.port,
                name=room.name,
                firmware=configuration.version,
                serial=room.serial,
            )
            binding = self.bindings.get(key)
            if binding is None:
                _LOGGER.info("Adding room %s (port %s)", room.name, room.port)
                self.bindings[key] = RoomBinding(room, self._create_session(config))
                continue

            binding.room = room
            current = binding.session.config
            if current == config:
                continue
            if (current.host, current.port) == (config.host, config.port):
                # Metadata only; the live connection stays as it is
                _LOGGER.debug("Updating room %s metadata: firmware %s", room.name, config.firmware)
                binding.session.config = config
                continue
            _LOGGER.info("Rebinding room %s (port %s)", room.name, room.port)
            old_session = binding.session
            binding.session = self._create_session(config)
            await old_session.async_stop()

    def _create_session(self, config: AccessoryConfig) -> DeviceSession:
        return DeviceSession(config, request_timeout=self._request_timeout)

    async def async_shutdown_sessions(self) -> None:
        for binding in self.bindings.values():
            await binding.session.async_stop()
