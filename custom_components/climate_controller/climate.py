from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Set, TypeVar

from homeassistant.components.climate import (
    ClimateEntity,
    ClimateEntityFeature,
    HVACAction,
    HVACMode,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import ATTR_TEMPERATURE, PRECISION_TENTHS, UnitOfTemperature
from homeassistant.core import HomeAssistant, callback
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers import device_registry as dr
from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.entity_platform import AddEntitiesCallback
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import (
    DOMAIN,
    MANUFACTURER,
    MAX_TARGET_TEMP,
    MIN_TARGET_TEMP,
    MODEL,
    STATE_HEAT,
    STATE_OFF,
    TARGET_TEMP_STEP,
)
from .coordinator import ClimateControllerCoordinator
from .exceptions import CommunicationFailure, InvalidResponse
from .protocol import ControlTarget, DeviceStatus
from .session import DeviceSession

_LOGGER = logging.getLogger(__name__)

_T = TypeVar("_T")

async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry, async_add_entities: AddEntitiesCallback):
    coordinator: ClimateControllerCoordinator = hass.data[DOMAIN][entry.entry_id]["coordinator"]
    known: Set[str] = set()

    @callback
    def _async_add_new_rooms() -> None:
        new_keys = [key for key in coordinator.bindings if key not in known]
        if not new_keys:
            return
        known.update(new_keys)
        async_add_entities([ClimateControllerThermostat(coordinator, key) for key in new_keys])

    _async_add_new_rooms()
    entry.async_on_unload(coordinator.async_add_listener(_async_add_new_rooms))


# Anything that is not "Heat" is treated as off, in both directions.

def to_current_state(state: Optional[str]) -> HVACAction:
    return HVACAction.HEATING if state == STATE_HEAT else HVACAction.OFF

def to_target_state(state: Optional[str]) -> HVACMode:
    return HVACMode.HEAT if state == STATE_HEAT else HVACMode.OFF

def from_target_state(mode: Any) -> str:
    return STATE_HEAT if mode == HVACMode.HEAT else STATE_OFF


class ClimateControllerThermostat(CoordinatorEntity[ClimateControllerCoordinator], ClimateEntity):
    _attr_should_poll = False
    _attr_has_entity_name = True
    _attr_name = None
    _attr_temperature_unit = UnitOfTemperature.CELSIUS
    _attr_precision = PRECISION_TENTHS
    _attr_hvac_modes = [HVACMode.OFF, HVACMode.HEAT]
    _attr_min_temp = MIN_TARGET_TEMP
    _attr_max_temp = MAX_TARGET_TEMP
    _attr_target_temperature_step = TARGET_TEMP_STEP
    _attr_supported_features = (
        ClimateEntityFeature.TARGET_TEMPERATURE
        | ClimateEntityFeature.TURN_ON
        | ClimateEntityFeature.TURN_OFF
    )

    def __init__(self, coordinator: ClimateControllerCoordinator, key: str) -> None:
        super().__init__(coordinator)
        self._key = key
        self._subscribed: Optional[DeviceSession] = None
        self._unsub_status: Optional[Callable[[], None]] = None
        binding = coordinator.bindings[key]
        self._attr_unique_id = key
        self._attr_device_info = DeviceInfo(
            identifiers={(DOMAIN, key)},
            name=binding.room.name,
            manufacturer=MANUFACTURER,
            model=MODEL,
            sw_version=binding.session.config.firmware,
            serial_number=binding.session.config.serial,
        )

    @property
    def _session(self) -> DeviceSession:
        return self.coordinator.bindings[self._key].session

    def _status(self) -> Optional[DeviceStatus]:
        return self._session.status

    async def async_added_to_hass(self) -> None:
        await super().async_added_to_hass()
        self._async_subscribe()
        self.async_on_remove(self._async_unsubscribe)
        # Initial read; the push feed takes over afterwards
        self.async_schedule_update_ha_state(True)

    @callback
    def _async_subscribe(self) -> None:
        session = self._session
        if session is self._subscribed:
            return
        self._async_unsubscribe()
        self._subscribed = session
        self._unsub_status = session.async_add_listener(self._handle_status_update)

    @callback
    def _async_unsubscribe(self) -> None:
        if self._unsub_status is not None:
            self._unsub_status()
        self._unsub_status = None
        self._subscribed = None

    @callback
    def _handle_status_update(self, status: DeviceStatus) -> None:
        self.async_write_ha_state()

    @callback
    def _handle_coordinator_update(self) -> None:
        # The room may have been rebound to a new session
        self._async_subscribe()
        self._async_update_device_metadata()
        self.async_write_ha_state()

    @callback
    def _async_update_device_metadata(self) -> None:
        config = self._session.config
        device_info = self._attr_device_info
        if (device_info.get("sw_version"), device_info.get("serial_number")) == (config.firmware, config.serial):
            return
        _LOGGER.debug("Updating %s device: firmware %s, serial %s", config.name, config.firmware, config.serial)
        device_info["sw_version"] = config.firmware
        device_info["serial_number"] = config.serial
        registry = dr.async_get(self.hass)
        device = registry.async_get_device(identifiers={(DOMAIN, self._key)})
        if device is not None:
            registry.async_update_device(device.id, sw_version=config.firmware, serial_number=config.serial)

    @property
    def available(self) -> bool:
        return self._key in self.coordinator.bindings

    @property
    def current_temperature(self) -> Optional[float]:
        status = self._status()
        return status.current_temperature if status else None

    @property
    def target_temperature(self) -> Optional[float]:
        status = self._status()
        return status.target_temperature if status else None

    @property
    def current_humidity(self) -> Optional[float]:
        status = self._status()
        return status.current_humidity if status else None

    @property
    def hvac_mode(self) -> Optional[HVACMode]:
        status = self._status()
        return to_target_state(status.target_state) if status else None

    @property
    def hvac_action(self) -> Optional[HVACAction]:
        status = self._status()
        return to_current_state(status.current_state) if status else None

    @property
    def extra_state_attributes(self) -> Dict[str, Any]:
        room = self.coordinator.bindings[self._key].room
        return {
            "port": room.port,
            "features": room.features,
        }

    async def _async_call(self, request: Awaitable[_T]) -> _T:
        """Map device errors onto the two error kinds Home Assistant shows to the user."""
        name = self._session.config.name
        try:
            return await request
        except InvalidResponse as err:
            raise HomeAssistantError(
                translation_domain=DOMAIN,
                translation_key="invalid_value",
                translation_placeholders={"name": name, "error": str(err)},
            ) from err
        except CommunicationFailure as err:
            raise HomeAssistantError(
                translation_domain=DOMAIN,
                translation_key="communication_failure",
                translation_placeholders={"name": name, "error": str(err)},
            ) from err

    async def async_update(self) -> None:
        status = await self._async_call(self._session.async_get_status())
        _LOGGER.debug("Got %s status: %s", self._session.config.name, status)

    async def async_set_temperature(self, **kwargs) -> None:
        tgt = kwargs.get(ATTR_TEMPERATURE)
        if tgt is None:
            return
        _LOGGER.debug("Setting %s target temperature value: %s", self._session.config.name, tgt)
        await self._async_call(self._session.async_set_control(ControlTarget(temperature=float(tgt))))

    async def async_set_hvac_mode(self, hvac_mode: HVACMode) -> None:
        if hvac_mode not in self._attr_hvac_modes:
            _LOGGER.debug("Unsupported hvac_mode=%s for %s", hvac_mode, self._session.config.name)
            return
        state = from_target_state(hvac_mode)
        _LOGGER.debug("Setting %s target state value: %s", self._session.config.name, state)
        await self._async_call(self._session.async_set_control(ControlTarget(state=state)))
