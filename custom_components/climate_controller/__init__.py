import logging
from datetime import timedelta
from typing import Any, Dict

from homeassistant.config_entries import ConfigEntry
from homeassistant.const import CONF_HOST, CONF_PORT
from homeassistant.core import HomeAssistant

from .api import ClimateControllerClient
from .const import (
    CONF_REQUEST_TIMEOUT,
    CONF_SCAN_INTERVAL,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_SCAN_INTERVAL,
    DOMAIN,
)
from .coordinator import ClimateControllerCoordinator

_LOGGER = logging.getLogger(__name__)

PLATFORMS = ["climate"]

async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    data: Dict[str, Any] = dict(entry.data)
    options: Dict[str, Any] = dict(entry.options)

    host = data[CONF_HOST]
    port = data[CONF_PORT]
    request_timeout = options.get(CONF_REQUEST_TIMEOUT, DEFAULT_REQUEST_TIMEOUT)
    scan_minutes = options.get(CONF_SCAN_INTERVAL, DEFAULT_SCAN_INTERVAL)

    client = ClimateControllerClient(host, port, request_timeout)
    coordinator = ClimateControllerCoordinator(
        hass,
        entry,
        client,
        update_interval=timedelta(minutes=scan_minutes) if scan_minutes else None,
        request_timeout=request_timeout,
    )

    # Fetch rooms from the controller; failure makes Home Assistant retry setup
    await coordinator.async_config_entry_first_refresh()
    _LOGGER.info("Climate controller %s:%s set up with %d room(s)", host, port, len(coordinator.bindings))

    hass.data.setdefault(DOMAIN, {})
    hass.data[DOMAIN][entry.entry_id] = {
        "client": client,
        "coordinator": coordinator,
    }

    entry.async_on_unload(entry.add_update_listener(_async_update_listener))
    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    return True

async def _async_update_listener(hass: HomeAssistant, entry: ConfigEntry) -> None:
    await hass.config_entries.async_reload(entry.entry_id)

async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if unload_ok and entry.entry_id in hass.data.get(DOMAIN, {}):
        data = hass.data[DOMAIN].pop(entry.entry_id)
        await data["coordinator"].async_shutdown_sessions()
    return unload_ok
