from unittest.mock import AsyncMock, MagicMock, PropertyMock, patch

from homeassistant.const import CONF_HOST, CONF_PORT
from homeassistant.data_entry_flow import FlowResultType

from custom_components.climate_controller.config_flow import (
    ClimateControllerConfigFlow,
    ClimateControllerOptionsFlow,
)
from custom_components.climate_controller.const import CONF_REQUEST_TIMEOUT, CONF_SCAN_INTERVAL, DOMAIN
from custom_components.climate_controller.exceptions import CommunicationFailure
from custom_components.climate_controller.protocol import ControllerConfiguration, RoomConfig

CLIENT = "custom_components.climate_controller.config_flow.ClimateControllerClient"


def _flow():
    flow = ClimateControllerConfigFlow()
    flow.hass = MagicMock()
    flow.handler = DOMAIN
    flow.flow_id = "test"
    flow.context = {"source": "user"}
    return flow


async def test_user_step_shows_defaults():
    result = await _flow().async_step_user()

    assert result["type"] == FlowResultType.FORM
    assert result["step_id"] == "user"
    defaults = {str(key): key.default() for key in result["data_schema"].schema}
    assert defaults == {CONF_HOST: "127.0.0.1", CONF_PORT: 2137}


async def test_user_step_cannot_connect():
    with patch(CLIENT) as client_cls:
        client_cls.return_value.async_get_configuration = AsyncMock(
            side_effect=CommunicationFailure("refused")
        )
        result = await _flow().async_step_user({CONF_HOST: "10.0.0.5", CONF_PORT: 2137})

    client_cls.assert_called_once_with("10.0.0.5", 2137)
    assert result["type"] == FlowResultType.FORM
    assert result["errors"] == {"base": "cannot_connect"}


async def test_user_step_aborts_without_rooms():
    with patch(CLIENT) as client_cls:
        client_cls.return_value.async_get_configuration = AsyncMock(
            return_value=ControllerConfiguration([], "1.0")
        )
        result = await _flow().async_step_user({CONF_HOST: "10.0.0.5", CONF_PORT: 2137})

    assert result["type"] == FlowResultType.ABORT
    assert result["reason"] == "no_rooms"


async def test_user_step_creates_entry():
    flow = _flow()
    with patch(CLIENT) as client_cls, patch.object(
        flow, "async_set_unique_id", AsyncMock()
    ) as set_unique_id, patch.object(flow, "_abort_if_unique_id_configured") as abort_if_configured:
        client_cls.return_value.async_get_configuration = AsyncMock(
            return_value=ControllerConfiguration([RoomConfig("Bedroom", "S1", 3000, "")], "1.0")
        )
        result = await flow.async_step_user({CONF_HOST: "10.0.0.5", CONF_PORT: 2137})

    set_unique_id.assert_awaited_once_with("10.0.0.5:2137")
    abort_if_configured.assert_called_once()
    assert result["type"] == FlowResultType.CREATE_ENTRY
    assert result["title"] == "Climate Controller 10.0.0.5:2137"
    assert result["data"] == {CONF_HOST: "10.0.0.5", CONF_PORT: 2137}


def _options_flow(options):
    flow = ClimateControllerOptionsFlow()
    flow.hass = MagicMock()
    flow.handler = "entry"
    flow.flow_id = "options"
    flow.context = {}
    entry = MagicMock()
    entry.options = options
    return flow, patch.object(ClimateControllerOptionsFlow, "config_entry", new_callable=PropertyMock, return_value=entry)


async def test_options_step_shows_defaults():
    flow, config_entry = _options_flow({})
    with config_entry:
        result = await flow.async_step_init()

    assert result["type"] == FlowResultType.FORM
    assert result["step_id"] == "init"
    defaults = {str(key): key.default() for key in result["data_schema"].schema}
    assert defaults == {CONF_REQUEST_TIMEOUT: 10, CONF_SCAN_INTERVAL: 0}


async def test_options_step_shows_current_options():
    flow, config_entry = _options_flow({CONF_REQUEST_TIMEOUT: 30, CONF_SCAN_INTERVAL: 5})
    with config_entry:
        result = await flow.async_step_init()

    defaults = {str(key): key.default() for key in result["data_schema"].schema}
    assert defaults == {CONF_REQUEST_TIMEOUT: 30, CONF_SCAN_INTERVAL: 5}


async def test_options_step_saves_input():
    flow, config_entry = _options_flow({})
    with config_entry:
        result = await flow.async_step_init({CONF_REQUEST_TIMEOUT: 30, CONF_SCAN_INTERVAL: 5})

    assert result["type"] == FlowResultType.CREATE_ENTRY
    assert result["data"] == {CONF_REQUEST_TIMEOUT: 30, CONF_SCAN_INTERVAL: 5}
