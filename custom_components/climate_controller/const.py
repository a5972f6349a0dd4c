DOMAIN = "climate_controller"

CONF_REQUEST_TIMEOUT = "request_timeout"
CONF_SCAN_INTERVAL = "scan_interval"

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 2137
DEFAULT_REQUEST_TIMEOUT = 10  # seconds
DEFAULT_SCAN_INTERVAL = 0  # minutes, 0 = fetch rooms only at startup
RECONNECT_DELAY = 5  # seconds
CONNECT_TIMEOUT = 10  # seconds
READ_LIMIT = 65536

MANUFACTURER = "tmplt.io"
MODEL = "Thermostat"

# Wire vocabulary
STATE_HEAT = "Heat"
STATE_OFF = "Off"

# Thermostat bounds (°C)
MIN_TARGET_TEMP = 16.0
MAX_TARGET_TEMP = 24.0
TARGET_TEMP_STEP = 0.1
