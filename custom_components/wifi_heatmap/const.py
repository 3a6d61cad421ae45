"""Constants for the WiFi Heatmap integration."""

DOMAIN = "wifi_heatmap"

# Config keys
CONF_LOCATIONS = "locations"
CONF_UPDATE_INTERVAL = "update_interval"
CONF_GRID_RESOLUTION = "grid_resolution"
CONF_IDW_POWER = "idw_power"
CONF_SMOOTHING_KERNEL = "smoothing_kernel"
CONF_IMAGE_WIDTH = "image_width"
CONF_IMAGE_HEIGHT = "image_height"
CONF_SHOW_LOCATION_NAMES = "show_location_names"
CONF_SHOW_SIGNAL_VALUES = "show_signal_values"

# Location keys
ATTR_ENTITY = "entity"
ATTR_NAME = "name"
ATTR_X = "x"
ATTR_Y = "y"
ATTR_Z = "z"
ATTR_LOCATION = "location"

# Defaults
DEFAULT_UPDATE_INTERVAL = 5  # minutes
DEFAULT_GRID_RESOLUTION = 50
DEFAULT_IDW_POWER = 2.0
DEFAULT_SMOOTHING_KERNEL = 0  # disabled
DEFAULT_IMAGE_WIDTH = 500
DEFAULT_IMAGE_HEIGHT = 500
DEFAULT_SHOW_LOCATION_NAMES = True
DEFAULT_SHOW_SIGNAL_VALUES = True

GRID_RESOLUTIONS = [20, 30, 50, 75, 100]

# Services
SERVICE_REFRESH = "refresh"
SERVICE_SET_COORDINATE = "set_coordinate"
SERVICE_REMOVE_COORDINATE = "remove_coordinate"
SERVICE_RESET_COORDINATES = "reset_coordinates"
