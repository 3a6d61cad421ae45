"""The WiFi Heatmap integration."""

from __future__ import annotations

import logging
import shutil
from collections.abc import Iterator

import voluptuous as vol
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import CONF_NAME, Platform
from homeassistant.core import HomeAssistant, ServiceCall
from homeassistant.helpers import config_validation as cv
from homeassistant.helpers.storage import STORAGE_DIR
from homeassistant.helpers.typing import ConfigType

from .config_flow import NORMALIZED_VALUE, validate_locations
from .const import (
    ATTR_LOCATION,
    ATTR_X,
    ATTR_Y,
    ATTR_Z,
    CONF_GRID_RESOLUTION,
    CONF_IDW_POWER,
    CONF_IMAGE_HEIGHT,
    CONF_IMAGE_WIDTH,
    CONF_LOCATIONS,
    CONF_SHOW_LOCATION_NAMES,
    CONF_SHOW_SIGNAL_VALUES,
    CONF_SMOOTHING_KERNEL,
    CONF_UPDATE_INTERVAL,
    DEFAULT_GRID_RESOLUTION,
    DEFAULT_IDW_POWER,
    DEFAULT_IMAGE_HEIGHT,
    DEFAULT_IMAGE_WIDTH,
    DEFAULT_SHOW_LOCATION_NAMES,
    DEFAULT_SHOW_SIGNAL_VALUES,
    DEFAULT_SMOOTHING_KERNEL,
    DEFAULT_UPDATE_INTERVAL,
    DOMAIN,
    GRID_RESOLUTIONS,
    SERVICE_REFRESH,
    SERVICE_REMOVE_COORDINATE,
    SERVICE_RESET_COORDINATES,
    SERVICE_SET_COORDINATE,
)
from .heatmap.coordinates import CoordinateAssignment
from .heatmap.storage import FileMappingStore
from .heatmap.types import Coordinate

_LOGGER = logging.getLogger(__name__)

PLATFORMS: list[Platform] = [Platform.IMAGE]

# YAML configuration schema (imported into config entries)
CONFIG_SCHEMA = vol.Schema(
    {
        DOMAIN: vol.All(
            cv.ensure_list,
            [
                vol.Schema(
                    {
                        vol.Required(CONF_NAME): cv.string,
                        vol.Optional(
                            CONF_UPDATE_INTERVAL, default=DEFAULT_UPDATE_INTERVAL
                        ): cv.positive_int,
                        vol.Optional(
                            CONF_GRID_RESOLUTION, default=DEFAULT_GRID_RESOLUTION
                        ): vol.In(GRID_RESOLUTIONS),
                        vol.Optional(CONF_IDW_POWER, default=DEFAULT_IDW_POWER): vol.All(
                            vol.Coerce(float), vol.Range(min=0.5, max=5)
                        ),
                        vol.Optional(
                            CONF_SMOOTHING_KERNEL, default=DEFAULT_SMOOTHING_KERNEL
                        ): vol.All(vol.Coerce(int), vol.Range(min=0, max=9)),
                        vol.Optional(CONF_IMAGE_WIDTH, default=DEFAULT_IMAGE_WIDTH): vol.All(
                            vol.Coerce(int), vol.Range(min=50, max=2000)
                        ),
                        vol.Optional(CONF_IMAGE_HEIGHT, default=DEFAULT_IMAGE_HEIGHT): vol.All(
                            vol.Coerce(int), vol.Range(min=50, max=2000)
                        ),
                        vol.Optional(
                            CONF_SHOW_LOCATION_NAMES, default=DEFAULT_SHOW_LOCATION_NAMES
                        ): cv.boolean,
                        vol.Optional(
                            CONF_SHOW_SIGNAL_VALUES, default=DEFAULT_SHOW_SIGNAL_VALUES
                        ): cv.boolean,
                        vol.Required(CONF_LOCATIONS): vol.All(cv.ensure_list, validate_locations),
                    }
                )
            ],
        )
    },
    extra=vol.ALLOW_EXTRA,
)

SET_COORDINATE_SCHEMA = vol.Schema(
    {
        vol.Required(ATTR_LOCATION): cv.string,
        vol.Required(ATTR_X): NORMALIZED_VALUE,
        vol.Required(ATTR_Y): NORMALIZED_VALUE,
        vol.Optional(ATTR_Z): vol.Coerce(float),
    }
)

REMOVE_COORDINATE_SCHEMA = vol.Schema({vol.Required(ATTR_LOCATION): cv.string})

RESET_COORDINATES_SCHEMA = vol.Schema({vol.Optional(CONF_NAME): cv.string})


def _storage_path(hass: HomeAssistant, entry: ConfigEntry) -> str:
    """Directory holding the coordinate mapping of a config entry."""
    return hass.config.path(STORAGE_DIR, DOMAIN, entry.entry_id)


def _coordinators(hass: HomeAssistant) -> Iterator:
    # Import here to avoid circular imports
    from .coordinator import WifiHeatmapCoordinator

    for coordinator in hass.data.get(DOMAIN, {}).values():
        if isinstance(coordinator, WifiHeatmapCoordinator):
            yield coordinator


async def async_setup(hass: HomeAssistant, config: ConfigType) -> bool:
    """Set up the WiFi Heatmap integration from YAML."""
    hass.data.setdefault(DOMAIN, {})

    if DOMAIN in config:
        for yaml_config in config[DOMAIN]:
            hass.async_create_task(
                hass.config_entries.flow.async_init(
                    DOMAIN,
                    context={"source": "import"},
                    data=yaml_config,
                )
            )

    return True


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up WiFi Heatmap from a config entry."""
    hass.data.setdefault(DOMAIN, {})

    # Import coordinator here to avoid circular imports
    from .coordinator import WifiHeatmapCoordinator

    # Loading the stored mapping reads from disk
    store = FileMappingStore(_storage_path(hass, entry))
    assignment = await hass.async_add_executor_job(CoordinateAssignment, store)

    coordinator = WifiHeatmapCoordinator(hass, entry, assignment)
    hass.data[DOMAIN][entry.entry_id] = coordinator

    await coordinator.async_config_entry_first_refresh()

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)

    entry.async_on_unload(entry.add_update_listener(async_update_options))

    _register_services(hass)

    return True


def _register_services(hass: HomeAssistant) -> None:
    """Register the integration services (only once)."""
    if hass.services.has_service(DOMAIN, SERVICE_REFRESH):
        return

    async def handle_refresh(call: ServiceCall) -> None:
        """Refresh every map."""
        for coordinator in _coordinators(hass):
            await coordinator.async_request_refresh()

    async def handle_set_coordinate(call: ServiceCall) -> None:
        """Move a location on every map that contains it."""
        name = call.data[ATTR_LOCATION]
        coordinate = Coordinate(x=call.data[ATTR_X], y=call.data[ATTR_Y], z=call.data.get(ATTR_Z))

        targets = [c for c in _coordinators(hass) if name in c.location_names]
        if not targets:
            _LOGGER.warning("No WiFi heatmap has a location named %s", name)
            return

        for coordinator in targets:
            if name in coordinator.pinned_names:
                _LOGGER.warning(
                    "Location %s has a configured position on %s, change it in the map options",
                    name,
                    coordinator.name,
                )
                continue
            await hass.async_add_executor_job(
                coordinator.assignment.set_coordinate, name, coordinate
            )
            await coordinator.async_request_refresh()

    async def handle_remove_coordinate(call: ServiceCall) -> None:
        """Forget a location's position so it gets laid out again."""
        name = call.data[ATTR_LOCATION]
        for coordinator in _coordinators(hass):
            if name in coordinator.location_names:
                await hass.async_add_executor_job(coordinator.assignment.remove_coordinate, name)
                await coordinator.async_request_refresh()

    async def handle_reset_coordinates(call: ServiceCall) -> None:
        """Clear all positions of one map, or of every map."""
        map_name = call.data.get(CONF_NAME)
        for coordinator in _coordinators(hass):
            if map_name is not None and coordinator.config_entry.data[CONF_NAME] != map_name:
                continue
            await hass.async_add_executor_job(coordinator.assignment.clear_all_mappings)
            await coordinator.async_request_refresh()

    hass.services.async_register(DOMAIN, SERVICE_REFRESH, handle_refresh)
    hass.services.async_register(
        DOMAIN, SERVICE_SET_COORDINATE, handle_set_coordinate, schema=SET_COORDINATE_SCHEMA
    )
    hass.services.async_register(
        DOMAIN,
        SERVICE_REMOVE_COORDINATE,
        handle_remove_coordinate,
        schema=REMOVE_COORDINATE_SCHEMA,
    )
    hass.services.async_register(
        DOMAIN,
        SERVICE_RESET_COORDINATES,
        handle_reset_coordinates,
        schema=RESET_COORDINATES_SCHEMA,
    )


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)

    if unload_ok:
        hass.data[DOMAIN].pop(entry.entry_id)

    return unload_ok


async def async_remove_entry(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Delete the stored coordinate mapping of a removed map."""
    await hass.async_add_executor_job(shutil.rmtree, _storage_path(hass, entry), True)


async def async_update_options(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Handle options update."""
    coordinator = hass.data[DOMAIN][entry.entry_id]
    await coordinator.async_config_entry_updated(hass, entry)
