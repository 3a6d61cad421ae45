"""Image platform for WiFi Heatmap."""

from __future__ import annotations

import logging
from typing import Any

from homeassistant.components.image import ImageEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import CONF_NAME
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.entity_platform import AddEntitiesCallback
from homeassistant.helpers.update_coordinator import CoordinatorEntity
from homeassistant.util import dt as dt_util

from .const import CONF_GRID_RESOLUTION, DEFAULT_GRID_RESOLUTION, DOMAIN
from .coordinator import WifiHeatmapCoordinator

_LOGGER = logging.getLogger(__name__)


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the WiFi Heatmap image platform from a config entry."""
    coordinator: WifiHeatmapCoordinator = hass.data[DOMAIN][config_entry.entry_id]
    async_add_entities([WifiHeatmapImage(coordinator)])


class WifiHeatmapImage(CoordinatorEntity[WifiHeatmapCoordinator], ImageEntity):
    """Heatmap of one map's signal sensors, served as a PNG."""

    _attr_content_type = "image/png"

    def __init__(self, coordinator: WifiHeatmapCoordinator) -> None:
        CoordinatorEntity.__init__(self, coordinator)
        ImageEntity.__init__(self, coordinator.hass)

        entry = coordinator.config_entry
        self._attr_name = f"WiFi Heatmap {entry.data[CONF_NAME]}"
        # Stable across map renames
        self._attr_unique_id = f"{entry.entry_id}_heatmap"

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        return {
            "locations": self.coordinator.rendered_locations,
            "grid_resolution": self.coordinator.config_entry.options.get(
                CONF_GRID_RESOLUTION, DEFAULT_GRID_RESOLUTION
            ),
        }

    @callback
    def _handle_coordinator_update(self) -> None:
        """Bump the image timestamp whenever a new render arrives."""
        if self.coordinator.data is not None:
            self._attr_image_last_updated = dt_util.utcnow()
        self.async_write_ha_state()

    async def async_image(self) -> bytes | None:
        if self.coordinator.data is None:
            _LOGGER.debug("No heatmap rendered yet for %s", self.coordinator.name)
        return self.coordinator.data
