"""DataUpdateCoordinator for WiFi Heatmap."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator, UpdateFailed

from .const import (
    ATTR_ENTITY,
    ATTR_NAME,
    ATTR_X,
    ATTR_Y,
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
)
from .heatmap.coordinates import CoordinateAssignment, join_samples
from .heatmap.interpolation import generate_heat_map_grid, round_half_away_from_zero
from .heatmap.smoothing import apply_gaussian_smoothing
from .heatmap.types import Coordinate, Sample

_LOGGER = logging.getLogger(__name__)


class WifiHeatmapCoordinator(DataUpdateCoordinator[bytes]):
    """Coordinator to manage WiFi heatmap updates."""

    def __init__(
        self,
        hass: HomeAssistant,
        config_entry: ConfigEntry,
        assignment: CoordinateAssignment,
    ) -> None:
        """Initialize the coordinator."""
        update_interval_minutes = config_entry.options.get(
            CONF_UPDATE_INTERVAL, DEFAULT_UPDATE_INTERVAL
        )

        super().__init__(
            hass,
            _LOGGER,
            config_entry=config_entry,
            name=f"{DOMAIN}_{config_entry.data['name']}",
            update_interval=timedelta(minutes=update_interval_minutes),
        )

        self.assignment = assignment

        # Locations as drawn in the last rendered image, in pixel coordinates
        self.rendered_locations: list[dict[str, Any]] = []

        self._last_locations: list[dict] | None = None

    @property
    def _config(self) -> dict[str, Any]:
        """Get the current configuration from config entry options."""
        return self.config_entry.options

    @property
    def location_names(self) -> list[str]:
        return [location[ATTR_NAME] for location in self._config.get(CONF_LOCATIONS, [])]

    @property
    def pinned_names(self) -> list[str]:
        """Locations whose position is fixed by the configuration."""
        return [
            location[ATTR_NAME]
            for location in self._config.get(CONF_LOCATIONS, [])
            if ATTR_X in location
        ]

    async def async_config_entry_updated(self, hass: HomeAssistant, entry: ConfigEntry) -> None:
        """Handle options update."""
        _LOGGER.debug("Configuration updated for %s", self.name)

        new_interval_minutes = entry.options.get(CONF_UPDATE_INTERVAL, DEFAULT_UPDATE_INTERVAL)
        new_interval = timedelta(minutes=new_interval_minutes)

        if self.update_interval != new_interval:
            _LOGGER.info(
                "Update interval changed from %s to %s minutes for %s",
                self.update_interval.total_seconds() / 60,
                new_interval_minutes,
                self.name,
            )
            self.update_interval = new_interval

        if self._last_locations is not None:
            current = {location[ATTR_NAME] for location in entry.options.get(CONF_LOCATIONS, [])}
            removed = sorted(
                location[ATTR_NAME]
                for location in self._last_locations
                if location[ATTR_NAME] not in current
            )
            if removed:
                _LOGGER.info(
                    "Locations %s removed from %s, forgetting their coordinates",
                    ", ".join(removed),
                    self.name,
                )
                await hass.async_add_executor_job(self.assignment.remove_coordinates, removed)

        await self.async_request_refresh()

    def _read_samples(self) -> list[Sample]:
        """Read the current signal strength of every configured location."""
        samples = []
        for location in self._config.get(CONF_LOCATIONS, []):
            entity_id = location[ATTR_ENTITY]
            state = self.hass.states.get(entity_id)
            if state is None:
                _LOGGER.warning("Signal sensor %s not found in Home Assistant", entity_id)
                continue
            if state.state in ("unknown", "unavailable"):
                _LOGGER.debug(
                    "Signal sensor %s is unavailable (state: %s), skipping", entity_id, state.state
                )
                continue
            try:
                rssi = round_half_away_from_zero(float(state.state))
            except ValueError:
                _LOGGER.warning("Invalid signal value for %s: %s", entity_id, state.state)
                continue

            samples.append(
                Sample(
                    location_name=location[ATTR_NAME],
                    rssi=rssi,
                    timestamp=state.last_updated,
                )
            )
        return samples

    async def _async_update_data(self) -> bytes:
        """Read signal sensors and render the heatmap."""
        try:
            config = self._config
            total_locations = len(config.get(CONF_LOCATIONS, []))

            samples = self._read_samples()
            if not samples:
                _LOGGER.warning(
                    "No valid signal readings for WiFi heatmap (%d configured, 0 available). "
                    "The map will show the default signal level everywhere.",
                    total_locations,
                )
            else:
                _LOGGER.debug(
                    "Rendering heatmap with %d/%d locations available",
                    len(samples),
                    total_locations,
                )

            # Interpolation, persistence and rendering all block
            image_bytes, rendered_locations = await self.hass.async_add_executor_job(
                self._render_heatmap, samples
            )

            _LOGGER.debug("Successfully rendered heatmap (%d bytes)", len(image_bytes))

            self._last_locations = config.get(CONF_LOCATIONS, [])
            self.rendered_locations = rendered_locations
            return image_bytes

        except Exception as err:
            _LOGGER.exception("Error rendering heatmap")
            raise UpdateFailed(f"Error rendering heatmap: {err}") from err

    def _sync_coordinates(self) -> None:
        """Apply pinned positions and lay out locations that have none yet."""
        for location in self._config.get(CONF_LOCATIONS, []):
            if ATTR_X not in location:
                continue
            pinned = Coordinate(x=location[ATTR_X], y=location[ATTR_Y])
            if self.assignment.coordinate_for(location[ATTR_NAME]) != pinned:
                self.assignment.set_coordinate(location[ATTR_NAME], pinned)

        placed = self.assignment.fill_grid_layout(self.location_names)
        if placed:
            _LOGGER.debug("Generated coordinates for %s", ", ".join(placed))

    def _render_heatmap(self, samples: list[Sample]) -> tuple[bytes, list[dict[str, Any]]]:
        """Interpolate and render the heatmap image (runs in executor thread)."""
        # Import here to avoid loading Pillow on the event loop at startup
        from .heatmap.renderer import render_heatmap_image

        config = self._config

        self._sync_coordinates()
        points = join_samples(samples, self.assignment)

        resolution = config.get(CONF_GRID_RESOLUTION, DEFAULT_GRID_RESOLUTION)
        grid = generate_heat_map_grid(
            points,
            width=resolution,
            height=resolution,
            power=config.get(CONF_IDW_POWER, DEFAULT_IDW_POWER),
        )
        grid = apply_gaussian_smoothing(
            grid, kernel_size=config.get(CONF_SMOOTHING_KERNEL, DEFAULT_SMOOTHING_KERNEL)
        )

        return render_heatmap_image(
            grid,
            points,
            width=config.get(CONF_IMAGE_WIDTH, DEFAULT_IMAGE_WIDTH),
            height=config.get(CONF_IMAGE_HEIGHT, DEFAULT_IMAGE_HEIGHT),
            show_names=config.get(CONF_SHOW_LOCATION_NAMES, DEFAULT_SHOW_LOCATION_NAMES),
            show_values=config.get(CONF_SHOW_SIGNAL_VALUES, DEFAULT_SHOW_SIGNAL_VALUES),
        )
