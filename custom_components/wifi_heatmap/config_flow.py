"""Config flow for WiFi Heatmap integration."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

import voluptuous as vol
from homeassistant import config_entries
from homeassistant.config_entries import ConfigFlowResult
from homeassistant.const import CONF_NAME
from homeassistant.core import callback
from homeassistant.helpers import config_validation as cv

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
    GRID_RESOLUTIONS,
)

_LOGGER = logging.getLogger(__name__)

NORMALIZED_VALUE = vol.All(vol.Coerce(float), vol.Range(min=0, max=1))

LOCATION_SCHEMA = vol.Schema(
    {
        vol.Required(ATTR_ENTITY): cv.entity_id,
        vol.Required(ATTR_NAME): cv.string,
        vol.Optional(ATTR_X): NORMALIZED_VALUE,
        vol.Optional(ATTR_Y): NORMALIZED_VALUE,
    }
)

SETTINGS_DEFAULTS: dict[str, Any] = {
    CONF_UPDATE_INTERVAL: DEFAULT_UPDATE_INTERVAL,
    CONF_GRID_RESOLUTION: DEFAULT_GRID_RESOLUTION,
    CONF_IDW_POWER: DEFAULT_IDW_POWER,
    CONF_SMOOTHING_KERNEL: DEFAULT_SMOOTHING_KERNEL,
    CONF_IMAGE_WIDTH: DEFAULT_IMAGE_WIDTH,
    CONF_IMAGE_HEIGHT: DEFAULT_IMAGE_HEIGHT,
    CONF_SHOW_LOCATION_NAMES: DEFAULT_SHOW_LOCATION_NAMES,
    CONF_SHOW_SIGNAL_VALUES: DEFAULT_SHOW_SIGNAL_VALUES,
}


def settings_fields(current: Mapping[str, Any]) -> dict[Any, Any]:
    """Schema fields for the map settings, defaulting to the current values."""

    def default(key: str) -> Any:
        return current.get(key, SETTINGS_DEFAULTS[key])

    return {
        vol.Optional(CONF_UPDATE_INTERVAL, default=default(CONF_UPDATE_INTERVAL)): (
            cv.positive_int
        ),
        vol.Optional(CONF_GRID_RESOLUTION, default=default(CONF_GRID_RESOLUTION)): vol.In(
            GRID_RESOLUTIONS
        ),
        vol.Optional(CONF_IDW_POWER, default=default(CONF_IDW_POWER)): vol.All(
            vol.Coerce(float), vol.Range(min=0.5, max=5)
        ),
        vol.Optional(CONF_SMOOTHING_KERNEL, default=default(CONF_SMOOTHING_KERNEL)): vol.All(
            vol.Coerce(int), vol.Range(min=0, max=9)
        ),
        vol.Optional(CONF_IMAGE_WIDTH, default=default(CONF_IMAGE_WIDTH)): vol.All(
            vol.Coerce(int), vol.Range(min=50, max=2000)
        ),
        vol.Optional(CONF_IMAGE_HEIGHT, default=default(CONF_IMAGE_HEIGHT)): vol.All(
            vol.Coerce(int), vol.Range(min=50, max=2000)
        ),
        vol.Optional(CONF_SHOW_LOCATION_NAMES, default=default(CONF_SHOW_LOCATION_NAMES)): (
            cv.boolean
        ),
        vol.Optional(CONF_SHOW_SIGNAL_VALUES, default=default(CONF_SHOW_SIGNAL_VALUES)): (
            cv.boolean
        ),
    }


def validate_location(location: dict) -> dict:
    """Validate a single location configuration."""
    location = LOCATION_SCHEMA(location)
    if (ATTR_X in location) != (ATTR_Y in location):
        raise vol.Invalid(f"Location {location[ATTR_NAME]} needs both x and y, or neither")
    return location


def validate_locations(locations: Any) -> list[dict]:
    """Validate a list of locations; names must be unique."""
    if not isinstance(locations, list):
        raise vol.Invalid("Locations must be a JSON array")
    if not locations:
        raise vol.Invalid("At least one location is required")

    validated = [validate_location(location) for location in locations]

    names = [location[ATTR_NAME] for location in validated]
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        raise vol.Invalid(f"Location names must be unique: {', '.join(duplicates)}")

    return validated


def validate_locations_json(locations_json: str) -> list[dict]:
    """Validate and parse locations JSON."""
    try:
        locations = json.loads(locations_json)
    except json.JSONDecodeError as err:
        raise vol.Invalid(f"Invalid JSON: {err}") from err
    return validate_locations(locations)


class WifiHeatmapConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    """Handle a config flow for WiFi Heatmap."""

    VERSION = 1

    def __init__(self) -> None:
        """Initialize the config flow."""
        self._config: dict[str, Any] = {}

    async def async_step_user(self, user_input: dict[str, Any] | None = None) -> ConfigFlowResult:
        """Handle the initial step - name and map settings."""
        if user_input is not None:
            self._config = user_input

            await self.async_set_unique_id(user_input[CONF_NAME].lower().replace(" ", "_"))
            self._abort_if_unique_id_configured()

            return await self.async_step_locations()

        data_schema = vol.Schema(
            {
                vol.Required(CONF_NAME): cv.string,
                **settings_fields({}),
            }
        )

        return self.async_show_form(step_id="user", data_schema=data_schema)

    async def async_step_locations(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        """Handle the locations step - signal sensors and optional positions."""
        errors: dict[str, str] = {}

        if user_input is not None:
            try:
                locations = validate_locations_json(user_input[CONF_LOCATIONS])

                name = self._config.pop(CONF_NAME)

                # Name lives in data, everything else in options
                return self.async_create_entry(
                    title=name,
                    data={CONF_NAME: name},
                    options={**self._config, CONF_LOCATIONS: locations},
                )

            except vol.Invalid as err:
                errors["base"] = str(err)

        example_locations = json.dumps(
            [
                {"entity": "sensor.kitchen_plug_wifi_signal", "name": "Kitchen"},
                {"entity": "sensor.office_lamp_wifi_signal", "name": "Office", "x": 0.8, "y": 0.2},
            ],
            indent=2,
        )

        return self.async_show_form(
            step_id="locations",
            data_schema=vol.Schema({vol.Required(CONF_LOCATIONS): cv.string}),
            errors=errors,
            description_placeholders={"example_locations": example_locations},
        )

    async def async_step_import(self, import_config: dict[str, Any]) -> ConfigFlowResult:
        """Import a config entry from YAML configuration."""
        name = import_config[CONF_NAME]

        await self.async_set_unique_id(name.lower().replace(" ", "_"))
        self._abort_if_unique_id_configured()

        options = {key: import_config.get(key, value) for key, value in SETTINGS_DEFAULTS.items()}
        options[CONF_LOCATIONS] = import_config[CONF_LOCATIONS]

        return self.async_create_entry(title=name, data={CONF_NAME: name}, options=options)

    @staticmethod
    @callback
    def async_get_options_flow(
        config_entry: config_entries.ConfigEntry,
    ) -> WifiHeatmapOptionsFlow:
        """Get the options flow for this handler."""
        return WifiHeatmapOptionsFlow()


class WifiHeatmapOptionsFlow(config_entries.OptionsFlow):
    """Handle options flow for WiFi Heatmap."""

    def __init__(self) -> None:
        """Initialize options flow."""
        self._settings: dict[str, Any] = {}

    async def async_step_init(self, user_input: dict[str, Any] | None = None) -> ConfigFlowResult:
        """Manage the options - map settings."""
        if user_input is not None:
            self._settings = user_input
            return await self.async_step_locations()

        return self.async_show_form(
            step_id="init",
            data_schema=vol.Schema(settings_fields(self.config_entry.options)),
        )

    async def async_step_locations(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        """Handle location options."""
        errors: dict[str, str] = {}

        if user_input is not None:
            try:
                if CONF_LOCATIONS in user_input:
                    locations = validate_locations_json(user_input[CONF_LOCATIONS])
                else:
                    locations = self.config_entry.options[CONF_LOCATIONS]

                return self.async_create_entry(
                    title="", data={**self._settings, CONF_LOCATIONS: locations}
                )

            except vol.Invalid as err:
                errors["base"] = str(err)

        current_locations = json.dumps(self.config_entry.options.get(CONF_LOCATIONS, []), indent=2)

        return self.async_show_form(
            step_id="locations",
            data_schema=vol.Schema(
                {vol.Optional(CONF_LOCATIONS, default=current_locations): cv.string}
            ),
            errors=errors,
            description_placeholders={
                "info": "Edit the JSON below to change locations. Leave unchanged to keep them.",
            },
        )
