"""Test the WiFi Heatmap coordinator."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, Mock

import pytest

# Try to import homeassistant, skip all tests if not available
try:
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.update_coordinator import UpdateFailed
    from custom_components.wifi_heatmap.const import (
        CONF_GRID_RESOLUTION,
        CONF_IDW_POWER,
        CONF_IMAGE_HEIGHT,
        CONF_IMAGE_WIDTH,
        CONF_LOCATIONS,
        CONF_SHOW_LOCATION_NAMES,
        CONF_SHOW_SIGNAL_VALUES,
        CONF_SMOOTHING_KERNEL,
        CONF_UPDATE_INTERVAL,
        DOMAIN,
    )
    from custom_components.wifi_heatmap.coordinator import WifiHeatmapCoordinator
    from custom_components.wifi_heatmap.heatmap.coordinates import CoordinateAssignment
    from custom_components.wifi_heatmap.heatmap.storage import MemoryMappingStore
    from custom_components.wifi_heatmap.heatmap.types import Coordinate, Sample

    HA_AVAILABLE = True
except ImportError:
    HA_AVAILABLE = False
    # Define dummy values to allow module import
    CONF_GRID_RESOLUTION = None
    CONF_IDW_POWER = None
    CONF_IMAGE_HEIGHT = None
    CONF_IMAGE_WIDTH = None
    CONF_LOCATIONS = None
    CONF_SHOW_LOCATION_NAMES = None
    CONF_SHOW_SIGNAL_VALUES = None
    CONF_SMOOTHING_KERNEL = None
    CONF_UPDATE_INTERVAL = None
    DOMAIN = None

pytestmark = [
    pytest.mark.skipif(not HA_AVAILABLE, reason="Home Assistant not installed"),
]

LAST_UPDATED = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def mock_hass():
    """Create a mock HomeAssistant instance."""
    hass = Mock(spec=HomeAssistant)
    hass.data = {}
    hass.states = Mock()
    hass.async_add_executor_job = AsyncMock()
    return hass


def _options(**overrides):
    options = {
        CONF_UPDATE_INTERVAL: 5,
        CONF_GRID_RESOLUTION: 20,
        CONF_IDW_POWER: 2.0,
        CONF_SMOOTHING_KERNEL: 3,
        CONF_IMAGE_WIDTH: 100,
        CONF_IMAGE_HEIGHT: 80,
        CONF_SHOW_LOCATION_NAMES: True,
        CONF_SHOW_SIGNAL_VALUES: True,
        CONF_LOCATIONS: [
            {"entity": "sensor.kitchen_wifi_signal", "name": "Kitchen"},
            {"entity": "sensor.office_wifi_signal", "name": "Office", "x": 0.8, "y": 0.2},
        ],
    }
    options.update(overrides)
    return options


@pytest.fixture
def config_entry():
    """Create a config entry for testing."""
    entry = Mock()
    entry.entry_id = "test_entry"
    entry.data = {"name": "Test Map"}
    entry.options = _options()
    return entry


@pytest.fixture
def assignment():
    return CoordinateAssignment(MemoryMappingStore())


def _state(value):
    state = Mock()
    state.state = value
    state.last_updated = LAST_UPDATED
    return state


def test_coordinator_initialization(mock_hass, config_entry, assignment):
    """Test coordinator initialization."""
    coordinator = WifiHeatmapCoordinator(mock_hass, config_entry, assignment)

    assert coordinator.name == f"{DOMAIN}_Test Map"
    assert coordinator.update_interval == timedelta(minutes=5)
    assert coordinator.config_entry is config_entry
    assert coordinator.assignment is assignment
    assert coordinator.location_names == ["Kitchen", "Office"]


async def test_coordinator_handles_update_interval_change(mock_hass, config_entry, assignment):
    """Test that coordinator handles update interval changes."""
    coordinator = WifiHeatmapCoordinator(mock_hass, config_entry, assignment)
    coordinator.async_request_refresh = AsyncMock()

    updated_entry = Mock()
    updated_entry.options = _options(**{CONF_UPDATE_INTERVAL: 30})

    await coordinator.async_config_entry_updated(mock_hass, updated_entry)

    assert coordinator.update_interval == timedelta(minutes=30)
    coordinator.async_request_refresh.assert_called_once()


async def test_coordinator_update_data_with_valid_sensors(mock_hass, config_entry, assignment):
    """Test coordinator reading signal sensors and rendering."""
    coordinator = WifiHeatmapCoordinator(mock_hass, config_entry, assignment)

    mock_hass.states.get.side_effect = lambda entity_id: {
        "sensor.kitchen_wifi_signal": _state("-55"),
        "sensor.office_wifi_signal": _state("-61.5"),
    }[entity_id]

    rendered = [{"name": "Kitchen", "x": 10.0, "y": 20.0, "rssi": -55, "signal": "Good"}]
    mock_hass.async_add_executor_job.return_value = (b"fake_png_data", rendered)

    result = await coordinator._async_update_data()

    assert result == b"fake_png_data"
    assert coordinator.rendered_locations == rendered

    render, samples = mock_hass.async_add_executor_job.call_args.args
    assert render == coordinator._render_heatmap
    assert samples == [
        Sample(location_name="Kitchen", rssi=-55, timestamp=LAST_UPDATED),
        Sample(location_name="Office", rssi=-62, timestamp=LAST_UPDATED),
    ]


@pytest.mark.parametrize("state", [None, _state("unavailable"), _state("unknown"), _state("n/a")])
async def test_coordinator_skips_unusable_sensors(mock_hass, config_entry, assignment, state):
    """Test missing, unavailable and non-numeric sensors are skipped."""
    coordinator = WifiHeatmapCoordinator(mock_hass, config_entry, assignment)

    mock_hass.states.get.return_value = state
    mock_hass.async_add_executor_job.return_value = (b"fake_png_data", [])

    result = await coordinator._async_update_data()

    # Still renders, using the default signal everywhere
    assert result == b"fake_png_data"
    assert mock_hass.async_add_executor_job.call_args.args[1] == []


async def test_coordinator_render_failure(mock_hass, config_entry, assignment):
    """Test rendering errors surface as UpdateFailed."""
    coordinator = WifiHeatmapCoordinator(mock_hass, config_entry, assignment)

    mock_hass.states.get.return_value = _state("-50")
    mock_hass.async_add_executor_job.side_effect = OSError("boom")

    with pytest.raises(UpdateFailed):
        await coordinator._async_update_data()


def test_render_heatmap_assigns_coordinates(mock_hass, config_entry, assignment):
    """Test rendering pins configured positions and lays out the rest."""
    coordinator = WifiHeatmapCoordinator(mock_hass, config_entry, assignment)

    image_bytes, locations = coordinator._render_heatmap(
        [Sample("Kitchen", -45), Sample("Office", -75)]
    )

    assert image_bytes.startswith(b"\x89PNG")
    assert assignment.coordinate_for("Office") == Coordinate(0.8, 0.2)
    # Kitchen takes its own cell of the layout over all locations
    assert assignment.coordinate_for("Kitchen") == Coordinate(0.25, 0.5)
    assert [location["name"] for location in locations] == ["Kitchen", "Office"]
    assert locations[1]["x"] == 80.0
    assert locations[1]["y"] == 16.0


def test_render_heatmap_keeps_manual_positions(mock_hass, config_entry, assignment):
    """Test a manually moved location is not laid out again."""
    assignment.set_coordinate("Kitchen", Coordinate(0.1, 0.9))
    coordinator = WifiHeatmapCoordinator(mock_hass, config_entry, assignment)

    coordinator._render_heatmap([Sample("Kitchen", -45)])

    assert assignment.coordinate_for("Kitchen") == Coordinate(0.1, 0.9)


def test_render_heatmap_restores_pinned_positions(mock_hass, config_entry, assignment):
    """Test configured positions win over stored ones."""
    assignment.set_coordinate("Office", Coordinate(0.3, 0.3))
    coordinator = WifiHeatmapCoordinator(mock_hass, config_entry, assignment)

    coordinator._render_heatmap([])

    assert assignment.coordinate_for("Office") == Coordinate(0.8, 0.2)


def test_render_heatmap_added_location_does_not_overlap(mock_hass, config_entry, assignment):
    """Test a location added after the first render gets its own position."""
    config_entry.options = _options(
        **{CONF_LOCATIONS: [{"entity": "sensor.kitchen_wifi_signal", "name": "Kitchen"}]}
    )
    coordinator = WifiHeatmapCoordinator(mock_hass, config_entry, assignment)
    coordinator._render_heatmap([Sample("Kitchen", -45)])
    assert assignment.coordinate_for("Kitchen") == Coordinate(0.5, 0.5)

    config_entry.options = _options(
        **{
            CONF_LOCATIONS: [
                {"entity": "sensor.kitchen_wifi_signal", "name": "Kitchen"},
                {"entity": "sensor.hall_wifi_signal", "name": "Hall"},
            ]
        }
    )
    coordinator._render_heatmap([Sample("Kitchen", -45), Sample("Hall", -80)])

    assert assignment.coordinate_for("Kitchen") == Coordinate(0.5, 0.5)
    assert assignment.coordinate_for("Hall") == Coordinate(0.75, 0.5)


def test_render_heatmap_avoids_pinned_position(mock_hass, config_entry, assignment):
    """Test an unpinned location never lands on a pinned one."""
    config_entry.options = _options(
        **{
            CONF_LOCATIONS: [
                {"entity": "sensor.kitchen_wifi_signal", "name": "Kitchen"},
                {"entity": "sensor.office_wifi_signal", "name": "Office", "x": 0.25, "y": 0.5},
            ]
        }
    )
    coordinator = WifiHeatmapCoordinator(mock_hass, config_entry, assignment)

    coordinator._render_heatmap([])

    assert assignment.coordinate_for("Office") == Coordinate(0.25, 0.5)
    assert assignment.coordinate_for("Kitchen") == Coordinate(0.75, 0.5)


def test_coordinator_pinned_names(mock_hass, config_entry, assignment):
    """Test locations with configured x/y are reported as pinned."""
    coordinator = WifiHeatmapCoordinator(mock_hass, config_entry, assignment)

    assert coordinator.pinned_names == ["Office"]


async def test_coordinator_forgets_removed_locations(mock_hass, config_entry, assignment):
    """Test coordinates of locations dropped from the options are removed."""
    coordinator = WifiHeatmapCoordinator(mock_hass, config_entry, assignment)
    coordinator.async_request_refresh = AsyncMock()
    coordinator._last_locations = config_entry.options[CONF_LOCATIONS]

    updated_entry = Mock()
    updated_entry.options = _options(
        **{CONF_LOCATIONS: [{"entity": "sensor.kitchen_wifi_signal", "name": "Kitchen"}]}
    )

    await coordinator.async_config_entry_updated(mock_hass, updated_entry)

    mock_hass.async_add_executor_job.assert_called_once_with(
        assignment.remove_coordinates, ["Office"]
    )
    coordinator.async_request_refresh.assert_called_once()


async def test_coordinator_keeps_coordinates_when_locations_unchanged(
    mock_hass, config_entry, assignment
):
    """Test no coordinates are removed when the same locations remain."""
    coordinator = WifiHeatmapCoordinator(mock_hass, config_entry, assignment)
    coordinator.async_request_refresh = AsyncMock()
    coordinator._last_locations = config_entry.options[CONF_LOCATIONS]

    updated_entry = Mock()
    updated_entry.options = _options(**{CONF_UPDATE_INTERVAL: 10})

    await coordinator.async_config_entry_updated(mock_hass, updated_entry)

    mock_hass.async_add_executor_job.assert_not_called()
