"""Location to coordinate assignment for the WiFi heatmap."""
from __future__ import annotations

import json
import logging
import math
import threading
from collections.abc import Iterable, Sequence

import voluptuous as vol

from .storage import MappingStore
from .types import Coordinate, HeatMapPoint, LocationName, Sample

_LOGGER = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "location_coordinate_mapping"

COORDINATE_SCHEMA = vol.Schema(
    {
        vol.Required("x"): vol.Coerce(float),
        vol.Required("y"): vol.Coerce(float),
        vol.Optional("z"): vol.Any(None, vol.Coerce(float)),
    }
)

MAPPING_SCHEMA = vol.Schema({str: COORDINATE_SCHEMA})


def generate_grid_layout(names: Sequence[LocationName]) -> dict[LocationName, Coordinate]:
    """
    Lay out location names on a near-square grid of the unit canvas.

    Names are placed row by row in the given order, each one centred in its
    own cell, so distinct names never share a coordinate.

    Args:
        names: Location names in placement order

    Returns:
        Mapping of each name to its cell centre
    """
    count = len(names)
    if count == 0:
        return {}

    cols = math.ceil(math.sqrt(count))
    rows = math.ceil(count / cols)

    layout: dict[LocationName, Coordinate] = {}
    for index, name in enumerate(names):
        row, col = divmod(index, cols)
        layout[name] = Coordinate(x=(col + 0.5) / cols, y=(row + 0.5) / rows)

    return layout


def encode_mapping(mapping: dict[LocationName, Coordinate], indent: int | None = None) -> bytes:
    """Serialize a mapping to UTF-8 JSON, omitting absent z values."""
    payload = {}
    for name, coordinate in mapping.items():
        value = {"x": coordinate.x, "y": coordinate.y}
        if coordinate.z is not None:
            value["z"] = coordinate.z
        payload[name] = value

    separators = None if indent else (",", ":")
    return json.dumps(payload, indent=indent, separators=separators).encode("utf-8")


def decode_mapping(data: bytes) -> dict[LocationName, Coordinate]:
    """
    Parse and validate a serialized mapping.

    Raises:
        vol.Invalid: If the data is not valid JSON or does not match MAPPING_SCHEMA
    """
    try:
        raw = json.loads(data)
    except ValueError as err:
        raise vol.Invalid(f"Invalid JSON: {err}") from err

    validated = MAPPING_SCHEMA(raw)
    return {
        name: Coordinate(x=value["x"], y=value["y"], z=value.get("z"))
        for name, value in validated.items()
    }


class CoordinateAssignment:
    """
    Owns the mapping from location name to coordinate.

    Every mutation is written to the store before the call returns. A failed
    write is logged and the in-memory mapping stays authoritative. Safe to use
    from several threads.
    """

    def __init__(self, store: MappingStore, key: str = DEFAULT_STORAGE_KEY) -> None:
        self._store = store
        self._key = key
        self._lock = threading.RLock()
        self._mapping: dict[LocationName, Coordinate] = self._load()

    def _load(self) -> dict[LocationName, Coordinate]:
        try:
            data = self._store.get(self._key)
        except OSError as err:
            _LOGGER.warning("Failed to read coordinate mapping %s: %s", self._key, err)
            return {}

        if data is None:
            return {}

        try:
            mapping = decode_mapping(data)
        except vol.Invalid as err:
            _LOGGER.warning("Discarding invalid coordinate mapping %s: %s", self._key, err)
            return {}

        _LOGGER.debug("Loaded %d location coordinates", len(mapping))
        return mapping

    def _save(self) -> None:
        try:
            self._store.set(self._key, encode_mapping(self._mapping, indent=2))
        except (OSError, TypeError, ValueError):
            _LOGGER.exception("Failed to save coordinate mapping %s", self._key)

    def coordinate_for(self, name: LocationName) -> Coordinate | None:
        """Return the coordinate of a location, or None if it is unmapped."""
        with self._lock:
            return self._mapping.get(name)

    def set_coordinate(self, name: LocationName, coordinate: Coordinate) -> None:
        """Place a single location."""
        with self._lock:
            self._mapping[name] = coordinate
            self._save()

    def remove_coordinate(self, name: LocationName) -> None:
        """Forget the coordinate of a single location."""
        with self._lock:
            self._mapping.pop(name, None)
            self._save()

    def has_coordinates(self, names: Iterable[LocationName]) -> bool:
        """True if every name is mapped; an empty input counts as mapped."""
        with self._lock:
            return all(name in self._mapping for name in names)

    def has_any_coordinates(self) -> bool:
        with self._lock:
            return bool(self._mapping)

    def unmapped(self, names: Iterable[LocationName]) -> list[LocationName]:
        """Names without a coordinate, in input order."""
        with self._lock:
            return [name for name in names if name not in self._mapping]

    def all_mappings(self) -> dict[LocationName, Coordinate]:
        with self._lock:
            return dict(self._mapping)

    def clear_all_mappings(self) -> None:
        with self._lock:
            self._mapping.clear()
            self._save()
        _LOGGER.info("Cleared all location coordinates")

    def apply_grid_layout(self, names: Sequence[LocationName]) -> None:
        """Place names on a generated grid, overwriting their current coordinates."""
        layout = generate_grid_layout(names)
        with self._lock:
            self._mapping.update(layout)
            self._save()
        _LOGGER.info("Applied grid layout to %d locations", len(layout))

    def fill_grid_layout(self, names: Sequence[LocationName]) -> dict[LocationName, Coordinate]:
        """
        Place unmapped names on the grid layout of all names.

        Mapped names keep their coordinates. Each unmapped name takes its own
        cell of the full layout, or the first free cell when a mapped location
        already sits there.

        Returns:
            The coordinates given to previously unmapped names
        """
        layout = generate_grid_layout(names)
        with self._lock:
            missing = [name for name in names if name not in self._mapping]
            if not missing:
                return {}

            taken = set(self._mapping.values())
            placed: dict[LocationName, Coordinate] = {}
            for name in missing:
                slot = layout[name]
                if slot in taken:
                    free = next((cell for cell in layout.values() if cell not in taken), None)
                    if free is None:
                        _LOGGER.warning(
                            "No free grid cell for %s, it overlaps another location", name
                        )
                    else:
                        slot = free
                taken.add(slot)
                placed[name] = slot

            self._mapping.update(placed)
            self._save()
        _LOGGER.info("Laid out %d new locations", len(placed))
        return placed

    def remove_coordinates(self, names: Iterable[LocationName]) -> None:
        """Forget the coordinates of several locations with a single save."""
        with self._lock:
            for name in names:
                self._mapping.pop(name, None)
            self._save()

    def export_mapping(self) -> bytes:
        with self._lock:
            return encode_mapping(self._mapping)

    def import_mapping(self, data: bytes) -> None:
        """
        Replace the whole mapping with a previously exported one.

        Raises:
            vol.Invalid: If the data cannot be decoded; the current mapping is kept
        """
        mapping = decode_mapping(data)
        with self._lock:
            self._mapping = mapping
            self._save()
        _LOGGER.info("Imported %d location coordinates", len(mapping))


def join_samples(
    samples: Iterable[Sample], assignment: CoordinateAssignment
) -> list[HeatMapPoint]:
    """
    Attach coordinates to samples.

    Samples at locations without a coordinate are dropped.
    """
    mapping = assignment.all_mappings()
    points = []
    for sample in samples:
        coordinate = mapping.get(sample.location_name)
        if coordinate is None:
            _LOGGER.debug("No coordinate for %s, skipping sample", sample.location_name)
            continue
        points.append(
            HeatMapPoint(coordinate=coordinate, rssi=sample.rssi, location_name=sample.location_name)
        )
    return points
