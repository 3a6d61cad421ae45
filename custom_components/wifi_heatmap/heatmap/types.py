"""Type definitions for the WiFi heatmap algorithms."""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime

LocationName = str

# [row][col] = estimated RSSI in dBm
Grid = list[list[int]]


@dataclass(frozen=True)
class Coordinate:
    """Normalized position of a location on the canvas.

    x and y are fractions of the canvas width and height. z is optional and
    only takes part in distance calculations.
    """
    x: float
    y: float
    z: float | None = None

    def distance_to(self, other: Coordinate) -> float:
        """Euclidean distance, treating a missing z as 0."""
        dx = self.x - other.x
        dy = self.y - other.y
        dz = (self.z or 0.0) - (other.z or 0.0)
        return math.sqrt(dx * dx + dy * dy + dz * dz)

    def to_canvas(self, width: float, height: float) -> tuple[float, float]:
        """Map to pixel space of a canvas with the given size."""
        return (self.x * width, self.y * height)

    @classmethod
    def from_canvas(cls, x: float, y: float, width: float, height: float) -> Coordinate:
        """Normalize a pixel position on a canvas with the given size."""
        return cls(x=x / width, y=y / height)


@dataclass
class Sample:
    """Signal reading taken at a named location."""
    location_name: LocationName
    rssi: int
    timestamp: datetime | None = None


@dataclass
class HeatMapPoint:
    """Signal reading joined with the coordinate of its location."""
    coordinate: Coordinate
    rssi: int
    location_name: LocationName | None = None
