"""Inverse distance weighted RSSI interpolation for the WiFi heatmap."""
from __future__ import annotations

import math
from collections.abc import Sequence

from .types import Coordinate, Grid, HeatMapPoint

# Returned whenever there is nothing to interpolate from. Doubles as a
# legitimate "poor signal" reading.
DEFAULT_RSSI = -90

# Normalized distance below which a query snaps to the sample value
SNAP_DISTANCE = 0.01

# Number of nearest samples used for confidence estimation
CONFIDENCE_NEIGHBOURS = 5


def round_half_away_from_zero(value: float) -> int:
    """Round to the nearest integer, ties going away from zero."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def interpolate_rssi(
    point: Coordinate,
    samples: Sequence[HeatMapPoint],
    power: float = 2.0,
    max_distance: float = 2.0,
) -> int:
    """
    Estimate the RSSI at a point using Inverse Distance Weighting.

    Args:
        point: Coordinate to estimate the signal at
        samples: Measured points with their coordinates
        power: IDW power parameter
        max_distance: Samples this far away or further get no weight

    Returns:
        Estimated RSSI in dBm. A sample closer than SNAP_DISTANCE wins outright.
        When no sample lies within max_distance the nearest one is used.
    """
    if not samples:
        return DEFAULT_RSSI

    weighted_sum = 0.0
    total_weight = 0.0

    for sample in samples:
        distance = point.distance_to(sample.coordinate)

        if distance < SNAP_DISTANCE:
            return sample.rssi

        if distance >= max_distance:
            continue

        weight = 1.0 / distance**power
        weighted_sum += sample.rssi * weight
        total_weight += weight

    if total_weight == 0:
        nearest = min(samples, key=lambda s: point.distance_to(s.coordinate))
        return nearest.rssi

    return round_half_away_from_zero(weighted_sum / total_weight)


def interpolate_with_confidence(
    point: Coordinate,
    samples: Sequence[HeatMapPoint],
    power: float = 2.0,
) -> tuple[int, float]:
    """
    Estimate the RSSI at a point together with a distance based confidence.

    Only the nearest CONFIDENCE_NEIGHBOURS samples are considered. Confidence
    is 1 / (1 + d) where d is the distance to the farthest of them, so it
    approaches 1 as the supporting samples get closer.

    Args:
        point: Coordinate to estimate the signal at
        samples: Measured points with their coordinates
        power: IDW power parameter

    Returns:
        Tuple of (rssi, confidence). Without samples this is (DEFAULT_RSSI, 0.0).
    """
    if not samples:
        return DEFAULT_RSSI, 0.0

    nearest = sorted(samples, key=lambda s: point.distance_to(s.coordinate))
    nearest = nearest[:CONFIDENCE_NEIGHBOURS]
    max_dist = max(point.distance_to(s.coordinate) for s in nearest)

    confidence = 1.0 / (1.0 + max_dist)
    rssi = interpolate_rssi(point, nearest, power=power, max_distance=max_dist * 2)

    return rssi, confidence


def generate_heat_map_grid(
    samples: Sequence[HeatMapPoint],
    width: int,
    height: int,
    power: float = 2.0,
) -> Grid:
    """
    Estimate the RSSI at the centre of every cell of a width x height grid.

    Args:
        samples: Measured points with their coordinates
        width: Number of columns
        height: Number of rows
        power: IDW power parameter

    Returns:
        Grid indexed as grid[row][col]; filled with DEFAULT_RSSI when there
        are no samples.
    """
    if not samples:
        return [[DEFAULT_RSSI for _ in range(width)] for _ in range(height)]

    grid: Grid = []
    for row in range(height):
        y = (row + 0.5) / height
        grid.append(
            [
                interpolate_rssi(Coordinate(x=(col + 0.5) / width, y=y), samples, power=power)
                for col in range(width)
            ]
        )

    return grid
