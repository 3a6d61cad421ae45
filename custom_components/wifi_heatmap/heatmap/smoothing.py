"""Gaussian smoothing of RSSI grids."""
from __future__ import annotations

import math

from .interpolation import round_half_away_from_zero
from .types import Grid


def gaussian_kernel(size: int, sigma: float) -> list[list[float]]:
    """
    Build an unnormalized size x size Gaussian kernel.

    Args:
        size: Kernel width and height
        sigma: Standard deviation in cells

    Returns:
        Kernel weights, 1.0 at the centre cell
    """
    center = size // 2
    return [
        [
            math.exp(-((i - center) ** 2 + (j - center) ** 2) / (2.0 * sigma * sigma))
            for j in range(size)
        ]
        for i in range(size)
    ]


def apply_gaussian_smoothing(grid: Grid, kernel_size: int = 3) -> Grid:
    """
    Smooth a grid with a Gaussian kernel.

    Cells near the edges are normalized by the weights of the in-bounds
    neighbours only, so a uniform grid stays uniform.

    Args:
        grid: Grid to smooth
        kernel_size: Kernel width and height in cells; 0 or less disables smoothing

    Returns:
        New smoothed grid, or the input grid when there is nothing to do
    """
    if not grid or kernel_size <= 0:
        return grid

    height = len(grid)
    width = len(grid[0])
    kernel = gaussian_kernel(kernel_size, sigma=kernel_size / 3.0)
    offset = kernel_size // 2

    smoothed: Grid = []
    for row in range(height):
        row_data = []
        for col in range(width):
            total = 0.0
            weight_sum = 0.0

            for kr in range(kernel_size):
                r = row + kr - offset
                if r < 0 or r >= height:
                    continue
                for kc in range(kernel_size):
                    c = col + kc - offset
                    if 0 <= c < width:
                        total += grid[r][c] * kernel[kr][kc]
                        weight_sum += kernel[kr][kc]

            row_data.append(round_half_away_from_zero(total / weight_sum))
        smoothed.append(row_data)

    return smoothed
