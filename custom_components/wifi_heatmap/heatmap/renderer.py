"""Image rendering for the WiFi heatmap using Pillow."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from io import BytesIO
from typing import Any

from PIL import Image, ImageDraw, ImageFont

from .signal import SignalStrength, rssi_to_color
from .types import Grid, HeatMapPoint

_LOGGER = logging.getLogger(__name__)

MARKER_RADIUS = 6
HEATMAP_OPACITY = 0.6


def _cell_bounds(index: int, count: int, size: int) -> tuple[int, int]:
    """Pixel span [start, end] of a grid cell so that cells tile without gaps."""
    start = round(index * size / count)
    end = round((index + 1) * size / count) - 1
    return start, max(start, end)


def _load_font() -> ImageFont.ImageFont | ImageFont.FreeTypeFont:
    try:
        return ImageFont.truetype("/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf", 12)
    except OSError:
        _LOGGER.debug("DejaVu font not found, using default font")
        return ImageFont.load_default()


def render_heatmap_image(
    grid: Grid,
    points: Sequence[HeatMapPoint],
    width: int = 500,
    height: int = 500,
    show_names: bool = True,
    show_values: bool = True,
) -> tuple[bytes, list[dict[str, Any]]]:
    """
    Render an RSSI grid and its measured locations to a PNG image.

    Args:
        grid: RSSI grid indexed as grid[row][col]
        points: Measured locations to mark on the map
        width: Image width in pixels
        height: Image height in pixels
        show_names: Whether to label markers with the location name
        show_values: Whether to label markers with the measured RSSI

    Returns:
        Tuple of (PNG image as bytes, rendered locations in pixel coordinates)
    """
    _LOGGER.debug(
        "Rendering WiFi heatmap: %dx%d pixels, %dx%d grid, %d locations",
        width,
        height,
        len(grid[0]) if grid else 0,
        len(grid),
        len(points),
    )

    img = Image.new("RGBA", (width, height), (255, 255, 255, 0))
    draw = ImageDraw.Draw(img)

    if grid and grid[0]:
        rows = len(grid)
        cols = len(grid[0])
        for row, row_data in enumerate(grid):
            y0, y1 = _cell_bounds(row, rows, height)
            for col, rssi in enumerate(row_data):
                x0, x1 = _cell_bounds(col, cols, width)
                draw.rectangle([x0, y0, x1, y1], fill=rssi_to_color(rssi, HEATMAP_OPACITY))
    else:
        _LOGGER.debug("Empty grid, rendering location markers only")

    font = _load_font() if (show_names or show_values) else None

    rendered_locations = []
    for point in points:
        x, y = point.coordinate.to_canvas(width, height)

        draw.ellipse(
            [x - MARKER_RADIUS, y - MARKER_RADIUS, x + MARKER_RADIUS, y + MARKER_RADIUS],
            fill=(255, 255, 255, 255),
            outline=(51, 51, 51, 255),
            width=2,
        )

        labels = []
        if show_names and point.location_name:
            labels.append(point.location_name)
        if show_values:
            labels.append(f"{point.rssi} dBm")

        if labels and font is not None:
            label_text = "\n".join(labels)
            bbox = draw.textbbox((0, 0), label_text, font=font, align="center")
            text_width = bbox[2] - bbox[0]
            text_height = bbox[3] - bbox[1]

            # Label sits above the marker
            draw.text(
                (x - text_width / 2, y - MARKER_RADIUS - 5 - text_height),
                label_text,
                fill=(51, 51, 51, 255),
                font=font,
                align="center",
            )

        rendered_locations.append(
            {
                "name": point.location_name,
                "x": x,
                "y": y,
                "rssi": point.rssi,
                "signal": SignalStrength.from_rssi(point.rssi).value,
            }
        )

    buffer = BytesIO()
    img.save(buffer, format="PNG")
    image_bytes = buffer.getvalue()
    _LOGGER.debug("Image rendering complete: %d bytes", len(image_bytes))

    return image_bytes, rendered_locations
