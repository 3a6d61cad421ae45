"""Signal strength classification and colors for the WiFi heatmap."""
from __future__ import annotations

from enum import Enum


class SignalStrength(Enum):
    """Quality bands of an RSSI reading."""

    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    WEAK = "Weak"
    POOR = "Poor"
    UNUSABLE = "Unusable"

    @classmethod
    def from_rssi(cls, rssi: int) -> SignalStrength:
        """
        Classify an RSSI value.

        Args:
            rssi: Signal strength in dBm

        Returns:
            Band the value falls into; anything outside -90..0 is unusable
        """
        if -50 <= rssi <= 0:
            return cls.EXCELLENT
        if -60 <= rssi < -50:
            return cls.GOOD
        if -70 <= rssi < -60:
            return cls.FAIR
        if -80 <= rssi < -70:
            return cls.WEAK
        if -90 <= rssi < -80:
            return cls.POOR
        return cls.UNUSABLE

    @property
    def color(self) -> tuple[int, int, int]:
        return _COLORS[self]

    @property
    def percentage(self) -> float:
        return _PERCENTAGES[self]


_COLORS: dict[SignalStrength, tuple[int, int, int]] = {
    SignalStrength.EXCELLENT: (52, 199, 89),  # green
    SignalStrength.GOOD: (128, 204, 0),  # lime
    SignalStrength.FAIR: (255, 204, 0),  # yellow
    SignalStrength.WEAK: (255, 149, 0),  # orange
    SignalStrength.POOR: (255, 102, 0),  # red-orange
    SignalStrength.UNUSABLE: (255, 59, 48),  # red
}

_PERCENTAGES: dict[SignalStrength, float] = {
    SignalStrength.EXCELLENT: 1.0,
    SignalStrength.GOOD: 0.83,
    SignalStrength.FAIR: 0.66,
    SignalStrength.WEAK: 0.5,
    SignalStrength.POOR: 0.33,
    SignalStrength.UNUSABLE: 0.16,
}


def rssi_to_color(rssi: int, opacity: float = 0.6) -> tuple[int, int, int, int]:
    """
    Convert an RSSI value to an RGBA color tuple.

    Args:
        rssi: Signal strength in dBm
        opacity: Alpha between 0 and 1

    Returns:
        RGBA color tuple like (52, 199, 89, 153)
    """
    red, green, blue = SignalStrength.from_rssi(rssi).color
    alpha = round(255 * max(0.0, min(1.0, opacity)))
    return (red, green, blue, alpha)
