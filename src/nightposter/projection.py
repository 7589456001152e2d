"""Azimuthal-equidistant projection of the visible hemisphere onto the canvas."""

import math

from nightposter.models import ProjectedPoint

ALTITUDE_RINGS: tuple[float, ...] = (15.0, 30.0, 45.0, 60.0, 75.0)
CARDINAL_AZIMUTHS: tuple[tuple[str, float], ...] = (
    ("n", 0.0),
    ("e", 90.0),
    ("s", 180.0),
    ("w", 270.0),
)


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def altitude_ring_radius(alt_deg: float, radius: float) -> float:
    """Distance from the zenith (center) for a given altitude."""
    return radius * (90.0 - alt_deg) / 90.0


def project(
    az_deg: float, alt_deg: float, cx: float, cy: float, radius: float
) -> ProjectedPoint:
    """Project azimuth/altitude onto canvas pixels.

    Zenith maps to (cx, cy), the horizon to the circle of `radius`.
    Azimuth 0 points up (north) and increases clockwise (east), with
    canvas y pointing down.
    """
    r = altitude_ring_radius(alt_deg, radius)
    a = math.radians(az_deg)
    return ProjectedPoint(x=cx + r * math.sin(a), y=cy - r * math.cos(a))


def star_radius(magnitude: float) -> float:
    """Map visual magnitude to a dot radius in logical pixels."""
    t = _clamp((2.5 - magnitude) / 4.5, 0.0, 1.0)
    return 0.6 + t * 2.6


def star_opacity(magnitude: float) -> float:
    """Dimmer stars are more transparent."""
    return _clamp((3.0 - magnitude) / 5.5, 0.15, 1.0)
