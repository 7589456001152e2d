"""Seeded procedural decoration: synthetic sky plus the globe grid.

Everything here is generated in the map's logical (unscaled) space so the
same seed yields the same sky at every output resolution.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable

import numpy as np

Point = tuple[float, float]
Rand = Callable[[], float]

_MASK32 = 0xFFFFFFFF

GRID_OPACITY_MIN = 0.05
GRID_OPACITY_MAX = 0.60


def _imul(a: int, b: int) -> int:
    """32-bit integer multiply, result as unsigned."""
    return (a * b) & _MASK32


def mulberry32(seed: int) -> Rand:
    """Return a deterministic generator of floats in [0, 1) for a 32-bit seed."""
    state = seed & _MASK32

    def rand() -> float:
        nonlocal state
        state = (state + 0x6D2B79F5) & _MASK32
        t = state
        r = _imul(t ^ (t >> 15), 1 | t)
        r ^= (r + _imul(r ^ (r >> 7), 61 | r)) & _MASK32
        return ((r ^ (r >> 14)) & _MASK32) / 4294967296

    return rand


def hash32(text: str) -> int:
    """FNV-1a over UTF-16 code units."""
    h = 0x811C9DC5
    data = text.encode("utf-16-le")
    for i in range(0, len(data), 2):
        h ^= data[i] | (data[i + 1] << 8)
        h = _imul(h, 0x01000193)
    return h


def seed_from_key(coords: str, date: str, time: str) -> int:
    """Stable seed for a location/date/time so the same poster gets the same sky."""
    return hash32(f"{coords.strip()}|{date.strip()}|{time.strip()}")


# --- Synthetic starfield and constellations ---


@dataclass(frozen=True)
class FieldStar:
    x: float
    y: float
    r: float
    alpha: float


def generate_starfield(
    rand: Rand, width: float, height: float
) -> tuple[FieldStar, ...]:
    """Uniform random stars over the box, ~8% of them big and bright."""
    n = math.floor(680 + rand() * 80)
    stars: list[FieldStar] = []
    for _ in range(n):
        x = rand() * width
        y = rand() * height
        big = rand() > 0.92
        r = (1.5 + rand() * 1.8) if big else (rand() * 1.2)
        alpha = (0.75 + rand() * 0.25) if big else (0.35 + rand() * 0.55)
        stars.append(FieldStar(x=x, y=y, r=r, alpha=alpha))
    return tuple(stars)


def generate_constellations(
    rand: Rand, width: float, height: float, count: int = 6, margin: float = 36.0
) -> tuple[tuple[Point, ...], ...]:
    """Random polygonal figures.

    Vertices are sorted by angle so the path never self-crosses.
    """
    min_x, max_x = margin, width - margin
    min_y, max_y = margin, height - margin
    shapes: list[tuple[Point, ...]] = []

    for _ in range(count):
        cx = min_x + rand() * (max_x - min_x)
        cy = min_y + rand() * (max_y - min_y)
        n_points = 4 + math.floor(rand() * 4)
        rx = 40 + rand() * 110
        ry = 40 + rand() * 110

        pts: list[Point] = []
        for _ in range(n_points):
            a = rand() * math.pi * 2
            r1 = 0.35 + rand() * 0.75
            x = min(max_x, max(min_x, cx + math.cos(a) * rx * r1))
            y = min(max_y, max(min_y, cy + math.sin(a) * ry * r1))
            pts.append((x, y))

        mx = sum(p[0] for p in pts) / len(pts)
        my = sum(p[1] for p in pts) / len(pts)
        pts.sort(key=lambda p: math.atan2(p[1] - my, p[0] - mx))
        shapes.append(tuple(pts))

    return tuple(shapes)


# --- Globe grid ---

_TILT_RAD = math.radians(24.0)
_GRID_LATS_DEG = (-60, -40, -20, 0, 20, 40, 60)
_LON_STEPS = 240
_LAT_STEPS = 260

_ALPHA_FRONT = 0.70
_ALPHA_BACK = 0.18
_WIDTH_FRONT = 1.35
_WIDTH_BACK = 1.00
_RIM_ALPHA = 0.14
RIM_WIDTH = 1.1


@dataclass(frozen=True)
class GridLine:
    points: tuple[Point, ...]
    alpha: float
    line_width: float


@dataclass(frozen=True)
class GlobeGrid:
    lines: tuple[GridLine, ...]
    rim_alpha: float


def _meridian_lons_deg() -> list[float]:
    base = list(range(-75, 76, 15)) + [-90, 90]
    lons: list[float] = []
    for b in base:
        lons.extend((b, b + 180))
    return lons


def _project_sphere(
    lat: np.ndarray, lon: np.ndarray, cx: float, cy: float, radius: float
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Unit sphere tilted about the x axis; returns screen x, y and depth z."""
    x = np.cos(lat) * np.cos(lon)
    y = np.sin(lat)
    z = np.cos(lat) * np.sin(lon)
    sin_t, cos_t = math.sin(_TILT_RAD), math.cos(_TILT_RAD)
    y2 = y * cos_t - z * sin_t
    z2 = y * sin_t + z * cos_t
    return cx + x * radius, cy - y2 * radius, z2


def _runs(mask: np.ndarray, closed: bool) -> list[np.ndarray]:
    """Index arrays of contiguous True runs.

    On a closed ring the last and first runs are joined.
    """
    idx = np.flatnonzero(mask)
    if idx.size == 0:
        return []
    breaks = np.flatnonzero(np.diff(idx) > 1) + 1
    runs = np.split(idx, breaks)
    if closed and len(runs) > 1 and runs[0][0] == 0 and runs[-1][-1] == mask.size - 1:
        runs[0] = np.concatenate((runs[-1], runs[0]))
        runs.pop()
    return runs


def is_degenerate_line(points: np.ndarray) -> bool:
    """True for near-flat horizontal runs produced by camera-tangent projections.

    Args:
        points: (n, 2) array of screen coordinates.
    """
    if len(points) < 6:
        return False

    xs, ys = points[:, 0], points[:, 1]
    x_range = float(xs.max() - xs.min())
    y_range = float(ys.max() - ys.min())

    ax, ay = points[0]
    bx, by = points[-1]
    dx = bx - ax
    dy = by - ay

    if abs(dx) < 1.0 and abs(dy) > 22:
        return False

    if y_range < 1.6 and x_range > 18:
        return True

    if abs(dy) < 1.0 and abs(dx) > 30:
        denom = math.hypot(dx, dy) or 1.0
        inner = points[1:-1]
        dev = np.abs(dy * inner[:, 0] - dx * inner[:, 1] + bx * ay - by * ax) / denom
        if float(dev.max()) < 1.2:
            return True

    return False


def _split_and_filter(
    sx: np.ndarray,
    sy: np.ndarray,
    z: np.ndarray,
    closed: bool,
    alpha_front: float,
    alpha_back: float,
) -> list[GridLine]:
    lines: list[GridLine] = []
    # back first so the near hemisphere paints over it
    for mask, alpha, width in (
        (z < 0, alpha_back, _WIDTH_BACK),
        (z >= 0, alpha_front, _WIDTH_FRONT),
    ):
        for run in _runs(mask, closed):
            if run.size < 2:
                continue
            pts = np.column_stack((sx[run], sy[run]))
            if is_degenerate_line(pts):
                continue
            lines.append(
                GridLine(
                    points=tuple((float(x), float(y)) for x, y in pts),
                    alpha=alpha,
                    line_width=width,
                )
            )
    return lines


def clamp_grid_opacity(value: float) -> float:
    return min(GRID_OPACITY_MAX, max(GRID_OPACITY_MIN, float(value)))


def globe_grid(cx: float, cy: float, radius: float, opacity_mul: float) -> GlobeGrid:
    """Parallels and meridians of a tilted globe, split into front and back faces.

    Args:
        cx: Globe center x.
        cy: Globe center y.
        radius: Globe radius.
        opacity_mul: User opacity multiplier, clamped to [0.05, 0.60].

    Returns:
        GlobeGrid with visible line runs and the rim alpha.
    """
    mul = clamp_grid_opacity(opacity_mul)
    alpha_front = min(1.0, _ALPHA_FRONT * mul)
    alpha_back = min(1.0, _ALPHA_BACK * mul)
    lines: list[GridLine] = []

    lon = np.linspace(0.0, 2 * math.pi, _LON_STEPS + 1)
    for lat_deg in _GRID_LATS_DEG:
        lat = np.full_like(lon, math.radians(lat_deg))
        sx, sy, z = _project_sphere(lat, lon, cx, cy, radius)
        lines.extend(_split_and_filter(sx, sy, z, True, alpha_front, alpha_back))

    lat = np.radians(np.linspace(-90.0, 90.0, _LAT_STEPS + 1))
    for lon_deg in _meridian_lons_deg():
        lon_arr = np.full_like(lat, math.fmod(math.radians(lon_deg), 2 * math.pi))
        sx, sy, z = _project_sphere(lat, lon_arr, cx, cy, radius)
        lines.extend(_split_and_filter(sx, sy, z, False, alpha_front, alpha_back))

    return GlobeGrid(lines=tuple(lines), rim_alpha=min(1.0, _RIM_ALPHA * mul))
