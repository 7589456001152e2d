"""Astronomy layer: sidereal time, horizon coordinates and observer resolution.

Decorative-grade accuracy: linear GMST approximation, no precession,
nutation, refraction or leap-second handling.
"""

import logging
import math
from datetime import datetime

from pytz import timezone, utc
from timezonefinder import TimezoneFinder

from nightposter.models import (
    Catalog,
    ObserverContext,
    SkyData,
    SkyPosition,
    VisibleStar,
)

logger = logging.getLogger(__name__)

_J2000_JD = 2451545.0
_UNIX_EPOCH_JD = 2440587.5
_MS_PER_DAY = 86400000.0

_tf = TimezoneFinder()


class ObserverError(Exception):
    """Observer input could not be turned into an ObserverContext."""


def wrap_deg(deg: float) -> float:
    """Wrap an angle into [0, 360)."""
    deg = math.fmod(deg, 360.0)
    if deg < 0:
        deg += 360.0
    # fmod of a tiny negative can round back up to exactly 360
    return 0.0 if deg >= 360.0 else deg


def _wrap_rad(rad: float) -> float:
    tau = 2 * math.pi
    rad = math.fmod(rad, tau)
    if rad < 0:
        rad += tau
    return 0.0 if rad >= tau else rad


def julian_date(instant: datetime) -> float:
    """Julian Date of a timezone-aware datetime: JD = unix_ms / 86400000 + 2440587.5."""
    return instant.timestamp() * 1000.0 / _MS_PER_DAY + _UNIX_EPOCH_JD


def local_sidereal_time(instant: datetime, longitude_deg: float) -> float:
    """Local sidereal time in degrees [0, 360).

    GMST ≈ 280.46061837 + 360.98564736629 × d, where d is days since J2000.0.

    Args:
        instant: Timezone-aware observation time.
        longitude_deg: Observer longitude, east positive.

    Returns:
        LST in degrees.
    """
    d = julian_date(instant) - _J2000_JD
    gmst = wrap_deg(280.46061837 + 360.98564736629 * d)
    return wrap_deg(gmst + longitude_deg)


def equatorial_to_horizontal(
    ra_deg: float, dec_deg: float, latitude_rad: float, lst_deg: float
) -> SkyPosition:
    """Convert RA/Dec to azimuth/altitude for a given latitude and sidereal time.

    Azimuth is measured from north, increasing eastward.
    """
    h = math.radians(wrap_deg(lst_deg - ra_deg))
    dec = math.radians(dec_deg)

    sin_alt = math.sin(dec) * math.sin(latitude_rad) + math.cos(dec) * math.cos(
        latitude_rad
    ) * math.cos(h)
    alt = math.asin(max(-1.0, min(1.0, sin_alt)))

    y = -math.sin(h)
    x = math.tan(dec) * math.cos(latitude_rad) - math.sin(latitude_rad) * math.cos(h)
    az = _wrap_rad(math.atan2(y, x))

    return SkyPosition(az_deg=math.degrees(az), alt_deg=math.degrees(alt))


def visible_stars(
    catalog: Catalog, context: ObserverContext
) -> tuple[VisibleStar, ...]:
    """Catalog stars strictly above the horizon.

    Stars at alt <= 0 are dropped, not dimmed.
    """
    lst = local_sidereal_time(context.utc_dt, context.lng)
    lat_rad = math.radians(context.lat)
    result: list[VisibleStar] = []
    for i, star in enumerate(catalog.stars):
        pos = equatorial_to_horizontal(star.ra_deg, star.dec_deg, lat_rad, lst)
        if pos.visible:
            result.append(VisibleStar(index=i, star=star, position=pos))
    return tuple(result)


def visible_segments(
    catalog: Catalog, stars: tuple[VisibleStar, ...]
) -> tuple[tuple[str, VisibleStar, VisibleStar], ...]:
    """Constellation segments whose two endpoints are both above the horizon."""
    by_index = {s.index: s for s in stars}
    segments: list[tuple[str, VisibleStar, VisibleStar]] = []
    for name, figure in catalog.constellations.items():
        for seg in figure:
            a = by_index.get(seg.star_index_a)
            b = by_index.get(seg.star_index_b)
            if a is not None and b is not None:
                segments.append((name, a, b))
    return tuple(segments)


def compute_sky_data(context: ObserverContext, catalog: Catalog) -> SkyData:
    """Compute visible stars and constellation segments for one observer.

    Args:
        context: Observer location and UTC instant.
        catalog: Star table and constellation figures.

    Returns:
        SkyData containing only above-horizon stars and segments whose
        endpoints are both above the horizon.
    """
    stars = visible_stars(catalog, context)
    segments = visible_segments(catalog, stars)

    logger.debug(
        "sky at lat=%.4f lng=%.4f %s: %d/%d stars visible, %d segments",
        context.lat,
        context.lng,
        context.utc_dt.isoformat(),
        len(stars),
        len(catalog.stars),
        len(segments),
    )
    return SkyData(
        context=context,
        lst_deg=local_sidereal_time(context.utc_dt, context.lng),
        stars=stars,
        segments=segments,
    )


def resolve_observer(
    lat: float, lng: float, date: str, time: str, place: str = ""
) -> ObserverContext:
    """Resolve coordinates and a local wall-clock date/time to an ObserverContext.

    The local time is interpreted in the timezone at (lat, lng).

    Args:
        lat: Latitude in degrees.
        lng: Longitude in degrees.
        date: Local date, "YYYY-MM-DD".
        time: Local time, "HH:MM".
        place: Display name carried through to captions.

    Returns:
        ObserverContext with a UTC datetime.

    Raises:
        ObserverError: On out-of-range coordinates, malformed date/time,
            or when no timezone covers the coordinates.
    """
    if not -90.0 <= lat <= 90.0:
        raise ObserverError(f"Latitude out of range: {lat}")
    if not -180.0 <= lng <= 180.0:
        raise ObserverError(f"Longitude out of range: {lng}")
    try:
        dt = datetime.strptime(f"{date.strip()} {time.strip()}", "%Y-%m-%d %H:%M")
    except ValueError as e:
        raise ObserverError(f"Malformed date/time: {date!r} {time!r}") from e

    tz_str = _tf.timezone_at(lat=lat, lng=lng)
    if tz_str is None:
        raise ObserverError(f"Timezone not found: lat={lat}, lng={lng}")
    # is_dst=False picks standard time for ambiguous/nonexistent wall-clock times
    utc_dt = timezone(tz_str).localize(dt, is_dst=False).astimezone(utc)

    return ObserverContext(lat=lat, lng=lng, utc_dt=utc_dt, place_display=place)
