import math
from datetime import datetime, timedelta, timezone

import numpy as np
import pytest
from skyfield.api import load

from nightposter.catalog import CatalogError, build_catalog, load_catalog
from nightposter.compute import (
    ObserverError,
    compute_sky_data,
    equatorial_to_horizontal,
    julian_date,
    local_sidereal_time,
    resolve_observer,
    visible_stars,
    wrap_deg,
)
from nightposter.models import ObserverContext, SkyPosition

MEXICO_CITY = (19.4326, -99.1332)
# 1995-12-25 22:00 local (CST, UTC-6)
SIRIUS_NIGHT = datetime(1995, 12, 26, 4, 0, tzinfo=timezone.utc)
SIDEREAL_RATE_DEG_PER_S = 360.98564736629 / 86400.0


def _angle_diff(a: float, b: float) -> float:
    return (a - b + 180.0) % 360.0 - 180.0


def test_julian_date_at_j2000():
    j2000 = datetime(2000, 1, 1, 12, 0, tzinfo=timezone.utc)
    assert julian_date(j2000) == pytest.approx(2451545.0)


def test_julian_date_at_unix_epoch():
    epoch = datetime(1970, 1, 1, tzinfo=timezone.utc)
    assert julian_date(epoch) == pytest.approx(2440587.5)


def test_lst_at_j2000_greenwich():
    lst = local_sidereal_time(datetime(2000, 1, 1, 12, 0, tzinfo=timezone.utc), 0.0)
    assert lst == pytest.approx(280.46061837, abs=1e-6)


def test_lst_adds_longitude():
    dt = datetime(2010, 6, 1, 3, 30, tzinfo=timezone.utc)
    base = local_sidereal_time(dt, 0.0)
    for lng in (45.0, -120.0):
        shifted = local_sidereal_time(dt, lng)
        assert _angle_diff(shifted, base) == pytest.approx(lng, abs=1e-9)


@pytest.mark.parametrize(
    "dt",
    [
        datetime(1995, 12, 26, 4, 0, tzinfo=timezone.utc),
        datetime(2003, 8, 27, 9, 51, tzinfo=timezone.utc),
        datetime(2024, 4, 8, 18, 17, tzinfo=timezone.utc),
    ],
)
def test_gmst_matches_skyfield(dt):
    ts = load.timescale(builtin=True)
    reference = ts.from_datetime(dt).gmst * 15.0
    assert abs(_angle_diff(local_sidereal_time(dt, 0.0), reference)) < 0.05


def test_lst_always_in_range():
    for hour in range(0, 24 * 40, 7):
        dt = datetime.fromtimestamp(946684800 + hour * 3600, tz=timezone.utc)
        for lng in (-180.0, -99.1, 0.0, 77.2, 180.0):
            assert 0.0 <= local_sidereal_time(dt, lng) < 360.0


@pytest.mark.parametrize("seconds", [1, 60, 3600, 86400, 10 * 86400])
@pytest.mark.parametrize(
    "start",
    [
        datetime(1995, 12, 26, 4, 0, tzinfo=timezone.utc),
        datetime(2024, 2, 29, 23, 59, 30, tzinfo=timezone.utc),
    ],
)
def test_lst_advances_at_the_sidereal_rate(start, seconds):
    later = start + timedelta(seconds=seconds)
    before = local_sidereal_time(start, 12.5)
    step = _angle_diff(local_sidereal_time(later, 12.5), before)
    expected = _angle_diff(SIDEREAL_RATE_DEG_PER_S * seconds, 0.0)
    assert step == pytest.approx(expected, abs=1e-5)


def test_wrap_deg():
    assert 0.0 <= wrap_deg(-1e-15) < 360.0
    assert wrap_deg(720.5) == pytest.approx(0.5)
    assert wrap_deg(-90.0) == pytest.approx(270.0)


def test_star_at_zenith():
    lat = 35.0
    pos = equatorial_to_horizontal(123.0, lat, math.radians(lat), 123.0)
    assert pos.alt_deg == pytest.approx(90.0, abs=1e-6)


def test_star_rising_due_east():
    # Hour angle -90 deg on the celestial equator sits on the eastern horizon
    pos = equatorial_to_horizontal(100.0, 0.0, math.radians(40.0), 10.0)
    assert pos.alt_deg == pytest.approx(0.0, abs=1e-9)
    assert pos.az_deg == pytest.approx(90.0, abs=1e-9)


def test_pole_star_altitude_equals_latitude():
    pos = equatorial_to_horizontal(0.0, 89.9999, math.radians(52.0), 200.0)
    assert pos.alt_deg == pytest.approx(52.0, abs=0.01)
    assert min(pos.az_deg, 360.0 - pos.az_deg) < 0.01


def _reference_altaz(ra_deg, dec_deg, lat_deg, lst_deg):
    """Rotate the hour-angle frame into east/north/up with numpy."""
    h = np.radians(lst_deg - ra_deg)
    dec = np.radians(dec_deg)
    lat = np.radians(lat_deg)
    v = np.array([np.cos(dec) * np.cos(h), np.cos(dec) * np.sin(h), np.sin(dec)])
    rot = np.array(
        [
            [0.0, -1.0, 0.0],
            [-np.sin(lat), 0.0, np.cos(lat)],
            [np.cos(lat), 0.0, np.sin(lat)],
        ]
    )
    east, north, up = rot @ v
    return math.degrees(math.atan2(east, north)) % 360.0, math.degrees(math.asin(up))


@pytest.mark.parametrize(
    "ra,dec,lat,lst",
    [
        (101.2875, -16.7161, 19.4326, 55.06),
        (279.2347, 38.7837, 52.0, 250.0),
        (37.9546, 89.2641, -33.9, 10.0),
        (213.9154, 19.1825, 0.0, 300.0),
    ],
)
def test_horizontal_matches_vector_rotation(ra, dec, lat, lst):
    pos = equatorial_to_horizontal(ra, dec, math.radians(lat), lst)
    ref_az, ref_alt = _reference_altaz(ra, dec, lat, lst)
    assert pos.alt_deg == pytest.approx(ref_alt, abs=0.5)
    if abs(ref_alt) < 89.0:
        assert abs(_angle_diff(pos.az_deg, ref_az)) < 0.5


def test_sirius_over_mexico_city_on_christmas_night():
    catalog = load_catalog()
    ctx = ObserverContext(lat=MEXICO_CITY[0], lng=MEXICO_CITY[1], utc_dt=SIRIUS_NIGHT)
    sirius = next(s for s in visible_stars(catalog, ctx) if s.star.name == "Sirius")
    assert 29.0 <= sirius.position.alt_deg <= 35.0
    assert 122.0 <= sirius.position.az_deg <= 129.0


def test_visible_stars_strictly_above_horizon():
    catalog = load_catalog()
    when = datetime(2021, 3, 1, 11, 0, tzinfo=timezone.utc)
    ctx = ObserverContext(lat=-33.87, lng=151.21, utc_dt=when)
    visible = visible_stars(catalog, ctx)
    assert visible
    assert all(s.position.alt_deg > 0 for s in visible)
    shown = {s.index for s in visible}
    lst = local_sidereal_time(ctx.utc_dt, ctx.lng)
    for i, star in enumerate(catalog.stars):
        if i not in shown:
            pos = equatorial_to_horizontal(
                star.ra_deg, star.dec_deg, math.radians(ctx.lat), lst
            )
            assert pos.alt_deg <= 0


def test_horizon_itself_is_not_visible():
    assert SkyPosition(az_deg=0.0, alt_deg=0.0).visible is False
    assert SkyPosition(az_deg=0.0, alt_deg=1e-9).visible is True
    assert SkyPosition(az_deg=180.0, alt_deg=-0.5).visible is False


def test_sky_data_segments_need_both_endpoints_visible():
    catalog = load_catalog()
    ctx = ObserverContext(lat=MEXICO_CITY[0], lng=MEXICO_CITY[1], utc_dt=SIRIUS_NIGHT)
    sky = compute_sky_data(ctx, catalog)
    visible = {s.index for s in sky.stars}
    assert sky.segments
    for name, a, b in sky.segments:
        assert name in catalog.constellations
        assert a.index in visible and b.index in visible
    # Orion is high in the evening sky in late December
    assert any(name == "Orion" for name, _, _ in sky.segments)


def test_bundled_catalog_figures():
    catalog = load_catalog()
    assert len(catalog.stars) == 34
    names = {
        name: {
            catalog.stars[i].name
            for seg in figure
            for i in (seg.star_index_a, seg.star_index_b)
        }
        for name, figure in catalog.constellations.items()
    }
    assert names["Orion"] == {"Betelgeuse", "Bellatrix", "Alnilam", "Rigel"}
    assert names["Ursa Major"] == {"Dubhe", "Mizar", "Alioth"}


def test_catalog_rejects_out_of_range_segment():
    with pytest.raises(CatalogError):
        build_catalog((("A", 0.0, 0.0, 1.0),), {"Broken": ((0, 1),)})


def test_resolve_observer_converts_local_time_to_utc():
    ctx = resolve_observer(*MEXICO_CITY, "1995-12-25", "22:00", place="Mexico City, MX")
    assert ctx.utc_dt == SIRIUS_NIGHT
    assert ctx.place_display == "Mexico City, MX"


@pytest.mark.parametrize(
    "lat,lng,date,time",
    [
        (91.0, 0.0, "2020-01-01", "00:00"),
        (0.0, -181.0, "2020-01-01", "00:00"),
        (19.4, -99.1, "2020/01/01", "00:00"),
        (19.4, -99.1, "2020-01-01", "25:00"),
    ],
)
def test_resolve_observer_rejects_bad_input(lat, lng, date, time):
    with pytest.raises(ObserverError):
        resolve_observer(lat, lng, date, time)
