import datetime
import math

import pytest

from astrosched.scheduler import astro
from astrosched.scheduler.ephemeris import AnalyticEphemeris
from astrosched.scheduler.types import ObserverLocation, add_seconds

J2000 = datetime.datetime(2000, 1, 1, 12, 0, tzinfo=datetime.timezone.utc)


def test_julian_date_at_j2000():
    assert astro.julian_date(J2000) == pytest.approx(2451545.0)


def test_julian_date_naive_is_utc():
    assert astro.julian_date(J2000.replace(tzinfo=None)) == pytest.approx(2451545.0)


def test_gmst_at_j2000():
    assert astro.gmst_hours(J2000) == pytest.approx(18.697374558, abs=1e-6)


def test_precession_is_identity_at_j2000():
    ra = math.radians(150.0)
    dec = math.radians(45.0)
    ra_out, dec_out = astro.precess_from_j2000(ra, dec, J2000)
    assert ra_out == pytest.approx(ra, abs=1e-9)
    assert dec_out == pytest.approx(dec, abs=1e-9)


def test_precession_moves_about_fifty_arcsec_per_year():
    # Vernal equinox point drifts along RA by ~50"/yr at dec 0
    when = datetime.datetime(2025, 1, 1, 12, 0, tzinfo=datetime.timezone.utc)
    ra_out, dec_out = astro.precess_from_j2000(0.0, 0.0, when)
    drift_arcsec = math.degrees(ra_out) * 3600.0
    assert 25 * 45 < drift_arcsec < 25 * 50


def test_target_at_latitude_on_meridian_is_at_zenith():
    alt, _ = astro.equatorial_to_horizontal(6.0, 40.0, 6.0, 40.0)
    assert alt == pytest.approx(90.0, abs=1e-6)


def test_meridian_target_south_of_zenith_faces_south():
    alt, az = astro.equatorial_to_horizontal(6.0, 10.0, 6.0, 40.0)
    assert alt == pytest.approx(60.0, abs=1e-6)
    assert az == pytest.approx(180.0, abs=1e-6)


def test_target_east_of_meridian_has_eastern_azimuth():
    alt, az = astro.equatorial_to_horizontal(8.0, 0.0, 6.0, 40.0)
    assert alt > 0
    assert 90.0 < az < 180.0


def test_angular_separation_of_poles():
    assert astro.angular_separation_deg(0.0, 90.0, 12.0, -90.0) == pytest.approx(180.0)


def test_moon_illumination_is_a_fraction():
    when = datetime.datetime(2024, 12, 15, 9, 0, tzinfo=datetime.timezone.utc)
    for day in range(30):
        illum = astro.moon_illumination_fraction(add_seconds(when, day * 86400))
        assert 0.0 <= illum <= 1.0


def test_sun_declination_at_december_solstice():
    ephemeris = AnalyticEphemeris()
    when = datetime.datetime(2024, 12, 21, 12, 0, tzinfo=datetime.timezone.utc)
    _, dec = ephemeris.sun_ra_dec(when)
    assert dec == pytest.approx(-23.44, abs=0.05)


def test_transit_time_puts_target_on_meridian():
    ephemeris = AnalyticEphemeris()
    location = ObserverLocation(latitude_deg=40.0, longitude_deg=-105.0, timezone="America/Denver")
    day_start = datetime.datetime(2024, 12, 21, 0, 0, tzinfo=location.tzinfo)

    transit = ephemeris.transit_time(10.0, 45.0, day_start, location)

    assert day_start <= transit < add_seconds(day_start, 24 * 3600)
    ra, _ = ephemeris.apparent_ra_dec(10.0, 45.0, transit)
    lst = ephemeris.local_sidereal_time(transit, location)
    hour_angle = (lst - ra + 12.0) % 24.0 - 12.0
    assert abs(hour_angle) < 0.01
