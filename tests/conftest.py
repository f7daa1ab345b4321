import datetime

import pytest

from astrosched.scheduler import SchedulerJob, make_context
from astrosched.scheduler.ephemeris import AnalyticEphemeris, Ephemeris
from astrosched.scheduler.types import ObserverLocation, SchedulerOptions


def pytest_addoption(parser):
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="run tests marked as integration",
    )


def pytest_collection_modifyitems(config, items):
    if config.getoption("--integration"):
        return

    for item in items:
        if "integration" in item.keywords:
            item.add_marker(
                pytest.mark.skip(
                    reason="need --integration option to run integration tests"
                )
            )


class SyntheticEphemeris(Ephemeris):
    """Fixed sky: catalog coordinates are apparent, sidereal time is frozen.

    ``moon`` may be a (ra_hours, dec_deg, illumination) tuple or a callable
    taking the query time and returning one.
    """

    name = "synthetic"

    def __init__(self, lst_hours=0.0, sun=(12.0, -60.0), moon=(12.0, -80.0, 0.0)):
        self.lst_hours = lst_hours
        self.sun = sun
        self._moon = moon

    def apparent_ra_dec(self, ra0_hours, dec0_deg, when):
        return ra0_hours, dec0_deg

    def sun_ra_dec(self, when):
        return self.sun

    def moon(self, when):
        if callable(self._moon):
            return self._moon(when)
        return self._moon

    def local_sidereal_time(self, when, location):
        return self.lst_hours


class MovingSkyEphemeris(AnalyticEphemeris):
    """Analytic Sun and sidereal time with a scripted Moon."""

    name = "moving-sky"

    def __init__(self, moon):
        self._moon = moon

    def moon(self, when):
        return self._moon(when)


# Mid-winter local midnight in Denver, well inside astronomical night
WINTER_MIDNIGHT = datetime.datetime(2024, 12, 21, 0, 0)


@pytest.fixture
def denver():
    return ObserverLocation(
        latitude_deg=40.0,
        longitude_deg=-105.0,
        elevation_m=1600,
        timezone="America/Denver",
        name="Denver",
    )


@pytest.fixture
def fixed_clock(denver):
    now = datetime.datetime(2024, 12, 20, 12, 0, tzinfo=denver.tzinfo)
    return lambda: now


@pytest.fixture
def context(denver, fixed_clock):
    return make_context(denver, options=SchedulerOptions(), clock=fixed_clock)


@pytest.fixture
def make_job(context):
    def _make(name="job", ra_hours=10.0, dec_deg=45.0, ctx=None):
        job = SchedulerJob(ctx or context, name=name)
        job.set_target_coords(ra_hours, dec_deg, WINTER_MIDNIGHT)
        return job

    return _make


@pytest.fixture
def synthetic_context(fixed_clock):
    def _make(ephemeris=None, options=None, horizon=None, latitude_deg=40.0):
        location = ObserverLocation(latitude_deg=latitude_deg, longitude_deg=0.0)
        return make_context(
            location,
            options=options or SchedulerOptions(),
            ephemeris=ephemeris or SyntheticEphemeris(),
            horizon=horizon,
            clock=fixed_clock,
        )

    return _make


@pytest.fixture
def synthetic_ephemeris():
    return SyntheticEphemeris


@pytest.fixture
def moving_sky_ephemeris():
    return MovingSkyEphemeris
