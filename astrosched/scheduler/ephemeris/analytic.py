import datetime
import math

from astrosched.scheduler import astro
from .base import Ephemeris


class AnalyticEphemeris(Ephemeris):
    """Low precision closed-form positions, good to a fraction of a degree."""

    name = "analytic"

    def apparent_ra_dec(
        self, ra0_hours: float, dec0_deg: float, when: datetime.datetime
    ) -> tuple[float, float]:
        ra, dec = astro.precess_from_j2000(
            math.radians(ra0_hours * 15.0), math.radians(dec0_deg), when
        )
        return math.degrees(ra) / 15.0, math.degrees(dec)

    def sun_ra_dec(self, when: datetime.datetime) -> tuple[float, float]:
        ra, dec = astro.sun_ra_dec_rad(when)
        return math.degrees(ra) / 15.0, math.degrees(dec)

    def moon(self, when: datetime.datetime) -> tuple[float, float, float]:
        ra, dec = astro.moon_ra_dec_rad(when)
        return math.degrees(ra) / 15.0, math.degrees(dec), astro.moon_illumination_fraction(when)
