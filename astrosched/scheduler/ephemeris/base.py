from abc import ABC, abstractmethod
import datetime
from typing import Sequence

import numpy as np

from astrosched.scheduler import astro
from astrosched.scheduler.types import ObserverLocation, add_seconds


class Ephemeris(ABC):
    """Positions of catalog targets, the Sun and the Moon.

    Right ascensions are in hours, declinations in degrees. Times are aware
    datetimes; implementations convert to UTC as needed.
    """

    name = "base"

    @abstractmethod
    def apparent_ra_dec(
        self, ra0_hours: float, dec0_deg: float, when: datetime.datetime
    ) -> tuple[float, float]:
        pass

    @abstractmethod
    def sun_ra_dec(self, when: datetime.datetime) -> tuple[float, float]:
        pass

    @abstractmethod
    def moon(self, when: datetime.datetime) -> tuple[float, float, float]:
        """Return the Moon's (ra_hours, dec_deg, illumination fraction)."""

    def local_sidereal_time(self, when: datetime.datetime, location: ObserverLocation) -> float:
        return astro.local_sidereal_time_hours(when, location.longitude_deg)

    def sun_altitudes(
        self, times: Sequence[datetime.datetime], location: ObserverLocation
    ) -> np.ndarray:
        altitudes = []
        for when in times:
            ra, dec = self.sun_ra_dec(when)
            lst = self.local_sidereal_time(when, location)
            alt, _ = astro.equatorial_to_horizontal(ra, dec, lst, location.latitude_deg)
            altitudes.append(alt)
        return np.asarray(altitudes, dtype=float)

    def transit_time(
        self,
        ra0_hours: float,
        dec0_deg: float,
        day_start: datetime.datetime,
        location: ObserverLocation,
    ) -> datetime.datetime:
        """First meridian transit of the target at or after ``day_start``."""
        when = day_start
        # Apparent RA drifts slowly, two refinements are stable to the second
        for _ in range(2):
            ra, _ = self.apparent_ra_dec(ra0_hours, dec0_deg, when)
            lst = self.local_sidereal_time(day_start, location)
            hours = ((ra - lst) % 24.0) / astro.SIDEREAL_RATE
            when = add_seconds(day_start, hours * 3600.0)
        return when
