from __future__ import annotations

import datetime
import math
from typing import Sequence

import astropy.units as u
import numpy as np
from astropy.coordinates import FK5, AltAz, EarthLocation, SkyCoord, get_body, get_sun
from astropy.time import Time

from astrosched.errors import EphemerisError
from astrosched.scheduler.types import ObserverLocation
from .base import Ephemeris


def _to_time(when: datetime.datetime) -> Time:
    if when.tzinfo is None:
        when = when.replace(tzinfo=datetime.timezone.utc)
    return Time(when.astimezone(datetime.timezone.utc))


def _earth_location(location: ObserverLocation) -> EarthLocation:
    return EarthLocation(
        lat=location.latitude_deg * u.deg,
        lon=location.longitude_deg * u.deg,
        height=(location.elevation_m or 0.0) * u.m,
    )


class AstropyEphemeris(Ephemeris):
    """Ephemeris backed by astropy frames and solar system bodies."""

    name = "astropy"

    def apparent_ra_dec(
        self, ra0_hours: float, dec0_deg: float, when: datetime.datetime
    ) -> tuple[float, float]:
        c = SkyCoord(ra=ra0_hours * u.hourangle, dec=dec0_deg * u.deg, frame="icrs")
        jnow = c.transform_to(FK5(equinox=_to_time(when)))
        return jnow.ra.hour, jnow.dec.deg

    def sun_ra_dec(self, when: datetime.datetime) -> tuple[float, float]:
        sun = get_sun(_to_time(when))
        return sun.ra.hour, sun.dec.deg

    def moon(self, when: datetime.datetime) -> tuple[float, float, float]:
        t = _to_time(when)
        try:
            moon = get_body("moon", t)
        except Exception as e:
            raise EphemerisError(f"Moon position unavailable: {e}") from e
        sun = get_sun(t)
        elong = sun.separation(moon).rad
        illum = (1.0 - math.cos(elong)) / 2.0
        return moon.ra.hour, moon.dec.deg, illum

    def local_sidereal_time(self, when: datetime.datetime, location: ObserverLocation) -> float:
        t = _to_time(when)
        return t.sidereal_time("apparent", longitude=location.longitude_deg * u.deg).hour

    def sun_altitudes(
        self, times: Sequence[datetime.datetime], location: ObserverLocation
    ) -> np.ndarray:
        t = Time([w.astimezone(datetime.timezone.utc) for w in times])
        frame = AltAz(obstime=t, location=_earth_location(location))
        return np.asarray(get_sun(t).transform_to(frame).alt.deg, dtype=float)
