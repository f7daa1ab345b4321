import datetime

from .astro import equatorial_to_horizontal
from .ephemeris import Ephemeris
from .types import HorizontalPosition, MoonPosition, ObserverLocation


def resolve(
    ra0_hours: float,
    dec0_deg: float,
    when: datetime.datetime | None,
    location: ObserverLocation,
    ephemeris: Ephemeris,
) -> HorizontalPosition:
    """Horizontal position and sidereal time of a J2000 target at ``when``.

    ``when`` may be None (now), naive local time or any aware datetime.
    """
    local = location.to_local(when)
    ra, dec = ephemeris.apparent_ra_dec(ra0_hours, dec0_deg, local)
    lst = ephemeris.local_sidereal_time(local, location)
    alt, az = equatorial_to_horizontal(ra, dec, lst, location.latitude_deg)
    return HorizontalPosition(
        altitude_deg=alt,
        azimuth_deg=az,
        lst_hours=lst,
        ra_hours=ra,
        dec_deg=dec,
    )


def find_altitude(
    ra0_hours: float,
    dec0_deg: float,
    when: datetime.datetime | None,
    location: ObserverLocation,
    ephemeris: Ephemeris,
) -> tuple[float, bool]:
    """Return the target altitude and whether it has passed the meridian."""
    pos = resolve(ra0_hours, dec0_deg, when, location, ephemeris)
    return pos.altitude_deg, pos.is_setting


def moon_position(
    when: datetime.datetime | None,
    location: ObserverLocation,
    ephemeris: Ephemeris,
) -> MoonPosition:
    local = location.to_local(when)
    ra, dec, illum = ephemeris.moon(local)
    lst = ephemeris.local_sidereal_time(local, location)
    alt, az = equatorial_to_horizontal(ra, dec, lst, location.latitude_deg)
    return MoonPosition(
        altitude_deg=alt,
        azimuth_deg=az,
        ra_hours=ra,
        dec_deg=dec,
        illumination=illum,
    )
