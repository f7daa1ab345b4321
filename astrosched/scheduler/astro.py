import datetime
import math

J2000_JD = 2451545.0
SIDEREAL_RATE = 1.00273790935


def julian_date(dt: datetime.datetime) -> float:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=datetime.timezone.utc)
    dt = dt.astimezone(datetime.timezone.utc)
    year = dt.year
    month = dt.month
    day = dt.day + (dt.hour + (dt.minute + (dt.second + dt.microsecond / 1e6) / 60.0) / 60.0) / 24.0
    if month <= 2:
        year -= 1
        month += 12
    a = math.floor(year / 100)
    b = 2 - a + math.floor(a / 4)
    jd = math.floor(365.25 * (year + 4716)) + math.floor(30.6001 * (month + 1)) + day + b - 1524.5
    return jd


def days_since_j2000(dt: datetime.datetime) -> float:
    return julian_date(dt) - J2000_JD


def _normalize_angle_rad(angle: float) -> float:
    return angle % (2.0 * math.pi)


def gmst_hours(dt: datetime.datetime) -> float:
    d = days_since_j2000(dt)
    return (18.697374558 + 24.06570982441908 * d) % 24.0


def local_sidereal_time_hours(dt: datetime.datetime, longitude_deg: float) -> float:
    return (gmst_hours(dt) + longitude_deg / 15.0) % 24.0


def precess_from_j2000(ra_rad: float, dec_rad: float, dt: datetime.datetime) -> tuple[float, float]:
    # Meeus, Astronomical Algorithms, ch. 21 (rigorous method)
    t = days_since_j2000(dt) / 36525.0
    arcsec = math.pi / (180.0 * 3600.0)
    zeta = (2306.2181 * t + 0.30188 * t * t + 0.017998 * t ** 3) * arcsec
    z = (2306.2181 * t + 1.09468 * t * t + 0.018203 * t ** 3) * arcsec
    theta = (2004.3109 * t - 0.42665 * t * t - 0.041833 * t ** 3) * arcsec
    a = math.cos(dec_rad) * math.sin(ra_rad + zeta)
    b = math.cos(theta) * math.cos(dec_rad) * math.cos(ra_rad + zeta) - math.sin(theta) * math.sin(dec_rad)
    c = math.sin(theta) * math.cos(dec_rad) * math.cos(ra_rad + zeta) + math.cos(theta) * math.sin(dec_rad)
    ra = math.atan2(a, b) + z
    dec = math.asin(max(-1.0, min(1.0, c)))
    return _normalize_angle_rad(ra), dec


def equatorial_to_horizontal(
    ra_hours: float,
    dec_deg: float,
    lst_hours: float,
    latitude_deg: float,
) -> tuple[float, float]:
    """Return (altitude, azimuth) in degrees, azimuth measured from north through east."""
    ha = math.radians(((lst_hours - ra_hours) % 24.0) * 15.0)
    dec = math.radians(dec_deg)
    lat = math.radians(latitude_deg)
    sin_alt = math.sin(dec) * math.sin(lat) + math.cos(dec) * math.cos(lat) * math.cos(ha)
    alt = math.asin(max(-1.0, min(1.0, sin_alt)))
    az = math.atan2(
        -math.sin(ha) * math.cos(dec),
        math.sin(dec) * math.cos(lat) - math.cos(dec) * math.sin(lat) * math.cos(ha),
    )
    return math.degrees(alt), math.degrees(_normalize_angle_rad(az))


def sun_ra_dec_rad(dt: datetime.datetime) -> tuple[float, float]:
    n = days_since_j2000(dt)
    l = math.radians((280.460 + 0.9856474 * n) % 360.0)
    g = math.radians((357.528 + 0.9856003 * n) % 360.0)
    lam = l + math.radians(1.915) * math.sin(g) + math.radians(0.020) * math.sin(2 * g)
    eps = math.radians(23.439 - 0.0000004 * n)
    ra = math.atan2(math.cos(eps) * math.sin(lam), math.cos(lam))
    dec = math.asin(math.sin(eps) * math.sin(lam))
    return _normalize_angle_rad(ra), dec


def moon_ra_dec_rad(dt: datetime.datetime) -> tuple[float, float]:
    n = days_since_j2000(dt)
    l = math.radians((218.316 + 13.176396 * n) % 360.0)
    m = math.radians((134.963 + 13.064993 * n) % 360.0)
    f = math.radians((93.272 + 13.229350 * n) % 360.0)
    lam = l + math.radians(6.289) * math.sin(m)
    beta = math.radians(5.128) * math.sin(f)
    eps = math.radians(23.439 - 0.0000004 * n)
    sin_dec = math.sin(beta) * math.cos(eps) + math.cos(beta) * math.sin(eps) * math.sin(lam)
    dec = math.asin(max(-1.0, min(1.0, sin_dec)))
    y = math.sin(lam) * math.cos(eps) - math.tan(beta) * math.sin(eps)
    x = math.cos(lam)
    ra = math.atan2(y, x)
    return _normalize_angle_rad(ra), dec


def angular_separation_rad(ra1: float, dec1: float, ra2: float, dec2: float) -> float:
    cos_sep = math.sin(dec1) * math.sin(dec2) + math.cos(dec1) * math.cos(dec2) * math.cos(ra1 - ra2)
    cos_sep = max(-1.0, min(1.0, cos_sep))
    return math.acos(cos_sep)


def angular_separation_deg(ra1_hours: float, dec1_deg: float, ra2_hours: float, dec2_deg: float) -> float:
    return math.degrees(
        angular_separation_rad(
            math.radians(ra1_hours * 15.0),
            math.radians(dec1_deg),
            math.radians(ra2_hours * 15.0),
            math.radians(dec2_deg),
        )
    )


def moon_illumination_fraction(dt: datetime.datetime) -> float:
    ra_sun, dec_sun = sun_ra_dec_rad(dt)
    ra_moon, dec_moon = moon_ra_dec_rad(dt)
    elong = angular_separation_rad(ra_sun, dec_sun, ra_moon, dec_moon)
    return (1.0 - math.cos(elong)) / 2.0
