import datetime

from .astro import angular_separation_deg
from .resolver import moon_position, resolve
from .types import BAD_SCORE, MIN_ALTITUDE

MOON_PENALTY_SCORE = BAD_SCORE * 5
MAX_MOON_EFFECT = 100.0


def altitude_score(job, when: datetime.datetime | None) -> tuple[int, float]:
    """Score the target altitude at ``when``; returns (score, altitude)."""
    ctx = job.context
    pos = resolve(job.ra0_hours, job.dec0_deg, when, ctx.location, ctx.ephemeris)
    altitude = pos.altitude_deg

    # FIXME: some sites can legitimately observe below the horizon
    if altitude < 0:
        return BAD_SCORE, altitude

    if job.has_altitude_constraint():
        ok, _ = job.satisfies_altitude_constraint(pos.azimuth_deg, altitude)
        if not ok:
            return BAD_SCORE, altitude
        if pos.is_setting:
            cutoff = ctx.options.setting_altitude_cutoff_deg
            setting_ok, _ = job.satisfies_altitude_constraint(pos.azimuth_deg, altitude - cutoff)
            if not setting_ok:
                return BAD_SCORE // 2, altitude
    elif altitude < MIN_ALTITUDE:
        return int(altitude / 10.0), altitude

    return int(round(1.5 * 1.06 ** altitude - MIN_ALTITUDE / 10.0)), altitude


def moon_separation(job, when: datetime.datetime | None) -> float:
    ctx = job.context
    pos = resolve(job.ra0_hours, job.dec0_deg, when, ctx.location, ctx.ephemeris)
    moon = moon_position(when, ctx.location, ctx.ephemeris)
    return angular_separation_deg(pos.ra_hours, pos.dec_deg, moon.ra_hours, moon.dec_deg)


def _moon_effect(separation: float, z_moon: float, z_target: float, illum_pct: float) -> float:
    if z_target <= 0:
        return MAX_MOON_EFFECT
    effect = (separation ** 1.7 * z_moon ** 0.5) / (z_target ** 1.1 * illum_pct ** 0.5)
    return max(0.0, min(MAX_MOON_EFFECT, effect))


def moon_separation_score(job, when: datetime.datetime | None) -> int:
    """Score the Moon's interference with the target, in [0, 20] or a penalty."""
    ctx = job.context
    pos = resolve(job.ra0_hours, job.dec0_deg, when, ctx.location, ctx.ephemeris)
    moon = moon_position(when, ctx.location, ctx.ephemeris)

    illum_pct = moon.illumination * 100.0
    separation = angular_separation_deg(pos.ra_hours, pos.dec_deg, moon.ra_hours, moon.dec_deg)
    z_moon = 90.0 - moon.altitude_deg
    z_target = 90.0 - pos.altitude_deg

    if z_moon == z_target or illum_pct == 0 or z_moon >= 90.0:
        score = MAX_MOON_EFFECT
    else:
        score = _moon_effect(separation, z_moon, z_target, illum_pct)
        if job.min_moon_separation is not None and job.min_moon_separation > 0:
            if separation < job.min_moon_separation:
                score = MOON_PENALTY_SCORE

    return int(score / 5.0)
