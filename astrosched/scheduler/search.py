import datetime
import logging
from typing import Callable

from .cache import search_horizon
from .resolver import resolve
from .types import add_minutes, add_seconds, as_utc, seconds_between

logger = logging.getLogger(__name__)

CULMINATION_SHIFT_S = 8 * 3600
MAX_CULMINATION_SHIFTS = 6


def next_constraint_transition(
    job,
    when: datetime.datetime | None,
    want_satisfied: bool,
    step_min: int = 1,
    running_job: bool = False,
    until: datetime.datetime | None = None,
    cancelled: Callable[[], bool] | None = None,
) -> tuple[datetime.datetime | None, str | None]:
    """Walk forward from ``when`` to the next instant the job's constraints flip.

    With ``want_satisfied`` the first instant where twilight, altitude, moon
    separation and setting cutoff all pass is returned; without it, the first
    instant where twilight, altitude or moon separation fails, along with the
    reason. Returns (None, None) when nothing qualifies within a day or
    before ``until``, or when ``cancelled`` reports true between steps.
    """
    if step_min <= 0:
        raise ValueError("Search step must be positive")
    ctx = job.context
    start = ctx.location.to_local(when)
    horizon = search_horizon(start, until)
    max_minute = seconds_between(start, horizon) / 60.0
    cutoff = ctx.options.setting_altitude_cutoff_deg

    minute = 0
    while minute < max_minute:
        if cancelled is not None and cancelled():
            logger.debug("Search for job '%s' cancelled at minute %d", job.name, minute)
            return None, None
        t = add_minutes(start, minute)

        if job.enforce_twilight:
            night, next_success = job.is_night_time(t)
            if not night:
                if not want_satisfied:
                    return t, "twilight"
                if next_success is not None:
                    to_success = int(seconds_between(t, next_success) // 60) - step_min
                    if to_success > 0:
                        minute += to_success
                minute += step_min
                continue

        pos = resolve(job.ra0_hours, job.dec0_deg, t, ctx.location, ctx.ephemeris)
        ok, reason = job.satisfies_altitude_constraint(pos.azimuth_deg, pos.altitude_deg)
        if ok:
            if job.min_moon_separation is not None and job.min_moon_separation > 0:
                if job.moon_separation_score(t) < 0:
                    if not want_satisfied:
                        return t, "moon separation"
                    minute += step_min
                    continue

            if want_satisfied:
                if not running_job and pos.is_setting:
                    setting_ok, _ = job.satisfies_altitude_constraint(
                        pos.azimuth_deg, pos.altitude_deg - cutoff
                    )
                    if not setting_ok:
                        minute += step_min
                        continue
                return t, None
        elif not want_satisfied:
            return t, reason

        minute += step_min

    return None, None


def culmination_time(job, when: datetime.datetime | None) -> datetime.datetime | None:
    """Local time at which the job should start to observe its target's transit.

    The transit on the local date of ``when`` is shifted by the job's
    culmination offset. If that time, relaxed by the lead time, is already
    past, the search moves eight hours ahead, up to a few times.
    """
    ctx = job.context
    start = ctx.location.to_local(when)
    t = start
    for _ in range(MAX_CULMINATION_SHIFTS):
        day_start = datetime.datetime.combine(t.date(), datetime.time(0, 0), tzinfo=t.tzinfo)
        transit = ctx.ephemeris.transit_time(job.ra0_hours, job.dec0_deg, day_start, ctx.location)
        observation = add_minutes(transit, job.culmination_offset).astimezone(t.tzinfo)
        relaxed = add_minutes(observation, ctx.options.lead_time_min)
        if as_utc(relaxed) >= as_utc(start):
            return observation
        logger.debug(
            "Job '%s' startup %s is posterior to transit %s, shifting by 8 hours.",
            job.name,
            t.isoformat(),
            relaxed.isoformat(),
        )
        t = add_seconds(t, CULMINATION_SHIFT_S)

    logger.warning("Job '%s' has no culmination time after %s", job.name, start.isoformat())
    return None
