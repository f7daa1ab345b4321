import datetime
import logging
import threading
from dataclasses import dataclass

import numpy as np

from .ephemeris import Ephemeris
from .types import ObserverLocation, SchedulerOptions, add_minutes, add_seconds, as_utc

logger = logging.getLogger(__name__)

ASTRONOMICAL_TWILIGHT_DEG = -18.0
SAMPLE_STEP_MIN = 5
ALMANAC_CACHE_SIZE = 5
MAX_DAWN_DUSK_DAYS = 3


class Almanac:
    """Astronomical dawn and dusk from sampled Sun altitudes."""

    def __init__(self, ephemeris: Ephemeris, sun_altitude_deg: float = ASTRONOMICAL_TWILIGHT_DEG):
        self._ephemeris = ephemeris
        self._sun_altitude_deg = sun_altitude_deg

    def sun_altitude(self, when: datetime.datetime, location: ObserverLocation) -> float:
        return float(self._ephemeris.sun_altitudes([when], location)[0])

    def twilight_fractions(
        self, reference: datetime.datetime, location: ObserverLocation
    ) -> tuple[float | None, float | None]:
        """Return (dawn, dusk) as fractions of a day after ``reference``.

        Dawn is the first time the Sun rises through the twilight altitude in
        the following 24 hours, dusk the first time it sets through it. A
        missing crossing (polar day or night) is None.
        """
        steps = 24 * 60 // SAMPLE_STEP_MIN
        times = [add_minutes(reference, i * SAMPLE_STEP_MIN) for i in range(steps + 1)]
        alts = self._ephemeris.sun_altitudes(times, location) - self._sun_altitude_deg
        above = alts > 0
        crossings = np.nonzero(above[1:] != above[:-1])[0]

        dawn = None
        dusk = None
        for i in crossings:
            a0, a1 = alts[i], alts[i + 1]
            frac_step = a0 / (a0 - a1) if a0 != a1 else 0.0
            fraction = (i + frac_step) * SAMPLE_STEP_MIN / (24.0 * 60.0)
            if a1 > a0 and dawn is None:
                dawn = float(fraction)
            elif a1 < a0 and dusk is None:
                dusk = float(fraction)
        return dawn, dusk


@dataclass
class NightTimeAnswer:
    night: bool
    next_success: datetime.datetime | None
    query_time: datetime.datetime
    valid_until: datetime.datetime | None
    key: tuple


class TwilightCache:
    """Process-wide dawn/dusk and night-time memo shared by all jobs.

    Every check-then-update on the memo runs under one lock.
    """

    def __init__(self, almanac: Almanac, options: SchedulerOptions):
        self._almanac = almanac
        self._options = options
        self._lock = threading.Lock()
        self._almanac_cache: dict[tuple, tuple[float | None, float | None]] = {}
        self._last: NightTimeAnswer | None = None

    @property
    def options(self) -> SchedulerOptions:
        return self._options

    @options.setter
    def options(self, value: SchedulerOptions):
        with self._lock:
            self._options = value

    def clear(self) -> None:
        with self._lock:
            self._almanac_cache.clear()
            self._last = None

    def _twilight_fractions(
        self, midnight: datetime.datetime, location: ObserverLocation
    ) -> tuple[float | None, float | None]:
        key = (
            midnight.astimezone(datetime.timezone.utc).replace(second=0, microsecond=0),
            location.latitude_deg,
            location.longitude_deg,
        )
        cached = self._almanac_cache.get(key)
        if cached is not None:
            return cached
        if len(self._almanac_cache) > ALMANAC_CACHE_SIZE:
            logger.debug("Flushing almanac cache (%d entries)", len(self._almanac_cache))
            self._almanac_cache.clear()
        fractions = self._almanac.twilight_fractions(midnight, location)
        self._almanac_cache[key] = fractions
        return fractions

    def _dawn_dusk(
        self, when: datetime.datetime | None, location: ObserverLocation
    ) -> tuple[datetime.datetime | None, datetime.datetime | None]:
        startup = location.to_local(when)
        midnight = location.local_midnight(startup)
        now = as_utc(startup)
        dawn = None
        dusk = None
        for _ in range(MAX_DAWN_DUSK_DAYS):
            dawn_frac, dusk_frac = self._twilight_fractions(midnight, location)
            if (dawn is None or as_utc(dawn) <= now) and dawn_frac is not None:
                dawn = add_minutes(midnight, dawn_frac * 24.0 * 60.0 + self._options.dawn_offset_min)
            if (dusk is None or as_utc(dusk) <= now) and dusk_frac is not None:
                dusk = add_minutes(midnight, dusk_frac * 24.0 * 60.0 + self._options.dusk_offset_min)
            if dawn is not None and as_utc(dawn) > now and dusk is not None and as_utc(dusk) > now:
                break
            next_date = midnight.date() + datetime.timedelta(days=1)
            midnight = datetime.datetime.combine(next_date, midnight.timetz())
        if dawn is not None and as_utc(dawn) <= now:
            dawn = None
        if dusk is not None and as_utc(dusk) <= now:
            dusk = None
        return dawn, dusk

    def dawn_dusk(
        self, when: datetime.datetime | None, location: ObserverLocation
    ) -> tuple[datetime.datetime | None, datetime.datetime | None]:
        """Next astronomical dawn and dusk strictly after ``when``, local time."""
        with self._lock:
            return self._dawn_dusk(when, location)

    def _night_key(self, location: ObserverLocation) -> tuple:
        return (
            location.key,
            abs(self._options.pre_dawn_min),
            self._options.dawn_offset_min,
            self._options.dusk_offset_min,
        )

    def _compute_night_time(
        self, t: datetime.datetime, location: ObserverLocation
    ) -> NightTimeAnswer:
        dawn, dusk = self._dawn_dusk(t, location)
        key = self._night_key(location)
        pre_dawn_s = 60.0 * abs(self._options.pre_dawn_min)

        if dawn is None and dusk is None:
            # No twilight crossing for days: permanent night or permanent day
            night = self._almanac.sun_altitude(t, location) <= ASTRONOMICAL_TWILIGHT_DEG
            return NightTimeAnswer(
                night=night,
                next_success=None,
                query_time=t,
                valid_until=add_seconds(t, 24 * 3600.0),
                key=key,
            )

        early_dawn = add_seconds(dawn, -pre_dawn_s) if dawn is not None else None
        dawn_first = dawn is not None and (dusk is None or as_utc(dawn) < as_utc(dusk))
        before_early_dawn = early_dawn is not None and as_utc(t) <= as_utc(early_dawn)
        night = dawn_first and before_early_dawn

        if dawn_first:
            valid_until = early_dawn if before_early_dawn else dawn
        else:
            valid_until = dusk
        return NightTimeAnswer(
            night=night,
            next_success=None if night else dusk,
            query_time=t,
            valid_until=valid_until,
            key=key,
        )

    def is_night_time(
        self, when: datetime.datetime | None, location: ObserverLocation
    ) -> tuple[bool, datetime.datetime | None]:
        """Whether ``when`` lies in the margin-adjusted astronomical night.

        When it does not, the second value hints at the earliest time it
        could, which is the next dusk.
        """
        t = location.to_local(when)
        with self._lock:
            last = self._last
            if (
                last is not None
                and last.key == self._night_key(location)
                and last.valid_until is not None
                and as_utc(last.query_time) <= as_utc(t) < as_utc(last.valid_until)
            ):
                answer = last
            else:
                answer = self._compute_night_time(t, location)
                logger.debug(
                    "Night time at %s is %s (valid until %s)",
                    t.isoformat(),
                    answer.night,
                    answer.valid_until,
                )
                self._last = answer
        next_success = answer.next_success
        if next_success is not None:
            next_success = next_success.astimezone(t.tzinfo)
        return answer.night, next_success
