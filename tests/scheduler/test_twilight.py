from concurrent.futures import ThreadPoolExecutor
import datetime
from unittest.mock import patch

import pytest

from astrosched.scheduler.ephemeris import AnalyticEphemeris
from astrosched.scheduler.twilight import ALMANAC_CACHE_SIZE, Almanac, TwilightCache
from astrosched.scheduler.types import ObserverLocation, SchedulerOptions, add_minutes


def _cache(**options):
    return TwilightCache(Almanac(AnalyticEphemeris()), SchedulerOptions(**options))


def _local(location, *args):
    return datetime.datetime(*args, tzinfo=location.tzinfo)


def test_winter_dawn_and_dusk(denver):
    cache = _cache()
    noon = _local(denver, 2024, 12, 21, 12, 0)

    dawn, dusk = cache.dawn_dusk(noon, denver)

    assert dusk.date() == datetime.date(2024, 12, 21)
    assert 17 <= dusk.hour < 19
    assert dawn.date() == datetime.date(2024, 12, 22)
    assert 5 <= dawn.hour < 7
    assert noon < dusk < dawn


def test_dawn_dusk_are_strictly_after_query(denver):
    cache = _cache()
    start = _local(denver, 2024, 12, 20, 0, 0)
    for hour in range(0, 48, 3):
        when = add_minutes(start, hour * 60)
        dawn, dusk = cache.dawn_dusk(when, denver)
        assert dawn > when
        assert dusk > when
        # Neither event is more than a day away at mid latitudes
        assert (dawn - when).total_seconds() <= 24 * 3600
        assert (dusk - when).total_seconds() <= 24 * 3600


def test_dawn_dusk_offsets_are_minutes(denver):
    noon = _local(denver, 2024, 12, 21, 12, 0)
    dawn, dusk = _cache().dawn_dusk(noon, denver)
    shifted_dawn, shifted_dusk = _cache(dawn_offset_min=-30, dusk_offset_min=15).dawn_dusk(noon, denver)

    assert (dawn - shifted_dawn).total_seconds() == pytest.approx(1800, abs=1)
    assert (shifted_dusk - dusk).total_seconds() == pytest.approx(900, abs=1)


def test_winter_midnight_is_night(denver):
    night, hint = _cache().is_night_time(_local(denver, 2024, 12, 21, 0, 0), denver)
    assert night
    assert hint is None


def test_afternoon_is_not_night_and_hints_dusk(denver):
    cache = _cache()
    afternoon = _local(denver, 2024, 12, 21, 15, 0)

    night, hint = cache.is_night_time(afternoon, denver)

    assert not night
    _, dusk = cache.dawn_dusk(afternoon, denver)
    assert hint == dusk


def test_pre_dawn_margin_ends_the_night_early(denver):
    # Astronomical dawn is around 05:45 local time in late December
    five_am = _local(denver, 2024, 12, 21, 5, 0)
    assert not _cache(pre_dawn_min=60).is_night_time(five_am, denver)[0]
    assert _cache(pre_dawn_min=0).is_night_time(five_am, denver)[0]


def test_night_answer_is_reused(denver):
    cache = _cache()
    midnight = _local(denver, 2024, 12, 21, 0, 0)

    with patch.object(cache, "_compute_night_time", wraps=cache._compute_night_time) as spy:
        for minutes in (0, 30, 120, 180):
            assert cache.is_night_time(add_minutes(midnight, minutes), denver)[0]
        assert spy.call_count == 1

        # Earlier than the memoised query time
        cache.is_night_time(add_minutes(midnight, -60), denver)
        assert spy.call_count == 2


def test_option_change_invalidates_night_answer(denver):
    cache = _cache(pre_dawn_min=0)
    five_am = _local(denver, 2024, 12, 21, 5, 0)
    assert cache.is_night_time(five_am, denver)[0]

    cache.options = SchedulerOptions(pre_dawn_min=60)
    assert not cache.is_night_time(five_am, denver)[0]


def test_memoised_answers_match_fresh_ones(denver):
    cache = _cache()
    start = _local(denver, 2024, 12, 20, 12, 0)
    for step in range(0, 36 * 60, 17):
        when = add_minutes(start, step)
        assert cache.is_night_time(when, denver)[0] == _cache().is_night_time(when, denver)[0], when


def test_almanac_cache_is_bounded(denver):
    cache = _cache()
    start = _local(denver, 2024, 12, 1, 12, 0)
    for day in range(20):
        cache.dawn_dusk(add_minutes(start, day * 24 * 60), denver)
    assert len(cache._almanac_cache) <= ALMANAC_CACHE_SIZE + 1


def test_shared_cache_from_many_threads(denver):
    greenwich = ObserverLocation(latitude_deg=45.0, longitude_deg=0.0)
    start = _local(denver, 2024, 12, 20, 12, 0)
    queries = []
    for step in range(0, 36 * 60, 23):
        when = add_minutes(start, step)
        queries.append((when, denver))
        queries.append((when.astimezone(datetime.timezone.utc), greenwich))

    def ask(cache, query):
        when, location = query
        return cache.is_night_time(when, location), cache.dawn_dusk(when, location)

    reference = _cache()
    expected = [ask(reference, q) for q in queries] * 4

    shared = _cache()
    with ThreadPoolExecutor(max_workers=8) as pool:
        answers = list(pool.map(lambda q: ask(shared, q), queries * 4))

    assert answers == expected
    assert len(shared._almanac_cache) <= ALMANAC_CACHE_SIZE + 1


def test_no_night_when_pre_dawn_margin_exceeds_short_night():
    # Around the June solstice at 45N astronomical night lasts about three hours
    location = ObserverLocation(latitude_deg=45.0, longitude_deg=0.0)
    start = datetime.datetime(2024, 6, 20, 20, 0, tzinfo=datetime.timezone.utc)

    assert _cache(pre_dawn_min=0).is_night_time(add_minutes(start, 240), location)[0]

    cache = _cache(pre_dawn_min=240)
    for minutes in range(0, 8 * 60, 10):
        when = add_minutes(start, minutes)
        night, hint = cache.is_night_time(when, location)
        assert not night, when
        assert hint is not None and hint > when


def test_polar_summer_is_never_night():
    location = ObserverLocation(latitude_deg=70.0, longitude_deg=0.0)
    midnight = datetime.datetime(2024, 6, 21, 0, 0, tzinfo=datetime.timezone.utc)
    cache = _cache()

    assert cache.dawn_dusk(midnight, location) == (None, None)
    assert cache.is_night_time(midnight, location) == (False, None)


def test_permanent_night_without_twilight_crossings(synthetic_ephemeris):
    # Sun held far below the horizon
    cache = TwilightCache(Almanac(synthetic_ephemeris(sun=(12.0, -60.0))), SchedulerOptions())
    location = ObserverLocation(latitude_deg=40.0, longitude_deg=0.0)
    when = datetime.datetime(2024, 6, 21, 12, 0, tzinfo=datetime.timezone.utc)

    assert cache.dawn_dusk(when, location) == (None, None)
    assert cache.is_night_time(when, location) == (True, None)


def test_almanac_fractions_order_in_winter(denver):
    almanac = Almanac(AnalyticEphemeris())
    dawn, dusk = almanac.twilight_fractions(denver.local_midnight(_local(denver, 2024, 12, 21, 12, 0)), denver)
    assert 0.0 < dawn < 0.5 < dusk < 1.0
