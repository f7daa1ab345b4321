import datetime

from astrosched.scheduler.cache import START_TIME_CACHE_SIZE, StartTimeCache, search_horizon

S = datetime.datetime(2024, 12, 21, 0, 0, tzinfo=datetime.timezone.utc)


def _at(minutes):
    return S + datetime.timedelta(minutes=minutes)


def test_search_horizon_is_capped_at_a_day():
    assert search_horizon(S, None) == _at(24 * 60)
    assert search_horizon(S, _at(60)) == _at(60)
    assert search_horizon(S, _at(48 * 60)) == _at(24 * 60)


def test_empty_cache_misses():
    assert StartTimeCache().lookup(S, None) == (False, None, None)


def test_result_is_reused_for_later_starts_before_it():
    cache = StartTimeCache()
    cache.store(S, None, _at(90))

    assert cache.lookup(S, None) == (True, _at(90), None)
    assert cache.lookup(_at(30), None) == (True, _at(90), None)
    # At or past the result the entry says nothing
    assert cache.lookup(_at(90), None) == (False, None, None)
    assert cache.lookup(_at(120), None) == (False, None, None)


def test_result_past_horizon_means_nothing_before_it():
    cache = StartTimeCache()
    cache.store(S, None, _at(600))

    assert cache.lookup(S, _at(60)) == (True, None, None)
    assert cache.lookup(_at(30), _at(600)) == (True, None, None)
    assert cache.lookup(_at(30), _at(601)) == (True, _at(600), None)


def test_entries_compare_by_instant():
    cache = StartTimeCache()
    mountain = datetime.timezone(datetime.timedelta(hours=-7))
    cache.store(S, None, _at(90))
    assert cache.lookup(_at(30).astimezone(mountain), None) == (True, _at(90), None)


def test_starts_before_entry_miss():
    cache = StartTimeCache()
    cache.store(_at(60), None, _at(90))
    assert cache.lookup(S, None) == (False, None, None)


def test_empty_result_covering_horizon_is_final():
    cache = StartTimeCache()
    cache.store(S, _at(120), None)
    assert cache.lookup(_at(30), _at(60)) == (True, None, None)
    assert cache.lookup(_at(30), _at(120)) == (True, None, None)


def test_empty_result_short_of_horizon_resumes():
    cache = StartTimeCache()
    cache.store(S, _at(120), None)
    assert cache.lookup(_at(30), _at(300)) == (True, None, _at(120))
    assert cache.lookup(_at(30), None) == (True, None, _at(120))


def test_store_caps_range_at_a_day():
    cache = StartTimeCache()
    cache.store(S, _at(48 * 60), None)
    assert cache.lookup(_at(23 * 60), _at(30 * 60)) == (True, None, _at(24 * 60))


def test_cache_is_flushed_when_full():
    cache = StartTimeCache()
    for i in range(START_TIME_CACHE_SIZE + 1):
        cache.store(_at(i), None, _at(i + 10))
    assert len(cache) == START_TIME_CACHE_SIZE + 1

    cache.store(_at(100), None, None)
    assert len(cache) == 1


def test_clear():
    cache = StartTimeCache()
    cache.store(S, None, _at(10))
    cache.clear()
    assert len(cache) == 0
    assert cache.lookup(S, None) == (False, None, None)
