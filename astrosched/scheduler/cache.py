import datetime
import logging
from dataclasses import dataclass

from .types import add_seconds, as_utc

logger = logging.getLogger(__name__)

START_TIME_CACHE_SIZE = 10
SEARCH_HORIZON_S = 24 * 3600


def search_horizon(
    start: datetime.datetime, until: datetime.datetime | None
) -> datetime.datetime:
    """End of a search from ``start``: ``until``, but never more than a day ahead."""
    one_day = add_seconds(start, SEARCH_HORIZON_S)
    if until is None or as_utc(until) > as_utc(one_day):
        return one_day
    return until


@dataclass(frozen=True)
class StartTimeComputation:
    start: datetime.datetime
    until: datetime.datetime
    result: datetime.datetime | None


class StartTimeCache:
    """Results of earlier start time searches for a single job.

    Not thread-safe: searches for one job must be serialised by the caller.
    """

    def __init__(self):
        self._computations: list[StartTimeComputation] = []

    def __len__(self) -> int:
        return len(self._computations)

    def clear(self) -> None:
        self._computations.clear()

    def lookup(
        self, start: datetime.datetime, until: datetime.datetime | None
    ) -> tuple[bool, datetime.datetime | None, datetime.datetime | None]:
        """Return (hit, result, new_start) for a search from ``start``.

        A hit with a result, or with no result over a range covering
        ``until``, is final. A hit with ``new_start`` set only tells the
        caller that nothing qualifies before ``new_start``.
        """
        here = as_utc(start)
        horizon = as_utc(search_horizon(start, until))
        for c in self._computations:
            if here < as_utc(c.start) or here >= as_utc(c.until):
                continue
            if c.result is not None and here >= as_utc(c.result):
                continue
            if c.result is not None and as_utc(c.result) >= horizon:
                # Nothing qualifies before the result, hence before the horizon
                return True, None, None
            if c.result is not None or horizon <= as_utc(c.until):
                return True, c.result, None
            return True, None, c.until
        return False, None, None

    def store(
        self,
        start: datetime.datetime,
        until: datetime.datetime | None,
        result: datetime.datetime | None,
    ) -> None:
        if len(self._computations) > START_TIME_CACHE_SIZE:
            logger.debug("Flushing start time cache (%d entries)", len(self._computations))
            self._computations.clear()

        end = search_horizon(start, until)
        self._computations.append(StartTimeComputation(start=start, until=end, result=result))
