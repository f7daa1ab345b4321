import datetime
from typing import Callable


def decreasing_score_key(job) -> int:
    return -job.score


def increasing_priority_key(job) -> int:
    return job.priority


def increasing_startup_time_key(job) -> tuple:
    # Jobs without a startup time sort last
    if job.startup_time is None:
        return (1, 0.0)
    return (0, job.startup_time.timestamp())


def decreasing_altitude_key(when: datetime.datetime | None = None) -> Callable:
    """Sort key putting setting targets first, lowest first, then rising targets, highest first.

    Without ``when`` the altitude cached at each job's startup is used.
    """

    def key(job) -> tuple:
        if when is None:
            altitude, setting = job.altitude_at_startup, job.is_setting_at_startup
        else:
            altitude, setting = job.find_altitude(when)
        if setting:
            return (0, altitude)
        return (1, -altitude)

    return key
