from dataclasses import dataclass
import datetime
import enum
from zoneinfo import ZoneInfo

BAD_SCORE = -1000
MIN_ALTITUDE = 15.0


class JobStatus(enum.Enum):
    IDLE = 0
    EVALUATION = 1
    SCHEDULED = 2
    BUSY = 3
    ERROR = 4
    ABORTED = 5
    INVALID = 6
    COMPLETE = 7


class JobStage(enum.Enum):
    IDLE = 0
    SLEWING = 1
    SLEW_COMPLETE = 2
    FOCUSING = 3
    FOCUS_COMPLETE = 4
    ALIGNING = 5
    ALIGN_COMPLETE = 6
    RESLEWING = 7
    RESLEWING_COMPLETE = 8
    POSTALIGN_FOCUSING = 9
    POSTALIGN_FOCUSING_COMPLETE = 10
    GUIDING = 11
    GUIDING_COMPLETE = 12
    CAPTURING = 13
    COMPLETE = 14


class StartupCondition(enum.Enum):
    ASAP = 0
    CULMINATION = 1
    AT = 2


class CompletionCondition(enum.Enum):
    SEQUENCE = 0
    REPEAT = 1
    LOOP = 2
    AT = 3


@dataclass(frozen=True)
class ObserverLocation:
    latitude_deg: float
    longitude_deg: float
    elevation_m: float | None = None
    timezone: str | None = None
    name: str | None = None

    @property
    def tzinfo(self) -> datetime.tzinfo:
        if self.timezone is None:
            return datetime.timezone.utc
        return ZoneInfo(self.timezone)

    @property
    def key(self) -> tuple:
        return (self.latitude_deg, self.longitude_deg, self.timezone)

    def now(self) -> datetime.datetime:
        return datetime.datetime.now(self.tzinfo)

    def to_local(self, when: datetime.datetime | None) -> datetime.datetime:
        """Normalise a time to this site's local time.

        ``None`` means now. Naive datetimes are taken as local wall-clock
        time, aware ones (UTC or otherwise) are converted.
        """
        if when is None:
            return self.now()
        if when.tzinfo is None:
            return when.replace(tzinfo=self.tzinfo)
        return when.astimezone(self.tzinfo)

    def to_utc(self, when: datetime.datetime | None) -> datetime.datetime:
        return self.to_local(when).astimezone(datetime.timezone.utc)

    def local_midnight(self, when: datetime.datetime | None) -> datetime.datetime:
        # Exact midnight is ambiguous around some DST rules, offset by a minute
        local = self.to_local(when)
        return datetime.datetime.combine(
            local.date(), datetime.time(0, 1), tzinfo=self.tzinfo
        )


def as_utc(when: datetime.datetime) -> datetime.datetime:
    # Aware datetimes sharing a zone compare and subtract by wall clock, so
    # DST gaps and folds are only handled once converted to UTC
    return when.astimezone(datetime.timezone.utc)


def add_seconds(when: datetime.datetime, seconds: float) -> datetime.datetime:
    """Shift an aware datetime by absolute elapsed time, keeping its zone."""
    utc = as_utc(when) + datetime.timedelta(seconds=seconds)
    return utc.astimezone(when.tzinfo)


def add_minutes(when: datetime.datetime, minutes: float) -> datetime.datetime:
    return add_seconds(when, minutes * 60.0)


def seconds_between(start: datetime.datetime, end: datetime.datetime) -> float:
    return (as_utc(end) - as_utc(start)).total_seconds()


@dataclass(frozen=True)
class SchedulerOptions:
    enable_altitude_limits: bool = False
    min_altitude_limit_deg: float = 0.0
    max_altitude_limit_deg: float = 90.0
    lead_time_min: float = 5.0
    pre_dawn_min: float = 60.0
    dawn_offset_min: float = 0.0
    dusk_offset_min: float = 0.0
    setting_altitude_cutoff_deg: float = 3.0
    step_min: int = 1


@dataclass(frozen=True)
class HorizontalPosition:
    altitude_deg: float
    azimuth_deg: float
    lst_hours: float
    ra_hours: float
    dec_deg: float

    @property
    def hour_angle_offset(self) -> float:
        """Hours since meridian crossing, reduced to [0, 24)."""
        return (self.lst_hours - self.ra_hours) % 24.0

    @property
    def is_setting(self) -> bool:
        return 0.0 <= self.hour_angle_offset < 12.0


@dataclass(frozen=True)
class MoonPosition:
    altitude_deg: float
    azimuth_deg: float
    ra_hours: float
    dec_deg: float
    illumination: float
