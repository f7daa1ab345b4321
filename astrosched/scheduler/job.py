import datetime
import logging
from typing import Callable

from . import scoring, search
from .cache import StartTimeCache, search_horizon
from .constraints import has_altitude_constraint, satisfies_altitude_constraint
from .context import SchedulingContext
from .formatters import JobSnapshot, snapshot_job
from .resolver import find_altitude
from .types import (
    CompletionCondition,
    JobStage,
    JobStatus,
    StartupCondition,
    add_seconds,
    as_utc,
    seconds_between,
)

logger = logging.getLogger(__name__)

# A fixed startup time missed by more than this is not attempted anymore
MISSED_START_GRACE_S = 500
# A fixed startup time closer than this still counts as upcoming for end searches
START_AT_END_MARGIN_S = 60

ChangeCallback = Callable[["SchedulerJob", str], None]


class SchedulerJob:
    """One observation job: its target, constraints, timing and state.

    Setters keep the derived fields consistent and notify subscribers with
    the name of the field that changed. Searches on a job are not
    thread-safe; confine them to one thread per job.
    """

    def __init__(self, context: SchedulingContext, name: str = ""):
        self.context = context
        self._listeners: list[ChangeCallback] = []
        self._cache = StartTimeCache()

        self._name = name
        self._position_angle = -1.0
        self._ra0_hours = 0.0
        self._dec0_deg = 0.0
        self._ra_hours = 0.0
        self._dec_deg = 0.0

        self._file_startup_condition = StartupCondition.ASAP
        self._file_startup_time: datetime.datetime | None = None
        self._startup_condition = StartupCondition.ASAP
        self._startup_time: datetime.datetime | None = None
        self._completion_condition = CompletionCondition.SEQUENCE
        self._completion_time: datetime.datetime | None = None
        self.greedy_completion_time: datetime.datetime | None = None
        self._estimated_time = -1
        self._lead_time = 0
        self._score = 0
        self._priority = 10
        self._culmination_offset = 0

        self._min_altitude: float | None = None
        self._min_moon_separation: float | None = None
        self._enforce_weather = False
        self._enforce_twilight = False
        self._enforce_artificial_horizon = False
        self.in_sequence_focus = False
        self.light_frames_required = False

        self._sequence_count = 0
        self._completed_count = 0
        self._repeats_required = 1
        self._repeats_remaining = 1

        self._state = JobStatus.IDLE
        self._stage = JobStage.IDLE
        self.state_time = context.now()
        self.last_abort_time: datetime.datetime | None = None
        self.last_error_time: datetime.datetime | None = None
        self.stop_reason = ""
        self.initial_filter = ""

        self.next_dawn: datetime.datetime | None = None
        self.next_dusk: datetime.datetime | None = None
        self.altitude_at_startup = 0.0
        self.is_setting_at_startup = False
        self.altitude_at_completion = 0.0
        self.is_setting_at_completion = False

        self._refresh_completion()

    def __repr__(self) -> str:
        return (
            f"SchedulerJob(name={self._name!r}, state={self._state.name}, "
            f"ra0={self._ra0_hours:.4f}h, dec0={self._dec0_deg:+.4f}, score={self._score})"
        )

    # -- notifications

    def subscribe(self, callback: ChangeCallback) -> None:
        self._listeners.append(callback)

    def unsubscribe(self, callback: ChangeCallback) -> None:
        self._listeners.remove(callback)

    def _changed(self, field: str) -> None:
        for callback in list(self._listeners):
            callback(self, field)

    # -- helpers

    def _now(self) -> datetime.datetime:
        return self.context.now()

    def _local(self, when: datetime.datetime | None) -> datetime.datetime:
        if when is None:
            return self._now()
        return self.context.location.to_local(when)

    def find_altitude(self, when: datetime.datetime | None = None) -> tuple[float, bool]:
        ctx = self.context
        return find_altitude(self._ra0_hours, self._dec0_deg, self._local(when), ctx.location, ctx.ephemeris)

    def _refresh_startup_altitude(self) -> None:
        self.altitude_at_startup, self.is_setting_at_startup = self.find_altitude(self._startup_time)

    def _refresh_completion_altitude(self) -> None:
        self.altitude_at_completion, self.is_setting_at_completion = self.find_altitude(self._completion_time)

    def _refresh_dawn_dusk(self) -> None:
        self.next_dawn, self.next_dusk = self.context.twilight.dawn_dusk(
            self._local(self._startup_time), self.context.location
        )

    def _reference_start(self) -> datetime.datetime:
        return self._startup_time if self._startup_time is not None else self._now()

    def _refresh_completion(self) -> None:
        if self._completion_condition is CompletionCondition.LOOP:
            self._completion_time = None
        elif self._completion_condition is CompletionCondition.AT:
            if self._completion_time is None:
                self._completion_time = add_seconds(self._reference_start(), max(self._estimated_time, 0))
        else:
            self._completion_time = add_seconds(self._reference_start(), max(self._estimated_time, 0))
        self._refresh_completion_altitude()
        self._check_invariants()

    def _check_invariants(self) -> None:
        cond = self._completion_condition
        assert (self._completion_time is not None) == (cond is not CompletionCondition.LOOP), (
            "Valid completion time implies job is AT/REPEAT/SEQUENCE, else job is LOOP."
        )
        if cond is CompletionCondition.LOOP or cond is CompletionCondition.AT:
            assert self._repeats_required == 0, "Looping and fixed-time jobs have no repeats"
        elif cond is CompletionCondition.SEQUENCE:
            assert self._repeats_required == 1, "Sequence jobs run exactly once"
        else:
            assert self._repeats_required >= 1, "Repeat jobs run at least once"

    def clear_cache(self) -> None:
        self._cache.clear()

    # -- identity and target

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str):
        self._name = value
        self._changed("name")

    @property
    def position_angle(self) -> float:
        return self._position_angle

    @position_angle.setter
    def position_angle(self, value: float):
        self._position_angle = value
        self._changed("position_angle")

    @property
    def ra0_hours(self) -> float:
        return self._ra0_hours

    @property
    def dec0_deg(self) -> float:
        return self._dec0_deg

    @property
    def apparent_ra_dec(self) -> tuple[float, float]:
        return self._ra_hours, self._dec_deg

    def set_target_coords(
        self, ra0_hours: float, dec0_deg: float, when: datetime.datetime | None = None
    ) -> None:
        """Set the J2000 target and refresh its apparent position at ``when``."""
        if not -90.0 <= dec0_deg <= 90.0:
            raise ValueError(f"Declination out of range: {dec0_deg}")
        self._ra0_hours = ra0_hours % 24.0
        self._dec0_deg = dec0_deg
        self._ra_hours, self._dec_deg = self.context.ephemeris.apparent_ra_dec(
            self._ra0_hours, self._dec0_deg, self._local(when)
        )
        self._refresh_startup_altitude()
        self._refresh_completion_altitude()
        self.clear_cache()
        self._changed("target")

    # -- startup

    @property
    def file_startup_condition(self) -> StartupCondition:
        return self._file_startup_condition

    @file_startup_condition.setter
    def file_startup_condition(self, value: StartupCondition):
        self._file_startup_condition = value
        self._changed("file_startup_condition")

    @property
    def file_startup_time(self) -> datetime.datetime | None:
        return self._file_startup_time

    @file_startup_time.setter
    def file_startup_time(self, value: datetime.datetime | None):
        self._file_startup_time = None if value is None else self._local(value)
        self._changed("file_startup_time")

    @property
    def startup_condition(self) -> StartupCondition:
        return self._startup_condition

    @startup_condition.setter
    def startup_condition(self, value: StartupCondition):
        self._startup_condition = value
        if value is StartupCondition.ASAP:
            self._startup_time = None
        self.estimated_time = self._estimated_time
        self._refresh_dawn_dusk()
        self._changed("startup_condition")

    @property
    def startup_time(self) -> datetime.datetime | None:
        return self._startup_time

    @startup_time.setter
    def startup_time(self, value: datetime.datetime | None):
        self._startup_time = None if value is None else self._local(value)
        if self._startup_time is not None:
            self._startup_condition = StartupCondition.AT
        else:
            self._startup_condition = self._file_startup_condition
        self._refresh_startup_altitude()
        self.estimated_time = self._estimated_time
        self._refresh_dawn_dusk()
        self._changed("startup_time")

    # -- completion

    @property
    def completion_condition(self) -> CompletionCondition:
        return self._completion_condition

    @completion_condition.setter
    def completion_condition(self, value: CompletionCondition):
        if value is not CompletionCondition.AT and self._completion_condition is CompletionCondition.AT:
            # A fixed completion time does not survive a change of condition
            self._completion_time = None
        self._completion_condition = value
        if value is CompletionCondition.LOOP or value is CompletionCondition.AT:
            self._repeats_required = 0
        elif value is CompletionCondition.SEQUENCE:
            self._repeats_required = 1
        elif value is CompletionCondition.REPEAT and self._repeats_required == 0:
            self._repeats_required = 1
        if value is CompletionCondition.LOOP:
            self._estimated_time = -1
        self._refresh_completion()
        self._changed("completion_condition")

    @property
    def completion_time(self) -> datetime.datetime | None:
        return self._completion_time

    @completion_time.setter
    def completion_time(self, value: datetime.datetime | None):
        self.greedy_completion_time = None
        if value is not None:
            value = self._local(value)
            if self._completion_condition is not CompletionCondition.AT:
                self._completion_time = None
                self._completion_condition = CompletionCondition.AT
                self._repeats_required = 0
            self._completion_time = value
            self.estimated_time = -1
        elif self._completion_condition is CompletionCondition.LOOP:
            self._completion_time = None
            self.estimated_time = -1
        else:
            # Deduce completion from startup and duration
            self._completion_time = add_seconds(self._reference_start(), max(self._estimated_time, 0))
            self._refresh_completion_altitude()
        self._check_invariants()
        self._changed("completion_time")

    @property
    def estimated_time(self) -> int:
        return self._estimated_time

    @estimated_time.setter
    def estimated_time(self, value: int):
        """Job duration in seconds, -1 when unknown.

        Fixed startup and completion times imply the duration; otherwise the
        duration pushes the completion time from the startup time.
        """
        fixed_start = self._startup_condition is StartupCondition.AT and self._startup_time is not None
        if fixed_start and self._completion_condition is CompletionCondition.AT and self._completion_time is not None:
            self._estimated_time = int(seconds_between(self._startup_time, self._completion_time))
        else:
            self._estimated_time = int(value)
            if self._completion_condition not in (CompletionCondition.AT, CompletionCondition.LOOP):
                self._completion_time = add_seconds(self._reference_start(), max(self._estimated_time, 0))
        self._refresh_completion()
        self._changed("estimated_time")

    # -- repeats and counts

    @property
    def repeats_required(self) -> int:
        return self._repeats_required

    @repeats_required.setter
    def repeats_required(self, value: int):
        if value < 0:
            raise ValueError(f"Repeats must not be negative: {value}")
        self._repeats_required = value
        if value > 1:
            if self._completion_condition is not CompletionCondition.REPEAT:
                self.completion_condition = CompletionCondition.REPEAT
        elif value == 1:
            if self._completion_condition is not CompletionCondition.SEQUENCE:
                self.completion_condition = CompletionCondition.SEQUENCE
        elif self._completion_condition is CompletionCondition.SEQUENCE or self._completion_condition is CompletionCondition.REPEAT:
            self.completion_condition = CompletionCondition.LOOP
        self._check_invariants()
        self._changed("repeats_required")

    @property
    def repeats_remaining(self) -> int:
        return self._repeats_remaining

    @repeats_remaining.setter
    def repeats_remaining(self, value: int):
        self._repeats_remaining = value
        self._changed("repeats_remaining")

    @property
    def sequence_count(self) -> int:
        return self._sequence_count

    @sequence_count.setter
    def sequence_count(self, value: int):
        self._sequence_count = value
        self._changed("sequence_count")

    @property
    def completed_count(self) -> int:
        return self._completed_count

    @completed_count.setter
    def completed_count(self, value: int):
        self._completed_count = value
        self._changed("completed_count")

    # -- ranking inputs

    @property
    def lead_time(self) -> int:
        return self._lead_time

    @lead_time.setter
    def lead_time(self, value: int):
        self._lead_time = value
        self._changed("lead_time")

    @property
    def score(self) -> int:
        return self._score

    @score.setter
    def score(self, value: int):
        self._score = value
        self._changed("score")

    @property
    def priority(self) -> int:
        return self._priority

    @priority.setter
    def priority(self, value: int):
        self._priority = value
        self._changed("priority")

    @property
    def culmination_offset(self) -> int:
        return self._culmination_offset

    @culmination_offset.setter
    def culmination_offset(self, value: int):
        self._culmination_offset = value
        self.clear_cache()
        self._changed("culmination_offset")

    # -- constraints

    @property
    def min_altitude(self) -> float | None:
        return self._min_altitude

    @min_altitude.setter
    def min_altitude(self, value: float | None):
        self._min_altitude = value
        self.clear_cache()
        self._changed("min_altitude")

    @property
    def min_moon_separation(self) -> float | None:
        return self._min_moon_separation

    @min_moon_separation.setter
    def min_moon_separation(self, value: float | None):
        self._min_moon_separation = value
        self.clear_cache()
        self._changed("min_moon_separation")

    @property
    def enforce_weather(self) -> bool:
        return self._enforce_weather

    @enforce_weather.setter
    def enforce_weather(self, value: bool):
        self._enforce_weather = value
        self._changed("enforce_weather")

    @property
    def enforce_twilight(self) -> bool:
        return self._enforce_twilight

    @enforce_twilight.setter
    def enforce_twilight(self, value: bool):
        self._enforce_twilight = value
        self._refresh_dawn_dusk()
        self.clear_cache()
        self._changed("enforce_twilight")

    @property
    def enforce_artificial_horizon(self) -> bool:
        return self._enforce_artificial_horizon

    @enforce_artificial_horizon.setter
    def enforce_artificial_horizon(self, value: bool):
        self._enforce_artificial_horizon = value
        self.clear_cache()
        self._changed("enforce_artificial_horizon")

    # -- lifecycle

    @property
    def state(self) -> JobStatus:
        return self._state

    @state.setter
    def state(self, value: JobStatus):
        self._state = value
        self.state_time = self._now()

        if value is JobStatus.ERROR:
            self.last_error_time = self._now()
            logger.warning("Job '%s' failed", self._name)

        # Invalid or idle jobs start over from their declared startup, with a fresh estimate
        if value in (JobStatus.INVALID, JobStatus.IDLE):
            self.startup_condition = self._file_startup_condition
            self.startup_time = self._file_startup_time
            self.estimated_time = -1

        if value is JobStatus.ABORTED:
            self.last_abort_time = self._now()
            self.startup_condition = self._file_startup_condition

        self._changed("state")

    @property
    def stage(self) -> JobStage:
        return self._stage

    @stage.setter
    def stage(self, value: JobStage):
        self._stage = value
        self._changed("stage")

    def reset(self) -> None:
        self._state = JobStatus.IDLE
        self._stage = JobStage.IDLE
        self.state_time = self._now()
        self.last_abort_time = None
        self.last_error_time = None
        self._lead_time = 0
        self._startup_condition = self._file_startup_condition
        if self._file_startup_condition is StartupCondition.AT:
            self._startup_time = self._file_startup_time
        else:
            self._startup_time = None
        self._estimated_time = -1
        self._refresh_startup_altitude()
        self._refresh_dawn_dusk()
        self.greedy_completion_time = None
        self.stop_reason = ""
        self._repeats_remaining = self._repeats_required
        self._refresh_completion()
        self.clear_cache()
        self._changed("reset")

    # -- constraint evaluation

    def has_altitude_constraint(self) -> bool:
        return has_altitude_constraint(
            self._min_altitude,
            self._enforce_artificial_horizon,
            self.context.horizon,
            self.context.options,
        )

    def satisfies_altitude_constraint(self, azimuth: float, altitude: float) -> tuple[bool, str | None]:
        return satisfies_altitude_constraint(
            azimuth,
            altitude,
            self._min_altitude,
            self._enforce_artificial_horizon,
            self.context.horizon,
            self.context.options,
        )

    def is_night_time(self, when: datetime.datetime | None = None) -> tuple[bool, datetime.datetime | None]:
        return self.context.twilight.is_night_time(self._local(when), self.context.location)

    def altitude_score(self, when: datetime.datetime | None = None) -> tuple[int, float]:
        return scoring.altitude_score(self, self._local(when))

    def moon_separation_score(self, when: datetime.datetime | None = None) -> int:
        return scoring.moon_separation_score(self, self._local(when))

    def current_moon_separation(self) -> float:
        return scoring.moon_separation(self, self._now())

    def culmination_time(self, when: datetime.datetime | None = None) -> datetime.datetime | None:
        return search.culmination_time(self, self._local(when))

    # -- time window searches

    def get_next_possible_start_time(
        self,
        when: datetime.datetime | None = None,
        step_min: int | None = None,
        running_job: bool = False,
        until: datetime.datetime | None = None,
    ) -> datetime.datetime | None:
        """Earliest time at or after ``when`` at which the job may start.

        Job state is not considered; callers filter on it. Returns None when
        no time qualifies within a day, or before ``until``.
        """
        start = self._local(when)
        until = None if until is None else self._local(until)
        step = step_min or self.context.options.step_min

        if self._file_startup_condition is StartupCondition.AT and self._file_startup_time is not None:
            seconds_from_now = seconds_between(start, self._file_startup_time)
            if seconds_from_now < -MISSED_START_GRACE_S:
                return None
            if seconds_from_now > 0:
                start = self._file_startup_time

        # Can't start if we're past the finish time
        if self._completion_condition is CompletionCondition.AT:
            if self._completion_time is not None and as_utc(self._completion_time) < as_utc(start):
                return None

        if running_job:
            result, _ = search.next_constraint_transition(self, start, True, step, True, until)
            return result

        hit, result, new_start = self._cache.lookup(start, until)
        if hit:
            if new_start is None:
                logger.debug("Job '%s' start time from cache: %s", self._name, result)
                return result
            until = search_horizon(start, until)
            start = new_start
        result, _ = search.next_constraint_transition(self, start, True, step, False, until)
        self._cache.store(start, until, result)
        return result

    def get_next_end_time(
        self,
        when: datetime.datetime | None = None,
        step_min: int | None = None,
        until: datetime.datetime | None = None,
    ) -> tuple[datetime.datetime | None, str | None]:
        """Next time at or after ``when`` at which the job has to stop, and why."""
        start = self._local(when)
        until = None if until is None else self._local(until)
        step = step_min or self.context.options.step_min

        if self._file_startup_condition is StartupCondition.AT and self._file_startup_time is not None:
            if seconds_between(self._file_startup_time, start) < START_AT_END_MARGIN_S:
                return None, "before start-at time"

        if self._completion_condition is CompletionCondition.AT and self._completion_time is not None:
            if as_utc(self._completion_time) < as_utc(start):
                return None, "end-at time"
            result, reason = search.next_constraint_transition(self, start, False, step, False, until)
            if result is None or as_utc(result) > as_utc(self._completion_time):
                return self._completion_time, "end-at time"
            return result, reason

        return search.next_constraint_transition(self, start, False, step, False, until)

    def snapshot(self) -> JobSnapshot:
        return snapshot_job(self)
