from .context import SchedulingContext, build_context, make_context, options_from_config
from .horizon import ArtificialHorizon, HorizonRegion
from .job import SchedulerJob
from .ordering import (
    decreasing_altitude_key,
    decreasing_score_key,
    increasing_priority_key,
    increasing_startup_time_key,
)
from .twilight import Almanac, TwilightCache
from .types import (
    BAD_SCORE,
    CompletionCondition,
    JobStage,
    JobStatus,
    ObserverLocation,
    SchedulerOptions,
    StartupCondition,
)

__all__ = [
    "SchedulingContext",
    "build_context",
    "make_context",
    "options_from_config",
    "ArtificialHorizon",
    "HorizonRegion",
    "SchedulerJob",
    "decreasing_altitude_key",
    "decreasing_score_key",
    "increasing_priority_key",
    "increasing_startup_time_key",
    "Almanac",
    "TwilightCache",
    "BAD_SCORE",
    "CompletionCondition",
    "JobStage",
    "JobStatus",
    "ObserverLocation",
    "SchedulerOptions",
    "StartupCondition",
]
