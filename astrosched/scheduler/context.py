from dataclasses import dataclass, field
import datetime
from typing import Callable

from astrosched.errors import ConfigError
from .ephemeris import AnalyticEphemeris, Ephemeris, get_ephemeris
from .horizon import ArtificialHorizon, horizon_from_config
from .twilight import Almanac, TwilightCache
from .types import ObserverLocation, SchedulerOptions


@dataclass
class SchedulingContext:
    """Everything a job needs besides its own settings.

    The twilight cache is shared by every job built on this context.
    """

    location: ObserverLocation
    ephemeris: Ephemeris
    options: SchedulerOptions
    twilight: TwilightCache
    horizon: ArtificialHorizon | None = None
    clock: Callable[[], datetime.datetime] | None = field(default=None, repr=False)

    def now(self) -> datetime.datetime:
        if self.clock is not None:
            return self.location.to_local(self.clock())
        return self.location.now()


def options_from_config(config) -> SchedulerOptions:
    min_limit = float(config.min_altitude_limit_deg)
    max_limit = float(config.max_altitude_limit_deg)
    if not -90.0 <= min_limit <= max_limit <= 90.0:
        raise ConfigError(f"Invalid altitude limits: {min_limit} .. {max_limit}")
    step = int(config.step_min)
    if step <= 0:
        raise ConfigError(f"Search step must be positive, got {step}")
    return SchedulerOptions(
        enable_altitude_limits=bool(config.enable_altitude_limits),
        min_altitude_limit_deg=min_limit,
        max_altitude_limit_deg=max_limit,
        lead_time_min=float(config.lead_time_min),
        pre_dawn_min=float(config.pre_dawn_min),
        dawn_offset_min=float(config.dawn_offset_min),
        dusk_offset_min=float(config.dusk_offset_min),
        setting_altitude_cutoff_deg=float(config.setting_altitude_cutoff_deg),
        step_min=step,
    )


def location_from_config(config) -> ObserverLocation:
    if config.site_latitude_deg is None or config.site_longitude_deg is None:
        raise ConfigError("Site latitude/longitude are required ([site] in config)")
    return ObserverLocation(
        latitude_deg=float(config.site_latitude_deg),
        longitude_deg=float(config.site_longitude_deg),
        elevation_m=config.site_elevation_m,
        timezone=config.site_timezone,
        name=config.site_name,
    )


def make_context(
    location: ObserverLocation,
    options: SchedulerOptions | None = None,
    ephemeris: Ephemeris | None = None,
    horizon: ArtificialHorizon | None = None,
    twilight: TwilightCache | None = None,
    clock: Callable[[], datetime.datetime] | None = None,
) -> SchedulingContext:
    if twilight is not None:
        # A shared twilight cache decides night time for every job on the context
        if options is None:
            options = twilight.options
        elif options != twilight.options:
            raise ConfigError("Scheduler options differ from those of the shared twilight cache")
    options = options or SchedulerOptions()
    ephemeris = ephemeris or AnalyticEphemeris()
    twilight = twilight or TwilightCache(Almanac(ephemeris), options)
    return SchedulingContext(
        location=location,
        ephemeris=ephemeris,
        options=options,
        twilight=twilight,
        horizon=horizon,
        clock=clock,
    )


def build_context(config, location: ObserverLocation | None = None) -> SchedulingContext:
    return make_context(
        location=location or location_from_config(config),
        options=options_from_config(config),
        ephemeris=get_ephemeris(config),
        horizon=horizon_from_config(config),
    )
