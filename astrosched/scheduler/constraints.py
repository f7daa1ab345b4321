from .horizon import ArtificialHorizon
from .types import SchedulerOptions


def has_altitude_constraint(
    min_altitude: float | None,
    enforce_horizon: bool,
    horizon: ArtificialHorizon | None,
    options: SchedulerOptions,
) -> bool:
    if min_altitude is not None:
        return True
    if enforce_horizon and horizon is not None and horizon.has_constraints():
        return True
    return options.enable_altitude_limits and (
        options.min_altitude_limit_deg > 0 or options.max_altitude_limit_deg < 90
    )


def satisfies_altitude_constraint(
    azimuth: float,
    altitude: float,
    min_altitude: float | None,
    enforce_horizon: bool,
    horizon: ArtificialHorizon | None,
    options: SchedulerOptions,
) -> tuple[bool, str | None]:
    """Check an (azimuth, altitude) pair against every altitude limit.

    Mount limits win over the job minimum, which wins over the horizon mask;
    the returned reason names the first limit that failed.
    """
    if options.enable_altitude_limits:
        if altitude < options.min_altitude_limit_deg:
            return False, (
                f"altitude {altitude:.1f} < mount altitude limit {options.min_altitude_limit_deg:.1f}"
            )
        if altitude > options.max_altitude_limit_deg:
            return False, (
                f"altitude {altitude:.1f} > mount altitude limit {options.max_altitude_limit_deg:.1f}"
            )
    if min_altitude is not None and altitude < min_altitude:
        return False, f"altitude {altitude:.1f} < minAltitude {min_altitude:.1f}"
    if enforce_horizon and horizon is not None:
        return horizon.is_altitude_ok(azimuth, altitude)
    return True, None
