from dataclasses import dataclass, field

from astrosched.errors import ConfigError


@dataclass
class HorizonRegion:
    """An obstruction outline: (azimuth, altitude) points in degrees.

    The outline is interpolated linearly between consecutive points and
    covers azimuths from its first point to its last, clockwise. An outline
    whose last azimuth is lower than its first wraps through north.
    """

    name: str
    points: list[tuple[float, float]] = field(default_factory=list)
    enabled: bool = True

    def __post_init__(self):
        if len(self.points) < 2:
            raise ConfigError(f"Horizon region '{self.name}' needs at least two points")
        for az, alt in self.points:
            if not 0.0 <= az <= 360.0 or not -90.0 <= alt <= 90.0:
                raise ConfigError(f"Horizon region '{self.name}' has out of range point ({az}, {alt})")

    def _unwrapped(self) -> list[tuple[float, float]]:
        out = []
        offset = 0.0
        prev = None
        for az, alt in self.points:
            if prev is not None and az + offset < prev:
                offset += 360.0
            prev = az + offset
            out.append((prev, alt))
        return out

    def altitude_floor(self, azimuth: float) -> float | None:
        points = self._unwrapped()
        start = points[0][0]
        rel = (azimuth - start) % 360.0 + start
        for (az1, alt1), (az2, alt2) in zip(points, points[1:]):
            if az1 <= rel <= az2:
                if az2 == az1:
                    return max(alt1, alt2)
                frac = (rel - az1) / (az2 - az1)
                return alt1 + frac * (alt2 - alt1)
        return None


class ArtificialHorizon:
    def __init__(self, regions: list[HorizonRegion] | None = None):
        self._regions = list(regions or [])

    @property
    def regions(self) -> list[HorizonRegion]:
        return list(self._regions)

    def has_constraints(self) -> bool:
        return any(region.enabled for region in self._regions)

    def altitude_floor(self, azimuth: float) -> tuple[float | None, str | None]:
        best = None
        best_name = None
        for region in self._regions:
            if not region.enabled:
                continue
            floor = region.altitude_floor(azimuth)
            if floor is not None and (best is None or floor > best):
                best = floor
                best_name = region.name
        return best, best_name

    def is_altitude_ok(self, azimuth: float, altitude: float) -> tuple[bool, str | None]:
        floor, name = self.altitude_floor(azimuth)
        if floor is None or altitude >= floor:
            return True, None
        return False, f"altitude {altitude:.1f} < horizon '{name}' {floor:.1f} at azimuth {azimuth:.1f}"


def horizon_from_config(config) -> ArtificialHorizon:
    regions = []
    for entry in config.horizon_regions:
        try:
            points = [(float(az), float(alt)) for az, alt in entry.get("points", [])]
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid horizon points in region '{entry.get('name')}': {e}") from e
        regions.append(
            HorizonRegion(
                name=entry.get("name", f"region{len(regions) + 1}"),
                points=points,
                enabled=entry.get("enabled", True),
            )
        )
    return ArtificialHorizon(regions)
