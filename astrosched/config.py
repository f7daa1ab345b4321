from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import tomli as tomllib
else:
    try:
        import tomllib
    except ModuleNotFoundError:  # Python < 3.11
        import tomli as tomllib

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "astrosched" / "config.toml"


class Config:
    def __init__(self, data: dict):
        self._data = data

    def _scheduler(self) -> dict:
        return self._data.get("scheduler", {})

    @property
    def site_latitude_deg(self):
        return self._data.get("site", {}).get("latitude_deg", None)

    @property
    def site_longitude_deg(self):
        return self._data.get("site", {}).get("longitude_deg", None)

    @property
    def site_elevation_m(self):
        return self._data.get("site", {}).get("elevation_m", None)

    @property
    def site_timezone(self):
        return self._data.get("site", {}).get("timezone", None)

    @property
    def site_name(self):
        return self._data.get("site", {}).get("name", None)

    @property
    def ephemeris_backend(self):
        return self._data.get("ephemeris", {}).get("backend", "analytic")

    @property
    def enable_altitude_limits(self):
        return self._scheduler().get("enable_altitude_limits", False)

    @property
    def min_altitude_limit_deg(self):
        return self._scheduler().get("min_altitude_limit_deg", 0.0)

    @property
    def max_altitude_limit_deg(self):
        return self._scheduler().get("max_altitude_limit_deg", 90.0)

    @property
    def lead_time_min(self):
        return self._scheduler().get("lead_time_min", 5)

    @property
    def pre_dawn_min(self):
        return self._scheduler().get("pre_dawn_min", 60)

    @property
    def dawn_offset_min(self):
        return self._scheduler().get("dawn_offset_min", 0)

    @property
    def dusk_offset_min(self):
        return self._scheduler().get("dusk_offset_min", 0)

    @property
    def setting_altitude_cutoff_deg(self):
        return self._scheduler().get("setting_altitude_cutoff_deg", 3.0)

    @property
    def step_min(self):
        return self._scheduler().get("step_min", 1)

    @property
    def horizon_regions(self) -> list[dict]:
        return self._data.get("horizon", {}).get("regions", [])


def load_config(path: Path | None = None) -> Config:
    explicit_path = path
    path = path or DEFAULT_CONFIG_PATH

    if not path.exists():
        if explicit_path is not None:
            raise FileNotFoundError(f"Config file not found: {path}")
        # Return default config if default file missing
        return Config({})

    with open(path, "rb") as f:
        data = tomllib.load(f)

    return Config(data)
