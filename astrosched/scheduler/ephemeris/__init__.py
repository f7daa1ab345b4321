from .base import Ephemeris
from .analytic import AnalyticEphemeris


def get_ephemeris(config) -> Ephemeris:
    backend = config.ephemeris_backend
    if backend == "analytic":
        return AnalyticEphemeris()
    if backend == "astropy":
        from .astropy_backend import AstropyEphemeris

        return AstropyEphemeris()
    raise ValueError(f"Unsupported ephemeris backend: {backend}")


__all__ = ["Ephemeris", "AnalyticEphemeris", "get_ephemeris"]
