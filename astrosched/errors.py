class AstroschedError(Exception):
    """Base exception for astrosched errors."""


class ConfigError(AstroschedError):
    """Raised for malformed or inconsistent configuration."""


class EphemerisError(AstroschedError):
    """Raised when an ephemeris backend cannot produce a position."""
