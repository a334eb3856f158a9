from __future__ import annotations


class TrendscopeError(Exception):
    pass


class DataValidationError(TrendscopeError):
    """Bar series is empty, malformed or not in a usable order."""


class ConfigError(TrendscopeError):
    pass
