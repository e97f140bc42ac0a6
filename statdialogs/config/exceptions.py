from __future__ import annotations


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Raised when the configuration does not match the schema."""


class ConfigIOError(ConfigError):
    """Raised when the configuration file cannot be read or written."""


__all__ = [
    "ConfigError",
    "ConfigValidationError",
    "ConfigIOError",
]
