from __future__ import annotations


class StatDialogsError(Exception):
    """Base class for application errors."""


class ConfigurationError(StatDialogsError):
    """Raised when an analysis cannot be configured from user input."""


class DataSaveError(StatDialogsError):
    """Raised when pending data edits cannot be written back."""


__all__ = ["StatDialogsError", "ConfigurationError", "DataSaveError"]
