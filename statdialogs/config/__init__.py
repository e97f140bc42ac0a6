from __future__ import annotations

from .exceptions import ConfigError, ConfigIOError, ConfigValidationError
from .unified import ProfileResolutionResult, UnifiedConfigManager

__all__ = [
    "UnifiedConfigManager",
    "ConfigError",
    "ConfigValidationError",
    "ConfigIOError",
    "ProfileResolutionResult",
]
