from __future__ import annotations

from typing import Any, Dict

from jsonschema import Draft202012Validator

from .defaults import CONFIG_SCHEMA
from .exceptions import ConfigValidationError

_validator = Draft202012Validator(CONFIG_SCHEMA)


def validate_config(data: Dict[str, Any]) -> None:
    """Raise :class:`ConfigValidationError` describing the first schema violation."""

    errors = sorted(_validator.iter_errors(data), key=lambda e: [str(part) for part in e.path])
    if not errors:
        return
    first = errors[0]
    location = ".".join(str(part) for part in first.path)
    message = f"{location}: {first.message}" if location else first.message
    raise ConfigValidationError(message)


__all__ = ["validate_config"]
