from __future__ import annotations

import math
from typing import Any, Mapping, Optional

NUMERIC_MEASURES = frozenset({"scale", "date"})


def to_float(value: Any) -> Optional[float]:
    """Parse ``value`` as a finite float, returning ``None`` when impossible."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        try:
            number = float(value)
        except (TypeError, ValueError):
            return None
    return number if math.isfinite(number) else None


def is_missing(value: Any, definition: Optional[Mapping[str, Any]], numeric: bool) -> bool:
    """Return ``True`` when ``value`` counts as missing for its variable.

    ``definition`` is the variable's ``missing`` mapping: ``discrete`` codes and
    an optional inclusive ``range``. The range only applies to numeric variables.
    """
    if value is None:
        return True
    if numeric and isinstance(value, str) and value.strip() == "":
        return True
    if not definition:
        return False

    compare = to_float(value) if numeric else value
    for code in definition.get("discrete") or ():
        code_cmp = to_float(code) if numeric else code
        if (compare is not None and compare == code_cmp) or str(value) == str(code):
            return True

    rng = definition.get("range")
    if numeric and rng:
        number = to_float(value)
        low, high = to_float(rng.get("min")), to_float(rng.get("max"))
        if number is not None and low is not None and high is not None and low <= number <= high:
            return True
    return False


def is_numeric_measure(variable: Mapping[str, Any]) -> bool:
    return variable.get("measure") in NUMERIC_MEASURES


__all__ = ["to_float", "is_missing", "is_numeric_measure", "NUMERIC_MEASURES"]
