from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence

import numpy as np

from .missing import is_missing, is_numeric_measure, to_float


def valid_numbers(variable: Mapping[str, Any], data: Sequence[Any]) -> List[float]:
    numeric = is_numeric_measure(variable)
    result: List[float] = []
    for value in data:
        if is_missing(value, variable.get("missing"), numeric):
            continue
        number = to_float(value)
        if number is not None:
            result.append(number)
    return result


def sample_std(values: np.ndarray) -> float:
    """Sample standard deviation; 0 for fewer than two values."""

    if values.size <= 1:
        return 0.0
    return float(np.std(values, ddof=1))


def haverage_percentile(values: Sequence[float], p: float) -> Optional[float]:
    """Weighted-average percentile at ``(W + 1) * p / 100`` (HAVERAGE)."""

    if not values:
        return None
    distinct, counts = np.unique(np.asarray(values, dtype=float), return_counts=True)
    cumulative = np.cumsum(counts)
    total = int(cumulative[-1])
    tp = (total + 1) * p / 100.0

    above = np.nonzero(cumulative >= tp)[0]
    if above.size == 0:
        return float(distinct[-1])
    i = int(above[0])
    if i == 0:
        return float(distinct[0])
    weight = tp - float(cumulative[i - 1])
    if weight >= 1:
        return float(distinct[i])
    return float((1 - weight) * distinct[i - 1] + weight * distinct[i])


class DescriptiveCalculator:
    def __init__(self, variable: Mapping[str, Any], data: Sequence[Any]) -> None:
        self.variable = variable
        self.data = list(data)
        self._values: Optional[List[float]] = None

    @property
    def values(self) -> List[float]:
        if self._values is None:
            self._values = valid_numbers(self.variable, self.data)
        return self._values

    def get_output(self) -> Dict[str, Any]:
        values = self.values
        array = np.asarray(values, dtype=float)
        n = int(array.size)
        return {
            "variable": self.variable.get("name"),
            "N": n,
            "Missing": len(self.data) - n,
            "Mean": float(array.mean()) if n else None,
            "StdDev": sample_std(array) if n else None,
            "Min": float(array.min()) if n else None,
            "Max": float(array.max()) if n else None,
            "Percentile25": haverage_percentile(values, 25),
            "Percentile50": haverage_percentile(values, 50),
            "Percentile75": haverage_percentile(values, 75),
        }


__all__ = ["DescriptiveCalculator", "haverage_percentile", "sample_std", "valid_numbers"]
