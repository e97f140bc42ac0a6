"""Bivariate correlation calculator.

Computes Pearson, Kendall's tau-b and Spearman coefficients for every pair of
analysis variables, the optional Kendall partial correlations, per-variable
descriptives and insufficient-data metadata. Results use the camelCase result
shape the table formatters consume.
"""
from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np
from scipy import stats

from ..descriptives import sample_std
from ..missing import is_missing, is_numeric_measure, to_float

logger = logging.getLogger(__name__)


def tie_factors(values: Sequence[float]) -> Dict[str, float]:
    """Tie correction sums over groups of ``t`` equal values (``t > 1``)."""

    _, counts = np.unique(np.asarray(values, dtype=float), return_counts=True)
    t = counts[counts > 1].astype(float)
    t2 = t * t - t
    return {
        "tau": float(np.sum(t2)),
        "tau_prime": float(np.sum(t2 * (t - 2))),
        "tau_double_prime": float(np.sum(t2 * (2 * t + 5))),
        "ST": float(np.sum(t ** 3 - t)),
    }


def _capped(p: float) -> float:
    return 1.0 if p > 1 else p


class BivariateCalculator:
    def __init__(
        self,
        variables: Sequence[Mapping[str, Any]],
        data: Sequence[Sequence[Any]],
        options: Optional[Mapping[str, Any]] = None,
    ) -> None:
        options = options or {}
        self.variables = list(variables)
        self.data = [list(column) for column in data]

        self.coefficients: Mapping[str, Any] = options.get("correlationCoefficient") or {}
        self.significance: Mapping[str, Any] = options.get("testOfSignificance") or {}
        self.lower_triangle = bool(options.get("showOnlyTheLowerTriangle"))
        self.show_diagonal = bool(options.get("showDiagonal"))
        self.statistics_options: Mapping[str, Any] = options.get("statisticsOptions") or {}
        self.partial = bool(options.get("partialCorrelationKendallsTauB"))
        self.missing_options: Mapping[str, Any] = options.get("missingValuesOptions") or {}

        # Control variables join the pool so partial correlations can reach them
        self.control_names: List[str] = []
        control_data = list(options.get("controlData") or [])
        for index, control in enumerate(options.get("controlVariables") or []):
            self.control_names.append(control["name"])
            if any(v["name"] == control["name"] for v in self.variables):
                continue
            self.variables.append(control)
            self.data.append(list(control_data[index]) if index < len(control_data) else [])
        self.analysis_count = len(variables)

        self._columns: Optional[List[List[Optional[float]]]] = None
        self._memo: Dict[Tuple[str, str, str], Any] = {}

    @property
    def one_tailed(self) -> bool:
        return bool(self.significance.get("oneTailed"))

    @property
    def listwise(self) -> bool:
        return bool(self.missing_options.get("excludeCasesListwise"))

    # ------------------------------------------------------------------
    # Data preparation
    # ------------------------------------------------------------------
    def _cell(self, index: int, value: Any) -> Optional[float]:
        variable = self.variables[index]
        if is_missing(value, variable.get("missing"), is_numeric_measure(variable)):
            return None
        return to_float(value)

    def columns(self) -> List[List[Optional[float]]]:
        """Per-variable parsed columns, ``None`` where a case is invalid."""

        if self._columns is not None:
            return self._columns
        parsed = [
            [self._cell(index, value) for value in column] for index, column in enumerate(self.data)
        ]
        if self.listwise and parsed:
            rows = min(len(column) for column in parsed)
            keep = [r for r in range(rows) if all(column[r] is not None for column in parsed)]
            parsed = [[column[r] for r in keep] for column in parsed]
        self._columns = parsed
        return parsed

    def valid_values(self, index: int) -> np.ndarray:
        return np.asarray([v for v in self.columns()[index] if v is not None], dtype=float)

    def _index(self, name: str) -> int:
        for index, variable in enumerate(self.variables):
            if variable["name"] == name:
                return index
        return -1

    def _pairs(self, i: int, j: int) -> Tuple[np.ndarray, np.ndarray]:
        x, y = self.columns()[i], self.columns()[j]
        pairs = [(a, b) for a, b in zip(x, y) if a is not None and b is not None]
        if not pairs:
            return np.empty(0), np.empty(0)
        xs, ys = zip(*pairs)
        return np.asarray(xs, dtype=float), np.asarray(ys, dtype=float)

    def _has_zero_spread(self, i: int, j: int) -> bool:
        return sample_std(self.valid_values(i)) == 0 or sample_std(self.valid_values(j)) == 0

    def _t_p_value(self, r: float, df: int) -> Optional[float]:
        if df <= 0 or not math.isfinite(r) or r * r >= 1:
            return None
        t_stat = r * math.sqrt(df / (1 - r * r))
        tail = float(stats.t.sf(abs(t_stat), df))
        return _capped(tail if self.one_tailed else 2 * tail)

    # ------------------------------------------------------------------
    # Coefficients
    # ------------------------------------------------------------------
    def descriptive_statistics(self) -> List[Dict[str, Any]]:
        result = []
        for index, variable in enumerate(self.variables[: self.analysis_count]):
            values = self.valid_values(index)
            result.append(
                {
                    "variable": variable["name"],
                    "Mean": float(values.mean()) if values.size else 0.0,
                    "StdDev": sample_std(values),
                    "N": int(values.size),
                }
            )
        return result

    def pearson(self, name1: str, name2: str) -> Optional[Dict[str, Any]]:
        key = ("pearson", name1, name2)
        if key in self._memo:
            return self._memo[key]
        i, j = self._index(name1), self._index(name2)
        if i < 0 or j < 0:
            return None

        x, y = self._pairs(i, j)
        n = int(x.size)
        if n == 0:
            return {"Pearson": None, "PValue": None, "SumOfSquares": None, "Covariance": None, "N": n}
        if n == 1:
            return {"Pearson": None, "PValue": None, "SumOfSquares": 0, "Covariance": None, "N": n}
        if self._has_zero_spread(i, j):
            return {"Pearson": None, "PValue": None, "SumOfSquares": 0, "Covariance": 0, "N": n}

        dx, dy = x - x.mean(), y - y.mean()
        sum_xy = float(np.sum(dx * dy))
        covariance = sum_xy / (n - 1)
        if name1 == name2:
            result = {"Pearson": 1, "PValue": None, "SumOfSquares": sum_xy, "Covariance": covariance, "N": n}
        else:
            r = sum_xy / math.sqrt(float(np.sum(dx * dx)) * float(np.sum(dy * dy)))
            result = {
                "Pearson": r,
                "PValue": self._t_p_value(r, n - 2),
                "SumOfSquares": sum_xy,
                "Covariance": covariance,
                "N": n,
            }
        self._memo[key] = result
        return result

    def kendalls_tau_b(self, name1: str, name2: str) -> Optional[Dict[str, Any]]:
        key = ("kendall", name1, name2)
        if key in self._memo:
            return self._memo[key]
        i, j = self._index(name1), self._index(name2)
        if i < 0 or j < 0:
            return None

        x, y = self._pairs(i, j)
        n = int(x.size)
        if n <= 1 or self._has_zero_spread(i, j):
            return {"KendallsTauB": None, "PValue": None, "N": n}
        if name1 == name2:
            return {"KendallsTauB": 1, "PValue": None, "N": n}

        s = 0
        for k in range(n - 1):
            s += int(np.sum(np.sign(x[k] - x[k + 1 :]) * np.sign(y[k] - y[k + 1 :])))

        x_ties, y_ties = tie_factors(x), tie_factors(y)
        pairs_total = n * n - n
        denominator = math.sqrt((pairs_total - x_ties["tau"]) / 2) * math.sqrt(
            (pairs_total - y_ties["tau"]) / 2
        )
        tau_b = None if denominator == 0 else s / denominator

        p_value = None
        if tau_b is not None and pairs_total > 0 and n > 2:
            variance = (
                (pairs_total * (2 * n + 5) - x_ties["tau_double_prime"] - y_ties["tau_double_prime"]) / 18
                + (x_ties["tau_prime"] * y_ties["tau_prime"]) / (9 * pairs_total * (n - 2))
                + (x_ties["tau"] * y_ties["tau"]) / (2 * pairs_total)
            )
            if variance > 0:
                tail = float(stats.norm.sf(abs(s / math.sqrt(variance))))
                p_value = _capped(tail if self.one_tailed else 2 * tail)

        result = {"KendallsTauB": tau_b, "PValue": p_value, "N": n}
        self._memo[key] = result
        return result

    def spearman(self, name1: str, name2: str) -> Optional[Dict[str, Any]]:
        key = ("spearman", name1, name2)
        if key in self._memo:
            return self._memo[key]
        i, j = self._index(name1), self._index(name2)
        if i < 0 or j < 0:
            return None

        x, y = self._pairs(i, j)
        n = int(x.size)
        if name1 == name2:
            return {"Spearman": 1, "PValue": None, "N": n}
        if n <= 1:
            return {"Spearman": None, "PValue": None, "N": n}

        d = stats.rankdata(x) - stats.rankdata(y)
        sum_d2 = float(np.sum(d * d))
        cube = n ** 3 - n
        tx = (cube - tie_factors(x)["ST"]) / 12
        ty = (cube - tie_factors(y)["ST"]) / 12

        rho: Optional[float] = None
        if tx > 0 and ty > 0:
            rho = (tx + ty - sum_d2) / (2 * math.sqrt(tx * ty))
        elif tx == 0 and ty == 0:
            rho = 1.0

        p_value: Optional[float] = None
        if rho is not None:
            if abs(rho) < 1:
                p_value = self._t_p_value(rho, n - 2)
            else:
                p_value = 0.0

        result = {"Spearman": rho, "PValue": p_value, "N": n}
        self._memo[key] = result
        return result

    def partial_correlation(self, control: str, name1: str, name2: str) -> Optional[Dict[str, Any]]:
        key = ("partial", control, f"{name1}|{name2}")
        if key in self._memo:
            return self._memo[key]

        r12 = self.kendalls_tau_b(name1, name2)
        r13 = self.kendalls_tau_b(name1, control)
        r23 = self.kendalls_tau_b(name2, control)
        if not r12 or not r13 or not r23:
            return None
        if name1 == name2:
            return {"Correlation": 1, "PValue": None, "df": 0}

        df = r12["N"] - 3
        value: Optional[float] = None
        values = (r12["KendallsTauB"], r13["KendallsTauB"], r23["KendallsTauB"])
        if None not in values:
            t12, t13, t23 = (float(v) for v in values)
            denominator = math.sqrt(1 - t13 ** 2) * math.sqrt(1 - t23 ** 2)
            if denominator != 0:
                value = (t12 - t13 * t23) / denominator

        p_value = None
        if value is not None and math.isfinite(value) and df > 0:
            p_value = self._t_p_value(value, df)

        result = {"Correlation": value, "PValue": p_value, "df": df}
        self._memo[key] = result
        return result

    # ------------------------------------------------------------------
    # Output assembly
    # ------------------------------------------------------------------
    def metadata(self) -> List[Dict[str, Any]]:
        stats_by_name = {item["variable"]: item for item in self.descriptive_statistics()}
        result = []
        for index, variable in enumerate(self.variables[: self.analysis_count]):
            raw = self.data[index]
            present = [value for value in raw if value is not None]
            kinds: List[str] = []
            if not raw or not present:
                kinds.append("empty")
            if len(raw) == 1 or len(present) == 1:
                kinds.append("single")
            std_dev = stats_by_name.get(variable["name"], {}).get("StdDev")
            if not std_dev:
                kinds.append("stdDev")
            result.append(
                {
                    "hasInsufficientData": bool(kinds),
                    "insufficientType": kinds,
                    "variableLabel": variable.get("label") or "",
                    "variableName": variable["name"],
                    "totalData": len(raw),
                    "validData": len(present),
                }
            )
        return result

    def _pair_names(self) -> List[Tuple[str, str]]:
        names = [v["name"] for v in self.variables[: self.analysis_count]]
        pairs = []
        for i in range(len(names)):
            for j in range(i, len(names)):
                if self.lower_triangle and not self.show_diagonal and i == j:
                    continue
                pairs.append((names[i], names[j]))
        return pairs

    @staticmethod
    def validate_matrix(correlation: Sequence[Mapping[str, Any]]) -> Dict[str, Any]:
        fields = (
            ("pearsonCorrelation", "Pearson"),
            ("kendallsTauBCorrelation", "KendallsTauB"),
            ("spearmanCorrelation", "Spearman"),
        )
        invalid_correlations: List[Dict[str, Any]] = []
        invalid_ns: List[Dict[str, Any]] = []
        for entry in correlation:
            for field, coefficient in fields:
                values = entry.get(field)
                if not values:
                    continue
                value = values.get(coefficient)
                if value is not None and (value < -1 or value > 1):
                    invalid_correlations.append(
                        {"variable1": entry["variable1"], "variable2": entry["variable2"], "value": value}
                    )
            for field, _ in fields:
                values = entry.get(field)
                if values and values.get("N") is not None and values["N"] < 1:
                    invalid_ns.append(
                        {"variable1": entry["variable1"], "variable2": entry["variable2"], "value": values["N"]}
                    )
        return {
            "hasInvalidCorrelations": bool(invalid_correlations),
            "hasInvalidNs": bool(invalid_ns),
            "invalidCorrelations": invalid_correlations,
            "invalidNs": invalid_ns,
        }

    def partial_results(self) -> List[Dict[str, Any]]:
        enabled = (
            self.coefficients.get("kendallsTauB")
            and self.partial
            and self.listwise
            and len(self.variables) > 2
        )
        if not enabled:
            return []
        analysis = [v["name"] for v in self.variables[: self.analysis_count]]
        controls = self.control_names or analysis
        result = []
        for control in controls:
            others = [name for name in analysis if name != control]
            for a in range(len(others)):
                for b in range(a + 1, len(others)):
                    partial = self.partial_correlation(control, others[a], others[b])
                    if partial:
                        result.append(
                            {
                                "controlVariable": control,
                                "variable1": others[a],
                                "variable2": others[b],
                                "partialCorrelation": partial,
                            }
                        )
        return result

    def get_output(self) -> Dict[str, Any]:
        descriptive = None
        if self.coefficients.get("pearson") and self.statistics_options.get("meansAndStandardDeviations"):
            descriptive = self.descriptive_statistics()

        correlation = []
        for name1, name2 in self._pair_names():
            correlation.append(
                {
                    "variable1": name1,
                    "variable2": name2,
                    "pearsonCorrelation": self.pearson(name1, name2)
                    if self.coefficients.get("pearson")
                    else None,
                    "kendallsTauBCorrelation": self.kendalls_tau_b(name1, name2)
                    if self.coefficients.get("kendallsTauB")
                    else None,
                    "spearmanCorrelation": self.spearman(name1, name2)
                    if self.coefficients.get("spearman")
                    else None,
                }
            )

        logger.debug("Computed %d correlation pairs", len(correlation))
        return {
            "descriptiveStatistics": descriptive,
            "correlation": correlation,
            "partialCorrelation": self.partial_results(),
            "matrixValidation": self.validate_matrix(correlation),
            "metadata": self.metadata(),
        }


__all__ = ["BivariateCalculator", "tie_factors"]
