from __future__ import annotations

import math
from typing import Any, Dict, List, Mapping, Optional, Sequence

import numpy as np
from scipy import stats

from ..missing import is_missing, is_numeric_measure, to_float

EXACT_MAX_PRODUCT = 400
EXACT_MAX_THRESHOLD = 220

DEFAULT_TEST_TYPE = {
    "mannWhitneyU": True,
    "mosesExtremeReactions": False,
    "kolmogorovSmirnovZ": False,
    "waldWolfowitzRuns": False,
}


def exact_u_distribution(n1: int, n2: int) -> List[int]:
    """Frequencies of each Mann-Whitney U value for group sizes ``n1`` and ``n2``."""

    if n1 == 0 or n2 == 0:
        return [1]
    previous_row: List[List[int]] = [[1] for _ in range(n2 + 1)]
    for i in range(1, n1 + 1):
        row: List[List[int]] = [[1]]
        for j in range(1, n2 + 1):
            size = i * j + 1
            counts = [0] * size
            for u, c in enumerate(row[j - 1]):
                counts[u] += c
            for u, c in enumerate(previous_row[j]):
                if u + j < size:
                    counts[u + j] += c
            row.append(counts)
        previous_row = row
    return previous_row[n2]


def kolmogorov_p_value(z: float) -> float:
    """Asymptotic two-sided p-value of the Kolmogorov-Smirnov Z statistic."""

    if z <= 0:
        return 1.0
    return min(max(float(stats.kstwobign.sf(z)), 0.0), 1.0)


class TwoIndependentSamplesCalculator:
    """Mann-Whitney U, Kolmogorov-Smirnov Z, Moses and Wald-Wolfowitz for one test variable."""

    def __init__(
        self,
        variable1: Mapping[str, Any],
        data1: Sequence[Any],
        variable2: Mapping[str, Any],
        data2: Sequence[Any],
        options: Optional[Mapping[str, Any]] = None,
    ) -> None:
        options = options or {}
        self.variable1 = variable1
        self.variable2 = variable2
        self.data1 = list(data1)
        self.data2 = list(data2)
        self.group1 = options.get("group1")
        self.group2 = options.get("group2")
        self.test_type: Mapping[str, Any] = options.get("testType") or DEFAULT_TEST_TYPE
        self.exact_max_product = int(options.get("exactMaxProduct", EXACT_MAX_PRODUCT))
        self.exact_max_threshold = int(options.get("exactMaxThreshold", EXACT_MAX_THRESHOLD))

        self.values: List[float] = []
        self.groups: List[Any] = []
        numeric_value = is_numeric_measure(variable1)
        numeric_group = is_numeric_measure(variable2)
        for index, value in enumerate(self.data1):
            if index >= len(self.data2):
                break
            group = self.data2[index]
            if is_missing(value, variable1.get("missing"), numeric_value):
                continue
            number = to_float(value)
            if number is None or is_missing(group, variable2.get("missing"), numeric_group):
                continue
            self.values.append(number)
            self.groups.append(group)

        self.group1_data = [v for v, g in zip(self.values, self.groups) if g == self.group1]
        self.group2_data = [v for v, g in zip(self.values, self.groups) if g == self.group2]
        self.n1 = len(self.group1_data)
        self.n2 = len(self.group2_data)
        self._memo: Dict[str, Any] = {}

    @property
    def n(self) -> int:
        return self.n1 + self.n2

    @property
    def has_empty_group(self) -> bool:
        return self.n1 == 0 or self.n2 == 0

    def group_label(self, group: Any) -> str:
        for item in self.variable2.get("values") or []:
            if item.get("value") == group and item.get("label"):
                return item["label"]
        return "" if group is None else str(group)

    def frequencies_ranks(self) -> Dict[str, Any]:
        if "ranks" in self._memo:
            return self._memo["ranks"]

        # Ranks over every valid case, including cases outside both groups
        ranks = stats.rankdata(self.values) if self.values else np.empty(0)
        sum1 = float(sum(r for r, g in zip(ranks, self.groups) if g == self.group1))
        sum2 = float(sum(r for r, g in zip(ranks, self.groups) if g == self.group2))

        result = {
            "group1": {
                "label": self.group_label(self.group1),
                "N": self.n1,
                "MeanRank": sum1 / self.n1 if self.n1 else 0,
                "SumRanks": sum1,
            },
            "group2": {
                "label": self.group_label(self.group2),
                "N": self.n2,
                "MeanRank": sum2 / self.n2 if self.n2 else 0,
                "SumRanks": sum2,
            },
        }
        self._memo["ranks"] = result
        return result

    def exact_p_value(self, u_observed: float) -> float:
        if self.has_empty_group:
            return 1.0
        distribution = exact_u_distribution(self.n1, self.n2)
        total = math.comb(self.n, self.n1)
        cumulative = sum(distribution[: int(math.floor(u_observed)) + 1])
        return min(2 * cumulative / total, 1.0)

    def mann_whitney_u(self) -> Dict[str, Any]:
        if "mannWhitneyU" in self._memo:
            return self._memo["mannWhitneyU"]
        if self.has_empty_group:
            result: Dict[str, Any] = {"U": 0, "W": 0, "Z": 0, "pValue": 1}
            self._memo["mannWhitneyU"] = result
            return result

        ranks = self.frequencies_ranks()
        n1, n2 = self.n1, self.n2
        r1 = ranks["group1"]["SumRanks"]
        r2 = ranks["group2"]["SumRanks"]
        u1 = r1 - n1 * (n1 + 1) / 2
        u2 = n1 * n2 - u1
        u, w = (u1, r1) if u1 < u2 else (u2, r2)

        _, counts = np.unique(np.asarray(self.values, dtype=float), return_counts=True)
        ties = counts[counts > 1].astype(float)
        tie_correction = float(np.sum(ties ** 3 - ties))

        total = n1 + n2
        variance = n1 * n2 * (total + 1) / 12
        if tie_correction > 0:
            variance -= n1 * n2 * tie_correction / (total * (total - 1) * 12)
        z = (u - n1 * n2 / 2) / math.sqrt(variance) if variance > 0 else 0.0
        p_value = float(2 * stats.norm.sf(abs(z)))

        show_exact = (
            n1 * n2 < self.exact_max_product
            and n1 * n2 / 2 + min(n1, n2) <= self.exact_max_threshold
        )
        result = {
            "U": u,
            "W": w,
            "Z": z,
            "pValue": p_value,
            "pExact": self.exact_p_value(u) if show_exact else None,
            "showExact": show_exact,
        }
        self._memo["mannWhitneyU"] = result
        return result

    def kolmogorov_smirnov_z(self) -> Dict[str, Any]:
        if "kolmogorovSmirnovZ" in self._memo:
            return self._memo["kolmogorovSmirnovZ"]
        if self.has_empty_group:
            result: Dict[str, Any] = {
                "D_absolute": 0,
                "D_positive": 0,
                "D_negative": 0,
                "d_stat": 0,
                "pValue": 1,
            }
            self._memo["kolmogorovSmirnovZ"] = result
            return result

        sample1 = np.sort(np.asarray(self.group1_data, dtype=float))
        sample2 = np.sort(np.asarray(self.group2_data, dtype=float))
        points = np.unique(np.concatenate([sample1, sample2]))
        diff = (
            np.searchsorted(sample1, points, side="right") / self.n1
            - np.searchsorted(sample2, points, side="right") / self.n2
        )
        d_absolute = float(max(0.0, np.max(np.abs(diff))))
        d_positive = float(max(0.0, np.max(diff)))
        d_negative = float(min(0.0, np.min(diff)))
        z = d_absolute * math.sqrt(self.n1 * self.n2 / (self.n1 + self.n2))

        result = {
            "D_absolute": d_absolute,
            "D_positive": d_positive,
            "D_negative": d_negative,
            "d_stat": z,
            "pValue": kolmogorov_p_value(z),
        }
        self._memo["kolmogorovSmirnovZ"] = result
        return result

    def moses_extreme_reactions(self) -> Dict[str, Any]:
        if "mosesExtremeReactions" in self._memo:
            return self._memo["mosesExtremeReactions"]
        if self.has_empty_group:
            result: Dict[str, Any] = {"span": 0, "outliers": 0, "pValue": 1}
            self._memo["mosesExtremeReactions"] = result
            return result

        # group 1 is the control group
        low, high = min(self.group1_data), max(self.group1_data)
        outliers = sum(1 for value in self.group2_data if value < low or value > high)
        proportion = outliers / self.n2
        result = {
            "span": high - low,
            "outliers": outliers,
            "proportion": proportion,
            "pValue": 1 - abs(2 * proportion - 1),
        }
        self._memo["mosesExtremeReactions"] = result
        return result

    def wald_wolfowitz_runs(self) -> Dict[str, Any]:
        if "waldWolfowitzRuns" in self._memo:
            return self._memo["waldWolfowitzRuns"]
        if self.has_empty_group:
            result: Dict[str, Any] = {"runsCount": 0, "Z": 0, "pValue": 1}
            self._memo["waldWolfowitzRuns"] = result
            return result

        ordered = sorted(zip(self.values, self.groups), key=lambda item: item[0])
        runs = 1
        current = ordered[0][1]
        for _, group in ordered[1:]:
            if group != current:
                runs += 1
                current = group

        n1, n2 = self.n1, self.n2
        total = n1 + n2
        expected = 1 + 2 * n1 * n2 / total
        variance = 2 * n1 * n2 * (2 * n1 * n2 - total) / (total * total * (total - 1)) if total > 1 else 0.0
        correction = -0.5 if runs > expected else 0.5
        z = (runs + correction - expected) / math.sqrt(variance) if variance > 0 else 0.0

        result = {
            "runsCount": runs,
            "expectedRuns": expected,
            "varianceRuns": variance,
            "Z": z,
            "pValue": float(2 * stats.norm.sf(abs(z))),
        }
        self._memo["waldWolfowitzRuns"] = result
        return result

    def get_output(self) -> Dict[str, Any]:
        insufficient: List[str] = []
        if self.n1 == 0 and self.n2 == 0:
            insufficient.append("empty")
        elif self.has_empty_group:
            insufficient.append("hasEmptyGroup")

        tests = self.test_type
        return {
            "variable1": dict(self.variable1),
            "variable2": dict(self.variable2),
            "frequenciesRanks": self.frequencies_ranks(),
            "testStatisticsMannWhitneyU": self.mann_whitney_u() if tests.get("mannWhitneyU") else None,
            "testStatisticsKolmogorovSmirnovZ": self.kolmogorov_smirnov_z()
            if tests.get("kolmogorovSmirnovZ")
            else None,
            "testStatisticsMosesExtremeReactions": self.moses_extreme_reactions()
            if tests.get("mosesExtremeReactions")
            else None,
            "testStatisticsWaldWolfowitzRuns": self.wald_wolfowitz_runs()
            if tests.get("waldWolfowitzRuns")
            else None,
            "metadata": {
                "hasInsufficientData": bool(insufficient),
                "insufficentType": insufficient,
                "variableName": self.variable1.get("name"),
                "variableLabel": self.variable1.get("label") or "",
            },
        }


__all__ = [
    "TwoIndependentSamplesCalculator",
    "exact_u_distribution",
    "kolmogorov_p_value",
    "EXACT_MAX_PRODUCT",
    "EXACT_MAX_THRESHOLD",
]
