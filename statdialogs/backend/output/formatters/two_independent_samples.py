"""Tables for the two-independent-samples dialog.

Every formatter takes the list of worker results collected for one run. Test
results carry ``frequenciesRanks`` and the per-test statistics; descriptive
results carry ``descriptiveStatistics``.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from .common import Table, format_number, format_p_value, new_table, no_data_table


def _variable_header(variable: Mapping[str, Any], index: int) -> str:
    return variable.get("label") or variable.get("name") or f"Variable {index + 1}"


def _insufficient(result: Mapping[str, Any], kind: Optional[str] = None) -> bool:
    metadata = result.get("metadata") or {}
    kinds = metadata.get("insufficentType") or []
    if kind is not None:
        return kind in kinds
    return bool(metadata.get("hasInsufficientData"))


def _rounded(value: Optional[float], places: int = 2) -> Optional[float]:
    return None if value is None else round(float(value), places)


def format_ranks_table(results: Sequence[Mapping[str, Any]], grouping_variable: str) -> Table:
    tests = [r for r in results or [] if r.get("frequenciesRanks")]
    if not tests:
        return no_data_table("Ranks")

    table = new_table(
        "Ranks",
        [
            {"header": "", "key": "rowHeader"},
            {"header": grouping_variable, "key": "groupingVariable"},
            {"header": "N", "key": "N"},
            {"header": "Mean Rank", "key": "MeanRank"},
            {"header": "Sum of Ranks", "key": "SumRanks"},
        ],
    )
    for result in tests:
        variable = result.get("variable1")
        if not variable or _insufficient(result, "empty"):
            continue
        name = variable.get("label") or variable.get("name")
        ranks = result["frequenciesRanks"]
        total = 0
        for group_key in ("group1", "group2"):
            group = ranks.get(group_key) or {}
            total += group.get("N") or 0
            table["rows"].append(
                {
                    "rowHeader": [name, group.get("label")],
                    "groupingVariable": group.get("label"),
                    "N": group.get("N"),
                    "MeanRank": _rounded(group.get("MeanRank")),
                    "SumRanks": _rounded(group.get("SumRanks")),
                }
            )
        table["rows"].append(
            {"rowHeader": [name, "Total"], "groupingVariable": "Total", "N": total}
        )
    return table


# (row label, statistic key, formatter)
RowSpec = Tuple[List[str], str, Callable[[Any], Any]]


def _three(value: Any) -> Any:
    return format_number(value, 3)


def _statistics_table(
    results: Sequence[Mapping[str, Any]],
    field: str,
    title: str,
    row_specs: Sequence[RowSpec],
) -> Table:
    """One column per sufficient variable, one row per statistic."""

    tests = [r for r in results or [] if r.get(field) and not _insufficient(r)]
    if not tests:
        return no_data_table(title)

    table = new_table(title, [{"header": "", "key": "rowHeader"}])
    rows = [{"rowHeader": list(label)} for label, _, _ in row_specs]
    for index, result in enumerate(tests):
        key = f"var_{index}"
        table["columnHeaders"].append(
            {"header": _variable_header(result.get("variable1") or {}, index), "key": key}
        )
        stats = result[field]
        for row, (_, stat_key, render) in zip(rows, row_specs):
            row[key] = render(stats.get(stat_key))
    table["rows"].extend(rows)
    return table


def format_mann_whitney_u_test_statistics_table(results: Sequence[Mapping[str, Any]]) -> Table:
    specs: List[RowSpec] = [
        (["Mann-Whitney U"], "U", _three),
        (["Wilcoxon W"], "W", _three),
        (["Z"], "Z", _three),
        (["Asymp. Sig. (2-tailed)"], "pValue", format_p_value),
    ]
    shows_exact = any(
        (r.get("testStatisticsMannWhitneyU") or {}).get("showExact")
        for r in results or []
        if not _insufficient(r)
    )
    if shows_exact:
        specs.append((["Exact Sig. [2*(1-tailed Sig.)]"], "pExact", format_p_value))
    return _statistics_table(results, "testStatisticsMannWhitneyU", "Test Statistics", specs)


def format_kolmogorov_smirnov_z_frequencies_table(
    results: Sequence[Mapping[str, Any]], grouping_variable: str
) -> Table:
    tests = [
        r
        for r in results or []
        if r.get("testStatisticsKolmogorovSmirnovZ") and r.get("frequenciesRanks")
    ]
    if not tests:
        return no_data_table("Frequencies")

    table = new_table(
        "Frequencies",
        [
            {"header": "", "key": "rowHeader"},
            {"header": grouping_variable, "key": "groupingVariable"},
            {"header": "N", "key": "N"},
        ],
    )
    for result in tests:
        variable = result.get("variable1")
        if not variable or _insufficient(result, "empty"):
            continue
        name = variable.get("label") or variable.get("name")
        ranks = result["frequenciesRanks"]
        total = 0
        for group_key in ("group1", "group2"):
            group = ranks.get(group_key) or {}
            total += group.get("N") or 0
            table["rows"].append(
                {
                    "rowHeader": [name, group.get("label")],
                    "groupingVariable": group.get("label"),
                    "N": group.get("N"),
                }
            )
        table["rows"].append({"rowHeader": [name, "Total"], "groupingVariable": "Total", "N": total})
    return table


def format_kolmogorov_smirnov_z_test_statistics_table(results: Sequence[Mapping[str, Any]]) -> Table:
    specs: List[RowSpec] = [
        (["Most Extreme Differences", "Absolute"], "D_absolute", _three),
        (["Most Extreme Differences", "Positive"], "D_positive", _three),
        (["Most Extreme Differences", "Negative"], "D_negative", _three),
        (["Kolmogorov-Smirnov Z"], "d_stat", _three),
        (["Asymp. Sig. (2-tailed)"], "pValue", format_p_value),
    ]
    return _statistics_table(results, "testStatisticsKolmogorovSmirnovZ", "Test Statistics", specs)


def format_moses_test_statistics_table(results: Sequence[Mapping[str, Any]]) -> Table:
    specs: List[RowSpec] = [
        (["Observed Control Group Span"], "span", _three),
        (["Outliers"], "outliers", lambda value: value),
        (["Sig. (1-tailed)"], "pValue", format_p_value),
    ]
    return _statistics_table(results, "testStatisticsMosesExtremeReactions", "Test Statistics", specs)


def format_wald_wolfowitz_test_statistics_table(results: Sequence[Mapping[str, Any]]) -> Table:
    specs: List[RowSpec] = [
        (["Number of Runs"], "runsCount", lambda value: value),
        (["Z"], "Z", _three),
        (["Asymp. Sig. (1-tailed)"], "pValue", format_p_value),
    ]
    return _statistics_table(results, "testStatisticsWaldWolfowitzRuns", "Test Statistics", specs)


def format_descriptive_statistics_table(
    results: Sequence[Mapping[str, Any]], display_statistics: Optional[Mapping[str, Any]] = None
) -> Table:
    display = display_statistics or {}
    entries = [r["descriptiveStatistics"] for r in results or [] if r.get("descriptiveStatistics")]
    if not entries:
        return no_data_table("Descriptive Statistics")

    headers: List[Dict[str, str]] = [{"header": "", "key": "rowHeader"}, {"header": "N", "key": "N"}]
    if display.get("descriptive"):
        headers += [
            {"header": "Mean", "key": "Mean"},
            {"header": "Std. Deviation", "key": "StdDev"},
            {"header": "Minimum", "key": "Min"},
            {"header": "Maximum", "key": "Max"},
        ]
    if display.get("quartiles"):
        headers += [
            {"header": "25th", "key": "Percentile25"},
            {"header": "50th (Median)", "key": "Percentile50"},
            {"header": "75th", "key": "Percentile75"},
        ]
    table = new_table("Descriptive Statistics", headers)

    for stats in entries:
        variable = stats.get("variable1") or {}
        decimals = int(variable.get("decimals") or 0)
        row: Dict[str, Any] = {"rowHeader": [variable.get("name")], "N": stats.get("N")}
        if display.get("descriptive"):
            row["Mean"] = format_number(stats.get("Mean"), decimals + 2)
            row["StdDev"] = format_number(stats.get("StdDev"), decimals + 3)
            row["Min"] = format_number(stats.get("Min"), decimals)
            row["Max"] = format_number(stats.get("Max"), decimals)
        if display.get("quartiles"):
            for key in ("Percentile25", "Percentile50", "Percentile75"):
                row[key] = format_number(stats.get(key), decimals)
        table["rows"].append(row)
    return table


__all__ = [
    "format_ranks_table",
    "format_mann_whitney_u_test_statistics_table",
    "format_kolmogorov_smirnov_z_frequencies_table",
    "format_kolmogorov_smirnov_z_test_statistics_table",
    "format_moses_test_statistics_table",
    "format_wald_wolfowitz_test_statistics_table",
    "format_descriptive_statistics_table",
]
