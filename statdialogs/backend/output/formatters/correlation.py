"""Tables for the bivariate correlation dialog."""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ....core.variables import Variable, column_header
from .common import (
    Table,
    format_correlation_value,
    format_number,
    format_p_value,
    new_table,
    no_data_table,
    significance_label,
)

PEARSON = "Pearson"
KENDALL = "Kendall's tau_b"
SPEARMAN = "Spearman's rho"

# type -> (result field, coefficient key)
_COEFFICIENTS: Dict[str, Tuple[str, str]] = {
    PEARSON: ("pearsonCorrelation", "Pearson"),
    KENDALL: ("kendallsTauBCorrelation", "KendallsTauB"),
    SPEARMAN: ("spearmanCorrelation", "Spearman"),
}


def _hidden(options: Mapping[str, Any], i: int, j: int) -> bool:
    """Whether cell (i, j) is suppressed by the lower-triangle display options."""

    if not options.get("showOnlyTheLowerTriangle"):
        return False
    if options.get("showDiagonal"):
        return j > i
    return j >= i


def _pair_lookup(entries: Iterable[Mapping[str, Any]], first: str, second: str) -> Dict[str, Mapping[str, Any]]:
    lookup: Dict[str, Mapping[str, Any]] = {}
    for entry in entries:
        a, b = entry.get(first), entry.get(second)
        if a is None or b is None:
            continue
        a = a.name if isinstance(a, Variable) else a
        b = b.name if isinstance(b, Variable) else b
        lookup.setdefault(f"{a}-{b}", entry)
    return lookup


def _find(lookup: Mapping[str, Mapping[str, Any]], a: str, b: str) -> Optional[Mapping[str, Any]]:
    return lookup.get(f"{a}-{b}") or lookup.get(f"{b}-{a}")


def _coefficient_rows(
    correlation_type: str,
    lookup: Mapping[str, Mapping[str, Any]],
    options: Mapping[str, Any],
    variables: Sequence[Variable],
    n_column: int,
) -> List[Dict[str, Any]]:
    field, coefficient = _COEFFICIENTS[correlation_type]
    flag = bool(options.get("flagSignificantCorrelations"))
    sig_label = significance_label(options.get("testOfSignificance") or {})
    with_cross_products = correlation_type == PEARSON and bool(
        (options.get("statisticsOptions") or {}).get("crossProductDeviationsAndCovariances")
    )

    start, end = 0, n_column
    if options.get("showOnlyTheLowerTriangle") and not options.get("showDiagonal"):
        start, end = 1, n_column + 1

    rows: List[Dict[str, Any]] = []
    for i in range(start, end):
        row_var = variables[i]

        def make_row(kind: str) -> Dict[str, Any]:
            if correlation_type == PEARSON:
                return {"rowHeader": [row_var.name], "type": kind}
            return {"rowHeader": [correlation_type], "var1": row_var.name, "type": kind}

        corr_row = make_row("Pearson Correlation" if correlation_type == PEARSON else "Correlation Coefficient")
        sig_row = make_row(sig_label) if sig_label else None
        ss_row = make_row("Sum of Squares and Cross-products") if with_cross_products else None
        cov_row = make_row("Covariance") if with_cross_products else None
        n_row = make_row("N")

        for j in range(n_column):
            if _hidden(options, i, j):
                continue
            key = f"var_{j}"
            entry = _find(lookup, row_var.name, variables[j].name)
            values = (entry or {}).get("correlation", {}) or {}
            values = values.get(field)
            if not values:
                corr_row[key] = ""
                for extra in (sig_row, ss_row, cov_row):
                    if extra is not None:
                        extra[key] = ""
                n_row[key] = ""
                continue

            if i == j:
                corr_row[key] = 1
                if sig_row is not None:
                    sig_row[key] = ""
            else:
                corr_row[key] = format_correlation_value(values.get(coefficient), values.get("PValue"), flag)
                if sig_row is not None:
                    sig_row[key] = format_p_value(values.get("PValue"))
            if ss_row is not None and cov_row is not None:
                ss_row[key] = format_number(values.get("SumOfSquares"), row_var.decimals + 3)
                cov_row[key] = format_number(values.get("Covariance"), row_var.decimals + 3)
            n_row[key] = values.get("N")

        rows.append(corr_row)
        rows.extend(row for row in (sig_row, ss_row, cov_row) if row is not None)
        rows.append(n_row)
    return rows


def format_correlation_table(
    results: Mapping[str, Any],
    options: Mapping[str, Any],
    test_variables: Sequence[Variable],
    correlation_types: Sequence[str],
) -> Table:
    correlation = (results or {}).get("correlation") or []
    if not correlation:
        return no_data_table("Correlation")

    headers = [{"header": "", "key": "rowHeader"}]
    if KENDALL in correlation_types or SPEARMAN in correlation_types:
        headers.append({"header": "", "key": "var1"})
    headers.append({"header": "", "key": "type"})

    n_column = len(test_variables)
    if options.get("showOnlyTheLowerTriangle") and not options.get("showDiagonal"):
        n_column -= 1
    for i in range(n_column):
        headers.append({"header": column_header(test_variables[i], i), "key": f"var_{i}"})

    table = new_table("Correlation", headers)
    lookup = _pair_lookup(
        (entry for entry in correlation if entry.get("correlation")), "variable1", "variable2"
    )
    for correlation_type in correlation_types:
        if correlation_type in _COEFFICIENTS:
            table["rows"].extend(
                _coefficient_rows(correlation_type, lookup, options, test_variables, n_column)
            )
    return table


def format_partial_correlation_table(
    results: Mapping[str, Any],
    options: Mapping[str, Any],
    test_variables: Sequence[Variable],
) -> Table:
    partial = (results or {}).get("partialCorrelation") or []
    if not partial:
        return no_data_table("Partial Correlation")

    table = new_table(
        "Partial Correlation",
        [
            {"header": "Control Variables", "key": "rowHeader"},
            {"header": "", "key": "var1"},
            {"header": "", "key": "type"},
        ],
    )
    flag = bool(options.get("flagSignificantCorrelations"))
    sig_label = significance_label(options.get("testOfSignificance") or {})

    controls: List[str] = []
    for item in partial:
        control = item.get("controlVariable")
        if control is not None and control.name not in controls:
            controls.append(control.name)

    for control in controls:
        items = [
            item for item in partial if item.get("controlVariable") and item["controlVariable"].name == control
        ]
        names = sorted(
            {item[side].name for item in items for side in ("variable1", "variable2") if item.get(side)}
        )
        for i, name in enumerate(names):
            table["columnHeaders"].append({"header": name, "key": f"var_{i}"})
        lookup = _pair_lookup(items, "variable1", "variable2")

        for i, row_name in enumerate(names):
            corr_row = {"rowHeader": [control], "var1": row_name, "type": "Correlation"}
            sig_row = {"rowHeader": [control], "var1": row_name, "type": sig_label} if sig_label else None
            df_row = {"rowHeader": [control], "var1": row_name, "type": "df"}

            for j, col_name in enumerate(names):
                if _hidden(options, i, j):
                    continue
                key = f"var_{j}"
                entry = _find(lookup, row_name, col_name)
                values = entry.get("partialCorrelation") if entry else None
                if not values:
                    corr_row[key] = ""
                    if sig_row is not None:
                        sig_row[key] = ""
                    df_row[key] = ""
                elif i == j:
                    corr_row[key] = 1
                    if sig_row is not None:
                        sig_row[key] = ""
                    df_row[key] = 0
                else:
                    corr_row[key] = format_correlation_value(
                        values.get("PartialCorrelation"), values.get("PValue"), flag
                    )
                    if sig_row is not None:
                        sig_row[key] = format_p_value(values.get("PValue"))
                    df_row[key] = values.get("df")

            table["rows"].append(corr_row)
            if sig_row is not None:
                table["rows"].append(sig_row)
            table["rows"].append(df_row)
    return table


def format_descriptive_statistics_table(results: Mapping[str, Any]) -> Table:
    entries = (results or {}).get("descriptiveStatistics") or []
    if not entries:
        return no_data_table("No Data")

    table = new_table(
        "Descriptive Statistics",
        [
            {"header": "", "key": "rowHeader"},
            {"header": "Mean", "key": "Mean"},
            {"header": "Std. Deviation", "key": "StdDev"},
            {"header": "N", "key": "N"},
        ],
    )
    for entry in entries:
        stats = entry.get("descriptiveStatistics")
        variable = entry.get("variable1")
        if not stats or variable is None:
            continue
        table["rows"].append(
            {
                "rowHeader": [variable.name],
                "Mean": format_number(stats.get("Mean"), variable.decimals + 2),
                "StdDev": format_number(stats.get("StdDev"), variable.decimals + 3),
                "N": stats.get("N"),
            }
        )
    return table


__all__ = [
    "PEARSON",
    "KENDALL",
    "SPEARMAN",
    "format_correlation_table",
    "format_partial_correlation_table",
    "format_descriptive_statistics_table",
]
