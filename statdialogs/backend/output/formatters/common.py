from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

Table = Dict[str, Any]
Cell = Union[str, int, float, None]


def new_table(title: str, headers: List[Dict[str, str]]) -> Table:
    return {"title": title, "columnHeaders": list(headers), "rows": []}


def no_data_table(title: str) -> Table:
    return new_table(title, [{"header": "No Data", "key": "noData"}])


def format_number(value: Optional[float], precision: int) -> Optional[str]:
    if value is None:
        return None
    return f"{value:.{precision}f}"


def format_correlation_value(
    value: Optional[float], p_value: Optional[float], flag_significant: bool
) -> Cell:
    """Three-decimal coefficient, starred when significance flagging is on.

    A missing p-value counts as highly significant (``**``).
    """
    if value is None:
        return None
    if value == 1:
        return 1
    text = f"{value:.3f}"
    if not flag_significant:
        return text
    if not p_value or p_value < 0.01:
        return f"{text} **"
    if p_value < 0.05:
        return f"{text} *"
    return text


def format_p_value(p_value: Optional[float]) -> Optional[str]:
    if p_value is None:
        return None
    if p_value < 0.001:
        return "<.001"
    return f"{p_value:.3f}"


def format_df(df: Optional[float]) -> Cell:
    if df is None:
        return None
    if float(df).is_integer():
        return int(df)
    return f"{df:.3f}"


def significance_label(test_of_significance: Dict[str, Any]) -> Optional[str]:
    if test_of_significance.get("twoTailed"):
        return "Sig. (2-tailed)"
    if test_of_significance.get("oneTailed"):
        return "Sig. (1-tailed)"
    return None


__all__ = [
    "Table",
    "new_table",
    "no_data_table",
    "format_number",
    "format_correlation_value",
    "format_p_value",
    "format_df",
    "significance_label",
]
