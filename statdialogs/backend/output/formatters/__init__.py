from .common import format_correlation_value, format_df, format_number, format_p_value
from .correlation import (
    format_correlation_table,
    format_descriptive_statistics_table,
    format_partial_correlation_table,
)

__all__ = [
    "format_number",
    "format_correlation_value",
    "format_p_value",
    "format_df",
    "format_correlation_table",
    "format_partial_correlation_table",
    "format_descriptive_statistics_table",
]
