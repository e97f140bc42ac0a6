from __future__ import annotations

import json
from typing import Any, Iterable, Mapping, Optional

from rich.console import Console
from rich.table import Table as RichTable


def cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return " / ".join(str(part) for part in value if part not in (None, ""))
    return str(value)


def to_rich_table(table: Mapping[str, Any]) -> RichTable:
    """Convert a ``{title, columnHeaders, rows}`` table into a rich table."""

    headers = table.get("columnHeaders") or []
    rich_table = RichTable(title=table.get("title") or "", show_lines=False, header_style="bold")
    for header in headers:
        justify = "left" if header.get("key") in ("rowHeader", "var1", "type", "groupingVariable") else "right"
        rich_table.add_column(header.get("header") or "", justify=justify)
    for row in table.get("rows") or []:
        rich_table.add_row(*(cell_text(row.get(header.get("key"))) for header in headers))
    return rich_table


def render_statistics(statistics: Iterable[Mapping[str, Any]], console: Optional[Console] = None) -> None:
    """Print every table stored in the ``output_data`` of each statistic."""

    console = console or Console()
    for statistic in statistics:
        payload = statistic.get("output_data") or "{}"
        data = json.loads(payload) if isinstance(payload, str) else payload
        for table in data.get("tables") or []:
            console.print(to_rich_table(table))
            console.print()


__all__ = ["cell_text", "to_rich_table", "render_statistics"]
