"""Reading and writing of the TOML configuration format."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Tuple

try:  # Python 3.11+
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # type: ignore[no-redef]

TOMLDecodeError = tomllib.TOMLDecodeError


def load_toml(path: Path) -> Dict[str, Any]:
    with path.open("rb") as fh:
        return tomllib.load(fh)


def loads_toml(content: str) -> Dict[str, Any]:
    return tomllib.loads(content)


def _quote(value: str) -> str:
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\t", "\\t")
    )
    return f'"{escaped}"'


def format_value(value: Any) -> str:
    # bool is a subclass of int, so it has to be checked first
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        return _quote(value)
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(format_value(item) for item in value) + "]"
    raise TypeError(f"Cannot serialise {type(value).__name__!r} to TOML")


def dumps_toml(data: Dict[str, Any]) -> str:
    """Serialise nested dictionaries into TOML tables.

    ``None`` values are dropped since TOML has no null literal.
    """

    blocks: List[str] = []

    def emit(prefix: str, table: Dict[str, Any]) -> None:
        scalars: List[Tuple[str, Any]] = []
        children: List[Tuple[str, Dict[str, Any]]] = []
        for key, value in table.items():
            if value is None:
                continue
            if isinstance(value, dict):
                children.append((key, value))
            else:
                scalars.append((key, value))

        lines: List[str] = []
        if prefix and (scalars or not children):
            lines.append(f"[{prefix}]")
        lines.extend(f"{key} = {format_value(value)}" for key, value in scalars)
        if lines:
            blocks.append("\n".join(lines))

        for key, child in children:
            emit(f"{prefix}.{key}" if prefix else key, child)

    emit("", data)
    return "\n\n".join(blocks) + "\n"


__all__ = [
    "TOMLDecodeError",
    "dumps_toml",
    "format_value",
    "load_toml",
    "loads_toml",
    "tomllib",
]
