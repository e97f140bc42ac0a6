"""Variable metadata shared by the dialogs, the worker and the formatters."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class Measure(str, Enum):
    SCALE = "scale"
    ORDINAL = "ordinal"
    NOMINAL = "nominal"
    UNKNOWN = "unknown"


class VariableType(str, Enum):
    NUMERIC = "NUMERIC"
    STRING = "STRING"
    DATE = "DATE"


@dataclass(frozen=True)
class ValueLabel:
    value: Any
    label: str

    def to_dict(self) -> Dict[str, Any]:
        return {"value": self.value, "label": self.label}


@dataclass(frozen=True)
class MissingRange:
    min: float
    max: float


@dataclass(frozen=True)
class MissingDefinition:
    """User-defined missing values: discrete codes plus an optional closed range."""

    discrete: tuple = ()
    range: Optional[MissingRange] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"discrete": list(self.discrete)}
        if self.range is not None:
            data["range"] = {"min": self.range.min, "max": self.range.max}
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["MissingDefinition"]:
        if not data:
            return None
        rng = data.get("range")
        return cls(
            discrete=tuple(data.get("discrete") or ()),
            range=MissingRange(rng["min"], rng["max"]) if rng else None,
        )


@dataclass
class Variable:
    name: str
    temp_id: str
    column_index: int
    label: str = ""
    type: VariableType = VariableType.NUMERIC
    measure: Measure = Measure.SCALE
    decimals: int = 2
    values: List[ValueLabel] = field(default_factory=list)
    missing: Optional[MissingDefinition] = None

    def to_dict(self) -> Dict[str, Any]:
        """Render the camelCase variable object the worker expects."""

        return {
            "name": self.name,
            "tempId": self.temp_id,
            "columnIndex": self.column_index,
            "label": self.label,
            "type": self.type.value,
            "measure": self.measure.value,
            "decimals": self.decimals,
            "values": [item.to_dict() for item in self.values],
            "missing": self.missing.to_dict() if self.missing else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Variable":
        return cls(
            name=data["name"],
            temp_id=str(data.get("tempId") or data["name"]),
            column_index=int(data.get("columnIndex", 0)),
            label=data.get("label") or "",
            type=VariableType(data.get("type", VariableType.NUMERIC.value)),
            measure=Measure(data.get("measure", Measure.UNKNOWN.value)),
            decimals=int(data.get("decimals", 2)),
            values=[ValueLabel(v["value"], v["label"]) for v in data.get("values") or []],
            missing=MissingDefinition.from_dict(data.get("missing")),
        )


def display_name(variable: Variable) -> str:
    return f"{variable.label} [{variable.name}]" if variable.label else variable.name


def column_header(variable: Optional[Variable], index: int) -> str:
    if variable is not None:
        if variable.label:
            return variable.label
        if variable.name:
            return variable.name
    return f"Variable {index + 1}"


def is_selectable_for_correlation(variable: Variable, allow_unknown: bool = False) -> bool:
    """Nominal and string variables cannot be correlated; ``unknown`` only on request."""

    if variable.type == VariableType.STRING or variable.measure == Measure.NOMINAL:
        return False
    if variable.measure == Measure.UNKNOWN:
        return allow_unknown
    return True


__all__ = [
    "Measure",
    "VariableType",
    "ValueLabel",
    "MissingRange",
    "MissingDefinition",
    "Variable",
    "display_name",
    "column_header",
    "is_selectable_for_correlation",
]
