from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

import pandas as pd

from .exceptions import DataSaveError
from .variables import Measure, Variable, VariableType

logger = logging.getLogger(__name__)


def _cell(value: Any) -> Any:
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    if hasattr(value, "item"):
        return value.item()
    return value


class Dataset:
    """In-memory data store backing the dialogs.

    Rows are kept row-major; ``None`` marks an empty cell. When the dataset was
    loaded from a file, :meth:`check_and_save` writes pending edits back to it.
    """

    def __init__(
        self,
        variables: Sequence[Variable],
        rows: Iterable[Sequence[Any]],
        path: Optional[Path] = None,
    ) -> None:
        self.variables: List[Variable] = list(variables)
        self.rows: List[List[Any]] = [list(row) for row in rows]
        self.path = Path(path) if path is not None else None
        self._dirty = False

    @classmethod
    def from_dataframe(cls, frame: pd.DataFrame, path: Optional[Path] = None) -> "Dataset":
        variables: List[Variable] = []
        for index, column in enumerate(frame.columns):
            series = frame[column]
            if pd.api.types.is_numeric_dtype(series):
                var_type, measure = VariableType.NUMERIC, Measure.SCALE
            elif pd.api.types.is_datetime64_any_dtype(series):
                var_type, measure = VariableType.DATE, Measure.SCALE
            else:
                var_type, measure = VariableType.STRING, Measure.NOMINAL
            variables.append(
                Variable(
                    name=str(column),
                    temp_id=f"var-{index}",
                    column_index=index,
                    type=var_type,
                    measure=measure,
                )
            )
        rows = [[_cell(value) for value in record] for record in frame.itertuples(index=False)]
        return cls(variables, rows, path=path)

    @classmethod
    def from_csv(cls, path: Path, **read_kwargs: Any) -> "Dataset":
        path = Path(path)
        logger.debug("Loading dataset from %s", path)
        frame = pd.read_csv(path, **read_kwargs)
        return cls.from_dataframe(frame, path=path)

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    def variable(self, name: str) -> Variable:
        for variable in self.variables:
            if variable.name == name:
                return variable
        raise KeyError(f"Unknown variable '{name}'")

    def column(self, variable: Variable) -> List[Any]:
        index = variable.column_index
        return [row[index] if index < len(row) else None for row in self.rows]

    def columns(self) -> Dict[str, List[Any]]:
        return {variable.name: self.column(variable) for variable in self.variables}

    def set_value(self, row: int, column: int, value: Any) -> None:
        while len(self.rows) <= row:
            self.rows.append([None] * len(self.variables))
        target = self.rows[row]
        while len(target) <= column:
            target.append(None)
        if target[column] != value:
            target[column] = value
            self._dirty = True

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(self.rows, columns=[v.name for v in self.variables])

    def check_and_save(self) -> None:
        """Flush pending edits. Raises :class:`DataSaveError` when writing fails."""

        if not self._dirty:
            return
        if self.path is None:
            self._dirty = False
            return
        try:
            self.to_dataframe().to_csv(self.path, index=False)
        except OSError as exc:
            raise DataSaveError(str(exc)) from exc
        logger.info("Saved pending data changes to %s", self.path)
        self._dirty = False


__all__ = ["Dataset"]
