from __future__ import annotations

from typing import Any, Callable, Mapping, Optional, Sequence

from ...core.variables import Variable
from ..base import AnalysisState, DataStore, ResultStore, WorkerFactory
from ..variable_selection import VariablePartition
from ..workers import qt_worker_factory
from .analysis import TwoIndependentSamplesAnalysis
from .settings import TwoIndependentSamplesSettings


class TwoIndependentSamplesDialog:
    """State behind the Two-Independent-Samples Tests dialog."""

    def __init__(
        self,
        variables: Sequence[Variable],
        data_store: DataStore,
        result_store: ResultStore,
        worker_factory: WorkerFactory = qt_worker_factory,
        settings: Optional[TwoIndependentSamplesSettings] = None,
        on_close: Optional[Callable[[], None]] = None,
        on_finished: Optional[Callable[[], None]] = None,
        worker_options: Optional[Mapping[str, Any]] = None,
    ):
        self.partition = VariablePartition(variables)
        self.settings = settings if settings is not None else TwoIndependentSamplesSettings()
        self.analysis = TwoIndependentSamplesAnalysis(
            self.partition,
            self.settings,
            data_store,
            result_store,
            worker_factory,
            on_close=on_close,
            on_finished=on_finished,
            worker_options=worker_options,
        )

    @property
    def is_ok_enabled(self) -> bool:
        return (
            bool(self.partition.test)
            and self.partition.grouping is not None
            and self.settings.groups_defined
            and bool(self.settings.test_type.selected())
        )

    @property
    def is_calculating(self) -> bool:
        return self.analysis.is_calculating

    @property
    def error_msg(self) -> Optional[str]:
        return self.analysis.error_msg

    @property
    def state(self) -> AnalysisState:
        return self.analysis.state

    def reset(self) -> None:
        self.partition.reset()
        self.settings.reset()
        self.analysis.error_msg = None
        self.analysis.state = AnalysisState.IDLE

    def run(self) -> None:
        self.analysis.run_analysis()

    def cancel(self) -> None:
        self.analysis.cancel_calculation()


__all__ = ["TwoIndependentSamplesDialog"]
