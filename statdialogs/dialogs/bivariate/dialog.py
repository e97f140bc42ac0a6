from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

from ...core.variables import Variable, is_selectable_for_correlation
from ..base import AnalysisState, DataStore, ResultStore, WorkerFactory
from ..variable_selection import Bucket, VariablePartition
from ..workers import qt_worker_factory
from .analysis import BivariateAnalysis
from .settings import BivariateSettings

logger = logging.getLogger(__name__)


class BivariateDialog:
    """State behind the Bivariate Correlations dialog.

    Nominal and string variables stay in the available list; variables of
    unknown measure are accepted only with ``allow_unknown``.
    """

    def __init__(
        self,
        variables: Sequence[Variable],
        data_store: DataStore,
        result_store: ResultStore,
        worker_factory: WorkerFactory = qt_worker_factory,
        settings: Optional[BivariateSettings] = None,
        on_close: Optional[Callable[[], None]] = None,
        on_finished: Optional[Callable[[], None]] = None,
        allow_unknown: bool = False,
    ):
        self.allow_unknown = allow_unknown
        self.partition = VariablePartition(variables, accepts=self._accepts)
        self.settings = settings if settings is not None else BivariateSettings()
        self.analysis = BivariateAnalysis(
            self.partition,
            self.settings,
            data_store,
            result_store,
            worker_factory,
            on_close=on_close,
            on_finished=on_finished,
        )

    def _accepts(self, variable: Variable, target: Bucket) -> bool:
        if target in (Bucket.TEST, Bucket.CONTROL):
            return is_selectable_for_correlation(variable, self.allow_unknown)
        return target == Bucket.AVAILABLE

    @property
    def is_ok_enabled(self) -> bool:
        if len(self.partition.test) < 2:
            return False
        if not self.settings.correlation_coefficient.any_selected():
            return False
        if (
            self.settings.partial_correlation_kendalls_tau_b
            and self.settings.listwise
            and not self.partition.control
        ):
            return False
        return True

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


__all__ = ["BivariateDialog"]
