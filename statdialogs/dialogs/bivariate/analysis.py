from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from ...backend.output.formatters.correlation import (
    KENDALL,
    PEARSON,
    SPEARMAN,
    format_correlation_table,
    format_descriptive_statistics_table,
    format_partial_correlation_table,
)
from ...core.variables import Variable
from ..base import (
    CALCULATION_FAILED,
    NO_TEST_VARIABLES,
    AnalysisOrchestrator,
    DataStore,
    ResultStore,
    WorkerFactory,
)
from ..variable_selection import VariablePartition
from .settings import BivariateSettings

logger = logging.getLogger(__name__)

_COEFFICIENT_FIELDS = ("pearsonCorrelation", "kendallsTauBCorrelation", "spearmanCorrelation")


class BivariateAnalysis(AnalysisOrchestrator):
    """Runs one bivariate correlation request and stores its tables."""

    def __init__(
        self,
        partition: VariablePartition,
        settings: BivariateSettings,
        data_store: DataStore,
        result_store: ResultStore,
        worker_factory: WorkerFactory,
        on_close: Optional[Callable[[], None]] = None,
        on_finished: Optional[Callable[[], None]] = None,
    ):
        super().__init__(data_store, result_store, worker_factory, on_close, on_finished)
        self.partition = partition
        self.settings = settings

        self._test_variables: List[Variable] = []
        self._control_variables: List[Variable] = []
        self._options: Dict[str, Any] = {}
        self._descriptive: List[Dict[str, Any]] = []
        self._correlation: List[Dict[str, Any]] = []
        self._partial: List[Dict[str, Any]] = []

    def _reset_run(self) -> None:
        self._descriptive = []
        self._correlation = []
        self._partial = []

    def run_analysis(self) -> None:
        test_variables = list(self.partition.test)
        if not test_variables:
            self._fail_validation(NO_TEST_VARIABLES)
            return
        if not self._begin():
            return

        self._test_variables = test_variables
        self._control_variables = list(self.partition.control)
        self._options = self.settings.to_payload()

        payload = {
            "analysisType": "bivariate",
            "variable": [variable.to_dict() for variable in test_variables],
            "data": [self._column_without_gaps(self.data_store, variable) for variable in test_variables],
            "options": {
                **self._options,
                "controlVariables": [variable.to_dict() for variable in self._control_variables],
                "controlData": [
                    self._column_without_gaps(self.data_store, variable) for variable in self._control_variables
                ],
            },
        }
        logger.info("Posting bivariate request for %s", self._variable_names(test_variables))
        worker = self._start_worker(expected=1)
        worker.post_message(payload)

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------
    def _handle_response(self, response: Dict[str, Any]) -> None:
        if response.get("status") != "success":
            self._append_error(
                CALCULATION_FAILED.format(
                    name=response.get("variableName", "unknown"),
                    error=response.get("error") or "Unknown error",
                )
            )
            return

        results = response.get("results") or {}
        worker_error = response.get("error")
        by_name = {variable.name: variable for variable in self._test_variables}
        pool = {**{v.name: v for v in self._control_variables}, **by_name}

        for stats in results.get("descriptiveStatistics") or []:
            variable = by_name.get(stats.get("variable"))
            if variable is not None:
                self._descriptive.append({"variable1": variable, "descriptiveStatistics": stats})

        for entry in results.get("correlation") or []:
            has_coefficients = any(key in entry for key in _COEFFICIENT_FIELDS)
            if entry.get("variable1") and entry.get("variable2") and has_coefficients:
                if entry["variable1"] in by_name:
                    self._correlation.append(
                        {
                            "variable1": entry["variable1"],
                            "variable2": entry["variable2"],
                            "correlation": {key: entry.get(key) for key in _COEFFICIENT_FIELDS},
                        }
                    )
            else:
                self._append_error(
                    CALCULATION_FAILED.format(name="correlation", error=worker_error or "Missing data")
                )

        for entry in results.get("partialCorrelation") or []:
            control = pool.get(entry.get("controlVariable"))
            first = pool.get(entry.get("variable1"))
            second = pool.get(entry.get("variable2"))
            values = entry.get("partialCorrelation")
            if control and first and second and values:
                self._partial.append(
                    {
                        "controlVariable": control,
                        "variable1": first,
                        "variable2": second,
                        "partialCorrelation": {
                            "PartialCorrelation": values.get("Correlation"),
                            "PValue": values.get("PValue"),
                            "df": values.get("df"),
                        },
                    }
                )
            else:
                self._append_error(
                    CALCULATION_FAILED.format(
                        name="partial correlation", error=worker_error or "Missing data"
                    )
                )

    def _has_results(self) -> bool:
        return bool(self._descriptive or self._correlation or self._partial)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def _persist(self) -> None:
        coefficients = self.settings.correlation_coefficient
        log_id = self.result_store.add_log(
            {"log": f"CORRELATIONS {{VARIABLES={self._variable_names(self._test_variables)}}}"}
        )
        analytic_id = self.result_store.add_analytic(log_id, {"title": "Correlation", "note": ""})

        if self.settings.statistics_options.means_and_standard_deviations:
            table = format_descriptive_statistics_table({"descriptiveStatistics": self._descriptive})
            self._add_table(analytic_id, "Descriptive Statistics", table)

        results = {"correlation": self._correlation}
        if coefficients.pearson:
            table = format_correlation_table(results, self._options, self._test_variables, [PEARSON])
            self._add_table(analytic_id, "Correlation", table)

        if coefficients.kendalls_tau_b or coefficients.spearman:
            types = [KENDALL] if coefficients.kendalls_tau_b else []
            if coefficients.spearman:
                types.append(SPEARMAN)
            table = format_correlation_table(results, self._options, self._test_variables, types)
            self._add_table(analytic_id, "Nonparametric Correlation", table)

        if self.settings.partial_correlation_kendalls_tau_b and coefficients.kendalls_tau_b and self._partial:
            table = format_partial_correlation_table(
                {"partialCorrelation": self._partial}, self._options, self._test_variables
            )
            self._add_table(analytic_id, "Partial Correlation", table)

        logger.info("Stored bivariate results under log %d", log_id)


__all__ = ["BivariateAnalysis"]
