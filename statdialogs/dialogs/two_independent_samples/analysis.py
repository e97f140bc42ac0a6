from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from ...backend.output.formatters import two_independent_samples as tables
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
from .settings import TEST_CODES, TwoIndependentSamplesSettings

logger = logging.getLogger(__name__)

NO_GROUPING_VARIABLE = "Please select a grouping variable."
GROUPS_UNDEFINED = "Please define grouping variable range."
NO_TEST_TYPE = "Please select at least one test type."


def format_group(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class TwoIndependentSamplesAnalysis(AnalysisOrchestrator):
    """Posts one request per unit of work and stores the tables once all have answered."""

    def __init__(
        self,
        partition: VariablePartition,
        settings: TwoIndependentSamplesSettings,
        data_store: DataStore,
        result_store: ResultStore,
        worker_factory: WorkerFactory,
        on_close: Optional[Callable[[], None]] = None,
        on_finished: Optional[Callable[[], None]] = None,
        worker_options: Optional[Mapping[str, Any]] = None,
    ):
        super().__init__(data_store, result_store, worker_factory, on_close, on_finished)
        self.partition = partition
        self.settings = settings
        self.worker_options = dict(worker_options or {})

        self._test_variables: List[Variable] = []
        self._grouping: Optional[Variable] = None
        self._results: List[Dict[str, Any]] = []

    def _reset_run(self) -> None:
        self._results = []

    def _validate(self) -> Optional[str]:
        if not self.partition.test:
            return NO_TEST_VARIABLES
        if self.partition.grouping is None:
            return NO_GROUPING_VARIABLE
        if not self.settings.groups_defined:
            return GROUPS_UNDEFINED
        if not self.settings.test_type.selected():
            return NO_TEST_TYPE
        return None

    def build_messages(self) -> List[Dict[str, Any]]:
        """Requests for the current selection: descriptives first, then one test request per variable."""

        grouping = self.partition.grouping
        if grouping is None:
            return []
        options = {**self.settings.to_payload(), **self.worker_options}
        display = options["displayStatistics"]
        group_column = self.data_store.column(grouping)
        messages: List[Dict[str, Any]] = []

        if self.settings.display_statistics.any_selected():
            for variable in [*self.partition.test, grouping]:
                messages.append(
                    {
                        "analysisType": ["descriptiveStatistics"],
                        "variable1": variable.to_dict(),
                        "data1": self.data_store.column(variable),
                        "options": {"displayStatistics": display},
                    }
                )

        analysis_types = ["frequenciesRanks", *self.settings.analysis_types()]
        for variable in self.partition.test:
            messages.append(
                {
                    "analysisType": list(analysis_types),
                    "variable1": variable.to_dict(),
                    "data1": self.data_store.column(variable),
                    "variable2": grouping.to_dict(),
                    "data2": group_column,
                    "options": options,
                }
            )
        return messages

    def run_analysis(self) -> None:
        problem = self._validate()
        if problem:
            self._fail_validation(problem)
            return
        if not self._begin():
            return

        self._test_variables = list(self.partition.test)
        self._grouping = self.partition.grouping
        messages = self.build_messages()
        logger.info(
            "Posting %d two-independent-samples requests for %s",
            len(messages),
            self._variable_names(self._test_variables),
        )
        worker = self._start_worker(expected=len(messages))
        for message in messages:
            if self._worker is not worker:
                break
            worker.post_message(message)

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
        results = response.get("results")
        if isinstance(results, dict):
            self._results.append(results)
        else:
            logger.warning("Ignoring malformed result for %s", response.get("variableName"))

    def _has_results(self) -> bool:
        return bool(self._results)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def command_log(self) -> str:
        grouping = self._grouping or self.partition.grouping
        names = self._variable_names(self._test_variables or self.partition.test)
        groups = f"{format_group(self.settings.group1)} {format_group(self.settings.group2)}"
        parts = ["NPAR TESTS"]
        for name in self.settings.test_type.selected():
            parts.append(f"/{TEST_CODES[name][1]}={names} BY {grouping.name if grouping else ''}({groups})")
        statistics = []
        if self.settings.display_statistics.descriptive:
            statistics.append("DESCRIPTIVES")
        if self.settings.display_statistics.quartiles:
            statistics.append("QUARTILES")
        if statistics:
            parts.append("/STATISTICS " + " ".join(statistics))
        return " ".join(parts)

    def _persist(self) -> None:
        grouping_name = self._grouping.name if self._grouping else ""
        test_type = self.settings.test_type
        log_id = self.result_store.add_log({"log": self.command_log()})
        analytic_id = self.result_store.add_analytic(log_id, {"title": "Two-Independent-Samples Test", "note": ""})

        candidates = []
        if self.settings.display_statistics.any_selected():
            display = self.settings.to_payload()["displayStatistics"]
            candidates.append(
                ("Descriptive Statistics", tables.format_descriptive_statistics_table(self._results, display))
            )
        candidates.append(("Ranks", tables.format_ranks_table(self._results, grouping_name)))
        if test_type.mann_whitney_u:
            candidates.append(
                ("Mann-Whitney U Test Statistics", tables.format_mann_whitney_u_test_statistics_table(self._results))
            )
        if test_type.kolmogorov_smirnov_z:
            candidates.append(
                (
                    "Kolmogorov-Smirnov Z Frequencies",
                    tables.format_kolmogorov_smirnov_z_frequencies_table(self._results, grouping_name),
                )
            )
            candidates.append(
                (
                    "Kolmogorov-Smirnov Z Test Statistics",
                    tables.format_kolmogorov_smirnov_z_test_statistics_table(self._results),
                )
            )
        if test_type.moses_extreme_reactions:
            candidates.append(("Moses Test Statistics", tables.format_moses_test_statistics_table(self._results)))
        if test_type.wald_wolfowitz_runs:
            candidates.append(
                ("Wald-Wolfowitz Test Statistics", tables.format_wald_wolfowitz_test_statistics_table(self._results))
            )

        for title, table in candidates:
            if table.get("rows"):
                self._add_table(analytic_id, title, table)
        logger.info("Stored two-independent-samples results under log %d", log_id)


__all__ = [
    "TwoIndependentSamplesAnalysis",
    "NO_GROUPING_VARIABLE",
    "GROUPS_UNDEFINED",
    "NO_TEST_TYPE",
    "format_group",
]
