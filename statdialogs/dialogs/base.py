"""Collaborator protocols and the shared worker lifecycle of the analysis dialogs."""
from __future__ import annotations

import json
import logging
from enum import Enum, auto
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence, runtime_checkable

from ..core.variables import Variable

logger = logging.getLogger(__name__)

NO_TEST_VARIABLES = "Please select at least one variable to analyze."
SAVE_FAILED = "Failed to save pending changes: {error}"
CALCULATION_FAILED = "Calculation failed for {name}: {error}"
WORKER_CRASHED = "A critical worker error occurred: {error}"
PERSIST_FAILED = "Error saving results."


class AnalysisState(Enum):
    IDLE = auto()
    RUNNING = auto()
    COMPLETED = auto()
    ERROR = auto()


@runtime_checkable
class CalculationWorker(Protocol):
    """A background computation task answering posted requests asynchronously."""

    on_message: Optional[Callable[[Dict[str, Any]], None]]
    on_error: Optional[Callable[[str], None]]

    def post_message(self, payload: Dict[str, Any]) -> None: ...

    def terminate(self) -> None: ...


@runtime_checkable
class DataStore(Protocol):
    def check_and_save(self) -> None: ...

    def column(self, variable: Variable) -> List[Any]: ...


@runtime_checkable
class ResultStore(Protocol):
    def add_log(self, log: Mapping[str, Any]) -> int: ...

    def add_analytic(self, log_id: int, analytic: Mapping[str, Any]) -> int: ...

    def add_statistic(self, analytic_id: int, statistic: Mapping[str, Any]) -> int: ...


WorkerFactory = Callable[[], CalculationWorker]


class AnalysisOrchestrator:
    """Worker handshake shared by the dialogs.

    Subclasses build and post the requests, consume responses in
    :meth:`_handle_response` and persist tables in :meth:`_persist`. Errors
    never propagate to the caller: they accumulate in :attr:`error_msg`.
    """

    def __init__(
        self,
        data_store: DataStore,
        result_store: ResultStore,
        worker_factory: WorkerFactory,
        on_close: Optional[Callable[[], None]] = None,
        on_finished: Optional[Callable[[], None]] = None,
    ) -> None:
        self.data_store = data_store
        self.result_store = result_store
        self.worker_factory = worker_factory
        self.on_close = on_close
        self.on_finished = on_finished

        self.is_calculating = False
        self.error_msg: Optional[str] = None
        self.state = AnalysisState.IDLE

        self._worker: Optional[CalculationWorker] = None
        self._expected = 0
        self._processed = 0
        self._error_count = 0

    # ------------------------------------------------------------------
    # Error helpers
    # ------------------------------------------------------------------
    def _append_error(self, message: str) -> None:
        self.error_msg = f"{self.error_msg}\n{message}" if self.error_msg else message
        self._error_count += 1

    def _fail_validation(self, message: str) -> None:
        self.error_msg = message
        self.state = AnalysisState.ERROR

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def _begin(self) -> bool:
        """Enter the calculating state and flush pending data edits."""

        self.is_calculating = True
        self.error_msg = None
        self.state = AnalysisState.RUNNING
        try:
            self.data_store.check_and_save()
        except Exception as exc:
            logger.error("Saving pending data failed: %s", exc, exc_info=True)
            self.error_msg = SAVE_FAILED.format(error=exc)
            self.is_calculating = False
            self.state = AnalysisState.ERROR
            return False

        self._reset_run()
        self._processed = 0
        self._error_count = 0
        return True

    def _reset_run(self) -> None:
        """Clear per-run result buffers."""

    def _start_worker(self, expected: int) -> CalculationWorker:
        self._expected = expected
        worker = self.worker_factory()
        worker.on_message = self._on_message
        worker.on_error = self._on_worker_error
        self._worker = worker
        return worker

    def _on_message(self, response: Dict[str, Any]) -> None:
        if self._worker is None:
            return
        try:
            self._handle_response(response or {})
        except Exception as exc:  # pragma: no cover - defensive guard
            logger.error("Failed to process worker response: %s", exc, exc_info=True)
            self._append_error(CALCULATION_FAILED.format(name="response", error=exc))
        self._processed += 1
        logger.debug("Processed %d of %d worker responses", self._processed, self._expected)
        if self._processed >= self._expected:
            self._complete()

    def _handle_response(self, response: Dict[str, Any]) -> None:
        raise NotImplementedError

    def _has_results(self) -> bool:
        raise NotImplementedError

    def _persist(self) -> None:
        raise NotImplementedError

    def _complete(self) -> None:
        persisted: Optional[bool] = None
        if self._has_results():
            try:
                self._persist()
                persisted = True
            except Exception as exc:
                logger.error("Error saving results: %s", exc, exc_info=True)
                self.error_msg = f"{self.error_msg}\n{PERSIST_FAILED}" if self.error_msg else PERSIST_FAILED
                persisted = False

        self._stop_worker()
        self.is_calculating = False
        failed = persisted is False or self._error_count > 0
        self.state = AnalysisState.ERROR if failed else AnalysisState.COMPLETED

        if persisted or (persisted is None and self._error_count == 0):
            if self.on_close is not None:
                self.on_close()
        self._notify_finished()

    def _on_worker_error(self, message: str) -> None:
        logger.error("A critical worker error occurred: %s", message)
        self.error_msg = WORKER_CRASHED.format(error=message)
        self.is_calculating = False
        self.state = AnalysisState.ERROR
        self._stop_worker()
        self._notify_finished()

    def _stop_worker(self) -> None:
        worker, self._worker = self._worker, None
        if worker is not None:
            worker.on_message = None
            worker.on_error = None
            worker.terminate()

    def _notify_finished(self) -> None:
        if self.on_finished is not None:
            self.on_finished()

    def cancel_calculation(self) -> None:
        if self._worker is None:
            return
        self._stop_worker()
        self.is_calculating = False
        self.state = AnalysisState.IDLE
        logger.info("%s calculation cancelled.", type(self).__name__)
        self._notify_finished()

    # ------------------------------------------------------------------
    # Persistence helpers
    # ------------------------------------------------------------------
    def _add_table(self, analytic_id: int, title: str, table: Mapping[str, Any]) -> None:
        self.result_store.add_statistic(
            analytic_id,
            {
                "title": title,
                "output_data": json.dumps({"tables": [table]}),
                "components": title,
                "description": "",
            },
        )

    @staticmethod
    def _column_without_gaps(data_store: DataStore, variable: Variable) -> List[Any]:
        return [value for value in data_store.column(variable) if value is not None]

    @staticmethod
    def _variable_names(variables: Sequence[Variable]) -> str:
        return " ".join(variable.name for variable in variables)


__all__ = [
    "AnalysisState",
    "AnalysisOrchestrator",
    "CalculationWorker",
    "DataStore",
    "ResultStore",
    "WorkerFactory",
    "NO_TEST_VARIABLES",
    "SAVE_FAILED",
    "CALCULATION_FAILED",
    "WORKER_CRASHED",
    "PERSIST_FAILED",
]
