from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from statdialogs.config import UnifiedConfigManager
from statdialogs.core.variables import Measure, Variable, VariableType


@pytest.fixture
def unified_manager(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[UnifiedConfigManager]:
    base = tmp_path / "config_env"
    monkeypatch.setenv("APPDATA", str(base / "appdata"))
    monkeypatch.setenv("HOME", str(base / "home"))

    UnifiedConfigManager._instance = None  # type: ignore[attr-defined]
    manager = UnifiedConfigManager()
    config_file = base / "config" / "config.toml"
    manager.reload(config_path=config_file)

    try:
        yield manager
    finally:
        manager.cleanup()


def make_variable(
    name: str,
    index: int,
    measure: Measure = Measure.SCALE,
    type: VariableType = VariableType.NUMERIC,
    **kwargs: Any,
) -> Variable:
    return Variable(name=name, temp_id=f"var-{index}", column_index=index, type=type, measure=measure, **kwargs)


class FakeDataStore:
    """Column store keyed by column index."""

    def __init__(self, columns: List[List[Any]], fail_with: Optional[Exception] = None) -> None:
        self.columns = columns
        self.fail_with = fail_with
        self.saved = 0

    def check_and_save(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.saved += 1

    def column(self, variable: Variable) -> List[Any]:
        return list(self.columns[variable.column_index])


class RecordingResultStore:
    def __init__(self, fail_on_statistic: bool = False) -> None:
        self.logs: List[Dict[str, Any]] = []
        self.analytics: List[Dict[str, Any]] = []
        self.statistics: List[Dict[str, Any]] = []
        self.fail_on_statistic = fail_on_statistic

    def add_log(self, log: Dict[str, Any]) -> int:
        self.logs.append(dict(log))
        return len(self.logs)

    def add_analytic(self, log_id: int, analytic: Dict[str, Any]) -> int:
        self.analytics.append({"log_id": log_id, **analytic})
        return len(self.analytics)

    def add_statistic(self, analytic_id: int, statistic: Dict[str, Any]) -> int:
        if self.fail_on_statistic:
            raise RuntimeError("database is locked")
        self.statistics.append({"analytic_id": analytic_id, **statistic})
        return len(self.statistics)

    @property
    def titles(self) -> List[str]:
        return [statistic["title"] for statistic in self.statistics]


class FakeWorker:
    """Records posted requests; tests answer them through ``respond``/``fail``."""

    def __init__(self) -> None:
        self.on_message = None
        self.on_error = None
        self.posted: List[Dict[str, Any]] = []
        self.terminated = False

    def post_message(self, payload: Dict[str, Any]) -> None:
        self.posted.append(payload)

    def terminate(self) -> None:
        self.terminated = True

    def respond(self, response: Dict[str, Any]) -> None:
        assert self.on_message is not None
        self.on_message(response)

    def fail(self, message: str) -> None:
        assert self.on_error is not None
        self.on_error(message)


@pytest.fixture
def fake_worker_factory():
    workers: List[FakeWorker] = []

    def factory() -> FakeWorker:
        worker = FakeWorker()
        workers.append(worker)
        return worker

    factory.workers = workers  # type: ignore[attr-defined]
    return factory
