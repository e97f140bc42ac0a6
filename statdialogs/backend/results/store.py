"""Result store: logs own analytics, analytics own statistics (the output tables)."""
from __future__ import annotations

import itertools
import logging
import threading
from copy import deepcopy
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from ..output.factory import OutputFactory

logger = logging.getLogger(__name__)


class ResultStoreError(Exception):
    """Raised when a record references a parent that does not exist."""


@dataclass
class StatisticRecord:
    id: int
    analytic_id: int
    title: str
    output_data: str
    components: str = ""
    description: str = ""


@dataclass
class AnalyticRecord:
    id: int
    log_id: int
    title: str
    note: str = ""
    statistics: List[StatisticRecord] = field(default_factory=list)


@dataclass
class LogRecord:
    id: int
    log: str
    analytics: List[AnalyticRecord] = field(default_factory=list)


class InMemoryResultStore:
    """Thread-safe result store kept in memory; exportable as JSON or YAML."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._ids = itertools.count(1)
        self._logs: Dict[int, LogRecord] = {}
        self._analytics: Dict[int, AnalyticRecord] = {}

    def add_log(self, log: Mapping[str, Any]) -> int:
        with self._lock:
            record = LogRecord(id=next(self._ids), log=str(log.get("log", "")))
            self._logs[record.id] = record
            logger.debug("Stored log %d: %s", record.id, record.log)
            return record.id

    def add_analytic(self, log_id: int, analytic: Mapping[str, Any]) -> int:
        with self._lock:
            parent = self._logs.get(log_id)
            if parent is None:
                raise ResultStoreError(f"Unknown log id {log_id}")
            record = AnalyticRecord(
                id=next(self._ids),
                log_id=log_id,
                title=str(analytic.get("title", "")),
                note=str(analytic.get("note", "") or ""),
            )
            parent.analytics.append(record)
            self._analytics[record.id] = record
            return record.id

    def add_statistic(self, analytic_id: int, statistic: Mapping[str, Any]) -> int:
        with self._lock:
            parent = self._analytics.get(analytic_id)
            if parent is None:
                raise ResultStoreError(f"Unknown analytic id {analytic_id}")
            record = StatisticRecord(
                id=next(self._ids),
                analytic_id=analytic_id,
                title=str(statistic.get("title", "")),
                output_data=str(statistic.get("output_data", "")),
                components=str(statistic.get("components", "") or ""),
                description=str(statistic.get("description", "") or ""),
            )
            parent.statistics.append(record)
            return record.id

    @property
    def logs(self) -> List[LogRecord]:
        with self._lock:
            return list(self._logs.values())

    def statistics(self, analytic_id: Optional[int] = None) -> List[StatisticRecord]:
        with self._lock:
            analytics = (
                [self._analytics[analytic_id]] if analytic_id is not None else list(self._analytics.values())
            )
            return [stat for analytic in analytics for stat in analytic.statistics]

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return {"logs": [deepcopy(asdict(record)) for record in self._logs.values()]}

    def export(self, output_file: Path, format: str = "json", pretty_print: bool = True) -> None:
        writer = OutputFactory.get_output(format, {"pretty_print": pretty_print})
        writer(self.snapshot(), str(output_file))
        logger.info("Exported results to %s", output_file)


__all__ = [
    "InMemoryResultStore",
    "ResultStoreError",
    "LogRecord",
    "AnalyticRecord",
    "StatisticRecord",
]
