from __future__ import annotations

from .base import CalculationWorker


def qt_worker_factory() -> CalculationWorker:
    """Default factory: a calculation worker on its own ``QThread``."""

    from ..gui.workers.analysis.calculation_worker import QtWorkerHandle

    return QtWorkerHandle()


def inline_worker_factory() -> CalculationWorker:
    from ..backend.workers.inline import InlineWorker

    return InlineWorker()


__all__ = ["qt_worker_factory", "inline_worker_factory"]
