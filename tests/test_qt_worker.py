from __future__ import annotations

import pytest

QtCore = pytest.importorskip("PyQt6.QtCore")

from statdialogs.dialogs import AnalysisState, BivariateDialog
from statdialogs.gui.workers.analysis.calculation_worker import QtWorkerHandle

from conftest import FakeDataStore, RecordingResultStore, make_variable


@pytest.fixture(scope="module")
def qt_app():
    return QtCore.QCoreApplication.instance() or QtCore.QCoreApplication([])


def _spin(loop, timeout_ms=5000):
    QtCore.QTimer.singleShot(timeout_ms, loop.quit)
    loop.exec()


def test_worker_handle_answers_on_host_thread(qt_app):
    handle = QtWorkerHandle()
    loop = QtCore.QEventLoop()
    received = []

    def on_message(response):
        received.append((response, QtCore.QThread.currentThread()))
        loop.quit()

    handle.on_message = on_message
    try:
        handle.post_message(
            {
                "analysisType": ["descriptiveStatistics"],
                "variable1": {"name": "x", "measure": "scale", "missing": None},
                "data1": [1, 2, 3, 4],
            }
        )
        _spin(loop)
    finally:
        handle.terminate()

    [(response, thread)] = received
    assert response["status"] == "success"
    assert response["results"]["descriptiveStatistics"]["N"] == 4
    assert thread is qt_app.thread()
    assert handle.terminated


def test_terminated_handle_ignores_requests(qt_app):
    handle = QtWorkerHandle()
    handle.on_message = lambda response: pytest.fail("response after terminate")
    handle.terminate()
    handle.post_message({"analysisType": ["descriptiveStatistics"], "variable1": {"name": "x"}, "data1": [1]})
    qt_app.processEvents()


def test_dialog_runs_through_qt_worker(qt_app):
    variables = [make_variable("a", 0), make_variable("b", 1)]
    store = FakeDataStore([[1, 2, 3, 4, 5], [2, 1, 4, 3, 5]])
    results = RecordingResultStore()
    loop = QtCore.QEventLoop()
    dialog = BivariateDialog(variables, store, results, on_finished=loop.quit)
    for variable in variables:
        dialog.partition.move_to_test(variable)

    dialog.run()
    if dialog.is_calculating:
        _spin(loop)

    assert dialog.state == AnalysisState.COMPLETED
    assert results.titles == ["Correlation"]
