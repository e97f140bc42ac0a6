import logging
from typing import Any, Callable, Dict, Optional

from PyQt6.QtCore import QObject, QThread, pyqtSignal, pyqtSlot

from statdialogs.backend.analysis.dispatcher import handle_message
from statdialogs.backend.workers.cancellation import (
    CancellationToken,
    CancellationTokenSource,
    OperationCancelledError,
)

logger = logging.getLogger(__name__)


class CalculationWorker(QObject):
    """Runs calculation requests on a background QThread."""

    # Signal declarations
    message = pyqtSignal(object)
    error = pyqtSignal(str)

    def __init__(self, token: CancellationToken):
        super().__init__()
        self._token = token

    @pyqtSlot(object)
    def process(self, payload: Dict[str, Any]) -> None:
        if self._token.cancelled:
            return
        try:
            responses = handle_message(payload)
        except Exception as e:
            logger.error(f"Calculation worker crashed: {e}", exc_info=True)
            if not self._token.cancelled:
                self.error.emit(str(e))
            return

        try:
            for response in responses:
                self._token.raise_if_cancelled()
                self.message.emit(response)
        except OperationCancelledError:
            logger.debug("Dropping responses after cancellation")


class QtWorkerHandle(QObject):
    """Host-side handle for one :class:`CalculationWorker` and its thread.

    Requests are emitted through :attr:`request` and queued onto the worker
    thread; responses come back on the thread that created the handle, so
    ``on_message``/``on_error`` run there while its event loop is spinning.
    """

    request = pyqtSignal(object)

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.on_message: Optional[Callable[[Dict[str, Any]], None]] = None
        self.on_error: Optional[Callable[[str], None]] = None

        self._cancellation = CancellationTokenSource()
        self._thread = QThread()
        self._thread.setObjectName("CalculationWorkerThread")
        self._worker = CalculationWorker(self._cancellation.token)
        self._worker.moveToThread(self._thread)

        self.request.connect(self._worker.process)
        self._worker.message.connect(self._deliver_message)
        self._worker.error.connect(self._deliver_error)
        self._thread.start()

    @property
    def terminated(self) -> bool:
        return self._cancellation.cancelled

    def post_message(self, payload: Dict[str, Any]) -> None:
        if self.terminated:
            logger.debug("Ignoring request posted to a terminated worker")
            return
        self.request.emit(payload)

    @pyqtSlot(object)
    def _deliver_message(self, response: Dict[str, Any]) -> None:
        if not self.terminated and self.on_message is not None:
            self.on_message(response)

    @pyqtSlot(str)
    def _deliver_error(self, message: str) -> None:
        if not self.terminated and self.on_error is not None:
            self.on_error(message)

    def terminate(self, wait_ms: int = 5000) -> None:
        """Cancel pending work and stop the worker thread."""

        self._cancellation.cancel()
        if self._thread.isRunning():
            self._thread.quit()
            if not self._thread.wait(wait_ms):
                logger.warning("Calculation worker thread did not stop within %d ms", wait_ms)
