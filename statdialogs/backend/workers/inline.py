from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping, Optional

from ..analysis.dispatcher import handle_message
from .cancellation import CancellationTokenSource

logger = logging.getLogger(__name__)


class InlineWorker:
    """Calculation worker that answers each request synchronously on the caller's thread.

    Used where no Qt event loop runs (library use, tests). Responses are
    delivered through ``on_message`` before :meth:`post_message` returns.
    """

    def __init__(self) -> None:
        self.on_message: Optional[Callable[[Dict[str, Any]], None]] = None
        self.on_error: Optional[Callable[[str], None]] = None
        self._cancellation = CancellationTokenSource()

    @property
    def terminated(self) -> bool:
        return self._cancellation.cancelled

    def post_message(self, payload: Mapping[str, Any]) -> None:
        if self.terminated:
            logger.debug("Ignoring request posted to a terminated worker")
            return
        try:
            responses = handle_message(payload)
        except Exception as exc:
            logger.error("Worker crashed: %s", exc, exc_info=True)
            if self.on_error is not None:
                self.on_error(str(exc))
            return
        for response in responses:
            if self.terminated:
                return
            if self.on_message is not None:
                self.on_message(response)

    def terminate(self) -> None:
        self._cancellation.cancel()
