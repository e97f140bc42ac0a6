"""Cancellation signal shared between a dialog and its calculation worker.

The worker handle owns a :class:`CancellationTokenSource`; the code doing the
work only sees the read-only :class:`CancellationToken` and stops emitting once
it is set.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass


class OperationCancelledError(RuntimeError):
    """Raised by :meth:`CancellationToken.raise_if_cancelled`."""


@dataclass(frozen=True)
class CancellationToken:
    _event: threading.Event

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelledError("Calculation cancelled")


class CancellationTokenSource:
    def __init__(self) -> None:
        self._event = threading.Event()
        self.token = CancellationToken(self._event)

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


__all__ = ["CancellationToken", "CancellationTokenSource", "OperationCancelledError"]
