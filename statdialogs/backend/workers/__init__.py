from .cancellation import CancellationToken, CancellationTokenSource, OperationCancelledError
from .inline import InlineWorker

__all__ = ["CancellationToken", "CancellationTokenSource", "OperationCancelledError", "InlineWorker"]
