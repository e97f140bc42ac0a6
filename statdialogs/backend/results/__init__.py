from .store import InMemoryResultStore, ResultStoreError

__all__ = ["InMemoryResultStore", "ResultStoreError"]
