from newlife.services.store.base import (
    DocumentStore,
    Record,
    StoreError,
    Unsubscribe,
    split_path,
)
from newlife.services.store.memory import MemoryDocumentStore

__all__ = [
    "DocumentStore",
    "MemoryDocumentStore",
    "Record",
    "StoreError",
    "Unsubscribe",
    "split_path",
]
