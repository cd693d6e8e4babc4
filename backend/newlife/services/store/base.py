"""
Document store interface.

Paths are slash-separated, Firestore style: a document lives at
`<collection path>/<doc id>`, e.g. `users/u1/pregnancies/p1/chatMessages/m1`.
"""
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional

Record = dict[str, Any]
SnapshotCallback = Callable[[List[Record]], None]
Unsubscribe = Callable[[], None]


class StoreError(Exception):
    """Raised when the store cannot complete a read or write."""


def split_path(path: str) -> tuple[str, str]:
    """Split a document path into (collection path, document id)."""
    collection, _, doc_id = path.strip("/").rpartition("/")
    if not collection or not doc_id:
        raise StoreError(f"Invalid document path: {path!r}")
    return collection, doc_id


class DocumentStore(ABC):
    """Async document store with live collection subscriptions."""

    @abstractmethod
    async def put(self, path: str, record: Record) -> None:
        """Create or replace the document at path."""

    @abstractmethod
    async def get(self, path: str) -> Optional[Record]:
        """Get a document, or None when absent."""

    @abstractmethod
    async def delete(self, path: str) -> bool:
        """Delete a document. Returns whether it existed."""

    @abstractmethod
    async def add(self, collection: str, record: Record) -> str:
        """Create a document with a generated id, written into record['id']."""

    @abstractmethod
    async def query(
        self,
        collection: str,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
        where: Optional[dict[str, Any]] = None,
    ) -> List[Record]:
        """List documents of a collection."""

    @abstractmethod
    def subscribe(
        self,
        collection: str,
        callback: SnapshotCallback,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
        where: Optional[dict[str, Any]] = None,
    ) -> Unsubscribe:
        """
        Watch a collection. The callback receives the current result set
        right away and again after every change to the collection.
        """
