"""
In-process document store.
"""
import copy
import itertools
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from newlife.core.logging import get_logger
from newlife.services.store.base import (
    DocumentStore,
    Record,
    SnapshotCallback,
    StoreError,
    Unsubscribe,
    split_path,
)

logger = get_logger(__name__)


@dataclass
class _Subscription:
    collection: str
    callback: SnapshotCallback
    order_by: Optional[str]
    descending: bool
    limit: Optional[int]
    where: Optional[dict[str, Any]]


class MemoryDocumentStore(DocumentStore):
    """
    Dict-backed DocumentStore.

    Records are deep-copied on the way in and out. Ties in `order_by` fall
    back to insertion order (reversed when descending).
    """

    def __init__(self):
        self._collections: Dict[str, Dict[str, tuple[int, Record]]] = {}
        self._subscriptions: List[_Subscription] = []
        self._sequence = itertools.count()

    async def put(self, path: str, record: Record) -> None:
        if not isinstance(record, dict):
            raise StoreError(f"Record for {path!r} must be a dict")
        collection, doc_id = split_path(path)
        docs = self._collections.setdefault(collection, {})
        seq = docs[doc_id][0] if doc_id in docs else next(self._sequence)
        docs[doc_id] = (seq, copy.deepcopy(record))
        self._notify(collection)

    async def get(self, path: str) -> Optional[Record]:
        collection, doc_id = split_path(path)
        entry = self._collections.get(collection, {}).get(doc_id)
        return copy.deepcopy(entry[1]) if entry else None

    async def delete(self, path: str) -> bool:
        collection, doc_id = split_path(path)
        existed = self._collections.get(collection, {}).pop(doc_id, None) is not None
        if existed:
            self._notify(collection)
        return existed

    async def add(self, collection: str, record: Record) -> str:
        doc_id = uuid.uuid4().hex[:20]
        await self.put(f"{collection.strip('/')}/{doc_id}", {**record, "id": doc_id})
        return doc_id

    async def query(
        self,
        collection: str,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
        where: Optional[dict[str, Any]] = None,
    ) -> List[Record]:
        return self._select(collection.strip("/"), order_by, descending, limit, where)

    def subscribe(
        self,
        collection: str,
        callback: SnapshotCallback,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
        where: Optional[dict[str, Any]] = None,
    ) -> Unsubscribe:
        subscription = _Subscription(
            collection.strip("/"), callback, order_by, descending, limit, where
        )
        self._subscriptions.append(subscription)
        self._deliver(subscription)

        def unsubscribe() -> None:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

        return unsubscribe

    def _select(
        self,
        collection: str,
        order_by: Optional[str],
        descending: bool,
        limit: Optional[int],
        where: Optional[dict[str, Any]],
    ) -> List[Record]:
        entries = list(self._collections.get(collection, {}).values())

        if where:
            entries = [
                (seq, rec) for seq, rec in entries
                if all(rec.get(k) == v for k, v in where.items())
            ]

        if order_by:
            try:
                entries.sort(
                    key=lambda e: (e[1].get(order_by) is not None, e[1].get(order_by), e[0]),
                    reverse=descending,
                )
            except TypeError as e:
                raise StoreError(f"Cannot order {collection!r} by {order_by!r}: {e}") from e
        else:
            entries.sort(key=lambda e: e[0], reverse=descending)

        if limit is not None:
            entries = entries[:limit]
        return [copy.deepcopy(rec) for _, rec in entries]

    def _notify(self, collection: str) -> None:
        for subscription in list(self._subscriptions):
            if subscription.collection == collection:
                self._deliver(subscription)

    def _deliver(self, subscription: _Subscription) -> None:
        records = self._select(
            subscription.collection,
            subscription.order_by,
            subscription.descending,
            subscription.limit,
            subscription.where,
        )
        try:
            subscription.callback(records)
        except Exception:
            logger.exception("Snapshot listener failed", collection=subscription.collection)
