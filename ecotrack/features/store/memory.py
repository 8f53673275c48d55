"""
ecotrack/features/store/memory.py

In-memory document store. Default backend and the one tests run against.
"""

import copy
from typing import Dict, List, Mapping, Optional, Tuple
from uuid import uuid4

from ecotrack.core.errors import NotFoundError, TransientIOError
from ecotrack.features.store.documents import Document


class MemoryDocumentStore:
    """
    Keyed collections of documents held in process memory.

    Documents are deep-copied on the way in and out so callers never share
    references with the store. Setting ``offline`` makes every call fail the
    way a lost connection would.
    """

    def __init__(self) -> None:
        self._collections: Dict[str, Dict[str, Document]] = {}
        self.offline = False

    def _check_online(self) -> None:
        if self.offline:
            raise TransientIOError("Document store is unreachable")

    def _collection(self, name: str) -> Dict[str, Document]:
        return self._collections.setdefault(name, {})

    async def query(
        self,
        collection: str,
        where: Optional[Mapping[str, object]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Tuple[str, Document]]:
        self._check_online()
        rows = [
            (doc_id, copy.deepcopy(data))
            for doc_id, data in self._collection(collection).items()
            if all(data.get(field) == value for field, value in (where or {}).items())
        ]
        if order_by:
            rows.sort(key=lambda row: str(row[1].get(order_by, "")), reverse=descending)
        return rows

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        self._check_online()
        data = self._collection(collection).get(doc_id)
        return copy.deepcopy(data) if data is not None else None

    async def add(self, collection: str, data: Mapping[str, object]) -> str:
        self._check_online()
        doc_id = uuid4().hex
        self._collection(collection)[doc_id] = copy.deepcopy(dict(data))
        return doc_id

    async def set(self, collection: str, doc_id: str, data: Mapping[str, object]) -> None:
        self._check_online()
        self._collection(collection)[doc_id] = copy.deepcopy(dict(data))

    async def update(self, collection: str, doc_id: str, fields: Mapping[str, object]) -> None:
        self._check_online()
        docs = self._collection(collection)
        if doc_id not in docs:
            raise NotFoundError(f"{collection}/{doc_id} not found", record_id=doc_id)
        docs[doc_id].update(copy.deepcopy(dict(fields)))

    async def delete(self, collection: str, doc_id: str) -> None:
        self._check_online()
        docs = self._collection(collection)
        if doc_id not in docs:
            raise NotFoundError(f"{collection}/{doc_id} not found", record_id=doc_id)
        del docs[doc_id]

    def count(self, collection: str) -> int:
        return len(self._collection(collection))

    def clear(self) -> None:
        """
        Drop every collection.
        FOR TESTING ONLY.
        """
        self._collections.clear()

    def is_healthy(self) -> bool:
        return not self.offline
