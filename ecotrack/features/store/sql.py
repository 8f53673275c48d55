"""
ecotrack/features/store/sql.py

SQLAlchemy-backed document store.

Maintains identical interface to the in-memory MemoryDocumentStore.
Blocking SQLAlchemy sessions run in a worker thread so callers can await them.
"""

import asyncio
import logging
from typing import Any, Callable, List, Mapping, Optional, Tuple
from uuid import uuid4

from sqlalchemy import and_, delete, insert, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import sessionmaker

from ecotrack.core.database import check_connection, create_all_tables, documents, get_db_session, get_engine
from ecotrack.core.errors import NotFoundError, TransientIOError
from ecotrack.features.store.documents import Document

logger = logging.getLogger("ecotrack")


def _denormalized(data: Mapping[str, Any]) -> dict:
    user_id = data.get("user_id")
    sort_key = data.get("date")
    return {
        "user_id": user_id if isinstance(user_id, str) else None,
        "sort_key": sort_key if isinstance(sort_key, str) else None,
    }


class SqlDocumentStore:
    """Documents stored as JSON rows in the ``documents`` table."""

    def __init__(self, engine: Optional[Engine] = None, create_tables: bool = True) -> None:
        self._engine = engine
        self._session_factory = None
        self._create_tables = create_tables
        self._tables_ready = False

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._engine = get_engine()
        return self._engine

    def _factory(self):
        if self._session_factory is None:
            self._session_factory = sessionmaker(autoflush=False, bind=self.engine)
        return self._session_factory

    def _run(self, fn: Callable[..., Any], *args: Any) -> Any:
        try:
            if self._create_tables and not self._tables_ready:
                create_all_tables(self.engine)
                self._tables_ready = True
            return fn(*args)
        except DBAPIError as e:
            logger.warning(f"[store] database unavailable: {e}")
            raise TransientIOError("Document store is unreachable", cause=e) from e

    async def _call(self, fn: Callable[..., Any], *args: Any) -> Any:
        return await asyncio.to_thread(self._run, fn, *args)

    # Sync implementations -------------------------------------------
    def _query_sync(self, collection: str, where: Mapping[str, object]) -> List[Tuple[str, Document]]:
        with get_db_session(self._factory()) as session:
            stmt = select(documents.c.id, documents.c.body).where(documents.c.collection == collection)
            if isinstance(where.get("user_id"), str):
                stmt = stmt.where(documents.c.user_id == where["user_id"])
            rows = session.execute(stmt).all()
        return [
            (row.id, dict(row.body))
            for row in rows
            if all(row.body.get(field) == value for field, value in where.items())
        ]

    def _get_sync(self, collection: str, doc_id: str) -> Optional[Document]:
        with get_db_session(self._factory()) as session:
            row = session.execute(
                select(documents.c.body).where(
                    and_(documents.c.collection == collection, documents.c.id == doc_id)
                )
            ).first()
        return dict(row.body) if row else None

    def _set_sync(self, collection: str, doc_id: str, data: Document) -> None:
        key = and_(documents.c.collection == collection, documents.c.id == doc_id)
        with get_db_session(self._factory()) as session:
            exists = session.execute(select(documents.c.id).where(key)).first()
            if exists:
                session.execute(update(documents).where(key).values(body=data, **_denormalized(data)))
            else:
                session.execute(
                    insert(documents).values(collection=collection, id=doc_id, body=data, **_denormalized(data))
                )

    def _update_sync(self, collection: str, doc_id: str, fields: Document) -> None:
        key = and_(documents.c.collection == collection, documents.c.id == doc_id)
        with get_db_session(self._factory()) as session:
            row = session.execute(select(documents.c.body).where(key)).first()
            if row is None:
                raise NotFoundError(f"{collection}/{doc_id} not found", record_id=doc_id)
            body = dict(row.body)
            body.update(fields)
            session.execute(update(documents).where(key).values(body=body, **_denormalized(body)))

    def _delete_sync(self, collection: str, doc_id: str) -> None:
        key = and_(documents.c.collection == collection, documents.c.id == doc_id)
        with get_db_session(self._factory()) as session:
            result = session.execute(delete(documents).where(key))
            if result.rowcount == 0:
                raise NotFoundError(f"{collection}/{doc_id} not found", record_id=doc_id)

    # Async interface ------------------------------------------------
    async def query(
        self,
        collection: str,
        where: Optional[Mapping[str, object]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Tuple[str, Document]]:
        rows = await self._call(self._query_sync, collection, dict(where or {}))
        if order_by:
            rows.sort(key=lambda row: str(row[1].get(order_by, "")), reverse=descending)
        return rows

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        return await self._call(self._get_sync, collection, doc_id)

    async def add(self, collection: str, data: Mapping[str, object]) -> str:
        doc_id = uuid4().hex
        await self._call(self._set_sync, collection, doc_id, dict(data))
        return doc_id

    async def set(self, collection: str, doc_id: str, data: Mapping[str, object]) -> None:
        await self._call(self._set_sync, collection, doc_id, dict(data))

    async def update(self, collection: str, doc_id: str, fields: Mapping[str, object]) -> None:
        await self._call(self._update_sync, collection, doc_id, dict(fields))

    async def delete(self, collection: str, doc_id: str) -> None:
        await self._call(self._delete_sync, collection, doc_id)

    def is_healthy(self) -> bool:
        return check_connection(self.engine)
