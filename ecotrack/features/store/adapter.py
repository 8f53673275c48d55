"""
ecotrack/features/store/adapter.py

Record store adapter: domain records in, domain records out.

Translates User and Habit records to and from documents of the ``users`` and
``habits`` collections of whichever document store backs it. Store failures
are logged here and re-raised to the caller.
"""

import logging
import os
from datetime import datetime, timezone
from typing import Any, Callable, List, Mapping, Optional, Union

from ecotrack.core.errors import AppError, ValidationError
from ecotrack.core.logging import log_event
from ecotrack.features.store.documents import (
    encode_fields,
    habit_from_document,
    habit_to_document,
    user_from_document,
    user_to_document,
)
from ecotrack.features.store.memory import MemoryDocumentStore
from ecotrack.models.habit import Habit
from ecotrack.models.user import User

logger = logging.getLogger("ecotrack")

USERS = "users"
HABITS = "habits"
KINDS = (USERS, HABITS)

Record = Union[User, Habit]


class RecordStore:
    """
    load / get / save / update / delete over domain records.

    ``habits`` loads are ordered by date, newest first.
    """

    def __init__(self, documents, clock: Optional[Callable[[], datetime]] = None) -> None:
        self.documents = documents
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @staticmethod
    def _check_kind(kind: str) -> None:
        if kind not in KINDS:
            raise ValidationError(f"Unknown record kind: {kind}")

    def _decode(self, kind: str, doc_id: str, data: Mapping[str, Any]) -> Record:
        if kind == USERS:
            return user_from_document(doc_id, data, now=self._clock())
        return habit_from_document(doc_id, data, now=self._clock())

    async def _guard(self, op: str, kind: str, record_id: Optional[str], call):
        try:
            return await call
        except AppError as e:
            log_event(
                "warning",
                "store.error",
                habit_id=record_id if kind == HABITS else None,
                user_id=record_id if kind == USERS else None,
                event_type=f"store.{op}",
                error_code=e.code,
                extra={"collection": kind, "detail": e.message},
            )
            raise

    async def load(self, kind: str, filter: Optional[Mapping[str, Any]] = None) -> List[Record]:
        self._check_kind(kind)
        order_by = "date" if kind == HABITS else None
        rows = await self._guard(
            "load",
            kind,
            None,
            self.documents.query(kind, where=encode_fields(filter or {}), order_by=order_by, descending=True),
        )
        return [self._decode(kind, doc_id, data) for doc_id, data in rows]

    async def get(self, kind: str, record_id: str) -> Optional[Record]:
        self._check_kind(kind)
        data = await self._guard("get", kind, record_id, self.documents.get(kind, record_id))
        if data is None:
            return None
        return self._decode(kind, record_id, data)

    async def save(self, record: Record) -> str:
        """Write a full record. Habits without an id get a generated one."""
        if isinstance(record, User):
            if not record.id:
                raise ValidationError("User records need an id")
            await self._guard("save", USERS, record.id, self.documents.set(USERS, record.id, user_to_document(record)))
            return record.id
        if isinstance(record, Habit):
            data = habit_to_document(record)
            if record.id:
                await self._guard("save", HABITS, record.id, self.documents.set(HABITS, record.id, data))
                return record.id
            return await self._guard("save", HABITS, None, self.documents.add(HABITS, data))
        raise ValidationError(f"Cannot save record of type {type(record).__name__}")

    async def update(self, kind: str, record_id: str, fields: Mapping[str, Any]) -> None:
        self._check_kind(kind)
        await self._guard("update", kind, record_id, self.documents.update(kind, record_id, encode_fields(fields)))

    async def delete(self, kind: str, record_id: str) -> None:
        self._check_kind(kind)
        await self._guard("delete", kind, record_id, self.documents.delete(kind, record_id))

    def is_healthy(self) -> bool:
        return self.documents.is_healthy()


def get_document_store():
    """
    Pick the document store implementation.

    - SQL store when DATABASE_URL is configured and reachable
    - Falls back to in-memory otherwise
    """
    database_url = os.getenv("TEST_DATABASE_URL") or os.getenv("DATABASE_URL")
    if database_url:
        try:
            from ecotrack.core.database import check_connection, init_engine
            from ecotrack.features.store.sql import SqlDocumentStore

            engine = init_engine(database_url)
            if check_connection(engine):
                return SqlDocumentStore(engine)
            logger.warning("[store] database unavailable, falling back to in-memory")
        except Exception as e:
            logger.warning(f"[store] failed to initialize SQL store: {e}; falling back to in-memory")

    return MemoryDocumentStore()
