"""
Document store abstraction for Firestore, SQL and an in-memory test implementation.

Documents are plain dicts addressed by (collection, doc_id). Queries support
field equality filters, a single ordering field and a limit, which is all the
helpers need from the managed store.
"""

from __future__ import annotations

import copy
import threading
import uuid
from typing import Any, Optional, Protocol, Sequence

from firebase_admin import firestore
from google.api_core import exceptions as google_exceptions
from google.cloud.firestore_v1.base_query import FieldFilter
from sqlalchemy import JSON, Column, String, create_engine, select
from sqlalchemy.orm import Session, declarative_base, sessionmaker

WhereClause = Sequence[tuple[str, Any]]


class DocumentNotFoundError(KeyError):
    """Raised when a partial update or increment targets a missing document."""


class DocumentStore(Protocol):
    """Interface for document access."""

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        ...

    def set(self, collection: str, doc_id: str, data: dict) -> None:
        ...

    def add(self, collection: str, data: dict) -> str:
        ...

    def update(self, collection: str, doc_id: str, fields: dict) -> None:
        ...

    def increment(
        self, collection: str, doc_id: str, field: str, amount: int = 1
    ) -> None:
        ...

    def query(
        self,
        collection: str,
        *,
        where: WhereClause = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[tuple[str, dict]]:
        ...


def _apply_query(
    items: list[tuple[str, dict]],
    where: WhereClause,
    order_by: Optional[str],
    descending: bool,
    limit: Optional[int],
) -> list[tuple[str, dict]]:
    results = [
        (doc_id, data)
        for doc_id, data in items
        if all(field in data and data[field] == value for field, value in where)
    ]
    if order_by:
        # Like Firestore, documents missing the order field are excluded.
        results = [item for item in results if item[1].get(order_by) is not None]
        results.sort(key=lambda item: item[1][order_by], reverse=descending)
    if limit is not None:
        results = results[:limit]
    return results


class InMemoryDocumentStore:
    """Simple in-memory document store for development and tests."""

    def __init__(self):
        self.collections: dict[str, dict[str, dict]] = {}
        self._lock = threading.Lock()

    def _collection(self, name: str) -> dict[str, dict]:
        return self.collections.setdefault(name, {})

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        with self._lock:
            data = self._collection(collection).get(doc_id)
            return copy.deepcopy(data) if data is not None else None

    def set(self, collection: str, doc_id: str, data: dict) -> None:
        with self._lock:
            self._collection(collection)[doc_id] = copy.deepcopy(data)

    def add(self, collection: str, data: dict) -> str:
        doc_id = uuid.uuid4().hex
        self.set(collection, doc_id, data)
        return doc_id

    def update(self, collection: str, doc_id: str, fields: dict) -> None:
        with self._lock:
            existing = self._collection(collection).get(doc_id)
            if existing is None:
                raise DocumentNotFoundError(f"{collection}/{doc_id}")
            existing.update(copy.deepcopy(fields))

    def increment(
        self, collection: str, doc_id: str, field: str, amount: int = 1
    ) -> None:
        with self._lock:
            existing = self._collection(collection).get(doc_id)
            if existing is None:
                raise DocumentNotFoundError(f"{collection}/{doc_id}")
            existing[field] = (existing.get(field) or 0) + amount

    def query(
        self,
        collection: str,
        *,
        where: WhereClause = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[tuple[str, dict]]:
        with self._lock:
            items = [
                (doc_id, copy.deepcopy(data))
                for doc_id, data in self._collection(collection).items()
            ]
        return _apply_query(items, where, order_by, descending, limit)

    def count(self, collection: str) -> int:
        with self._lock:
            return len(self._collection(collection))

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        with self._lock:
            self.collections.clear()


class FirestoreDocumentStore:
    """
    Cloud Firestore implementation backed by the firebase_admin client.
    """

    def __init__(self, client=None):
        self._client = client or firestore.client()

    def _doc(self, collection: str, doc_id: str):
        return self._client.collection(collection).document(doc_id)

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        snapshot = self._doc(collection, doc_id).get()
        if not snapshot.exists:
            return None
        return snapshot.to_dict()

    def set(self, collection: str, doc_id: str, data: dict) -> None:
        self._doc(collection, doc_id).set(data)

    def add(self, collection: str, data: dict) -> str:
        _, ref = self._client.collection(collection).add(data)
        return ref.id

    def update(self, collection: str, doc_id: str, fields: dict) -> None:
        try:
            self._doc(collection, doc_id).update(fields)
        except google_exceptions.NotFound as e:
            raise DocumentNotFoundError(f"{collection}/{doc_id}") from e

    def increment(
        self, collection: str, doc_id: str, field: str, amount: int = 1
    ) -> None:
        self.update(collection, doc_id, {field: firestore.Increment(amount)})

    def query(
        self,
        collection: str,
        *,
        where: WhereClause = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[tuple[str, dict]]:
        query = self._client.collection(collection)
        for field, value in where:
            query = query.where(filter=FieldFilter(field, "==", value))
        if order_by:
            direction = (
                firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
            )
            query = query.order_by(order_by, direction=direction)
        if limit is not None:
            query = query.limit(limit)
        return [(snapshot.id, snapshot.to_dict()) for snapshot in query.stream()]


class SqlDocumentStore:
    """
    SQLAlchemy-backed implementation storing each document as a JSON row.
    Accepts any SQLAlchemy URL (e.g., Postgres, or SQLite for tests).

    Filtering and ordering run in Python over the collection rows so the same
    code works on every dialect's JSON support.
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlDocumentStore")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        with self.Session() as session:
            row = session.get(DocumentRow, (collection, doc_id))
            return dict(row.data) if row else None

    def set(self, collection: str, doc_id: str, data: dict) -> None:
        with self.Session() as session:
            row = session.get(DocumentRow, (collection, doc_id))
            if row:
                row.data = dict(data)
            else:
                session.add(
                    DocumentRow(collection=collection, doc_id=doc_id, data=dict(data))
                )
            session.commit()

    def add(self, collection: str, data: dict) -> str:
        doc_id = uuid.uuid4().hex
        with self.Session() as session:
            session.add(
                DocumentRow(collection=collection, doc_id=doc_id, data=dict(data))
            )
            session.commit()
        return doc_id

    def update(self, collection: str, doc_id: str, fields: dict) -> None:
        with self.Session() as session:
            row = session.get(DocumentRow, (collection, doc_id), with_for_update=True)
            if not row:
                raise DocumentNotFoundError(f"{collection}/{doc_id}")
            # Reassign so SQLAlchemy sees the JSON column change.
            row.data = {**row.data, **fields}
            session.commit()

    def increment(
        self, collection: str, doc_id: str, field: str, amount: int = 1
    ) -> None:
        with self.Session() as session:
            row = session.get(DocumentRow, (collection, doc_id), with_for_update=True)
            if not row:
                raise DocumentNotFoundError(f"{collection}/{doc_id}")
            data = dict(row.data)
            data[field] = (data.get(field) or 0) + amount
            row.data = data
            session.commit()

    def query(
        self,
        collection: str,
        *,
        where: WhereClause = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[tuple[str, dict]]:
        with self.Session() as session:
            rows = session.execute(
                select(DocumentRow).where(DocumentRow.collection == collection)
            ).scalars()
            items = [(row.doc_id, dict(row.data)) for row in rows]
        return _apply_query(items, where, order_by, descending, limit)


Base = declarative_base()


class DocumentRow(Base):
    __tablename__ = "documents"

    collection = Column(String, primary_key=True)
    doc_id = Column(String, primary_key=True)
    data = Column(JSON, nullable=False)
