"""
Document Store - the single persistence port used by every service.

Services never talk to SQLAlchemy directly. They read and write plain dicts
addressed by (collection, doc_id) through a DocumentStore:

    store.set("calendarEvents", "evt_1", {...}, merge=True)
    store.get("settings", "calendarTokens")
    store.where("prospects", "assignedTo", "user-1")

Implementations:
================
- SqlDocumentStore: JSON rows in the 'documents' table (PostgreSQL in
  production, SQLite in local runs)
- InMemoryDocumentStore: dict-backed fake for tests

Merge semantics:
================
set(..., merge=True) and update() merge top-level keys into the existing
document; nested dicts are replaced, not merged.
"""

import copy
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, sessionmaker

from app.models.document import DocumentRecord


logger = logging.getLogger("innomind.repositories.document_store")


class DocumentNotFoundError(Exception):
    """Raised by update() when the target document does not exist."""

    def __init__(self, collection: str, doc_id: str):
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(f"Document not found: {collection}/{doc_id}")


@dataclass
class Document:
    """A stored document: its id plus a copy of its data."""
    id: str
    data: Dict[str, Any]


def new_document_id() -> str:
    """Generate an id for add()."""
    return uuid.uuid4().hex


class DocumentStore(ABC):
    """
    Abstract document persistence interface.

    All methods are synchronous; callers in async code call them directly
    the same way route handlers use a SQLAlchemy Session.
    """

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """Return the document's data or None."""

    @abstractmethod
    def set(
        self,
        collection: str,
        doc_id: str,
        data: Dict[str, Any],
        merge: bool = False,
    ) -> None:
        """Create or overwrite a document (or merge into it when merge=True)."""

    @abstractmethod
    def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        """
        Merge fields into an existing document.

        Raises:
            DocumentNotFoundError: if the document does not exist
        """

    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> None:
        """Delete a document; deleting a missing document is a no-op."""

    @abstractmethod
    def list(self, collection: str) -> List[Document]:
        """All documents in a collection, oldest first."""

    @abstractmethod
    def set_many(
        self,
        collection: str,
        documents: Dict[str, Dict[str, Any]],
        merge: bool = False,
    ) -> None:
        """Write several documents as one batch."""

    def add(self, collection: str, data: Dict[str, Any]) -> str:
        """Create a document under a generated id and return the id."""
        doc_id = new_document_id()
        self.set(collection, doc_id, data)
        return doc_id

    def where(self, collection: str, field: str, value: Any) -> List[Document]:
        """Documents whose top-level field equals value."""
        return [doc for doc in self.list(collection) if doc.data.get(field) == value]

    def exists(self, collection: str, doc_id: str) -> bool:
        return self.get(collection, doc_id) is not None


# ---------------------------------------------------------------------------
# SQL IMPLEMENTATION
# ---------------------------------------------------------------------------


class SqlDocumentStore(DocumentStore):
    """
    DocumentStore backed by the 'documents' table.

    Holds a session factory, not a session: every operation opens its own
    session and commits before returning.

    Example:
        from app.db.session import create_session_factory
        store = SqlDocumentStore(create_session_factory(settings.DATABASE_URL))
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def _find(self, session: Session, collection: str, doc_id: str) -> Optional[DocumentRecord]:
        return (
            session.query(DocumentRecord)
            .filter(
                DocumentRecord.collection == collection,
                DocumentRecord.doc_id == doc_id,
            )
            .first()
        )

    def _write(
        self,
        session: Session,
        collection: str,
        doc_id: str,
        data: Dict[str, Any],
        merge: bool,
    ) -> None:
        record = self._find(session, collection, doc_id)
        if record is None:
            session.add(DocumentRecord(collection=collection, doc_id=doc_id, data=dict(data)))
        elif merge:
            # Assign a new dict so SQLAlchemy sees the JSON column change
            record.data = {**record.data, **data}
        else:
            record.data = dict(data)

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        with self._session_factory() as session:
            record = self._find(session, collection, doc_id)
            return copy.deepcopy(record.data) if record else None

    def set(
        self,
        collection: str,
        doc_id: str,
        data: Dict[str, Any],
        merge: bool = False,
    ) -> None:
        with self._session_factory() as session:
            self._write(session, collection, doc_id, data, merge)
            session.commit()

    def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        with self._session_factory() as session:
            record = self._find(session, collection, doc_id)
            if record is None:
                raise DocumentNotFoundError(collection, doc_id)
            record.data = {**record.data, **data}
            session.commit()

    def delete(self, collection: str, doc_id: str) -> None:
        with self._session_factory() as session:
            record = self._find(session, collection, doc_id)
            if record is not None:
                session.delete(record)
                session.commit()

    def list(self, collection: str) -> List[Document]:
        with self._session_factory() as session:
            records = (
                session.query(DocumentRecord)
                .filter(DocumentRecord.collection == collection)
                .order_by(DocumentRecord.created_at, DocumentRecord.doc_id)
                .all()
            )
            return [Document(id=r.doc_id, data=copy.deepcopy(r.data)) for r in records]

    def set_many(
        self,
        collection: str,
        documents: Dict[str, Dict[str, Any]],
        merge: bool = False,
    ) -> None:
        with self._session_factory() as session:
            for doc_id, data in documents.items():
                self._write(session, collection, doc_id, data, merge)
            session.commit()

        logger.debug(
            f"Batch wrote {len(documents)} documents to {collection}",
            extra={"collection": collection, "count": len(documents)},
        )


# ---------------------------------------------------------------------------
# IN-MEMORY IMPLEMENTATION
# ---------------------------------------------------------------------------


class InMemoryDocumentStore(DocumentStore):
    """
    Dict-backed DocumentStore.

    Data is deep-copied on the way in and out so callers can never mutate
    stored state by accident.
    """

    def __init__(self):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def _bucket(self, collection: str) -> Dict[str, Dict[str, Any]]:
        return self._collections.setdefault(collection, {})

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        data = self._bucket(collection).get(doc_id)
        return copy.deepcopy(data) if data is not None else None

    def set(
        self,
        collection: str,
        doc_id: str,
        data: Dict[str, Any],
        merge: bool = False,
    ) -> None:
        bucket = self._bucket(collection)
        if merge and doc_id in bucket:
            bucket[doc_id] = {**bucket[doc_id], **copy.deepcopy(data)}
        else:
            bucket[doc_id] = copy.deepcopy(data)

    def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        bucket = self._bucket(collection)
        if doc_id not in bucket:
            raise DocumentNotFoundError(collection, doc_id)
        bucket[doc_id] = {**bucket[doc_id], **copy.deepcopy(data)}

    def delete(self, collection: str, doc_id: str) -> None:
        self._bucket(collection).pop(doc_id, None)

    def list(self, collection: str) -> List[Document]:
        return [
            Document(id=doc_id, data=copy.deepcopy(data))
            for doc_id, data in self._bucket(collection).items()
        ]

    def set_many(
        self,
        collection: str,
        documents: Dict[str, Dict[str, Any]],
        merge: bool = False,
    ) -> None:
        for doc_id, data in documents.items():
            self.set(collection, doc_id, data, merge=merge)

    def clear(self) -> None:
        """Drop every collection."""
        self._collections.clear()
