"""
Document model - generic JSON documents grouped by collection.

Every domain record (prospects, users, invoices, synced calendar events,
the stored Google credential) lives in this one table. A record is addressed
by (collection, doc_id), the same way a document database addresses
"prospects/abc123".

Example:
    DocumentRecord(
        collection="settings",
        doc_id="calendarTokens",
        data={"tokens": {...}, "updatedAt": "2025-01-01T00:00:00+00:00"},
    )
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class DocumentRecord(Base):
    """
    SQLAlchemy ORM model for the 'documents' table.

    One row per document; unique on (collection, doc_id).
    """

    __tablename__ = "documents"
    __table_args__ = (
        UniqueConstraint("collection", "doc_id", name="uq_documents_collection_doc_id"),
    )

    # ---------------------------------------------------------------------------
    # PRIMARY KEY
    # ---------------------------------------------------------------------------
    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )

    # ---------------------------------------------------------------------------
    # ADDRESS
    # ---------------------------------------------------------------------------
    # collection: "prospects", "users", "calendarEvents", "settings", ...
    collection: Mapped[str] = mapped_column(String(100), nullable=False, index=True)

    # doc_id: caller-chosen key (Google event id, "calendarTokens") or generated
    doc_id: Mapped[str] = mapped_column(String(255), nullable=False)

    # ---------------------------------------------------------------------------
    # PAYLOAD
    # ---------------------------------------------------------------------------
    # data: JSON-serializable dict; replaced wholesale on every write
    data: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    # ---------------------------------------------------------------------------
    # TIMESTAMPS
    # ---------------------------------------------------------------------------
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<DocumentRecord({self.collection}/{self.doc_id})>"
