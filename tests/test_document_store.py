"""
Tests for the document store implementations.

Both the SQL store (SQLite in-memory) and the in-memory fake must behave
the same, so every test runs against both.
"""

import pytest

from app.db.base import Base
from app.db.session import create_session_factory
from app.repositories.document_store import (
    DocumentNotFoundError,
    InMemoryDocumentStore,
    SqlDocumentStore,
)


@pytest.fixture(params=["memory", "sql"])
def doc_store(request):
    if request.param == "memory":
        yield InMemoryDocumentStore()
        return

    session_factory = create_session_factory("sqlite://")
    engine = session_factory.kw["bind"]
    Base.metadata.create_all(bind=engine)
    yield SqlDocumentStore(session_factory)
    Base.metadata.drop_all(bind=engine)


class TestBasicOperations:
    """get / set / delete."""

    def test_get_missing_returns_none(self, doc_store):
        """Should return None for an unknown document."""
        assert doc_store.get("prospects", "nope") is None

    def test_set_then_get(self, doc_store):
        """Should store and return the document data."""
        doc_store.set("prospects", "p1", {"nombre": "Ana", "tags": ["a"]})

        assert doc_store.get("prospects", "p1") == {"nombre": "Ana", "tags": ["a"]}

    def test_set_without_merge_replaces(self, doc_store):
        """Should replace the whole document when merge is False."""
        doc_store.set("prospects", "p1", {"nombre": "Ana", "telefono": "1"})
        doc_store.set("prospects", "p1", {"nombre": "Ana María"})

        assert doc_store.get("prospects", "p1") == {"nombre": "Ana María"}

    def test_set_with_merge_keeps_other_keys(self, doc_store):
        """Should merge top-level keys when merge is True."""
        doc_store.set("prospects", "p1", {"nombre": "Ana", "telefono": "1"})
        doc_store.set("prospects", "p1", {"telefono": "2"}, merge=True)

        assert doc_store.get("prospects", "p1") == {"nombre": "Ana", "telefono": "2"}

    def test_collections_are_isolated(self, doc_store):
        """Should address documents by collection and id."""
        doc_store.set("users", "x", {"kind": "user"})
        doc_store.set("prospects", "x", {"kind": "prospect"})

        assert doc_store.get("users", "x") == {"kind": "user"}
        assert doc_store.get("prospects", "x") == {"kind": "prospect"}

    def test_delete_is_idempotent(self, doc_store):
        """Should delete the document and tolerate deleting it again."""
        doc_store.set("prospects", "p1", {"nombre": "Ana"})

        doc_store.delete("prospects", "p1")
        doc_store.delete("prospects", "p1")

        assert doc_store.get("prospects", "p1") is None

    def test_returned_data_is_a_copy(self, doc_store):
        """Should not let callers mutate stored state through returned dicts."""
        doc_store.set("prospects", "p1", {"seguimientos": []})

        data = doc_store.get("prospects", "p1")
        data["seguimientos"].append("oops")

        assert doc_store.get("prospects", "p1") == {"seguimientos": []}


class TestUpdate:
    """update() merges into existing documents only."""

    def test_update_merges(self, doc_store):
        """Should merge keys into an existing document."""
        doc_store.set("invoices", "i1", {"amount": 1000, "tax": 100})
        doc_store.update("invoices", "i1", {"tax": 160})

        assert doc_store.get("invoices", "i1") == {"amount": 1000, "tax": 160}

    def test_update_missing_raises(self, doc_store):
        """Should raise DocumentNotFoundError for an unknown document."""
        with pytest.raises(DocumentNotFoundError):
            doc_store.update("invoices", "missing", {"tax": 1})


class TestQueries:
    """add / list / where / exists / set_many."""

    def test_add_generates_id(self, doc_store):
        """Should store the document under a new unique id."""
        first = doc_store.add("transactions", {"amount": 1})
        second = doc_store.add("transactions", {"amount": 2})

        assert first != second
        assert doc_store.get("transactions", first) == {"amount": 1}

    def test_list_returns_all_documents(self, doc_store):
        """Should list every document in the collection."""
        doc_store.set("budgets", "b1", {"name": "Q1"})
        doc_store.set("budgets", "b2", {"name": "Q2"})
        doc_store.set("invoices", "i1", {"number": "INV-1"})

        docs = doc_store.list("budgets")

        assert {d.id for d in docs} == {"b1", "b2"}

    def test_where_filters_by_field(self, doc_store):
        """Should return documents whose field equals the value."""
        doc_store.set("prospects", "p1", {"assignedTo": "u1"})
        doc_store.set("prospects", "p2", {"assignedTo": "u2"})
        doc_store.set("prospects", "p3", {})

        matches = doc_store.where("prospects", "assignedTo", "u1")

        assert [d.id for d in matches] == ["p1"]

    def test_exists(self, doc_store):
        """Should report whether a document exists."""
        doc_store.set("settings", "calendar", {"defaultView": "month"})

        assert doc_store.exists("settings", "calendar") is True
        assert doc_store.exists("settings", "calendarTokens") is False

    def test_set_many_with_merge_is_idempotent(self, doc_store):
        """Should leave the collection unchanged when the same batch is written twice."""
        batch = {
            "e1": {"title": "One"},
            "e2": {"title": "Two"},
        }

        doc_store.set_many("calendarEvents", batch, merge=True)
        first = {d.id: d.data for d in doc_store.list("calendarEvents")}
        doc_store.set_many("calendarEvents", batch, merge=True)
        second = {d.id: d.data for d in doc_store.list("calendarEvents")}

        assert first == second == batch
