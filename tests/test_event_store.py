"""
Tests for the Event Store (events, categories, calendar settings).
"""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from app.schemas.calendar import (
    CalendarEventCreate,
    CalendarEventUpdate,
    CalendarSettingsUpdate,
    EventCategoryCreate,
    EventCategoryUpdate,
)
from app.services.errors import NotFoundError
from app.services.event_store import DEFAULT_CATEGORIES, EventStore


NOW = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def event_store(store):
    return EventStore(store)


def create(event_store, title, start, hours=1):
    return event_store.add_event(CalendarEventCreate(
        title=title,
        start=start,
        end=start + timedelta(hours=hours),
    ))


class TestEvents:
    """Tests for event CRUD and range queries."""

    def test_add_event_assigns_id_and_default_category(self, event_store):
        """Should generate an id and fall back to the default category."""
        event = create(event_store, "Demo", NOW)

        assert event.id
        assert event.category.id == "default"
        assert event_store.get_event(event.id).title == "Demo"

    def test_start_after_end_is_rejected(self):
        """Should reject an event that ends before it starts."""
        with pytest.raises(ValidationError):
            CalendarEventCreate(title="Bad", start=NOW, end=NOW - timedelta(hours=1))

    def test_update_event_applies_only_sent_fields(self, event_store):
        """Should change only the provided fields."""
        event = create(event_store, "Demo", NOW)

        updated = event_store.update_event(event.id, CalendarEventUpdate(location="Oficina"))

        assert updated.location == "Oficina"
        assert updated.title == "Demo"
        assert updated.start == event.start

    def test_update_event_rejects_inverted_range(self, event_store):
        """Should reject an update that moves start after end."""
        event = create(event_store, "Demo", NOW)

        with pytest.raises(ValidationError):
            event_store.update_event(event.id, CalendarEventUpdate(start=NOW + timedelta(days=1)))

    def test_update_unknown_event(self, event_store):
        """Should raise NotFoundError for an unknown id."""
        with pytest.raises(NotFoundError):
            event_store.update_event("missing", CalendarEventUpdate(title="x"))

    def test_delete_event(self, event_store):
        """Should delete an existing event and reject unknown ids."""
        event = create(event_store, "Demo", NOW)

        event_store.delete_event(event.id)

        with pytest.raises(NotFoundError):
            event_store.get_event(event.id)
        with pytest.raises(NotFoundError):
            event_store.delete_event(event.id)

    def test_events_for_range_includes_touching_events(self, event_store):
        """Should return events that overlap the range, bounds inclusive."""
        before = create(event_store, "Before", NOW - timedelta(hours=3), hours=1)
        touching = create(event_store, "Touching", NOW - timedelta(hours=1), hours=1)
        inside = create(event_store, "Inside", NOW + timedelta(hours=1))

        found = event_store.events_for_range(NOW, NOW + timedelta(hours=4))

        assert [e.id for e in found] == [touching.id, inside.id]
        assert before.id not in [e.id for e in found]

    def test_upcoming_events_sorted_and_limited(self, event_store):
        """Should return future events soonest first, capped at the limit."""
        create(event_store, "Past", NOW - timedelta(days=1))
        later = create(event_store, "Later", NOW + timedelta(days=2))
        soon = create(event_store, "Soon", NOW + timedelta(hours=1))

        upcoming = event_store.upcoming_events(limit=5, now=NOW)

        assert [e.id for e in upcoming] == [soon.id, later.id]
        assert len(event_store.upcoming_events(limit=1, now=NOW)) == 1


class TestCategories:
    """Tests for category defaults and CRUD."""

    def test_defaults_when_none_stored(self, event_store, store):
        """Should return the five default categories without writing them."""
        categories = event_store.list_categories()

        assert [c.id for c in categories] == ["1", "2", "3", "4", "5"]
        assert store.list("calendarCategories") == []

    def test_add_category_seeds_defaults(self, event_store):
        """Should keep the defaults when the first custom category is added."""
        added = event_store.add_category(EventCategoryCreate(name="Capacitación", color="#000000"))

        ids = {c.id for c in event_store.list_categories()}
        assert ids == {c.id for c in DEFAULT_CATEGORIES} | {added.id}

    def test_update_default_category(self, event_store):
        """Should allow renaming a default category."""
        updated = event_store.update_category("3", EventCategoryUpdate(name="Follow-up"))

        assert updated.name == "Follow-up"
        assert updated.color == "#ffc107"

    def test_delete_unknown_category(self, event_store):
        """Should raise NotFoundError for an unknown category."""
        with pytest.raises(NotFoundError):
            event_store.delete_category("nope")


class TestSettings:
    """Tests for calendar settings."""

    def test_defaults(self, event_store):
        """Should return defaults when nothing is stored."""
        settings = event_store.get_settings()

        assert settings.default_view == "month"
        assert settings.working_hours.start == "09:00"
        assert [r.minutes for r in settings.default_reminders] == [15, 60]

    def test_update_merges_over_current(self, event_store):
        """Should persist changed fields and keep the rest."""
        event_store.update_settings(CalendarSettingsUpdate(default_view="week"))
        event_store.update_settings(CalendarSettingsUpdate(timezone="America/Mexico_City"))

        settings = event_store.get_settings()
        assert settings.default_view == "week"
        assert settings.timezone == "America/Mexico_City"
