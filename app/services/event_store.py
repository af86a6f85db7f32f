"""
Event Store - the CRM's calendar events, categories and calendar settings.

Collections:
- calendarEvents: one document per event, keyed by event id (Google-synced
  events use the Google event id)
- calendarCategories: user-defined categories; the five defaults are
  returned (and seeded on first change) while none are stored
- settings/calendar: calendar preferences, merged over the defaults
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from app.repositories.document_store import DocumentStore
from app.schemas.calendar import (
    DEFAULT_CATEGORY,
    CalendarEvent,
    CalendarEventCreate,
    CalendarEventUpdate,
    CalendarSettings,
    CalendarSettingsUpdate,
    EventCategory,
    EventCategoryCreate,
    EventCategoryUpdate,
    as_utc,
)
from app.services.errors import NotFoundError


logger = logging.getLogger("innomind.services.event_store")


DEFAULT_CATEGORIES = [
    EventCategory(id="1", name="Reunión de trabajo", color="#3174ad", description="Reuniones profesionales"),
    EventCategory(id="2", name="Llamada con cliente", color="#28a745", description="Llamadas con clientes"),
    EventCategory(id="3", name="Seguimiento", color="#ffc107", description="Seguimientos"),
    EventCategory(id="4", name="Presentación", color="#dc3545", description="Presentaciones"),
    EventCategory(id="5", name="Personal", color="#6f42c1", description="Eventos personales"),
]


def _dump(event: CalendarEvent) -> dict:
    return event.model_dump(mode="json", by_alias=True)


class EventStore:
    """Calendar persistence over the document store."""

    EVENTS = "calendarEvents"
    CATEGORIES = "calendarCategories"
    SETTINGS = "settings"
    SETTINGS_DOC = "calendar"

    def __init__(self, store: DocumentStore):
        self._store = store

    # -------------------------------------------------------------------------
    # EVENTS
    # -------------------------------------------------------------------------

    def list_events(self) -> List[CalendarEvent]:
        """All stored events ordered by start."""
        events = [CalendarEvent.model_validate(doc.data) for doc in self._store.list(self.EVENTS)]
        return sorted(events, key=lambda e: e.start)

    def get_event(self, event_id: str) -> CalendarEvent:
        data = self._store.get(self.EVENTS, event_id)
        if data is None:
            raise NotFoundError("Evento no encontrado", "event", event_id)
        return CalendarEvent.model_validate(data)

    def add_event(self, payload: CalendarEventCreate) -> CalendarEvent:
        now = datetime.now(timezone.utc)
        fields = payload.model_dump()
        fields["category"] = payload.category or DEFAULT_CATEGORY.model_copy()
        event = CalendarEvent(id=uuid.uuid4().hex, created_at=now, updated_at=now, **fields)
        self._store.set(self.EVENTS, event.id, _dump(event))
        logger.info(f"Created event {event.id}", extra={"event_id": event.id})
        return event

    def update_event(self, event_id: str, changes: CalendarEventUpdate) -> CalendarEvent:
        """
        Apply a partial update.

        Raises:
            NotFoundError: unknown event
            ValueError: the result would start after it ends
        """
        current = self.get_event(event_id)
        event = CalendarEvent.model_validate({
            **_dump(current),
            **changes.model_dump(mode="json", by_alias=True, exclude_unset=True),
            "updatedAt": datetime.now(timezone.utc).isoformat(),
        })
        self._store.set(self.EVENTS, event_id, _dump(event))
        return event

    def delete_event(self, event_id: str) -> None:
        if not self._store.exists(self.EVENTS, event_id):
            raise NotFoundError("Evento no encontrado", "event", event_id)
        self._store.delete(self.EVENTS, event_id)
        logger.info(f"Deleted event {event_id}", extra={"event_id": event_id})

    def upsert_events(self, events: Iterable[CalendarEvent]) -> int:
        """
        Write events keyed by id with merge semantics, as one batch.

        Writing the same events twice leaves the store unchanged.
        """
        documents = {event.id: _dump(event) for event in events}
        if documents:
            self._store.set_many(self.EVENTS, documents, merge=True)
        return len(documents)

    def events_for_range(self, start: datetime, end: datetime) -> List[CalendarEvent]:
        """Events that overlap [start, end] (touching either bound counts)."""
        start, end = as_utc(start), as_utc(end)
        return [event for event in self.list_events() if event.overlaps(start, end)]

    def upcoming_events(self, limit: int = 5, now: Optional[datetime] = None) -> List[CalendarEvent]:
        """The next events starting after now, soonest first."""
        now = as_utc(now) if now else datetime.now(timezone.utc)
        return [event for event in self.list_events() if event.start > now][:limit]

    # -------------------------------------------------------------------------
    # CATEGORIES
    # -------------------------------------------------------------------------

    def list_categories(self) -> List[EventCategory]:
        docs = self._store.list(self.CATEGORIES)
        if not docs:
            return [category.model_copy() for category in DEFAULT_CATEGORIES]
        return [EventCategory.model_validate(doc.data) for doc in docs]

    def _seed_default_categories(self) -> None:
        if not self._store.list(self.CATEGORIES):
            self._store.set_many(
                self.CATEGORIES,
                {category.id: category.model_dump() for category in DEFAULT_CATEGORIES},
            )

    def add_category(self, payload: EventCategoryCreate) -> EventCategory:
        self._seed_default_categories()
        category = EventCategory(id=uuid.uuid4().hex, **payload.model_dump())
        self._store.set(self.CATEGORIES, category.id, category.model_dump())
        return category

    def update_category(self, category_id: str, changes: EventCategoryUpdate) -> EventCategory:
        self._seed_default_categories()
        data = self._store.get(self.CATEGORIES, category_id)
        if data is None:
            raise NotFoundError("Categoría no encontrada", "category", category_id)
        category = EventCategory.model_validate({**data, **changes.model_dump(exclude_unset=True)})
        self._store.set(self.CATEGORIES, category_id, category.model_dump())
        return category

    def delete_category(self, category_id: str) -> None:
        self._seed_default_categories()
        if not self._store.exists(self.CATEGORIES, category_id):
            raise NotFoundError("Categoría no encontrada", "category", category_id)
        self._store.delete(self.CATEGORIES, category_id)

    # -------------------------------------------------------------------------
    # SETTINGS
    # -------------------------------------------------------------------------

    def get_settings(self) -> CalendarSettings:
        data = self._store.get(self.SETTINGS, self.SETTINGS_DOC) or {}
        return CalendarSettings.model_validate(data)

    def update_settings(self, changes: CalendarSettingsUpdate) -> CalendarSettings:
        current = self.get_settings()
        updated = CalendarSettings.model_validate({
            **current.model_dump(mode="json", by_alias=True),
            **changes.model_dump(mode="json", by_alias=True, exclude_unset=True),
        })
        self._store.set(self.SETTINGS, self.SETTINGS_DOC, updated.model_dump(mode="json", by_alias=True))
        return updated
