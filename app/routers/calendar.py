"""
Calendar Router - Google Calendar reads/sync and the CRM Event Store.

Google endpoints:
- GET    /calendar/events              → upcoming events from Google
- POST   /calendar/sync                → ±1 month window, persisted by id
- POST   /calendar/events              → create on Google
- PUT    /calendar/events/{event_id}   → replace on Google
- DELETE /calendar/events/{event_id}   → delete on Google
- GET    /calendar/calendars           → calendars of the connected account
- POST   /calendar/meet                → create on Google with a Meet link

Event Store endpoints (operators only), under /calendar/store:
events CRUD, upcoming events, categories CRUD and calendar settings.

Google failures are translated by the exception handlers in app.main:
not connected → 401, upstream error → 500.
"""

import logging
import uuid
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from app.deps import get_calendar_sync, get_current_user, get_event_store
from app.environments.google.calendar.schemas import CalendarInfo
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
    EventsResponse,
    MeetLinkResponse,
    SyncResponse,
)
from app.schemas.user import User
from app.services.calendar_sync_service import CalendarSyncService
from app.services.event_store import EventStore


logger = logging.getLogger("innomind.routers.calendar")


# ---------------------------------------------------------------------------
# ROUTER SETUP
# ---------------------------------------------------------------------------
router = APIRouter(prefix="/calendar", tags=["calendar"])


def _draft_event(payload: CalendarEventCreate, created_by: str) -> CalendarEvent:
    """Event to send to Google; Google assigns the real id."""
    fields = payload.model_dump()
    fields["category"] = payload.category or DEFAULT_CATEGORY.model_copy()
    fields["created_by"] = created_by
    return CalendarEvent(id=uuid.uuid4().hex, **fields)


# ---------------------------------------------------------------------------
# GOOGLE CALENDAR
# ---------------------------------------------------------------------------

@router.get("/events", response_model=EventsResponse)
async def list_google_events(sync: CalendarSyncService = Depends(get_calendar_sync)):
    """
    Upcoming events straight from Google (primary calendar).

    Raises:
        401: Google is not connected or the refresh token is gone
        500: Google rejected the request
    """
    events = await sync.list_upcoming()
    return EventsResponse(events=events)


@router.post("/sync", response_model=SyncResponse)
async def sync_google_events(sync: CalendarSyncService = Depends(get_calendar_sync)):
    """
    Fetch one month back and one month ahead and upsert each event by id.

    Running it twice without remote changes leaves the store unchanged.
    Non-POST methods get 405 from the router.
    """
    events = await sync.sync_window()
    return SyncResponse(synced=True, events=events)


@router.post("/events", response_model=CalendarEvent, status_code=status.HTTP_201_CREATED)
async def create_google_event(
    payload: CalendarEventCreate,
    sync: CalendarSyncService = Depends(get_calendar_sync),
    current_user: User = Depends(get_current_user),
):
    return await sync.create_event(_draft_event(payload, current_user.email))


@router.put("/events/{event_id}", response_model=CalendarEvent)
async def update_google_event(
    event_id: str,
    payload: CalendarEventCreate,
    sync: CalendarSyncService = Depends(get_calendar_sync),
    current_user: User = Depends(get_current_user),
):
    """Replace the Google event with the given content."""
    return await sync.update_event(event_id, _draft_event(payload, current_user.email))


@router.delete("/events/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_google_event(
    event_id: str,
    sync: CalendarSyncService = Depends(get_calendar_sync),
    current_user: User = Depends(get_current_user),
):
    await sync.delete_event(event_id)
    return None


@router.get("/calendars", response_model=List[CalendarInfo])
async def list_google_calendars(
    sync: CalendarSyncService = Depends(get_calendar_sync),
    current_user: User = Depends(get_current_user),
):
    """Calendars visible to the connected Google account."""
    return await sync.list_calendars()


@router.post("/meet", response_model=MeetLinkResponse, status_code=status.HTTP_201_CREATED)
async def create_meet_link(
    payload: CalendarEventCreate,
    sync: CalendarSyncService = Depends(get_calendar_sync),
    current_user: User = Depends(get_current_user),
):
    """Create the event on Google with a Meet conference and return its link."""
    link = await sync.create_meet_link(_draft_event(payload, current_user.email))
    return MeetLinkResponse(meet_link=link)


# ---------------------------------------------------------------------------
# EVENT STORE - EVENTS
# ---------------------------------------------------------------------------

@router.get("/store/events", response_model=List[CalendarEvent])
def list_stored_events(
    start: Optional[datetime] = Query(None, description="Range start (overlap)"),
    end: Optional[datetime] = Query(None, description="Range end (overlap)"),
    store: EventStore = Depends(get_event_store),
    current_user: User = Depends(get_current_user),
):
    """All stored events by start, or those overlapping [start, end] when both are given."""
    if start is not None and end is not None:
        return store.events_for_range(start, end)
    return store.list_events()


@router.get("/store/events/upcoming", response_model=List[CalendarEvent])
def upcoming_stored_events(
    limit: int = Query(5, ge=1, le=100),
    store: EventStore = Depends(get_event_store),
    current_user: User = Depends(get_current_user),
):
    return store.upcoming_events(limit=limit)


@router.post("/store/events", response_model=CalendarEvent, status_code=status.HTTP_201_CREATED)
def create_stored_event(
    payload: CalendarEventCreate,
    store: EventStore = Depends(get_event_store),
    current_user: User = Depends(get_current_user),
):
    if "created_by" not in payload.model_fields_set:
        payload.created_by = current_user.email
    return store.add_event(payload)


@router.get("/store/events/{event_id}", response_model=CalendarEvent)
def get_stored_event(
    event_id: str,
    store: EventStore = Depends(get_event_store),
    current_user: User = Depends(get_current_user),
):
    return store.get_event(event_id)


@router.patch("/store/events/{event_id}", response_model=CalendarEvent)
def update_stored_event(
    event_id: str,
    payload: CalendarEventUpdate,
    store: EventStore = Depends(get_event_store),
    current_user: User = Depends(get_current_user),
):
    """
    Raises:
        404: unknown event
        422: the update would make start later than end
    """
    return store.update_event(event_id, payload)


@router.delete("/store/events/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_stored_event(
    event_id: str,
    store: EventStore = Depends(get_event_store),
    current_user: User = Depends(get_current_user),
):
    store.delete_event(event_id)
    return None


# ---------------------------------------------------------------------------
# EVENT STORE - CATEGORIES
# ---------------------------------------------------------------------------

@router.get("/store/categories", response_model=List[EventCategory])
def list_categories(
    store: EventStore = Depends(get_event_store),
    current_user: User = Depends(get_current_user),
):
    return store.list_categories()


@router.post("/store/categories", response_model=EventCategory, status_code=status.HTTP_201_CREATED)
def create_category(
    payload: EventCategoryCreate,
    store: EventStore = Depends(get_event_store),
    current_user: User = Depends(get_current_user),
):
    return store.add_category(payload)


@router.patch("/store/categories/{category_id}", response_model=EventCategory)
def update_category(
    category_id: str,
    payload: EventCategoryUpdate,
    store: EventStore = Depends(get_event_store),
    current_user: User = Depends(get_current_user),
):
    return store.update_category(category_id, payload)


@router.delete("/store/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    category_id: str,
    store: EventStore = Depends(get_event_store),
    current_user: User = Depends(get_current_user),
):
    store.delete_category(category_id)
    return None


# ---------------------------------------------------------------------------
# EVENT STORE - SETTINGS
# ---------------------------------------------------------------------------

@router.get("/store/settings", response_model=CalendarSettings)
def get_calendar_settings(
    store: EventStore = Depends(get_event_store),
    current_user: User = Depends(get_current_user),
):
    return store.get_settings()


@router.patch("/store/settings", response_model=CalendarSettings)
def update_calendar_settings(
    payload: CalendarSettingsUpdate,
    store: EventStore = Depends(get_event_store),
    current_user: User = Depends(get_current_user),
):
    settings = store.update_settings(payload)
    logger.info("Calendar settings updated", extra={"user_id": current_user.id})
    return settings
