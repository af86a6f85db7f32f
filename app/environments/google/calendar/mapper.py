"""
Event mapping between Google Calendar resources and CRM events.

to_calendar_event(): raw Google JSON → CalendarEvent
to_google_event(): CalendarEvent → events.insert / events.update body

Rules for Google → CRM:
- timed events read dateTime; all-day events read date as midnight UTC
- title falls back to "Untitled Event"
- attendee id is the email; missing responseStatus becomes needsAction
- meetLink is the first conference entry point (or hangoutLink)
- reminders come from reminders.overrides, id "{method}-{minutes}"
- status defaults to confirmed; visibility collapses to public/private
- missing created/updated fall back to each other, then to the start time
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from app.environments.google.calendar.schemas import EventTime, GoogleEvent
from app.schemas.calendar import (
    Attendee,
    CalendarEvent,
    EventCategory,
    EventReminder,
    as_utc,
)


UNTITLED_EVENT = "Untitled Event"
DEFAULT_CATEGORY_COLOR = "#3174ad"

ATTENDEE_STATUSES = {"needsAction", "declined", "tentative", "accepted"}
EVENT_STATUSES = {"confirmed", "tentative", "cancelled"}
REMINDER_METHODS = {"email", "popup"}


def _to_datetime(value: Optional[EventTime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.date_time is not None:
        return as_utc(value.date_time)
    if value.date:
        return datetime.strptime(value.date, "%Y-%m-%d").replace(tzinfo=timezone.utc)
    return None


def _map_attendees(event: GoogleEvent) -> List[Attendee]:
    attendees = []
    for raw in event.attendees or []:
        status = raw.response_status if raw.response_status in ATTENDEE_STATUSES else "needsAction"
        attendees.append(Attendee(
            id=raw.email,
            email=raw.email,
            name=raw.display_name,
            status=status,
            is_optional=bool(raw.optional),
        ))
    return attendees


def _map_reminders(event: GoogleEvent) -> List[EventReminder]:
    if not event.reminders or not event.reminders.overrides:
        return []
    reminders = []
    for override in event.reminders.overrides:
        method = override.method if override.method in REMINDER_METHODS else "popup"
        reminders.append(EventReminder(
            id=f"{override.method}-{override.minutes}",
            method=method,
            minutes=override.minutes,
            enabled=True,
        ))
    return reminders


def _map_visibility(visibility: Optional[str]) -> str:
    if visibility in ("private", "confidential"):
        return "private"
    return "public"


def to_calendar_event(raw: Dict[str, Any], now: Optional[datetime] = None) -> CalendarEvent:
    """
    Map one events.list item to the CRM event shape.

    Args:
        raw: Google event resource as returned by the API
        now: Fallback for a missing start time

    Returns:
        CalendarEvent keyed by the Google event id
    """
    event = GoogleEvent.model_validate(raw)
    now = now or datetime.now(timezone.utc)

    start = _to_datetime(event.start) or now
    end = _to_datetime(event.end) or start
    if end < start:
        end = start

    creator_email = (event.creator or {}).get("email") or "unknown"

    stamp = event.created or event.updated
    created_at = as_utc(stamp) if stamp else start
    updated_at = as_utc(event.updated) if event.updated else created_at

    return CalendarEvent(
        id=event.id,
        title=event.summary or UNTITLED_EVENT,
        description=event.description,
        start=start,
        end=end,
        location=event.location,
        meet_link=event.get_meet_link(),
        attendees=_map_attendees(event),
        category=EventCategory(
            id="default",
            name="Default",
            color=event.color_id or DEFAULT_CATEGORY_COLOR,
        ),
        reminders=_map_reminders(event),
        is_recurring=bool(event.recurrence),
        recurrence_rule=event.recurrence[0] if event.recurrence else None,
        google_event_id=event.id,
        created_by=creator_email,
        created_at=created_at,
        updated_at=updated_at,
        status=event.status if event.status in EVENT_STATUSES else "confirmed",
        visibility=_map_visibility(event.visibility),
    )


def to_google_event(event: CalendarEvent, time_zone: str = "UTC") -> Dict[str, Any]:
    """
    Build a Google event body from a CRM event.

    WhatsApp reminders have no Google equivalent and are sent as popups;
    disabled reminders are dropped.
    """
    body: Dict[str, Any] = {
        "summary": event.title,
        "description": event.description,
        "location": event.location,
        "start": {"dateTime": event.start.isoformat(), "timeZone": time_zone},
        "end": {"dateTime": event.end.isoformat(), "timeZone": time_zone},
        "attendees": [
            {
                "email": attendee.email,
                "displayName": attendee.name,
                "optional": attendee.is_optional,
            }
            for attendee in event.attendees
        ],
        "reminders": {
            "useDefault": False,
            "overrides": [
                {
                    "method": "popup" if reminder.method == "whatsapp" else reminder.method,
                    "minutes": reminder.minutes,
                }
                for reminder in event.reminders
                if reminder.enabled
            ],
        },
        "status": event.status,
        "visibility": event.visibility,
    }

    if event.is_recurring and event.recurrence_rule:
        body["recurrence"] = [event.recurrence_rule]

    return {key: value for key, value in body.items() if value is not None}
