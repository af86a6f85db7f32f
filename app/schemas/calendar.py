"""
Calendar schemas - the CRM's own event, category and settings shapes.

Field names are snake_case in Python and camelCase on the wire (aliases),
matching what the frontend reads:

    {"id": "evt_1", "title": "Demo", "start": "...", "meetLink": "...",
     "isRecurring": false, "googleEventId": "evt_1", ...}
"""

from datetime import datetime, timezone
from typing import Annotated, List, Literal, Optional

from pydantic import AfterValidator, BaseModel, Field, model_validator


AttendeeStatus = Literal["needsAction", "declined", "tentative", "accepted"]
ReminderMethod = Literal["email", "popup", "whatsapp"]
EventStatus = Literal["confirmed", "tentative", "cancelled"]
EventVisibility = Literal["public", "private"]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC; aware ones are converted."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]


class Attendee(BaseModel):
    """An invited person; id is the attendee's email for Google events."""
    id: str
    email: str
    name: Optional[str] = None
    status: AttendeeStatus = "needsAction"
    is_optional: bool = Field(False, alias="isOptional")
    phone: Optional[str] = None

    class Config:
        populate_by_name = True


class EventCategory(BaseModel):
    id: str
    name: str
    color: str
    description: Optional[str] = None


class EventReminder(BaseModel):
    id: str
    method: ReminderMethod
    minutes: int = Field(..., ge=0)
    enabled: bool = True


DEFAULT_CATEGORY = EventCategory(id="default", name="Default", color="#3174ad")


class CalendarEvent(BaseModel):
    """
    A calendar event as the CRM stores it.

    start must not be after end. googleEventId links the record to its
    Google Calendar counterpart; a sync overwrites the whole record.
    """
    id: str
    title: str
    description: Optional[str] = None
    start: UtcDatetime
    end: UtcDatetime
    location: Optional[str] = None
    meet_link: Optional[str] = Field(None, alias="meetLink")
    attendees: List[Attendee] = Field(default_factory=list)
    category: EventCategory = Field(default_factory=lambda: DEFAULT_CATEGORY.model_copy())
    color: Optional[str] = None
    reminders: List[EventReminder] = Field(default_factory=list)
    is_recurring: bool = Field(False, alias="isRecurring")
    recurrence_rule: Optional[str] = Field(None, alias="recurrenceRule")
    google_event_id: Optional[str] = Field(None, alias="googleEventId")
    created_by: str = Field("unknown", alias="createdBy")
    created_at: UtcDatetime = Field(default_factory=utc_now, alias="createdAt")
    updated_at: UtcDatetime = Field(default_factory=utc_now, alias="updatedAt")
    status: EventStatus = "confirmed"
    visibility: EventVisibility = "public"

    class Config:
        populate_by_name = True

    @model_validator(mode="after")
    def check_start_before_end(self) -> "CalendarEvent":
        if self.start > self.end:
            raise ValueError("Event start must not be after its end")
        return self

    def overlaps(self, range_start: datetime, range_end: datetime) -> bool:
        """True when the event intersects [range_start, range_end]."""
        return self.start <= range_end and self.end >= range_start


class CalendarEventCreate(BaseModel):
    """Request body for creating an event; the server assigns id and timestamps."""
    title: str
    description: Optional[str] = None
    start: UtcDatetime
    end: UtcDatetime
    location: Optional[str] = None
    meet_link: Optional[str] = Field(None, alias="meetLink")
    attendees: List[Attendee] = Field(default_factory=list)
    category: Optional[EventCategory] = None
    color: Optional[str] = None
    reminders: List[EventReminder] = Field(default_factory=list)
    is_recurring: bool = Field(False, alias="isRecurring")
    recurrence_rule: Optional[str] = Field(None, alias="recurrenceRule")
    google_event_id: Optional[str] = Field(None, alias="googleEventId")
    created_by: str = Field("unknown", alias="createdBy")
    status: EventStatus = "confirmed"
    visibility: EventVisibility = "public"

    class Config:
        populate_by_name = True

    @model_validator(mode="after")
    def check_start_before_end(self) -> "CalendarEventCreate":
        if self.start > self.end:
            raise ValueError("Event start must not be after its end")
        return self


class CalendarEventUpdate(BaseModel):
    """Partial update; only fields present in the request are applied."""
    title: Optional[str] = None
    description: Optional[str] = None
    start: Optional[UtcDatetime] = None
    end: Optional[UtcDatetime] = None
    location: Optional[str] = None
    meet_link: Optional[str] = Field(None, alias="meetLink")
    attendees: Optional[List[Attendee]] = None
    category: Optional[EventCategory] = None
    color: Optional[str] = None
    reminders: Optional[List[EventReminder]] = None
    is_recurring: Optional[bool] = Field(None, alias="isRecurring")
    recurrence_rule: Optional[str] = Field(None, alias="recurrenceRule")
    status: Optional[EventStatus] = None
    visibility: Optional[EventVisibility] = None

    class Config:
        populate_by_name = True


class EventCategoryCreate(BaseModel):
    name: str
    color: str
    description: Optional[str] = None


class EventCategoryUpdate(BaseModel):
    name: Optional[str] = None
    color: Optional[str] = None
    description: Optional[str] = None


class WorkingHours(BaseModel):
    start: str = "09:00"
    end: str = "18:00"


class CalendarSettings(BaseModel):
    default_view: Literal["month", "week", "day", "agenda"] = Field("month", alias="defaultView")
    working_hours: WorkingHours = Field(default_factory=WorkingHours, alias="workingHours")
    timezone: str = "UTC"
    default_reminders: List[EventReminder] = Field(
        default_factory=lambda: [
            EventReminder(id="1", method="popup", minutes=15, enabled=True),
            EventReminder(id="2", method="email", minutes=60, enabled=True),
        ],
        alias="defaultReminders",
    )
    auto_create_meet_links: bool = Field(False, alias="autoCreateMeetLinks")
    sync_with_google: bool = Field(False, alias="syncWithGoogle")
    notifications_enabled: bool = Field(True, alias="notificationsEnabled")

    class Config:
        populate_by_name = True


class CalendarSettingsUpdate(BaseModel):
    default_view: Optional[Literal["month", "week", "day", "agenda"]] = Field(None, alias="defaultView")
    working_hours: Optional[WorkingHours] = Field(None, alias="workingHours")
    timezone: Optional[str] = None
    default_reminders: Optional[List[EventReminder]] = Field(None, alias="defaultReminders")
    auto_create_meet_links: Optional[bool] = Field(None, alias="autoCreateMeetLinks")
    sync_with_google: Optional[bool] = Field(None, alias="syncWithGoogle")
    notifications_enabled: Optional[bool] = Field(None, alias="notificationsEnabled")

    class Config:
        populate_by_name = True


class EventsResponse(BaseModel):
    events: List[CalendarEvent]


class SyncResponse(BaseModel):
    synced: bool = True
    events: List[CalendarEvent]


class MeetLinkResponse(BaseModel):
    meet_link: str = Field(..., alias="meetLink")

    class Config:
        populate_by_name = True
