"""
Google Calendar Schemas - the Google Calendar API resources we read.

These Pydantic models mirror Google's JSON (camelCase aliases) so raw
responses can be validated directly. The application's own event shape is
app.schemas.calendar.CalendarEvent; mapper.py converts between the two.

Reference: https://developers.google.com/calendar/api/v3/reference
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class EventTime(BaseModel):
    """
    Event start or end time.

    Google Calendar API returns times in one of two formats:
    - dateTime: For timed events (e.g., "2024-01-15T10:00:00-05:00")
    - date: For all-day events (e.g., "2024-01-15")
    """
    date_time: Optional[datetime] = Field(None, alias="dateTime")
    date: Optional[str] = Field(None)  # YYYY-MM-DD format for all-day events
    time_zone: Optional[str] = Field(None, alias="timeZone")

    def is_all_day(self) -> bool:
        """Check if this is an all-day event (date only, no time)."""
        return self.date is not None and self.date_time is None

    class Config:
        populate_by_name = True


class EventAttendee(BaseModel):
    """
    Event attendee information.

    responseStatus is omitted by Google for some attendees (e.g. rooms);
    the mapper defaults it to needsAction.
    """
    email: str = Field(..., description="Attendee's email address")
    display_name: Optional[str] = Field(None, alias="displayName")
    optional: Optional[bool] = Field(False, description="Optional attendee")
    response_status: Optional[str] = Field(None, alias="responseStatus")

    class Config:
        populate_by_name = True


class ReminderOverride(BaseModel):
    method: str
    minutes: int


class EventReminders(BaseModel):
    use_default: Optional[bool] = Field(None, alias="useDefault")
    overrides: Optional[List[ReminderOverride]] = Field(None)

    class Config:
        populate_by_name = True


class GoogleEvent(BaseModel):
    """
    A Google Calendar event resource.

    Contains the fields the CRM reads from the events API.

    Reference: https://developers.google.com/calendar/api/v3/reference/events
    """
    id: str = Field(..., description="Unique event identifier")
    summary: Optional[str] = Field(None, description="Event title")
    description: Optional[str] = Field(None, description="Event description")
    location: Optional[str] = Field(None, description="Event location")

    # Times
    start: Optional[EventTime] = Field(None, description="Event start time")
    end: Optional[EventTime] = Field(None, description="Event end time")

    # Status
    status: Optional[str] = Field(None, description="confirmed, tentative, cancelled")
    visibility: Optional[str] = Field(None, description="default, public, private, confidential")

    # Meeting info
    hangout_link: Optional[str] = Field(None, alias="hangoutLink")
    conference_data: Optional[Dict[str, Any]] = Field(None, alias="conferenceData")

    attendees: Optional[List[EventAttendee]] = Field(None)
    reminders: Optional[EventReminders] = Field(None)

    # Recurrence rules such as "RRULE:FREQ=WEEKLY;COUNT=4"
    recurrence: Optional[List[str]] = Field(None)

    # Visual
    color_id: Optional[str] = Field(None, alias="colorId")

    creator: Optional[Dict[str, Any]] = Field(None)

    # Audit
    created: Optional[datetime] = Field(None)
    updated: Optional[datetime] = Field(None)

    class Config:
        populate_by_name = True

    def is_all_day(self) -> bool:
        """Check if this is an all-day event."""
        if self.start:
            return self.start.is_all_day()
        return False

    def get_meet_link(self) -> Optional[str]:
        """
        First conference entry point, falling back to hangoutLink.
        """
        if self.conference_data:
            entry_points = self.conference_data.get("entryPoints") or []
            if entry_points and entry_points[0].get("uri"):
                return entry_points[0]["uri"]
        return self.hangout_link


class CalendarInfo(BaseModel):
    """
    Calendar metadata from the calendarList API.
    """
    id: str = Field(..., description="Calendar identifier")
    summary: Optional[str] = Field(None, description="Calendar name")
    description: Optional[str] = Field(None)
    time_zone: Optional[str] = Field(None, alias="timeZone")
    background_color: Optional[str] = Field(None, alias="backgroundColor")
    primary: Optional[bool] = Field(False)
    access_role: Optional[str] = Field(None, alias="accessRole")

    class Config:
        populate_by_name = True


class CalendarEventsResponse(BaseModel):
    """
    Response from events.list API.
    """
    kind: Optional[str] = Field(None)
    summary: Optional[str] = Field(None)
    time_zone: Optional[str] = Field(None, alias="timeZone")
    items: List[Dict[str, Any]] = Field(default_factory=list)
    next_page_token: Optional[str] = Field(None, alias="nextPageToken")

    class Config:
        populate_by_name = True


class CalendarListResponse(BaseModel):
    """
    Response from calendarList.list API.
    """
    kind: Optional[str] = Field(None)
    items: List[CalendarInfo] = Field(default_factory=list)
    next_page_token: Optional[str] = Field(None, alias="nextPageToken")

    class Config:
        populate_by_name = True
