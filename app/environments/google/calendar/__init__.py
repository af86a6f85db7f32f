"""
Google Calendar Module - Calendar API Integration

Features:
=========
- List events in a time window (recurring events expanded)
- Create, replace and delete events
- Create Google Meet links
- Map Google event resources to the CRM event shape (mapper.py)
"""

from app.environments.google.calendar.client import GoogleCalendarClient
from app.environments.google.calendar.mapper import to_calendar_event, to_google_event
from app.environments.google.calendar.schemas import (
    CalendarInfo,
    EventAttendee,
    EventTime,
    GoogleEvent,
)

__all__ = [
    "GoogleCalendarClient",
    "CalendarInfo",
    "EventAttendee",
    "EventTime",
    "GoogleEvent",
    "to_calendar_event",
    "to_google_event",
]
