"""
Calendar Sync Service - pulls Google Calendar events into the Event Store.

sync_window() lists the primary calendar between "now minus N months" and
"now plus M months" and upserts every event by id, so running it again
with the same bounds and no remote changes leaves the store as it was.

The Google calendar client is the only network dependency; the passthrough
operations (create/update/delete, Meet links, calendar list) forward to it
unchanged.
"""

import calendar
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from app.environments.google.calendar.client import GoogleCalendarClient
from app.environments.google.calendar.schemas import CalendarInfo
from app.schemas.calendar import CalendarEvent, as_utc
from app.services.event_store import EventStore


logger = logging.getLogger("innomind.services.calendar_sync")


PRIMARY_CALENDAR = "primary"
UPCOMING_LIMIT = 50


def add_months(value: datetime, months: int) -> datetime:
    """
    Shift by whole calendar months, keeping day and time of day.

    The day is clamped to the target month's length (Mar 31 - 1 month
    is Feb 28/29).
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


@dataclass
class SyncWindow:
    """Bounds used for one sync run."""
    time_min: datetime
    time_max: datetime


def window_around(now: datetime, months_before: int = 1, months_after: int = 1) -> SyncWindow:
    return SyncWindow(
        time_min=add_months(now, -months_before),
        time_max=add_months(now, months_after),
    )


class CalendarSyncService:
    """
    Google Calendar ↔ Event Store synchronization.

    Args:
        calendar_client: authenticated Google Calendar client
        event_store: destination for synced events
        calendar_id: Google calendar to read (default "primary")
    """

    def __init__(
        self,
        calendar_client: GoogleCalendarClient,
        event_store: EventStore,
        calendar_id: str = PRIMARY_CALENDAR,
    ):
        self.calendar_client = calendar_client
        self.event_store = event_store
        self.calendar_id = calendar_id

    async def list_events(
        self,
        time_min: Optional[datetime] = None,
        time_max: Optional[datetime] = None,
        max_results: Optional[int] = None,
    ) -> List[CalendarEvent]:
        return await self.calendar_client.list_events(
            calendar_id=self.calendar_id,
            time_min=time_min,
            time_max=time_max,
            max_results=max_results,
        )

    async def list_upcoming(
        self,
        max_results: int = UPCOMING_LIMIT,
        now: Optional[datetime] = None,
    ) -> List[CalendarEvent]:
        """Events from now on, straight from Google (nothing is stored)."""
        now = as_utc(now) if now else datetime.now(timezone.utc)
        return await self.list_events(time_min=now, max_results=max_results)

    async def sync_window(
        self,
        months_before: int = 1,
        months_after: int = 1,
        now: Optional[datetime] = None,
    ) -> List[CalendarEvent]:
        """
        Fetch the window around now and upsert every event by id.

        Returns:
            The fetched events

        Raises:
            NotAuthenticatedError / NoRefreshTokenError / AuthRefreshError:
                the Google connection is unusable
            CalendarFetchError: Google rejected the request
        """
        now = as_utc(now) if now else datetime.now(timezone.utc)
        window = window_around(now, months_before, months_after)

        logger.info(
            f"Syncing Google Calendar from {window.time_min.isoformat()} "
            f"to {window.time_max.isoformat()}",
            extra={"calendar_id": self.calendar_id},
        )

        events = await self.list_events(time_min=window.time_min, time_max=window.time_max)
        written = self.event_store.upsert_events(events)

        logger.info(f"Synced {written} events", extra={"calendar_id": self.calendar_id})
        return events

    # -------------------------------------------------------------------------
    # PASSTHROUGH
    # -------------------------------------------------------------------------

    async def create_event(self, event: CalendarEvent) -> CalendarEvent:
        time_zone = self.event_store.get_settings().timezone
        return await self.calendar_client.create_event(event, self.calendar_id, time_zone)

    async def update_event(self, event_id: str, event: CalendarEvent) -> CalendarEvent:
        time_zone = self.event_store.get_settings().timezone
        return await self.calendar_client.update_event(event_id, event, self.calendar_id, time_zone)

    async def delete_event(self, event_id: str) -> None:
        await self.calendar_client.delete_event(event_id, self.calendar_id)

    async def create_meet_link(self, event: CalendarEvent) -> str:
        time_zone = self.event_store.get_settings().timezone
        return await self.calendar_client.create_meet_link(event, self.calendar_id, time_zone)

    async def list_calendars(self) -> List[CalendarInfo]:
        return await self.calendar_client.list_calendars()
