"""
Google Calendar API Client - Fetch and manage calendar events.

Every request goes through _make_request(), which asks the token provider
for a valid access token first (refreshing it when it is about to expire)
and turns any non-success response into CalendarFetchError.

API Reference:
==============
- Events API: https://developers.google.com/calendar/api/v3/reference/events
- CalendarList API: https://developers.google.com/calendar/api/v3/reference/calendarList

Usage Example:
==============
    client = GoogleCalendarClient(token_service.get_valid_access_token, http)
    events = await client.list_events(time_min=start, time_max=end)
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from app.environments.base import (
    AccessTokenProvider,
    CalendarFetchError,
    EnvironmentService,
)
from app.environments.google.calendar.mapper import to_calendar_event, to_google_event
from app.environments.google.calendar.schemas import (
    CalendarEventsResponse,
    CalendarInfo,
    CalendarListResponse,
    GoogleEvent,
)
from app.schemas.calendar import CalendarEvent


logger = logging.getLogger("innomind.environments.google.calendar")


def to_rfc3339(value: datetime) -> str:
    """Format a datetime for timeMin/timeMax (naive values are UTC)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


class GoogleCalendarClient(EnvironmentService):
    """
    Google Calendar API client.

    Attributes:
        token_provider: async callable returning a valid access token
        http_client: shared httpx.AsyncClient

    Example:
        client = GoogleCalendarClient(get_token, http)
        events = await client.list_events(calendar_id="primary")
    """

    service_name = "calendar"
    required_scopes = [
        "https://www.googleapis.com/auth/calendar",
        "https://www.googleapis.com/auth/calendar.events",
    ]

    # Google Calendar API base URL
    BASE_URL = "https://www.googleapis.com/calendar/v3"

    def __init__(self, token_provider: AccessTokenProvider, http_client: httpx.AsyncClient):
        super().__init__(token_provider)
        self._http = http_client

    # -------------------------------------------------------------------------
    # HTTP
    # -------------------------------------------------------------------------

    async def _get_headers(self) -> dict:
        """Authorization headers with a currently valid access token."""
        access_token = await self._token_provider()
        return {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
        }

    async def _make_request(
        self,
        method: str,
        endpoint: str,
        params: Optional[dict] = None,
        json_body: Optional[dict] = None,
    ) -> Optional[dict]:
        """
        Make an authenticated request to the Calendar API.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE)
            endpoint: API endpoint path (e.g., "/calendars/primary/events")
            params: Query parameters
            json_body: JSON request body

        Returns:
            Parsed JSON response, or None for empty (204) responses

        Raises:
            NotAuthenticatedError / NoRefreshTokenError / AuthRefreshError:
                from the token provider, unchanged
            CalendarFetchError: non-success response or network failure
        """
        headers = await self._get_headers()
        url = f"{self.BASE_URL}{endpoint}"

        try:
            response = await self._http.request(
                method=method,
                url=url,
                headers=headers,
                params=params,
                json=json_body,
            )
        except httpx.RequestError as e:
            logger.error(f"Network error in Calendar API: {e}")
            raise CalendarFetchError(f"Network error: {e}")

        if not response.is_success:
            status_text = f"{response.status_code} {response.reason_phrase}"
            logger.error(
                f"Calendar API error: {status_text}",
                extra={"endpoint": endpoint, "method": method},
            )
            raise CalendarFetchError(
                f"Calendar request failed: {status_text}",
                status_code=response.status_code,
                response=response.text,
            )

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    @staticmethod
    def _events_path(calendar_id: str, event_id: Optional[str] = None) -> str:
        path = f"/calendars/{quote(calendar_id, safe='')}/events"
        if event_id:
            path = f"{path}/{quote(event_id, safe='')}"
        return path

    # -------------------------------------------------------------------------
    # CALENDAR EVENTS
    # -------------------------------------------------------------------------

    async def list_events(
        self,
        calendar_id: str = "primary",
        time_min: Optional[datetime] = None,
        time_max: Optional[datetime] = None,
        max_results: Optional[int] = None,
    ) -> List[CalendarEvent]:
        """
        List events from a calendar, recurring events expanded.

        Without max_results every page is fetched.

        Args:
            calendar_id: Calendar identifier ("primary" for the main calendar)
            time_min: Lower bound (exclusive) for an event's end time
            time_max: Upper bound (exclusive) for an event's start time
            max_results: Cap on returned events (single page)

        Returns:
            Events mapped to the CRM shape, ordered by start time
        """
        params: Dict[str, Any] = {
            "singleEvents": "true",
            "orderBy": "startTime",
        }
        if time_min is not None:
            params["timeMin"] = to_rfc3339(time_min)
        if time_max is not None:
            params["timeMax"] = to_rfc3339(time_max)
        if max_results is not None:
            params["maxResults"] = max_results

        raw_events: List[Dict[str, Any]] = []
        while True:
            data = await self._make_request("GET", self._events_path(calendar_id), params=params)
            page = CalendarEventsResponse.model_validate(data or {})
            raw_events.extend(page.items)

            if max_results is not None or not page.next_page_token:
                break
            params["pageToken"] = page.next_page_token

        logger.info(
            f"Fetched {len(raw_events)} events from calendar {calendar_id}",
            extra={"calendar_id": calendar_id},
        )

        return [to_calendar_event(item) for item in raw_events]

    async def create_event(
        self,
        event: CalendarEvent,
        calendar_id: str = "primary",
        time_zone: str = "UTC",
    ) -> CalendarEvent:
        """
        Insert an event (events.insert).

        Returns:
            The created event as Google stored it
        """
        data = await self._make_request(
            "POST",
            self._events_path(calendar_id),
            json_body=to_google_event(event, time_zone),
        )
        logger.info(f"Created Google event {data.get('id')}")
        return to_calendar_event(data)

    async def update_event(
        self,
        event_id: str,
        event: CalendarEvent,
        calendar_id: str = "primary",
        time_zone: str = "UTC",
    ) -> CalendarEvent:
        """
        Replace an event (events.update, full PUT semantics).
        """
        data = await self._make_request(
            "PUT",
            self._events_path(calendar_id, event_id),
            json_body=to_google_event(event, time_zone),
        )
        logger.info(f"Updated Google event {event_id}")
        return to_calendar_event(data)

    async def delete_event(self, event_id: str, calendar_id: str = "primary") -> None:
        """Delete an event (events.delete)."""
        await self._make_request("DELETE", self._events_path(calendar_id, event_id))
        logger.info(f"Deleted Google event {event_id}")

    async def create_meet_link(
        self,
        event: CalendarEvent,
        calendar_id: str = "primary",
        time_zone: str = "UTC",
    ) -> str:
        """
        Insert an event with a Google Meet conference attached.

        Returns:
            The Meet URL, or "" when Google did not return an entry point
        """
        body = to_google_event(event, time_zone)
        body["conferenceData"] = {
            "createRequest": {
                "requestId": uuid.uuid4().hex,
                "conferenceSolutionKey": {"type": "hangoutsMeet"},
            }
        }

        data = await self._make_request(
            "POST",
            self._events_path(calendar_id),
            params={"conferenceDataVersion": 1},
            json_body=body,
        )
        return GoogleEvent.model_validate(data).get_meet_link() or ""

    # -------------------------------------------------------------------------
    # CALENDARS
    # -------------------------------------------------------------------------

    async def list_calendars(self) -> List[CalendarInfo]:
        """List the calendars visible to the connected account."""
        data = await self._make_request("GET", "/users/me/calendarList")
        return CalendarListResponse.model_validate(data or {}).items
