"""
Service Container - explicit construction of every service.

One container per application instance, stored on `app.state.services`
by the lifespan in app.main. Route handlers reach services through the
providers in app.deps; nothing is instantiated at import time.

Tests build a container around an InMemoryDocumentStore and an
httpx.AsyncClient with a MockTransport, then pass it to create_app().
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from app.core.config import Settings
from app.db.base import Base
from app.db.session import create_session_factory
from app.environments.google.auth import GoogleAuthClient, GoogleAuthConfig
from app.environments.google.calendar import GoogleCalendarClient
from app.models.document import DocumentRecord  # noqa: F401 - registers the table
from app.repositories.document_store import DocumentStore, SqlDocumentStore
from app.services.calendar_sync_service import CalendarSyncService
from app.services.event_store import EventStore
from app.services.finance_service import FinanceService
from app.services.google_token_service import CredentialStore, GoogleTokenService
from app.services.prospect_service import ProspectService
from app.services.user_service import UserService


logger = logging.getLogger("innomind.services.container")


# Shared client timeout for every Google call (seconds)
HTTP_TIMEOUT = 30.0


@dataclass
class ServiceContainer:
    """Every long-lived collaborator the routers need."""
    settings: Settings
    store: DocumentStore
    http_client: httpx.AsyncClient
    token_service: GoogleTokenService
    calendar_client: GoogleCalendarClient
    event_store: EventStore
    calendar_sync: CalendarSyncService
    prospects: ProspectService
    users: UserService
    finance: FinanceService

    @classmethod
    def build(
        cls,
        settings: Settings,
        store: DocumentStore,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> "ServiceContainer":
        """
        Wire services around an existing document store.

        Args:
            settings: OAuth client configuration and admin seed values
            store: persistence port shared by every service
            http_client: client used for Google; a new one is created if omitted
        """
        http = http_client or httpx.AsyncClient(timeout=HTTP_TIMEOUT)

        auth_client = GoogleAuthClient(
            GoogleAuthConfig(
                client_id=settings.GOOGLE_CLIENT_ID,
                client_secret=settings.GOOGLE_CLIENT_SECRET,
                redirect_uri=settings.GOOGLE_REDIRECT_URI,
            ),
            http,
        )
        token_service = GoogleTokenService(auth_client, CredentialStore(store))

        # The calendar client asks the token service for a fresh token per request
        calendar_client = GoogleCalendarClient(token_service.get_valid_access_token, http)
        event_store = EventStore(store)

        return cls(
            settings=settings,
            store=store,
            http_client=http,
            token_service=token_service,
            calendar_client=calendar_client,
            event_store=event_store,
            calendar_sync=CalendarSyncService(calendar_client, event_store),
            prospects=ProspectService(store),
            users=UserService(store),
            finance=FinanceService(store),
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "ServiceContainer":
        """Production wiring: SQL-backed document store from DATABASE_URL."""
        session_factory = create_session_factory(settings.DATABASE_URL)

        # Alembic owns the schema in deployed environments; this only fills
        # in the table for fresh local databases.
        Base.metadata.create_all(bind=session_factory.kw["bind"])

        return cls.build(settings, SqlDocumentStore(session_factory))

    def seed(self) -> None:
        """Create the default admin when the user collection is empty."""
        self.users.ensure_default_admin(
            self.settings.DEFAULT_ADMIN_EMAIL,
            self.settings.DEFAULT_ADMIN_PASSWORD,
        )

    async def aclose(self) -> None:
        await self.http_client.aclose()
        logger.info("Service container closed")
