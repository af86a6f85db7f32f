"""
Test configuration and fixtures for pytest.

This module provides shared fixtures used across all tests:
- In-memory document store (no database needed)
- A fake Google (token endpoint + Calendar API) behind httpx.MockTransport
- Service container and FastAPI TestClient
- Authentication helpers
"""

from typing import Any, Dict, Generator, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.core.security import create_access_token
from app.main import create_app
from app.repositories.document_store import InMemoryDocumentStore
from app.schemas.user import User, UserCreate
from app.services.container import ServiceContainer


TOKEN_HOST = "oauth2.googleapis.com"
CALENDAR_HOST = "www.googleapis.com"


# ---------------------------------------------------------------------------
# FAKE GOOGLE
# ---------------------------------------------------------------------------

class FakeGoogle:
    """
    Answers the token endpoint and the Calendar events endpoints.

    Tests tweak the public attributes to shape responses and inspect
    `requests` to count calls.
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.token_status = 200
        self.token_payload: Dict[str, Any] = {
            "access_token": "ya29.new-access",
            "expires_in": 3599,
            "refresh_token": "1//refresh-token",
            "scope": "https://www.googleapis.com/auth/calendar",
            "token_type": "Bearer",
        }
        self.calendar_status = 200
        self.events: List[Dict[str, Any]] = []
        self.created: Optional[Dict[str, Any]] = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.url.host == TOKEN_HOST:
            if self.token_status != 200:
                return httpx.Response(
                    self.token_status,
                    json={"error": "invalid_grant", "error_description": "Bad Request"},
                )
            return httpx.Response(200, json=self.token_payload)

        if request.url.host == CALENDAR_HOST:
            if self.calendar_status != 200:
                return httpx.Response(self.calendar_status, json={"error": {"message": "boom"}})
            if request.method == "GET":
                return httpx.Response(200, json={"items": self.events})
            if request.method == "DELETE":
                return httpx.Response(204)
            return httpx.Response(200, json=self.created or {"id": "created-1", "summary": "Created"})

        return httpx.Response(404)

    @staticmethod
    def event(event_id: str, start: str, end: str, **extra) -> Dict[str, Any]:
        return google_event(event_id, start, end, **extra)

    @property
    def token_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.host == TOKEN_HOST]

    @property
    def calendar_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.host == CALENDAR_HOST]


def google_event(event_id: str, start: str, end: str, **extra) -> Dict[str, Any]:
    """Minimal timed Google event resource."""
    return {
        "id": event_id,
        "summary": extra.pop("summary", f"Event {event_id}"),
        "start": {"dateTime": start},
        "end": {"dateTime": end},
        "created": "2025-01-01T00:00:00Z",
        "updated": "2025-01-01T00:00:00Z",
        **extra,
    }


# ---------------------------------------------------------------------------
# CORE FIXTURES
# ---------------------------------------------------------------------------

@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        DATABASE_URL="sqlite://",
        GOOGLE_CLIENT_ID="test-client-id",
        GOOGLE_CLIENT_SECRET="test-client-secret",
        GOOGLE_REDIRECT_URI="http://testserver/calendar/auth/callback",
        FRONTEND_URL="http://localhost:5173",
        WEBHOOK_SECRET=None,
    )


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def google() -> FakeGoogle:
    return FakeGoogle()


@pytest.fixture
def http_client(google: FakeGoogle) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(google.handler))


@pytest.fixture
def services(test_settings, store, http_client) -> ServiceContainer:
    return ServiceContainer.build(test_settings, store, http_client)


@pytest.fixture
def client(services: ServiceContainer) -> Generator[TestClient, None, None]:
    """
    Test client around a container of fakes.

    The lifespan seeds the default admin only when no user exists yet.
    """
    with TestClient(create_app(services)) as test_client:
        yield test_client


# ---------------------------------------------------------------------------
# USER FIXTURES
# ---------------------------------------------------------------------------

@pytest.fixture
def admin_user(services: ServiceContainer) -> User:
    """Active admin with password "adminpass"."""
    return services.users.create_user(UserCreate(
        nombre="Admin",
        apellido="Test",
        email="admin@test.com",
        rol="admin",
        password="adminpass",
    ))


@pytest.fixture
def agent_user(services: ServiceContainer) -> User:
    """Active agent with password "agentpass"."""
    return services.users.create_user(UserCreate(
        nombre="Agent",
        apellido="Test",
        email="agent@test.com",
        rol="agent",
        password="agentpass",
    ))


@pytest.fixture
def auth_headers(admin_user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(subject=admin_user.id)}"}


@pytest.fixture
def agent_headers(agent_user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(subject=agent_user.id)}"}
