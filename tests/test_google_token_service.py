"""
Tests for the Google token lifecycle.

The token endpoint is the FakeGoogle MockTransport from conftest; the
clock is fixed so expiry arithmetic is exact.
"""

import asyncio
from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

import pytest

from app.environments.base import (
    AuthExchangeError,
    AuthRefreshError,
    NoRefreshTokenError,
    NotAuthenticatedError,
)
from app.environments.google.auth.client import GoogleAuthClient
from app.environments.google.auth.schemas import GoogleAuthConfig, GoogleCredential
from app.services.google_token_service import CredentialStore, GoogleTokenService


NOW = 1_736_000_000_000
MINUTE = 60 * 1000


@pytest.fixture
def config():
    return GoogleAuthConfig(
        client_id="test-client-id",
        client_secret="test-client-secret",
        redirect_uri="http://testserver/calendar/auth/callback",
    )


@pytest.fixture
def credentials(store):
    return CredentialStore(store)


@pytest.fixture
def token_service(config, http_client, credentials):
    return GoogleTokenService(
        GoogleAuthClient(config, http_client),
        credentials,
        clock=lambda: NOW,
    )


def stored_credential(**overrides) -> GoogleCredential:
    data = {
        "access_token": "ya29.old-access",
        "refresh_token": "1//stored-refresh",
        "scope": "https://www.googleapis.com/auth/calendar",
        "token_type": "Bearer",
        "expiry_date": NOW + 60 * MINUTE,
    }
    data.update(overrides)
    return GoogleCredential(**data)


# ---------------------------------------------------------------------------
# AUTHORIZATION URL
# ---------------------------------------------------------------------------

class TestAuthorizationUrl:
    """Tests for the consent URL."""

    def test_requests_offline_access_with_consent(self, token_service):
        """Should always ask for offline access and force the consent prompt."""
        url = token_service.build_authorization_url()
        query = parse_qs(urlparse(url).query)

        assert url.startswith("https://accounts.google.com/o/oauth2/v2/auth?")
        assert query["access_type"] == ["offline"]
        assert query["prompt"] == ["consent"]
        assert query["response_type"] == ["code"]
        assert query["client_id"] == ["test-client-id"]
        assert query["redirect_uri"] == ["http://testserver/calendar/auth/callback"]
        assert "https://www.googleapis.com/auth/calendar" in query["scope"][0].split()

    def test_url_is_deterministic(self, token_service):
        """Should produce the same URL on every call."""
        assert token_service.build_authorization_url() == token_service.build_authorization_url()


# ---------------------------------------------------------------------------
# CODE EXCHANGE
# ---------------------------------------------------------------------------

class TestExchangeCode:
    """Tests for exchanging an authorization code."""

    @pytest.mark.asyncio
    async def test_stores_credential_with_absolute_expiry(self, token_service, credentials, google):
        """Should persist the tokens with expiry_date = now + expires_in * 1000."""
        credential = await token_service.exchange_code("abc123")

        assert credential.access_token == "ya29.new-access"
        assert credential.refresh_token == "1//refresh-token"
        assert credential.expiry_date == NOW + 3599000
        assert credentials.load() == credential

        form = parse_qs(google.token_requests[0].content.decode())
        assert form["grant_type"] == ["authorization_code"]
        assert form["code"] == ["abc123"]

    @pytest.mark.asyncio
    async def test_keeps_previous_refresh_token_when_omitted(self, token_service, credentials, google):
        """Should keep the stored refresh token if Google does not send one."""
        credentials.save(stored_credential())
        del google.token_payload["refresh_token"]

        credential = await token_service.exchange_code("abc123")

        assert credential.refresh_token == "1//stored-refresh"

    @pytest.mark.asyncio
    async def test_failure_raises_with_status_text(self, token_service, credentials, google):
        """Should raise AuthExchangeError carrying the HTTP status text and store nothing."""
        google.token_status = 400

        with pytest.raises(AuthExchangeError) as exc_info:
            await token_service.exchange_code("bad-code")

        assert "400 Bad Request" in str(exc_info.value)
        assert credentials.load() is None


# ---------------------------------------------------------------------------
# REFRESH
# ---------------------------------------------------------------------------

class TestRefresh:
    """Tests for refresh_access_token."""

    @pytest.mark.asyncio
    async def test_not_connected(self, token_service, google):
        """Should raise NotAuthenticatedError when nothing is stored."""
        with pytest.raises(NotAuthenticatedError):
            await token_service.refresh_access_token()

        assert google.requests == []

    @pytest.mark.asyncio
    async def test_without_refresh_token_makes_no_call(self, token_service, credentials, google):
        """Should raise NoRefreshTokenError without touching the network."""
        credentials.save(stored_credential(refresh_token=None))

        with pytest.raises(NoRefreshTokenError):
            await token_service.refresh_access_token()

        assert google.requests == []

    @pytest.mark.asyncio
    async def test_preserves_refresh_token(self, token_service, credentials, google):
        """Should update only access_token and expiry_date."""
        credentials.save(stored_credential(expiry_date=NOW - MINUTE))
        del google.token_payload["refresh_token"]

        refreshed = await token_service.refresh_access_token()

        assert refreshed.access_token == "ya29.new-access"
        assert refreshed.refresh_token == "1//stored-refresh"
        assert refreshed.scope == "https://www.googleapis.com/auth/calendar"
        assert refreshed.expiry_date == NOW + 3599000
        assert credentials.load() == refreshed

    @pytest.mark.asyncio
    async def test_failure_leaves_stored_credential(self, token_service, credentials, google):
        """Should raise AuthRefreshError and keep the previous credential."""
        original = stored_credential(expiry_date=NOW - MINUTE)
        credentials.save(original)
        google.token_status = 401

        with pytest.raises(AuthRefreshError):
            await token_service.refresh_access_token()

        assert credentials.load() == original


# ---------------------------------------------------------------------------
# VALID ACCESS TOKEN
# ---------------------------------------------------------------------------

class TestGetValidAccessToken:
    """Tests for get_valid_access_token and the five minute margin."""

    @pytest.mark.asyncio
    async def test_not_connected(self, token_service):
        """Should raise NotAuthenticatedError when nothing is stored."""
        with pytest.raises(NotAuthenticatedError):
            await token_service.get_valid_access_token()

    @pytest.mark.asyncio
    async def test_valid_token_returned_without_refresh(self, token_service, credentials, google):
        """Should return the stored token when it has more than five minutes left."""
        credentials.save(stored_credential(expiry_date=NOW + 10 * MINUTE))

        token = await token_service.get_valid_access_token()

        assert token == "ya29.old-access"
        assert google.token_requests == []

    @pytest.mark.asyncio
    async def test_token_inside_margin_is_refreshed(self, token_service, credentials, google):
        """Should refresh exactly once when the token expires within five minutes."""
        credentials.save(stored_credential(expiry_date=NOW + 4 * MINUTE))

        token = await token_service.get_valid_access_token()

        assert token == "ya29.new-access"
        assert len(google.token_requests) == 1

    @pytest.mark.asyncio
    async def test_exactly_at_margin_is_refreshed(self, token_service, credentials, google):
        """Should treat a token expiring in exactly five minutes as expiring."""
        credentials.save(stored_credential(expiry_date=NOW + 5 * MINUTE))

        await token_service.get_valid_access_token()

        assert len(google.token_requests) == 1

    @pytest.mark.asyncio
    async def test_missing_expiry_counts_as_usable(self, token_service, credentials, google):
        """Should return a credential without expiry_date as-is."""
        credentials.save(stored_credential(expiry_date=None))

        assert await token_service.get_valid_access_token() == "ya29.old-access"
        assert google.token_requests == []

    @pytest.mark.asyncio
    async def test_expiring_without_refresh_token(self, token_service, credentials, google):
        """Should surface NoRefreshTokenError with zero network calls."""
        credentials.save(stored_credential(expiry_date=NOW - MINUTE, refresh_token=None))

        with pytest.raises(NoRefreshTokenError):
            await token_service.get_valid_access_token()

        assert google.requests == []

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_refresh(self, token_service, credentials, google):
        """Should call the token endpoint once for concurrent callers."""
        credentials.save(stored_credential(expiry_date=NOW - MINUTE))

        tokens = await asyncio.gather(
            token_service.get_valid_access_token(),
            token_service.get_valid_access_token(),
            token_service.get_valid_access_token(),
        )

        assert tokens == ["ya29.new-access"] * 3
        assert len(google.token_requests) == 1

    @pytest.mark.asyncio
    async def test_next_refresh_starts_fresh(self, token_service, credentials, google):
        """Should not reuse a finished refresh for a later expiry."""
        credentials.save(stored_credential(expiry_date=NOW - MINUTE))
        await token_service.get_valid_access_token()

        credentials.save(stored_credential(expiry_date=NOW - MINUTE))
        await token_service.get_valid_access_token()

        assert len(google.token_requests) == 2


# ---------------------------------------------------------------------------
# CONNECTION STATE
# ---------------------------------------------------------------------------

class TestConnectionState:
    """Tests for is_connected and disconnect."""

    def test_connected_after_save(self, token_service, credentials):
        """Should report connected once a credential is stored."""
        assert token_service.is_connected() is False

        credentials.save(stored_credential())

        assert token_service.is_connected() is True

    def test_store_failure_reports_not_connected(self, token_service, credentials):
        """Should degrade to False when the store raises."""
        with patch.object(credentials, "load", side_effect=Exception("db down")):
            assert token_service.is_connected() is False

    def test_disconnect_is_idempotent(self, token_service, credentials):
        """Should delete the credential and tolerate a second call."""
        credentials.save(stored_credential())

        token_service.disconnect()
        token_service.disconnect()

        assert credentials.load() is None
