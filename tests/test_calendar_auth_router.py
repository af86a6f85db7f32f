"""
Tests for the Google OAuth endpoints under /calendar/auth.
"""

from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

from fastapi import status

from app.environments.google.auth.schemas import GoogleCredential


class TestConsentUrl:
    """GET /calendar/auth and /calendar/auth/url."""

    def test_redirects_to_google(self, client):
        """Should redirect to the consent screen with offline access."""
        response = client.get("/calendar/auth", follow_redirects=False)

        assert response.status_code == status.HTTP_307_TEMPORARY_REDIRECT
        location = response.headers["location"]
        assert location.startswith("https://accounts.google.com/o/oauth2/v2/auth")
        query = parse_qs(urlparse(location).query)
        assert query["access_type"] == ["offline"]
        assert query["prompt"] == ["consent"]

    def test_url_endpoint(self, client):
        """Should return the same URL as JSON."""
        redirect = client.get("/calendar/auth", follow_redirects=False)
        response = client.get("/calendar/auth/url")

        assert response.json() == {"url": redirect.headers["location"]}


class TestCallback:
    """GET /calendar/auth/callback."""

    def test_google_error(self, client, google):
        """Should return 400 with the error and call nothing."""
        response = client.get("/calendar/auth/callback", params={"error": "access_denied"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.text == "OAuth Error: access_denied"
        assert google.requests == []

    def test_missing_code(self, client):
        """Should return 400 when no code is present."""
        response = client.get("/calendar/auth/callback")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.text == "No se recibió el code de Google"

    def test_exchange_failure(self, client, google, services):
        """Should return 500 and store nothing when Google rejects the code."""
        google.token_status = 400

        response = client.get("/calendar/auth/callback", params={"code": "bad"})

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.text == "Error al intercambiar el código con Google"
        assert services.token_service.credentials.load() is None

    def test_success(self, client, google, services):
        """Should store the credential and link back to the frontend."""
        response = client.get("/calendar/auth/callback", params={"code": "abc123"})

        assert response.status_code == status.HTTP_200_OK
        assert "text/html" in response.headers["content-type"]
        assert 'href="http://localhost:5173"' in response.text
        assert len(google.token_requests) == 1

        stored = services.token_service.credentials.load()
        assert stored.access_token == "ya29.new-access"
        assert stored.refresh_token == "1//refresh-token"


class TestStatusAndLogout:
    """GET /calendar/auth/status and POST /calendar/auth/logout."""

    def test_status_flow(self, client, services):
        """Should report connected after a credential is stored and not after logout."""
        assert client.get("/calendar/auth/status").json() == {"connected": False}

        services.token_service.credentials.save(GoogleCredential(access_token="ya29.x"))
        assert client.get("/calendar/auth/status").json() == {"connected": True}

        response = client.post("/calendar/auth/logout")
        assert response.json() == {"success": True}
        assert client.get("/calendar/auth/status").json() == {"connected": False}

    def test_status_degrades_on_store_error(self, client, services):
        """Should answer 200 {connected: false} when the store fails."""
        with patch.object(services.token_service.credentials, "load", side_effect=Exception("db down")):
            response = client.get("/calendar/auth/status")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"connected": False}

    def test_status_rejects_post(self, client):
        """Should return 405 for the wrong method."""
        response = client.post("/calendar/auth/status")

        assert response.status_code == status.HTTP_405_METHOD_NOT_ALLOWED

    def test_logout_when_not_connected(self, client):
        """Should succeed even with nothing stored."""
        response = client.post("/calendar/auth/logout")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"success": True}
