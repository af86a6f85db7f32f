"""
Google OAuth Client - Handles the OAuth 2.0 flow with Google APIs.

This client performs the HTTP half of the authorization code flow:

1. build_authorization_url() → user is redirected to Google
2. exchange_code() → called in the callback, returns the token payload
3. refresh() → renews an expired access token

It never stores anything. GoogleTokenService owns persistence and the
token lifecycle.

References:
===========
- OAuth 2.0: https://developers.google.com/identity/protocols/oauth2/web-server
- Token endpoint: https://oauth2.googleapis.com/token
"""

import logging
from typing import Any, Dict
from urllib.parse import urlencode

import httpx

from app.environments.base import (
    AuthExchangeError,
    AuthRefreshError,
    EnvironmentProvider,
)
from app.environments.google.auth.schemas import GoogleAuthConfig


logger = logging.getLogger("innomind.environments.google.auth")


def _describe_failure(response: httpx.Response) -> str:
    """Status line plus Google's error_description, when it sent one."""
    detail = ""
    try:
        payload = response.json()
        if isinstance(payload, dict):
            detail = payload.get("error_description") or payload.get("error") or ""
    except ValueError:
        detail = response.text
    status_text = f"{response.status_code} {response.reason_phrase}"
    return f"{status_text}: {detail}" if detail else status_text


class GoogleAuthClient(EnvironmentProvider):
    """
    Google OAuth 2.0 Client implementation.

    Example Usage:
        async with httpx.AsyncClient(timeout=30.0) as http:
            client = GoogleAuthClient(config, http)

            url = client.build_authorization_url()
            # Redirect user to url, then in the callback:
            payload = await client.exchange_code(code="abc123")
    """

    provider_name = "google"

    # Google OAuth endpoints
    AUTHORIZATION_URL = "https://accounts.google.com/o/oauth2/v2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"

    def __init__(self, config: GoogleAuthConfig, http_client: httpx.AsyncClient):
        """
        Initialize the Google OAuth client.

        Args:
            config: Client id, secret, redirect URI and scopes
            http_client: Shared async HTTP client (owned by the caller)
        """
        self.config = config
        self._http = http_client

        if not config.client_id or not config.client_secret:
            logger.warning(
                "Google OAuth not configured. Set GOOGLE_CLIENT_ID and "
                "GOOGLE_CLIENT_SECRET in environment variables."
            )

    # -------------------------------------------------------------------------
    # AUTHORIZATION URL
    # -------------------------------------------------------------------------

    def build_authorization_url(self) -> str:
        """
        Generate the Google OAuth consent URL.

        Always requests offline access with a forced consent prompt so
        Google issues a refresh token even when the user consented before.
        The result depends only on configuration.

        Returns:
            Full authorization URL to redirect the user to
        """
        params = {
            "client_id": self.config.client_id,
            "redirect_uri": self.config.redirect_uri,
            "response_type": "code",
            "scope": " ".join(self.config.scopes),
            "access_type": "offline",
            "prompt": "consent",
        }

        auth_url = f"{self.AUTHORIZATION_URL}?{urlencode(params)}"

        logger.info(
            f"Generated Google auth URL with {len(self.config.scopes)} scopes",
            extra={"scopes": self.config.scopes},
        )

        return auth_url

    # -------------------------------------------------------------------------
    # TOKEN ENDPOINT
    # -------------------------------------------------------------------------

    async def _post_token(self, form: Dict[str, str]) -> httpx.Response:
        return await self._http.post(
            self.TOKEN_URL,
            data=form,
            headers={"Accept": "application/json"},
        )

    async def exchange_code(self, code: str) -> Dict[str, Any]:
        """
        Exchange authorization code for access and refresh tokens.

        Args:
            code: Authorization code from Google callback

        Returns:
            The token endpoint JSON payload

        Raises:
            AuthExchangeError: Non-2xx response (message carries the HTTP
                status text) or network failure
        """
        form = {
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "code": code,
            "grant_type": "authorization_code",
            "redirect_uri": self.config.redirect_uri,
        }

        logger.info("Exchanging authorization code for tokens")

        try:
            response = await self._post_token(form)
        except httpx.RequestError as e:
            logger.error(f"Network error during token exchange: {e}")
            raise AuthExchangeError(f"Token exchange failed: network error: {e}")

        if not response.is_success:
            message = _describe_failure(response)
            logger.error(f"Token exchange failed: {message}")
            raise AuthExchangeError(
                f"Token exchange failed: {message}",
                status_code=response.status_code,
            )

        return response.json()

    async def refresh(self, refresh_token: str) -> Dict[str, Any]:
        """
        Use a refresh token to get a new access token.

        Args:
            refresh_token: The refresh token from the initial authorization

        Returns:
            The token endpoint JSON payload (normally without refresh_token)

        Raises:
            AuthRefreshError: Non-2xx response or network failure
        """
        form = {
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "refresh_token": refresh_token,
            "grant_type": "refresh_token",
        }

        logger.info("Refreshing access token")

        try:
            response = await self._post_token(form)
        except httpx.RequestError as e:
            logger.error(f"Network error during token refresh: {e}")
            raise AuthRefreshError(f"Token refresh failed: network error: {e}")

        if not response.is_success:
            message = _describe_failure(response)
            logger.error(f"Token refresh failed: {message}")
            raise AuthRefreshError(
                f"Token refresh failed: {message}",
                status_code=response.status_code,
            )

        return response.json()
