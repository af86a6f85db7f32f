"""
Google Token Service - OAuth credential lifecycle for the Google connection.

One Google account is connected per installation. Its credential is stored
as a single document, settings/calendarTokens:

    {"tokens": {"access_token": ..., "refresh_token": ..., "scope": ...,
                "token_type": "Bearer", "expiry_date": 1736000000000},
     "updatedAt": "2025-01-04T12:00:00+00:00"}

State machine:
==============
UNAUTHENTICATED --exchange_code--> AUTHENTICATED(valid)
AUTHENTICATED(valid) --time--> AUTHENTICATED(expiring)
AUTHENTICATED(expiring) --refresh ok--> AUTHENTICATED(valid)
any --disconnect--> UNAUTHENTICATED

A failed exchange stores nothing; a failed refresh leaves the stored
credential untouched.

Concurrent callers of get_valid_access_token() that find the token
expiring share one in-flight refresh, so the token endpoint is called once.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from app.environments.base import NoRefreshTokenError, NotAuthenticatedError
from app.environments.google.auth.client import GoogleAuthClient
from app.environments.google.auth.schemas import (
    GoogleCredential,
    GoogleTokenResponse,
    now_ms,
)
from app.repositories.document_store import DocumentStore


logger = logging.getLogger("innomind.services.google_token")


Clock = Callable[[], float]


class CredentialStore:
    """Reads and writes the connected account's credential document."""

    COLLECTION = "settings"
    DOC_ID = "calendarTokens"

    def __init__(self, store: DocumentStore):
        self._store = store

    def load(self) -> Optional[GoogleCredential]:
        data = self._store.get(self.COLLECTION, self.DOC_ID)
        if not data or not data.get("tokens"):
            return None
        return GoogleCredential.model_validate(data["tokens"])

    def save(self, credential: GoogleCredential) -> None:
        self._store.set(
            self.COLLECTION,
            self.DOC_ID,
            {
                "tokens": credential.model_dump(),
                "updatedAt": datetime.now(timezone.utc).isoformat(),
            },
        )

    def delete(self) -> None:
        self._store.delete(self.COLLECTION, self.DOC_ID)


class GoogleTokenService:
    """
    Token exchange, refresh and validity checks for the Google connection.

    Args:
        auth_client: performs the token endpoint calls
        credentials: persistence for the single stored credential
        clock: returns the current time in epoch milliseconds
    """

    def __init__(
        self,
        auth_client: GoogleAuthClient,
        credentials: CredentialStore,
        clock: Clock = now_ms,
    ):
        self.auth_client = auth_client
        self.credentials = credentials
        self._clock = clock
        self._refresh_task: Optional["asyncio.Future[GoogleCredential]"] = None

    def build_authorization_url(self) -> str:
        return self.auth_client.build_authorization_url()

    async def exchange_code(self, code: str) -> GoogleCredential:
        """
        Exchange an authorization code and persist the resulting credential.

        If Google omits the refresh token (repeat consent), the previously
        stored one is kept.

        Raises:
            AuthExchangeError: token endpoint failure; nothing is stored
        """
        issued_at = self._clock()
        payload = await self.auth_client.exchange_code(code)
        token = GoogleTokenResponse.model_validate(payload)

        refresh_token = token.refresh_token
        if not refresh_token:
            previous = self.credentials.load()
            refresh_token = previous.refresh_token if previous else None

        credential = GoogleCredential(
            access_token=token.access_token,
            refresh_token=refresh_token,
            scope=token.scope,
            token_type=token.token_type,
            expiry_date=token.get_expiry_date(issued_at),
        )
        self.credentials.save(credential)

        logger.info(
            "Stored Google credential",
            extra={
                "has_refresh_token": credential.refresh_token is not None,
                "expires_in": token.expires_in,
                "scopes": credential.get_scopes_list(),
            },
        )
        return credential

    async def refresh_access_token(
        self, stored: Optional[GoogleCredential] = None
    ) -> GoogleCredential:
        """
        Renew the access token with the stored refresh token.

        Only access_token and expiry_date change; refresh token, scope and
        token type are kept.

        Raises:
            NotAuthenticatedError: no credential stored (and none passed)
            NoRefreshTokenError: credential lacks a refresh token (no network call)
            AuthRefreshError: token endpoint failure; stored credential untouched
        """
        if stored is None:
            stored = self.credentials.load()
            if stored is None:
                raise NotAuthenticatedError("Google account is not connected")

        if not stored.refresh_token:
            logger.warning("Cannot refresh Google token: no refresh token stored")
            raise NoRefreshTokenError(
                "No refresh token available; reconnect the Google account"
            )

        issued_at = self._clock()
        payload = await self.auth_client.refresh(stored.refresh_token)
        token = GoogleTokenResponse.model_validate(payload)

        refreshed = stored.model_copy(update={
            "access_token": token.access_token,
            "expiry_date": token.get_expiry_date(issued_at),
        })
        self.credentials.save(refreshed)

        logger.info("Refreshed Google access token", extra={"expires_in": token.expires_in})
        return refreshed

    async def get_valid_access_token(self) -> str:
        """
        Return an access token that is valid for at least five more minutes.

        Raises:
            NotAuthenticatedError: no credential stored
            NoRefreshTokenError / AuthRefreshError: from the refresh
        """
        stored = self.credentials.load()
        if stored is None:
            raise NotAuthenticatedError("Google account is not connected")

        if stored.is_usable(self._clock()):
            return stored.access_token

        refreshed = await self._refresh_shared(stored)
        return refreshed.access_token

    async def _refresh_shared(self, stored: GoogleCredential) -> GoogleCredential:
        """Join the in-flight refresh, starting one if none is running."""
        if self._refresh_task is None:
            task = asyncio.ensure_future(self.refresh_access_token(stored))
            task.add_done_callback(self._clear_refresh_task)
            self._refresh_task = task
        else:
            logger.debug("Joining in-flight Google token refresh")

        # shield: one caller being cancelled must not cancel the others' refresh
        return await asyncio.shield(self._refresh_task)

    def _clear_refresh_task(self, task: "asyncio.Future[GoogleCredential]") -> None:
        if self._refresh_task is task:
            self._refresh_task = None

    def is_connected(self) -> bool:
        """
        True when a credential is stored.

        Store failures are logged and reported as not connected.
        """
        try:
            return self.credentials.load() is not None
        except Exception as e:
            logger.warning(f"Could not read Google credential: {e}")
            return False

    def disconnect(self) -> None:
        """Forget the stored credential; safe to call when not connected."""
        self.credentials.delete()
        logger.info("Disconnected Google account")
