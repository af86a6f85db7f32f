"""
Base classes and interfaces for Environment integrations.

This module defines the error taxonomy for external providers and the
abstract contracts an OAuth provider and its API services implement.

- EnvironmentProvider: OAuth half (consent URL, code exchange, refresh)
- EnvironmentService: API half (calendar, ...), authenticated through a
  token provider supplied by the caller
"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional


# ---------------------------------------------------------------------------
# CUSTOM EXCEPTIONS
# ---------------------------------------------------------------------------
# Routes map these to HTTP status codes; nothing here is retried.


class EnvironmentError(Exception):
    """Base exception for all environment-related errors."""
    pass


class AuthenticationError(EnvironmentError):
    """Raised when authentication with a provider fails."""
    pass


class AuthExchangeError(AuthenticationError):
    """The authorization code could not be exchanged for tokens."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class AuthRefreshError(AuthenticationError):
    """The token endpoint rejected a refresh request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NotAuthenticatedError(AuthenticationError):
    """No credential is stored; the OAuth flow has not been completed."""
    pass


class NoRefreshTokenError(AuthenticationError):
    """The stored credential has no refresh token to renew the access token with."""
    pass


class APIError(EnvironmentError):
    """Raised when an API call to the provider fails."""

    def __init__(self, message: str, status_code: Optional[int] = None, response: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class CalendarFetchError(APIError):
    """A Calendar API request returned a non-success response."""
    pass


# Async callable returning a currently valid access token
AccessTokenProvider = Callable[[], Awaitable[str]]


# ---------------------------------------------------------------------------
# ABSTRACT BASE CLASSES
# ---------------------------------------------------------------------------


class EnvironmentProvider(ABC):
    """
    Abstract base class for OAuth providers.

    A provider performs the HTTP half of the OAuth flow. Persisting the
    resulting credential is the caller's job.
    """

    # Unique identifier for this provider (e.g., "google")
    provider_name: str = ""

    @abstractmethod
    def build_authorization_url(self) -> str:
        """Consent screen URL for the configured client and scopes."""

    @abstractmethod
    async def exchange_code(self, code: str) -> Dict[str, Any]:
        """
        Exchange an authorization code for the token endpoint payload.

        Raises:
            AuthExchangeError: on any non-success response or network failure
        """

    @abstractmethod
    async def refresh(self, refresh_token: str) -> Dict[str, Any]:
        """
        Exchange a refresh token for a new access token payload.

        Raises:
            AuthRefreshError: on any non-success response or network failure
        """


class EnvironmentService(ABC):
    """
    Abstract base class for API services within a provider.

    Services never hold a token themselves; they ask the token provider
    for one before every request.
    """

    # Unique identifier for this service within the provider
    service_name: str = ""

    # OAuth scopes required for this service to function
    required_scopes: List[str] = []

    def __init__(self, token_provider: AccessTokenProvider):
        self._token_provider = token_provider
