"""
Google OAuth Schemas - Data structures for Google authentication.

GoogleTokenResponse is what the token endpoint returns; GoogleCredential is
what we persist. Expiry is kept as epoch milliseconds (expiry_date), the
same unit Google's client libraries store.
"""

import time
from typing import List, Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# OAUTH SCOPE CONSTANTS
# ---------------------------------------------------------------------------
# Reference: https://developers.google.com/identity/protocols/oauth2/scopes

# Calendar read/write
CALENDAR_SCOPES = [
    "https://www.googleapis.com/auth/calendar",
    "https://www.googleapis.com/auth/calendar.events",
]

# Profile scopes - basic user information
PROFILE_SCOPES = [
    "https://www.googleapis.com/auth/userinfo.email",
    "https://www.googleapis.com/auth/userinfo.profile",
]

# Requested on every consent: fixed, never derived from the request
DEFAULT_SCOPES = CALENDAR_SCOPES + PROFILE_SCOPES

# Access tokens within this window of expiry are refreshed before use
EXPIRY_SAFETY_MARGIN_MS = 5 * 60 * 1000


def now_ms() -> float:
    """Current time as epoch milliseconds."""
    return time.time() * 1000


# ---------------------------------------------------------------------------
# CONFIGURATION
# ---------------------------------------------------------------------------

class GoogleAuthConfig(BaseModel):
    """
    Static OAuth client configuration.

    Built from Settings by the service container.
    """
    client_id: str = Field(..., description="Google OAuth Client ID")
    client_secret: str = Field(..., description="Google OAuth Client Secret")
    redirect_uri: str = Field(..., description="OAuth callback URL")
    scopes: List[str] = Field(default_factory=lambda: list(DEFAULT_SCOPES))


# ---------------------------------------------------------------------------
# TOKEN RESPONSES
# ---------------------------------------------------------------------------

class GoogleTokenResponse(BaseModel):
    """
    Response from Google's token endpoint.

    Example response from Google:
    {
        "access_token": "ya29.a0AfB_byC...",
        "expires_in": 3599,
        "refresh_token": "1//0eXyz...",
        "scope": "https://www.googleapis.com/auth/calendar ...",
        "token_type": "Bearer"
    }

    refresh_token is only present on the first exchange (and on consent
    with prompt=consent); refresh responses omit it.
    """
    access_token: str = Field(..., description="OAuth access token")
    token_type: str = Field(default="Bearer", description="Token type (usually Bearer)")
    expires_in: Optional[int] = Field(None, description="Seconds until expiration")
    refresh_token: Optional[str] = Field(None, description="Refresh token for renewal")
    scope: Optional[str] = Field(None, description="Space-separated scopes granted")
    id_token: Optional[str] = Field(None, description="JWT with user info (OpenID)")

    def get_expiry_date(self, issued_at_ms: float) -> Optional[int]:
        """Absolute expiry in epoch ms: issued_at + expires_in * 1000."""
        if self.expires_in is None:
            return None
        return int(issued_at_ms + self.expires_in * 1000)


# ---------------------------------------------------------------------------
# STORED CREDENTIAL
# ---------------------------------------------------------------------------

class GoogleCredential(BaseModel):
    """
    Mutable session state of the OAuth connection.

    Created by a successful code exchange, mutated (access_token,
    expiry_date) by every refresh, deleted on disconnect.
    """
    access_token: str
    refresh_token: Optional[str] = None
    scope: Optional[str] = None
    token_type: str = "Bearer"
    expiry_date: Optional[int] = Field(None, description="Epoch milliseconds")

    def is_usable(self, at_ms: float) -> bool:
        """
        True while at_ms < expiry_date - 5 minutes.

        A credential without expiry_date is treated as usable.
        """
        if self.expiry_date is None:
            return True
        return at_ms < self.expiry_date - EXPIRY_SAFETY_MARGIN_MS

    def get_scopes_list(self) -> List[str]:
        """Convert space-separated scope string to list."""
        if self.scope:
            return self.scope.split()
        return []
