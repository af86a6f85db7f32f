"""
Google Auth Module - OAuth 2.0 Authentication for Google Services

OAuth 2.0 Flow Overview:
========================
1. Operator opens /calendar/auth
2. Backend redirects to Google's consent screen (offline access, forced consent)
3. Google redirects back to /calendar/auth/callback with an authorization code
4. Backend exchanges the code for access + refresh tokens
5. GoogleTokenService persists the credential and keeps it fresh
"""

from app.environments.google.auth.client import GoogleAuthClient
from app.environments.google.auth.schemas import (
    GoogleAuthConfig,
    GoogleCredential,
    GoogleTokenResponse,
    CALENDAR_SCOPES,
    DEFAULT_SCOPES,
    PROFILE_SCOPES,
)

__all__ = [
    "GoogleAuthClient",
    "GoogleAuthConfig",
    "GoogleCredential",
    "GoogleTokenResponse",
    "CALENDAR_SCOPES",
    "DEFAULT_SCOPES",
    "PROFILE_SCOPES",
]
