"""
Google Environment Module - Google Workspace Integration

google/
├── auth/        # OAuth client and credential schemas
└── calendar/    # Calendar API client, schemas and event mapping

Both halves share one OAuth connection: the calendar client asks the token
service for a valid access token before every request.
"""

from app.environments.google.auth import GoogleAuthClient, GoogleAuthConfig, DEFAULT_SCOPES
from app.environments.google.calendar import GoogleCalendarClient

__all__ = [
    "GoogleAuthClient",
    "GoogleAuthConfig",
    "GoogleCalendarClient",
    "DEFAULT_SCOPES",
]
