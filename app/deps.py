"""
Dependencies module - reusable FastAPI dependencies for route handlers.

Service providers read the ServiceContainer that the lifespan stored on
`app.state.services`. get_current_user validates operator JWTs.
"""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import Settings
from app.core.security import decode_access_token
from app.schemas.user import User
from app.services.calendar_sync_service import CalendarSyncService
from app.services.container import ServiceContainer
from app.services.errors import NotFoundError
from app.services.event_store import EventStore
from app.services.finance_service import FinanceService
from app.services.google_token_service import GoogleTokenService
from app.services.prospect_service import ProspectService
from app.services.user_service import UserService


# ---------------------------------------------------------------------------
# SERVICE PROVIDERS
# ---------------------------------------------------------------------------
# Tests override nothing here: they hand create_app() a container built
# around fakes, and these providers return its services.

def get_services(request: Request) -> ServiceContainer:
    return request.app.state.services


def get_app_settings(services: ServiceContainer = Depends(get_services)) -> Settings:
    return services.settings


def get_token_service(services: ServiceContainer = Depends(get_services)) -> GoogleTokenService:
    return services.token_service


def get_calendar_sync(services: ServiceContainer = Depends(get_services)) -> CalendarSyncService:
    return services.calendar_sync


def get_event_store(services: ServiceContainer = Depends(get_services)) -> EventStore:
    return services.event_store


def get_prospect_service(services: ServiceContainer = Depends(get_services)) -> ProspectService:
    return services.prospects


def get_user_service(services: ServiceContainer = Depends(get_services)) -> UserService:
    return services.users


def get_finance_service(services: ServiceContainer = Depends(get_services)) -> FinanceService:
    return services.finance


# ---------------------------------------------------------------------------
# SECURITY SCHEME
# ---------------------------------------------------------------------------
# HTTPBearer: Extracts tokens from the "Authorization: Bearer <token>" header
# - auto_error=True (default): rejects requests without the header
security = HTTPBearer()


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    users: UserService = Depends(get_user_service),
) -> User:
    """
    Validate the JWT and return the authenticated operator.

    Any route that includes `current_user: User = Depends(get_current_user)`
    requires a valid token.

    Raises:
        401 Unauthorized: token invalid, expired, or user no longer exists
        403 Forbidden: user estado is not "active"
    """
    # Same error for every failure so callers cannot tell which check failed
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    user_id = decode_access_token(credentials.credentials)
    if user_id is None:
        raise credentials_exception

    try:
        user = users.get_user_by_id(user_id)
    except NotFoundError:
        # Deleted after the token was issued
        raise credentials_exception

    # Suspended or pending operators keep a valid token but lose access
    if user.estado != "active":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )

    return user


def get_current_admin(current_user: User = Depends(get_current_user)) -> User:
    """Like get_current_user, but only admins pass (403 otherwise)."""
    if current_user.rol != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin role required",
        )
    return current_user
