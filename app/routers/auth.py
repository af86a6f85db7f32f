"""
Auth router - operator login.

Public endpoint; every other operator-facing router depends on the token
issued here (see app.deps.get_current_user).
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.core.security import create_access_token
from app.deps import get_current_user, get_user_service
from app.schemas.auth import Token, UserLogin
from app.schemas.user import User
from app.services.errors import InvalidCredentialsError
from app.services.user_service import UserService


logger = logging.getLogger("innomind.routers.auth")


# ---------------------------------------------------------------------------
# ROUTER SETUP
# ---------------------------------------------------------------------------
router = APIRouter(prefix="/auth", tags=["auth"])


# ---------------------------------------------------------------------------
# POST /auth/login - Authenticate and get a JWT token
# ---------------------------------------------------------------------------
@router.post("/login", response_model=Token)
def login(payload: UserLogin, users: UserService = Depends(get_user_service)):
    """
    Authenticate an operator and return a JWT access token.

    Raises:
        401 Unauthorized: unknown email or wrong password
        403 Forbidden: account estado is not "active"
    """
    # Same message for unknown email and wrong password (no email enumeration)
    try:
        user = users.authenticate(payload.email, payload.password)
    except InvalidCredentialsError:
        logger.warning("Failed login attempt", extra={"email": payload.email})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if user.estado != "active":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )

    users.update_last_access(user.id)
    logger.info(f"User {user.id} logged in")

    # The token's "sub" claim is the user id
    return Token(access_token=create_access_token(subject=user.id))


# ---------------------------------------------------------------------------
# GET /auth/me - Current operator
# ---------------------------------------------------------------------------
@router.get("/me", response_model=User)
def read_current_user(current_user: User = Depends(get_current_user)):
    return current_user
