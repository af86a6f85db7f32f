"""
Users router - operator account management.

Reads require any active operator; mutations require an admin, except
password changes and activity logging on one's own account.
NotFoundError, DuplicateEmailError and LastAdminError are translated to
HTTP by the exception handlers in app.main.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from app.deps import get_current_admin, get_current_user, get_user_service
from app.schemas.user import (
    ActivityLogCreate,
    PasswordChange,
    User,
    UserCreate,
    UserImportResult,
    UserImportRow,
    UserPermission,
    UserStatusChange,
    UserUpdate,
)
from app.services.errors import InvalidCredentialsError
from app.services.user_service import UserService, default_permissions


logger = logging.getLogger("innomind.routers.users")


# ---------------------------------------------------------------------------
# ROUTER SETUP
# ---------------------------------------------------------------------------
router = APIRouter(prefix="/users", tags=["users"])


def _require_self_or_admin(user_id: str, current_user: User) -> None:
    if current_user.id != user_id and current_user.rol != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not allowed to modify another user",
        )


# ---------------------------------------------------------------------------
# READ
# ---------------------------------------------------------------------------

@router.get("", response_model=List[User])
def list_users(
    users: UserService = Depends(get_user_service),
    current_user: User = Depends(get_current_user),
):
    return users.get_all_users()


@router.get("/me", response_model=User)
def read_current_user(current_user: User = Depends(get_current_user)):
    return current_user


@router.get("/permissions/{role}", response_model=List[UserPermission])
def role_permissions(role: str, current_user: User = Depends(get_current_user)):
    """Default permission set for a role (viewer set for unknown roles)."""
    return default_permissions(role)


@router.get("/{user_id}", response_model=User)
def get_user(
    user_id: str,
    users: UserService = Depends(get_user_service),
    current_user: User = Depends(get_current_user),
):
    return users.get_user_by_id(user_id)


# ---------------------------------------------------------------------------
# ADMIN MUTATIONS
# ---------------------------------------------------------------------------

@router.post("", response_model=User, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    users: UserService = Depends(get_user_service),
    admin: User = Depends(get_current_admin),
):
    """
    Create an operator account.

    Raises:
        409 Conflict: email already registered (any case)
    """
    return users.create_user(payload)


@router.post("/import", response_model=UserImportResult)
def import_users(
    rows: List[UserImportRow],
    users: UserService = Depends(get_user_service),
    admin: User = Depends(get_current_admin),
):
    """Bulk create; duplicate emails are reported per row instead of failing."""
    result = users.import_users(rows)
    logger.info(
        f"Imported {len(result.created)} users",
        extra={"admin_id": admin.id, "errors": len(result.errors)},
    )
    return result


@router.patch("/{user_id}", response_model=User)
def update_user(
    user_id: str,
    payload: UserUpdate,
    users: UserService = Depends(get_user_service),
    admin: User = Depends(get_current_admin),
):
    return users.update_user(user_id, payload)


@router.patch("/{user_id}/status", response_model=User)
def change_user_status(
    user_id: str,
    payload: UserStatusChange,
    users: UserService = Depends(get_user_service),
    admin: User = Depends(get_current_admin),
):
    return users.change_user_status(user_id, payload.estado)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: str,
    users: UserService = Depends(get_user_service),
    admin: User = Depends(get_current_admin),
):
    """
    Delete an operator account.

    Raises:
        404 Not Found: unknown user
        409 Conflict: the user is the last admin
    """
    users.delete_user(user_id)
    return None


# ---------------------------------------------------------------------------
# SELF-SERVICE
# ---------------------------------------------------------------------------

@router.post("/{user_id}/password", status_code=status.HTTP_204_NO_CONTENT)
def change_password(
    user_id: str,
    payload: PasswordChange,
    users: UserService = Depends(get_user_service),
    current_user: User = Depends(get_current_user),
):
    _require_self_or_admin(user_id, current_user)
    try:
        users.change_password(user_id, payload)
    except InvalidCredentialsError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return None


@router.post("/{user_id}/activity", response_model=User)
def add_activity(
    user_id: str,
    payload: ActivityLogCreate,
    users: UserService = Depends(get_user_service),
    current_user: User = Depends(get_current_user),
):
    _require_self_or_admin(user_id, current_user)
    return users.add_activity_log(user_id, payload)
