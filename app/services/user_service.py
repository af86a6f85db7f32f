"""
User Service - operator accounts, roles, permissions and activity history.

Rules enforced here:
- emails are unique, compared case-insensitively (DuplicateEmailError)
- the last remaining admin cannot be deleted (LastAdminError)
- password hashes stay inside the stored document (passwordHash)

Every state change of interest appends to historialActividad, newest first.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from app.core.security import hash_password, verify_password
from app.repositories.document_store import DocumentStore
from app.schemas.user import (
    ActivityLog,
    ActivityLogCreate,
    PasswordChange,
    User,
    UserConfiguration,
    UserCreate,
    UserImportResult,
    UserImportRow,
    UserPermission,
    UserStatistics,
    UserUpdate,
)
from app.services.errors import (
    DuplicateEmailError,
    InvalidCredentialsError,
    LastAdminError,
    NotFoundError,
)


logger = logging.getLogger("innomind.services.users")


USER_NOT_FOUND = "Usuario no encontrado"
TEMPORARY_PASSWORD = "temp123"
PASSWORD_FIELD = "passwordHash"


def _perm(modulo: str, *acciones: str) -> UserPermission:
    return UserPermission(modulo=modulo, acciones=list(acciones))


ROLE_PERMISSIONS: Dict[str, List[UserPermission]] = {
    "admin": [
        _perm("prospects", "view", "create", "edit", "delete"),
        _perm("quotes", "view", "create", "edit", "delete", "approve"),
        _perm("products", "view", "create", "edit", "delete"),
        _perm("users", "view", "create", "edit", "delete", "invite"),
        _perm("reports", "view", "export"),
        _perm("settings", "view", "edit"),
    ],
    "manager": [
        _perm("prospects", "view", "create", "edit", "delete"),
        _perm("quotes", "view", "create", "edit", "approve"),
        _perm("products", "view", "create", "edit"),
        _perm("users", "view", "invite"),
        _perm("reports", "view", "export"),
        _perm("settings", "view"),
    ],
    "agent": [
        _perm("prospects", "view", "create", "edit"),
        _perm("quotes", "view", "create", "edit"),
        _perm("products", "view"),
        _perm("reports", "view"),
    ],
    "viewer": [
        _perm("prospects", "view"),
        _perm("quotes", "view"),
        _perm("products", "view"),
        _perm("reports", "view"),
    ],
}


def default_permissions(role: str) -> List[UserPermission]:
    """Permission set for a role; unknown roles get viewer permissions."""
    permissions = ROLE_PERMISSIONS.get(role, ROLE_PERMISSIONS["viewer"])
    return [permission.model_copy(deep=True) for permission in permissions]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _activity(accion: str, modulo: str, detalles: str, ip: Optional[str] = None) -> ActivityLog:
    return ActivityLog(
        id=uuid.uuid4().hex,
        fecha=_now(),
        accion=accion,
        modulo=modulo,
        detalles=detalles,
        ip=ip,
    )


class UserService:
    """Operator account management over the "users" collection."""

    COLLECTION = "users"

    def __init__(self, store: DocumentStore):
        self._store = store

    # -------------------------------------------------------------------------
    # PERSISTENCE HELPERS
    # -------------------------------------------------------------------------

    def _load(self, doc_id: str, data: dict) -> User:
        return User.model_validate({**data, "id": doc_id})

    def _require_data(self, user_id: str) -> dict:
        data = self._store.get(self.COLLECTION, user_id)
        if data is None:
            raise NotFoundError(USER_NOT_FOUND, "user", user_id)
        return data

    def _save(self, user: User, password_hash: Optional[str] = None) -> User:
        data = user.model_dump(mode="json", by_alias=True, exclude={"id"})
        if password_hash is None:
            existing = self._store.get(self.COLLECTION, user.id) or {}
            password_hash = existing.get(PASSWORD_FIELD)
        data[PASSWORD_FIELD] = password_hash
        self._store.set(self.COLLECTION, user.id, data)
        return user

    def _email_taken(self, email: str, exclude_id: Optional[str] = None) -> bool:
        wanted = email.lower()
        return any(
            doc.id != exclude_id and str(doc.data.get("email", "")).lower() == wanted
            for doc in self._store.list(self.COLLECTION)
        )

    # -------------------------------------------------------------------------
    # QUERIES
    # -------------------------------------------------------------------------

    def get_all_users(self) -> List[User]:
        return [self._load(doc.id, doc.data) for doc in self._store.list(self.COLLECTION)]

    def get_user_by_id(self, user_id: str) -> User:
        return self._load(user_id, self._require_data(user_id))

    def get_user_by_email(self, email: str) -> Optional[User]:
        wanted = email.lower()
        for doc in self._store.list(self.COLLECTION):
            if str(doc.data.get("email", "")).lower() == wanted:
                return self._load(doc.id, doc.data)
        return None

    # -------------------------------------------------------------------------
    # MUTATIONS
    # -------------------------------------------------------------------------

    def create_user(self, payload: UserCreate) -> User:
        """
        Raises:
            DuplicateEmailError: the email is already used (any case)
        """
        if self._email_taken(payload.email):
            raise DuplicateEmailError(payload.email)

        user = User(
            id=uuid.uuid4().hex,
            nombre=payload.nombre,
            apellido=payload.apellido,
            email=payload.email,
            telefono=payload.telefono,
            rol=payload.rol,
            estado=payload.estado,
            departamento=payload.departamento,
            cargo=payload.cargo,
            avatar=payload.avatar,
            fecha_registro=_now(),
            permisos=payload.permisos if payload.permisos is not None else default_permissions(payload.rol),
            configuracion=payload.configuracion or UserConfiguration(),
            estadisticas=UserStatistics(),
            historial_actividad=[
                _activity("Usuario creado", "users", "Usuario creado en el sistema"),
            ],
        )
        self._save(user, password_hash=hash_password(payload.password or TEMPORARY_PASSWORD))

        logger.info(f"Created user {user.id}", extra={"user_id": user.id, "rol": user.rol})
        return user

    def update_user(self, user_id: str, changes: UserUpdate) -> User:
        """
        Raises:
            NotFoundError: unknown user
            DuplicateEmailError: the new email belongs to another user
        """
        current = self.get_user_by_id(user_id)
        updates = changes.model_dump(mode="json", by_alias=True, exclude_unset=True)

        new_email = updates.get("email")
        if new_email and new_email != current.email and self._email_taken(new_email, exclude_id=user_id):
            raise DuplicateEmailError(new_email)

        user = User.model_validate({
            **current.model_dump(mode="json", by_alias=True),
            **updates,
            "fechaActualizacion": _now().isoformat(),
        })
        return self._save(user)

    def delete_user(self, user_id: str) -> None:
        """
        Raises:
            NotFoundError: unknown user
            LastAdminError: user is the only admin left
        """
        user = self.get_user_by_id(user_id)
        if user.rol == "admin":
            other_admins = [u for u in self.get_all_users() if u.rol == "admin" and u.id != user_id]
            if not other_admins:
                logger.warning(f"Refused to delete last admin {user_id}")
                raise LastAdminError()

        self._store.delete(self.COLLECTION, user_id)
        logger.info(f"Deleted user {user_id}", extra={"user_id": user_id})

    def change_user_status(self, user_id: str, estado: str) -> User:
        self.update_user(user_id, UserUpdate(estado=estado))
        return self.add_activity_log(user_id, ActivityLogCreate(
            accion=f"Estado cambiado a {estado}",
            modulo="users",
            detalles=f"El estado del usuario fue cambiado a {estado}",
        ))

    def change_password(self, user_id: str, request: PasswordChange) -> None:
        """
        Raises:
            NotFoundError: unknown user
            InvalidCredentialsError: current password does not match
        """
        data = self._require_data(user_id)
        if not verify_password(request.current_password, data.get(PASSWORD_FIELD)):
            raise InvalidCredentialsError("La contraseña actual es incorrecta")

        user = self._load(user_id, data)
        user.historial_actividad.insert(
            0, _activity("Contraseña cambiada", "security", "El usuario cambió su contraseña")
        )
        self._save(user, password_hash=hash_password(request.new_password))

    def add_activity_log(self, user_id: str, entry: ActivityLogCreate) -> User:
        user = self.get_user_by_id(user_id)
        user.historial_actividad.insert(
            0, _activity(entry.accion, entry.modulo, entry.detalles, entry.ip)
        )
        return self._save(user)

    def update_last_access(self, user_id: str) -> None:
        user = self.get_user_by_id(user_id)
        user.ultimo_acceso = _now()
        self._save(user)

    def import_users(self, rows: List[UserImportRow]) -> UserImportResult:
        """
        Create users in bulk; they start as pending with their role's permissions.

        Duplicate emails are skipped and reported, not raised.
        """
        created: List[User] = []
        errors: List[str] = []

        for row in rows:
            try:
                user = self.create_user(UserCreate(
                    **row.model_dump(),
                    estado="pending",
                    permisos=default_permissions(row.rol),
                    configuracion=UserConfiguration(),
                ))
            except DuplicateEmailError:
                errors.append(f"Email duplicado: {row.email}")
                continue
            created.append(user)

        if errors:
            logger.warning(f"User import finished with {len(errors)} errors", extra={"errors": errors})

        return UserImportResult(created=created, errors=errors)

    # -------------------------------------------------------------------------
    # AUTHENTICATION
    # -------------------------------------------------------------------------

    def authenticate(self, email: str, password: str) -> User:
        """
        Raises:
            InvalidCredentialsError: unknown email or wrong password
        """
        user = self.get_user_by_email(email)
        if user is None:
            raise InvalidCredentialsError("Invalid email or password")

        data = self._require_data(user.id)
        if not verify_password(password, data.get(PASSWORD_FIELD)):
            raise InvalidCredentialsError("Invalid email or password")
        return user

    def ensure_default_admin(self, email: str, password: str) -> Optional[User]:
        """Create the first admin when no user exists yet."""
        if self._store.list(self.COLLECTION):
            return None

        admin = self.create_user(UserCreate(
            nombre="Administrador",
            apellido="Sistema",
            email=email,
            rol="admin",
            estado="active",
            password=password,
        ))
        logger.info(f"Seeded default admin {admin.email}")
        return admin
