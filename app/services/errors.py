"""
Domain errors raised by the CRUD services.

Routers translate them to HTTP responses (see app.main). Anything else a
service raises comes from the document store and propagates unchanged.
"""


class DomainError(Exception):
    """Base class for precondition violations in the domain services."""
    pass


class NotFoundError(DomainError):
    """The addressed record does not exist."""

    def __init__(self, message: str, resource: str = "", resource_id: str = ""):
        super().__init__(message)
        self.resource = resource
        self.resource_id = resource_id


class DuplicateEmailError(DomainError):
    """Another user already has this email (compared case-insensitively)."""

    def __init__(self, email: str):
        super().__init__("Ya existe un usuario con este correo electrónico")
        self.email = email


class LastAdminError(DomainError):
    """The only remaining admin cannot be deleted."""

    def __init__(self):
        super().__init__("No se puede eliminar el último administrador del sistema")


class InvalidCredentialsError(DomainError):
    """Email/password pair did not match, or the current password was wrong."""
    pass
