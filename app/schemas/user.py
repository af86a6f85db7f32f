"""
User schemas - internal operator accounts.

The stored document also holds a bcrypt `passwordHash`; no schema here
declares it, so it never leaves the service layer.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, model_validator


UserRole = Literal["admin", "manager", "agent", "viewer"]
UserStatus = Literal["active", "inactive", "pending", "suspended"]


class UserPermission(BaseModel):
    modulo: str
    acciones: List[str]


class NotificationPreferences(BaseModel):
    email: bool = True
    push: bool = True
    sms: bool = False


class UserConfiguration(BaseModel):
    idioma: str = "es"
    timezone: str = "America/Mexico_City"
    notificaciones: NotificationPreferences = Field(default_factory=NotificationPreferences)
    tema: Literal["light", "dark"] = "light"


class UserStatistics(BaseModel):
    # Wire name keeps the historical spelling used by stored documents
    prospectos_gestionados: int = Field(0, alias="prospectosManagedos")
    cotizaciones_creadas: int = Field(0, alias="cotizacionesCreadas")
    ventas_cerradas: int = Field(0, alias="ventasCerradas")
    tasa_conversion: float = Field(0, alias="tasaConversion")
    tiempo_promedio_respuesta: float = Field(0, alias="tiempoPromedioRespuesta")

    class Config:
        populate_by_name = True


class ActivityLog(BaseModel):
    id: str
    fecha: datetime
    accion: str
    modulo: str
    detalles: str
    ip: Optional[str] = None


class User(BaseModel):
    """
    Operator account as returned by the API.

    Example response:
    {
        "id": "5f0c...",
        "nombre": "Ana",
        "apellido": "López",
        "email": "ana@innomind.mx",
        "rol": "agent",
        "estado": "active",
        ...
    }
    """
    id: str
    nombre: str
    apellido: str = ""
    email: str
    telefono: Optional[str] = None
    rol: UserRole = "agent"
    estado: UserStatus = "active"
    departamento: Optional[str] = None
    cargo: Optional[str] = None
    avatar: Optional[str] = None
    fecha_registro: datetime = Field(..., alias="fechaRegistro")
    fecha_actualizacion: Optional[datetime] = Field(None, alias="fechaActualizacion")
    ultimo_acceso: Optional[datetime] = Field(None, alias="ultimoAcceso")
    permisos: List[UserPermission] = Field(default_factory=list)
    configuracion: UserConfiguration = Field(default_factory=UserConfiguration)
    estadisticas: UserStatistics = Field(default_factory=UserStatistics)
    historial_actividad: List[ActivityLog] = Field(default_factory=list, alias="historialActividad")

    class Config:
        populate_by_name = True

    @property
    def full_name(self) -> str:
        return f"{self.nombre} {self.apellido}".strip()


class UserCreate(BaseModel):
    """
    Request body for POST /users.

    password defaults to the temporary password when omitted; permisos
    default to the role's permission set.
    """
    nombre: str
    apellido: str = ""
    email: EmailStr
    telefono: Optional[str] = None
    rol: UserRole = "agent"
    estado: UserStatus = "active"
    departamento: Optional[str] = None
    cargo: Optional[str] = None
    avatar: Optional[str] = None
    permisos: Optional[List[UserPermission]] = None
    configuracion: Optional[UserConfiguration] = None
    password: Optional[str] = Field(None, min_length=6)


class UserUpdate(BaseModel):
    nombre: Optional[str] = None
    apellido: Optional[str] = None
    email: Optional[EmailStr] = None
    telefono: Optional[str] = None
    rol: Optional[UserRole] = None
    estado: Optional[UserStatus] = None
    departamento: Optional[str] = None
    cargo: Optional[str] = None
    avatar: Optional[str] = None
    permisos: Optional[List[UserPermission]] = None
    configuracion: Optional[UserConfiguration] = None


class UserStatusChange(BaseModel):
    estado: UserStatus


class PasswordChange(BaseModel):
    current_password: str = Field(..., alias="currentPassword")
    new_password: str = Field(..., alias="newPassword", min_length=6)
    confirm_password: str = Field(..., alias="confirmPassword")

    class Config:
        populate_by_name = True

    @model_validator(mode="after")
    def check_confirmation(self) -> "PasswordChange":
        if self.new_password != self.confirm_password:
            raise ValueError("Las contraseñas no coinciden")
        return self


class ActivityLogCreate(BaseModel):
    accion: str
    modulo: str
    detalles: str = ""
    ip: Optional[str] = None


class UserImportRow(BaseModel):
    nombre: str
    apellido: str = ""
    email: EmailStr
    telefono: Optional[str] = None
    rol: UserRole = "agent"
    departamento: Optional[str] = None
    cargo: Optional[str] = None


class UserImportResult(BaseModel):
    created: List[User]
    errors: List[str]
