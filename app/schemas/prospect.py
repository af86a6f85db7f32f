"""
Prospect schemas - CRM leads and their follow-up history.

Wire names stay in Spanish camelCase (fechaContacto, ultimoSeguimiento)
because that is what the frontend and existing documents use.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, get_args

from pydantic import BaseModel, Field


ProspectStatus = Literal[
    "Nuevo",
    "Contactado",
    "En seguimiento",
    "Cotizado",
    "Venta cerrada",
    "Perdido",
]
Platform = Literal["WhatsApp", "Instagram", "Facebook"]

PROSPECT_STATUSES: List[str] = list(get_args(ProspectStatus))
PLATFORMS: List[str] = list(get_args(Platform))


class FollowUp(BaseModel):
    """One follow-up note; newest first on the prospect."""
    id: str
    fecha: datetime
    nota: str
    usuario: str = "sistema"


class Prospect(BaseModel):
    id: str
    nombre: str
    telefono: str = ""
    correo: str = ""
    servicio: str = ""
    origen: str = ""
    estado: ProspectStatus = "Nuevo"
    plataforma: Platform = "WhatsApp"
    responsable: str = ""
    assigned_to: Optional[str] = Field(None, alias="assignedTo")
    fecha_contacto: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), alias="fechaContacto"
    )
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    ultimo_seguimiento: Optional[datetime] = Field(None, alias="ultimoSeguimiento")
    seguimientos: List[FollowUp] = Field(default_factory=list)
    cotizaciones: List[Dict[str, Any]] = Field(default_factory=list)
    notas_internas: Optional[str] = Field(None, alias="notasInternas")

    class Config:
        populate_by_name = True


class ProspectCreate(BaseModel):
    """
    Manual or webhook-created prospect.

    fechaContacto, seguimientos and cotizaciones are set by the service.
    """
    nombre: str
    telefono: str = ""
    correo: str = ""
    servicio: str = ""
    origen: str = ""
    estado: ProspectStatus = "Nuevo"
    plataforma: Platform = "WhatsApp"
    responsable: str = "sistema"
    notas_internas: Optional[str] = Field(None, alias="notasInternas")

    class Config:
        populate_by_name = True


class ProspectUpdate(BaseModel):
    nombre: Optional[str] = None
    telefono: Optional[str] = None
    correo: Optional[str] = None
    servicio: Optional[str] = None
    origen: Optional[str] = None
    estado: Optional[ProspectStatus] = None
    plataforma: Optional[Platform] = None
    responsable: Optional[str] = None
    assigned_to: Optional[str] = Field(None, alias="assignedTo")
    cotizaciones: Optional[List[Dict[str, Any]]] = None
    notas_internas: Optional[str] = Field(None, alias="notasInternas")

    class Config:
        populate_by_name = True


class FollowUpCreate(BaseModel):
    nota: str = Field(..., min_length=1)
    usuario: str = "sistema"


class AssignProspect(BaseModel):
    user_id: str = Field(..., alias="userId")

    class Config:
        populate_by_name = True


class ProspectStats(BaseModel):
    """
    Counts over all prospects.

    byStatus and byPlatform always contain every known value, zero when
    no prospect has it; byUser groups by assignedTo ("unassigned" when empty).
    """
    total: int
    by_status: Dict[str, int] = Field(..., alias="byStatus")
    by_platform: Dict[str, int] = Field(..., alias="byPlatform")
    by_user: Dict[str, int] = Field(..., alias="byUser")

    class Config:
        populate_by_name = True
