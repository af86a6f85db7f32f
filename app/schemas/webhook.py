"""
Webhook schemas - inbound leads from the marketing form provider.
"""

from pydantic import BaseModel, Field

from app.schemas.prospect import Prospect, ProspectCreate


class WebhookLead(BaseModel):
    """
    Lead payload posted by external forms.

    Example request body:
    {
        "firstName": "Ana",
        "lastName": "Lopez",
        "phone": "+521234567890",
        "email": "ana@x.com",
        "service": "Web",
        "source": "ads"
    }
    """
    first_name: str = Field(..., alias="firstName", min_length=1)
    last_name: str = Field("", alias="lastName")
    phone: str = ""
    email: str = ""
    service: str = ""
    source: str = ""

    class Config:
        populate_by_name = True

    def to_prospect(self) -> ProspectCreate:
        """Webhook leads always start as Nuevo / WhatsApp / sistema."""
        return ProspectCreate(
            nombre=f"{self.first_name} {self.last_name}".strip(),
            telefono=self.phone,
            correo=self.email,
            servicio=self.service,
            origen=self.source,
            estado="Nuevo",
            plataforma="WhatsApp",
            responsable="sistema",
            notas_internas=f"Entró vía webhook ({self.source or 'desconocido'})",
        )


class WebhookResponse(BaseModel):
    success: bool
    prospect: Prospect
