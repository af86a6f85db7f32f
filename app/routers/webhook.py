"""
Webhook Router - inbound leads from external forms.

- GET  /webhook → liveness probe for the form provider
- POST /webhook → create a prospect (Nuevo / WhatsApp / sistema)

When WEBHOOK_SECRET is configured the caller must send
`Authorization: Bearer <secret>`; without it the endpoint is open.
"""

import hmac
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status
from fastapi.responses import JSONResponse

from app.core.config import Settings
from app.deps import get_app_settings, get_prospect_service
from app.schemas.webhook import WebhookLead, WebhookResponse
from app.services.prospect_service import ProspectService


logger = logging.getLogger("innomind.routers.webhook")


# ---------------------------------------------------------------------------
# ROUTER SETUP
# ---------------------------------------------------------------------------
router = APIRouter(prefix="/webhook", tags=["webhook"])


def verify_webhook_secret(
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_app_settings),
) -> None:
    """401 unless the bearer token matches WEBHOOK_SECRET (when one is set)."""
    secret = settings.WEBHOOK_SECRET
    if not secret:
        return

    # Constant-time comparison
    if not authorization or not hmac.compare_digest(authorization, f"Bearer {secret}"):
        logger.warning("Unauthorized webhook call")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )


@router.get("")
async def webhook_health():
    return {"status": "Webhook endpoint is alive"}


@router.post(
    "",
    response_model=WebhookResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(verify_webhook_secret)],
)
def receive_lead(
    lead: WebhookLead,
    prospects: ProspectService = Depends(get_prospect_service),
):
    """
    Create a prospect from a lead.

    Returns:
        201 {success: true, prospect}
        500 {success: false, message} when the prospect cannot be stored
    """
    logger.info("Webhook lead received", extra={"source": lead.source})

    try:
        prospect = prospects.create_prospect(lead.to_prospect())
    except Exception as e:
        # Store failures are reported in the webhook envelope
        logger.error(f"Webhook processing error: {e}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "message": str(e)},
        )

    logger.info(f"Prospect created with ID: {prospect.id}")
    return WebhookResponse(success=True, prospect=prospect)
