"""
Calendar Auth Router - Google OAuth 2.0 endpoints.

The CRM holds a single Google connection shared by the whole office, so
these endpoints are public like the original serverless handlers.

Endpoints:
==========
- GET  /calendar/auth           → Redirect to Google's consent screen
- GET  /calendar/auth/callback  → Exchange the code, store the credential
- GET  /calendar/auth/status    → {connected}
- GET  /calendar/auth/url       → {url}
- POST /calendar/auth/logout    → Delete the stored credential

OAuth Flow:
===========
1. Operator clicks "Connect Google Calendar"
2. Frontend opens /calendar/auth (or fetches /calendar/auth/url)
3. Google asks for consent (offline access, consent forced every time so a
   refresh token is always issued)
4. Google redirects to /calendar/auth/callback with ?code=
5. The code is exchanged and the credential persisted
6. The operator gets a small HTML page linking back to the app
"""

import logging
from html import escape
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse

from app.core.config import Settings
from app.deps import get_app_settings, get_token_service
from app.environments.base import AuthExchangeError
from app.services.google_token_service import GoogleTokenService


logger = logging.getLogger("innomind.routers.calendar_auth")


# ---------------------------------------------------------------------------
# ROUTER SETUP
# ---------------------------------------------------------------------------
router = APIRouter(prefix="/calendar/auth", tags=["calendar-auth"])


SUCCESS_PAGE = """
<html>
  <body style="font-family: sans-serif; text-align: center; margin-top: 3rem;">
    <h2>Autenticación completada</h2>
    <p>Haz clic para <a href="{frontend_url}">volver a la app</a></p>
  </body>
</html>
"""


# ---------------------------------------------------------------------------
# ENDPOINTS
# ---------------------------------------------------------------------------

@router.get("")
async def google_login(tokens: GoogleTokenService = Depends(get_token_service)):
    """Redirect the browser to Google's OAuth consent screen."""
    logger.info("Initiating Google OAuth")
    return RedirectResponse(url=tokens.build_authorization_url())


@router.get("/url")
async def google_login_url(tokens: GoogleTokenService = Depends(get_token_service)):
    """Consent URL for frontends that open the popup themselves."""
    return {"url": tokens.build_authorization_url()}


@router.get("/callback")
async def google_callback(
    code: Optional[str] = Query(None, description="Authorization code from Google"),
    error: Optional[str] = Query(None, description="Error from Google"),
    tokens: GoogleTokenService = Depends(get_token_service),
    settings: Settings = Depends(get_app_settings),
):
    """
    Handle Google's redirect after consent.

    Returns:
        200 HTML confirmation page on success
        400 plain text when Google reports an error or no code is present
        500 plain text when the code exchange fails
    """
    if error:
        logger.warning(f"Google OAuth error: {error}")
        return PlainTextResponse(f"OAuth Error: {error}", status_code=400)

    if not code:
        logger.warning("Missing code in OAuth callback")
        return PlainTextResponse("No se recibió el code de Google", status_code=400)

    try:
        await tokens.exchange_code(code)
    except AuthExchangeError as e:
        logger.error(f"Failed to exchange code for tokens: {e}")
        return PlainTextResponse(
            "Error al intercambiar el código con Google",
            status_code=500,
        )

    return HTMLResponse(SUCCESS_PAGE.format(frontend_url=escape(settings.FRONTEND_URL, quote=True)))


@router.get("/status")
async def google_connection_status(tokens: GoogleTokenService = Depends(get_token_service)):
    """
    Whether a Google credential is stored.

    Never fails: store errors are logged and reported as not connected.
    Non-GET methods get 405 from the router.
    """
    return {"connected": tokens.is_connected()}


@router.post("/logout")
async def disconnect_google(tokens: GoogleTokenService = Depends(get_token_service)):
    """Delete the stored credential; later calendar calls return 401."""
    tokens.disconnect()
    return {"success": True}
