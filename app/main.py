"""
Main application entry point - FastAPI app instance and configuration.
Run with: uvicorn app.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from app.core.config import settings
from app.core.logging import configure_logging
from app.environments.base import (
    APIError,
    AuthRefreshError,
    NoRefreshTokenError,
    NotAuthenticatedError,
)
from app.routers import auth, calendar, calendar_auth, finance, prospects, users, webhook
from app.services.container import ServiceContainer
from app.services.errors import DuplicateEmailError, LastAdminError, NotFoundError


logger = logging.getLogger("innomind.main")


# ---------------------------------------------------------------------------
# EXCEPTION HANDLERS
# ---------------------------------------------------------------------------
# Domain and Google errors raised by services are translated here so
# routers can call services without wrapping every call.

def _error_handler(status_code: int, log_level: int = logging.INFO):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        logger.log(
            log_level,
            f"{request.method} {request.url.path} -> {status_code}: {exc}",
            extra={"error_type": type(exc).__name__},
        )
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})
    return handler


async def _validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    # Partial update merged into a stored document that no longer validates
    logger.info(
        f"{request.method} {request.url.path} -> 422: {exc.error_count()} validation error(s)",
        extra={"error_type": type(exc).__name__},
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": exc.errors(include_url=False, include_context=False, include_input=False)},
    )


EXCEPTION_STATUS = [
    (NotFoundError, status.HTTP_404_NOT_FOUND, logging.INFO),
    (DuplicateEmailError, status.HTTP_409_CONFLICT, logging.INFO),
    (LastAdminError, status.HTTP_409_CONFLICT, logging.WARNING),
    # Google not connected, or the connection can no longer be refreshed
    (NotAuthenticatedError, status.HTTP_401_UNAUTHORIZED, logging.INFO),
    (NoRefreshTokenError, status.HTTP_401_UNAUTHORIZED, logging.WARNING),
    (AuthRefreshError, status.HTTP_401_UNAUTHORIZED, logging.WARNING),
    # Upstream Google failure (CalendarFetchError is an APIError)
    (APIError, status.HTTP_500_INTERNAL_SERVER_ERROR, logging.ERROR),
]


# ---------------------------------------------------------------------------
# APPLICATION FACTORY
# ---------------------------------------------------------------------------

def create_app(services: Optional[ServiceContainer] = None) -> FastAPI:
    """
    Build the ASGI application.

    Args:
        services: pre-built container (tests). When omitted the lifespan
                  validates the environment and builds the production one.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.LOG_LEVEL)

        if services is None:
            # Fail fast, naming every missing variable
            settings.validate_required()
            insecure = settings.insecure_defaults()
            if insecure and not settings.DEBUG:
                logger.warning(
                    f"Development defaults in use outside DEBUG: {', '.join(insecure)}",
                    extra={"variables": insecure},
                )
            container = ServiceContainer.from_settings(settings)
        else:
            container = services

        container.seed()
        app.state.services = container
        logger.info(f"{settings.APP_NAME} started")

        try:
            yield
        finally:
            await container.aclose()

    app = FastAPI(
        title=settings.APP_NAME,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # -----------------------------------------------------------------------
    # CORS MIDDLEWARE
    # -----------------------------------------------------------------------
    # The SPA is served from another origin (FRONTEND_URL)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    for exc_class, status_code, log_level in EXCEPTION_STATUS:
        app.add_exception_handler(exc_class, _error_handler(status_code, log_level))
    app.add_exception_handler(ValidationError, _validation_error_handler)

    # -----------------------------------------------------------------------
    # REGISTER ROUTERS
    # -----------------------------------------------------------------------
    # auth.router: /auth/login, /auth/me
    # users.router: /users CRUD, import, status, password, activity
    # prospects.router: /prospects CRUD, assignment, follow-ups, stats
    # finance.router: /finance transactions, invoices, budgets, reports
    # calendar_auth.router: /calendar/auth Google OAuth flow
    # calendar.router: /calendar Google events, sync, Event Store
    # webhook.router: /webhook inbound leads
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(prospects.router)
    app.include_router(finance.router)
    app.include_router(calendar_auth.router)
    app.include_router(calendar.router)
    app.include_router(webhook.router)

    @app.get("/health", tags=["health"])
    def health_check():
        """
        Liveness probe.

        Does NOT check database connectivity.

        Returns:
            {"status": "ok"}
        """
        return {"status": "ok"}

    return app


app = create_app()
