"""
CivicSense API - FastAPI Application Entry Point

Citizens report municipal issues (potholes, broken lights, garbage) with an
optional photo and location, then follow them by tracking ID. Administrators
triage reports, move them through the status workflow and assign them to
field teams with limited capacity.

DESIGN PRINCIPLES:
- AI suggests a category, priority and description; staff decide
- Reporter contact details never leave the admin surface
- Works without Firebase credentials (in-memory store + seed data)
"""

import logging
import traceback
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from civicsense.config.firebase import get_database_mode, initialize_firestore
from civicsense.core.exceptions import CivicSenseError
from civicsense.core.settings import settings
from civicsense.routes import (
    admin,
    ai,
    analytics,
    auth,
    health,
    media,
    notifications,
    reports,
    teams,
    webhooks,
)
from civicsense.services.notification_service import get_notification_service
from civicsense.services.seed_service import seed_if_empty

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

MIN_JWT_SECRET_LENGTH = 16


# Initialize FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Civic issue reporting and resolution tracking for municipalities",
    debug=settings.DEBUG
)


# Global exception handler to catch ALL exceptions
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch all unhandled exceptions and log them with full traceback."""
    logger.error(
        f"🔥 Unhandled exception on {request.method} {request.url.path}\n"
        f"{traceback.format_exc()}"
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"}
    )


# Pydantic validation error handler
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Request validation failures are client errors: answer 400 instead of 422."""
    logger.warning(f"Validation error on {request.method} {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())}
    )


@app.exception_handler(CivicSenseError)
async def civicsense_exception_handler(request: Request, exc: CivicSenseError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Uploaded media is served straight from disk
Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")


# Application lifecycle events
@app.on_event("startup")
async def startup_event():
    """
    Initialize services on application startup.
    Store connection, then seed data when the store is empty.
    """
    logger.info(f"🚀 Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    if len(settings.JWT_SECRET) < MIN_JWT_SECRET_LENGTH:
        logger.warning(
            f"⚠️ JWT_SECRET is shorter than {MIN_JWT_SECRET_LENGTH} characters; "
            "set a stronger secret outside local development"
        )

    db = initialize_firestore()
    logger.info(f"🗄️ Database mode: {get_database_mode()}")

    if settings.SEED_ON_STARTUP:
        try:
            seed_if_empty(db, settings.SEED_PATH)
        except Exception as e:
            logger.warning(f"Seeding failed: {e}")


@app.on_event("shutdown")
async def shutdown_event():
    """
    Cleanup on application shutdown.
    """
    get_notification_service().process_queues()
    logger.info(f"Shutting down {settings.APP_NAME}")


# Include routers
app.include_router(health.router)
app.include_router(reports.router)
app.include_router(admin.router)
app.include_router(teams.router)
app.include_router(auth.router)
app.include_router(analytics.router)
app.include_router(media.router)
app.include_router(ai.router)
app.include_router(notifications.router)
app.include_router(webhooks.router)


# Root endpoint
@app.get("/")
async def root():
    """
    Root endpoint - API information.
    """
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "docs": "/docs",
        "health": "/health",
        "reports": "/reports",
    }
