"""
IT Asset Tracker - Main Application Entry Point
"""
import logging
from urllib.parse import urlparse, urlunparse

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import OperationalError

from itam.api.router import api_router
from itam.core.config import settings
from itam.core.errors import (
    asset_tracker_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    operational_error_handler,
    generic_exception_handler,
)
from itam.core.exceptions import AssetTrackerError
from itam.core.logging import log_requests, setup_logging
from itam.db.session import SessionLocal
from itam.services.user_service import bootstrap_initial_admin

# Setup logging first
setup_logging()
logger = logging.getLogger(__name__)


def _mask_database_url(url: str) -> str:
    """Mask password in DATABASE_URL for safe logging; show full path for sqlite."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return "***"
    if parsed.scheme.startswith("sqlite"):
        return url
    if parsed.password:
        netloc = f"{parsed.username}:****@{parsed.hostname or ''}"
        if parsed.port:
            netloc += f":{parsed.port}"
        return urlunparse(parsed._replace(netloc=netloc))
    return url


# Create FastAPI app
app = FastAPI(
    title="IT Asset Tracker",
    description="Employees, hardware assets, assignments, maintenance, locations and audit trail",
    version=settings.VERSION or "1.0.0"
)

# Configure CORS - must be before other middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins_list(),
    allow_credentials=settings.ALLOWED_ORIGINS != "*",
    allow_methods=["*"],
    allow_headers=["*"],
)
app.middleware("http")(log_requests)

# Register exception handlers
app.add_exception_handler(AssetTrackerError, asset_tracker_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(OperationalError, operational_error_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# Include all API routes under /api/v1
app.include_router(api_router, prefix="/api/v1")


@app.on_event("startup")
def startup_log_config() -> None:
    """Log DATABASE_URL at startup so it can be verified against Alembic."""
    logger.info("DATABASE_URL (app): %s", _mask_database_url(settings.DATABASE_URL))


@app.on_event("startup")
def bootstrap_admin() -> None:
    """
    Create the bootstrap admin account when user_roles holds no admin.
    """
    db = SessionLocal()
    try:
        bootstrap_initial_admin(db)
    except OperationalError as e:
        # Tables might not exist yet (migrations not applied)
        if "no such table" in str(e).lower() or "does not exist" in str(e).lower():
            logger.warning("Database tables not ready yet, skipping initial bootstrap")
        else:
            logger.error("Database error during admin bootstrap: %s", e)
    except AssetTrackerError as e:
        logger.error("Initial admin bootstrap failed: %s", e.message)
    finally:
        db.close()
