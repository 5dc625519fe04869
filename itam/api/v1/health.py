"""
Health, readiness and version endpoints
"""
import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from itam.core.config import settings
from itam.core.deps import get_db

router = APIRouter()
logger = logging.getLogger(__name__)

SERVICE_NAME = "itam-backend"


@router.get("/health")
async def health_check():
    """Liveness probe; does not touch the database."""
    return {"status": "ok", "service": SERVICE_NAME}


@router.get("/health/ready")
def readiness_check(db: Session = Depends(get_db)):
    """
    Readiness probe

    Returns 503 while the database cannot answer a trivial query.
    """
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("Readiness check failed: %s", e)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unavailable", "service": SERVICE_NAME, "database": "unreachable"},
        )
    return {"status": "ok", "service": SERVICE_NAME, "database": "ok"}


@router.get("/version")
async def get_version():
    return {
        "service": SERVICE_NAME,
        "version": settings.VERSION or "1.0.0",
        "env": settings.APP_ENV,
    }
