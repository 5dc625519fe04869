"""
Central error handling for the IT asset tracker
"""
import logging
import traceback

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi import HTTPException
from sqlalchemy.exc import OperationalError

from itam.core.exceptions import AssetTrackerError

logger = logging.getLogger(__name__)


def _error_body(request: Request, status_code: int, kind: str, detail, **extra) -> dict:
    body = {
        "error": True,
        "status_code": status_code,
        "kind": kind,
        "detail": detail,
        "path": str(request.url.path),
    }
    body.update(extra)
    return body


async def asset_tracker_exception_handler(request: Request, exc: AssetTrackerError) -> JSONResponse:
    """
    Handle domain errors raised by the services

    The ``kind`` field is the machine-checkable error name, ``detail`` the
    human-readable reason shown to the user.
    """
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", exc.kind, request.url.path, exc.message)
    else:
        logger.warning("%s on %s: %s", exc.kind, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, exc.status_code, exc.kind, exc.message),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """
    Handle HTTPException with consistent JSON response format

    Args:
        request: FastAPI request object
        exc: HTTPException instance

    Returns:
        JSONResponse with error details
    """
    kind = {
        status.HTTP_401_UNAUTHORIZED: "Unauthorized",
        status.HTTP_403_FORBIDDEN: "Forbidden",
        status.HTTP_404_NOT_FOUND: "NotFound",
    }.get(exc.status_code, "HTTPError")
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, exc.status_code, kind, exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle RequestValidationError with consistent JSON response format

    Does not leak internal validation details in production.
    """
    from itam.core.config import settings

    if settings.APP_ENV == "prod":
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=_error_body(
                request, 422, "ValidationFailed", "Validation error: Invalid request data"
            ),
        )

    # Sanitize for JSON: e.g. ctx.error ValueError -> str
    errors = []
    for e in exc.errors():
        err = dict(e)
        if "ctx" in err and isinstance(err["ctx"], dict):
            err["ctx"] = {
                k: (str(v) if not isinstance(v, (str, int, float, bool, type(None))) else v)
                for k, v in err["ctx"].items()
            }
        errors.append(err)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_body(request, 422, "ValidationFailed", "Validation error", errors=errors),
    )


async def operational_error_handler(request: Request, exc: OperationalError) -> JSONResponse:
    """Data store unreachable or schema missing; surfaced generically, never retried."""
    logger.error("Database operational error on %s: %s", request.url.path, exc)
    msg = str(exc).lower()
    detail = "Data store unavailable, please retry"
    if "no such table" in msg:
        detail = "Database schema missing. Run alembic upgrade head"
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=_error_body(request, 503, "Infrastructure", detail),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions with consistent JSON response format

    Does not leak internal error details in production.
    """
    from itam.core.config import settings

    logger.error("Unhandled exception: %s", exc, exc_info=True)

    if settings.APP_ENV == "prod":
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body(request, 500, "InternalError", "Internal server error"),
        )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(
            request,
            500,
            "InternalError",
            str(exc),
            traceback=traceback.format_exc() if settings.APP_ENV == "local" else None,
        ),
    )
