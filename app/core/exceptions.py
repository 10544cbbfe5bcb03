"""
Global exception handling for the application.
Every failure crossing the API boundary is rendered as a single structured
error with a numeric status code; internal details never reach the body.
"""

from typing import Any, Dict, Optional

import structlog
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = structlog.get_logger(__name__)


class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationException(AppError):
    """Invalid input error."""
    def __init__(
        self,
        message: str = "Invalid inputs passed, please check your data.",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, status.HTTP_422_UNPROCESSABLE_ENTITY, details)


class EntityNotFoundException(AppError):
    """Resource not found error."""
    def __init__(self, message: str = "Entity not found", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_404_NOT_FOUND, details)


class AuthException(AppError):
    """Authentication or authorization failure.

    Defaults to 403: the caller is known (or claims to be) but is not let through.
    """
    def __init__(
        self,
        message: str = "Authentication failed!",
        status_code: int = status.HTTP_403_FORBIDDEN,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, status_code, details)


class GeocodingException(AppError):
    """Address could not be resolved (422) or the geocoder is unavailable (502)."""
    def __init__(
        self,
        message: str = "Could not find location for the specified address.",
        status_code: int = status.HTTP_422_UNPROCESSABLE_ENTITY,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, status_code, details)


class HashingException(AppError):
    """Password hashing or verification failed internally."""
    def __init__(self, message: str = "Could not process credentials, please try again.", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR, details)


class SigningException(AppError):
    """Token could not be signed."""
    def __init__(self, message: str = "Could not issue a token, please try again later.", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR, details)


class PersistenceException(AppError):
    """A read or write against the database failed."""
    def __init__(self, message: str = "Something went wrong, please try again later.", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR, details)


def _error_body(request: Request, code: str, message: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    error = {"code": code, "message": message, "path": request.url.path}
    if details is not None:
        error["details"] = details
    return {"error": error}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, exc.__class__.__name__, exc.message, exc.details),
    )


def invalid_fields(errors, skip: int = 0) -> Dict[str, Any]:
    """Summarize pydantic errors as the sorted list of offending field names."""
    return {"fields": sorted({".".join(str(p) for p in err["loc"][skip:]) for err in errors})}


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render FastAPI body/form validation failures as ValidationException."""
    # First loc element is the source ("body", "query", ...)
    error = ValidationException(details=invalid_fields(exc.errors(), skip=1))
    return await app_error_handler(request, error)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        message = "Could not find this route."
    else:
        message = str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, "HTTPException", message),
        headers=getattr(exc, "headers", None),
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all uncaught exceptions globally."""

    if isinstance(exc, AppError):
        return await app_error_handler(request, exc)

    logger.exception("Unexpected error occurred", path=request.url.path)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(
            request,
            "InternalServerError",
            "An unknown error occurred!",
        ),
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers on the application."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)
