"""
API error taxonomy and the exception handlers that turn any failure into a
uniform JSON error body.

Every error response has the shape::

    {"success": false, "statusCode": 400, "message": "...", "errors": [...]}

and, only in development, a ``stack`` field with the formatted traceback.
"""
import logging
import traceback
from typing import Any, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import DataError, IntegrityError
from starlette.exceptions import HTTPException

from app.core.config import Settings

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Base class for errors that map directly onto an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Something went wrong"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[Any]] = None):
        self.message = message or self.default_message
        self.errors = list(errors or [])
        super().__init__(self.message)


class BadRequestError(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Bad request"


class UnauthorizedError(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized request"


class NotFoundError(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class ConflictError(ApiError):
    # Duplicate identities are reported as plain bad requests.
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "User already exists"


class InternalError(ApiError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"


def _format_stack(exc: BaseException) -> str:
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))


def build_error_response(
    status_code: int,
    message: str,
    errors: Optional[List[Any]],
    exc: BaseException,
    settings: Settings,
) -> JSONResponse:
    content = {
        "success": False,
        "statusCode": status_code,
        "message": message,
        "errors": errors or [],
    }
    if settings.is_development:
        content["stack"] = _format_stack(exc)
    return JSONResponse(status_code=status_code, content=content)


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """Install handlers mapping every exception type onto the error body."""

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}", exc_info=exc)
        return build_error_response(exc.status_code, exc.message, exc.errors, exc, settings)

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        logger.warning(f"Rate limit exceeded on {request.url.path}: {exc.detail}")
        return build_error_response(
            status.HTTP_429_TOO_MANY_REQUESTS, f"Rate limit exceeded: {exc.detail}", [], exc, settings
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return build_error_response(exc.status_code, str(exc.detail), [], exc, settings)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"field": ".".join(str(part) for part in err.get("loc", ())), "message": err.get("msg")}
            for err in exc.errors()
        ]
        return build_error_response(
            status.HTTP_400_BAD_REQUEST, "Validation failed", errors, exc, settings
        )

    @app.exception_handler(IntegrityError)
    @app.exception_handler(DataError)
    async def database_error_handler(request: Request, exc: Exception):
        logger.warning(f"Database rejected write on {request.url.path}: {exc}")
        return build_error_response(
            status.HTTP_400_BAD_REQUEST, "Invalid data for this operation", [], exc, settings
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.error(f"Uncaught exception: {str(exc)}", exc_info=True)
        message = "Internal server error"
        if settings.is_development and str(exc):
            message = str(exc)
        return build_error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, message, [], exc, settings
        )
