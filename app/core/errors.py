"""
Error Taxonomy and Exception Handlers

Every error that reaches a client leaves as JSON shaped
``{"message": str, "errors": [str, ...]?}``.

    - AppError subclasses are raised by routes and services
    - Request validation failures become 400 "Validation Error"
    - Unique-constraint violations become 400 "Duplicate field value entered"
    - Anything else becomes a 500 with a generic message
      (exception text and stack only when details are exposed)

Usage:
    from app.core.errors import NotFoundError

    if order is None:
        raise NotFoundError("Order not found")
"""

import logging
import traceback
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


# =============================================================================
# EXCEPTIONS
# =============================================================================

class AppError(Exception):
    """Base class for errors that map onto a structured HTTP response."""

    status_code: int = 500
    default_message: str = "Internal Server Error"

    def __init__(
        self,
        message: Optional[str] = None,
        errors: Optional[list[str]] = None,
    ):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body: dict = {"message": self.message}
        if self.errors is not None:
            body["errors"] = self.errors
        return body


class NotFoundError(AppError):
    """A requested resource does not exist."""
    status_code = 404
    default_message = "Resource not found"


class ValidationError(AppError):
    """Malformed or out-of-range input, reported per field."""
    status_code = 400
    default_message = "Validation Error"

    def __init__(self, errors: list[str], message: Optional[str] = None):
        super().__init__(message, errors)


class ConflictError(AppError):
    """
    A unique field already holds the submitted value.

    Answered with 400 rather than 409 to stay wire-compatible with the
    existing frontend.
    """
    status_code = 400
    default_message = "Duplicate field value entered"

    def __init__(self, fields: list[str]):
        self.fields = fields
        super().__init__(errors=[f"{field} already exists" for field in fields])


class UnauthorizedError(AppError):
    status_code = 401
    default_message = "Invalid token"


class TokenExpiredError(UnauthorizedError):
    default_message = "Token expired"


# =============================================================================
# HELPERS
# =============================================================================

def apply_cors_headers(
    request: Request,
    response: JSONResponse,
    allowed_origins: list[str],
) -> JSONResponse:
    """
    Stamp CORS headers onto a response built outside the CORS middleware.

    Unhandled exceptions are answered by Starlette's outermost error
    middleware, so the browser would otherwise see an opaque network error.
    """
    origin = request.headers.get("origin")
    if origin and origin in allowed_origins:
        response.headers["Access-Control-Allow-Origin"] = origin
    elif allowed_origins:
        response.headers["Access-Control-Allow-Origin"] = allowed_origins[0]
    response.headers["Access-Control-Allow-Credentials"] = "true"
    response.headers["Vary"] = "Origin"
    return response


def format_validation_error(error: dict) -> str:
    """Render one pydantic error as ``"<field path>: <message>"``."""
    location = [
        str(part) for part in error.get("loc", ())
        if part not in ("body", "query", "path")
    ]
    message = error.get("msg", "Invalid value")
    if error.get("type") == "value_error" and "error" in error.get("ctx", {}):
        message = str(error["ctx"]["error"])
    field = ".".join(location)
    return f"{field}: {message}" if field else message


def _log_handled(request: Request, status_code: int, name: str, message: str) -> None:
    client = request.client.host if request.client else "unknown"
    logger.warning(
        f"{request.method} {request.url.path} from {client} "
        f"-> {status_code} {name}: {message}"
    )


# =============================================================================
# REGISTRATION
# =============================================================================

def register_exception_handlers(
    app: FastAPI,
    allowed_origins: list[str],
    expose_details: bool = False,
) -> None:
    """
    Attach all exception handlers to the application.

    Args:
        app: FastAPI application
        allowed_origins: CORS origins, as computed once by the settings
        expose_details: Put exception text and stack into 500 bodies
    """

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        _log_handled(request, exc.status_code, type(exc).__name__, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = [format_validation_error(e) for e in exc.errors()]
        _log_handled(request, 400, "ValidationError", "; ".join(errors))
        return JSONResponse(
            status_code=400,
            content={"message": "Validation Error", "errors": errors},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        message = "Route not found" if exc.status_code == 404 else str(exc.detail)
        _log_handled(request, exc.status_code, "HTTPException", message)
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": message},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(
        request: Request, exc: IntegrityError
    ) -> JSONResponse:
        _log_handled(request, 400, "IntegrityError", str(exc.orig))
        return JSONResponse(
            status_code=400,
            content={"message": ConflictError.default_message},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all exception handler."""
        logger.exception(f"Unhandled exception on {request.method} {request.url.path}: {exc}")

        content: dict = {"message": "Internal Server Error"}
        if expose_details:
            content["detail"] = str(exc)
            content["stack"] = "".join(
                traceback.format_exception(type(exc), exc, exc.__traceback__)
            )

        response = JSONResponse(status_code=500, content=content)
        return apply_cors_headers(request, response, allowed_origins)
