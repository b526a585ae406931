"""Error taxonomy shared by the auth gate, services and routes.

Each error carries the HTTP status it maps to. Routes and dependencies
raise these; the handler registered in main.py renders them as
``{"detail": ..., "error": ...}``.
"""

from fastapi import Request
from fastapi.responses import JSONResponse


class NewsdeskError(Exception):
    """Base class for all expected, client-visible failures."""

    status_code = 500

    def __init__(self, detail: str = ""):
        super().__init__(detail)
        self.detail = detail or self.__class__.__doc__ or "Error"


class Unauthenticated(NewsdeskError):
    """Authentication required."""

    status_code = 401


class InvalidToken(NewsdeskError):
    """Invalid or expired token."""

    status_code = 401


class Forbidden(NewsdeskError):
    """Access denied."""

    status_code = 403


class NotFound(NewsdeskError):
    """Resource not found."""

    status_code = 404


class Conflict(NewsdeskError):
    """Resource already exists."""

    status_code = 409


class ValidationFailed(NewsdeskError):
    """Invalid request."""

    status_code = 400


class StoreFailure(NewsdeskError):
    """Store failure."""

    status_code = 500


async def newsdesk_error_handler(request: Request, exc: NewsdeskError) -> JSONResponse:
    headers = None
    if exc.status_code == 401:
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error": type(exc).__name__},
        headers=headers,
    )
