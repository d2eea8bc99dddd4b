"""
mdcatalog.errors

Domain exceptions raised by services and mapped to HTTP responses by the app.

Responsibilities:
- Give services a small, HTTP-agnostic vocabulary for failures.
- Carry the status code each failure maps to.
"""

from __future__ import annotations

from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
)


class CatalogError(Exception):
    """Base class for catalog failures that surface to API callers."""

    status_code: int = HTTP_400_BAD_REQUEST
    error_type: str = "catalog_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ResourceNotFound(CatalogError):
    status_code = HTTP_404_NOT_FOUND
    error_type = "not_found"


class NotAllowed(CatalogError):
    # Raised when the caller is identified but lacks the privilege for the action.
    status_code = HTTP_403_FORBIDDEN
    error_type = "forbidden"


class OperationNotAllowed(NotAllowed):
    """The caller may not grant an operation to the requested group."""

    error_type = "operation_not_allowed"


class BadParameter(CatalogError):
    error_type = "bad_parameter"


def error_payload(exc: CatalogError) -> dict[str, object]:
    return {"message": exc.message, "status": exc.status_code, "error": exc.error_type}


# --- Module Notes -----------------------------------------------------------
# Handlers for these exceptions are registered in `mdcatalog.api.app.create_app`.
