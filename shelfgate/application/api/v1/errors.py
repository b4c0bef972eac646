"""Centralized error transformation for API routes.

Maps shelfgate errors (domain and infrastructure) to HTTPException responses.
"""

from typing import Any

from fastapi import HTTPException

from shelfgate.domain.shared.error import (
    AuthenticationError,
    AuthorizationError,
    DomainError,
    InfrastructureError,
    NotFoundError,
    ShelfgateError,
    ValidationError,
)

DOMAIN_ERROR_STATUS_MAP: dict[type[DomainError], int] = {
    NotFoundError: 404,
    ValidationError: 422,
    AuthenticationError: 401,
    AuthorizationError: 403,
}


def map_shelfgate_error(error: ShelfgateError) -> HTTPException:
    """Map a shelfgate error to an HTTPException.

    Args:
        error: The shelfgate error to map.

    Returns:
        HTTPException with appropriate status code and detail.
    """
    detail: dict[str, Any] = {
        "code": error.code,
        "message": error.message,
    }

    if isinstance(error, InfrastructureError):
        # Infrastructure errors → 503 Service Unavailable
        return HTTPException(status_code=503, detail=detail)

    if isinstance(error, DomainError):
        status_code = next(
            (status for cls, status in DOMAIN_ERROR_STATUS_MAP.items() if isinstance(error, cls)),
            400,
        )
        if isinstance(error, ValidationError) and error.field is not None:
            detail["field"] = error.field
        # Gate-style body so clients see the same shape as an unauthenticated request
        if isinstance(error, AuthorizationError) and error.code == "login_required":
            detail = {"error": error.message}
        return HTTPException(status_code=status_code, detail=detail)

    # Fallback for unknown ShelfgateError subclasses
    return HTTPException(status_code=500, detail=detail)
