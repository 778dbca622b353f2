"""Centralized error handling for the API layer.

This module provides consistent error handling across all API endpoints,
mapping domain exceptions to appropriate HTTP responses. Every error body
has the shape ``{"error": str, "details": any}`` with ``details`` omitted
when there are none.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from starlette.exceptions import HTTPException

from ...domain.exceptions import (
    ConfigurationException,
    ConflictException,
    DomainException,
    IdentityDirectoryException,
    MerchantSearchException,
    NotFoundException,
    ProfileStoreException,
    UpstreamException,
    ValidationException,
)

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


class ErrorResponse(BaseModel):
    """Standard error response model."""

    model_config = ConfigDict(frozen=True)

    error: str = Field(..., description="Error message")
    details: Any | None = Field(None, description="Additional error details")

    def to_content(self) -> dict[str, Any]:
        """Dump the envelope, dropping empty details."""
        return self.model_dump(exclude_none=True)


# Mapping of domain exception types to HTTP status codes, resolved along the MRO
EXCEPTION_STATUS_MAP: dict[type[DomainException], int] = {
    ValidationException: status.HTTP_400_BAD_REQUEST,
    NotFoundException: status.HTTP_404_NOT_FOUND,
    ConflictException: status.HTTP_409_CONFLICT,
    ConfigurationException: status.HTTP_500_INTERNAL_SERVER_ERROR,
    MerchantSearchException: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ProfileStoreException: status.HTTP_500_INTERNAL_SERVER_ERROR,
    UpstreamException: status.HTTP_502_BAD_GATEWAY,
    IdentityDirectoryException: status.HTTP_502_BAD_GATEWAY,
}


def resolve_status_code(exc: DomainException) -> int:
    """Find the status code of the closest mapped exception class."""
    for cls in type(exc).__mro__:
        if cls in EXCEPTION_STATUS_MAP:
            return EXCEPTION_STATUS_MAP[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def create_error_response(status_code: int, error: str, details: Any | None = None) -> JSONResponse:
    """Create a standardized error response.

    Args:
        status_code: HTTP status code
        error: Error message for the caller
        details: Additional error details

    Returns:
        JSONResponse with error information
    """
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, details=details).to_content(),
    )


async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    """Handle domain-specific exceptions.

    Raw store and identity failures are reported without their internal
    message.
    """
    status_code = resolve_status_code(exc)
    logger.warning(
        f"Domain exception on {request.method} {request.url.path}: "
        f"{exc.message} (code: {exc.error_code}, status: {status_code})"
    )

    if isinstance(exc, ProfileStoreException):
        return create_error_response(status_code, INTERNAL_ERROR_MESSAGE)
    if isinstance(exc, IdentityDirectoryException):
        return create_error_response(status_code, "Identity directory error")
    return create_error_response(status_code, exc.message, exc.details)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle FastAPI request validation errors with the standard envelope."""
    errors = exc.errors()
    logger.warning(
        f"Validation error on {request.method} {request.url.path}: {len(errors)} errors"
    )

    field_errors: dict[str, list[str]] = {}
    form_errors: list[str] = []
    for error in errors:
        # First element is the request part: body, query, path or header
        loc = [str(part) for part in error.get("loc", ())[1:]]
        message = error.get("msg", "Invalid value")
        if loc:
            field_errors.setdefault(".".join(loc), []).append(message)
        else:
            form_errors.append(message)

    return create_error_response(
        status.HTTP_400_BAD_REQUEST,
        "Invalid request",
        {"formErrors": form_errors, "fieldErrors": field_errors},
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle FastAPI HTTP exceptions with consistent format."""
    logger.info(
        f"HTTP exception on {request.method} {request.url.path}: {exc.status_code} - {exc.detail}"
    )
    return create_error_response(exc.status_code, str(exc.detail))


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions without exposing internals."""
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}",
        exc_info=exc,
    )
    return create_error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)


def register_error_handlers(app: FastAPI) -> None:
    """Register all error handlers with the FastAPI app.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(DomainException, domain_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
