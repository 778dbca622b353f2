"""Domain exceptions for the merchant onboarding service.

Every failure the service reports to a caller is one of these types. The API
layer maps each type to an HTTP status; ``message`` becomes the envelope's
``error`` field and ``details`` is passed through unchanged.
"""

from __future__ import annotations

from typing import Any


class DomainException(Exception):
    """Base exception for all domain-related errors."""

    def __init__(self, message: str, error_code: str, details: Any | None = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details


class ValidationException(DomainException):
    """Raised when input fails structural or semantic validation."""

    def __init__(self, message: str, details: Any | None = None):
        super().__init__(message, "VALIDATION_ERROR", details)


class InvalidCategoryException(ValidationException):
    """Raised when a search category is not one of the known primary categories."""

    def __init__(self, allowed: list[str]):
        super().__init__(
            "Invalid query parameters",
            {
                "code": "INVALID_CATEGORY",
                "message": f"Category must be one of: {', '.join(allowed)}",
            },
        )


class ConflictException(DomainException):
    """Raised when a guarded write collides with existing state."""

    def __init__(self, message: str, details: Any | None = None):
        super().__init__(message, "CONFLICT", details)


class MerchantAlreadyExistsException(ConflictException):
    """Raised when creating a merchant whose id is already stored."""

    def __init__(self, merchant_id: str):
        super().__init__(f"Merchant '{merchant_id}' already exists")
        self.key = merchant_id


class NotFoundException(DomainException):
    """Raised when a record required by an operation does not exist."""

    def __init__(self, message: str, details: Any | None = None):
        super().__init__(message, "NOT_FOUND", details)


class MerchantNotFoundException(NotFoundException):
    """Raised when a merchant id does not resolve to a stored record."""

    def __init__(self, merchant_id: str):
        super().__init__(f"Merchant '{merchant_id}' not found")
        self.key = merchant_id


class ConfigurationException(DomainException):
    """Raised when there's a configuration error."""

    def __init__(self, message: str, details: Any | None = None):
        super().__init__(message, "CONFIGURATION_ERROR", details)


class UpstreamException(DomainException):
    """Raised when a collaborator fails in a way the caller cannot fix."""

    def __init__(self, message: str, details: Any | None = None):
        super().__init__(message, "UPSTREAM_ERROR", details)


class MerchantSearchException(DomainException):
    """Raised when the category index query fails."""

    def __init__(self, cause: str | None = None):
        super().__init__(
            "Internal server error",
            "QUERY_FAILED",
            {"code": "QUERY_FAILED", "message": "Failed to retrieve merchants"},
        )
        self.cause = cause


# Collaborator failure signals. Adapters raise these; application services
# classify them into the caller-facing exceptions above.


class ProfileStoreException(DomainException):
    """Raised when a profile store operation fails."""

    def __init__(self, message: str, error_code: str = "PROFILE_STORE_ERROR"):
        super().__init__(message, error_code)


class ConditionalCheckFailedException(ProfileStoreException):
    """Raised when a conditional write's existence guard does not hold."""

    def __init__(self, key: str):
        super().__init__(f"Conditional check failed for key '{key}'", "CONDITIONAL_CHECK_FAILED")
        self.key = key


class IdentityDirectoryException(DomainException):
    """Raised when an identity directory operation fails."""

    def __init__(self, message: str, error_code: str = "IDENTITY_DIRECTORY_ERROR"):
        super().__init__(message, error_code)


class AccountAlreadyExistsException(IdentityDirectoryException):
    """Raised when an identity account already exists for a username."""

    def __init__(self, username: str):
        super().__init__(f"Account '{username}' already exists", "USERNAME_EXISTS")
        self.key = username


def serialize_error(exc: BaseException) -> dict[str, Any]:
    """Reduce an exception to a transport-safe summary without a stack trace.

    Args:
        exc: Exception raised by a collaborator

    Returns:
        Dictionary with ``name``, ``message`` and, when known, ``code``
    """
    summary: dict[str, Any] = {"name": type(exc).__name__, "message": str(exc)}
    code = getattr(exc, "error_code", None) or getattr(exc, "code", None)
    if code:
        summary["code"] = code
    return summary
