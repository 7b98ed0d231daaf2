"""
Domain exceptions for the certificate portal.

This module defines domain-level exceptions that represent business rule violations.
These exceptions are independent of infrastructure concerns.
"""

from collections.abc import Iterable
from typing import Any


class PortalException(Exception):
    """
    Base exception for all certificate portal errors.

    All custom exceptions should inherit from this class to allow
    for consistent error handling and logging.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable error code for API responses
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(PortalException):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: str | None = None):
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class AuthenticationException(PortalException):
    """Raised when authentication fails."""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, "AUTHENTICATION_ERROR")


class AuthorizationException(PortalException):
    """Raised when the actor may not see or act on a resource."""

    def __init__(self, resource: str, action: str):
        message = f"Permission denied: {action} on {resource}"
        super().__init__(message, "AUTHORIZATION_ERROR", {"resource": resource, "action": action})


class ResourceNotFoundException(PortalException):
    """Raised when a requested resource is not found."""

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


def _transition_details(
    current_status: str | None,
    requested_status: str,
    actor_roles: Iterable[str],
) -> dict[str, Any]:
    return {
        "current_status": current_status,
        "requested_status": requested_status,
        "actor_roles": sorted(str(getattr(role, "value", role)) for role in actor_roles),
    }


class InvalidTransition(PortalException):
    """Raised when no edge exists or the actor's roles do not authorize it."""

    def __init__(
        self,
        current_status: str | None,
        requested_status: str,
        actor_roles: Iterable[str],
        reason: str,
    ):
        details = _transition_details(current_status, requested_status, actor_roles)
        details["reason"] = reason
        super().__init__(
            f"Cannot move application from '{current_status}' to '{requested_status}': {reason}",
            "INVALID_TRANSITION",
            details,
        )


class MissingReason(PortalException):
    """Raised when a rejection or information request carries no reason text."""

    def __init__(
        self,
        current_status: str | None,
        requested_status: str,
        actor_roles: Iterable[str],
    ):
        super().__init__(
            f"A reason is required to move an application to '{requested_status}'",
            "MISSING_REASON",
            _transition_details(current_status, requested_status, actor_roles),
        )


class ConcurrentModification(PortalException):
    """Raised when another request changed the application first. Safe to retry."""

    def __init__(self, application_id: str, expected_status: str, expected_version: int):
        super().__init__(
            f"Application {application_id} was modified concurrently",
            "CONCURRENT_MODIFICATION",
            {
                "application_id": application_id,
                "expected_status": expected_status,
                "expected_version": expected_version,
            },
        )


class StoreUnavailable(PortalException):
    """Raised when the record store times out or cannot be reached. Retry with backoff."""

    def __init__(self, operation: str, reason: str):
        super().__init__(
            f"Record store unavailable during {operation}",
            "STORE_UNAVAILABLE",
            {"operation": operation, "reason": reason},
        )


class DuplicateCertificate(PortalException):
    """Raised when a certificate already exists for an application."""

    def __init__(self, application_id: str, certificate_number: str | None = None):
        super().__init__(
            f"Certificate already issued for application {application_id}",
            "DUPLICATE_CERTIFICATE",
            {"application_id": application_id, "certificate_number": certificate_number},
        )
