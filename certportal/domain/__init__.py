"""
Domain layer - Enterprise Business Rules.

Entities, the workflow state machine, enums and domain exceptions.
It has no dependencies on other layers.
"""

from certportal.domain.entities import Actor, ApplicantDetails
from certportal.domain.enums import (ApplicationStatus, CertificateType,
                                     DocumentType, Role, TransitionKind,
                                     WorkflowVariant)
from certportal.domain.exceptions import (AuthenticationException,
                                          AuthorizationException,
                                          ConcurrentModification,
                                          DuplicateCertificate,
                                          InvalidTransition, MissingReason,
                                          PortalException,
                                          ResourceNotFoundException,
                                          StoreUnavailable,
                                          ValidationException)

__all__ = [
    # Entities
    "Actor",
    "ApplicantDetails",
    # Enums
    "ApplicationStatus",
    "CertificateType",
    "DocumentType",
    "Role",
    "TransitionKind",
    "WorkflowVariant",
    # Exceptions
    "PortalException",
    "ValidationException",
    "AuthenticationException",
    "AuthorizationException",
    "ResourceNotFoundException",
    "InvalidTransition",
    "MissingReason",
    "ConcurrentModification",
    "StoreUnavailable",
    "DuplicateCertificate",
]
