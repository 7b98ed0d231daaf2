"""Domain entities."""

from certportal.domain.entities.actor import STAFF_ROLES, Actor
from certportal.domain.entities.applicant import (ApplicantDetails,
                                                  normalize_phone_number)

__all__ = [
    "Actor",
    "ApplicantDetails",
    "STAFF_ROLES",
    "normalize_phone_number",
]
