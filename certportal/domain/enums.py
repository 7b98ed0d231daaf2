"""Domain enumerations for the certificate portal."""

from enum import Enum


class CertificateType(str, Enum):
    """Certificates a citizen can apply for"""

    CASTE = "caste"
    INCOME = "income"
    DOMICILE = "domicile"
    RESIDENCE = "residence"

    @classmethod
    def values(cls) -> list[str]:
        """Get all valid values"""
        return [item.value for item in cls]


class ApplicationStatus(str, Enum):
    """Lifecycle states of a certificate application"""

    PENDING = "pending"
    DOCUMENT_VERIFICATION = "document_verification"
    VERIFICATION_LEVEL_1 = "verification_level_1"
    VERIFICATION_LEVEL_2 = "verification_level_2"
    VERIFICATION_LEVEL_3 = "verification_level_3"
    STAFF_REVIEW = "staff_review"
    AWAITING_SDO = "awaiting_sdo"
    APPROVED = "approved"
    REJECTED = "rejected"
    ADDITIONAL_INFO_NEEDED = "additional_info_needed"

    @classmethod
    def values(cls) -> list[str]:
        """Get all valid values"""
        return [status.value for status in cls]

    @property
    def is_terminal(self) -> bool:
        return self in (ApplicationStatus.APPROVED, ApplicationStatus.REJECTED)


class WorkflowVariant(str, Enum):
    """Verification staging, fixed per application at creation"""

    TWO_STAGE = "two_stage"
    FOUR_STAGE = "four_stage"

    @classmethod
    def values(cls) -> list[str]:
        """Get all valid values"""
        return [variant.value for variant in cls]


class Role(str, Enum):
    """Authorization tags controlling which transitions an actor may invoke"""

    CITIZEN = "citizen"
    CLERK = "clerk"
    VERIFICATION_OFFICER_1 = "verification_officer_1"
    VERIFICATION_OFFICER_2 = "verification_officer_2"
    VERIFICATION_OFFICER_3 = "verification_officer_3"
    STAFF_OFFICER = "staff_officer"
    SDO = "sdo"
    ADMIN = "admin"

    @classmethod
    def values(cls) -> list[str]:
        """Get all valid values"""
        return [role.value for role in cls]


class TransitionKind(str, Enum):
    """Audit classification of a status change"""

    SUBMITTED = "submitted"
    DOCUMENTS_VERIFIED = "documents_verified"
    LEVEL_2_VERIFIED = "level_2_verified"
    LEVEL_3_VERIFIED = "level_3_verified"
    STAFF_REVIEWED = "staff_reviewed"
    FORWARDED_TO_SDO = "forwarded_to_sdo"
    APPROVED = "approved"
    REJECTED = "rejected"
    INFO_REQUESTED = "info_requested"
    RESUBMITTED = "resubmitted"

    @classmethod
    def values(cls) -> list[str]:
        """Get all valid values"""
        return [kind.value for kind in cls]


class DocumentType(str, Enum):
    """Supporting documents accepted with an application"""

    IDENTITY_PROOF = "identity_proof"
    ADDRESS_PROOF = "address_proof"
    INCOME_PROOF = "income_proof"
    CASTE_PROOF = "caste_proof"
    OTHER = "other"

    @classmethod
    def values(cls) -> list[str]:
        """Get all valid values"""
        return [doc_type.value for doc_type in cls]
