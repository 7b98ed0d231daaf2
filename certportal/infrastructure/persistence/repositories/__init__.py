from certportal.infrastructure.persistence.repositories.application_repo import \
    ApplicationRepository
from certportal.infrastructure.persistence.repositories.audit_repo import \
    AuditRepository
from certportal.infrastructure.persistence.repositories.base import \
    BaseRepository
from certportal.infrastructure.persistence.repositories.certificate_repo import \
    CertificateRepository
from certportal.infrastructure.persistence.repositories.document_repo import \
    DocumentRepository
from certportal.infrastructure.persistence.repositories.user_role_repo import \
    UserRoleRepository

__all__ = [
    "BaseRepository",
    "ApplicationRepository",
    "AuditRepository",
    "CertificateRepository",
    "DocumentRepository",
    "UserRoleRepository",
]
