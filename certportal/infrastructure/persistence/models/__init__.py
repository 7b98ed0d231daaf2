from certportal.infrastructure.persistence.models.application import \
    Application
from certportal.infrastructure.persistence.models.audit_entry import \
    ApplicationAuditEntry
from certportal.infrastructure.persistence.models.certificate import \
    Certificate
from certportal.infrastructure.persistence.models.document import \
    ApplicationDocument
# Mixins for model composition
from certportal.infrastructure.persistence.models.mixins import (
    CreatedAtMixin, CuidMixin, TimestampMixin, VersionedMixin)
from certportal.infrastructure.persistence.models.user_role import UserRole

__all__ = [
    # Models
    "Application",
    "ApplicationAuditEntry",
    "ApplicationDocument",
    "Certificate",
    "UserRole",
    # Mixins
    "CuidMixin",
    "CreatedAtMixin",
    "TimestampMixin",
    "VersionedMixin",
]
