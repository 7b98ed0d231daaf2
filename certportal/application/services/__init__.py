from certportal.application.services.notification_service import \
    NotificationDispatcher
from certportal.application.services.role_service import RoleService
from certportal.application.services.signature_service import \
    SignatureService

__all__ = ["NotificationDispatcher", "RoleService", "SignatureService"]
