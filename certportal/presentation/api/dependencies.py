from collections.abc import Callable
from functools import partial

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from certportal.application.services.notification_service import \
    NotificationDispatcher
from certportal.application.services.role_service import RoleService
from certportal.application.services.signature_service import \
    SignatureService
from certportal.application.use_cases.applications.application_operations import \
    ApplicationService
from certportal.application.use_cases.certificates.certificate_issuer import \
    CertificateIssuer
from certportal.application.use_cases.certificates.certificate_verification import \
    CertificateVerificationService
from certportal.application.use_cases.documents.document_operations import \
    DocumentService
from certportal.application.use_cases.workflows.workflow_engine import \
    WorkflowEngine
from certportal.domain.entities.actor import Actor
from certportal.domain.enums import Role, WorkflowVariant
from certportal.domain.exceptions import (AuthenticationException,
                                          AuthorizationException)
from certportal.infrastructure.cache.redis_cache import CacheService
from certportal.infrastructure.config.settings import get_settings
from certportal.infrastructure.messaging.notification_sinks import \
    LoggingNotificationSink
from certportal.infrastructure.persistence.database import (
    after_commit, get_db, get_db_transactional)
from certportal.infrastructure.persistence.repositories import (
    ApplicationRepository, AuditRepository, CertificateRepository,
    DocumentRepository, UserRoleRepository)
from certportal.infrastructure.security.jwt import verify_token
from certportal.presentation.api.v1.schemas.token import TokenPayload

security = HTTPBearer(auto_error=False)

# Global service instances (singletons)
_storage_service = None
_cache_service: CacheService | None = None
_notifier: NotificationDispatcher | None = None


# Cache service dependencies (defined early for use in other dependencies)
async def get_cache_service() -> CacheService:
    """
    Cache service dependency (singleton)

    Returns global cache service instance.
    Initialized on app startup in main.py
    """
    global _cache_service
    if _cache_service is None:
        _cache_service = CacheService()
    return _cache_service


def set_cache_service(cache_service: CacheService):
    """Set global cache service (called on app startup)"""
    global _cache_service
    _cache_service = cache_service


def get_notifier() -> NotificationDispatcher:
    """Notification dispatcher (singleton). Logs notifications until main.py sets a sink."""
    global _notifier
    if _notifier is None:
        _notifier = NotificationDispatcher(LoggingNotificationSink())
    return _notifier


def set_notifier(notifier: NotificationDispatcher):
    global _notifier
    _notifier = notifier


def get_signature_service() -> SignatureService:
    return SignatureService(get_settings().signing_key)


async def get_storage_service():
    """Storage service dependency"""
    global _storage_service
    if _storage_service is not None:
        return _storage_service

    from certportal.infrastructure.external.storage.factory import \
        StorageFactory

    _storage_service = StorageFactory.create_storage_service(get_settings())
    return _storage_service


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> TokenPayload:
    """
    Validate JWT token and return authenticated user payload.
    Token must contain the 'sub' (user_id) claim.
    """
    if credentials is None:
        raise AuthenticationException("Missing bearer token")
    try:
        payload = verify_token(credentials.credentials)
        return TokenPayload(**payload)
    except (ValueError, TypeError, ValidationError) as e:
        raise AuthenticationException(f"Invalid authentication credentials: {e}") from e


async def get_current_actor(
    user: TokenPayload = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache_service),
) -> Actor:
    """
    Resolve the caller's roles from stored assignments.
    Roles are never taken from the token itself.
    """
    roles = await RoleService(UserRoleRepository(db), cache_service=cache).get_roles(user.sub)
    return Actor(user_id=user.sub, roles=frozenset(roles), email=user.email)


def require_role(*roles: Role) -> Callable:
    """Dependency factory that rejects actors holding none of the given roles"""

    async def checker(actor: Actor = Depends(get_current_actor)) -> Actor:
        if not actor.has_any_role(roles):
            raise AuthorizationException(
                "roles", f"requires one of {', '.join(r.value for r in roles)}"
            )
        return actor

    return checker


def build_workflow_engine(db: AsyncSession, notifier: NotificationDispatcher) -> WorkflowEngine:
    """Internal helper to construct WorkflowEngine with all dependencies"""
    settings = get_settings()
    issuer = CertificateIssuer(
        CertificateRepository(db),
        get_signature_service(),
        validity_days=settings.certificate_validity_days,
    )
    return WorkflowEngine(
        application_repo=ApplicationRepository(db),
        audit_repo=AuditRepository(db),
        issuer=issuer,
        notifier=notifier,
        on_commit=partial(after_commit, db),
    )


def build_application_service(
    db: AsyncSession, engine: WorkflowEngine | None = None
) -> ApplicationService:
    return ApplicationService(
        application_repo=ApplicationRepository(db),
        audit_repo=AuditRepository(db),
        certificate_repo=CertificateRepository(db),
        workflow_variant=WorkflowVariant(get_settings().workflow_variant),
        engine=engine,
    )


async def get_workflow_engine(
    db: AsyncSession = Depends(get_db_transactional),
    notifier: NotificationDispatcher = Depends(get_notifier),
) -> WorkflowEngine:
    """Workflow engine dependency with transaction management"""
    return build_workflow_engine(db, notifier)


async def get_application_service(db: AsyncSession = Depends(get_db)) -> ApplicationService:
    """Application service dependency for read operations"""
    return build_application_service(db)


async def get_application_service_transactional(
    db: AsyncSession = Depends(get_db_transactional),
    engine: WorkflowEngine = Depends(get_workflow_engine),
) -> ApplicationService:
    """Application service dependency with transaction management"""
    return build_application_service(db, engine)


async def get_role_service(
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache_service),
) -> RoleService:
    return RoleService(UserRoleRepository(db), cache_service=cache)


async def get_role_service_transactional(
    db: AsyncSession = Depends(get_db_transactional),
    cache: CacheService = Depends(get_cache_service),
) -> RoleService:
    return RoleService(
        UserRoleRepository(db), cache_service=cache, on_commit=partial(after_commit, db)
    )


async def get_verification_service(
    db: AsyncSession = Depends(get_db),
) -> CertificateVerificationService:
    return CertificateVerificationService(CertificateRepository(db), get_signature_service())


def _build_document_service(db: AsyncSession, storage) -> DocumentService:
    settings = get_settings()
    return DocumentService(
        storage_service=storage,
        document_repo=DocumentRepository(db),
        application_repo=ApplicationRepository(db),
        max_upload_size=settings.max_upload_size,
        allowed_mime_types=settings.allowed_mime_types,
    )


async def get_document_service(
    storage=Depends(get_storage_service),
    db: AsyncSession = Depends(get_db),
) -> DocumentService:
    """Document service dependency"""
    return _build_document_service(db, storage)


async def get_document_service_transactional(
    storage=Depends(get_storage_service),
    db: AsyncSession = Depends(get_db_transactional),
) -> DocumentService:
    """Document service dependency with transaction management"""
    return _build_document_service(db, storage)
