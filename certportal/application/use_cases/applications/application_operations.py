"""
Application submission, tracking and dashboard use cases.

Status changes are never made here; they go through WorkflowEngine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, time
from typing import TYPE_CHECKING, Any

from certportal.domain.entities.actor import Actor
from certportal.domain.entities.applicant import ApplicantDetails
from certportal.domain.enums import (ApplicationStatus, CertificateType, Role,
                                     TransitionKind, WorkflowVariant)
from certportal.domain.exceptions import (AuthorizationException,
                                          ResourceNotFoundException,
                                          StoreUnavailable,
                                          ValidationException)
from certportal.domain.workflow import actionable_statuses, resume_status_for
from certportal.infrastructure.exceptions import DuplicateKeyError
from certportal.infrastructure.persistence.models.application import \
    Application
from certportal.infrastructure.persistence.models.audit_entry import \
    ApplicationAuditEntry
from certportal.shared.telemetry.logging import get_logger
from certportal.shared.telemetry.tracing import traced
from certportal.shared.utils.clock import utc_now
from certportal.shared.utils.generators import generate_application_code

if TYPE_CHECKING:
    from certportal.application.use_cases.workflows.workflow_engine import \
        WorkflowEngine
    from certportal.infrastructure.persistence.models.certificate import \
        Certificate
    from certportal.infrastructure.persistence.repositories.application_repo import \
        ApplicationRepository
    from certportal.infrastructure.persistence.repositories.audit_repo import \
        AuditRepository
    from certportal.infrastructure.persistence.repositories.certificate_repo import \
        CertificateRepository

logger = get_logger(__name__)

MAX_CODE_ATTEMPTS = 5
LIST_SCOPES = ("mine", "stage", "all")


@dataclass
class ApplicationStats:
    total: int
    pending: int
    in_progress: int
    approved_today: int
    by_status: dict[str, int] = field(default_factory=dict)


def first_milestones(entries: list[ApplicationAuditEntry]) -> dict[str, ApplicationAuditEntry]:
    """
    Map each transition kind to the entry that first recorded it.

    Entries must be in chronological order. Later repeats of a kind, such as
    a second resubmission, never replace the first.
    """
    milestones: dict[str, ApplicationAuditEntry] = {}
    for entry in entries:
        milestones.setdefault(entry.transition, entry)
    return milestones


class ApplicationService:
    """Citizen submissions and role-scoped application reads"""

    def __init__(
        self,
        application_repo: "ApplicationRepository",
        audit_repo: "AuditRepository",
        certificate_repo: "CertificateRepository",
        workflow_variant: WorkflowVariant = WorkflowVariant.TWO_STAGE,
        engine: "WorkflowEngine | None" = None,
    ):
        self.application_repo = application_repo
        self.audit_repo = audit_repo
        self.certificate_repo = certificate_repo
        self.workflow_variant = workflow_variant
        self.engine = engine

    @traced("application.submit")
    async def submit(
        self,
        actor: Actor,
        certificate_type: CertificateType | str,
        details: ApplicantDetails,
    ) -> Application:
        """
        Create a pending application owned by the actor.

        Raises:
            ValidationException: Unknown certificate type or invalid applicant details
        """
        if certificate_type not in CertificateType.values():
            raise ValidationException(
                f"certificate_type must be one of: {', '.join(CertificateType.values())}",
                field="certificate_type",
            )
        certificate_type = CertificateType(certificate_type)
        normalized = details.validate()

        for attempt in range(1, MAX_CODE_ATTEMPTS + 1):
            application = Application(
                application_code=generate_application_code(),
                owner_id=actor.user_id,
                certificate_type=certificate_type.value,
                status=ApplicationStatus.PENDING.value,
                workflow_variant=self.workflow_variant.value,
                version=1,
                submitted_at=utc_now(),
                **normalized.as_dict(),
            )
            try:
                application = await self.application_repo.create_unique(application)
                break
            except DuplicateKeyError:
                logger.warning(
                    f"Application code {application.application_code} collided "
                    f"(attempt {attempt}/{MAX_CODE_ATTEMPTS})"
                )
        else:
            raise StoreUnavailable("application.submit", "could not allocate a unique application code")

        await self.audit_repo.append(
            ApplicationAuditEntry(
                application_id=application.id,
                transition=TransitionKind.SUBMITTED.value,
                from_status=None,
                to_status=ApplicationStatus.PENDING.value,
                actor_id=actor.user_id,
                actor_role=Role.CITIZEN.value,
                occurred_at=application.submitted_at,
            )
        )
        logger.info(f"Application {application.application_code} submitted by {actor.user_id}")
        return application

    @staticmethod
    def _ensure_visible(application: Application, actor: Actor) -> None:
        if application.owner_id != actor.user_id and not actor.is_staff:
            raise AuthorizationException(f"application:{application.id}", "read")

    async def get(self, application_id: str, actor: Actor) -> Application:
        """
        Raises:
            ResourceNotFoundException: Unknown application
            AuthorizationException: Actor is neither the owner nor a role holder
        """
        application = await self.application_repo.get_by_id(application_id)
        if application is None:
            raise ResourceNotFoundException("Application", application_id)
        self._ensure_visible(application, actor)
        return application

    async def list_applications(
        self,
        actor: Actor,
        scope: str = "mine",
        status: ApplicationStatus | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[Application]:
        """
        Role-scoped listing.

        ``mine`` is every caller's own applications. ``stage`` is the queue of
        statuses the caller's roles can move forward, and ``all`` is everything;
        both require a role beyond citizen.
        """
        if scope not in LIST_SCOPES:
            raise ValidationException(f"scope must be one of: {', '.join(LIST_SCOPES)}", field="scope")

        if scope == "mine":
            return await self.application_repo.list_by_owner(
                actor.user_id, status.value if status else None
            )

        if not actor.is_staff:
            raise AuthorizationException("applications", f"list:{scope}")

        if scope == "stage":
            statuses = {s.value for s in actionable_statuses(actor.roles)}
            if status is not None:
                statuses &= {status.value}
            return await self.application_repo.list_filtered(statuses, skip=skip, limit=limit)

        return await self.application_repo.list_filtered(
            [status.value] if status else None, skip=skip, limit=limit
        )

    @traced("application.update_details")
    async def update_applicant_details(
        self, application_id: str, actor: Actor, changes: dict[str, Any]
    ) -> Application:
        """
        Owner edits applicant fields before any stage has acted on the application.

        Raises:
            AuthorizationException: Actor is not the owner
            ValidationException: Application already left pending, or invalid fields
        """
        application = await self.get(application_id, actor)
        if application.owner_id != actor.user_id:
            raise AuthorizationException(f"application:{application.id}", "update")
        if application.version != 1 or application.status != ApplicationStatus.PENDING.value:
            raise ValidationException(
                "Applicant details can no longer be edited once processing has started"
            )

        current = ApplicantDetails(
            full_name=application.full_name,
            father_name=application.father_name,
            date_of_birth=application.date_of_birth,
            address=application.address,
            phone_number=application.phone_number,
            email=application.email,
            purpose=application.purpose,
            additional_info=application.additional_info,
        ).as_dict()
        unknown = set(changes) - set(current)
        if unknown:
            raise ValidationException(f"Unknown fields: {', '.join(sorted(unknown))}")

        current.update(changes)
        normalized = ApplicantDetails(**current).validate()

        for key, value in normalized.as_dict().items():
            setattr(application, key, value)
        return await self.application_repo.update(application)

    async def resubmit(
        self, application_id: str, actor: Actor, additional_info: str | None = None
    ) -> Application:
        """
        Answer an information request and return the application to the state
        it was paused in.
        """
        if self.engine is None:
            raise RuntimeError("ApplicationService was built without a workflow engine")

        application = await self.get(application_id, actor)
        if application.status != ApplicationStatus.ADDITIONAL_INFO_NEEDED.value:
            raise ValidationException("Only applications awaiting information can be resubmitted")
        if application.owner_id != actor.user_id:
            raise AuthorizationException(f"application:{application.id}", "resubmit")

        if additional_info and additional_info.strip():
            application.additional_info = additional_info.strip()
            await self.application_repo.update(application)

        return await self.engine.request_transition(
            application_id,
            resume_status_for(application.info_requested_from),
            actor,
        )

    async def audit_trail(self, application_id: str, actor: Actor) -> list[ApplicationAuditEntry]:
        await self.get(application_id, actor)
        return await self.audit_repo.list_for_application(application_id)

    async def stats(self, actor: Actor) -> ApplicationStats:
        """Dashboard counters for role holders"""
        if not actor.is_staff:
            raise AuthorizationException("applications", "stats")

        by_status = await self.application_repo.count_by_status()
        midnight = datetime.combine(utc_now().date(), time.min, tzinfo=UTC)
        approved_today = await self.audit_repo.count_transitions_since(
            ApplicationStatus.APPROVED.value, midnight
        )
        terminal = {ApplicationStatus.APPROVED.value, ApplicationStatus.REJECTED.value}

        return ApplicationStats(
            total=sum(by_status.values()),
            pending=by_status.get(ApplicationStatus.PENDING.value, 0),
            in_progress=sum(n for s, n in by_status.items() if s not in terminal),
            approved_today=approved_today,
            by_status=by_status,
        )

    async def certificate_for(self, application_id: str, actor: Actor) -> "Certificate":
        await self.get(application_id, actor)
        certificate = await self.certificate_repo.get_by_application(application_id)
        if certificate is None:
            raise ResourceNotFoundException("Certificate for application", application_id)
        return certificate

    async def certificates_for_owner(self, actor: Actor) -> list["Certificate"]:
        return await self.certificate_repo.list_for_owner(actor.user_id)
