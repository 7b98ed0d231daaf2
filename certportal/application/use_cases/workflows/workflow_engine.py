"""
Application workflow engine.

The only writer of an application's status. Every transition is checked
against the state machine in ``certportal.domain.workflow``, written with a
compare-and-set on (status, version), recorded in the audit trail and, on
approval, followed by certificate issuance in the same unit of work.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from certportal.application.interfaces.services import Notification
from certportal.domain.entities.actor import Actor
from certportal.domain.enums import (ApplicationStatus, Role, TransitionKind,
                                     WorkflowVariant)
from certportal.domain.exceptions import (ConcurrentModification,
                                          ResourceNotFoundException)
from certportal.domain.workflow import (TransitionRule, authorize,
                                        resume_status_for)
from certportal.infrastructure.persistence.models.audit_entry import \
    ApplicationAuditEntry
from certportal.shared.telemetry.logging import get_logger
from certportal.shared.telemetry.tracing import add_span_attributes, traced
from certportal.shared.utils.clock import utc_now

if TYPE_CHECKING:
    from certportal.application.services.notification_service import \
        NotificationDispatcher
    from certportal.application.use_cases.certificates.certificate_issuer import \
        CertificateIssuer
    from certportal.infrastructure.persistence.models.application import \
        Application
    from certportal.infrastructure.persistence.repositories.application_repo import \
        ApplicationRepository
    from certportal.infrastructure.persistence.repositories.audit_repo import \
        AuditRepository

logger = get_logger(__name__)


def acting_role(rule: TransitionRule, actor: Actor) -> Role:
    """The role under which the actor takes this edge, in role declaration order"""
    for role in Role:
        if role in rule.roles and actor.has_role(role):
            return role
    raise ValueError("Actor holds no role for this transition")


class WorkflowEngine:
    """Move applications through their lifecycle"""

    def __init__(
        self,
        application_repo: "ApplicationRepository",
        audit_repo: "AuditRepository",
        issuer: "CertificateIssuer",
        notifier: "NotificationDispatcher",
        on_commit: Callable[[Callable[[], None]], None] | None = None,
    ):
        """
        Args:
            on_commit: Registers a callback to run once the surrounding
                transaction commits. Without it notifications go out immediately,
                for callers that own no transaction.
        """
        self.application_repo = application_repo
        self.audit_repo = audit_repo
        self.issuer = issuer
        self.notifier = notifier
        self.on_commit = on_commit

    @traced("workflow.request_transition")
    async def request_transition(
        self,
        application_id: str,
        destination: ApplicationStatus,
        actor: Actor,
        reason: str | None = None,
    ) -> "Application":
        """
        Move an application to a new status on behalf of an actor.

        Args:
            application_id: Application to move
            destination: Requested status
            actor: Identity and roles of the requester
            reason: Required for rejections and information requests

        Returns:
            The application as stored after the transition

        Raises:
            ResourceNotFoundException: Unknown application
            MissingReason: Reason required but blank
            InvalidTransition: No such edge or role not authorized
            ConcurrentModification: Another request changed the application first
            DuplicateCertificate: Approval found a certificate already issued
            StoreUnavailable: Store timed out or is unreachable
        """
        application = await self.application_repo.get_by_id(application_id)
        if application is None:
            raise ResourceNotFoundException("Application", application_id)

        current = ApplicationStatus(application.status)
        expected_version = application.version
        resume_status = (
            resume_status_for(application.info_requested_from)
            if current is ApplicationStatus.ADDITIONAL_INFO_NEEDED
            else None
        )

        rule = authorize(
            variant=WorkflowVariant(application.workflow_variant),
            current=current,
            destination=destination,
            actor=actor,
            owner_id=application.owner_id,
            reason=reason,
            resume_status=resume_status,
        )
        reason_text = reason.strip() if reason and reason.strip() else None
        role = acting_role(rule, actor)

        add_span_attributes(
            application_id=application_id,
            from_status=current.value,
            to_status=destination.value,
            actor_role=role.value,
        )

        values: dict[str, str | None] = {"status": destination.value}
        if destination is ApplicationStatus.REJECTED:
            values["rejection_reason"] = reason_text
        elif destination is ApplicationStatus.ADDITIONAL_INFO_NEEDED:
            values["additional_info_requested"] = reason_text
            values["info_requested_from"] = current.value
        if rule.kind is TransitionKind.RESUBMITTED:
            values["info_requested_from"] = None

        won = await self.application_repo.compare_and_set_status(
            application_id, current.value, expected_version, values
        )
        if not won:
            logger.info(
                "Transition %s -> %s on %s lost a concurrent update",
                current.value,
                destination.value,
                application_id,
            )
            raise ConcurrentModification(application_id, current.value, expected_version)

        await self.audit_repo.append(
            ApplicationAuditEntry(
                application_id=application_id,
                transition=rule.kind.value,
                from_status=current.value,
                to_status=destination.value,
                actor_id=actor.user_id,
                actor_role=role.value,
                reason=reason_text,
                occurred_at=utc_now(),
            )
        )

        updated = await self.application_repo.get_by_id(application_id)
        if updated is None:
            raise ResourceNotFoundException("Application", application_id)

        if destination is ApplicationStatus.APPROVED:
            await self.issuer.issue(updated)

        logger.info(
            "Application %s moved %s -> %s by %s (%s)",
            updated.application_code,
            current.value,
            destination.value,
            actor.user_id,
            role.value,
        )

        notification = Notification(
            application_id=updated.id,
            application_code=updated.application_code,
            new_status=destination.value,
            recipient=updated.owner_id,
            reason=reason_text,
        )
        if self.on_commit is None:
            self.notifier.enqueue(notification)
        else:
            self.on_commit(lambda: self.notifier.enqueue(notification))
        return updated
