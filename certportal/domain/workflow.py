"""
Application lifecycle state machine.

One transition table per workflow variant. Every status change, whichever
role view it comes from, is checked against these tables by ``authorize``
before the workflow engine writes anything.
"""

from dataclasses import dataclass
from functools import lru_cache

from certportal.domain.entities.actor import STAFF_ROLES, Actor
from certportal.domain.enums import (ApplicationStatus, Role, TransitionKind,
                                     WorkflowVariant)
from certportal.domain.exceptions import InvalidTransition, MissingReason

S = ApplicationStatus

DECISION_ROLES = frozenset({Role.SDO, Role.ADMIN})
REASON_REQUIRED = frozenset({S.REJECTED, S.ADDITIONAL_INFO_NEEDED})


@dataclass(frozen=True)
class TransitionRule:
    """A single edge of the state machine and who may take it"""

    source: ApplicationStatus
    destination: ApplicationStatus
    roles: frozenset[Role]
    kind: TransitionKind
    requires_reason: bool = False
    owner_only: bool = False


def _forward(source, destination, roles, kind) -> TransitionRule:
    return TransitionRule(source, destination, frozenset(roles), kind)


_VERIFIERS = {Role.CLERK, Role.VERIFICATION_OFFICER_1}

FORWARD_EDGES: dict[WorkflowVariant, tuple[TransitionRule, ...]] = {
    WorkflowVariant.TWO_STAGE: (
        _forward(S.PENDING, S.DOCUMENT_VERIFICATION, _VERIFIERS, TransitionKind.DOCUMENTS_VERIFIED),
        _forward(S.DOCUMENT_VERIFICATION, S.STAFF_REVIEW, {Role.STAFF_OFFICER}, TransitionKind.STAFF_REVIEWED),
        _forward(S.STAFF_REVIEW, S.AWAITING_SDO, {Role.STAFF_OFFICER}, TransitionKind.FORWARDED_TO_SDO),
        _forward(S.AWAITING_SDO, S.APPROVED, DECISION_ROLES, TransitionKind.APPROVED),
    ),
    WorkflowVariant.FOUR_STAGE: (
        _forward(S.PENDING, S.VERIFICATION_LEVEL_1, _VERIFIERS, TransitionKind.DOCUMENTS_VERIFIED),
        _forward(S.VERIFICATION_LEVEL_1, S.VERIFICATION_LEVEL_2, {Role.VERIFICATION_OFFICER_2}, TransitionKind.LEVEL_2_VERIFIED),
        _forward(S.VERIFICATION_LEVEL_2, S.VERIFICATION_LEVEL_3, {Role.VERIFICATION_OFFICER_3}, TransitionKind.LEVEL_3_VERIFIED),
        _forward(S.VERIFICATION_LEVEL_3, S.STAFF_REVIEW, {Role.STAFF_OFFICER}, TransitionKind.STAFF_REVIEWED),
        _forward(S.STAFF_REVIEW, S.AWAITING_SDO, {Role.STAFF_OFFICER}, TransitionKind.FORWARDED_TO_SDO),
        _forward(S.AWAITING_SDO, S.APPROVED, DECISION_ROLES, TransitionKind.APPROVED),
    ),
}

# Progress shown to citizens tracking an application
PROGRESS: dict[WorkflowVariant, dict[ApplicationStatus, int]] = {
    WorkflowVariant.TWO_STAGE: {
        S.PENDING: 10,
        S.DOCUMENT_VERIFICATION: 35,
        S.STAFF_REVIEW: 60,
        S.AWAITING_SDO: 80,
        S.APPROVED: 100,
        S.REJECTED: 100,
    },
    WorkflowVariant.FOUR_STAGE: {
        S.PENDING: 10,
        S.VERIFICATION_LEVEL_1: 25,
        S.VERIFICATION_LEVEL_2: 40,
        S.VERIFICATION_LEVEL_3: 55,
        S.STAFF_REVIEW: 70,
        S.AWAITING_SDO: 85,
        S.APPROVED: 100,
        S.REJECTED: 100,
    },
}


def working_states(variant: WorkflowVariant) -> tuple[ApplicationStatus, ...]:
    """Non-terminal states an application can be actively processed in."""
    return tuple(rule.source for rule in FORWARD_EDGES[variant])


def variant_states(variant: WorkflowVariant) -> frozenset[ApplicationStatus]:
    """Every status an application of this variant can hold."""
    return frozenset(working_states(variant)) | {
        S.APPROVED,
        S.REJECTED,
        S.ADDITIONAL_INFO_NEEDED,
    }


@lru_cache(maxsize=None)
def transition_table(
    variant: WorkflowVariant,
) -> dict[tuple[ApplicationStatus, ApplicationStatus], TransitionRule]:
    """
    Build the static edges of a variant keyed by (source, destination).

    Resubmission out of ``additional_info_needed`` is not listed here since its
    destination depends on the application; see ``resubmission_rule``.
    """
    table: dict[tuple[ApplicationStatus, ApplicationStatus], TransitionRule] = {}

    for rule in FORWARD_EDGES[variant]:
        table[(rule.source, rule.destination)] = rule

    for rule in FORWARD_EDGES[variant]:
        source = rule.source
        # Stage owners may reject what sits in their queue
        table[(source, S.REJECTED)] = TransitionRule(
            source,
            S.REJECTED,
            rule.roles | DECISION_ROLES,
            TransitionKind.REJECTED,
            requires_reason=True,
        )
        table[(source, S.ADDITIONAL_INFO_NEEDED)] = TransitionRule(
            source,
            S.ADDITIONAL_INFO_NEEDED,
            STAFF_ROLES,
            TransitionKind.INFO_REQUESTED,
            requires_reason=True,
        )

    table[(S.ADDITIONAL_INFO_NEEDED, S.REJECTED)] = TransitionRule(
        S.ADDITIONAL_INFO_NEEDED,
        S.REJECTED,
        DECISION_ROLES,
        TransitionKind.REJECTED,
        requires_reason=True,
    )
    return table


def resubmission_rule(resume_status: ApplicationStatus) -> TransitionRule:
    """Edge the owning citizen takes back to the state information was requested from."""
    return TransitionRule(
        S.ADDITIONAL_INFO_NEEDED,
        resume_status,
        frozenset({Role.CITIZEN}),
        TransitionKind.RESUBMITTED,
        owner_only=True,
    )


def resume_status_for(info_requested_from: str | None) -> ApplicationStatus:
    """Prior state of a paused application. Older rows without one resume at pending."""
    return ApplicationStatus(info_requested_from) if info_requested_from else S.PENDING


def find_rule(
    variant: WorkflowVariant,
    current: ApplicationStatus,
    destination: ApplicationStatus,
    resume_status: ApplicationStatus | None = None,
) -> TransitionRule | None:
    if current is S.ADDITIONAL_INFO_NEEDED and destination is not S.REJECTED:
        if resume_status is not None and destination is resume_status:
            return resubmission_rule(resume_status)
        return None
    return transition_table(variant).get((current, destination))


def authorize(
    *,
    variant: WorkflowVariant,
    current: ApplicationStatus,
    destination: ApplicationStatus,
    actor: Actor,
    owner_id: str,
    reason: str | None = None,
    resume_status: ApplicationStatus | None = None,
) -> TransitionRule:
    """
    Check a requested transition against the table.

    Args:
        variant: Workflow variant the application was created with
        current: Status the application holds now
        destination: Requested status
        actor: Identity and roles of the requester
        owner_id: Citizen who owns the application
        reason: Free text, mandatory for rejections and information requests
        resume_status: Prior state of an application awaiting information

    Returns:
        The matching TransitionRule

    Raises:
        MissingReason: Destination needs a reason and none was given
        InvalidTransition: No such edge, or the actor may not take it
    """
    roles = actor.role_names

    if destination in REASON_REQUIRED and not (reason and reason.strip()):
        raise MissingReason(current.value, destination.value, roles)

    if destination not in variant_states(variant):
        raise InvalidTransition(
            current.value,
            destination.value,
            roles,
            f"status is not part of the {variant.value} workflow",
        )

    rule = find_rule(variant, current, destination, resume_status)
    if rule is None:
        raise InvalidTransition(
            current.value, destination.value, roles, "no transition between these states"
        )

    if not actor.has_any_role(rule.roles):
        raise InvalidTransition(
            current.value, destination.value, roles, "actor role is not authorized for this transition"
        )

    if rule.owner_only and actor.user_id != owner_id:
        raise InvalidTransition(
            current.value, destination.value, roles, "only the applicant may resubmit"
        )

    return rule


def progress_for(
    status: ApplicationStatus,
    variant: WorkflowVariant,
    resume_status: ApplicationStatus | None = None,
) -> int:
    """Completion percentage. A paused application reports its prior state."""
    if status is S.ADDITIONAL_INFO_NEEDED:
        status = resume_status or S.PENDING
    return PROGRESS[variant].get(status, 0)


def actionable_statuses(roles) -> set[ApplicationStatus]:
    """Statuses in which the given roles own a forward step, across all variants."""
    role_set = frozenset(roles)
    statuses: set[ApplicationStatus] = set()
    for rules in FORWARD_EDGES.values():
        for rule in rules:
            if not role_set.isdisjoint(rule.roles):
                statuses.add(rule.source)
    return statuses
