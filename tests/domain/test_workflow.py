"""Unit tests for the application state machine"""

import pytest

from certportal.domain.entities.actor import STAFF_ROLES, Actor
from certportal.domain.enums import (ApplicationStatus, Role, TransitionKind,
                                     WorkflowVariant)
from certportal.domain.exceptions import InvalidTransition, MissingReason
from certportal.domain.workflow import (actionable_statuses, authorize,
                                        find_rule, progress_for,
                                        resume_status_for, transition_table,
                                        variant_states, working_states)

S = ApplicationStatus
TWO = WorkflowVariant.TWO_STAGE
FOUR = WorkflowVariant.FOUR_STAGE


def actor(*roles: Role, user_id: str = "staff-1") -> Actor:
    return Actor(user_id=user_id, roles=frozenset(roles))


class TestTransitionTable:
    def test_two_stage_forward_path(self):
        table = transition_table(TWO)
        path = [S.PENDING, S.DOCUMENT_VERIFICATION, S.STAFF_REVIEW, S.AWAITING_SDO, S.APPROVED]
        for source, destination in zip(path, path[1:]):
            assert (source, destination) in table

    def test_four_stage_forward_path(self):
        table = transition_table(FOUR)
        path = [
            S.PENDING,
            S.VERIFICATION_LEVEL_1,
            S.VERIFICATION_LEVEL_2,
            S.VERIFICATION_LEVEL_3,
            S.STAFF_REVIEW,
            S.AWAITING_SDO,
            S.APPROVED,
        ]
        for source, destination in zip(path, path[1:]):
            assert (source, destination) in table

    def test_variants_do_not_share_verification_states(self):
        assert S.DOCUMENT_VERIFICATION not in variant_states(FOUR)
        assert S.VERIFICATION_LEVEL_1 not in variant_states(TWO)

    @pytest.mark.parametrize("variant", [TWO, FOUR])
    def test_every_working_state_can_be_rejected_or_paused(self, variant):
        table = transition_table(variant)
        for state in working_states(variant):
            assert table[(state, S.REJECTED)].requires_reason
            assert table[(state, S.ADDITIONAL_INFO_NEEDED)].requires_reason
            assert table[(state, S.ADDITIONAL_INFO_NEEDED)].roles == STAFF_ROLES

    @pytest.mark.parametrize("variant", [TWO, FOUR])
    def test_terminal_states_have_no_outgoing_edges(self, variant):
        for source, _ in transition_table(variant):
            assert source not in (S.APPROVED, S.REJECTED)


class TestAuthorize:
    def test_clerk_verifies_pending_documents(self):
        rule = authorize(
            variant=TWO,
            current=S.PENDING,
            destination=S.DOCUMENT_VERIFICATION,
            actor=actor(Role.CLERK),
            owner_id="citizen-1",
        )
        assert rule.kind is TransitionKind.DOCUMENTS_VERIFIED

    def test_pending_to_approved_is_not_an_edge(self):
        """
        GIVEN a pending application
        WHEN an sdo tries to approve it directly
        THEN the request fails as an invalid transition with full context
        """
        with pytest.raises(InvalidTransition) as exc_info:
            authorize(
                variant=TWO,
                current=S.PENDING,
                destination=S.APPROVED,
                actor=actor(Role.SDO),
                owner_id="citizen-1",
            )

        details = exc_info.value.details
        assert details["current_status"] == "pending"
        assert details["requested_status"] == "approved"
        assert details["actor_roles"] == ["citizen", "sdo"]

    def test_wrong_role_is_rejected(self):
        with pytest.raises(InvalidTransition) as exc_info:
            authorize(
                variant=TWO,
                current=S.DOCUMENT_VERIFICATION,
                destination=S.STAFF_REVIEW,
                actor=actor(Role.CLERK),
                owner_id="citizen-1",
            )
        assert "not authorized" in exc_info.value.details["reason"]

    def test_citizen_cannot_advance_own_application(self):
        with pytest.raises(InvalidTransition):
            authorize(
                variant=TWO,
                current=S.PENDING,
                destination=S.DOCUMENT_VERIFICATION,
                actor=actor(user_id="citizen-1"),
                owner_id="citizen-1",
            )

    @pytest.mark.parametrize("destination", [S.REJECTED, S.ADDITIONAL_INFO_NEEDED])
    @pytest.mark.parametrize("reason", [None, "", "   "])
    def test_reason_is_required(self, destination, reason):
        with pytest.raises(MissingReason) as exc_info:
            authorize(
                variant=TWO,
                current=S.STAFF_REVIEW,
                destination=destination,
                actor=actor(Role.STAFF_OFFICER),
                owner_id="citizen-1",
                reason=reason,
            )
        assert exc_info.value.details["requested_status"] == destination.value

    def test_status_from_other_variant_is_invalid(self):
        with pytest.raises(InvalidTransition) as exc_info:
            authorize(
                variant=TWO,
                current=S.PENDING,
                destination=S.VERIFICATION_LEVEL_1,
                actor=actor(Role.VERIFICATION_OFFICER_1),
                owner_id="citizen-1",
            )
        assert "two_stage" in exc_info.value.details["reason"]

    def test_sdo_may_reject_from_any_working_state(self):
        for state in working_states(FOUR):
            rule = authorize(
                variant=FOUR,
                current=state,
                destination=S.REJECTED,
                actor=actor(Role.SDO),
                owner_id="citizen-1",
                reason="Forged income proof",
            )
            assert rule.kind is TransitionKind.REJECTED

    def test_level_two_officer_cannot_reject_at_level_one(self):
        with pytest.raises(InvalidTransition):
            authorize(
                variant=FOUR,
                current=S.VERIFICATION_LEVEL_1,
                destination=S.REJECTED,
                actor=actor(Role.VERIFICATION_OFFICER_2),
                owner_id="citizen-1",
                reason="Wrong stage",
            )

    def test_owner_resubmits_to_prior_state(self):
        rule = authorize(
            variant=TWO,
            current=S.ADDITIONAL_INFO_NEEDED,
            destination=S.STAFF_REVIEW,
            actor=actor(user_id="citizen-1"),
            owner_id="citizen-1",
            resume_status=S.STAFF_REVIEW,
        )
        assert rule.kind is TransitionKind.RESUBMITTED

    def test_resubmission_must_return_to_prior_state(self):
        with pytest.raises(InvalidTransition):
            authorize(
                variant=TWO,
                current=S.ADDITIONAL_INFO_NEEDED,
                destination=S.PENDING,
                actor=actor(user_id="citizen-1"),
                owner_id="citizen-1",
                resume_status=S.STAFF_REVIEW,
            )

    def test_only_owner_can_resubmit(self):
        with pytest.raises(InvalidTransition) as exc_info:
            authorize(
                variant=TWO,
                current=S.ADDITIONAL_INFO_NEEDED,
                destination=S.PENDING,
                actor=actor(user_id="someone-else"),
                owner_id="citizen-1",
                resume_status=S.PENDING,
            )
        assert "applicant" in exc_info.value.details["reason"]

    def test_staff_cannot_resubmit_for_citizen(self):
        with pytest.raises(InvalidTransition):
            authorize(
                variant=TWO,
                current=S.ADDITIONAL_INFO_NEEDED,
                destination=S.PENDING,
                actor=actor(Role.CLERK),
                owner_id="citizen-1",
                resume_status=S.PENDING,
            )


class TestHelpers:
    def test_resume_status_defaults_to_pending(self):
        assert resume_status_for(None) is S.PENDING
        assert resume_status_for("staff_review") is S.STAFF_REVIEW

    def test_find_rule_ignores_unknown_pairs(self):
        assert find_rule(TWO, S.APPROVED, S.REJECTED) is None

    def test_progress_of_paused_application_uses_prior_state(self):
        assert progress_for(S.ADDITIONAL_INFO_NEEDED, TWO, S.STAFF_REVIEW) == progress_for(
            S.STAFF_REVIEW, TWO
        )
        assert progress_for(S.APPROVED, FOUR) == 100

    def test_actionable_statuses_for_staff_officer(self):
        assert actionable_statuses({Role.STAFF_OFFICER}) == {
            S.DOCUMENT_VERIFICATION,
            S.VERIFICATION_LEVEL_3,
            S.STAFF_REVIEW,
        }

    def test_citizen_has_no_queue(self):
        assert actionable_statuses({Role.CITIZEN}) == set()
