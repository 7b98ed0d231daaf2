"""Unit of work: commit, rollback and after-commit side effects"""
from datetime import date

import pytest

from certportal.domain.enums import ApplicationStatus, Role
from certportal.infrastructure.persistence.database import (after_commit,
                                                            transaction)
from certportal.infrastructure.persistence.models.application import \
    Application
from certportal.presentation.api.dependencies import build_workflow_engine
from fakes import make_actor

clerk = make_actor("clerk-1", Role.CLERK)


@pytest.fixture
async def application_id(session_factory) -> str:
    async with transaction(session_factory) as session:
        application = Application(
            application_code="APP2026TXTESTCODE0",
            owner_id="citizen-1",
            certificate_type="income",
            full_name="Asha Verma",
            father_name="Ramesh Verma",
            date_of_birth=date(1990, 5, 17),
            address="12 Station Road, Lucknow",
            phone_number="9876543210",
            email="asha@example.com",
            purpose="Scholarship",
        )
        session.add(application)
        await session.flush()
        return application.id


async def stored_status(session_factory, application_id: str) -> str:
    async with session_factory() as session:
        application = await session.get(Application, application_id)
        return application.status


async def test_rolled_back_transition_sends_no_notification(
    session_factory, application_id, notifier, notification_sink
):
    """
    GIVEN a transition that succeeded inside a transaction
    WHEN the transaction rolls back afterwards
    THEN the status is unchanged and the owner is never notified
    """
    with pytest.raises(RuntimeError):
        async with transaction(session_factory) as session:
            engine = build_workflow_engine(session, notifier)
            await engine.request_transition(
                application_id, ApplicationStatus.DOCUMENT_VERIFICATION, clerk
            )
            raise RuntimeError("request failed after the transition")

    await notifier.drain()

    assert notification_sink.sent == []
    assert await stored_status(session_factory, application_id) == "pending"


async def test_notification_waits_for_commit(
    session_factory, application_id, notifier, notification_sink
):
    async with transaction(session_factory) as session:
        engine = build_workflow_engine(session, notifier)
        await engine.request_transition(
            application_id, ApplicationStatus.DOCUMENT_VERIFICATION, clerk
        )
        await notifier.drain()
        assert notification_sink.sent == []

    await notifier.drain()

    assert [(n.new_status, n.recipient) for n in notification_sink.sent] == [
        ("document_verification", "citizen-1")
    ]
    assert await stored_status(session_factory, application_id) == "document_verification"


async def test_failing_callback_keeps_commit(session_factory, application_id):
    calls = []

    def broken():
        raise ConnectionError("cache down")

    async with transaction(session_factory) as session:
        application = await session.get(Application, application_id)
        application.purpose = "Admission"
        after_commit(session, broken)
        after_commit(session, lambda: calls.append("second"))

    assert calls == ["second"]
    async with session_factory() as session:
        assert (await session.get(Application, application_id)).purpose == "Admission"
