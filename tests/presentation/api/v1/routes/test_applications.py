"""API tests for application submission and the workflow endpoints"""
import asyncio

import pytest

from certportal.domain.enums import Role


@pytest.fixture
async def staff(grant_roles, auth_headers):
    """Role holders for the two-stage workflow"""
    await grant_roles("clerk-1", Role.CLERK)
    await grant_roles("staff-1", Role.STAFF_OFFICER)
    await grant_roles("sdo-1", Role.SDO)
    return {
        "clerk": auth_headers("clerk-1"),
        "staff": auth_headers("staff-1"),
        "sdo": auth_headers("sdo-1"),
    }


async def submit(client, headers, payload) -> dict:
    response = await client.post("/applications/", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def move(client, application_id, headers, status, reason=None):
    body = {"status": status}
    if reason is not None:
        body["reason"] = reason
    return await client.post(
        f"/applications/{application_id}/transitions", json=body, headers=headers
    )


async def test_requires_authentication(client, applicant_payload):
    response = await client.post("/applications/", json=applicant_payload)

    assert response.status_code == 401
    assert response.json()["error"] == "AUTHENTICATION_ERROR"


async def test_invalid_token_is_rejected(client):
    response = await client.get(
        "/applications/", headers={"Authorization": "Bearer not-a-token"}
    )

    assert response.status_code == 401


async def test_submit_application(client, citizen_headers, applicant_payload):
    """
    GIVEN a signed-in citizen
    WHEN they submit an income certificate application
    THEN it is created in pending with a generated code and normalized contact details
    """
    data = await submit(client, citizen_headers, applicant_payload)

    assert data["status"] == "pending"
    assert data["version"] == 1
    assert data["owner_id"] == "citizen-1"
    assert data["workflow_variant"] == "two_stage"
    assert data["application_code"].startswith("APP")
    assert data["email"] == "asha@example.com"
    assert data["progress"] == 10


async def test_submit_rejects_bad_phone(client, citizen_headers, applicant_payload):
    applicant_payload["phone_number"] = "12345"

    response = await client.post("/applications/", json=applicant_payload, headers=citizen_headers)

    assert response.status_code == 422


async def test_submit_rejects_unknown_certificate_type(client, citizen_headers, applicant_payload):
    applicant_payload["certificate_type"] = "birth"

    response = await client.post("/applications/", json=applicant_payload, headers=citizen_headers)

    assert response.status_code == 422


async def test_list_mine_and_visibility(client, citizen_headers, auth_headers, applicant_payload):
    created = await submit(client, citizen_headers, applicant_payload)

    mine = await client.get("/applications/", headers=citizen_headers)
    other = await client.get(f"/applications/{created['id']}", headers=auth_headers("citizen-2"))

    assert [a["id"] for a in mine.json()] == [created["id"]]
    assert other.status_code == 403


async def test_get_missing_application(client, citizen_headers):
    response = await client.get("/applications/missing", headers=citizen_headers)

    assert response.status_code == 404


async def test_stage_queue(client, citizen_headers, applicant_payload, staff):
    created = await submit(client, citizen_headers, applicant_payload)

    queue = await client.get("/applications/", params={"scope": "stage"}, headers=staff["clerk"])
    sdo_queue = await client.get("/applications/", params={"scope": "stage"}, headers=staff["sdo"])

    assert [a["id"] for a in queue.json()] == [created["id"]]
    assert sdo_queue.json() == []


async def test_citizen_cannot_list_all(client, citizen_headers):
    response = await client.get("/applications/", params={"scope": "all"}, headers=citizen_headers)

    assert response.status_code == 403


async def test_invalid_transition_returns_conflict(client, citizen_headers, applicant_payload, staff):
    """
    GIVEN a pending application
    WHEN the SDO tries to approve it directly
    THEN 409 is returned with the current and requested status and the caller's roles
    """
    created = await submit(client, citizen_headers, applicant_payload)

    response = await move(client, created["id"], staff["sdo"], "approved")

    assert response.status_code == 409
    body = response.json()
    assert body["error"] == "INVALID_TRANSITION"
    assert body["details"]["current_status"] == "pending"
    assert body["details"]["requested_status"] == "approved"
    assert body["details"]["actor_roles"] == ["citizen", "sdo"]

    unchanged = await client.get(f"/applications/{created['id']}", headers=citizen_headers)
    assert unchanged.json()["status"] == "pending"
    assert unchanged.json()["version"] == 1


async def test_rejection_requires_reason(client, citizen_headers, applicant_payload, staff):
    created = await submit(client, citizen_headers, applicant_payload)

    response = await move(client, created["id"], staff["clerk"], "rejected", reason="   ")

    assert response.status_code == 422
    assert response.json()["error"] == "MISSING_REASON"


async def test_full_approval_issues_verifiable_certificate(
    client, citizen_headers, applicant_payload, staff, notification_sink, notifier
):
    """
    GIVEN a submitted application
    WHEN every stage moves it forward and the SDO approves
    THEN a single certificate is issued that public verification accepts
    """
    created = await submit(client, citizen_headers, applicant_payload)
    app_id = created["id"]

    for headers, status in (
        (staff["clerk"], "document_verification"),
        (staff["staff"], "staff_review"),
        (staff["staff"], "awaiting_sdo"),
        (staff["sdo"], "approved"),
    ):
        response = await move(client, app_id, headers, status)
        assert response.status_code == 200, response.text

    final = response.json()
    assert final["status"] == "approved"
    assert final["version"] == 5
    assert final["progress"] == 100

    certificate = (await client.get(f"/applications/{app_id}/certificate", headers=citizen_headers)).json()
    assert certificate["certificate_number"].startswith("CERT")
    assert certificate["issued_to"] == "Asha Verma"

    verified = await client.get(f"/certificates/verify/{certificate['certificate_number']}")
    assert verified.status_code == 200
    body = verified.json()
    assert body["is_valid"] is True
    assert body["signature_valid"] is True
    assert body["certificate"]["application_id"] == app_id

    mine = await client.get("/certificates/mine", headers=citizen_headers)
    assert [c["certificate_number"] for c in mine.json()] == [certificate["certificate_number"]]

    await notifier.drain()
    assert [n.new_status for n in notification_sink.sent] == [
        "document_verification",
        "staff_review",
        "awaiting_sdo",
        "approved",
    ]

    trail = (await client.get(f"/applications/{app_id}/audit", headers=citizen_headers)).json()
    assert [e["transition"] for e in trail["entries"]] == [
        "submitted",
        "documents_verified",
        "staff_reviewed",
        "forwarded_to_sdo",
        "approved",
    ]
    assert trail["milestones"]["approved"]["actor_id"] == "sdo-1"


async def test_second_approval_is_refused(client, citizen_headers, applicant_payload, staff):
    created = await submit(client, citizen_headers, applicant_payload)
    app_id = created["id"]
    await move(client, app_id, staff["clerk"], "document_verification")
    await move(client, app_id, staff["staff"], "staff_review")
    await move(client, app_id, staff["staff"], "awaiting_sdo")
    await move(client, app_id, staff["sdo"], "approved")

    again = await move(client, app_id, staff["sdo"], "approved")

    assert again.status_code == 409


async def test_info_request_and_resubmission(client, citizen_headers, applicant_payload, staff):
    """
    GIVEN an application in staff review
    WHEN staff ask for more information and the citizen answers
    THEN the application resumes in staff review
    """
    created = await submit(client, citizen_headers, applicant_payload)
    app_id = created["id"]
    await move(client, app_id, staff["clerk"], "document_verification")
    await move(client, app_id, staff["staff"], "staff_review")

    paused = await move(client, app_id, staff["staff"], "additional_info_needed", "Upload a clearer income proof")
    assert paused.json()["status"] == "additional_info_needed"
    assert paused.json()["additional_info_requested"] == "Upload a clearer income proof"

    resumed = await client.post(
        f"/applications/{app_id}/resubmit",
        json={"additional_info": "Uploaded a new scan"},
        headers=citizen_headers,
    )

    assert resumed.status_code == 200, resumed.text
    assert resumed.json()["status"] == "staff_review"
    assert resumed.json()["additional_info"] == "Uploaded a new scan"


async def test_rejection_records_reason(client, citizen_headers, applicant_payload, staff):
    created = await submit(client, citizen_headers, applicant_payload)

    response = await move(client, created["id"], staff["clerk"], "rejected", "Income proof is illegible")

    assert response.status_code == 200
    assert response.json()["status"] == "rejected"
    assert response.json()["rejection_reason"] == "Income proof is illegible"


async def test_update_pending_application(client, citizen_headers, applicant_payload):
    created = await submit(client, citizen_headers, applicant_payload)

    response = await client.patch(
        f"/applications/{created['id']}",
        json={"address": "45 Mall Road, Kanpur"},
        headers=citizen_headers,
    )

    assert response.status_code == 200
    assert response.json()["address"] == "45 Mall Road, Kanpur"


async def test_concurrent_approvals_issue_one_certificate(
    client, citizen_headers, applicant_payload, staff
):
    created = await submit(client, citizen_headers, applicant_payload)
    app_id = created["id"]
    await move(client, app_id, staff["clerk"], "document_verification")
    await move(client, app_id, staff["staff"], "staff_review")
    await move(client, app_id, staff["staff"], "awaiting_sdo")

    responses = await asyncio.gather(
        *(move(client, app_id, staff["sdo"], "approved") for _ in range(5))
    )

    codes = sorted(r.status_code for r in responses)
    assert codes.count(200) == 1
    assert all(code in (200, 409, 503) for code in codes)
    final = await client.get(f"/applications/{app_id}", headers=citizen_headers)
    assert final.json()["version"] == 5
    mine = await client.get("/certificates/mine", headers=citizen_headers)
    assert len(mine.json()) == 1


async def test_stats_for_staff(client, citizen_headers, applicant_payload, staff):
    await submit(client, citizen_headers, applicant_payload)

    response = await client.get("/applications/stats", headers=staff["clerk"])
    forbidden = await client.get("/applications/stats", headers=citizen_headers)

    assert response.status_code == 200
    assert response.json()["pending"] == 1
    assert forbidden.status_code == 403
