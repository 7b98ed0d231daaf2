"""API tests for supporting document upload and download"""
import hashlib

PDF_BYTES = b"%PDF-1.4 salary slip"


async def create_application(client, headers, payload) -> str:
    response = await client.post("/applications/", json=payload, headers=headers)
    return response.json()["id"]


async def upload(client, app_id, headers, content=PDF_BYTES, mime="application/pdf", document_type="income_proof"):
    return await client.post(
        f"/applications/{app_id}/documents",
        files={"file": ("salary slip.pdf", content, mime)},
        data={"document_type": document_type},
        headers=headers,
    )


async def test_upload_and_download_document(client, citizen_headers, applicant_payload):
    """
    GIVEN a pending application
    WHEN the owner uploads a PDF and downloads it again
    THEN the same bytes come back with the stored name and type
    """
    app_id = await create_application(client, citizen_headers, applicant_payload)

    response = await upload(client, app_id, citizen_headers)

    assert response.status_code == 201, response.text
    document = response.json()
    assert document["checksum"] == hashlib.sha256(PDF_BYTES).hexdigest()
    assert document["document_name"] == "salary_slip.pdf"
    assert document["file_size"] == len(PDF_BYTES)

    download = await client.get(f"/documents/{document['id']}/download", headers=citizen_headers)

    assert download.status_code == 200
    assert download.content == PDF_BYTES
    assert download.headers["content-type"] == "application/pdf"
    assert 'filename="salary_slip.pdf"' in download.headers["content-disposition"]

    listed = await client.get(f"/applications/{app_id}/documents", headers=citizen_headers)
    assert [d["id"] for d in listed.json()] == [document["id"]]


async def test_disallowed_type_is_rejected(client, citizen_headers, applicant_payload):
    app_id = await create_application(client, citizen_headers, applicant_payload)

    response = await upload(client, app_id, citizen_headers, mime="application/zip")

    assert response.status_code == 422


async def test_other_citizen_cannot_upload_or_download(
    client, citizen_headers, auth_headers, applicant_payload
):
    app_id = await create_application(client, citizen_headers, applicant_payload)
    document = (await upload(client, app_id, citizen_headers)).json()
    stranger = auth_headers("citizen-2")

    upload_response = await upload(client, app_id, stranger, content=b"%PDF-1.4 other")
    download_response = await client.get(f"/documents/{document['id']}/download", headers=stranger)

    assert upload_response.status_code == 403
    assert download_response.status_code == 403


async def test_download_missing_document(client, citizen_headers):
    response = await client.get("/documents/missing/download", headers=citizen_headers)

    assert response.status_code == 404
