"""Tests for DocumentService with local storage and in-memory repositories"""

import hashlib

import pytest

from certportal.application.use_cases.documents.document_operations import (
    DocumentService, sanitize_filename)
from certportal.domain.enums import ApplicationStatus, Role
from certportal.domain.exceptions import (AuthorizationException,
                                          ResourceNotFoundException,
                                          StoreUnavailable,
                                          ValidationException)
from certportal.infrastructure.exceptions import StorageNotFoundError
from fakes import (InMemoryApplicationRepository, InMemoryDocumentRepository,
                   make_actor, seed_application)

PDF_BYTES = b"%PDF-1.4 income proof"

citizen = make_actor("citizen-1")
clerk = make_actor("clerk-1", Role.CLERK)


@pytest.fixture
def application_repo():
    return InMemoryApplicationRepository()


@pytest.fixture
def document_repo():
    return InMemoryDocumentRepository()


@pytest.fixture
def doc_service(storage_service, document_repo, application_repo):
    return DocumentService(
        storage_service=storage_service,
        document_repo=document_repo,
        application_repo=application_repo,
        max_upload_size=1024,
        allowed_mime_types="application/pdf,image/png",
    )


async def upload(doc_service, app_id, content=PDF_BYTES, **overrides):
    kwargs = {
        "application_id": app_id,
        "actor": citizen,
        "document_type": "income_proof",
        "content": content,
        "filename": "salary slip.pdf",
        "mime_type": "application/pdf",
    }
    kwargs.update(overrides)
    return await doc_service.upload_document(**kwargs)


class TestUpload:
    async def test_upload_stores_file_and_metadata(
        self, doc_service, application_repo, storage_service
    ):
        """
        GIVEN a pending application
        WHEN the owner uploads a PDF
        THEN bytes land in storage and metadata links them to the application
        """
        app_id = seed_application(application_repo)
        code = application_repo.rows[app_id]["application_code"]

        document = await upload(doc_service, app_id)

        assert document.checksum == hashlib.sha256(PDF_BYTES).hexdigest()
        assert document.file_size == len(PDF_BYTES)
        assert document.document_name == "salary_slip.pdf"
        assert document.storage_ref == (
            f"applications/{code}/documents/{document.id}/income_proof_salary_slip.pdf"
        )
        assert await storage_service.exists(document.storage_ref)

    async def test_unknown_document_type_is_rejected(self, doc_service, application_repo):
        app_id = seed_application(application_repo)

        with pytest.raises(ValidationException) as exc_info:
            await upload(doc_service, app_id, document_type="passport_photo")
        assert exc_info.value.details["field"] == "document_type"

    async def test_empty_file_is_rejected(self, doc_service, application_repo):
        app_id = seed_application(application_repo)

        with pytest.raises(ValidationException):
            await upload(doc_service, app_id, content=b"")

    async def test_oversized_file_is_rejected(self, doc_service, application_repo):
        app_id = seed_application(application_repo)

        with pytest.raises(ValidationException, match="maximum size"):
            await upload(doc_service, app_id, content=b"x" * 1025)

    async def test_disallowed_mime_type_is_rejected(self, doc_service, application_repo):
        app_id = seed_application(application_repo)

        with pytest.raises(ValidationException, match="not allowed"):
            await upload(doc_service, app_id, mime_type="application/zip")

    async def test_mime_parameters_are_ignored(self, doc_service, application_repo):
        app_id = seed_application(application_repo)

        document = await upload(doc_service, app_id, mime_type="application/pdf; charset=binary")

        assert document.mime_type == "application/pdf"

    async def test_duplicate_file_is_rejected(self, doc_service, application_repo):
        app_id = seed_application(application_repo)
        await upload(doc_service, app_id)

        with pytest.raises(ValidationException, match="already attached"):
            await upload(doc_service, app_id, document_type="other")

    async def test_closed_application_refuses_documents(self, doc_service, application_repo):
        app_id = seed_application(application_repo, status=ApplicationStatus.REJECTED)

        with pytest.raises(ValidationException):
            await upload(doc_service, app_id)

    async def test_other_citizen_cannot_upload(self, doc_service, application_repo):
        app_id = seed_application(application_repo)

        with pytest.raises(AuthorizationException):
            await upload(doc_service, app_id, actor=make_actor("citizen-2"))

    async def test_missing_application_is_not_found(self, doc_service):
        with pytest.raises(ResourceNotFoundException):
            await upload(doc_service, "missing")

    async def test_failed_metadata_write_removes_stored_file(
        self, doc_service, application_repo, document_repo, storage_service
    ):
        app_id = seed_application(application_repo)
        document_repo.fail_next_create = StoreUnavailable("application_document.create", "timeout")

        with pytest.raises(StoreUnavailable):
            await upload(doc_service, app_id)

        code = application_repo.rows[app_id]["application_code"]
        assert not (storage_service.storage_root / "applications" / code).exists()


class TestDownload:
    async def test_staff_can_download(self, doc_service, application_repo):
        app_id = seed_application(application_repo)
        uploaded = await upload(doc_service, app_id)

        document, stream = await doc_service.open_download(uploaded.id, clerk)
        content = b"".join([chunk async for chunk in stream])

        assert document.id == uploaded.id
        assert content == PDF_BYTES

    async def test_other_citizen_cannot_download(self, doc_service, application_repo):
        app_id = seed_application(application_repo)
        uploaded = await upload(doc_service, app_id)

        with pytest.raises(AuthorizationException):
            await doc_service.open_download(uploaded.id, make_actor("citizen-2"))

    async def test_missing_bytes_raise_storage_not_found(
        self, doc_service, application_repo, storage_service
    ):
        app_id = seed_application(application_repo)
        uploaded = await upload(doc_service, app_id)
        await storage_service.delete(uploaded.storage_ref)

        with pytest.raises(StorageNotFoundError):
            await doc_service.open_download(uploaded.id, citizen)

    async def test_list_documents(self, doc_service, application_repo):
        app_id = seed_application(application_repo)
        await upload(doc_service, app_id)

        documents = await doc_service.list_documents(app_id, clerk)

        assert [d.document_type for d in documents] == ["income_proof"]


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("report.pdf", "report.pdf"),
        ("../../etc/passwd", "passwd"),
        ("my scan (1).png", "my_scan_1_.png"),
        ("", "document"),
    ],
)
def test_sanitize_filename(raw, expected):
    assert sanitize_filename(raw) == expected
