"""Application submission, tracking and workflow endpoints"""

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from certportal.application.use_cases.applications.application_operations import (
    ApplicationService, first_milestones)
from certportal.application.use_cases.documents.document_operations import \
    DocumentService
from certportal.application.use_cases.workflows.workflow_engine import \
    WorkflowEngine
from certportal.domain.entities.actor import Actor
from certportal.domain.entities.applicant import ApplicantDetails
from certportal.domain.enums import ApplicationStatus
from certportal.presentation.api.dependencies import (
    get_application_service, get_application_service_transactional,
    get_current_actor, get_document_service,
    get_document_service_transactional, get_workflow_engine)
from certportal.presentation.api.v1.schemas.application import (
    ApplicationCreate, ApplicationResponse, ApplicationStatsResponse,
    ApplicationUpdate, AuditEntryResponse, AuditTrailResponse, Milestone,
    ResubmitRequest, TransitionRequest)
from certportal.presentation.api.v1.schemas.certificate import \
    CertificateResponse
from certportal.presentation.api.v1.schemas.document import DocumentResponse

router = APIRouter()


@router.post("/", response_model=ApplicationResponse, status_code=status.HTTP_201_CREATED)
async def submit_application(
    data: ApplicationCreate,
    actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[ApplicationService, Depends(get_application_service_transactional)],
):
    """
    Submit a new certificate application.

    The application starts in ``pending`` and is owned by the caller.
    """
    details = ApplicantDetails(**data.model_dump(exclude={"certificate_type"}))
    application = await service.submit(actor, data.certificate_type, details)
    return ApplicationResponse.from_model(application)


@router.get("/", response_model=list[ApplicationResponse])
async def list_applications(
    actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[ApplicationService, Depends(get_application_service)],
    scope: str = Query("mine", description="mine, stage or all"),
    status_filter: ApplicationStatus | None = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
):
    """
    List applications visible to the caller.

    - ``mine``: applications the caller submitted
    - ``stage``: applications waiting on one of the caller's roles
    - ``all``: every application (role holders only)
    """
    applications = await service.list_applications(
        actor, scope=scope, status=status_filter, skip=skip, limit=limit
    )
    return [ApplicationResponse.from_model(a) for a in applications]


@router.get("/stats", response_model=ApplicationStatsResponse)
async def application_stats(
    actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[ApplicationService, Depends(get_application_service)],
):
    """Dashboard counters for role holders"""
    stats = await service.stats(actor)
    return ApplicationStatsResponse(
        total=stats.total,
        pending=stats.pending,
        in_progress=stats.in_progress,
        approved_today=stats.approved_today,
        by_status=stats.by_status,
    )


@router.get("/{application_id}", response_model=ApplicationResponse)
async def get_application(
    application_id: str,
    actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[ApplicationService, Depends(get_application_service)],
):
    application = await service.get(application_id, actor)
    return ApplicationResponse.from_model(application)


@router.patch("/{application_id}", response_model=ApplicationResponse)
async def update_application(
    application_id: str,
    data: ApplicationUpdate,
    actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[ApplicationService, Depends(get_application_service_transactional)],
):
    """Edit applicant details while the application is still untouched in pending"""
    application = await service.update_applicant_details(
        application_id, actor, data.model_dump(exclude_unset=True)
    )
    return ApplicationResponse.from_model(application)


@router.post("/{application_id}/transitions", response_model=ApplicationResponse)
async def request_transition(
    application_id: str,
    data: TransitionRequest,
    actor: Annotated[Actor, Depends(get_current_actor)],
    engine: Annotated[WorkflowEngine, Depends(get_workflow_engine)],
):
    """
    Move an application to another status.

    Every request is checked against the workflow table for the application's
    variant and the caller's roles. Approving issues the certificate in the
    same transaction.
    """
    application = await engine.request_transition(
        application_id, data.status, actor, reason=data.reason
    )
    return ApplicationResponse.from_model(application)


@router.post("/{application_id}/resubmit", response_model=ApplicationResponse)
async def resubmit_application(
    application_id: str,
    data: ResubmitRequest,
    actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[ApplicationService, Depends(get_application_service_transactional)],
):
    """Answer an information request; the application resumes where it was paused"""
    application = await service.resubmit(application_id, actor, data.additional_info)
    return ApplicationResponse.from_model(application)


@router.get("/{application_id}/audit", response_model=AuditTrailResponse)
async def get_audit_trail(
    application_id: str,
    actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[ApplicationService, Depends(get_application_service)],
):
    """Full transition history plus the first time each milestone was reached"""
    entries = await service.audit_trail(application_id, actor)
    milestones = {
        kind: Milestone(
            occurred_at=entry.occurred_at,
            actor_id=entry.actor_id,
            actor_role=entry.actor_role,
        )
        for kind, entry in first_milestones(entries).items()
    }
    return AuditTrailResponse(
        application_id=application_id,
        entries=[AuditEntryResponse.model_validate(e) for e in entries],
        milestones=milestones,
    )


@router.get("/{application_id}/certificate", response_model=CertificateResponse)
async def get_application_certificate(
    application_id: str,
    actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[ApplicationService, Depends(get_application_service)],
):
    certificate = await service.certificate_for(application_id, actor)
    return CertificateResponse.model_validate(certificate)


@router.post(
    "/{application_id}/documents",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_document(
    application_id: str,
    actor: Annotated[Actor, Depends(get_current_actor)],
    doc_service: Annotated[DocumentService, Depends(get_document_service_transactional)],
    file: UploadFile = File(..., description="File to upload"),
    document_type: str = Form(..., description="Supporting document type"),
):
    """
    Attach a supporting document to an application.

    - Validates size and MIME type against configuration
    - Rejects a second copy of the same file (SHA-256 checksum)
    - Files are stored at applications/{code}/documents/{id}/{type}_{filename}
    """
    content = await file.read()
    document = await doc_service.upload_document(
        application_id=application_id,
        actor=actor,
        document_type=document_type,
        content=content,
        filename=file.filename or "document",
        mime_type=file.content_type or "application/octet-stream",
    )
    return DocumentResponse.model_validate(document)


@router.get("/{application_id}/documents", response_model=list[DocumentResponse])
async def list_documents(
    application_id: str,
    actor: Annotated[Actor, Depends(get_current_actor)],
    doc_service: Annotated[DocumentService, Depends(get_document_service)],
):
    documents = await doc_service.list_documents(application_id, actor)
    return [DocumentResponse.model_validate(d) for d in documents]
