from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from certportal.domain.enums import (ApplicationStatus, CertificateType,
                                     WorkflowVariant)
from certportal.domain.workflow import progress_for, resume_status_for
from certportal.shared.utils.clock import as_utc


class ApplicantFields(BaseModel):
    """Personal details entered by the applicant"""

    full_name: str = Field(..., max_length=200)
    father_name: str = Field(..., max_length=200)
    date_of_birth: date
    address: str
    phone_number: str = Field(..., max_length=20)
    email: str = Field(..., max_length=320)
    purpose: str
    additional_info: str | None = None


class ApplicationCreate(ApplicantFields):
    """Schema for submitting an application"""

    certificate_type: CertificateType


class ApplicationUpdate(BaseModel):
    """Schema for editing applicant fields while the application is still pending"""

    model_config = ConfigDict(extra="forbid")

    full_name: str | None = Field(None, max_length=200)
    father_name: str | None = Field(None, max_length=200)
    date_of_birth: date | None = None
    address: str | None = None
    phone_number: str | None = Field(None, max_length=20)
    email: str | None = Field(None, max_length=320)
    purpose: str | None = None
    additional_info: str | None = None


class TransitionRequest(BaseModel):
    """Schema for requesting a status change"""

    status: ApplicationStatus = Field(..., description="Requested destination status")
    reason: str | None = Field(None, max_length=2000)


class ResubmitRequest(BaseModel):
    """Schema for answering an information request"""

    additional_info: str | None = Field(None, max_length=4000)


class ApplicationResponse(BaseModel):
    """Schema for application responses"""

    model_config = ConfigDict(from_attributes=True)

    id: str
    application_code: str
    owner_id: str
    certificate_type: str
    full_name: str
    father_name: str
    date_of_birth: date
    address: str
    phone_number: str
    email: str
    purpose: str
    additional_info: str | None
    status: str
    workflow_variant: str
    info_requested_from: str | None
    rejection_reason: str | None
    additional_info_requested: str | None
    version: int
    progress: int = 0
    submitted_at: datetime
    created_at: datetime
    updated_at: datetime

    @field_validator("submitted_at", "created_at", "updated_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        return as_utc(v)

    @classmethod
    def from_model(cls, application) -> "ApplicationResponse":
        response = cls.model_validate(application)
        status = ApplicationStatus(application.status)
        resume = (
            resume_status_for(application.info_requested_from)
            if status is ApplicationStatus.ADDITIONAL_INFO_NEEDED
            else None
        )
        response.progress = progress_for(
            status, WorkflowVariant(application.workflow_variant), resume
        )
        return response


class AuditEntryResponse(BaseModel):
    """Schema for one audit trail entry"""

    model_config = ConfigDict(from_attributes=True)

    id: str
    transition: str
    from_status: str | None
    to_status: str
    actor_id: str
    actor_role: str
    reason: str | None
    occurred_at: datetime

    @field_validator("occurred_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        return as_utc(v)


class Milestone(BaseModel):
    occurred_at: datetime
    actor_id: str
    actor_role: str


class AuditTrailResponse(BaseModel):
    """Audit trail with the first occurrence of each transition kind"""

    application_id: str
    entries: list[AuditEntryResponse]
    milestones: dict[str, Milestone]


class ApplicationStatsResponse(BaseModel):
    total: int
    pending: int
    in_progress: int
    approved_today: int
    by_status: dict[str, int]
