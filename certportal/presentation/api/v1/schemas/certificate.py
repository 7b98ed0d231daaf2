from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, field_validator

from certportal.shared.utils.clock import as_utc


class CertificateResponse(BaseModel):
    """Schema for certificate responses"""

    model_config = ConfigDict(from_attributes=True)

    id: str
    certificate_number: str
    certificate_type: str
    issued_to: str
    issued_date: date
    valid_until: date | None
    digital_signature: str
    application_id: str
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        return as_utc(v)


class CertificateVerificationResponse(BaseModel):
    """Public authenticity check result"""

    certificate: CertificateResponse
    is_valid: bool
    signature_valid: bool
