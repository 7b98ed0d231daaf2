from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator

from certportal.shared.utils.clock import as_utc


class DocumentResponse(BaseModel):
    """Schema for document responses"""

    model_config = ConfigDict(from_attributes=True)

    id: str
    application_id: str
    document_type: str
    document_name: str
    mime_type: str
    file_size: int
    checksum: str
    storage_ref: str
    uploaded_by: str
    created_at: datetime

    @field_validator("checksum")
    @classmethod
    def validate_checksum(cls, v: str) -> str:
        # SHA-256 produces 64 hex characters
        if len(v) != 64:
            raise ValueError("Checksum must be a valid SHA-256 hash (64 characters)")
        return v.lower()

    @field_validator("created_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        return as_utc(v)
