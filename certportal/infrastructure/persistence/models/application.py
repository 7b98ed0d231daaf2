from datetime import date, datetime

from sqlalchemy import Date, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from certportal.domain.enums import ApplicationStatus, WorkflowVariant
from certportal.infrastructure.persistence.database import Base
from certportal.infrastructure.persistence.models.mixins import (
    CuidMixin, TimestampMixin, VersionedMixin)
from certportal.shared.utils.clock import utc_now


class Application(CuidMixin, TimestampMixin, VersionedMixin, Base):
    """
    Certificate application submitted by a citizen.

    Inherits from:
        - CuidMixin: CUID primary key
        - TimestampMixin: created_at/updated_at
        - VersionedMixin: optimistic locking counter

    Note: status, info_requested_from, rejection_reason and
    additional_info_requested are written only by the workflow engine.
    Rows are never deleted.
    """

    __tablename__ = "certificate_application"

    application_code: Mapped[str] = mapped_column(String(32), nullable=False, unique=True, index=True)
    owner_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    certificate_type: Mapped[str] = mapped_column(String(32), nullable=False)

    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    father_name: Mapped[str] = mapped_column(String(200), nullable=False)
    date_of_birth: Mapped[date] = mapped_column(Date, nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False)
    phone_number: Mapped[str] = mapped_column(String(10), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    purpose: Mapped[str] = mapped_column(Text, nullable=False)
    additional_info: Mapped[str | None] = mapped_column(Text)

    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=ApplicationStatus.PENDING.value, index=True
    )
    workflow_variant: Mapped[str] = mapped_column(
        String(16), nullable=False, default=WorkflowVariant.TWO_STAGE.value
    )
    info_requested_from: Mapped[str | None] = mapped_column(String(32))
    rejection_reason: Mapped[str | None] = mapped_column(Text)
    additional_info_requested: Mapped[str | None] = mapped_column(Text)

    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )

    __table_args__ = (
        Index("ix_certificate_application_owner_status", "owner_id", "status"),
    )
