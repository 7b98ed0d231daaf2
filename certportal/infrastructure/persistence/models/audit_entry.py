from datetime import datetime
from typing import Any

from sqlalchemy import (Connection, DateTime, ForeignKey, Index, Integer, String,
                        Text, UniqueConstraint, event)
from sqlalchemy.orm import Mapper, Mapped, mapped_column

from certportal.infrastructure.persistence.database import Base
from certportal.infrastructure.persistence.models.mixins import CuidMixin
from certportal.shared.utils.clock import utc_now


class ApplicationAuditEntry(CuidMixin, Base):
    """
    One row per status transition of an application.

    Note: Entries are append-only. The first entry of each transition kind
    is the authoritative "when and by whom" for that milestone.
    ``sequence`` numbers the entries of one application in insertion order;
    timestamps can tie.
    """

    __tablename__ = "application_audit_entry"

    application_id: Mapped[str] = mapped_column(
        String, ForeignKey("certificate_application.id"), nullable=False, index=True
    )
    transition: Mapped[str] = mapped_column(String(32), nullable=False)
    from_status: Mapped[str | None] = mapped_column(String(32))
    to_status: Mapped[str] = mapped_column(String(32), nullable=False)
    actor_id: Mapped[str] = mapped_column(String, nullable=False)
    actor_role: Mapped[str] = mapped_column(String(32), nullable=False)
    reason: Mapped[str | None] = mapped_column(Text)
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )

    __table_args__ = (
        UniqueConstraint("application_id", "sequence", name="uq_audit_application_sequence"),
        Index("ix_audit_application_occurred", "application_id", "occurred_at"),
        Index("ix_audit_to_status_occurred", "to_status", "occurred_at"),
    )


# Prevent updates to audit entries at ORM level
@event.listens_for(ApplicationAuditEntry, "before_update")
def prevent_audit_updates(
    _mapper: Mapper[Any],
    _connection: Connection,
    _target: "ApplicationAuditEntry",
) -> None:
    """Audit entries are append-only and cannot be modified after creation."""
    raise ValueError("Audit entries are immutable and cannot be updated.")
