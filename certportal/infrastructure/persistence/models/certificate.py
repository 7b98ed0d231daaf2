from datetime import date, datetime
from typing import Any

from sqlalchemy import (Connection, Date, ForeignKey, String, Text,
                        event)
from sqlalchemy.orm import Mapper, Mapped, mapped_column

from certportal.infrastructure.persistence.database import Base
from certportal.infrastructure.persistence.models.mixins import (
    CreatedAtMixin, CuidMixin)


class Certificate(CuidMixin, CreatedAtMixin, Base):
    """
    Certificate issued when an application is approved.

    Note: application_id is unique, so an application can never carry a
    second certificate even under concurrent approval.
    """

    __tablename__ = "certificate"

    certificate_number: Mapped[str] = mapped_column(String(32), nullable=False, unique=True, index=True)
    certificate_type: Mapped[str] = mapped_column(String(32), nullable=False)
    issued_to: Mapped[str] = mapped_column(String(200), nullable=False)
    issued_date: Mapped[date] = mapped_column(Date, nullable=False)
    valid_until: Mapped[date | None] = mapped_column(Date)
    digital_signature: Mapped[str] = mapped_column(Text, nullable=False)
    application_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("certificate_application.id"),
        nullable=False,
        unique=True,
    )


@event.listens_for(Certificate, "before_update")
def prevent_certificate_updates(
    _mapper: Mapper[Any],
    _connection: Connection,
    _target: "Certificate",
) -> None:
    """Issued certificates are immutable."""
    raise ValueError("Certificates are immutable and cannot be updated.")
