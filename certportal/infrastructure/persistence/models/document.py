from sqlalchemy import BigInteger, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from certportal.infrastructure.persistence.database import Base
from certportal.infrastructure.persistence.models.mixins import (
    CuidMixin, TimestampMixin)


class ApplicationDocument(CuidMixin, TimestampMixin, Base):
    """
    Supporting document attached to an application.

    Only metadata lives here; the bytes are held by the storage backend
    under storage_ref.
    """

    __tablename__ = "application_document"

    application_id: Mapped[str] = mapped_column(
        String, ForeignKey("certificate_application.id"), nullable=False, index=True
    )
    document_type: Mapped[str] = mapped_column(String(32), nullable=False)
    document_name: Mapped[str] = mapped_column(String(255), nullable=False)
    mime_type: Mapped[str] = mapped_column(String(100), nullable=False)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    checksum: Mapped[str] = mapped_column(String(64), nullable=False)
    storage_ref: Mapped[str] = mapped_column(String(500), nullable=False, unique=True)
    uploaded_by: Mapped[str] = mapped_column(String, nullable=False)

    __table_args__ = (
        Index("ix_application_document_checksum", "application_id", "checksum"),
    )
