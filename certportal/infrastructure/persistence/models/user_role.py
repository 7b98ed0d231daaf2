from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from certportal.infrastructure.persistence.database import Base
from certportal.infrastructure.persistence.models.mixins import (
    CreatedAtMixin, CuidMixin)


class UserRole(CuidMixin, CreatedAtMixin, Base):
    """Role assigned to a user. The citizen role is implicit and never stored."""

    __tablename__ = "user_role"

    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    role: Mapped[str] = mapped_column(String(32), nullable=False)
    assigned_by: Mapped[str | None] = mapped_column(String)

    __table_args__ = (UniqueConstraint("user_id", "role", name="uq_user_role"),)
