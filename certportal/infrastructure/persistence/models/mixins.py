"""
SQLAlchemy mixins for common model patterns.

These mixins provide reusable column definitions so that every table
carries identifiers, timestamps and version counters the same way.
"""
from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, declared_attr, mapped_column
from sqlalchemy.sql import func

from certportal.shared.utils.clock import utc_now
from certportal.shared.utils.generators import generate_cuid


class CuidMixin:
    """
    Mixin for models using CUID as primary key.

    Provides:
        - id: String primary key with automatic CUID generation
    """

    @declared_attr
    def id(cls) -> Mapped[str]:
        return mapped_column(String, primary_key=True, default=generate_cuid)


class CreatedAtMixin:
    """
    Creation timestamp for append-only rows.

    Provides:
        - created_at: Set once on insert
    """

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True),
            default=utc_now,
            server_default=func.now(),
            nullable=False,
        )


class TimestampMixin(CreatedAtMixin):
    """
    Mixin for timestamp tracking.

    Provides:
        - created_at: Timestamp set on creation
        - updated_at: Timestamp updated on modification

    Note: Values are produced client-side so they are populated on the
    instance after flush without a refresh round-trip.
    """

    @declared_attr
    def updated_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True),
            default=utc_now,
            onupdate=utc_now,
            server_default=func.now(),
            nullable=False,
        )


class VersionedMixin:
    """
    Optimistic locking with version tracking.

    Provides:
        - version: Integer counter incremented on each status change

    To detect conflicts:
        result = await db.execute(
            update(Model)
            .where(Model.id == id, Model.version == old_version)
            .values(data, version=old_version + 1)
        )
        if result.rowcount == 0:
            raise ConcurrentModification(...)
    """

    @declared_attr
    def version(cls) -> Mapped[int]:
        return mapped_column(Integer, default=1, nullable=False)
