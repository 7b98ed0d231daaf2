import asyncio
from abc import ABC
from collections.abc import Awaitable
from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from certportal.domain.exceptions import StoreUnavailable
from certportal.infrastructure.config.settings import get_settings
from certportal.infrastructure.exceptions import DuplicateKeyError
from certportal.infrastructure.persistence.database import Base

ModelType = TypeVar("ModelType", bound=Base)
T = TypeVar("T")


class BaseRepository(ABC, Generic[ModelType]):
    """
    Base repository implementing common CRUD operations.

    Every store round-trip goes through ``_run`` so that it carries the
    configured timeout and surfaces connectivity failures as StoreUnavailable.
    Subclasses should call super() methods to ensure proper lifecycle.
    """

    def __init__(
        self,
        db: AsyncSession,
        model: type[ModelType],
        timeout: float | None = None,
    ):
        self.db = db
        self.model = model
        self.timeout = timeout if timeout is not None else get_settings().store_timeout_seconds

    async def _run(self, awaitable: Awaitable[T], operation: str) -> T:
        """Await a store call with the repository timeout and error mapping"""
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except TimeoutError as e:
            raise StoreUnavailable(operation, f"timed out after {self.timeout}s") from e
        except IntegrityError as e:
            raise DuplicateKeyError(self.model.__tablename__, str(e.orig)) from e
        except DBAPIError as e:
            raise StoreUnavailable(operation, str(e.orig)) from e

    async def _execute(self, statement, operation: str):
        return await self._run(self.db.execute(statement), operation)

    async def get_by_id(self, id: str) -> ModelType | None:
        """Get a single record by ID"""
        # Cast to Any for SQLAlchemy dynamic attribute access (id comes from CuidMixin)
        model: Any = self.model
        result = await self._execute(
            select(self.model).where(model.id == id).execution_options(populate_existing=True),
            f"{self.model.__tablename__}.get_by_id",
        )
        return result.scalar_one_or_none()

    async def create(self, obj: ModelType) -> ModelType:
        """Create a new record and trigger the after-create hook"""
        self.db.add(obj)
        await self._run(self.db.flush(), f"{self.model.__tablename__}.create")
        await self._on_after_create(obj)
        return obj

    async def create_unique(self, obj: ModelType) -> ModelType:
        """
        Insert inside a savepoint so a unique-constraint conflict rolls back
        only this insert and leaves the surrounding transaction usable.

        Raises:
            DuplicateKeyError: A unique constraint rejected the row
        """
        operation = f"{self.model.__tablename__}.create"

        async def insert() -> None:
            async with self.db.begin_nested():
                self.db.add(obj)
                await self.db.flush()

        await self._run(insert(), operation)
        await self._on_after_create(obj)
        return obj

    async def update(self, obj: ModelType) -> ModelType:
        """Flush pending changes on a record and trigger the after-update hook"""
        await self._run(self.db.flush(), f"{self.model.__tablename__}.update")
        await self._on_after_update(obj)
        return obj

    async def delete(self, obj: ModelType) -> None:
        """Delete a record and trigger the before-delete hook"""
        await self._on_before_delete(obj)
        await self.db.delete(obj)
        await self._run(self.db.flush(), f"{self.model.__tablename__}.delete")

    # Lifecycle hooks - override in subclasses
    async def _on_after_create(self, obj: ModelType) -> None:
        """Hook called after creating a record."""
        pass

    async def _on_after_update(self, obj: ModelType) -> None:
        """Hook called after updating a record."""
        pass

    async def _on_before_delete(self, obj: ModelType) -> None:
        """Hook called before deleting a record."""
        pass
