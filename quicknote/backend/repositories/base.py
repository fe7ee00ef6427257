"""
Base Repository.

Base class for all repositories with common CRUD operations.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from quicknote.backend.core.exceptions import NotFoundError
from quicknote.backend.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository with common CRUD operations.

    Subclasses should set the model class:

        class NoteRepository(BaseRepository[Note]):
            model = Note
    """

    model: type[ModelType]

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, id: str) -> ModelType:
        """
        Get a single record by ID.

        Raises:
            NotFoundError: If record not found
        """
        instance = await self.get_by_id_or_none(id)

        if instance is None:
            raise NotFoundError(f"{self.model.__name__} not found")

        return instance

    async def get_by_id_or_none(self, id: str) -> ModelType | None:
        """
        Get a single record by ID, returning None if not found.

        Always reloads column values so that bulk UPDATEs issued earlier
        in the same session are visible.
        """
        result = await self.session.execute(
            select(self.model)
            .where(self.model.id == str(id))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def create(self, **kwargs: Any) -> ModelType:
        """Create a new record."""
        instance = self.model(**kwargs)
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def delete_where(self, *criteria: Any) -> int:
        """
        Delete every record matching the criteria.

        Returns:
            Number of deleted rows
        """
        result = await self.session.execute(
            delete(self.model)
            .where(*criteria)
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
        return result.rowcount or 0

    async def exists(self, id: str) -> bool:
        """Check if a record exists by ID."""
        result = await self.session.execute(
            select(self.model.id).where(self.model.id == str(id))
        )
        return result.scalar_one_or_none() is not None
