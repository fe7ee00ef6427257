"""
Note Repository.

Data access layer for notes. Every operation is a single statement, so
each is atomic at the row level and a note is never partially written.
"""

from typing import Any

from sqlalchemy import ColumnElement, and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from quicknote.backend.models.note import Note
from quicknote.backend.repositories.base import BaseRepository


def expired_by_time(now_ms: int) -> ColumnElement[bool]:
    """Predicate: expires_at is set and in the past."""
    return and_(Note.expires_at.is_not(None), Note.expires_at < now_ms)


def exhausted_by_views() -> ColumnElement[bool]:
    """Predicate: the view ceiling has been reached."""
    return and_(Note.max_views.is_not(None), Note.views_count >= Note.max_views)


def is_dead(now_ms: int) -> ColumnElement[bool]:
    """Predicate: any expiry condition holds."""
    return or_(expired_by_time(now_ms), exhausted_by_views())


class NoteRepository(BaseRepository[Note]):
    """
    Repository for Note model.

    Inherits lookups from BaseRepository and adds the atomic view
    counter and the garbage collection sweep.
    """

    model = Note

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)

    async def insert(self, **fields: Any) -> Note:
        """Insert a new note."""
        return await self.create(**fields)

    async def delete_dead(self, now_ms: int) -> int:
        """
        Delete every note that has expired by time or views.

        Blind delete by predicate: idempotent and safe to run concurrently
        with itself and with reads.

        Returns:
            Number of deleted notes
        """
        return await self.delete_where(is_dead(now_ms))

    async def increment_views(self, id: str, now_ms: int) -> bool:
        """
        Count one view, only if the note is still readable.

        Single conditional UPDATE; the affected-row count tells whether this
        caller won. Concurrent callers can never push views_count past
        max_views.

        Returns:
            True if the view was counted
        """
        result = await self.session.execute(
            update(Note)
            .where(
                Note.id == id,
                or_(Note.max_views.is_(None), Note.views_count < Note.max_views),
                or_(Note.expires_at.is_(None), Note.expires_at >= now_ms),
            )
            .values(views_count=Note.views_count + 1)
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
        return (result.rowcount or 0) > 0

    async def count(self) -> int:
        """Get count of stored notes, alive or not."""
        result = await self.session.execute(select(func.count()).select_from(Note))
        return result.scalar_one()
