"""
Integration Tests for concurrent view confirmation.

Each confirmation runs in its own session against a store with a real
connection pool (file-backed SQLite, or TEST_DATABASE_URL when set), so
only the conditional UPDATE limits the count.
"""

import asyncio
import os
from collections.abc import AsyncGenerator

import pytest

from quicknote.backend.core.database import Database
from quicknote.backend.models.base import Base
from quicknote.backend.repositories.note import NoteRepository

CONFIRMATIONS = 8


@pytest.fixture
async def pooled_database(tmp_path) -> AsyncGenerator[Database, None]:
    """Database where every session gets its own connection."""
    url = os.environ.get("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'notes.db'}"
    db = Database(url, echo=False)
    await db.create_tables()

    yield db

    async with db.engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await db.dispose()


async def confirm(database: Database, note_id: str, now: int) -> bool:
    async with database.session() as session:
        return await NoteRepository(session).increment_views(note_id, now)


async def views_count(database: Database, note_id: str) -> int:
    async with database.session() as session:
        return (await NoteRepository(session).get_by_id(note_id)).views_count


class TestConcurrentConfirmations:
    """At most max_views confirmations succeed, whatever the interleaving."""

    @pytest.mark.asyncio
    async def test_single_view_note_counts_once(self, pooled_database, note_fields, clock):
        async with pooled_database.session() as session:
            await NoteRepository(session).insert(
                **note_fields(id="once", max_views=1, delete_after_first_view=True)
            )

        results = await asyncio.gather(
            *(confirm(pooled_database, "once", clock()) for _ in range(CONFIRMATIONS))
        )

        assert results.count(True) == 1
        assert await views_count(pooled_database, "once") == 1

    @pytest.mark.asyncio
    async def test_limited_note_stops_at_max_views(self, pooled_database, note_fields, clock):
        async with pooled_database.session() as session:
            await NoteRepository(session).insert(**note_fields(id="three", max_views=3))

        results = await asyncio.gather(
            *(confirm(pooled_database, "three", clock()) for _ in range(CONFIRMATIONS))
        )

        assert results.count(True) == 3
        assert await views_count(pooled_database, "three") == 3
