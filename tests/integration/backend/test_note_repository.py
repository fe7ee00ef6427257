"""
Integration Tests for the Note Repository.

Runs against the test database from the root conftest.
"""

import pytest
from sqlalchemy.exc import IntegrityError

from quicknote.backend.core.exceptions import NotFoundError
from quicknote.backend.repositories.note import NoteRepository


@pytest.fixture
def repo(db_session) -> NoteRepository:
    return NoteRepository(db_session)


class TestInsertAndLookup:
    """Tests for insert and lookups."""

    @pytest.mark.asyncio
    async def test_insert_and_get(self, repo, note_fields):
        await repo.insert(**note_fields(id="abc"))

        note = await repo.get_by_id("abc")

        assert note.ciphertext == "Y2lwaGVydGV4dA=="
        assert note.views_count == 0
        assert note.views_remaining is None

    @pytest.mark.asyncio
    async def test_get_missing(self, repo):
        assert await repo.get_by_id_or_none("missing") is None
        with pytest.raises(NotFoundError):
            await repo.get_by_id("missing")

    @pytest.mark.asyncio
    async def test_exists(self, repo, note_fields):
        await repo.insert(**note_fields(id="abc"))

        assert await repo.exists("abc") is True
        assert await repo.exists("other") is False

    @pytest.mark.asyncio
    async def test_password_note_requires_salt(self, repo, note_fields):
        with pytest.raises(IntegrityError):
            await repo.insert(**note_fields(has_password=True, salt=None))

    @pytest.mark.asyncio
    async def test_salt_requires_password(self, repo, note_fields):
        with pytest.raises(IntegrityError):
            await repo.insert(**note_fields(has_password=False, salt="ab" * 16))

    @pytest.mark.asyncio
    async def test_duplicate_id(self, repo, note_fields, db_session):
        await repo.insert(**note_fields(id="abc"))
        db_session.expunge_all()
        with pytest.raises(IntegrityError):
            await repo.insert(**note_fields(id="abc"))


class TestIncrementViews:
    """Tests for the atomic conditional view counter."""

    @pytest.mark.asyncio
    async def test_stops_at_max_views(self, repo, note_fields, clock):
        await repo.insert(**note_fields(id="abc", max_views=2))

        results = [await repo.increment_views("abc", clock()) for _ in range(3)]

        assert results == [True, True, False]
        note = await repo.get_by_id("abc")
        assert note.views_count == 2
        assert note.views_remaining == 0

    @pytest.mark.asyncio
    async def test_unlimited(self, repo, note_fields, clock):
        await repo.insert(**note_fields(id="abc"))

        for _ in range(5):
            assert await repo.increment_views("abc", clock()) is True

        assert (await repo.get_by_id("abc")).views_count == 5

    @pytest.mark.asyncio
    async def test_expired_note_not_counted(self, repo, note_fields, clock):
        await repo.insert(**note_fields(id="abc", expires_at=clock() - 1))

        assert await repo.increment_views("abc", clock()) is False
        assert (await repo.get_by_id("abc")).views_count == 0

    @pytest.mark.asyncio
    async def test_counted_at_exact_expiry(self, repo, note_fields, clock):
        await repo.insert(**note_fields(id="abc", expires_at=clock()))

        assert await repo.increment_views("abc", clock()) is True

    @pytest.mark.asyncio
    async def test_missing_note(self, repo, clock):
        assert await repo.increment_views("missing", clock()) is False


class TestDeleteDead:
    """Tests for the garbage collection sweep."""

    @pytest.mark.asyncio
    async def test_deletes_only_dead_notes(self, repo, note_fields, clock):
        now = clock()
        await repo.insert(**note_fields(id="alive"))
        await repo.insert(**note_fields(id="future", expires_at=now + 1))
        await repo.insert(**note_fields(id="expired", expires_at=now - 1))
        await repo.insert(**note_fields(id="exhausted", max_views=1, views_count=1))
        await repo.insert(**note_fields(id="partial", max_views=3, views_count=2))

        deleted = await repo.delete_dead(now)

        assert deleted == 2
        assert await repo.count() == 3
        assert await repo.exists("expired") is False
        assert await repo.exists("exhausted") is False
        assert await repo.exists("partial") is True

    @pytest.mark.asyncio
    async def test_idempotent(self, repo, note_fields, clock):
        await repo.insert(**note_fields(id="expired", expires_at=clock() - 1))

        assert await repo.delete_dead(clock()) == 1
        assert await repo.delete_dead(clock()) == 0
