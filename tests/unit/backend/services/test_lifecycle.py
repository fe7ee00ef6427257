"""
Unit Tests for the Note Lifecycle Engine.

Expiry arithmetic and state classification, plus NoteLifecycle against a
mocked repository.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from quicknote.backend.core.exceptions import ValidationError
from quicknote.backend.services.lifecycle import (
    ExpiryUnit,
    NoteLifecycle,
    NoteState,
    compute_expires_at,
    evaluate,
)

NOW = 1_000_000


def make_note(**overrides):
    fields = {"expires_at": None, "max_views": None, "views_count": 0}
    fields.update(overrides)
    return SimpleNamespace(**fields)


class TestComputeExpiresAt:
    """Tests for relative expiry computation."""

    @pytest.mark.parametrize(
        "value,unit,expected",
        [
            (1, ExpiryUnit.MINUTES, NOW + 60_000),
            (2, "hours", NOW + 2 * 3_600_000),
            (30, "days", NOW + 30 * 86_400_000),
        ],
    )
    def test_units(self, value, unit, expected):
        assert compute_expires_at(value, unit, now_ms=NOW) == expected

    @pytest.mark.parametrize("value", [0, -5, 1.5, "3", True, None])
    def test_rejects_non_positive_or_non_integer(self, value):
        with pytest.raises(ValidationError):
            compute_expires_at(value, "minutes", now_ms=NOW)

    def test_rejects_unknown_unit(self):
        with pytest.raises(ValidationError):
            compute_expires_at(1, "weeks", now_ms=NOW)

    def test_defaults_to_current_time(self):
        assert compute_expires_at(1, "minutes") > NOW


class TestEvaluate:
    """Tests for note state classification."""

    def test_absent(self):
        assert evaluate(None, NOW) is NoteState.ABSENT

    def test_alive_without_limits(self):
        assert evaluate(make_note(), NOW) is NoteState.ALIVE

    def test_alive_at_exact_expiry(self):
        assert evaluate(make_note(expires_at=NOW), NOW) is NoteState.ALIVE

    def test_expired_by_time(self):
        assert evaluate(make_note(expires_at=NOW - 1), NOW) is NoteState.EXPIRED_BY_TIME

    def test_expired_by_views(self):
        note = make_note(max_views=1, views_count=1)
        assert evaluate(note, NOW) is NoteState.EXPIRED_BY_VIEWS

    def test_views_remaining_is_alive(self):
        note = make_note(max_views=3, views_count=2)
        assert evaluate(note, NOW) is NoteState.ALIVE

    def test_time_checked_before_views(self):
        note = make_note(expires_at=NOW - 1, max_views=1, views_count=1)
        assert evaluate(note, NOW) is NoteState.EXPIRED_BY_TIME


class TestNoteLifecycle:
    """Tests for NoteLifecycle with a mocked repository."""

    @pytest.fixture
    def repo(self):
        repo = MagicMock()
        repo.delete_dead = AsyncMock(return_value=0)
        repo.get_by_id_or_none = AsyncMock(return_value=None)
        repo.increment_views = AsyncMock(return_value=True)
        return repo

    @pytest.fixture
    def lifecycle(self, repo):
        return NoteLifecycle(repo, clock=lambda: NOW)

    @pytest.mark.asyncio
    async def test_fetch_sweeps_first(self, lifecycle, repo):
        repo.get_by_id_or_none.return_value = make_note()

        note = await lifecycle.fetch("abc")

        assert note is not None
        repo.delete_dead.assert_awaited_once_with(NOW)
        repo.get_by_id_or_none.assert_awaited_once_with("abc")

    @pytest.mark.asyncio
    async def test_fetch_without_sweep(self, repo):
        lifecycle = NoteLifecycle(repo, clock=lambda: NOW, collect_on_fetch=False)
        repo.get_by_id_or_none.return_value = make_note()

        await lifecycle.fetch("abc")

        repo.delete_dead.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_fetch_hides_dead_note(self, lifecycle, repo):
        """Read-time check applies even if the sweep missed the note."""
        repo.get_by_id_or_none.return_value = make_note(expires_at=NOW - 1)

        assert await lifecycle.fetch("abc") is None

    @pytest.mark.asyncio
    async def test_fetch_does_not_count_a_view(self, lifecycle, repo):
        repo.get_by_id_or_none.return_value = make_note(max_views=1)

        await lifecycle.fetch("abc")

        repo.increment_views.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_consume_view(self, lifecycle, repo):
        assert await lifecycle.consume_view("abc") is True
        repo.increment_views.assert_awaited_once_with("abc", NOW)

    @pytest.mark.asyncio
    async def test_consume_view_noop(self, lifecycle, repo):
        repo.increment_views.return_value = False
        assert await lifecycle.consume_view("abc") is False

    @pytest.mark.asyncio
    async def test_collect_garbage_explicit_time(self, lifecycle, repo):
        repo.delete_dead.return_value = 3

        assert await lifecycle.collect_garbage(now_ms=NOW + 5) == 3
        repo.delete_dead.assert_awaited_once_with(NOW + 5)

    @pytest.mark.asyncio
    async def test_state_of(self, lifecycle, repo):
        repo.get_by_id_or_none.return_value = make_note(max_views=2, views_count=2)

        state, note = await lifecycle.state_of("abc")

        assert state is NoteState.EXPIRED_BY_VIEWS
        assert note is not None

    def test_expires_at_uses_clock(self, lifecycle):
        assert lifecycle.expires_at(1, ExpiryUnit.MINUTES) == NOW + 60_000
