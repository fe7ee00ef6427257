"""
Note Lifecycle Engine.

Policy layer between the note store and the access façade. Decides whether
a stored note may still be delivered, counts views and removes dead notes.

States, observed on every fetch:
    ALIVE             - readable
    EXPIRED_BY_TIME   - expires_at is in the past
    EXPIRED_BY_VIEWS  - views_count reached max_views
    ABSENT            - no such row

Garbage collection runs before every fetch (unless disabled) and from the
optional background sweep. Read-time checks apply as well, so a dead note is
never delivered even if the sweep has not removed it yet.
"""

from collections.abc import Callable
from enum import Enum

from quicknote.backend.core.exceptions import ValidationError
from quicknote.backend.core.logging import get_logger
from quicknote.backend.core.utils import utc_now_ms
from quicknote.backend.models.note import Note
from quicknote.backend.repositories.note import NoteRepository

logger = get_logger(__name__)

Clock = Callable[[], int]


class NoteState(str, Enum):
    ALIVE = "alive"
    EXPIRED_BY_TIME = "expired_by_time"
    EXPIRED_BY_VIEWS = "expired_by_views"
    ABSENT = "absent"


class ExpiryUnit(str, Enum):
    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"


UNIT_MILLIS: dict[ExpiryUnit, int] = {
    ExpiryUnit.MINUTES: 60 * 1000,
    ExpiryUnit.HOURS: 60 * 60 * 1000,
    ExpiryUnit.DAYS: 24 * 60 * 60 * 1000,
}


def compute_expires_at(value: int, unit: ExpiryUnit | str, now_ms: int | None = None) -> int:
    """
    Absolute expiry timestamp for a relative duration.

    Args:
        value: Positive whole number of units
        unit: minutes, hours or days
        now_ms: Creation time in epoch milliseconds (defaults to now)

    Returns:
        Expiry time in epoch milliseconds

    Raises:
        ValidationError: If value is not a positive integer or unit is unknown
    """
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(
            "Expiry duration must be a positive integer",
            details={"expire_value": value},
        )
    try:
        unit = ExpiryUnit(unit)
    except ValueError as e:
        raise ValidationError(
            "Unknown expiry unit",
            details={"expire_unit": str(unit)},
        ) from e

    base = utc_now_ms() if now_ms is None else now_ms
    return base + value * UNIT_MILLIS[unit]


def evaluate(note: Note | None, now_ms: int) -> NoteState:
    """Classify a fetched note. Time expiry wins over view exhaustion."""
    if note is None:
        return NoteState.ABSENT
    if note.expires_at is not None and note.expires_at < now_ms:
        return NoteState.EXPIRED_BY_TIME
    if note.max_views is not None and (note.views_count or 0) >= note.max_views:
        return NoteState.EXPIRED_BY_VIEWS
    return NoteState.ALIVE


class NoteLifecycle:
    """
    Lifecycle engine bound to one note repository.

    Args:
        repo: Note store
        clock: Returns the current time in epoch milliseconds
        collect_on_fetch: Sweep dead notes before each fetch
    """

    def __init__(
        self,
        repo: NoteRepository,
        clock: Clock = utc_now_ms,
        collect_on_fetch: bool = True,
    ) -> None:
        self.repo = repo
        self.clock = clock
        self.collect_on_fetch = collect_on_fetch

    def expires_at(self, value: int, unit: ExpiryUnit | str) -> int:
        """compute_expires_at() against this engine's clock."""
        return compute_expires_at(value, unit, now_ms=self.clock())

    async def collect_garbage(self, now_ms: int | None = None) -> int:
        """
        Delete every dead note.

        Returns:
            Number of deleted notes
        """
        now = self.clock() if now_ms is None else now_ms
        deleted = await self.repo.delete_dead(now)
        if deleted:
            logger.info("Dead notes collected", extra={"deleted": deleted})
        return deleted

    async def state_of(self, note_id: str) -> tuple[NoteState, Note | None]:
        """Look up a note and classify it without sweeping."""
        note = await self.repo.get_by_id_or_none(note_id)
        return evaluate(note, self.clock()), note

    async def fetch(self, note_id: str) -> Note | None:
        """
        Return the note if it is still readable.

        Does not count a view: views are counted by consume_view() once the
        content has actually been shown.
        """
        if self.collect_on_fetch:
            await self.collect_garbage()

        state, note = await self.state_of(note_id)
        if state is not NoteState.ALIVE:
            logger.debug("Note not readable", extra={"note_id": note_id, "state": state.value})
            return None
        return note

    async def consume_view(self, note_id: str) -> bool:
        """
        Count one delivered view.

        No-op for absent, expired or exhausted notes.

        Returns:
            True if the view was counted
        """
        counted = await self.repo.increment_views(note_id, self.clock())
        logger.debug("View recorded", extra={"note_id": note_id, "counted": counted})
        return counted
