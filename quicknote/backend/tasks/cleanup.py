"""
Note Cleanup Tasks.

Garbage collection outside of the fetch path. Fetches already sweep dead
notes; this runs the same sweep from the CLI and from the scheduled
sweep_dead_notes task.

Usage:
    from quicknote.backend.tasks.cleanup import purge_dead_notes
    result = await purge_dead_notes(database)

    python cli.py --service purge
"""

from typing import Any

from quicknote.backend.core.database import Database
from quicknote.backend.core.logging import get_logger, log_with_source
from quicknote.backend.core.utils import utc_now, utc_now_ms
from quicknote.backend.repositories.note import NoteRepository
from quicknote.backend.services.lifecycle import Clock, NoteLifecycle

logger = get_logger(__name__)


async def purge_dead_notes(database: Database, clock: Clock = utc_now_ms) -> dict[str, Any]:
    """
    Delete expired and exhausted notes.

    Args:
        database: Note store
        clock: Returns the current time in epoch milliseconds

    Returns:
        Cleanup statistics
    """
    async with database.session() as session:
        lifecycle = NoteLifecycle(NoteRepository(session), clock=clock)
        deleted = await lifecycle.collect_garbage()

    result = {
        "status": "completed",
        "deleted": deleted,
        "completed_at": utc_now().isoformat(),
    }
    log_with_source(logger, "tasks", "info", "Note sweep completed", **result)
    return result
