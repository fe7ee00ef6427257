"""
Background Tasks Package.

Note garbage collection outside of the request path:
- purge_dead_notes: one-shot sweep (CLI `--service purge`)
- sweep_dead_notes: cron task run by the Taskiq scheduler (CLI `--service scheduler`)
"""

from quicknote.backend.tasks.cleanup import purge_dead_notes

__all__ = [
    "purge_dead_notes",
]
