"""
Scheduled Background Tasks.

Tasks that run on a cron schedule. They are registered with the broker
together with schedule labels, which the TaskiqScheduler reads via
LabelScheduleSource.

Schedule Format:
    schedule=[{"cron": "*/15 * * * *"}]

The sweep schedule comes from notes.gc_cron in config/settings/notes.yaml.

Usage:
    from quicknote.backend.tasks.scheduled import register_scheduled_tasks
    register_scheduled_tasks()
"""

from typing import Any

from quicknote.backend.core.config import get_app_config
from quicknote.backend.core.database import Database
from quicknote.backend.core.logging import get_logger
from quicknote.backend.tasks.cleanup import purge_dead_notes

logger = get_logger(__name__)


async def sweep_dead_notes() -> dict[str, Any]:
    """
    Delete expired and exhausted notes.

    Opens its own Database per run; the scheduler process holds no
    connection between runs.
    """
    database = Database.from_config()
    try:
        await database.create_tables()
        return await purge_dead_notes(database)
    finally:
        await database.dispose()


def scheduled_tasks() -> dict[str, dict[str, Any]]:
    """Task name to function and schedule."""
    return {
        "sweep_dead_notes": {
            "function": sweep_dead_notes,
            "schedule": [{"cron": get_app_config().notes.gc_cron}],
            "retry_on_error": False,
        },
    }


def register_scheduled_tasks() -> dict[str, Any]:
    """
    Register scheduled task functions with the Taskiq broker.

    Returns:
        Dict mapping task names to registered task objects
    """
    from quicknote.backend.tasks.broker import get_broker

    broker = get_broker()
    registered = {}

    for task_name, config in scheduled_tasks().items():
        registered[task_name] = broker.task(
            task_name=task_name,
            schedule=config["schedule"],
            retry_on_error=config["retry_on_error"],
        )(config["function"])

    logger.info(
        "Scheduled tasks registered",
        extra={"task_count": len(registered), "tasks": list(registered)},
    )

    return registered
