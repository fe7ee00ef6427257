"""
Task Scheduler Configuration.

Configures the Taskiq scheduler for the note sweep.
Uses LabelScheduleSource for the cron schedules attached at registration.

Usage:
    python cli.py --service scheduler

    # Or directly with taskiq
    taskiq scheduler quicknote.backend.tasks.scheduler:scheduler

Important:
    Run only ONE scheduler instance. Each instance sweeps on its own.
"""

from typing import TYPE_CHECKING

from quicknote.backend.core.logging import get_logger

logger = get_logger(__name__)

if TYPE_CHECKING:
    from taskiq import TaskiqScheduler


def create_scheduler() -> "TaskiqScheduler":
    """
    Create the Taskiq scheduler with the scheduled tasks registered.

    Registration happens here so that the `taskiq scheduler` process,
    which only imports this module, sees the tasks.
    """
    from taskiq import TaskiqScheduler
    from taskiq.schedule_sources import LabelScheduleSource

    from quicknote.backend.tasks.broker import get_broker
    from quicknote.backend.tasks.scheduled import register_scheduled_tasks

    broker = get_broker()
    register_scheduled_tasks()

    scheduler = TaskiqScheduler(
        broker=broker,
        sources=[LabelScheduleSource(broker)],
    )

    logger.info("Taskiq scheduler configured with LabelScheduleSource")

    return scheduler


_scheduler: "TaskiqScheduler | None" = None


def get_scheduler() -> "TaskiqScheduler":
    """Get the scheduler instance, creating it if necessary."""
    global _scheduler
    if _scheduler is None:
        _scheduler = create_scheduler()
    return _scheduler


def __getattr__(name: str):
    """Lazy attribute access for scheduler."""
    if name == "scheduler":
        return get_scheduler()
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
