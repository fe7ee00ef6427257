"""
Taskiq Broker Configuration.

Notes have no result to hand back and the sweep is a single idempotent
DELETE, so the in-memory broker runs tasks inside the scheduler process.
No queue server is needed.

Usage:
    from quicknote.backend.tasks.broker import get_broker
    broker = get_broker()

    # Or directly with taskiq
    taskiq scheduler quicknote.backend.tasks.scheduler:scheduler
"""

from typing import TYPE_CHECKING

from quicknote.backend.core.logging import get_logger

logger = get_logger(__name__)

if TYPE_CHECKING:
    from taskiq import InMemoryBroker


def create_broker() -> "InMemoryBroker":
    """
    Create and configure the Taskiq broker.

    Returns:
        Configured InMemoryBroker instance
    """
    from taskiq import InMemoryBroker

    broker = InMemoryBroker()

    logger.debug("Taskiq broker configured", extra={"broker": "in_memory"})

    return broker


_broker: "InMemoryBroker | None" = None


def get_broker() -> "InMemoryBroker":
    """
    Get the broker instance, creating it if necessary.

    Returns:
        Configured broker instance
    """
    global _broker
    if _broker is None:
        _broker = create_broker()
    return _broker


def __getattr__(name: str):
    """Lazy attribute access for broker."""
    if name == "broker":
        return get_broker()
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
