"""
SQLAlchemy Base Model.

Base class for all database models with common fields.
"""

from sqlalchemy import BigInteger
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from quicknote.backend.core.utils import utc_now_ms


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class CreatedAtMixin:
    """Mixin that adds a created_at timestamp in epoch milliseconds."""

    created_at: Mapped[int] = mapped_column(
        BigInteger,
        default=utc_now_ms,
        nullable=False,
    )
