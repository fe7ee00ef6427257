"""
Note Model.

The only persisted entity. Holds ciphertext and the non-secret values
needed to decrypt it, plus the expiry policy.
"""

from sqlalchemy import BigInteger, CheckConstraint, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from quicknote.backend.models.base import Base, CreatedAtMixin


class Note(CreatedAtMixin, Base):
    """
    Note database model.

    View policy is an incrementing views_count with an optional max_views
    ceiling. delete_after_first_view notes always have max_views = 1.
    A note is exhausted once views_count >= max_views.

    Timestamps are epoch milliseconds; expires_at NULL means no time limit.
    """

    __tablename__ = "notes"
    __table_args__ = (
        CheckConstraint(
            "(salt IS NULL AND NOT has_password) OR (salt IS NOT NULL AND has_password)",
            name="ck_notes_salt_iff_password",
        ),
        CheckConstraint("views_count >= 0", name="ck_notes_views_count"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    ciphertext: Mapped[str] = mapped_column(Text, nullable=False)
    iv: Mapped[str] = mapped_column(String(64), nullable=False)
    salt: Mapped[str | None] = mapped_column(String(128), nullable=True)
    has_password: Mapped[bool] = mapped_column(default=False, nullable=False)
    expires_at: Mapped[int | None] = mapped_column(
        BigInteger,
        nullable=True,
        index=True,
    )
    max_views: Mapped[int | None] = mapped_column(Integer, nullable=True)
    views_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    delete_after_first_view: Mapped[bool] = mapped_column(default=False, nullable=False)

    @property
    def views_remaining(self) -> int | None:
        """Views left before the note is exhausted, None when unlimited."""
        if self.max_views is None:
            return None
        return max(self.max_views - (self.views_count or 0), 0)

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, has_password={self.has_password})>"
