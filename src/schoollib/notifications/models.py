"""SQLAlchemy models for notifications.

Tables:
- notifications: Reminders and overdue notices derived from the loan ledger
"""

from typing import Optional

from sqlalchemy import Boolean, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ..db.models import Base, generate_uuid, utc_now
from .schemas import NotificationSeverity


class Notification(Base):
    """Notification model.

    A missing user_id means the notification is addressed to every admin.
    """

    __tablename__ = "notifications"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True
    )

    # What the notice refers to
    book_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("books.id", ondelete="SET NULL"), index=True
    )
    loan_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("loans.id", ondelete="SET NULL")
    )
    kind: Mapped[Optional[str]] = mapped_column(String(20))

    # Content
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    severity: Mapped[str] = mapped_column(String(10), default=NotificationSeverity.INFO.value)

    # State
    is_read: Mapped[bool] = mapped_column(Boolean, default=False)
    date: Mapped[str] = mapped_column(String(10), nullable=False, index=True)  # ISO date

    # Timestamps
    created_at: Mapped[str] = mapped_column(String(32), default=utc_now)

    def __repr__(self) -> str:
        return f"<Notification(id={self.id}, user_id={self.user_id}, kind={self.kind}, date={self.date})>"

    @property
    def dedup_key(self) -> tuple[Optional[str], Optional[str], str]:
        """At most one notification per (user, book, day)."""
        return (self.user_id, self.book_id, self.date)
