"""SQLAlchemy models for book lending.

Tables:
- loans: Individual loan records (the ledger)
"""

from datetime import date
from typing import Optional

from sqlalchemy import ColumnElement, ForeignKey, String, and_, or_
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..db.models import Base, Book, User, generate_uuid, utc_now
from .schemas import LoanStatus
from .status import days_until_due, effective_status, is_overdue


class Loan(Base):
    """Loan model - one copy of a book checked out by one user."""

    __tablename__ = "loans"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    book_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("books.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    # Status
    status: Mapped[str] = mapped_column(String(20), default=LoanStatus.BORROWED.value, index=True)

    # Dates
    loan_date: Mapped[str] = mapped_column(String(10), nullable=False)  # ISO date
    due_date: Mapped[str] = mapped_column(String(10), nullable=False, index=True)  # ISO date
    return_date: Mapped[Optional[str]] = mapped_column(String(10))  # ISO date

    # Timestamps
    created_at: Mapped[str] = mapped_column(String(32), default=utc_now)
    updated_at: Mapped[str] = mapped_column(String(32), default=utc_now, onupdate=utc_now)

    # Relationships
    book: Mapped["Book"] = relationship("Book")
    user: Mapped["User"] = relationship("User")

    def __repr__(self) -> str:
        return f"<Loan(id={self.id}, book_id={self.book_id}, user_id={self.user_id}, status={self.status})>"

    @property
    def is_returned(self) -> bool:
        """Check if the loan is closed."""
        return self.status == LoanStatus.RETURNED.value

    def is_overdue(self, today: date) -> bool:
        """Check if loan is overdue on the given day."""
        return is_overdue(self.status, self.due_date, today)

    def effective_status(self, today: date) -> LoanStatus:
        """Derived status on the given day."""
        return effective_status(self.status, self.due_date, today)

    def days_until_due(self, today: date) -> int:
        """Days until due (negative if overdue)."""
        return days_until_due(self.due_date, today)

    def days_overdue(self, today: date) -> int:
        """Days overdue (0 if not overdue)."""
        if not self.is_overdue(today):
            return 0
        return max(0, -self.days_until_due(today))

    @classmethod
    def open_clause(cls) -> ColumnElement[bool]:
        """SQL filter for loans still holding a copy."""
        return cls.status != LoanStatus.RETURNED.value

    @classmethod
    def overdue_clause(cls, today: date) -> ColumnElement[bool]:
        """SQL form of the overdue rule in `lending.status`.

        ISO date strings sort like dates, so comparing them is a
        date-only comparison.
        """
        return or_(
            cls.status == LoanStatus.OVERDUE.value,
            and_(
                cls.status != LoanStatus.RETURNED.value,
                cls.due_date < today.isoformat(),
            ),
        )
