"""Pydantic schemas for book lending."""

from datetime import date
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class LoanStatus(str, Enum):
    """Status of a loan.

    Only BORROWED and RETURNED are ever written by the ledger. OVERDUE is
    accepted when stored by older data, and otherwise derived at read time.
    """

    BORROWED = "borrowed"
    RETURNED = "returned"
    OVERDUE = "overdue"


class LoanCreate(BaseModel):
    """Schema for checking out a book."""

    user_id: UUID
    book_id: UUID
    loan_date: date
    due_date: date

    @field_validator("due_date")
    @classmethod
    def due_after_loan(cls, v, info):
        """Validate due date is not before loan date."""
        if "loan_date" in info.data and v < info.data["loan_date"]:
            raise ValueError("due_date must not be before loan_date")
        return v


class LoanSummary(BaseModel):
    """Summary of a loan for listing."""

    id: UUID
    book_title: str
    user_name: str
    status: LoanStatus
    loan_date: date
    due_date: date
    days_until_due: int
    days_overdue: int


class LendingStats(BaseModel):
    """Dashboard counters."""

    total_books: int
    total_copies: int
    available_copies: int
    total_users: int
    total_assets: int
    active_loans: int
    overdue_loans: int
    returned_loans: int


class OverdueReport(BaseModel):
    """Report of overdue loans."""

    loans: list[LoanSummary]
    total_overdue: int
    oldest_overdue_days: int


class BookLoanCount(BaseModel):
    """How often one title was borrowed."""

    title: str
    count: int


class LoanReport(BaseModel):
    """Loan statistics for a date range and category."""

    start: Optional[date] = None
    end: Optional[date] = None
    category: Optional[str] = None
    total_loans: int
    returned: int
    overdue: int
    active_on_time: int
    top_books: list[BookLoanCount] = Field(default_factory=list)
