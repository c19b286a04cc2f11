"""Derived loan status.

A loan is overdue on a given day if its stored status is OVERDUE, or if
it is not RETURNED and its due date is strictly before that day. Dates
are compared without time of day. Dashboards, filters, reports and
notifications all go through these helpers (or `Loan.overdue_clause`,
the same rule expressed in SQL) and never persist the result.
"""

from datetime import date
from typing import Union

from .schemas import LoanStatus

DateLike = Union[date, str]


def as_date(value: DateLike) -> date:
    """Coerce an ISO date string (or date) to a date."""
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def days_until_due(due_date: DateLike, today: date) -> int:
    """Whole days from today until the due date (negative once past)."""
    return (as_date(due_date) - today).days


def is_overdue(status: str, due_date: DateLike, today: date) -> bool:
    """Apply the overdue rule."""
    if status == LoanStatus.OVERDUE.value:
        return True
    if status == LoanStatus.RETURNED.value:
        return False
    return as_date(due_date) < today


def effective_status(status: str, due_date: DateLike, today: date) -> LoanStatus:
    """Status to display: borrowed, overdue or returned."""
    if status == LoanStatus.RETURNED.value:
        return LoanStatus.RETURNED
    if is_overdue(status, due_date, today):
        return LoanStatus.OVERDUE
    return LoanStatus.BORROWED
