"""Book lending module.

Provides functionality for:
- Checking books out to library users and recording returns
- Keeping available-copy counts in step with open loans
- Overdue detection and due date management
- Lending statistics and loan reports
"""

from .manager import LendingManager
from .models import Loan
from .schemas import (
    BookLoanCount,
    LendingStats,
    LoanCreate,
    LoanReport,
    LoanStatus,
    LoanSummary,
    OverdueReport,
)
from .status import days_until_due, effective_status, is_overdue

__all__ = [
    "LendingManager",
    "Loan",
    "BookLoanCount",
    "LendingStats",
    "LoanCreate",
    "LoanReport",
    "LoanStatus",
    "LoanSummary",
    "OverdueReport",
    "days_until_due",
    "effective_status",
    "is_overdue",
]
