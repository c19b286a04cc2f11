"""Lending manager for book loan operations."""

import logging
from collections import Counter
from datetime import date, timedelta
from typing import Callable, Optional
from uuid import UUID

from sqlalchemy import func, select

from ..db.models import Book, User
from ..db.sqlite import Database, get_db
from ..errors import AlreadyReturnedError, NotFoundError, OutOfStockError
from ..inventory.store import InventoryStore
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

logger = logging.getLogger(__name__)


class LendingManager:
    """Manages the loan ledger.

    Checkout and return are the only operations that move copies in or
    out of the shelf; every query derives overdue status at read time.
    """

    def __init__(
        self,
        db: Optional[Database] = None,
        inventory: Optional[InventoryStore] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        """Initialize lending manager.

        Args:
            db: Database instance
            inventory: Inventory store sharing the same database
            today: Date source (defaults to date.today)
        """
        self.db = db or get_db()
        self.inventory = inventory or InventoryStore(self.db)
        self._today = today or date.today

    def today(self) -> date:
        """Current calendar date according to the injected clock."""
        return self._today()

    # -------------------------------------------------------------------------
    # Checkout and Return
    # -------------------------------------------------------------------------

    def checkout(self, data: LoanCreate) -> Loan:
        """Lend one copy of a book to a user.

        Args:
            data: Validated loan data

        Returns:
            Created loan (status borrowed)

        Raises:
            NotFoundError: Unknown user or book
            OutOfStockError: No copy of the book is available
        """
        user_id = str(data.user_id)
        book_id = str(data.book_id)

        with self.inventory.locks.hold(book_id):
            with self.db.get_session() as session:
                user = session.get(User, user_id)
                if not user:
                    raise NotFoundError("User", user_id)

                book = session.get(Book, book_id)
                if not book:
                    raise NotFoundError("Book", book_id)

                if book.available <= 0:
                    logger.warning("Checkout refused: no copies of %s available", book_id)
                    raise OutOfStockError(book_id, book.title)

                self.inventory.reserve_copy(session, book_id)

                loan = Loan(
                    user_id=user_id,
                    book_id=book_id,
                    loan_date=data.loan_date.isoformat(),
                    due_date=data.due_date.isoformat(),
                    status=LoanStatus.BORROWED.value,
                )
                session.add(loan)

                session.commit()
                session.refresh(loan)
                session.expunge(loan)

        logger.info("Loan %s: book %s checked out to user %s until %s",
                    loan.id, book_id, user_id, loan.due_date)
        return loan

    def return_loan(self, loan_id: str) -> Loan:
        """Record the return of a loan.

        Sets the loan to returned with today's date and puts the copy back
        on the shelf, in one transaction.

        Args:
            loan_id: Loan ID

        Returns:
            Updated loan

        Raises:
            NotFoundError: Unknown loan
            AlreadyReturnedError: Loan was already returned
        """
        existing = self.get_loan(loan_id)
        if not existing:
            raise NotFoundError("Loan", loan_id)

        with self.inventory.locks.hold(existing.book_id):
            with self.db.get_session() as session:
                loan = session.get(Loan, loan_id)
                if not loan:
                    raise NotFoundError("Loan", loan_id)

                if loan.is_returned:
                    raise AlreadyReturnedError(loan_id)

                loan.status = LoanStatus.RETURNED.value
                loan.return_date = self.today().isoformat()
                self.inventory.release_copy(session, loan.book_id)

                session.commit()
                session.refresh(loan)
                session.expunge(loan)

        logger.info("Loan %s returned on %s", loan.id, loan.return_date)
        return loan

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_loan(self, loan_id: str) -> Optional[Loan]:
        """Get a loan by ID.

        Args:
            loan_id: Loan ID

        Returns:
            Loan or None
        """
        with self.db.get_session() as session:
            loan = session.get(Loan, loan_id)
            if loan:
                session.expunge(loan)
            return loan

    def list_loans(
        self,
        user_id: Optional[str] = None,
        book_id: Optional[str] = None,
        status: Optional[LoanStatus] = None,
        overdue_only: bool = False,
    ) -> list[Loan]:
        """List loans with optional filters.

        Args:
            user_id: Filter by borrower
            book_id: Filter by book
            status: Filter by effective status (borrowed/overdue/returned)
            overdue_only: Only return overdue loans

        Returns:
            List of loans, newest first
        """
        today = self.today()

        with self.db.get_session() as session:
            stmt = select(Loan)

            if user_id:
                stmt = stmt.where(Loan.user_id == user_id)
            if book_id:
                stmt = stmt.where(Loan.book_id == book_id)
            if overdue_only or status == LoanStatus.OVERDUE:
                stmt = stmt.where(Loan.overdue_clause(today))
            elif status == LoanStatus.BORROWED:
                stmt = stmt.where(Loan.open_clause(), ~Loan.overdue_clause(today))
            elif status == LoanStatus.RETURNED:
                stmt = stmt.where(Loan.status == LoanStatus.RETURNED.value)

            stmt = stmt.order_by(Loan.loan_date.desc(), Loan.created_at.desc())

            loans = session.execute(stmt).scalars().all()
            for loan in loans:
                session.expunge(loan)
            return list(loans)

    def get_loans_due_soon(self, days: int = 7) -> list[Loan]:
        """Get open loans due within the given number of days.

        Args:
            days: Number of days to look ahead

        Returns:
            List of loans due soon, earliest first
        """
        today = self.today()
        future = today + timedelta(days=days)

        with self.db.get_session() as session:
            stmt = select(Loan).where(
                Loan.open_clause(),
                ~Loan.overdue_clause(today),
                Loan.due_date >= today.isoformat(),
                Loan.due_date <= future.isoformat(),
            ).order_by(Loan.due_date)

            loans = session.execute(stmt).scalars().all()
            for loan in loans:
                session.expunge(loan)
            return list(loans)

    def get_overdue_loans(self) -> OverdueReport:
        """Get report of overdue loans.

        Returns:
            OverdueReport with overdue loans, most overdue first
        """
        today = self.today()
        summaries = []

        with self.db.get_session() as session:
            stmt = (
                select(Loan)
                .where(Loan.overdue_clause(today))
                .order_by(Loan.due_date)
            )
            for loan in session.execute(stmt).scalars():
                summaries.append(
                    LoanSummary(
                        id=UUID(loan.id),
                        book_title=loan.book.title,
                        user_name=loan.user.name,
                        status=loan.effective_status(today),
                        loan_date=date.fromisoformat(loan.loan_date),
                        due_date=date.fromisoformat(loan.due_date),
                        days_until_due=loan.days_until_due(today),
                        days_overdue=loan.days_overdue(today),
                    )
                )

        return OverdueReport(
            loans=summaries,
            total_overdue=len(summaries),
            oldest_overdue_days=max((s.days_overdue for s in summaries), default=0),
        )

    def get_loan_history_for_book(self, book_id: str) -> list[Loan]:
        """Get loan history for a specific book."""
        return self.list_loans(book_id=book_id)

    def get_loan_history_for_user(self, user_id: str) -> list[Loan]:
        """Get loan history for a specific user."""
        return self.list_loans(user_id=user_id)

    # -------------------------------------------------------------------------
    # Statistics and Reports
    # -------------------------------------------------------------------------

    def get_stats(self) -> LendingStats:
        """Get dashboard statistics.

        Returns:
            LendingStats with counts
        """
        from ..assets.models import DigitalAsset

        today = self.today()

        with self.db.get_session() as session:
            total_books, total_copies, available_copies = session.execute(
                select(
                    func.count(Book.id),
                    func.coalesce(func.sum(Book.quantity), 0),
                    func.coalesce(func.sum(Book.available), 0),
                )
            ).one()

            total_users = session.execute(
                select(func.count()).select_from(User)
            ).scalar() or 0

            total_assets = session.execute(
                select(func.count()).select_from(DigitalAsset)
            ).scalar() or 0

            active_loans = session.execute(
                select(func.count()).where(Loan.open_clause())
            ).scalar() or 0

            overdue_loans = session.execute(
                select(func.count()).where(Loan.overdue_clause(today))
            ).scalar() or 0

            returned_loans = session.execute(
                select(func.count()).where(Loan.status == LoanStatus.RETURNED.value)
            ).scalar() or 0

        return LendingStats(
            total_books=total_books,
            total_copies=total_copies,
            available_copies=available_copies,
            total_users=total_users,
            total_assets=total_assets,
            active_loans=active_loans,
            overdue_loans=overdue_loans,
            returned_loans=returned_loans,
        )

    def get_report(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
        category: Optional[str] = None,
        top: int = 5,
    ) -> LoanReport:
        """Summarize loans made in a date range.

        Args:
            start: First loan date included (open if None)
            end: Last loan date included (open if None)
            category: Only books of this category
            top: Number of most borrowed titles to list

        Returns:
            LoanReport
        """
        today = self.today()

        with self.db.get_session() as session:
            stmt = select(Loan).join(Book, Loan.book_id == Book.id)
            if start:
                stmt = stmt.where(Loan.loan_date >= start.isoformat())
            if end:
                stmt = stmt.where(Loan.loan_date <= end.isoformat())
            if category:
                stmt = stmt.where(func.lower(Book.category) == category.lower())

            loans = session.execute(stmt).scalars().all()

            returned = 0
            overdue = 0
            titles: Counter[str] = Counter()
            for loan in loans:
                status = loan.effective_status(today)
                if status == LoanStatus.RETURNED:
                    returned += 1
                elif status == LoanStatus.OVERDUE:
                    overdue += 1
                titles[loan.book.title] += 1

        return LoanReport(
            start=start,
            end=end,
            category=category,
            total_loans=len(loans),
            returned=returned,
            overdue=overdue,
            active_on_time=len(loans) - returned - overdue,
            top_books=[
                BookLoanCount(title=title, count=count)
                for title, count in titles.most_common(top)
            ],
        )

    def get_monthly_loan_counts(self, year: int) -> list[int]:
        """Count loans per month of the given year.

        Returns:
            Twelve counts, January first
        """
        counts = [0] * 12
        with self.db.get_session() as session:
            rows = session.execute(
                select(Loan.loan_date).where(
                    Loan.loan_date >= f"{year:04d}-01-01",
                    Loan.loan_date <= f"{year:04d}-12-31",
                )
            ).scalars()
            for loan_date in rows:
                counts[int(loan_date[5:7]) - 1] += 1
        return counts
