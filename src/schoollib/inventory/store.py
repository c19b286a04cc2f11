"""Inventory store for available-copy accounting.

`reserve_copy` and `release_copy` are the only writers of
`Book.available`. Both run inside the caller's session, so the copy
count commits or rolls back together with the loan change that caused
it, and both are single conditional UPDATE statements.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from ..db.models import Book, utc_now
from ..db.sqlite import Database, get_db
from ..errors import ActiveLoansError, InventoryError, NotFoundError, OutOfStockError
from .schemas import Availability, InventoryDiscrepancy

logger = logging.getLogger(__name__)


class BookLocks:
    """Per-book critical sections for copy-count changes."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    @contextmanager
    def hold(self, book_id: str) -> Generator[None, None, None]:
        """Hold the lock for one book."""
        with self._guard:
            lock = self._locks.setdefault(book_id, threading.Lock())
        with lock:
            yield


# Shared by every manager in the process
book_locks = BookLocks()


class InventoryStore:
    """Tracks total and available copies per book."""

    def __init__(self, db: Optional[Database] = None, locks: Optional[BookLocks] = None):
        """Initialize inventory store.

        Args:
            db: Database instance
            locks: Per-book lock registry (defaults to the process-wide one)
        """
        self.db = db or get_db()
        self.locks = locks or book_locks

    # -------------------------------------------------------------------------
    # Copy Accounting
    # -------------------------------------------------------------------------

    def reserve_copy(self, session: Session, book_id: str) -> None:
        """Take one available copy of a book.

        Raises:
            NotFoundError: Unknown book
            OutOfStockError: No copy available
        """
        result = session.execute(
            update(Book)
            .where(Book.id == book_id, Book.available > 0)
            .values(available=Book.available - 1)
            .execution_options(synchronize_session="evaluate")
        )
        if result.rowcount == 0:
            book = session.get(Book, book_id)
            if book is None:
                raise NotFoundError("Book", book_id)
            raise OutOfStockError(book_id, book.title)

    def release_copy(self, session: Session, book_id: str) -> None:
        """Put one copy of a book back on the shelf.

        Raises:
            NotFoundError: Unknown book
            InventoryError: The release would exceed the owned quantity
        """
        result = session.execute(
            update(Book)
            .where(Book.id == book_id, Book.available < Book.quantity)
            .values(available=Book.available + 1)
            .execution_options(synchronize_session="evaluate")
        )
        if result.rowcount == 0:
            book = session.get(Book, book_id)
            if book is None:
                raise NotFoundError("Book", book_id)
            logger.warning(
                "Release of book %s would exceed quantity (%d/%d)",
                book_id, book.available, book.quantity,
            )
            raise InventoryError(
                f"Cannot release a copy of '{book.title}': all {book.quantity} copies are already available"
            )

    # -------------------------------------------------------------------------
    # Queries and Maintenance
    # -------------------------------------------------------------------------

    def get_availability(self, book_id: str) -> Availability:
        """Get copy counts for a book.

        Raises:
            NotFoundError: Unknown book
        """
        with self.db.get_session() as session:
            book = session.get(Book, book_id)
            if book is None:
                raise NotFoundError("Book", book_id)
            return Availability(
                book_id=book.id,
                title=book.title,
                quantity=book.quantity,
                available=book.available,
                on_loan=book.on_loan,
            )

    def set_quantity(self, book_id: str, quantity: int) -> Book:
        """Change how many copies the library owns.

        The number of copies on loan is kept, so `available` moves by the
        same amount as `quantity`.

        Args:
            book_id: Book ID
            quantity: New total number of copies

        Returns:
            Updated book

        Raises:
            ValueError: Negative quantity
            NotFoundError: Unknown book
            ActiveLoansError: Fewer copies than are currently on loan
        """
        if quantity < 0:
            raise ValueError("quantity must not be negative")

        with self.locks.hold(book_id):
            with self.db.get_session() as session:
                book = session.get(Book, book_id)
                if book is None:
                    raise NotFoundError("Book", book_id)

                on_loan = book.on_loan
                if quantity < on_loan:
                    raise ActiveLoansError(
                        f"'{book.title}' has {on_loan} copies on loan; quantity cannot drop to {quantity}"
                    )

                book.quantity = quantity
                book.available = quantity - on_loan
                book.updated_at = utc_now()
                session.commit()
                session.refresh(book)
                session.expunge(book)

        logger.info("Book %s now has %d copies (%d on loan)", book_id, quantity, on_loan)
        return book

    def check_consistency(self) -> list[InventoryDiscrepancy]:
        """Audit copy counts against the loan ledger.

        Returns:
            Books whose `quantity - available` differs from their number of
            open loans, or whose `available` is out of range
        """
        from ..lending.models import Loan

        with self.db.get_session() as session:
            open_counts = dict(
                session.execute(
                    select(Loan.book_id, func.count())
                    .where(Loan.open_clause())
                    .group_by(Loan.book_id)
                ).all()
            )
            books = session.execute(select(Book).order_by(Book.title)).scalars().all()

            discrepancies = []
            for book in books:
                open_loans = open_counts.get(book.id, 0)
                in_range = 0 <= book.available <= book.quantity
                if not in_range or book.on_loan != open_loans:
                    discrepancies.append(
                        InventoryDiscrepancy(
                            book_id=book.id,
                            title=book.title,
                            quantity=book.quantity,
                            available=book.available,
                            open_loans=open_loans,
                        )
                    )

        for item in discrepancies:
            logger.warning(
                "Inventory mismatch for %s: %d available of %d with %d open loans",
                item.book_id, item.available, item.quantity, item.open_loans,
            )
        return discrepancies
