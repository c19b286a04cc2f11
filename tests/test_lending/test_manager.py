"""Tests for LendingManager."""

import random
from concurrent.futures import ThreadPoolExecutor
from datetime import date, timedelta
from uuid import UUID, uuid4

import pytest
from pydantic import ValidationError
from sqlalchemy import update

from schoollib.db.models import Book
from schoollib.db.schemas import BookCreate, UserCreate
from schoollib.errors import (
    AlreadyReturnedError,
    InventoryError,
    NotFoundError,
    OutOfStockError,
)
from schoollib.lending.manager import LendingManager
from schoollib.lending.models import Loan
from schoollib.lending.schemas import LoanCreate, LoanStatus


def assert_inventory_invariant(db, lending, book_id):
    """available stays in range and matches open loans."""
    book = db.get_book(book_id)
    open_loans = [loan for loan in lending.list_loans(book_id=book_id) if not loan.is_returned]
    assert 0 <= book.available <= book.quantity
    assert book.quantity - book.available == len(open_loans)


class TestCheckout:
    """Tests for checking books out."""

    def test_checkout_reserves_copy(self, db, lending, book_x, student, make_loan, clock):
        """Book X with 3 copies: one checkout leaves 2 available."""
        loan = lending.checkout(make_loan(student, book_x, due_date=clock() + timedelta(days=5)))

        assert loan.id is not None
        assert loan.status == LoanStatus.BORROWED.value
        assert loan.user_id == student.id
        assert loan.book_id == book_x.id
        assert loan.loan_date == clock().isoformat()
        assert loan.due_date == (clock() + timedelta(days=5)).isoformat()
        assert loan.return_date is None
        assert db.get_book(book_x.id).available == 2

    def test_checkout_until_out_of_stock(self, db, lending, book_x, students, make_loan, clock):
        """Three checkouts empty the shelf; a fourth fails."""
        due = clock() + timedelta(days=7)
        for user in students[:3]:
            lending.checkout(make_loan(user, book_x, due_date=due))

        assert db.get_book(book_x.id).available == 0

        with pytest.raises(OutOfStockError):
            lending.checkout(make_loan(students[3], book_x, due_date=due))

    def test_out_of_stock_leaves_ledger_unchanged(
        self, db, lending, single_copy_book, students, make_loan, clock
    ):
        """Test that a refused checkout writes nothing."""
        lending.checkout(make_loan(students[0], single_copy_book, due_date=clock()))
        before = lending.list_loans()

        with pytest.raises(OutOfStockError):
            lending.checkout(make_loan(students[1], single_copy_book, due_date=clock()))

        assert len(lending.list_loans()) == len(before) == 1
        assert db.get_book(single_copy_book.id).available == 0

    def test_same_user_can_borrow_two_copies(self, db, lending, book_x, student, make_loan, clock):
        """Test that copies, not titles, are the unit of lending."""
        lending.checkout(make_loan(student, book_x, due_date=clock()))
        lending.checkout(make_loan(student, book_x, due_date=clock()))
        assert db.get_book(book_x.id).available == 1

    def test_checkout_unknown_user(self, db, lending, book_x):
        """Test checkout for a user that does not exist."""
        data = LoanCreate(
            user_id=uuid4(),
            book_id=UUID(book_x.id),
            loan_date=date(2025, 3, 10),
            due_date=date(2025, 3, 17),
        )
        with pytest.raises(NotFoundError, match="User"):
            lending.checkout(data)
        assert db.get_book(book_x.id).available == 3

    def test_checkout_unknown_book(self, lending, student):
        """Test checkout of a book that does not exist."""
        data = LoanCreate(
            user_id=UUID(student.id),
            book_id=uuid4(),
            loan_date=date(2025, 3, 10),
            due_date=date(2025, 3, 17),
        )
        with pytest.raises(NotFoundError, match="Book"):
            lending.checkout(data)
        assert lending.list_loans() == []

    def test_due_date_before_loan_date_rejected(self, student, book_x):
        """Test that checkout data must have due_date >= loan_date."""
        with pytest.raises(ValidationError, match="due_date"):
            LoanCreate(
                user_id=UUID(student.id),
                book_id=UUID(book_x.id),
                loan_date=date(2025, 3, 10),
                due_date=date(2025, 3, 9),
            )

    def test_due_date_same_day_allowed(self, lending, book_x, student, make_loan, clock):
        """Test a loan due the day it is made."""
        loan = lending.checkout(make_loan(student, book_x, due_date=clock()))
        assert loan.due_date == loan.loan_date


class TestReturn:
    """Tests for returning loans."""

    def test_return_loan(self, db, lending, book_x, student, make_loan, clock):
        """Returning sets status, return date and frees one copy."""
        loan = lending.checkout(make_loan(student, book_x, due_date=clock() + timedelta(days=7)))
        clock.current = clock() + timedelta(days=4)

        returned = lending.return_loan(loan.id)

        assert returned.status == LoanStatus.RETURNED.value
        assert returned.return_date == clock().isoformat()
        assert db.get_book(book_x.id).available == 3

    def test_return_twice(self, db, lending, book_x, student, make_loan, clock):
        """A second return fails and leaves available unchanged."""
        loan = lending.checkout(make_loan(student, book_x, due_date=clock()))
        lending.return_loan(loan.id)
        available = db.get_book(book_x.id).available

        with pytest.raises(AlreadyReturnedError):
            lending.return_loan(loan.id)

        assert db.get_book(book_x.id).available == available == 3

    def test_return_unknown_loan(self, lending):
        """Test returning a loan that does not exist."""
        with pytest.raises(NotFoundError, match="Loan"):
            lending.return_loan("missing")

    def test_return_overdue_loan(self, db, lending, book_x, student, make_loan, clock):
        """Test that an overdue loan can still be returned."""
        loan = lending.checkout(make_loan(student, book_x, due_date=clock() + timedelta(days=1)))
        clock.current = clock() + timedelta(days=10)

        returned = lending.return_loan(loan.id)
        assert returned.status == LoanStatus.RETURNED.value
        assert db.get_book(book_x.id).available == 3

    def test_return_stored_overdue_status(self, db, lending, book_x, student, make_loan, clock):
        """Test returning a loan whose stored status is overdue."""
        loan = lending.checkout(make_loan(student, book_x, due_date=clock()))
        with db.get_session() as session:
            session.execute(
                update(Loan).where(Loan.id == loan.id).values(status=LoanStatus.OVERDUE.value)
            )

        returned = lending.return_loan(loan.id)
        assert returned.status == LoanStatus.RETURNED.value
        assert db.get_book(book_x.id).available == 3

    def test_failed_release_rolls_back_return(self, db, lending, book_x, student, make_loan, clock):
        """If the copy cannot be released the loan stays open."""
        loan = lending.checkout(make_loan(student, book_x, due_date=clock()))
        # Someone put the copy back without going through the ledger
        with db.get_session() as session:
            session.execute(update(Book).where(Book.id == book_x.id).values(available=3))

        with pytest.raises(InventoryError):
            lending.return_loan(loan.id)

        assert lending.get_loan(loan.id).status == LoanStatus.BORROWED.value
        assert lending.get_loan(loan.id).return_date is None


class TestInvariants:
    """Copy counts always agree with the ledger."""

    def test_random_checkout_return_sequence(self, db, lending, students, make_loan, clock):
        """Run a random sequence of operations and check after each step."""
        rng = random.Random(1234)
        books = [
            db.create_book(BookCreate(title=f"Book {i}", author="Author", quantity=q))
            for i, q in enumerate([1, 2, 3])
        ]
        open_loans: list[str] = []

        for _ in range(60):
            if open_loans and rng.random() < 0.4:
                loan_id = open_loans.pop(rng.randrange(len(open_loans)))
                lending.return_loan(loan_id)
            else:
                book = rng.choice(books)
                user = rng.choice(students)
                try:
                    loan = lending.checkout(make_loan(user, book, due_date=clock()))
                    open_loans.append(loan.id)
                except OutOfStockError:
                    pass

            for book in books:
                assert_inventory_invariant(db, lending, book.id)


class TestQueries:
    """Tests for loan listing and filtering."""

    @pytest.fixture
    def mixed_loans(self, db, lending, students, make_loan, clock):
        """One returned, one overdue, one on-time loan."""
        books = [
            db.create_book(BookCreate(title=f"Shelf {i}", author="Author", quantity=2))
            for i in range(3)
        ]
        start = clock()
        returned = lending.checkout(
            make_loan(students[0], books[0], due_date=start + timedelta(days=3), loan_date=start - timedelta(days=10))
        )
        lending.return_loan(returned.id)
        overdue = lending.checkout(
            make_loan(students[1], books[1], due_date=start - timedelta(days=2), loan_date=start - timedelta(days=9))
        )
        on_time = lending.checkout(
            make_loan(students[0], books[2], due_date=start + timedelta(days=5))
        )
        return {"returned": returned, "overdue": overdue, "on_time": on_time, "books": books}

    def test_get_loan(self, lending, book_x, student, make_loan, clock):
        """Test getting a loan by ID."""
        created = lending.checkout(make_loan(student, book_x, due_date=clock()))
        loan = lending.get_loan(created.id)
        assert loan is not None
        assert loan.id == created.id

    def test_get_loan_not_found(self, lending):
        """Test getting non-existent loan."""
        assert lending.get_loan("non-existent") is None

    def test_list_loans_newest_first(self, lending, mixed_loans):
        """Test ordering by loan date."""
        loans = lending.list_loans()
        assert len(loans) == 3
        assert loans[0].id == mixed_loans["on_time"].id

    def test_list_loans_overdue_only(self, lending, mixed_loans):
        """Test the derived overdue filter."""
        loans = lending.list_loans(overdue_only=True)
        assert [loan.id for loan in loans] == [mixed_loans["overdue"].id]

    def test_overdue_not_persisted(self, lending, mixed_loans, clock):
        """Querying overdue loans does not rewrite their status."""
        lending.list_loans(overdue_only=True)
        loan = lending.get_loan(mixed_loans["overdue"].id)
        assert loan.status == LoanStatus.BORROWED.value
        assert loan.effective_status(clock()) == LoanStatus.OVERDUE

    def test_list_loans_by_effective_status(self, lending, mixed_loans):
        """Test filtering by borrowed/overdue/returned."""
        borrowed = lending.list_loans(status=LoanStatus.BORROWED)
        overdue = lending.list_loans(status=LoanStatus.OVERDUE)
        returned = lending.list_loans(status=LoanStatus.RETURNED)

        assert [loan.id for loan in borrowed] == [mixed_loans["on_time"].id]
        assert [loan.id for loan in overdue] == [mixed_loans["overdue"].id]
        assert [loan.id for loan in returned] == [mixed_loans["returned"].id]

    def test_list_loans_by_user_and_book(self, lending, mixed_loans, students):
        """Test filtering by borrower and by book."""
        assert len(lending.list_loans(user_id=students[0].id)) == 2
        assert len(lending.get_loan_history_for_user(students[1].id)) == 1

        book = mixed_loans["books"][0]
        history = lending.get_loan_history_for_book(book.id)
        assert [loan.id for loan in history] == [mixed_loans["returned"].id]

    def test_stored_overdue_status_counts_as_overdue(self, db, lending, book_x, student, make_loan, clock):
        """A stored overdue status is overdue even before the due date."""
        loan = lending.checkout(make_loan(student, book_x, due_date=clock() + timedelta(days=10)))
        with db.get_session() as session:
            session.execute(
                update(Loan).where(Loan.id == loan.id).values(status=LoanStatus.OVERDUE.value)
            )

        assert [l.id for l in lending.list_loans(overdue_only=True)] == [loan.id]

    def test_due_today_is_not_overdue(self, lending, book_x, student, make_loan, clock):
        """The due date itself is still on time."""
        lending.checkout(make_loan(student, book_x, due_date=clock()))
        assert lending.list_loans(overdue_only=True) == []

        clock.current = clock() + timedelta(days=1)
        assert len(lending.list_loans(overdue_only=True)) == 1

    def test_get_loans_due_soon(self, lending, mixed_loans, clock):
        """Test loans due within the window."""
        assert [l.id for l in lending.get_loans_due_soon(days=7)] == [mixed_loans["on_time"].id]
        assert lending.get_loans_due_soon(days=3) == []

    def test_get_overdue_loans(self, lending, mixed_loans):
        """Test the overdue report."""
        report = lending.get_overdue_loans()

        assert report.total_overdue == 1
        assert report.oldest_overdue_days == 2
        summary = report.loans[0]
        assert summary.book_title == "Shelf 1"
        assert summary.user_name == "Student 2"
        assert summary.status == LoanStatus.OVERDUE
        assert summary.days_until_due == -2

    def test_get_overdue_loans_empty(self, lending):
        """Test the overdue report with nothing overdue."""
        report = lending.get_overdue_loans()
        assert report.loans == []
        assert report.oldest_overdue_days == 0


class TestStatsAndReports:
    """Tests for dashboard statistics and loan reports."""

    def test_get_stats(self, db, lending, book_x, single_copy_book, students, make_loan, clock):
        """Test dashboard counters."""
        returned = lending.checkout(make_loan(students[0], book_x, due_date=clock()))
        lending.return_loan(returned.id)
        lending.checkout(
            make_loan(students[1], book_x, due_date=clock() - timedelta(days=1), loan_date=clock() - timedelta(days=8))
        )
        lending.checkout(make_loan(students[2], single_copy_book, due_date=clock() + timedelta(days=7)))

        stats = lending.get_stats()
        assert stats.total_books == 2
        assert stats.total_copies == 4
        assert stats.available_copies == 2
        assert stats.total_users == 5
        assert stats.total_assets == 0
        assert stats.active_loans == 2
        assert stats.overdue_loans == 1
        assert stats.returned_loans == 1

    def test_get_stats_empty(self, lending):
        """Test statistics of an empty library."""
        stats = lending.get_stats()
        assert stats.total_books == 0
        assert stats.total_copies == 0
        assert stats.active_loans == 0

    def test_get_report(self, db, lending, book_x, single_copy_book, students, make_loan, clock):
        """Test report counts and most borrowed titles."""
        start = clock()
        first = lending.checkout(make_loan(students[0], book_x, due_date=start, loan_date=start - timedelta(days=20)))
        lending.return_loan(first.id)
        lending.checkout(make_loan(students[1], book_x, due_date=start - timedelta(days=1), loan_date=start - timedelta(days=5)))
        lending.checkout(make_loan(students[2], book_x, due_date=start + timedelta(days=3)))
        lending.checkout(make_loan(students[3], single_copy_book, due_date=start + timedelta(days=3)))

        report = lending.get_report()
        assert report.total_loans == 4
        assert report.returned == 1
        assert report.overdue == 1
        assert report.active_on_time == 2
        assert report.top_books[0].title == "Dom Casmurro"
        assert report.top_books[0].count == 3

        recent = lending.get_report(start=start - timedelta(days=7))
        assert recent.total_loans == 3

        literature = lending.get_report(category="literature")
        assert literature.total_loans == 1
        assert literature.top_books[0].title == "Literature Handbook"

    def test_get_monthly_loan_counts(self, lending, book_x, students, make_loan):
        """Test loans counted by month of loan date."""
        lending.checkout(make_loan(students[0], book_x, due_date=date(2025, 1, 20), loan_date=date(2025, 1, 5)))
        lending.checkout(make_loan(students[1], book_x, due_date=date(2025, 3, 20), loan_date=date(2025, 3, 1)))
        lending.checkout(make_loan(students[2], book_x, due_date=date(2025, 3, 20), loan_date=date(2025, 3, 2)))

        counts = lending.get_monthly_loan_counts(2025)
        assert len(counts) == 12
        assert counts[0] == 1
        assert counts[2] == 2
        assert sum(counts) == 3
        assert sum(lending.get_monthly_loan_counts(2024)) == 0


class TestConcurrency:
    """Concurrent checkouts never hand out more copies than exist."""

    def test_parallel_checkouts_of_last_copies(self, file_db):
        """Ten threads race for three copies."""
        book = file_db.create_book(BookCreate(title="Popular", author="Author", quantity=3))
        users = [
            file_db.create_user(UserCreate(name=f"Reader {i}", email=f"reader{i}@school.example"))
            for i in range(10)
        ]
        manager = LendingManager(file_db, today=lambda: date(2025, 3, 10))

        def attempt(user):
            data = LoanCreate(
                user_id=UUID(user.id),
                book_id=UUID(book.id),
                loan_date=date(2025, 3, 10),
                due_date=date(2025, 3, 17),
            )
            try:
                manager.checkout(data)
                return True
            except OutOfStockError:
                return False

        with ThreadPoolExecutor(max_workers=10) as pool:
            results = list(pool.map(attempt, users))

        assert results.count(True) == 3
        assert results.count(False) == 7
        assert file_db.get_book(book.id).available == 0
        assert len(manager.list_loans(book_id=book.id)) == 3
