"""Pytest configuration and shared fixtures.

This module provides fixtures for testing schoollib, including an
in-memory database, a fixed clock and sample catalog/user data.
"""

import os
import tempfile
from datetime import date
from pathlib import Path
from typing import Generator
from uuid import UUID

import pytest

from schoollib.config import reset_config
from schoollib.db.models import Book, User
from schoollib.db.schemas import BookCreate, UserCreate, UserRole, UserType
from schoollib.db.sqlite import Database, reset_db
from schoollib.inventory.store import BookLocks, InventoryStore
from schoollib.lending.manager import LendingManager
from schoollib.lending.schemas import LoanCreate
from schoollib.notifications.manager import NotificationManager


TODAY = date(2025, 3, 10)


class Clock:
    """Settable date source for managers."""

    def __init__(self, today: date):
        self.current = today

    def __call__(self) -> date:
        return self.current


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
def db() -> Database:
    """Create an in-memory database for testing."""
    database = Database(":memory:")
    database.create_tables()
    return database


@pytest.fixture(scope="function")
def temp_db_path() -> Generator[Path, None, None]:
    """Create a temporary database file path."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)
    yield db_path
    # Cleanup
    if db_path.exists():
        db_path.unlink()


@pytest.fixture(scope="function")
def file_db(temp_db_path: Path) -> Generator[Database, None, None]:
    """Create a file-backed database (needed for multi-threaded tests)."""
    reset_db()
    reset_config()
    os.environ["SCHOOLLIB_DB_PATH"] = str(temp_db_path)

    database = Database(str(temp_db_path))
    database.create_tables()
    yield database

    database.engine.dispose()
    reset_db()
    reset_config()
    if "SCHOOLLIB_DB_PATH" in os.environ:
        del os.environ["SCHOOLLIB_DB_PATH"]


# ============================================================================
# Manager Fixtures
# ============================================================================


@pytest.fixture
def clock() -> Clock:
    """A clock fixed at TODAY; tests may move it."""
    return Clock(TODAY)


@pytest.fixture
def inventory(db: Database) -> InventoryStore:
    """Create an InventoryStore with its own lock registry."""
    return InventoryStore(db, locks=BookLocks())


@pytest.fixture
def lending(db: Database, inventory: InventoryStore, clock: Clock) -> LendingManager:
    """Create a LendingManager with test database and clock."""
    return LendingManager(db, inventory=inventory, today=clock)


@pytest.fixture
def notifier(db: Database, clock: Clock) -> NotificationManager:
    """Create a NotificationManager with test database and clock."""
    return NotificationManager(db, today=clock)


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def sample_book_data() -> BookCreate:
    """Create sample book data for testing."""
    return BookCreate(
        title="Dom Casmurro",
        author="Machado de Assis",
        isbn="978-85-2504",
        category="Classic",
        publisher="Garnier",
        year="1899",
        shelf="A1",
        shelf_location="1",
        quantity=3,
    )


@pytest.fixture
def book_x(db: Database, sample_book_data: BookCreate) -> Book:
    """A book with quantity=3, available=3."""
    return db.create_book(sample_book_data)


@pytest.fixture
def single_copy_book(db: Database) -> Book:
    """A book with only one copy."""
    return db.create_book(
        BookCreate(title="Literature Handbook", author="Joao", category="Literature", quantity=1)
    )


@pytest.fixture
def student(db: Database) -> User:
    """A student user."""
    return db.create_user(
        UserCreate(
            name="Maria Silva",
            email="maria@school.example",
            user_type=UserType.STUDENT,
            sector_or_class="3rd Year A",
        )
    )


@pytest.fixture
def students(db: Database) -> list[User]:
    """Several student users."""
    return [
        db.create_user(UserCreate(name=f"Student {i}", email=f"student{i}@school.example"))
        for i in range(1, 6)
    ]


@pytest.fixture
def admin(db: Database) -> User:
    """An admin user."""
    return db.create_user(
        UserCreate(
            name="Jose Igor",
            email="admin@school.example",
            role=UserRole.ADMIN,
            user_type=UserType.STAFF,
        )
    )


@pytest.fixture
def make_loan():
    """Factory building checkout data for a user and book."""

    def _make(user: User, book: Book, due_date: date, loan_date: date = TODAY) -> LoanCreate:
        return LoanCreate(
            user_id=UUID(user.id),
            book_id=UUID(book.id),
            loan_date=loan_date,
            due_date=due_date,
        )

    return _make
