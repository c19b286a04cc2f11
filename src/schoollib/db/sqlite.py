"""SQLite database operations.

Handles database connection, session management, and CRUD operations
for the catalog and library users.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Iterable, Optional

from sqlalchemy import create_engine, func, select, update
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..errors import ActiveLoansError
from .imports import UserImportResult, parse_user_line
from .models import Base, Book, ClassSector, User, utc_now
from .schemas import BookCreate, BookUpdate, ClassSectorCreate, UserCreate, UserType, UserUpdate

logger = logging.getLogger(__name__)


class Database:
    """Database connection and operations manager."""

    def __init__(self, db_path: Optional[str] = None):
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file. If None, uses
                     SCHOOLLIB_DB_PATH env var or default location.
        """
        if db_path is None:
            from ..config import get_config

            db_path = str(get_config().db_path)

        self.db_path = Path(db_path)
        self._is_memory = str(db_path) == ":memory:"

        if not self._is_memory:
            self._ensure_directory()

        # For in-memory databases, use StaticPool to reuse the same connection
        # This ensures all sessions share the same in-memory database
        if self._is_memory:
            self.engine = create_engine(
                "sqlite:///:memory:",
                echo=False,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            self.engine = create_engine(
                f"sqlite:///{self.db_path}",
                echo=False,
                connect_args={"check_same_thread": False, "timeout": 30},
            )
        self.SessionLocal = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)

    def _ensure_directory(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def create_tables(self) -> None:
        """Create all database tables."""
        # Import lending models to register them with Base
        from ..lending.models import Loan  # noqa: F401
        # Import notification models to register them with Base
        from ..notifications.models import Notification  # noqa: F401
        # Import asset models to register them with Base
        from ..assets.models import DigitalAsset  # noqa: F401

        Base.metadata.create_all(self.engine)

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Get a database session context manager.

        Commits on normal exit and rolls back on any exception, so a
        failed operation never leaves partial changes behind.
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # ========================================================================
    # Book Operations
    # ========================================================================

    def create_book(self, book: BookCreate, session: Optional[Session] = None) -> Book:
        """Create a new book record with every copy available."""

        def _create(s: Session) -> Book:
            db_book = Book(
                title=book.title,
                author=book.author,
                isbn=book.isbn,
                category=book.category,
                format=book.format.value,
                knowledge_area=book.knowledge_area,
                year=book.year,
                publisher=book.publisher,
                shelf=book.shelf,
                shelf_location=book.shelf_location,
                synopsis=book.synopsis,
                sector=book.sector,
                cover_url=book.cover_url,
                quantity=book.quantity,
                available=book.quantity,
            )
            s.add(db_book)
            s.flush()
            logger.info("Added book %s (%s) with %d copies", db_book.id, db_book.title, db_book.quantity)
            return db_book

        if session:
            return _create(session)
        else:
            with self.get_session() as s:
                db_book = _create(s)
                s.expunge(db_book)
                return db_book

    def get_book(self, book_id: str, session: Optional[Session] = None) -> Optional[Book]:
        """Get a book by ID."""

        def _get(s: Session) -> Optional[Book]:
            return s.get(Book, book_id)

        if session:
            return _get(session)
        else:
            with self.get_session() as s:
                book = _get(s)
                if book:
                    s.expunge(book)
                return book

    def list_books(
        self, category: Optional[str] = None, session: Optional[Session] = None
    ) -> list[Book]:
        """List books, optionally restricted to one category."""

        def _list(s: Session) -> list[Book]:
            stmt = select(Book).order_by(Book.title)
            if category:
                stmt = stmt.where(func.lower(Book.category) == category.lower())
            return list(s.execute(stmt).scalars().all())

        if session:
            return _list(session)
        else:
            with self.get_session() as s:
                books = _list(s)
                for book in books:
                    s.expunge(book)
                return books

    def search_books(
        self, query: str, limit: int = 20, session: Optional[Session] = None
    ) -> list[Book]:
        """Search books by title, author or ISBN."""

        def _search(s: Session) -> list[Book]:
            pattern = f"%{query}%"
            stmt = (
                select(Book)
                .where(
                    Book.title.ilike(pattern)
                    | Book.author.ilike(pattern)
                    | Book.isbn.ilike(pattern)
                )
                .order_by(Book.title)
                .limit(limit)
            )
            return list(s.execute(stmt).scalars().all())

        if session:
            return _search(session)
        else:
            with self.get_session() as s:
                books = _search(s)
                for book in books:
                    s.expunge(book)
                return books

    def update_book(
        self, book_id: str, update: BookUpdate, session: Optional[Session] = None
    ) -> Optional[Book]:
        """Update book metadata. Copy counts are not touched here."""

        def _update(s: Session) -> Optional[Book]:
            book = s.get(Book, book_id)
            if not book:
                return None

            update_data = update.model_dump(exclude_unset=True)
            for field, value in update_data.items():
                if field == "format" and value:
                    book.format = value.value
                else:
                    setattr(book, field, value)

            book.updated_at = utc_now()
            s.flush()
            return book

        if session:
            return _update(session)
        else:
            with self.get_session() as s:
                book = _update(s)
                if book:
                    s.expunge(book)
                return book

    def delete_book(self, book_id: str, session: Optional[Session] = None) -> bool:
        """Delete a book record.

        Raises:
            ActiveLoansError: If any copy is still checked out
        """

        def _delete(s: Session) -> bool:
            book = s.get(Book, book_id)
            if not book:
                return False

            if book.on_loan > 0:
                logger.warning("Refused to delete book %s: %d copies on loan", book_id, book.on_loan)
                raise ActiveLoansError(
                    f"Cannot delete '{book.title}': {book.on_loan} copies are on loan"
                )

            s.delete(book)
            return True

        if session:
            return _delete(session)
        else:
            with self.get_session() as s:
                return _delete(s)

    def count_books(self) -> int:
        """Count catalog entries."""
        with self.get_session() as s:
            return s.execute(select(func.count()).select_from(Book)).scalar() or 0

    # ========================================================================
    # User Operations
    # ========================================================================

    def create_user(self, user: UserCreate, session: Optional[Session] = None) -> User:
        """Create a new user.

        Raises:
            ValueError: If the email is already registered
        """

        def _create(s: Session) -> User:
            existing = s.execute(
                select(User).where(User.email == user.email)
            ).scalar_one_or_none()
            if existing:
                raise ValueError(f"A user with email {user.email} already exists")

            db_user = User(
                name=user.name,
                email=user.email,
                role=user.role.value,
                phone=user.phone,
                user_type=user.user_type.value,
                sector_or_class=user.sector_or_class,
            )
            s.add(db_user)
            s.flush()
            logger.info("Registered user %s (%s)", db_user.id, db_user.name)
            return db_user

        if session:
            return _create(session)
        else:
            with self.get_session() as s:
                db_user = _create(s)
                s.expunge(db_user)
                return db_user

    def get_user(self, user_id: str, session: Optional[Session] = None) -> Optional[User]:
        """Get a user by ID."""

        def _get(s: Session) -> Optional[User]:
            return s.get(User, user_id)

        if session:
            return _get(session)
        else:
            with self.get_session() as s:
                user = _get(s)
                if user:
                    s.expunge(user)
                return user

    def get_user_by_email(self, email: str) -> Optional[User]:
        """Get a user by email (case-insensitive)."""
        with self.get_session() as s:
            stmt = select(User).where(User.email == email.strip().lower())
            user = s.execute(stmt).scalar_one_or_none()
            if user:
                s.expunge(user)
            return user

    def list_users(
        self,
        user_type: Optional[UserType] = None,
        search: Optional[str] = None,
    ) -> list[User]:
        """List users sorted by name.

        Args:
            user_type: Filter by student/teacher/staff
            search: Match against name, email or class/sector

        Returns:
            List of users
        """
        with self.get_session() as s:
            stmt = select(User).order_by(User.name)

            if user_type:
                stmt = stmt.where(User.user_type == user_type.value)
            if search:
                pattern = f"%{search}%"
                stmt = stmt.where(
                    User.name.ilike(pattern)
                    | User.email.ilike(pattern)
                    | User.sector_or_class.ilike(pattern)
                )

            users = list(s.execute(stmt).scalars().all())
            for user in users:
                s.expunge(user)
            return users

    def update_user(self, user_id: str, update: UserUpdate) -> Optional[User]:
        """Update a user."""
        with self.get_session() as s:
            user = s.get(User, user_id)
            if not user:
                return None

            update_data = update.model_dump(exclude_unset=True)
            for field, value in update_data.items():
                if field in ("role", "user_type") and value:
                    setattr(user, field, value.value)
                else:
                    setattr(user, field, value)

            user.updated_at = utc_now()
            s.commit()
            s.refresh(user)
            s.expunge(user)
            return user

    def delete_user(self, user_id: str) -> bool:
        """Delete a user.

        Raises:
            ActiveLoansError: If the user still holds borrowed books
        """
        from ..lending.models import Loan
        from ..lending.schemas import LoanStatus

        with self.get_session() as s:
            user = s.get(User, user_id)
            if not user:
                return False

            open_loans = s.execute(
                select(func.count()).where(
                    Loan.user_id == user_id,
                    Loan.status != LoanStatus.RETURNED.value,
                )
            ).scalar() or 0
            if open_loans:
                logger.warning("Refused to delete user %s: %d open loans", user_id, open_loans)
                raise ActiveLoansError(f"Cannot delete {user.name}: {open_loans} books not returned")

            s.delete(user)
            return True

    def import_users(
        self, lines: Iterable[str], sector_or_class: Optional[str] = None
    ) -> UserImportResult:
        """Register many students at once.

        Args:
            lines: `Name; Email; Phone` lines; blank lines are ignored
            sector_or_class: Class or sector assigned to every user

        Returns:
            UserImportResult. Malformed lines count as errors and
            already registered emails as skipped; the rest are created
            together.
        """
        result = UserImportResult()

        with self.get_session() as s:
            for number, line in enumerate(lines, start=1):
                try:
                    data = parse_user_line(line, sector_or_class)
                except ValueError as e:
                    result.errors += 1
                    result.error_messages.append(f"Line {number}: {e}")
                    continue
                if data is None:
                    continue

                try:
                    user = self.create_user(data, session=s)
                except ValueError as e:
                    result.skipped += 1
                    result.error_messages.append(f"Line {number}: {e}")
                    continue

                result.imported += 1
                result.imported_users.append(user)

            s.commit()
            for user in result.imported_users:
                s.refresh(user)
                s.expunge(user)

        logger.info("User import: %s", result.summary)
        return result

    def count_users(self) -> int:
        """Count registered users."""
        with self.get_session() as s:
            return s.execute(select(func.count()).select_from(User)).scalar() or 0

    # ========================================================================
    # Class/Sector Operations
    # ========================================================================

    def create_class(self, data: ClassSectorCreate) -> ClassSector:
        """Register a class or sector.

        Raises:
            ValueError: If the name is already registered
        """
        with self.get_session() as s:
            if self._find_class(s, data.name):
                raise ValueError(f"Class '{data.name}' already exists")

            item = ClassSector(name=data.name)
            s.add(item)
            s.commit()
            s.refresh(item)
            s.expunge(item)

        logger.info("Registered class %s (%s)", item.id, item.name)
        return item

    def _find_class(self, s: Session, name: str) -> Optional[ClassSector]:
        return s.execute(
            select(ClassSector).where(func.lower(ClassSector.name) == name.strip().lower())
        ).scalar_one_or_none()

    def get_class(self, class_id: str) -> Optional[ClassSector]:
        """Get a class or sector by ID."""
        with self.get_session() as s:
            item = s.get(ClassSector, class_id)
            if item:
                s.expunge(item)
            return item

    def get_class_by_name(self, name: str) -> Optional[ClassSector]:
        """Get a class or sector by name (case-insensitive)."""
        with self.get_session() as s:
            item = self._find_class(s, name)
            if item:
                s.expunge(item)
            return item

    def list_classes(self) -> list[ClassSector]:
        """List classes and sectors sorted by name."""
        with self.get_session() as s:
            items = list(s.execute(select(ClassSector).order_by(ClassSector.name)).scalars().all())
            for item in items:
                s.expunge(item)
            return items

    def rename_class(self, class_id: str, data: ClassSectorCreate) -> Optional[ClassSector]:
        """Rename a class or sector.

        Users assigned to the old name move to the new one.

        Raises:
            ValueError: If another class already has the new name
        """
        with self.get_session() as s:
            item = s.get(ClassSector, class_id)
            if not item:
                return None

            other = self._find_class(s, data.name)
            if other and other.id != item.id:
                raise ValueError(f"Class '{data.name}' already exists")

            old_name = item.name
            item.name = data.name
            s.execute(
                update(User)
                .where(User.sector_or_class == old_name)
                .values(sector_or_class=data.name, updated_at=utc_now())
                .execution_options(synchronize_session=False)
            )
            s.commit()
            s.refresh(item)
            s.expunge(item)

        logger.info("Renamed class %s from '%s' to '%s'", class_id, old_name, item.name)
        return item

    def delete_class(self, class_id: str) -> bool:
        """Delete a class or sector. Users keep their assignment text."""
        with self.get_session() as s:
            item = s.get(ClassSector, class_id)
            if not item:
                return False

            s.delete(item)
            return True


# Global database instance
_db: Optional[Database] = None


def get_db(db_path: Optional[str] = None) -> Database:
    """Get or create the global database instance."""
    global _db
    if _db is None:
        _db = Database(db_path)
        _db.create_tables()
    return _db


def reset_db() -> None:
    """Reset the global database instance. Used for testing."""
    global _db
    _db = None
