"""SQLAlchemy ORM models for local SQLite database.

Tables:
- books: Catalog records with total and available copy counts
- users: Students, teachers and staff who borrow books
- class_sectors: Registered school classes and staff sectors
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from sqlalchemy import CheckConstraint, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from .schemas import BookFormat, UserRole, UserType


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def generate_uuid() -> str:
    """Generate a UUID string for primary keys."""
    return str(uuid4())


def utc_now() -> str:
    """Current UTC timestamp as ISO string."""
    return datetime.now(timezone.utc).isoformat()


class Book(Base):
    """Book model - one catalog entry with its physical copies."""

    __tablename__ = "books"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_books_quantity"),
        CheckConstraint("available >= 0 AND available <= quantity", name="ck_books_available"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    # Core fields
    title: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    author: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    isbn: Mapped[Optional[str]] = mapped_column(String(20), index=True)
    category: Mapped[str] = mapped_column(String(100), default="General", index=True)
    format: Mapped[str] = mapped_column(String(20), default=BookFormat.BOOK.value)
    knowledge_area: Mapped[Optional[str]] = mapped_column(String(200))
    year: Mapped[Optional[str]] = mapped_column(String(10))
    publisher: Mapped[Optional[str]] = mapped_column(String(500))
    synopsis: Mapped[Optional[str]] = mapped_column(Text)
    sector: Mapped[Optional[str]] = mapped_column(String(200))
    cover_url: Mapped[Optional[str]] = mapped_column(Text)

    # Location
    shelf: Mapped[Optional[str]] = mapped_column(String(50))
    shelf_location: Mapped[Optional[str]] = mapped_column(String(50))

    # Copies
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    available: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # Timestamps
    created_at: Mapped[str] = mapped_column(String(32), default=utc_now)
    updated_at: Mapped[str] = mapped_column(String(32), default=utc_now, onupdate=utc_now)

    def __repr__(self) -> str:
        return f"<Book(id={self.id}, title='{self.title}', available={self.available}/{self.quantity})>"

    @property
    def on_loan(self) -> int:
        """Copies currently checked out."""
        return self.quantity - self.available


class User(Base):
    """User model - anyone allowed to borrow books."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(200), nullable=False, unique=True, index=True)
    role: Mapped[str] = mapped_column(String(10), default=UserRole.USER.value)
    phone: Mapped[Optional[str]] = mapped_column(String(50))
    user_type: Mapped[str] = mapped_column(String(20), default=UserType.STUDENT.value, index=True)
    sector_or_class: Mapped[Optional[str]] = mapped_column(String(200))

    # Timestamps
    created_at: Mapped[str] = mapped_column(String(32), default=utc_now)
    updated_at: Mapped[str] = mapped_column(String(32), default=utc_now, onupdate=utc_now)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, name='{self.name}', role={self.role})>"

    @property
    def is_admin(self) -> bool:
        """Check if the user has the admin role."""
        return self.role == UserRole.ADMIN.value


class ClassSector(Base):
    """A school class or staff sector users can be assigned to."""

    __tablename__ = "class_sectors"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(200), nullable=False, unique=True, index=True)

    created_at: Mapped[str] = mapped_column(String(32), default=utc_now)

    def __repr__(self) -> str:
        return f"<ClassSector(id={self.id}, name='{self.name}')>"
