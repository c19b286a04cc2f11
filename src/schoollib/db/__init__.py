"""Database module for local SQLite storage."""

from .imports import UserImportResult, parse_user_line
from .models import Base, Book, ClassSector, User
from .schemas import (
    BookCreate,
    BookFormat,
    BookUpdate,
    ClassSectorCreate,
    UserCreate,
    UserRole,
    UserType,
    UserUpdate,
)
from .sqlite import Database, get_db, reset_db

__all__ = [
    "Base",
    "Book",
    "ClassSector",
    "User",
    "BookCreate",
    "BookFormat",
    "BookUpdate",
    "ClassSectorCreate",
    "UserCreate",
    "UserRole",
    "UserType",
    "UserUpdate",
    "UserImportResult",
    "parse_user_line",
    "Database",
    "get_db",
    "reset_db",
]
