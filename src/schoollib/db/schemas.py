"""Pydantic schemas for data validation.

These schemas are the validated boundary for catalog and user records.
Copy counts are set once on creation; afterwards `available` only moves
through the inventory store.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class UserRole(str, Enum):
    """Access role of a library user."""

    ADMIN = "admin"
    USER = "user"


class UserType(str, Enum):
    """Kind of library user."""

    STUDENT = "student"
    TEACHER = "teacher"
    STAFF = "staff"


class BookFormat(str, Enum):
    """Physical format of a catalog item."""

    BOOK = "book"
    COMIC = "comic"
    MAGAZINE = "magazine"
    ENCYCLOPEDIA = "encyclopedia"
    HANDOUT = "handout"
    COLLECTION = "collection"
    NEWSPAPER = "newspaper"


# ============================================================================
# Book Schemas
# ============================================================================


class BookBase(BaseModel):
    """Base book fields common to create/update operations."""

    title: str = Field(..., min_length=1, max_length=500, description="Book title")
    author: str = Field(..., min_length=1, max_length=500, description="Primary author")
    isbn: Optional[str] = Field(None, max_length=20)
    category: str = Field(default="General", max_length=100, description="Literary genre")
    format: BookFormat = Field(default=BookFormat.BOOK)
    knowledge_area: Optional[str] = Field(None, max_length=200)
    year: Optional[str] = Field(None, max_length=10)
    publisher: Optional[str] = Field(None, max_length=500)
    shelf: Optional[str] = Field(None, max_length=50, description="Bookcase")
    shelf_location: Optional[str] = Field(None, max_length=50, description="Shelf within the bookcase")
    synopsis: Optional[str] = None
    sector: Optional[str] = Field(None, max_length=200, description="Sector the copies came from")
    cover_url: Optional[str] = None

    @field_validator("isbn", mode="before")
    @classmethod
    def clean_isbn(cls, v: Optional[str]) -> Optional[str]:
        """Strip dashes and spaces from ISBN values."""
        if v is None:
            return None
        v = str(v).replace("-", "").replace(" ", "").strip()
        return v if v else None


class BookCreate(BookBase):
    """Schema for creating a new book. All copies start available."""

    quantity: int = Field(default=1, ge=0, description="Total owned copies")


class BookUpdate(BaseModel):
    """Schema for updating book metadata. All fields optional."""

    title: Optional[str] = Field(None, min_length=1, max_length=500)
    author: Optional[str] = Field(None, min_length=1, max_length=500)
    isbn: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    format: Optional[BookFormat] = None
    knowledge_area: Optional[str] = None
    year: Optional[str] = None
    publisher: Optional[str] = None
    shelf: Optional[str] = None
    shelf_location: Optional[str] = None
    synopsis: Optional[str] = None
    sector: Optional[str] = None
    cover_url: Optional[str] = None


# ============================================================================
# User Schemas
# ============================================================================


class UserBase(BaseModel):
    """Base user fields."""

    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., min_length=3, max_length=200)
    role: UserRole = Field(default=UserRole.USER)
    phone: Optional[str] = Field(None, max_length=50)
    user_type: UserType = Field(default=UserType.STUDENT)
    sector_or_class: Optional[str] = Field(None, max_length=200, description="Class or sector")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Lowercase emails so lookups are case-insensitive."""
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("email must contain '@'")
        return v


class UserCreate(UserBase):
    """Schema for creating a user."""

    pass


class UserUpdate(BaseModel):
    """Schema for updating a user."""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    role: Optional[UserRole] = None
    phone: Optional[str] = Field(None, max_length=50)
    user_type: Optional[UserType] = None
    sector_or_class: Optional[str] = Field(None, max_length=200)


# ============================================================================
# Class/Sector Schemas
# ============================================================================


class ClassSectorCreate(BaseModel):
    """Schema for registering a class or sector."""

    name: str = Field(..., min_length=1, max_length=200)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: str) -> str:
        """Trim surrounding whitespace."""
        return str(v).strip()
